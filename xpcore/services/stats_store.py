"""
xpcore.services.stats_store — user_stats Persistence
=====================================================

Reads and writes the one-row-per-user XP/level table.

The write path never does a Python-side read-modify-write of ``xp``.
Inside a single transaction it

1. inserts the row with ``xp=0`` if it is missing (insert-if-absent),
2. runs ``UPDATE ... SET xp = xp + :delta RETURNING xp, level`` — the
   database applies the increment atomically and row-locks it until
   commit, and ``level`` in the RETURNING clause is still the stored
   (pre-event) level,
3. writes the level derived from the new XP.

The ``xp``/``level`` pair therefore commits together or not at all, and
two concurrent events for the same user cannot lose an increment.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Engine, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from xpcore.database.engine import insert_if_absent
from xpcore.database.models import UserStats
from xpcore.exceptions import StatsReadFailed, StatsWriteFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatsChange:
    """Before/after snapshot of one XP increment."""

    user_id: str
    old_xp: int
    old_level: int
    new_xp: int
    new_level: int
    created: bool = False

    @property
    def level_up(self) -> bool:
        return self.new_level > self.old_level


class UserStatsStore:
    """Key-value style access to ``user_stats`` keyed by user id."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def find(self, user_id: str) -> UserStats | None:
        """Return the detached row for *user_id*, or ``None`` if absent.

        Raises :class:`StatsReadFailed` if the store is unreachable.
        """
        try:
            with Session(self._engine, expire_on_commit=False) as session:
                row = session.get(UserStats, user_id)
                if row is not None:
                    session.expunge(row)
                return row
        except SQLAlchemyError as exc:
            logger.exception("Error fetching user stats for %s", user_id)
            raise StatsReadFailed(
                f"Failed to fetch user stats: {exc}", {"user_id": user_id},
            ) from exc

    def apply_xp(
        self,
        user_id: str,
        delta: int,
        level_for: Callable[[int], int],
    ) -> StatsChange:
        """Add *delta* XP to *user_id* and store the level ``level_for(xp)``.

        Creates the row on first use.  Raises :class:`StatsWriteFailed` if
        anything fails; in that case nothing is committed.
        """
        if delta < 0:
            raise ValueError(f"XP delta must be >= 0, got {delta}")

        now = datetime.now(UTC)
        try:
            with Session(self._engine) as session, session.begin():
                created = insert_if_absent(
                    session,
                    UserStats.__table__,
                    {"user_id": user_id, "xp": 0, "level": level_for(0), "last_updated": now},
                    ["user_id"],
                )

                row = session.execute(
                    update(UserStats)
                    .where(UserStats.user_id == user_id)
                    .values(xp=UserStats.xp + delta, last_updated=now)
                    .returning(UserStats.xp, UserStats.level)
                    .execution_options(synchronize_session=False)
                ).one()
                new_xp, old_level = row.xp, row.level

                new_level = level_for(new_xp)
                if new_level != old_level:
                    session.execute(
                        update(UserStats)
                        .where(UserStats.user_id == user_id)
                        .values(level=new_level)
                        .execution_options(synchronize_session=False)
                    )
        except SQLAlchemyError as exc:
            logger.exception("Error writing user stats for %s", user_id)
            raise StatsWriteFailed(
                f"Failed to update user stats: {exc}",
                {"user_id": user_id, "delta": delta},
            ) from exc

        if created:
            logger.info("Created user_stats row for %s", user_id)

        return StatsChange(
            user_id=user_id,
            old_xp=new_xp - delta,
            old_level=old_level,
            new_xp=new_xp,
            new_level=new_level,
            created=created,
        )
