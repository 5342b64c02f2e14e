"""
xpcore.services.ledger — Achievement Ledger
============================================

Append-only record of which achievements each user has unlocked.

Uniqueness of ``(user_id, slug)`` is enforced by the database
(``uq_achievements_user_slug``).  :meth:`AchievementLedger.insert_if_absent`
turns a collision into a ``False`` return value instead of an exception,
which is what makes concurrent evaluations for the same user safe: the
loser of the race simply learns "already unlocked".
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from xpcore.database.engine import insert_if_absent
from xpcore.database.models import AchievementRecord
from xpcore.exceptions import AchievementLookupFailed, AchievementPersistFailed

logger = logging.getLogger(__name__)


class AchievementLedger:
    """Document-style store of :class:`AchievementRecord` rows."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def find_slugs(self, user_id: str) -> set[str]:
        """Slugs already unlocked by *user_id*.

        Raises :class:`AchievementLookupFailed` if the ledger is unreachable.
        """
        try:
            with Session(self._engine) as session:
                rows = session.scalars(
                    select(AchievementRecord.slug).where(
                        AchievementRecord.user_id == user_id
                    )
                ).all()
        except SQLAlchemyError as exc:
            logger.exception("Error loading achievements for %s", user_id)
            raise AchievementLookupFailed(
                f"Failed to load achievements: {exc}", {"user_id": user_id},
            ) from exc
        return set(rows)

    def find_records(self, user_id: str) -> list[AchievementRecord]:
        """All records for *user_id*, oldest unlock first (detached)."""
        try:
            with Session(self._engine, expire_on_commit=False) as session:
                records = list(session.scalars(
                    select(AchievementRecord)
                    .where(AchievementRecord.user_id == user_id)
                    .order_by(AchievementRecord.unlocked_at, AchievementRecord.id)
                ))
                session.expunge_all()
        except SQLAlchemyError as exc:
            logger.exception("Error loading achievement records for %s", user_id)
            raise AchievementLookupFailed(
                f"Failed to load achievements: {exc}", {"user_id": user_id},
            ) from exc
        return records

    def insert_if_absent(
        self, user_id: str, slug: str, unlocked_at: datetime | None = None,
    ) -> bool:
        """Record *slug* for *user_id* unless it is already there.

        Returns ``True`` if this call created the record.  Raises
        :class:`AchievementPersistFailed` on any storage error other than
        the uniqueness collision.
        """
        values = {
            "user_id": user_id,
            "slug": slug,
            "unlocked_at": unlocked_at or datetime.now(UTC),
        }
        try:
            with Session(self._engine) as session, session.begin():
                inserted = insert_if_absent(
                    session, AchievementRecord.__table__, values, ["user_id", "slug"],
                )
        except SQLAlchemyError as exc:
            logger.exception("Error recording achievement %r for %s", slug, user_id)
            raise AchievementPersistFailed(
                f"Failed to record achievement: {exc}",
                {"user_id": user_id, "slug": slug},
            ) from exc

        if not inserted:
            logger.info("Achievement %r for %s already recorded, skipping", slug, user_id)
        return inserted
