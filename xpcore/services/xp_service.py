"""
xpcore.services.xp_service — XP Ledger
=======================================

The entry point the host application calls after an XP-earning action
has committed (a comment was posted, a report was created, ...)::

    result = xp_ledger.add_xp(user_id, "comment")
    details = get_achievement_details(result.unlocked_achievement_slugs)

Pipeline:

    action → XP delta → user_stats increment → level-up check
           → trigger context → achievement evaluator → XpResult

XP accounting failures propagate (:class:`StatsWriteFailed`) so the host
can warn that progress tracking failed.  Achievement failures are logged
and degrade to an empty unlock list: the XP already committed stands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import Engine

from xpcore.constants import DEFAULT_CURVE, LevelCurve
from xpcore.engine.achievements import RuleCatalog
from xpcore.engine.events import ACTION_TRIGGERS, XP_BY_ACTION, ActionKind, parse_action
from xpcore.exceptions import AchievementStoreError, StatsUnavailable
from xpcore.services.achievement_service import AchievementEvaluator
from xpcore.services.ledger import AchievementLedger
from xpcore.services.stats_store import UserStatsStore
from xpcore.services.user_stats import UserStatisticsProvider

logger = logging.getLogger(__name__)


@dataclass
class XpResult:
    """Outcome of one :meth:`XpLedger.add_xp` call."""

    new_xp: int
    new_level: int
    level_up: bool
    unlocked_achievement_slugs: list[str] = field(default_factory=list)
    xp_gained: int = 0

    def to_dict(self) -> dict:
        return {
            "new_xp": self.new_xp,
            "new_level": self.new_level,
            "level_up": self.level_up,
            "unlocked_achievement_slugs": list(self.unlocked_achievement_slugs),
            "xp_gained": self.xp_gained,
        }


class XpLedger:
    """Applies XP for user actions and runs the matching achievement checks.

    Parameters
    ----------
    stats_store : Where XP/level live.
    statistics : Computes trigger contexts from the content store.
    evaluator : Decides and records achievement unlocks.
    curve : Level curve; defaults to :data:`~xpcore.constants.DEFAULT_CURVE`.
    """

    def __init__(
        self,
        stats_store: UserStatsStore,
        statistics: UserStatisticsProvider,
        evaluator: AchievementEvaluator,
        curve: LevelCurve | None = None,
    ) -> None:
        self._stats_store = stats_store
        self._statistics = statistics
        self._evaluator = evaluator
        self._curve = curve or DEFAULT_CURVE

    @classmethod
    def from_engines(
        cls,
        stats_engine: Engine,
        achievements_engine: Engine | None = None,
        content_engine: Engine | None = None,
        *,
        curve: LevelCurve | None = None,
        catalog: RuleCatalog | None = None,
    ) -> XpLedger:
        """Wire the default stores.  Missing engines reuse *stats_engine*."""
        ledger = AchievementLedger(achievements_engine or stats_engine)
        return cls(
            UserStatsStore(stats_engine),
            UserStatisticsProvider(content_engine or stats_engine),
            AchievementEvaluator(ledger, catalog),
            curve=curve,
        )

    @property
    def curve(self) -> LevelCurve:
        return self._curve

    def add_xp(self, user_id: str, action: ActionKind | str) -> XpResult:
        """Award the XP for *action* to *user_id*.

        Raises
        ------
        InvalidActionKind
            *action* has no XP value.  Nothing is written.
        StatsWriteFailed
            The user_stats row could not be updated.  Nothing is written.
        """
        action = parse_action(action)
        delta = XP_BY_ACTION[action]
        logger.debug("Adding %d XP for user %s (action=%s)", delta, user_id, action)

        change = self._stats_store.apply_xp(user_id, delta, self._curve.calculate_level)
        if change.level_up:
            logger.info(
                "User %s leveled up from %d to %d",
                user_id, change.old_level, change.new_level,
            )

        unlocked = self._check_achievements(user_id, action)

        result = XpResult(
            new_xp=change.new_xp,
            new_level=change.new_level,
            level_up=change.level_up,
            unlocked_achievement_slugs=unlocked,
            xp_gained=delta,
        )
        logger.info("XP added for user %s: %s", user_id, result.to_dict())
        return result

    def _check_achievements(self, user_id: str, action: ActionKind) -> list[str]:
        """Best-effort achievement pass; never raises storage errors."""
        trigger = ACTION_TRIGGERS.get(action)
        if trigger is None:
            return []
        try:
            context = self._statistics.build_context(user_id, trigger)
            return self._evaluator.check_achievements(user_id, trigger, context)
        except (StatsUnavailable, AchievementStoreError) as exc:
            logger.warning(
                "Skipping achievements for user %s after %s: %s",
                user_id, action, exc,
            )
            return []
