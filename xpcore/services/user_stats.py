"""
xpcore.services.user_stats — User Statistics Provider
======================================================

Read-only counters over the host application's content tables
(reports, comments, comment mentions), used to build the trigger context
for achievement evaluation.

Nothing here is cached: evaluation runs right after the host commits the
triggering action, and the counts must include that action.

Streaks are computed in UTC calendar days (or ISO weeks) and are anchored
on *today or yesterday*: a user who was active yesterday but not yet today
still holds their streak until the day ends.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from xpcore.database.models import Comment, CommentMention, Report
from xpcore.engine.events import AchievementTrigger, parse_trigger
from xpcore.exceptions import StatsUnavailable

logger = logging.getLogger(__name__)

# Initial lookback for streak queries.  A streak that fills the window
# doubles it and re-queries, so long streaks are still counted exactly.
DAY_STREAK_WINDOW = 60     # days
WEEK_STREAK_WINDOW = 8     # weeks


# ---------------------------------------------------------------------------
# Pure streak helpers
# ---------------------------------------------------------------------------
def to_utc_date(ts: datetime) -> date:
    """Calendar day of *ts* in UTC.  Naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        return ts.date()
    return ts.astimezone(UTC).date()


def consecutive_days(days: Iterable[date], today: date) -> int:
    """Length of the run of consecutive days ending today or yesterday."""
    active = set(days)
    cursor = today if today in active else today - timedelta(days=1)
    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def week_start(d: date) -> date:
    """Monday of the ISO week containing *d*."""
    return d - timedelta(days=d.weekday())


def consecutive_weeks(days: Iterable[date], today: date) -> int:
    """Length of the run of consecutive ISO weeks ending this week or last."""
    active = {week_start(d) for d in days}
    cursor = week_start(today)
    if cursor not in active:
        cursor -= timedelta(weeks=1)
    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(weeks=1)
    return streak


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------
class UserStatisticsProvider:
    """Computes per-user counters from the content store.

    Parameters
    ----------
    engine : Engine bound to the database holding reports/comments.
    clock : Returns "now"; injectable for tests.  Defaults to UTC wall time.
    """

    def __init__(
        self, engine: Engine, clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._engine = engine
        self._clock = clock or (lambda: datetime.now(UTC))

    # -- counts -------------------------------------------------------------
    def get_user_comment_count(self, user_id: str) -> int:
        return self._count(
            "comments",
            select(func.count()).select_from(Comment).where(Comment.user_id == user_id),
            user_id,
        )

    def get_user_report_count(self, user_id: str) -> int:
        return self._count(
            "reports",
            select(func.count()).select_from(Report).where(Report.user_id == user_id),
            user_id,
        )

    def get_user_mention_count(self, user_id: str) -> int:
        """Number of comments in which *user_id* was mentioned."""
        return self._count(
            "mentions",
            select(func.count())
            .select_from(CommentMention)
            .where(CommentMention.user_id == user_id),
            user_id,
        )

    # -- streaks ------------------------------------------------------------
    def get_user_comment_streak(self, user_id: str) -> int:
        """Consecutive days (ending today/yesterday) with at least one comment."""
        return self._streak(user_id, (Comment,), weekly=False)

    def get_user_report_streak(self, user_id: str) -> int:
        """Consecutive days (ending today/yesterday) with at least one report."""
        return self._streak(user_id, (Report,), weekly=False)

    def get_user_weekly_streak(self, user_id: str) -> int:
        """Consecutive ISO weeks in which the user commented or reported."""
        return self._streak(user_id, (Comment, Report), weekly=True)

    # -- context ------------------------------------------------------------
    def build_context(
        self, user_id: str, trigger: AchievementTrigger | str,
    ) -> dict[str, int]:
        """Statistics relevant to *trigger*, freshly computed.

        Raises :class:`StatsUnavailable` if the content store fails.
        """
        trigger = parse_trigger(trigger)
        if trigger is AchievementTrigger.ON_COMMENT:
            return {
                "total_comments": self.get_user_comment_count(user_id),
                "comment_streak_days": self.get_user_comment_streak(user_id),
            }
        if trigger is AchievementTrigger.ON_REPORT_CREATE:
            return {
                "total_reports": self.get_user_report_count(user_id),
                "report_streak_days": self.get_user_report_streak(user_id),
            }
        if trigger is AchievementTrigger.ON_MENTION:
            return {"mentions_received": self.get_user_mention_count(user_id)}
        return {"weekly_activity_streak": self.get_user_weekly_streak(user_id)}

    # -- internals ----------------------------------------------------------
    def _today(self) -> date:
        return to_utc_date(self._clock())

    def _count(self, what: str, stmt, user_id: str) -> int:
        try:
            with Session(self._engine) as session:
                count = session.scalar(stmt) or 0
        except SQLAlchemyError as exc:
            logger.exception("Error counting %s for user %s", what, user_id)
            raise StatsUnavailable(
                f"Failed to count user {what}: {exc}", {"user_id": user_id},
            ) from exc
        logger.debug("User %s has %d total %s", user_id, count, what)
        return count

    def _streak(
        self,
        user_id: str,
        models: tuple[type[Comment] | type[Report], ...],
        weekly: bool,
    ) -> int:
        """Streak computed from activity inside a lookback window.

        A run shorter than the window is bounded by an inactive day (week)
        that lies inside the window, so it is exact.  A run that fills the
        window may continue further back: double the window and retry.
        """
        today = self._today()
        if weekly:
            unit, window, anchor, count = (
                timedelta(weeks=1), WEEK_STREAK_WINDOW, week_start(today), consecutive_weeks,
            )
        else:
            unit, window, anchor, count = (
                timedelta(days=1), DAY_STREAK_WINDOW, today, consecutive_days,
            )

        while True:
            since = anchor - unit * window
            days: set[date] = set()
            for model in models:
                days |= self._activity_days(model, user_id, since)
            streak = count(days, today)
            if streak < window:
                return streak
            logger.debug(
                "Streak for user %s fills a %d-unit window, widening", user_id, window,
            )
            window *= 2

    def _activity_days(
        self, model: type[Comment] | type[Report], user_id: str, since: date,
    ) -> set[date]:
        """UTC days on or after *since* with at least one *model* row."""
        cutoff = datetime.combine(since, time.min, tzinfo=UTC)
        try:
            with Session(self._engine) as session:
                stamps = session.scalars(
                    select(model.created_at)
                    .where(model.user_id == user_id, model.created_at >= cutoff)
                ).all()
        except SQLAlchemyError as exc:
            logger.exception(
                "Error loading %s timestamps for user %s", model.__tablename__, user_id,
            )
            raise StatsUnavailable(
                f"Failed to load user {model.__tablename__}: {exc}",
                {"user_id": user_id},
            ) from exc
        return {to_utc_date(ts) for ts in stamps}
