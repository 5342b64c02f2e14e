"""
tests/test_user_stats.py — Statistics Provider Tests
=====================================================
Counts, day/week streaks and trigger contexts computed from the host's
content tables.  The provider's clock is pinned to ``factories.NOW``
(Wednesday 2026-03-18, 12:00 UTC).
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from tests.factories import NOW, add_comments, add_mentions, add_reports
from xpcore.engine.events import AchievementTrigger
from xpcore.exceptions import InvalidTrigger, StatsUnavailable
from xpcore.services.user_stats import (
    DAY_STREAK_WINDOW,
    WEEK_STREAK_WINDOW,
    UserStatisticsProvider,
    consecutive_days,
    consecutive_weeks,
    to_utc_date,
)

TODAY = NOW.date()


def _days_ago(n: int, hour: int = 9) -> datetime:
    return (NOW - timedelta(days=n)).replace(hour=hour)


# ===========================================================================
# Pure helpers
# ===========================================================================
class TestStreakHelpers:
    def test_no_activity(self):
        assert consecutive_days([], TODAY) == 0

    def test_run_ending_today(self):
        days = [TODAY - timedelta(days=i) for i in range(4)]
        assert consecutive_days(days, TODAY) == 4

    def test_run_ending_yesterday_still_counts(self):
        days = [TODAY - timedelta(days=i) for i in (1, 2)]
        assert consecutive_days(days, TODAY) == 2

    def test_gap_breaks_run(self):
        days = [TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=3)]
        assert consecutive_days(days, TODAY) == 2

    def test_stale_run_is_zero(self):
        assert consecutive_days([TODAY - timedelta(days=2)], TODAY) == 0

    def test_weeks_any_day_counts(self):
        days = [
            date(2026, 3, 17),  # this week (Tue)
            date(2026, 3, 15),  # last week (Sun)
            date(2026, 3, 2),   # two weeks back (Mon)
        ]
        assert consecutive_weeks(days, TODAY) == 3

    def test_weeks_anchored_on_last_week(self):
        assert consecutive_weeks([date(2026, 3, 10)], TODAY) == 1
        assert consecutive_weeks([date(2026, 3, 3)], TODAY) == 0

    def test_to_utc_date_converts_offsets(self):
        late_evening_west = datetime(2026, 3, 17, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert to_utc_date(late_evening_west) == date(2026, 3, 18)
        assert to_utc_date(datetime(2026, 3, 17, 23, 0)) == date(2026, 3, 17)


# ===========================================================================
# Provider against the content tables
# ===========================================================================
class TestCounts:
    def test_zero_for_unknown_user(self, statistics):
        assert statistics.get_user_comment_count("ghost") == 0
        assert statistics.get_user_report_count("ghost") == 0
        assert statistics.get_user_mention_count("ghost") == 0

    def test_counts_only_own_rows(self, statistics, db_engine):
        add_comments(db_engine, "u1", NOW, NOW)
        add_comments(db_engine, "u2", NOW)
        add_reports(db_engine, "u1", NOW)
        assert statistics.get_user_comment_count("u1") == 2
        assert statistics.get_user_report_count("u1") == 1

    def test_mentions(self, statistics, db_engine):
        add_mentions(db_engine, "u1", 3)
        assert statistics.get_user_mention_count("u1") == 3


class TestStreaks:
    def test_comment_streak(self, statistics, db_engine):
        add_comments(db_engine, "u1", _days_ago(0), _days_ago(1), _days_ago(1, 20), _days_ago(2))
        assert statistics.get_user_comment_streak("u1") == 3

    def test_report_streak_ending_yesterday(self, statistics, db_engine):
        add_reports(db_engine, "u1", *(_days_ago(n) for n in range(1, 6)))
        assert statistics.get_user_report_streak("u1") == 5

    def test_weekly_streak_mixes_comments_and_reports(self, statistics, db_engine):
        add_comments(db_engine, "u1", _days_ago(0), _days_ago(14))
        add_reports(db_engine, "u1", _days_ago(7), _days_ago(21))
        assert statistics.get_user_weekly_streak("u1") == 4


class TestStreakWindow:
    def test_short_streak_reads_one_window(self, statistics, db_engine):
        add_comments(db_engine, "u1", _days_ago(0), _days_ago(1), _days_ago(200))

        with patch.object(
            statistics, "_activity_days", wraps=statistics._activity_days,
        ) as spy:
            assert statistics.get_user_comment_streak("u1") == 2

        spy.assert_called_once()
        (_, _, since), _ = spy.call_args
        assert since == TODAY - timedelta(days=DAY_STREAK_WINDOW)

    def test_long_day_streak_widens_window(self, statistics, db_engine):
        length = DAY_STREAK_WINDOW + 10
        add_reports(db_engine, "u1", *(_days_ago(n) for n in range(length)))
        assert statistics.get_user_report_streak("u1") == length

    def test_streak_exactly_window_length(self, statistics, db_engine):
        add_reports(db_engine, "u1", *(_days_ago(n) for n in range(DAY_STREAK_WINDOW)))
        assert statistics.get_user_report_streak("u1") == DAY_STREAK_WINDOW

    def test_long_weekly_streak_widens_window(self, statistics, db_engine):
        weeks = WEEK_STREAK_WINDOW + 3
        add_comments(db_engine, "u1", *(_days_ago(7 * n) for n in range(weeks)))
        assert statistics.get_user_weekly_streak("u1") == weeks


class TestBuildContext:
    def test_on_comment(self, statistics, db_engine):
        add_comments(db_engine, "u1", NOW)
        assert statistics.build_context("u1", AchievementTrigger.ON_COMMENT) == {
            "total_comments": 1,
            "comment_streak_days": 1,
        }

    def test_on_report_create(self, statistics, db_engine):
        add_reports(db_engine, "u1", NOW)
        assert statistics.build_context("u1", "onReportCreate") == {
            "total_reports": 1,
            "report_streak_days": 1,
        }

    def test_on_mention(self, statistics, db_engine):
        add_mentions(db_engine, "u1", 2)
        assert statistics.build_context("u1", "onMention") == {"mentions_received": 2}

    def test_on_streak(self, statistics):
        assert statistics.build_context("u1", "onStreak") == {"weekly_activity_streak": 0}

    def test_unknown_trigger(self, statistics):
        with pytest.raises(InvalidTrigger):
            statistics.build_context("u1", "onLogin")


class TestFailures:
    def test_count_failure_wrapped(self, broken_engine):
        provider = UserStatisticsProvider(broken_engine, clock=lambda: NOW)
        with pytest.raises(StatsUnavailable) as exc_info:
            provider.get_user_comment_count("u1")
        assert exc_info.value.details == {"user_id": "u1"}

    def test_streak_failure_wrapped(self, broken_engine):
        provider = UserStatisticsProvider(broken_engine, clock=lambda: NOW)
        with pytest.raises(StatsUnavailable):
            provider.get_user_report_streak("u1")

    def test_default_clock_is_utc(self, db_engine):
        provider = UserStatisticsProvider(db_engine)
        assert provider._today() == datetime.now(UTC).date()
