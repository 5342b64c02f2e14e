"""
xpcore.engine.events — Action Kinds, Triggers and the XP Table
===============================================================

The vocabulary shared by the XP ledger and the achievement engine.

* :class:`ActionKind` — what the host application just did for a user
  (posted a comment, created a report, ...).  Each kind earns a fixed
  amount of XP from :data:`XP_BY_ACTION`.
* :class:`AchievementTrigger` — which group of achievement rules an
  action wakes up.  :data:`ACTION_TRIGGERS` maps actions onto triggers;
  actions without an entry award XP but never evaluate achievements.
"""

from __future__ import annotations

import enum

from xpcore.exceptions import InvalidActionKind, InvalidTrigger

__all__ = [
    "ACTION_TRIGGERS",
    "XP_BY_ACTION",
    "AchievementTrigger",
    "ActionKind",
    "parse_action",
    "parse_trigger",
]


class ActionKind(enum.StrEnum):
    """XP-earning user actions reported by the host application."""
    COMMENT = "comment"
    REPORT = "report"
    MENTION = "mention"
    LOGIN_STREAK = "login_streak"
    PROFILE_COMPLETE = "profile_complete"
    FIRST_WEEKLY_REPORT = "first_weekly_report"


class AchievementTrigger(enum.StrEnum):
    """Event kinds that achievement rules subscribe to."""
    ON_COMMENT = "onComment"
    ON_REPORT_CREATE = "onReportCreate"
    ON_MENTION = "onMention"
    ON_STREAK = "onStreak"


# ---------------------------------------------------------------------------
# XP per action: the whole economy lives in this table
# ---------------------------------------------------------------------------
XP_BY_ACTION: dict[ActionKind, int] = {
    ActionKind.COMMENT: 10,
    ActionKind.REPORT: 25,
    ActionKind.MENTION: 5,              # being mentioned by someone else
    ActionKind.LOGIN_STREAK: 5,         # per streak day
    ActionKind.PROFILE_COMPLETE: 50,
    ActionKind.FIRST_WEEKLY_REPORT: 15,
}

ACTION_TRIGGERS: dict[ActionKind, AchievementTrigger] = {
    ActionKind.COMMENT: AchievementTrigger.ON_COMMENT,
    ActionKind.REPORT: AchievementTrigger.ON_REPORT_CREATE,
    ActionKind.MENTION: AchievementTrigger.ON_MENTION,
    ActionKind.LOGIN_STREAK: AchievementTrigger.ON_STREAK,
}


def parse_action(action: ActionKind | str) -> ActionKind:
    """Coerce *action* to :class:`ActionKind` or raise :class:`InvalidActionKind`."""
    try:
        return ActionKind(action)
    except ValueError:
        raise InvalidActionKind(action) from None


def parse_trigger(trigger: AchievementTrigger | str) -> AchievementTrigger:
    """Coerce *trigger* to :class:`AchievementTrigger` or raise :class:`InvalidTrigger`."""
    try:
        return AchievementTrigger(trigger)
    except ValueError:
        raise InvalidTrigger(trigger) from None
