"""
xpcore.exceptions — Gamification Error Taxonomy
================================================

Every failure the core can surface to its host inherits from
:class:`GamificationError`.  Storage-layer exceptions (SQLAlchemy) are
caught at the store boundary and re-raised as one of these types, so the
host never has to import SQLAlchemy to tell "progress tracking failed"
apart from "the primary action failed".

Hierarchy::

    GamificationError
    ├── InvalidActionKind          unknown action passed to add_xp
    ├── InvalidTrigger             unknown trigger name
    ├── StatsStoreError            user_stats table unreachable
    │   ├── StatsReadFailed
    │   └── StatsWriteFailed
    ├── AchievementStoreError      achievement ledger unreachable
    │   ├── AchievementLookupFailed
    │   └── AchievementPersistFailed
    └── StatsUnavailable           content store (comments/reports) unreachable
"""

from __future__ import annotations

from typing import Any


class GamificationError(Exception):
    """Base class for all xpcore errors.

    Parameters
    ----------
    message : Human-readable description.
    details : Structured context for logging (user id, slug, ...).
    """

    #: Whether retrying the same call later could succeed.
    is_retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details: dict[str, Any] = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"{self.message}{details_str}"


# ---------------------------------------------------------------------------
# Bad input: programming errors in the host
# ---------------------------------------------------------------------------
class InvalidActionKind(GamificationError):
    """``add_xp`` was called with an action that has no XP value."""

    def __init__(self, action: object) -> None:
        self.action = action
        super().__init__(f"Unknown XP action: {action!r}", {"action": str(action)})


class InvalidTrigger(GamificationError):
    """An achievement trigger name is not part of the trigger vocabulary."""

    def __init__(self, trigger: object) -> None:
        self.trigger = trigger
        super().__init__(
            f"Unknown achievement trigger: {trigger!r}", {"trigger": str(trigger)},
        )


# ---------------------------------------------------------------------------
# user_stats store
# ---------------------------------------------------------------------------
class StatsStoreError(GamificationError):
    """The user_stats store could not be reached."""

    is_retryable = True


class StatsReadFailed(StatsStoreError):
    """Reading a user's XP/level row failed."""


class StatsWriteFailed(StatsStoreError):
    """Writing a user's XP/level row failed; nothing was committed."""


# ---------------------------------------------------------------------------
# Achievement ledger
# ---------------------------------------------------------------------------
class AchievementStoreError(GamificationError):
    """The achievement ledger could not be reached."""

    is_retryable = True


class AchievementLookupFailed(AchievementStoreError):
    """Loading a user's unlocked achievements failed."""


class AchievementPersistFailed(AchievementStoreError):
    """Recording a newly unlocked achievement failed."""


# ---------------------------------------------------------------------------
# Statistics provider
# ---------------------------------------------------------------------------
class StatsUnavailable(GamificationError):
    """A comment/report statistic could not be computed."""

    is_retryable = True
