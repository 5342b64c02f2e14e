"""
xpcore.engine.achievements — Achievement Rule Catalog
======================================================

Static registry of unlock rules.  Each :class:`AchievementRule` is bound
to one :class:`AchievementTrigger` and carries a pure predicate over a
trigger context (a mapping of statistic name → number/bool).

This module is pure calculation — no database I/O.  Persisting unlocks is
the job of :mod:`xpcore.services.achievement_service`.

Adding an achievement is a catalog edit: append a rule to
:data:`ACHIEVEMENT_RULES`.  The catalog validates slugs and triggers when
it is built, so a typo fails at import time instead of silently never
matching.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass

from xpcore.engine.events import AchievementTrigger, parse_trigger

logger = logging.getLogger(__name__)

TriggerContext = Mapping[str, int | bool]
"""Statistics passed to rule conditions, e.g. ``{"total_comments": 12}``."""


# ---------------------------------------------------------------------------
# Rule + presentation types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AchievementRule:
    """One unlockable achievement.

    Parameters
    ----------
    slug : Stable unique identifier, stored in the achievement ledger.
    trigger : The event kind that causes this rule to be evaluated.
    condition : Pure predicate over the trigger context.  Missing keys
        must be tolerated (treat them as zero).
    label, description, icon : Display metadata.
    """

    slug: str
    trigger: AchievementTrigger
    condition: Callable[[TriggerContext], bool]
    label: str
    description: str
    icon: str


@dataclass(frozen=True, slots=True)
class AchievementDetails:
    """User-facing metadata for an unlocked achievement."""

    slug: str
    label: str
    description: str
    icon: str

    def to_dict(self) -> dict[str, str]:
        return {
            "slug": self.slug,
            "label": self.label,
            "description": self.description,
            "icon": self.icon,
        }


# ---------------------------------------------------------------------------
# Condition builders
# ---------------------------------------------------------------------------
def at_least(key: str, value: int) -> Callable[[TriggerContext], bool]:
    """Condition: ``context[key] >= value`` (missing key counts as 0)."""
    def _condition(ctx: TriggerContext) -> bool:
        return ctx.get(key, 0) >= value

    _condition.__qualname__ = f"at_least({key!r}, {value})"
    return _condition


# ---------------------------------------------------------------------------
# The catalog
# ---------------------------------------------------------------------------
ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    # Comments
    AchievementRule(
        slug="first-comment",
        trigger=AchievementTrigger.ON_COMMENT,
        condition=at_least("total_comments", 1),
        label="First Comment!",
        description="You've made your first comment!",
        icon="\U0001f4ac",  # 💬
    ),
    AchievementRule(
        slug="comment-streak-3",
        trigger=AchievementTrigger.ON_COMMENT,
        condition=at_least("comment_streak_days", 3),
        label="Comment Streak: 3 Days",
        description="You've commented for 3 days in a row!",
        icon="\U0001f525",  # 🔥
    ),
    AchievementRule(
        slug="comment-10",
        trigger=AchievementTrigger.ON_COMMENT,
        condition=at_least("total_comments", 10),
        label="Commenter",
        description="You've made 10 comments!",
        icon="\U0001f5e3️",  # 🗣️
    ),
    # Reports
    AchievementRule(
        slug="first-report",
        trigger=AchievementTrigger.ON_REPORT_CREATE,
        condition=at_least("total_reports", 1),
        label="First Report!",
        description="You've created your first report!",
        icon="\U0001f4dd",  # 📝
    ),
    AchievementRule(
        slug="report-streak-5",
        trigger=AchievementTrigger.ON_REPORT_CREATE,
        condition=at_least("report_streak_days", 5),
        label="Report Streak: 5 Days",
        description="You've created reports for 5 days in a row!",
        icon="\U0001f4ca",  # 📊
    ),
    # Mentions
    AchievementRule(
        slug="first-mention",
        trigger=AchievementTrigger.ON_MENTION,
        condition=at_least("mentions_received", 1),
        label="First Mention",
        description="Someone mentioned you for the first time!",
        icon="\U0001f44b",  # 👋
    ),
    AchievementRule(
        slug="popular-5-mentions",
        trigger=AchievementTrigger.ON_MENTION,
        condition=at_least("mentions_received", 5),
        label="Popular",
        description="You've been mentioned 5 times!",
        icon="\u2b50",  # ⭐
    ),
    # Streaks
    AchievementRule(
        slug="weekly-streak-4",
        trigger=AchievementTrigger.ON_STREAK,
        condition=at_least("weekly_activity_streak", 4),
        label="Weekly Warrior",
        description="You've used the app for 4 weeks in a row!",
        icon="\U0001f4c5",  # 📅
    ),
)


class RuleCatalog:
    """Immutable, validated index over a sequence of rules.

    Rules keep their insertion order within each trigger so evaluation
    results are reproducible.
    """

    def __init__(self, rules: Iterable[AchievementRule]) -> None:
        self._rules: tuple[AchievementRule, ...] = tuple(rules)
        by_slug: dict[str, AchievementRule] = {}
        by_trigger: dict[AchievementTrigger, list[AchievementRule]] = {
            trigger: [] for trigger in AchievementTrigger
        }

        for rule in self._rules:
            if not isinstance(rule.trigger, AchievementTrigger):
                raise ValueError(
                    f"Rule {rule.slug!r} has untyped trigger {rule.trigger!r}"
                )
            if rule.slug in by_slug:
                raise ValueError(f"Duplicate achievement slug: {rule.slug!r}")
            by_slug[rule.slug] = rule
            by_trigger[rule.trigger].append(rule)

        self._by_slug = by_slug
        self._by_trigger = {k: tuple(v) for k, v in by_trigger.items()}

    def rules_for(self, trigger: AchievementTrigger | str) -> tuple[AchievementRule, ...]:
        """Rules bound to *trigger*, in catalog order."""
        return self._by_trigger[parse_trigger(trigger)]

    def get(self, slug: str) -> AchievementRule | None:
        return self._by_slug.get(slug)

    def __iter__(self) -> Iterator[AchievementRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


DEFAULT_CATALOG = RuleCatalog(ACHIEVEMENT_RULES)


def get_rules_by_trigger(
    trigger: AchievementTrigger | str, catalog: RuleCatalog | None = None,
) -> list[AchievementRule]:
    """Rules whose trigger matches, in insertion order.

    Raises :class:`~xpcore.exceptions.InvalidTrigger` for unknown names.
    """
    catalog = catalog if catalog is not None else DEFAULT_CATALOG
    return list(catalog.rules_for(trigger))


def get_rule_by_slug(slug: str, catalog: RuleCatalog | None = None) -> AchievementRule | None:
    catalog = catalog if catalog is not None else DEFAULT_CATALOG
    return catalog.get(slug)


# ---------------------------------------------------------------------------
# Pure evaluation
# ---------------------------------------------------------------------------
def evaluate_rules(
    rules: Iterable[AchievementRule],
    context: TriggerContext,
    already_unlocked: set[str],
) -> list[AchievementRule]:
    """Return the rules not yet unlocked whose condition holds for *context*.

    A condition that raises is logged and counts as "not met"; the
    remaining rules are still evaluated.
    """
    met: list[AchievementRule] = []
    for rule in rules:
        if rule.slug in already_unlocked:
            logger.debug("Achievement %r already unlocked, skipping", rule.slug)
            continue
        try:
            ok = bool(rule.condition(context))
        except Exception:
            logger.exception("Error evaluating condition for achievement %r", rule.slug)
            continue
        if ok:
            met.append(rule)
        else:
            logger.debug("Condition not met for achievement %r", rule.slug)
    return met


# ---------------------------------------------------------------------------
# Detail resolver: presentation lookup
# ---------------------------------------------------------------------------
def get_achievement_details(
    slugs: Iterable[str], catalog: RuleCatalog | None = None,
) -> list[AchievementDetails]:
    """Map unlocked slugs to display metadata.

    Unknown slugs are omitted and logged; input order is preserved.
    """
    catalog = catalog if catalog is not None else DEFAULT_CATALOG
    details: list[AchievementDetails] = []
    for slug in slugs:
        rule = catalog.get(slug)
        if rule is None:
            logger.warning("No rule found for unlocked slug: %s", slug)
            continue
        details.append(AchievementDetails(
            slug=rule.slug,
            label=rule.label,
            description=rule.description,
            icon=rule.icon,
        ))
    return details
