"""
xpcore.services.achievement_service — Achievement Evaluator
============================================================

Glues the pure rule catalog (:mod:`xpcore.engine.achievements`) to the
achievement ledger:

1. pick the rules bound to the trigger,
2. load the slugs the user already holds,
3. evaluate the remaining rules against the context (a raising rule is
   logged and skipped),
4. insert-if-absent each rule that passed,
5. return the slugs this call actually inserted.

Ledger failures propagate (:class:`AchievementLookupFailed`,
:class:`AchievementPersistFailed`) so callers can tell "nothing earned"
from "evaluation failed".  The host's primary action has already
committed by the time this runs and is never touched.
"""

from __future__ import annotations

import logging

from xpcore.engine.achievements import (
    DEFAULT_CATALOG,
    RuleCatalog,
    TriggerContext,
    evaluate_rules,
)
from xpcore.engine.events import AchievementTrigger, parse_trigger
from xpcore.services.ledger import AchievementLedger

logger = logging.getLogger(__name__)


class AchievementEvaluator:
    """Decides and records newly unlocked achievements."""

    def __init__(
        self, ledger: AchievementLedger, catalog: RuleCatalog | None = None,
    ) -> None:
        self._ledger = ledger
        self._catalog = catalog if catalog is not None else DEFAULT_CATALOG

    @property
    def catalog(self) -> RuleCatalog:
        return self._catalog

    def check_achievements(
        self,
        user_id: str,
        trigger: AchievementTrigger | str,
        context: TriggerContext,
    ) -> list[str]:
        """Return slugs newly unlocked for *user_id* by this call.

        Order follows the catalog.  Raises
        :class:`~xpcore.exceptions.InvalidTrigger` for an unknown trigger,
        and the ledger's errors when the ledger is unreachable.
        """
        trigger = parse_trigger(trigger)
        logger.debug(
            "Checking achievements for user %s (trigger=%s, context=%s)",
            user_id, trigger, sorted(context),
        )

        rules = self._catalog.rules_for(trigger)
        if not rules:
            logger.debug("No rules found for trigger %s", trigger)
            return []

        existing = self._ledger.find_slugs(user_id)
        met = evaluate_rules(rules, context, existing)

        unlocked: list[str] = []
        for rule in met:
            if self._ledger.insert_if_absent(user_id, rule.slug):
                unlocked.append(rule.slug)
                logger.info("Achievement unlocked: %s for user %s", rule.slug, user_id)

        return unlocked
