"""Ability evaluation.

Decides a query against an ordered rule set.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from warden.authz.models import AuthzDecision, Rule

logger = logging.getLogger(__name__)


class AbilityEvaluator:
    """Evaluate rules with last-match-wins semantics.

    Evaluation:
    1. Scan the rules from the end towards the start
    2. The first rule that matches (the last one in declaration order)
       decides: granting rule -> allowed, inverted rule -> denied
    3. No matching rule -> denied

    Evaluation never raises and has no side effects besides logging.

    Usage:
        evaluator = AbilityEvaluator()
        if evaluator.can(rules, "update", "Article", {"authorId": 42}):
            # Allowed
            pass
    """

    def __init__(self, decision_log_level: int = logging.DEBUG):
        self.decision_log_level = decision_log_level

    def decide(
        self,
        rules: Sequence[Rule],
        action: str,
        subject_type: str,
        subject_data: Mapping[str, Any] | None = None,
        field: str | None = None,
    ) -> AuthzDecision:
        """Evaluate a query and explain the outcome.

        Args:
            rules: Aggregated rules, in precedence order (later wins)
            action: Action to check
            subject_type: Subject type to check
            subject_data: Attributes of the subject instance
            field: Optional field of the subject

        Returns:
            AuthzDecision with result and the deciding rule
        """
        data = subject_data if subject_data is not None else {}
        evaluated = 0

        for rule in reversed(rules):
            evaluated += 1
            if not rule.matches(action, subject_type, data, field):
                continue

            allowed = not rule.inverted
            logger.log(
                self.decision_log_level,
                "Access %s by rule %d of %d: action=%s subject=%s",
                "ALLOWED" if allowed else "DENIED",
                len(rules) - evaluated + 1, len(rules), action, subject_type,
            )
            if allowed:
                reason = rule.reason or "Granted by rule"
            else:
                reason = rule.reason or "Denied by inverted rule"
            return AuthzDecision(
                allowed=allowed,
                action=action,
                subject_type=subject_type,
                field=field,
                reason=reason,
                matched_rule=rule,
                evaluated_rules=evaluated,
            )

        logger.log(
            self.decision_log_level,
            "Access DENIED (default): action=%s subject=%s",
            action, subject_type,
        )
        return AuthzDecision(
            allowed=False,
            action=action,
            subject_type=subject_type,
            field=field,
            reason="No rule grants this action",
            evaluated_rules=evaluated,
        )

    def can(
        self,
        rules: Sequence[Rule],
        action: str,
        subject_type: str,
        subject_data: Mapping[str, Any] | None = None,
        field: str | None = None,
    ) -> bool:
        """Check whether the rules allow the action on the subject."""
        return self.decide(rules, action, subject_type, subject_data, field).allowed

    def cannot(
        self,
        rules: Sequence[Rule],
        action: str,
        subject_type: str,
        subject_data: Mapping[str, Any] | None = None,
        field: str | None = None,
    ) -> bool:
        return not self.can(rules, action, subject_type, subject_data, field)
