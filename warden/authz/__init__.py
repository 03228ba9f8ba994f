"""Warden Authorization Package.

Role resolution and rule evaluation.

Usage:
    from warden.authz import AbilityEvaluator, Rule

    rules = [Rule.allow("read", "Article"), Rule.deny("read", "Article", conditions={"draft": True})]

    if AbilityEvaluator().can(rules, "read", "Article", {"draft": False}):
        # Allowed
        pass
"""

from warden.authz.models import (
    ANY_ACTION,
    ANY_SUBJECT,
    MISSING,
    AuthenticatedUser,
    Authorizable,
    AuthzDecision,
    Condition,
    ConditionOperator,
    Guest,
    PrincipalRef,
    Role,
    RoleRef,
    Rule,
    User,
)
from warden.authz.registry import RoleRegistry
from warden.authz.resolver import PrincipalResolver
from warden.authz.aggregator import RuleAggregator
from warden.authz.engine import AbilityEvaluator

__all__ = [
    "ANY_ACTION",
    "ANY_SUBJECT",
    "MISSING",
    "AuthenticatedUser",
    "Authorizable",
    "AuthzDecision",
    "Condition",
    "ConditionOperator",
    "Guest",
    "PrincipalRef",
    "Role",
    "RoleRef",
    "Rule",
    "User",
    "RoleRegistry",
    "PrincipalResolver",
    "RuleAggregator",
    "AbilityEvaluator",
]
