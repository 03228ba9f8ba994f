"""Authorization data models.

Defines rules, roles, and the principals that carry them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

# Wildcards, named as in CASL rule sets
ANY_ACTION = "manage"
ANY_SUBJECT = "all"


class ConditionOperator(str, Enum):
    """Operators for rule conditions."""

    EQUALS = "eq"
    NOT_EQUALS = "ne"
    IN = "in"
    NOT_IN = "nin"
    GREATER_THAN = "gt"
    GREATER_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_OR_EQUAL = "lte"


_OPERATOR_NAMES = {op.value for op in ConditionOperator}
_MISSING_ATTRIBUTE = object()


def _lookup(data: Any, path: str) -> Any:
    current = data
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return _MISSING_ATTRIBUTE
            current = current[part]
        elif hasattr(current, part):
            current = getattr(current, part)
        else:
            return _MISSING_ATTRIBUTE
    return current


class Condition(BaseModel):
    """A single comparison against subject data.

    Evaluates: {attribute} {operator} {value}

    Examples:
    - authorId == 42
    - status in ["draft", "review"]
    - pages <= 100
    """

    model_config = ConfigDict(frozen=True)

    attribute: str = Field(min_length=1, description="Dot path into subject data")
    operator: ConditionOperator = Field(default=ConditionOperator.EQUALS)
    value: Any = Field(description="Value to compare against")

    @field_validator("value")
    @classmethod
    def freeze_collections(cls, value: Any, info: ValidationInfo) -> Any:
        if info.data.get("operator") in (ConditionOperator.IN, ConditionOperator.NOT_IN):
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                raise ValueError("'in' and 'nin' conditions need a list of values")
            return tuple(value)
        return value

    def evaluate(self, data: Mapping[str, Any]) -> bool:
        """Evaluate the condition against subject data."""
        current = _lookup(data, self.attribute)
        if current is _MISSING_ATTRIBUTE:
            return False

        try:
            if self.operator == ConditionOperator.EQUALS:
                return current == self.value
            elif self.operator == ConditionOperator.NOT_EQUALS:
                return current != self.value
            elif self.operator == ConditionOperator.IN:
                return current in self.value
            elif self.operator == ConditionOperator.NOT_IN:
                return current not in self.value
            elif self.operator == ConditionOperator.GREATER_THAN:
                return current > self.value
            elif self.operator == ConditionOperator.GREATER_OR_EQUAL:
                return current >= self.value
            elif self.operator == ConditionOperator.LESS_THAN:
                return current < self.value
            elif self.operator == ConditionOperator.LESS_OR_EQUAL:
                return current <= self.value
        except TypeError:
            # e.g. "abc" > 3
            return False

        return False


def _string_set(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(value)


def _parse_conditions(raw: Any) -> Any:
    """Expand ``{"path": value | {"$op": value}}`` into condition dicts."""
    if raw is None:
        return ()
    if not isinstance(raw, Mapping):
        return raw

    parsed = []
    for attribute, matcher in raw.items():
        is_operator_map = isinstance(matcher, Mapping) and matcher and all(
            isinstance(key, str) and key.startswith("$") for key in matcher
        )
        if not is_operator_map:
            parsed.append({"attribute": attribute, "operator": "eq", "value": matcher})
            continue

        for key, value in matcher.items():
            name = key[1:]
            if name not in _OPERATOR_NAMES:
                raise ValueError(f"Unsupported condition operator '{key}' on '{attribute}'")
            parsed.append({"attribute": attribute, "operator": name, "value": value})
    return parsed


class Rule(BaseModel):
    """One allow/deny statement over actions x subject types.

    Raw input uses the CASL rule shape::

        {"action": "update", "subject": "Article",
         "conditions": {"authorId": 42}, "inverted": False}

    An omitted action list means any action, an omitted subject list means
    any subject type.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    actions: frozenset[str] = Field(
        default=frozenset({ANY_ACTION}),
        validation_alias=AliasChoices("actions", "action"),
    )
    subjects: frozenset[str] = Field(
        default=frozenset({ANY_SUBJECT}),
        validation_alias=AliasChoices("subjects", "subject"),
    )
    fields: frozenset[str] | None = None
    conditions: tuple[Condition, ...] = ()
    inverted: bool = False
    reason: str | None = None

    @field_validator("actions", mode="before")
    @classmethod
    def normalize_actions(cls, value: Any) -> frozenset[str]:
        return _string_set(value) or frozenset({ANY_ACTION})

    @field_validator("subjects", mode="before")
    @classmethod
    def normalize_subjects(cls, value: Any) -> frozenset[str]:
        return _string_set(value) or frozenset({ANY_SUBJECT})

    @field_validator("fields", mode="before")
    @classmethod
    def normalize_fields(cls, value: Any) -> frozenset[str] | None:
        return _string_set(value) or None

    @field_validator("conditions", mode="before")
    @classmethod
    def normalize_conditions(cls, value: Any) -> Any:
        return _parse_conditions(value)

    @classmethod
    def allow(
        cls,
        action: str | Iterable[str] | None = None,
        subject: str | Iterable[str] | None = None,
        **kwargs: Any,
    ) -> "Rule":
        """Build a granting rule."""
        return cls(actions=action, subjects=subject, **kwargs)

    @classmethod
    def deny(
        cls,
        action: str | Iterable[str] | None = None,
        subject: str | Iterable[str] | None = None,
        **kwargs: Any,
    ) -> "Rule":
        """Build an inverted (denying) rule."""
        return cls(actions=action, subjects=subject, inverted=True, **kwargs)

    def matches_action(self, action: str) -> bool:
        return ANY_ACTION in self.actions or action in self.actions

    def matches_subject(self, subject_type: str) -> bool:
        return ANY_SUBJECT in self.subjects or subject_type in self.subjects

    def matches_field(self, field: str | None) -> bool:
        """Check the field restriction.

        Without a queried field, a granting rule limited to some fields still
        applies (something on the subject is allowed), while a denying rule
        limited to some fields does not (the rest of the subject is not
        denied).
        """
        if self.fields is None:
            return True
        if field is None:
            return not self.inverted
        return field in self.fields

    def matches_conditions(self, subject_data: Mapping[str, Any]) -> bool:
        return all(condition.evaluate(subject_data) for condition in self.conditions)

    def matches(
        self,
        action: str,
        subject_type: str,
        subject_data: Mapping[str, Any],
        field: str | None = None,
    ) -> bool:
        """Check whether this rule applies to the query."""
        return (
            self.matches_action(action)
            and self.matches_subject(subject_type)
            and self.matches_field(field)
            and self.matches_conditions(subject_data)
        )


def _none_to_empty(value: Any) -> Any:
    return () if value is None else value


class Role(BaseModel):
    """A named bundle of rules, optionally extending other roles.

    Extended roles are given by name (looked up in the role registry) or
    as inline definitions.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1, description="Unique role name")
    description: str = Field(default="", description="Role description")
    extends: tuple[Union[str, Role], ...] = Field(
        default=(),
        description="Roles whose rules come before this role's own",
    )
    rules: tuple[Rule, ...] = Field(
        default=(),
        validation_alias=AliasChoices("rules", "authorizations"),
    )

    @field_validator("extends", "rules", mode="before")
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return _none_to_empty(value)


RoleRef = Union[str, Role]


class Authorizable(BaseModel):
    """Anything that can act as a principal: holds roles and own rules."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    roles: tuple[RoleRef, ...] = Field(default=())
    rules: tuple[Rule, ...] = Field(
        default=(),
        validation_alias=AliasChoices("rules", "authorizations"),
    )

    @field_validator("roles", "rules", mode="before")
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return _none_to_empty(value)


class User(Authorizable):
    """A user with a login and a stored (hashed) secret."""

    login: str = Field(min_length=1)
    secret: str = Field(
        repr=False,
        validation_alias=AliasChoices("secret", "password"),
    )

    def public(self) -> AuthenticatedUser:
        """Return this user with the secret stripped."""
        return AuthenticatedUser(login=self.login, roles=self.roles, rules=self.rules)


class AuthenticatedUser(Authorizable):
    """A verified user, as returned by authentication. Carries no secret."""

    login: str


class Guest(Authorizable):
    """The unauthenticated principal. Has no identity."""


class _Missing:
    """Sentinel for 'no principal supplied at all' (distinct from guest)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

PrincipalRef = Union[str, None, Authorizable]


class AuthzDecision(BaseModel):
    """Result of an authorization decision."""

    allowed: bool = Field(description="Whether access is allowed")
    action: str = Field(description="Action that was checked")
    subject_type: str = Field(description="Subject type that was checked")
    field: str | None = Field(default=None, description="Field that was checked")
    reason: str = Field(default="", description="Explanation of decision")
    matched_rule: Rule | None = Field(
        default=None,
        description="Last matching rule, which decided the outcome",
    )
    evaluated_rules: int = Field(default=0, description="Number of rules considered")
