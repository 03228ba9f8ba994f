"""Warden facade.

Wires the registry, resolver, aggregator, evaluator and authenticator
together behind the public entry points.
"""

import logging
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from warden.auth.authenticator import Authenticator
from warden.auth.verifier import CredentialVerifier, PBKDF2Verifier
from warden.authz.aggregator import RuleAggregator
from warden.authz.engine import AbilityEvaluator
from warden.authz.models import (
    MISSING,
    AuthenticatedUser,
    AuthzDecision,
    Guest,
    Role,
    Rule,
    User,
)
from warden.authz.registry import RoleRegistry
from warden.authz.resolver import PrincipalResolver
from warden.config import WardenSettings, get_settings
from warden.errors import AuthorizationError, ConfigurationError

logger = logging.getLogger(__name__)


class WardenOptions(BaseModel):
    """Users, roles and guest handed in by the host application."""

    roles: list[Role] = Field(default_factory=list, description="Top-level named roles")
    users: list[User] = Field(default_factory=list, description="Users, unique by login")
    guest: Guest = Field(default_factory=Guest, description="Principal used for None")


class Warden:
    """Authentication and authorization entry points.

    Usage:
        warden = Warden({
            "roles": [{"name": "reader", "rules": [{"action": "read", "subject": "Article"}]}],
            "users": [{"login": "bob", "secret": hash_secret("pw"), "roles": ["reader"]}],
        })

        user = await warden.ensure_authentication("bob", "pw")
        warden.ensure_authorization(user, "read", "Article")
    """

    def __init__(
        self,
        options: WardenOptions | Mapping[str, Any],
        *,
        verifier: CredentialVerifier | None = None,
        settings: WardenSettings | None = None,
    ):
        """Build the engine.

        Raises:
            pydantic.ValidationError: If the options have the wrong shape
            ConfigurationError: On duplicate roles or logins, unknown role
                references or inheritance cycles among the roles
        """
        if not isinstance(options, WardenOptions):
            options = WardenOptions.model_validate(options)
        self.settings = settings or get_settings()

        self.registry = RoleRegistry(options.roles)
        self.resolver = PrincipalResolver(options.users, options.guest)
        self.aggregator = RuleAggregator(self.registry)
        self.evaluator = AbilityEvaluator(self.settings.decision_log_level)

        if verifier is None:
            verifier = PBKDF2Verifier(
                iterations=self.settings.pbkdf2_iterations,
                algorithm=self.settings.pbkdf2_algorithm,
            )
        self.authenticator = Authenticator(
            self.resolver, verifier, self.settings.verifier_options
        )

        logger.info(
            "Warden initialized: roles=%d users=%d",
            len(options.roles), len(options.users),
        )

    # Authentication

    async def authenticate(self, login: str, secret: str) -> AuthenticatedUser | Literal[False]:
        """Return the user (without secret) or False. Never raises for bad credentials."""
        return await self.authenticator.authenticate(login, secret)

    async def ensure_authentication(self, login: str, secret: str) -> AuthenticatedUser:
        """Return the user (without secret) or raise AuthenticationError."""
        return await self.authenticator.ensure_authentication(login, secret)

    # Authorization

    def rules_for(self, principal: Any = MISSING) -> tuple[Rule, ...]:
        """Get the aggregated rules of a principal reference."""
        try:
            return self.aggregator.aggregate(self.resolver.resolve(principal))
        except ConfigurationError as e:
            logger.error("Authorization configuration error (%s): %s", e.code, e.message)
            raise

    def explain(
        self,
        principal: Any,
        action: str,
        subject_type: str,
        subject_data: Mapping[str, Any] | None = None,
        field: str | None = None,
    ) -> AuthzDecision:
        """Evaluate a query and return the full decision."""
        rules = self.rules_for(principal)
        return self.evaluator.decide(rules, action, subject_type, subject_data, field)

    def is_authorized(
        self,
        principal: Any,
        action: str,
        subject_type: str,
        subject_data: Mapping[str, Any] | None = None,
        field: str | None = None,
    ) -> bool:
        """Check whether a principal may perform an action on a subject.

        Args:
            principal: Login, None for guest, or a principal object
            action: Action to check
            subject_type: Subject type to check
            subject_data: Attributes of the subject instance
            field: Optional field of the subject

        Raises:
            UserNotFoundError: If a login matches no user
            ConfigurationError: If the principal is MISSING or its roles are broken
        """
        return self.explain(principal, action, subject_type, subject_data, field).allowed

    def ensure_authorization(
        self,
        principal: Any,
        action: str,
        subject_type: str,
        subject_data: Mapping[str, Any] | None = None,
        field: str | None = None,
    ) -> Literal[True]:
        """Return True or raise AuthorizationError."""
        if not self.is_authorized(principal, action, subject_type, subject_data, field):
            raise AuthorizationError()
        return True
