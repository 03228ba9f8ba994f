"""Warden.

In-process authentication and role/rule based authorization.

Usage:
    from warden import Warden, hash_secret

    warden = Warden({
        "roles": [{"name": "reader", "rules": [{"action": "read", "subject": "Article"}]}],
        "users": [{"login": "bob", "secret": hash_secret("pw"), "roles": ["reader"]}],
    })

    warden.is_authorized("bob", "read", "Article")   # True
    warden.is_authorized(None, "read", "Article")    # False, guest has no rules
"""

from warden.auth import CallableVerifier, CredentialVerifier, PBKDF2Verifier, hash_secret
from warden.authz import (
    MISSING,
    AbilityEvaluator,
    AuthenticatedUser,
    AuthzDecision,
    Guest,
    Role,
    Rule,
    User,
)
from warden.config import WardenSettings, configure_logging
from warden.errors import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    RoleCycleError,
    UnknownRoleError,
    UserNotFoundError,
    WardenError,
)
from warden.gate import Warden, WardenOptions

__all__ = [
    "MISSING",
    "AbilityEvaluator",
    "AuthenticatedUser",
    "AuthenticationError",
    "AuthorizationError",
    "AuthzDecision",
    "CallableVerifier",
    "ConfigurationError",
    "CredentialVerifier",
    "Guest",
    "PBKDF2Verifier",
    "Role",
    "RoleCycleError",
    "Rule",
    "UnknownRoleError",
    "User",
    "UserNotFoundError",
    "Warden",
    "WardenError",
    "WardenOptions",
    "WardenSettings",
    "configure_logging",
    "hash_secret",
]
