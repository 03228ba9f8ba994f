"""Principal resolution.

Maps what a caller passes as "who is asking" onto a concrete principal.
"""

import logging
from collections.abc import Iterable
from typing import Any

from warden.authz.models import MISSING, Authorizable, Guest, User
from warden.errors import ConfigurationError, UserNotFoundError

logger = logging.getLogger(__name__)


class PrincipalResolver:
    """Resolve principal references.

    - Authorizable (User, AuthenticatedUser, Guest, ...): used as is
    - str: login of a configured user
    - None: the configured guest
    - MISSING or anything else: configuration error, never the guest
    """

    def __init__(self, users: Iterable[User] = (), guest: Guest | None = None):
        self._users: dict[str, User] = {}
        for user in users:
            if user.login in self._users:
                raise ConfigurationError(
                    f"Duplicate login '{user.login}'", "duplicate_login"
                )
            self._users[user.login] = user
        self.guest = guest or Guest()

    def find_user(self, login: str) -> User | None:
        return self._users.get(login)

    def resolve(self, principal: Any = MISSING) -> Authorizable:
        """Resolve a principal reference.

        Raises:
            UserNotFoundError: If a login matches no user
            ConfigurationError: If no principal was supplied or its type is unsupported
        """
        if principal is MISSING:
            raise ConfigurationError(
                "Undefined principal is not allowed; pass None for guest access",
                "missing_principal",
            )
        if principal is None:
            return self.guest
        if isinstance(principal, str):
            user = self._users.get(principal)
            if user is None:
                logger.info("Authorization requested for unknown login")
                raise UserNotFoundError(principal)
            return user
        if isinstance(principal, Authorizable):
            return principal

        raise ConfigurationError(
            f"Unsupported principal type: {type(principal).__name__}",
            "invalid_principal",
        )
