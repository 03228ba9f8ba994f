"""Login/secret authentication against configured users."""

import logging
from collections.abc import Mapping
from typing import Any, Literal

from warden.auth.verifier import CredentialVerifier
from warden.authz.models import AuthenticatedUser
from warden.authz.resolver import PrincipalResolver
from warden.errors import AuthenticationError

logger = logging.getLogger(__name__)


class Authenticator:
    """Check credentials without revealing which logins exist.

    The verifier runs exactly once per attempt, whether or not the login is
    known, so response time does not tell the two cases apart.
    """

    def __init__(
        self,
        resolver: PrincipalResolver,
        verifier: CredentialVerifier,
        options: Mapping[str, Any] | None = None,
    ):
        self.resolver = resolver
        self.verifier = verifier
        self.options = dict(options or {})

    async def authenticate(self, login: str, secret: str) -> AuthenticatedUser | Literal[False]:
        """Authenticate a login.

        Returns:
            The user without its secret, or False for bad credentials
        """
        user = self.resolver.find_user(login)

        if user is None:
            await self.verifier.verify("", self.verifier.placeholder_secret, self.options)
        elif await self.verifier.verify(secret, user.secret, self.options):
            logger.debug("Authenticated login=%s", login)
            return user.public()

        logger.info("Authentication failed for login=%s", login)
        return False

    async def ensure_authentication(self, login: str, secret: str) -> AuthenticatedUser:
        """Authenticate a login or raise.

        Raises:
            AuthenticationError: If the credentials do not verify
        """
        user = await self.authenticate(login, secret)
        if user is False:
            raise AuthenticationError()
        return user
