"""FastAPI authentication middleware.

Authenticates HTTP Basic credentials through Warden and injects the
principal into request.state.
"""

import base64
import binascii
import logging
from typing import Any, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from warden.authz.models import MISSING
from warden.errors import AuthenticationError

logger = logging.getLogger(__name__)


def parse_basic_credentials(header: str) -> tuple[str, str]:
    """Split an ``Authorization: Basic ...`` header into login and secret.

    Raises:
        AuthenticationError: If the header is not well-formed Basic auth
    """
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        raise AuthenticationError("Unsupported authorization scheme", "invalid_scheme")

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise AuthenticationError("Malformed credentials", "malformed_credentials") from None

    login, sep, secret = decoded.partition(":")
    if not sep or not login:
        raise AuthenticationError("Malformed credentials", "malformed_credentials")
    return login, secret


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware for Basic authentication.

    - Valid credentials: request.state.principal = AuthenticatedUser
    - No Authorization header: request.state.principal = None (guest)
    - Bad credentials: 401, the endpoint is not called
    - Excluded paths: nothing is set, so the principal stays MISSING

    Usage:
        app.add_middleware(BasicAuthMiddleware, warden=warden)

    Then in endpoints:
        @app.get("/articles", dependencies=[Depends(require_authorization(warden, "read", "Article"))])
        async def list_articles(): ...
    """

    def __init__(
        self,
        app,
        warden: Any,
        exclude_paths: list[str] | None = None,
        exclude_prefixes: list[str] | None = None,
    ):
        """Initialize auth middleware.

        Args:
            app: FastAPI application
            warden: Warden instance used to authenticate
            exclude_paths: Exact paths to skip auth (e.g., ["/health"])
            exclude_prefixes: Path prefixes to skip (e.g., ["/public/"])
        """
        super().__init__(app)
        self.warden = warden
        self.exclude_paths = set(exclude_paths or [])
        self.exclude_prefixes = tuple(exclude_prefixes or [])

    def should_skip_auth(self, path: str) -> bool:
        """Check if path should skip authentication."""
        if path in self.exclude_paths:
            return True
        return bool(self.exclude_prefixes) and path.startswith(self.exclude_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through authentication."""
        path = request.url.path

        if self.should_skip_auth(path):
            return await call_next(request)

        header = request.headers.get("Authorization")
        if not header:
            request.state.principal = None
            return await call_next(request)

        try:
            login, secret = parse_basic_credentials(header)
            user = await self.warden.ensure_authentication(login, secret)
        except AuthenticationError as e:
            logger.warning("Authentication failed for path %s: %s", path, e.code)
            return JSONResponse(
                status_code=401,
                content={
                    "error": "authentication_failed",
                    "message": e.message,
                    "code": e.code,
                },
                headers={"WWW-Authenticate": 'Basic realm="warden"'},
            )

        request.state.principal = user
        response = await call_next(request)
        response.headers["X-Auth-User"] = user.login
        return response


def get_request_principal(request: Request) -> Any:
    """FastAPI dependency returning the request principal, or MISSING.

    MISSING means no middleware ran for this request; authorization
    rejects it as a configuration error instead of treating it as guest.
    """
    return getattr(request.state, "principal", MISSING)
