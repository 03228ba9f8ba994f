"""Warden error taxonomy.

Three families of failure, each safe to map onto a different audience:

- AuthenticationError: credentials rejected. Generic by design of the
  message, it never says whether the login exists.
- AuthorizationError: the principal was denied, or a login reference
  did not resolve. No rule detail is carried.
- ConfigurationError: the integrator handed in a broken role/user graph.
  These must surface; they are never turned into allow or deny.
"""


class WardenError(Exception):
    """Base class for all Warden errors."""

    def __init__(self, message: str, code: str = "warden_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class AuthenticationError(WardenError):
    """Raised when credentials do not verify."""

    def __init__(self, message: str = "Invalid credentials", code: str = "invalid_credentials"):
        super().__init__(message, code)


class AuthorizationError(WardenError):
    """Raised when a principal is denied or cannot be found."""

    def __init__(self, message: str = "Access denied", code: str = "forbidden"):
        super().__init__(message, code)


class UserNotFoundError(AuthorizationError):
    """Raised when a login reference does not match any user."""

    def __init__(self, login: str):
        self.login = login
        super().__init__("User not found", "user_not_found")


class ConfigurationError(WardenError):
    """Raised for a malformed role/user graph or an undefined principal."""

    def __init__(self, message: str, code: str = "invalid_configuration"):
        super().__init__(message, code)


class UnknownRoleError(ConfigurationError):
    """Raised when a role name has no registered definition."""

    def __init__(self, name: str):
        self.role_name = name
        super().__init__(f"Unknown role '{name}'", "unknown_role")


class RoleCycleError(ConfigurationError):
    """Raised when a role inherits from itself, directly or transitively."""

    def __init__(self, path: list[str]):
        self.path = path
        super().__init__(
            "Role inheritance cycle: " + " -> ".join(path),
            "role_cycle",
        )
