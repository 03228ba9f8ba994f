"""Role registry.

Resolves role references and flattens role inheritance into ordered
rule lists.
"""

import logging
from collections.abc import Iterable

from warden.authz.models import Role, RoleRef, Rule
from warden.errors import ConfigurationError, RoleCycleError, UnknownRoleError

logger = logging.getLogger(__name__)


class RoleRegistry:
    """Registry of named roles.

    The effective rules of every registered role are computed when the
    registry is built, so a broken role graph (unknown reference, cycle)
    fails at startup, and the cache is read-only afterwards.

    Usage:
        registry = RoleRegistry([reader, editor])
        rules = registry.effective_rules(registry.resolve("editor"))
    """

    def __init__(self, roles: Iterable[Role] = ()):
        self._roles: dict[str, Role] = {}
        for role in roles:
            if role.name in self._roles:
                raise ConfigurationError(
                    f"Duplicate role '{role.name}'", "duplicate_role"
                )
            self._roles[role.name] = role

        self._effective: dict[str, tuple[Rule, ...]] = {}
        for name, role in self._roles.items():
            self._effective[name] = self._flatten(role, frozenset())

        logger.info("RoleRegistry initialized with %d roles", len(self._roles))

    def names(self) -> list[str]:
        """Registered role names, in declaration order."""
        return list(self._roles)

    def get(self, name: str) -> Role | None:
        return self._roles.get(name)

    def resolve(self, ref: RoleRef) -> Role:
        """Turn a role reference into a Role.

        Raises:
            UnknownRoleError: If a name has no registered role
        """
        if isinstance(ref, Role):
            return ref

        role = self._roles.get(ref)
        if role is None:
            raise UnknownRoleError(ref)
        return role

    def effective_rules(self, role: RoleRef, seen: frozenset[str] | None = None) -> tuple[Rule, ...]:
        """Get a role's rules including everything it extends.

        Order: each extended role's effective rules in declaration order,
        then the role's own rules.

        Args:
            role: Role or role name
            seen: Role names on the current inheritance path

        Raises:
            UnknownRoleError: If any reference cannot be resolved
            RoleCycleError: If a role inherits from itself
        """
        role = self.resolve(role)
        if not seen and role.name in self._effective and self._roles[role.name] is role:
            return self._effective[role.name]
        return self._flatten(role, seen or frozenset(), tuple(sorted(seen or ())))

    def _flatten(self, role: Role, seen: frozenset[str], path: tuple[str, ...] = ()) -> tuple[Rule, ...]:
        path = path + (role.name,)
        if role.name in seen:
            raise RoleCycleError(list(path))
        seen = seen | {role.name}

        rules: list[Rule] = []
        for ref in role.extends:
            rules.extend(self._flatten(self.resolve(ref), seen, path))
        rules.extend(role.rules)
        return tuple(rules)
