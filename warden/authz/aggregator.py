"""Rule aggregation for a principal."""

from warden.authz.models import Authorizable, Rule
from warden.authz.registry import RoleRegistry


class RuleAggregator:
    """Collect a principal's rules in evaluation order.

    Rules from the principal's roles come first, in role declaration order,
    followed by the principal's own rules. Later rules win during
    evaluation, so own rules always have the final say.
    """

    def __init__(self, registry: RoleRegistry):
        self.registry = registry

    def aggregate(self, principal: Authorizable) -> tuple[Rule, ...]:
        """Get the ordered rule set for a principal.

        Raises:
            ConfigurationError: If a role reference cannot be resolved
        """
        rules: list[Rule] = []
        for ref in principal.roles:
            rules.extend(self.registry.effective_rules(ref))
        rules.extend(principal.rules)
        return tuple(rules)
