"""
Kind registry.

Maps condition and action kinds to their descriptors. Each engine owns its
own registry; extensions add kinds by registering provider functions rather
than by touching module-level state.
"""

from typing import Dict, List, Optional

from ticketfilter.domain.actions import builtin_action_types
from ticketfilter.domain.catalog import (
    ActionProvider,
    ActionType,
    ConditionProvider,
    ConditionType,
    Translator,
    identity,
)
from ticketfilter.domain.conditions import builtin_condition_types


class KindRegistry:
    """
    Registry of condition and action kinds.

    Providers are called with a translator and return descriptors; later
    providers cannot replace a kind that is already registered.

    Example:
        >>> registry = KindRegistry()
        >>> registry.register_condition_provider(my_provider)
        >>> registry.condition_type("TicketIsVip").name
        'Ticket is VIP'
    """

    def __init__(self, include_builtins: bool = True):
        self._condition_providers: List[ConditionProvider] = []
        self._action_providers: List[ActionProvider] = []
        self._conditions: Dict[str, ConditionType] = {}
        self._actions: Dict[str, ActionType] = {}

        if include_builtins:
            self.register_condition_provider(builtin_condition_types)
            self.register_action_provider(builtin_action_types)

    def register_condition_provider(self, provider: ConditionProvider) -> None:
        """Add a source of condition kinds."""
        self._condition_providers.append(provider)
        for condition_type in provider(identity):
            self._conditions.setdefault(condition_type.kind, condition_type)

    def register_action_provider(self, provider: ActionProvider) -> None:
        """Add a source of action kinds."""
        self._action_providers.append(provider)
        for action_type in provider(identity):
            self._actions.setdefault(action_type.kind, action_type)

    def condition_type(self, kind: str) -> Optional[ConditionType]:
        return self._conditions.get(kind)

    def action_type(self, kind: str) -> Optional[ActionType]:
        return self._actions.get(kind)

    def condition_types(self, translate: Translator = identity) -> List[ConditionType]:
        """All condition kinds, display names translated, in provider order."""
        return self._collect(self._condition_providers, translate)

    def action_types(self, translate: Translator = identity) -> List[ActionType]:
        """All action kinds, display names translated, in provider order."""
        return self._collect(self._action_providers, translate)

    @staticmethod
    def _collect(providers, translate: Translator) -> list:
        seen = set()
        result = []
        for provider in providers:
            for descriptor in provider(translate):
                if descriptor.kind in seen:
                    continue
                seen.add(descriptor.kind)
                result.append(descriptor)
        return result


def build_default_registry() -> KindRegistry:
    """Registry with the built-in kinds only."""
    return KindRegistry()
