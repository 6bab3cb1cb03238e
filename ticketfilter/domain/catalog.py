"""
Condition and action type descriptors.

A descriptor names a kind, says what value it takes and which triggers it
applies to, and carries the handler that implements it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Tuple

if TYPE_CHECKING:
    from ticketfilter.domain.actions import Action, ActionOutcome
    from ticketfilter.domain.conditions import Condition
    from ticketfilter.domain.ticket import EventContext, TicketGateway, TriggerType


class ValueType(str, Enum):
    """Type of parameter a condition or action expects."""
    NONE = "None"
    STRING = "String"
    INTEGER = "Integer"
    EMAIL = "Email"
    QUEUE = "Queue"
    STATUS = "Status"
    GROUP = "Group"
    HTML = "HTML"


Translator = Callable[[str], str]

ConditionTest = Callable[["EventContext", "Condition", str], bool]
ActionPerform = Callable[["TicketGateway", "Action"], "ActionOutcome"]


def identity(message: str) -> str:
    return message


@dataclass(frozen=True)
class ConditionType:
    """A kind of condition that rules can use."""
    kind: str
    name: str
    value_type: ValueType
    test: ConditionTest
    # Empty means the condition applies to every trigger type
    trigger_types: Tuple["TriggerType", ...] = ()

    @property
    def requires_custom_field(self) -> bool:
        return "CustomField" in self.kind

    def applies_to(self, trigger_type: "TriggerType") -> bool:
        return not self.trigger_types or trigger_type in self.trigger_types


@dataclass(frozen=True)
class ActionType:
    """A kind of action that rules can perform."""
    kind: str
    name: str
    value_type: ValueType
    perform: ActionPerform
    is_notification: bool = False
    requires_notify: bool = False

    @property
    def requires_custom_field(self) -> bool:
        return "CustomField" in self.kind


ConditionProvider = Callable[[Translator], Iterable[ConditionType]]
ActionProvider = Callable[[Translator], Iterable[ActionType]]
