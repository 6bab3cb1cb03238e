"""
Domain logic for filter rule evaluation.

Pure functions and value objects: conditions, actions, the kind registry,
rule matching, serialization and sort ordering. Nothing here touches the
database.
"""

from ticketfilter.domain.actions import Action, ActionKind, ActionOutcome, render_message
from ticketfilter.domain.catalog import ActionType, ConditionType, ValueType
from ticketfilter.domain.conditions import Condition, ConditionKind, ConditionResult, ValueCheck
from ticketfilter.domain.matching import RuleMatch, match_rule
from ticketfilter.domain.registry import KindRegistry, build_default_registry
from ticketfilter.domain.ticket import (
    EventContext,
    InMemoryTicketGateway,
    Notification,
    Ticket,
    TicketChange,
    TicketEvent,
    TicketGateway,
    TriggerType,
    WatcherRole,
)

__all__ = [
    "Action",
    "ActionKind",
    "ActionOutcome",
    "ActionType",
    "Condition",
    "ConditionKind",
    "ConditionResult",
    "ConditionType",
    "EventContext",
    "InMemoryTicketGateway",
    "KindRegistry",
    "Notification",
    "RuleMatch",
    "Ticket",
    "TicketChange",
    "TicketEvent",
    "TicketGateway",
    "TriggerType",
    "ValueCheck",
    "ValueType",
    "WatcherRole",
    "build_default_registry",
    "match_rule",
    "render_message",
]
