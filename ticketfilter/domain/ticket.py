"""
Host ticket boundary.

The ticketing system that owns tickets is external to the engine. This
module defines the snapshot the engine matches against, the event that
triggers evaluation, and the gateway actions use to change the ticket.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TriggerType(str, Enum):
    """Ticket lifecycle events that filter rules respond to."""
    CREATE = "Create"
    QUEUE_MOVE = "QueueMove"


class WatcherRole(str, Enum):
    """Ticket roles that actions can add or remove people from."""
    REQUESTOR = "Requestor"
    CC = "Cc"
    ADMIN_CC = "AdminCc"


@dataclass
class Ticket:
    """
    Snapshot of a host ticket.

    Queues, statuses and groups are the host's identifiers, carried as
    strings. custom_fields maps a custom field identifier to its values.
    """
    id: int
    queue: str
    subject: str = ""
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    attachments: List[str] = field(default_factory=list)
    priority: int = 0
    status: str = "new"
    requestors: List[str] = field(default_factory=list)
    recipients: List[str] = field(default_factory=list)
    cc: List[str] = field(default_factory=list)
    admin_cc: List[str] = field(default_factory=list)
    custom_fields: Dict[str, List[str]] = field(default_factory=dict)

    def watchers(self, role: WatcherRole) -> List[str]:
        if role == WatcherRole.REQUESTOR:
            return self.requestors
        if role == WatcherRole.CC:
            return self.cc
        return self.admin_cc


@dataclass(frozen=True)
class TicketEvent:
    """
    A transaction on a host ticket.

    Ticket creation arrives as transaction_type "Create"; a queue change
    arrives as transaction_type "Set" with field "Queue".
    """
    transaction_type: str
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None


@dataclass(frozen=True)
class EventContext:
    """What a condition is tested against for one evaluation."""
    trigger_type: TriggerType
    from_queue: Optional[str]
    to_queue: Optional[str]
    ticket: Ticket


@dataclass(frozen=True)
class TicketChange:
    """One change applied to a ticket by an action."""
    field: str
    old_value: Any
    new_value: Any


@dataclass(frozen=True)
class Notification:
    """A message queued for delivery by the host."""
    channel: str  # "reply", "email" or "group"
    recipient: Optional[str]
    subject: str
    body: str


class TicketGateway(ABC):
    """
    Operations actions perform against the host ticket.

    Host integrations subclass this; every method may raise, and the
    engine reports the failure for that action only.
    """

    @property
    @abstractmethod
    def ticket(self) -> Ticket:
        """Current state of the ticket, including earlier action effects."""

    @abstractmethod
    def set_subject(self, subject: str) -> None: ...

    @abstractmethod
    def set_priority(self, priority: int) -> None: ...

    @abstractmethod
    def set_status(self, status: str) -> None: ...

    @abstractmethod
    def set_queue(self, queue: str) -> None: ...

    @abstractmethod
    def set_custom_field(self, custom_field: str, value: str) -> None: ...

    @abstractmethod
    def add_watcher(self, role: WatcherRole, email: str) -> None: ...

    @abstractmethod
    def remove_watcher(self, role: WatcherRole, email: str) -> None: ...

    @abstractmethod
    def add_group_watcher(self, role: WatcherRole, group: str) -> None: ...

    @abstractmethod
    def reply(self, body: str) -> None: ...

    @abstractmethod
    def notify_email(self, email: str, body: str) -> None: ...

    @abstractmethod
    def notify_group(self, group: str, body: str) -> None: ...


class InMemoryTicketGateway(TicketGateway):
    """
    Gateway that applies changes to a Ticket snapshot and records them.

    Used by the HTTP API, which returns the recorded changes and outbox to
    the host system, and by tests.
    """

    def __init__(self, ticket: Ticket):
        self._ticket = ticket
        self.changes: List[TicketChange] = []
        self.outbox: List[Notification] = []

    @property
    def ticket(self) -> Ticket:
        return self._ticket

    def _change(self, name: str, new_value: Any) -> None:
        old_value = getattr(self._ticket, name)
        setattr(self._ticket, name, new_value)
        self.changes.append(TicketChange(name, old_value, new_value))

    def set_subject(self, subject: str) -> None:
        self._change("subject", subject)

    def set_priority(self, priority: int) -> None:
        self._change("priority", priority)

    def set_status(self, status: str) -> None:
        self._change("status", status)

    def set_queue(self, queue: str) -> None:
        self._change("queue", queue)

    def set_custom_field(self, custom_field: str, value: str) -> None:
        old_value = list(self._ticket.custom_fields.get(custom_field, []))
        self._ticket.custom_fields[custom_field] = [value]
        self.changes.append(TicketChange(f"custom_field:{custom_field}", old_value, [value]))

    def add_watcher(self, role: WatcherRole, email: str) -> None:
        watchers = self._ticket.watchers(role)
        if email.lower() in (w.lower() for w in watchers):
            return
        watchers.append(email)
        self.changes.append(TicketChange(role.value, None, email))

    def remove_watcher(self, role: WatcherRole, email: str) -> None:
        watchers = self._ticket.watchers(role)
        remaining = [w for w in watchers if w.lower() != email.lower()]
        if len(remaining) == len(watchers):
            return
        watchers[:] = remaining
        self.changes.append(TicketChange(role.value, email, None))

    def add_group_watcher(self, role: WatcherRole, group: str) -> None:
        self.changes.append(TicketChange(f"{role.value}Group", None, group))

    def _subject(self) -> str:
        return f"[#{self._ticket.id}] {self._ticket.subject}".strip()

    def reply(self, body: str) -> None:
        self.outbox.append(Notification("reply", None, self._subject(), body))

    def notify_email(self, email: str, body: str) -> None:
        self.outbox.append(Notification("email", email, self._subject(), body))

    def notify_group(self, group: str, body: str) -> None:
        self.outbox.append(Notification("group", group, self._subject(), body))
