"""
Filter rule actions.

An action describes one effect on a ticket. Notification actions (replies
and messages) are performed after every other action so that the message
reflects the ticket's final state.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from ticketfilter.domain.catalog import ActionType, Translator, ValueType
from ticketfilter.domain.ticket import Ticket, TicketGateway, WatcherRole

if TYPE_CHECKING:
    from ticketfilter.domain.registry import KindRegistry


class ActionKind(str, Enum):
    """Built-in action kinds."""
    NO_OP = "NoOp"
    SUBJECT_PREFIX = "SubjectPrefix"
    SUBJECT_SUFFIX = "SubjectSuffix"
    SUBJECT_REMOVE_MATCH = "SubjectRemoveMatch"
    SUBJECT_SET = "SubjectSet"
    PRIORITY_SET = "PrioritySet"
    PRIORITY_ADD = "PriorityAdd"
    PRIORITY_SUBTRACT = "PrioritySubtract"
    STATUS_SET = "StatusSet"
    QUEUE_SET = "QueueSet"
    CUSTOM_FIELD_SET = "CustomFieldSet"
    REQUESTOR_ADD = "RequestorAdd"
    REQUESTOR_REMOVE = "RequestorRemove"
    CC_ADD = "CcAdd"
    CC_ADD_GROUP = "CcAddGroup"
    CC_REMOVE = "CcRemove"
    ADMIN_CC_ADD = "AdminCcAdd"
    ADMIN_CC_ADD_GROUP = "AdminCcAddGroup"
    ADMIN_CC_REMOVE = "AdminCcRemove"
    REPLY = "Reply"
    NOTIFY_EMAIL = "NotifyEmail"
    NOTIFY_GROUP = "NotifyGroup"


class ActionError(Exception):
    """Raised by an action handler that cannot carry out its action."""


@dataclass(frozen=True)
class Action:
    """An effect to apply to a ticket when its rule matches."""
    kind: str
    value: str = ""
    custom_field: Optional[str] = None
    notify: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", str(getattr(self.kind, "value", self.kind)))
        object.__setattr__(self, "value", "" if self.value is None else str(self.value))

    def is_notification(self, registry: "KindRegistry") -> bool:
        action_type = registry.action_type(self.kind)
        return action_type is not None and action_type.is_notification

    def perform(self, gateway: TicketGateway, registry: "KindRegistry") -> "ActionOutcome":
        """
        Perform this action against the ticket.

        Never raises: unknown kinds and handler errors produce a failed
        outcome.
        """
        action_type = registry.action_type(self.kind)
        if action_type is None:
            return ActionOutcome(self, False, f"Unknown action kind '{self.kind}'")
        try:
            return action_type.perform(gateway, self)
        except (ActionError, TemplateError) as e:
            return ActionOutcome(self, False, str(e))
        except Exception as e:
            return ActionOutcome(self, False, f"Internal error: {e}")


@dataclass(frozen=True)
class ActionOutcome:
    """Result of performing one action."""
    action: Action
    ok: bool
    message: str


# =============================================================================
# Message rendering
# =============================================================================

_message_env = SandboxedEnvironment(autoescape=True)


def render_message(template: str, ticket: Ticket) -> str:
    """
    Render a reply or notification body.

    The body is a Jinja2 template with the ticket in scope, e.g.
    "Ticket {{ ticket.id }} is now in {{ ticket.queue }}".
    """
    return _message_env.from_string(template).render(ticket=ticket)


# =============================================================================
# Built-in action handlers
# =============================================================================

def _require_int(action: Action) -> int:
    try:
        return int(action.value.strip())
    except ValueError:
        raise ActionError(f"{action.kind} needs an integer value, got '{action.value}'")


def _no_op(gateway: TicketGateway, action: Action) -> ActionOutcome:
    return ActionOutcome(action, True, "No action taken")


def _subject_prefix(gateway: TicketGateway, action: Action) -> ActionOutcome:
    subject = gateway.ticket.subject
    gateway.set_subject(f"{action.value} {subject}".strip())
    return ActionOutcome(action, True, "Subject prefixed")


def _subject_suffix(gateway: TicketGateway, action: Action) -> ActionOutcome:
    subject = gateway.ticket.subject
    gateway.set_subject(f"{subject} {action.value}".strip())
    return ActionOutcome(action, True, "Subject suffixed")


def _subject_remove_match(gateway: TicketGateway, action: Action) -> ActionOutcome:
    if not action.value:
        return ActionOutcome(action, True, "Nothing to remove")
    subject = gateway.ticket.subject
    stripped = re.sub(re.escape(action.value), "", subject, flags=re.IGNORECASE)
    stripped = " ".join(stripped.split())
    if stripped == subject:
        return ActionOutcome(action, True, "Subject unchanged")
    gateway.set_subject(stripped)
    return ActionOutcome(action, True, "Removed text from subject")


def _subject_set(gateway: TicketGateway, action: Action) -> ActionOutcome:
    gateway.set_subject(action.value)
    return ActionOutcome(action, True, "Subject set")


def _priority_set(gateway: TicketGateway, action: Action) -> ActionOutcome:
    gateway.set_priority(_require_int(action))
    return ActionOutcome(action, True, f"Priority set to {action.value}")


def _priority_add(gateway: TicketGateway, action: Action) -> ActionOutcome:
    priority = gateway.ticket.priority + _require_int(action)
    gateway.set_priority(priority)
    return ActionOutcome(action, True, f"Priority set to {priority}")


def _priority_subtract(gateway: TicketGateway, action: Action) -> ActionOutcome:
    priority = gateway.ticket.priority - _require_int(action)
    gateway.set_priority(priority)
    return ActionOutcome(action, True, f"Priority set to {priority}")


def _status_set(gateway: TicketGateway, action: Action) -> ActionOutcome:
    gateway.set_status(action.value)
    return ActionOutcome(action, True, f"Status set to {action.value}")


def _queue_set(gateway: TicketGateway, action: Action) -> ActionOutcome:
    if gateway.ticket.queue == action.value:
        return ActionOutcome(action, True, f"Already in queue {action.value}")
    gateway.set_queue(action.value)
    return ActionOutcome(action, True, f"Moved to queue {action.value}")


def _custom_field_set(gateway: TicketGateway, action: Action) -> ActionOutcome:
    if not action.custom_field:
        raise ActionError("No custom field selected")
    gateway.set_custom_field(action.custom_field, action.value)
    return ActionOutcome(action, True, f"Custom field {action.custom_field} set")


def _watcher_add(role: WatcherRole) -> Callable[[TicketGateway, Action], ActionOutcome]:
    def perform(gateway: TicketGateway, action: Action) -> ActionOutcome:
        gateway.add_watcher(role, action.value)
        return ActionOutcome(action, True, f"{action.value} added as {role.value}")
    return perform


def _watcher_remove(role: WatcherRole) -> Callable[[TicketGateway, Action], ActionOutcome]:
    def perform(gateway: TicketGateway, action: Action) -> ActionOutcome:
        gateway.remove_watcher(role, action.value)
        return ActionOutcome(action, True, f"{action.value} removed as {role.value}")
    return perform


def _group_watcher_add(role: WatcherRole) -> Callable[[TicketGateway, Action], ActionOutcome]:
    def perform(gateway: TicketGateway, action: Action) -> ActionOutcome:
        gateway.add_group_watcher(role, action.value)
        return ActionOutcome(action, True, f"Group {action.value} added as {role.value}")
    return perform


def _reply(gateway: TicketGateway, action: Action) -> ActionOutcome:
    gateway.reply(render_message(action.value, gateway.ticket))
    return ActionOutcome(action, True, "Reply sent")


def _notify_email(gateway: TicketGateway, action: Action) -> ActionOutcome:
    if not action.notify:
        raise ActionError("No email address to notify")
    gateway.notify_email(action.notify, render_message(action.value, gateway.ticket))
    return ActionOutcome(action, True, f"Notification sent to {action.notify}")


def _notify_group(gateway: TicketGateway, action: Action) -> ActionOutcome:
    if not action.notify:
        raise ActionError("No group to notify")
    gateway.notify_group(action.notify, render_message(action.value, gateway.ticket))
    return ActionOutcome(action, True, f"Notification sent to group {action.notify}")


def builtin_action_types(translate: Translator) -> List[ActionType]:
    """Provider for the built-in action kinds."""
    _ = translate

    return [
        ActionType(ActionKind.NO_OP.value, _("Take no action"), ValueType.NONE, _no_op),
        ActionType(ActionKind.SUBJECT_PREFIX.value, _("Add prefix to subject"),
                   ValueType.STRING, _subject_prefix),
        ActionType(ActionKind.SUBJECT_SUFFIX.value, _("Add suffix to subject"),
                   ValueType.STRING, _subject_suffix),
        ActionType(ActionKind.SUBJECT_REMOVE_MATCH.value, _("Remove string from subject"),
                   ValueType.STRING, _subject_remove_match),
        ActionType(ActionKind.SUBJECT_SET.value, _("Replace subject"),
                   ValueType.STRING, _subject_set),
        ActionType(ActionKind.PRIORITY_SET.value, _("Set priority"),
                   ValueType.INTEGER, _priority_set),
        ActionType(ActionKind.PRIORITY_ADD.value, _("Add to priority"),
                   ValueType.INTEGER, _priority_add),
        ActionType(ActionKind.PRIORITY_SUBTRACT.value, _("Subtract from priority"),
                   ValueType.INTEGER, _priority_subtract),
        ActionType(ActionKind.STATUS_SET.value, _("Set status"),
                   ValueType.STATUS, _status_set),
        ActionType(ActionKind.QUEUE_SET.value, _("Move to queue"),
                   ValueType.QUEUE, _queue_set),
        ActionType(ActionKind.CUSTOM_FIELD_SET.value, _("Set custom field value"),
                   ValueType.STRING, _custom_field_set),
        ActionType(ActionKind.REQUESTOR_ADD.value, _("Add requestor"),
                   ValueType.EMAIL, _watcher_add(WatcherRole.REQUESTOR)),
        ActionType(ActionKind.REQUESTOR_REMOVE.value, _("Remove requestor"),
                   ValueType.EMAIL, _watcher_remove(WatcherRole.REQUESTOR)),
        ActionType(ActionKind.CC_ADD.value, _("Add CC"),
                   ValueType.EMAIL, _watcher_add(WatcherRole.CC)),
        ActionType(ActionKind.CC_ADD_GROUP.value, _("Add group as a CC"),
                   ValueType.GROUP, _group_watcher_add(WatcherRole.CC)),
        ActionType(ActionKind.CC_REMOVE.value, _("Remove CC"),
                   ValueType.EMAIL, _watcher_remove(WatcherRole.CC)),
        ActionType(ActionKind.ADMIN_CC_ADD.value, _("Add AdminCC"),
                   ValueType.EMAIL, _watcher_add(WatcherRole.ADMIN_CC)),
        ActionType(ActionKind.ADMIN_CC_ADD_GROUP.value, _("Add group as an AdminCC"),
                   ValueType.GROUP, _group_watcher_add(WatcherRole.ADMIN_CC)),
        ActionType(ActionKind.ADMIN_CC_REMOVE.value, _("Remove AdminCC"),
                   ValueType.EMAIL, _watcher_remove(WatcherRole.ADMIN_CC)),
        ActionType(ActionKind.REPLY.value, _("Reply to ticket"),
                   ValueType.HTML, _reply, is_notification=True),
        ActionType(ActionKind.NOTIFY_EMAIL.value, _("Send notification to an email address"),
                   ValueType.HTML, _notify_email, is_notification=True, requires_notify=True),
        ActionType(ActionKind.NOTIFY_GROUP.value, _("Send notification to group members"),
                   ValueType.HTML, _notify_group, is_notification=True, requires_notify=True),
    ]
