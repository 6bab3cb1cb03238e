"""
Filter rule conditions.

A condition is a kind plus a list of candidate values; it matches an event
if any one of its values matches. Conditions are value objects embedded in
a filter rule's requirements or conflicts.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from ticketfilter.domain.catalog import ConditionType, Translator, ValueType
from ticketfilter.domain.ticket import EventContext, TriggerType
from ticketfilter.logging import get_logger

if TYPE_CHECKING:
    from ticketfilter.domain.registry import KindRegistry

logger = get_logger(__name__)


class ConditionKind(str, Enum):
    """Built-in condition kinds."""
    ALWAYS_MATCH = "AlwaysMatch"
    IN_QUEUE = "InQueue"
    FROM_QUEUE = "FromQueue"
    TO_QUEUE = "ToQueue"
    REQUESTOR_EMAIL_IS = "RequestorEmailIs"
    REQUESTOR_EMAIL_DOMAIN_IS = "RequestorEmailDomainIs"
    RECIPIENT_EMAIL_IS = "RecipientEmailIs"
    SUBJECT_CONTAINS = "SubjectContains"
    SUBJECT_OR_BODY_CONTAINS = "SubjectOrBodyContains"
    BODY_CONTAINS = "BodyContains"
    HEADER_CONTAINS = "HeaderContains"
    HAS_ATTACHMENT = "HasAttachment"
    PRIORITY_IS = "PriorityIs"
    PRIORITY_UNDER = "PriorityUnder"
    PRIORITY_OVER = "PriorityOver"
    CUSTOM_FIELD_IS = "CustomFieldIs"
    CUSTOM_FIELD_CONTAINS = "CustomFieldContains"
    STATUS_IS = "StatusIs"


@dataclass(frozen=True)
class ValueCheck:
    """One candidate value checked against the event."""
    target: Optional[str]
    matched: bool


@dataclass(frozen=True)
class ConditionResult:
    """Outcome of testing one condition, with the values that were checked."""
    condition: "Condition"
    matched: bool
    checks: Tuple[ValueCheck, ...] = ()


@dataclass(frozen=True)
class Condition:
    """A single predicate over a ticket event."""
    kind: str
    values: Tuple[str, ...] = ()
    custom_field: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable of values but store a hashable tuple
        object.__setattr__(self, "kind", str(getattr(self.kind, "value", self.kind)))
        object.__setattr__(self, "values", tuple(str(v) for v in self.values))

    def test(self, context: EventContext, registry: "KindRegistry") -> ConditionResult:
        """
        Test the event against this condition.

        Values are tried in order and checking stops at the first match.
        A kind that does not apply to the event's trigger type, or that is
        not registered, never matches.
        """
        condition_type = registry.condition_type(self.kind)
        if condition_type is None:
            logger.unknown_kind("condition", self.kind)
            return ConditionResult(self, False)

        if not condition_type.applies_to(context.trigger_type):
            return ConditionResult(self, False)

        if condition_type.value_type == ValueType.NONE:
            matched = self.test_single_value(context, condition_type, "")
            return ConditionResult(self, matched, (ValueCheck(None, matched),))

        checks: List[ValueCheck] = []
        for value in self.values:
            matched = self.test_single_value(context, condition_type, value)
            checks.append(ValueCheck(value, matched))
            if matched:
                break

        return ConditionResult(self, any(c.matched for c in checks), tuple(checks))

    def test_single_value(
        self,
        context: EventContext,
        condition_type: ConditionType,
        value: str
    ) -> bool:
        """Test one candidate value; handler errors count as no match."""
        try:
            return bool(condition_type.test(context, self, value))
        except Exception as e:
            logger.condition_failed(self.kind, str(e))
            return False


# =============================================================================
# Built-in condition handlers
# =============================================================================

def _contains(haystack: Optional[str], needle: str) -> bool:
    if not needle or not haystack:
        return False
    return needle.casefold() in haystack.casefold()


def _same_email(left: str, right: str) -> bool:
    return left.strip().lower() == right.strip().lower()


def _as_int(value: str) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _always_match(context: EventContext, condition: Condition, value: str) -> bool:
    return True


def _in_queue(context: EventContext, condition: Condition, value: str) -> bool:
    return context.to_queue is not None and str(context.to_queue) == value


def _from_queue(context: EventContext, condition: Condition, value: str) -> bool:
    return context.from_queue is not None and str(context.from_queue) == value


def _to_queue(context: EventContext, condition: Condition, value: str) -> bool:
    return context.to_queue is not None and str(context.to_queue) == value


def _requestor_email_is(context: EventContext, condition: Condition, value: str) -> bool:
    return any(_same_email(r, value) for r in context.ticket.requestors)


def _requestor_email_domain_is(context: EventContext, condition: Condition, value: str) -> bool:
    domain = value.strip().lower().lstrip("@")
    if not domain:
        return False
    for requestor in context.ticket.requestors:
        requestor_domain = requestor.strip().lower().rpartition("@")[2]
        if requestor_domain == domain or requestor_domain.endswith("." + domain):
            return True
    return False


def _recipient_email_is(context: EventContext, condition: Condition, value: str) -> bool:
    return any(_same_email(r, value) for r in context.ticket.recipients)


def _subject_contains(context: EventContext, condition: Condition, value: str) -> bool:
    return _contains(context.ticket.subject, value)


def _body_contains(context: EventContext, condition: Condition, value: str) -> bool:
    return _contains(context.ticket.body, value)


def _subject_or_body_contains(context: EventContext, condition: Condition, value: str) -> bool:
    return _subject_contains(context, condition, value) or _body_contains(context, condition, value)


def _header_contains(context: EventContext, condition: Condition, value: str) -> bool:
    return any(
        _contains(f"{name}: {header}", value)
        for name, header in context.ticket.headers.items()
    )


def _has_attachment(context: EventContext, condition: Condition, value: str) -> bool:
    return bool(context.ticket.attachments)


def _priority_is(context: EventContext, condition: Condition, value: str) -> bool:
    target = _as_int(value)
    return target is not None and context.ticket.priority == target


def _priority_under(context: EventContext, condition: Condition, value: str) -> bool:
    target = _as_int(value)
    return target is not None and context.ticket.priority < target


def _priority_over(context: EventContext, condition: Condition, value: str) -> bool:
    target = _as_int(value)
    return target is not None and context.ticket.priority > target


def _custom_field_values(context: EventContext, condition: Condition) -> List[str]:
    if not condition.custom_field:
        return []
    return context.ticket.custom_fields.get(condition.custom_field, [])


def _custom_field_is(context: EventContext, condition: Condition, value: str) -> bool:
    return any(v == value for v in _custom_field_values(context, condition))


def _custom_field_contains(context: EventContext, condition: Condition, value: str) -> bool:
    return any(_contains(v, value) for v in _custom_field_values(context, condition))


def _status_is(context: EventContext, condition: Condition, value: str) -> bool:
    return context.ticket.status == value


def builtin_condition_types(translate: Translator) -> List[ConditionType]:
    """Provider for the built-in condition kinds."""
    _ = translate
    create_only = (TriggerType.CREATE,)
    queue_move_only = (TriggerType.QUEUE_MOVE,)

    return [
        ConditionType(ConditionKind.ALWAYS_MATCH.value, _("Always match"),
                      ValueType.NONE, _always_match),
        ConditionType(ConditionKind.IN_QUEUE.value, _("In queue"),
                      ValueType.QUEUE, _in_queue, create_only),
        ConditionType(ConditionKind.FROM_QUEUE.value, _("Moving from queue"),
                      ValueType.QUEUE, _from_queue, queue_move_only),
        ConditionType(ConditionKind.TO_QUEUE.value, _("Moving to queue"),
                      ValueType.QUEUE, _to_queue, queue_move_only),
        ConditionType(ConditionKind.REQUESTOR_EMAIL_IS.value, _("Requestor email address is"),
                      ValueType.EMAIL, _requestor_email_is),
        ConditionType(ConditionKind.REQUESTOR_EMAIL_DOMAIN_IS.value, _("Requestor email domain is"),
                      ValueType.STRING, _requestor_email_domain_is),
        ConditionType(ConditionKind.RECIPIENT_EMAIL_IS.value, _("Recipient email address is"),
                      ValueType.EMAIL, _recipient_email_is, create_only),
        ConditionType(ConditionKind.SUBJECT_CONTAINS.value, _("Subject contains"),
                      ValueType.STRING, _subject_contains),
        ConditionType(ConditionKind.SUBJECT_OR_BODY_CONTAINS.value, _("Subject or message body contains"),
                      ValueType.STRING, _subject_or_body_contains),
        ConditionType(ConditionKind.BODY_CONTAINS.value, _("Message body contains"),
                      ValueType.STRING, _body_contains),
        ConditionType(ConditionKind.HEADER_CONTAINS.value, _("Any message header contains"),
                      ValueType.STRING, _header_contains, create_only),
        ConditionType(ConditionKind.HAS_ATTACHMENT.value, _("Has an attachment"),
                      ValueType.NONE, _has_attachment, create_only),
        ConditionType(ConditionKind.PRIORITY_IS.value, _("Priority is"),
                      ValueType.INTEGER, _priority_is),
        ConditionType(ConditionKind.PRIORITY_UNDER.value, _("Priority less than"),
                      ValueType.INTEGER, _priority_under),
        ConditionType(ConditionKind.PRIORITY_OVER.value, _("Priority greater than"),
                      ValueType.INTEGER, _priority_over),
        ConditionType(ConditionKind.CUSTOM_FIELD_IS.value, _("Custom field exactly matches"),
                      ValueType.STRING, _custom_field_is),
        ConditionType(ConditionKind.CUSTOM_FIELD_CONTAINS.value, _("Custom field contains"),
                      ValueType.STRING, _custom_field_contains),
        ConditionType(ConditionKind.STATUS_IS.value, _("Status is"),
                      ValueType.STATUS, _status_is),
    ]
