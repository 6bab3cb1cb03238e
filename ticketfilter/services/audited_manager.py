"""
Shared plumbing for the rule group and filter rule managers.

Every mutating operation is one transaction that writes at most one audit
event and reports back an OperationResult. Failures roll the session back,
so no operation leaves a half-written object behind.

Setters called with commit=False stage their change instead; a batch of
staged changes is written by commit_changes() or dropped entirely by the
first rejected change.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ticketfilter.domain.ordering import OrderingError, swap_position
from ticketfilter.logging import get_logger
from ticketfilter.models import AuditEvent, AuditEventType

logger = get_logger(__name__)


class OperationResult(NamedTuple):
    """Outcome of a create, update, delete or move."""
    ok: bool
    message: str
    item_id: Optional[int] = None


class AuditedManager:
    """
    Base class for services that administer audited, ordered objects.

    Subclasses set the aggregate type, a display label and the five audit
    event types for their object.
    """

    aggregate_type: str = ""
    label: str = ""

    created_event: AuditEventType
    updated_event: AuditEventType
    disabled_event: AuditEventType
    enabled_event: AuditEventType
    deleted_event: AuditEventType

    def __init__(self, db: Session):
        """
        Initialize manager.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self._staged: List[Tuple[int, str, str]] = []  # (item_id, field, actor)

    def _audit(
        self,
        event_type: AuditEventType,
        item_id: int,
        event_data: Dict[str, Any],
        actor: Optional[str]
    ) -> None:
        self.db.add(AuditEvent(
            event_type=event_type,
            aggregate_type=self.aggregate_type,
            aggregate_id=item_id,
            event_data=event_data,
            actor=actor
        ))

    def _commit(self, item_id: Optional[int], message: str) -> OperationResult:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.validation_failed(self.aggregate_type, item_id, f"Database error: {e}")
            return OperationResult(False, f"Internal error: {e}", item_id)
        return OperationResult(True, message, item_id)

    def _reject(self, item_id: Optional[int], error: str) -> OperationResult:
        """Abandon the operation; nothing it touched is kept, staged changes included."""
        self.db.rollback()
        self._staged.clear()
        logger.validation_failed(self.aggregate_type, item_id, error)
        return OperationResult(False, error, item_id)

    def _update_field(
        self,
        item: Any,
        attribute: str,
        value: Any,
        actor: str,
        field: Optional[str] = None,
        commit: bool = True
    ) -> OperationResult:
        """
        Set one attribute and audit the change.

        Setting the current value is a no-op. The disabled flag is audited
        as a disabled/enabled event; anything else as an update carrying
        the field name with its old and new values. With commit=False the
        change and its audit event are staged for commit_changes().
        """
        field = field or attribute
        old_value = getattr(item, attribute)
        if old_value == value:
            return OperationResult(True, "No change made", item.id)

        setattr(item, attribute, value)
        item.updated_by = actor

        if attribute == "disabled":
            event_type = self.disabled_event if value else self.enabled_event
            event_data: Dict[str, Any] = {}
            message = f"{self.label} {'disabled' if value else 'enabled'}"
        else:
            event_type = self.updated_event
            event_data = {"field": field, "old_value": old_value, "new_value": value}
            message = f"{self.label} updated"

        self._audit(event_type, item.id, event_data, actor)
        if not commit:
            self.db.flush()
            self._staged.append((item.id, field, actor))
            return OperationResult(True, message, item.id)

        result = self._commit(item.id, message)
        if result.ok:
            logger.item_changed(self.aggregate_type, item.id, field, actor)
        return result

    def commit_changes(self, item_id: int) -> OperationResult:
        """
        Commit the changes staged by setters called with commit=False.

        Returns:
            OperationResult; "No change made" if nothing was staged
        """
        staged, self._staged = self._staged, []
        if not staged:
            return OperationResult(True, "No change made", item_id)

        result = self._commit(item_id, f"{self.label} updated")
        if result.ok:
            for staged_id, field, actor in staged:
                logger.item_changed(self.aggregate_type, staged_id, field, actor)
        return result

    def _move(self, item: Any, siblings: List[Any], offset: int) -> OperationResult:
        """
        Swap an item with the sibling `offset` places away and renumber.

        `siblings` must be the item's full ordering scope, in sort order and
        locked for update. Sort order changes are not audited.
        """
        if offset == 0:
            return OperationResult(True, "Not moved", item.id)

        try:
            ordered = swap_position(siblings, item.id, offset)
        except OrderingError as e:
            self.db.rollback()
            return OperationResult(False, str(e), item.id)

        for position, sibling in enumerate(ordered, start=1):
            if sibling.sort_order != position:
                sibling.sort_order = position

        result = self._commit(item.id, "Moved")
        if result.ok:
            logger.item_moved(self.aggregate_type, item.id, offset)
        return result
