"""
Rule Group Manager Service.

Creates, updates, reorders and deletes filter rule groups. Each change is
one audited transaction; sort order changes are not audited.
"""

from typing import List, Optional

from ticketfilter.domain.ordering import next_sort_order
from ticketfilter.logging import get_logger
from ticketfilter.models import AuditEventType, FilterRuleGroup, normalize_id_list
from ticketfilter.models.rule_group import IdList
from ticketfilter.services.audited_manager import AuditedManager, OperationResult

logger = get_logger(__name__)


class RuleGroupManager(AuditedManager):
    """
    Administration of filter rule groups.

    Groups form a single ordering scope: sort orders run 1..N across all
    groups, enabled or not.
    """

    aggregate_type = "filter_rule_group"
    label = "Filter rule group"

    created_event = AuditEventType.FILTER_RULE_GROUP_CREATED
    updated_event = AuditEventType.FILTER_RULE_GROUP_UPDATED
    disabled_event = AuditEventType.FILTER_RULE_GROUP_DISABLED
    enabled_event = AuditEventType.FILTER_RULE_GROUP_ENABLED
    deleted_event = AuditEventType.FILTER_RULE_GROUP_DELETED

    def get_group(self, group_id: int) -> Optional[FilterRuleGroup]:
        return self.db.query(FilterRuleGroup).filter(FilterRuleGroup.id == group_id).first()

    def list_groups(self, include_disabled: bool = True) -> List[FilterRuleGroup]:
        """Groups in evaluation order."""
        query = self.db.query(FilterRuleGroup)
        if not include_disabled:
            query = query.filter(FilterRuleGroup.disabled.is_(False))
        return query.order_by(FilterRuleGroup.sort_order, FilterRuleGroup.id).all()

    def create_group(
        self,
        name: str,
        created_by: str,
        can_match_queues: IdList = (),
        can_transfer_queues: IdList = (),
        can_use_groups: IdList = (),
        disabled: bool = False
    ) -> OperationResult:
        """
        Create a rule group at the end of the group ordering.

        Args:
            name: Display name (required)
            created_by: User creating the group
            can_match_queues: Queues the group's conditions may match on
            can_transfer_queues: Queues the group's rules may move tickets to
            can_use_groups: Groups the group's rules may add or notify
            disabled: Create the group disabled

        Returns:
            OperationResult carrying the new group's id

        Example:
            >>> manager = RuleGroupManager(db)
            >>> manager.create_group("Inbound mail", "admin", can_match_queues=["1"])
            OperationResult(ok=True, message='Filter rule group 1 created', item_id=1)
        """
        name = (name or "").strip()
        if not name:
            return self._reject(None, "Name is required")

        current_orders = [
            row.sort_order
            for row in self.db.query(FilterRuleGroup.sort_order).with_for_update().all()
        ]

        group = FilterRuleGroup(
            name=name,
            sort_order=next_sort_order(current_orders),
            can_match_queues=normalize_id_list(can_match_queues),
            can_transfer_queues=normalize_id_list(can_transfer_queues),
            can_use_groups=normalize_id_list(can_use_groups),
            disabled=disabled,
            created_by=created_by
        )
        self.db.add(group)
        self.db.flush()  # Flush to generate group.id before using it in audit event

        self._audit(self.created_event, group.id, {
            "name": group.name,
            "sort_order": group.sort_order,
            "disabled": group.disabled
        }, created_by)

        result = self._commit(group.id, f"Filter rule group {group.id} created")
        if result.ok:
            logger.item_created(self.aggregate_type, group.id, created_by)
        return result

    # =========================================================================
    # Setters
    # =========================================================================

    def set_name(self, group_id: int, name: str, actor: str, commit: bool = True) -> OperationResult:
        group = self.get_group(group_id)
        if group is None:
            return self._reject(group_id, "Filter rule group not found")
        name = (name or "").strip()
        if not name:
            return self._reject(group_id, "Name is required")
        return self._update_field(group, "name", name, actor, commit=commit)

    def set_disabled(self, group_id: int, disabled: bool, actor: str, commit: bool = True) -> OperationResult:
        group = self.get_group(group_id)
        if group is None:
            return self._reject(group_id, "Filter rule group not found")
        return self._update_field(group, "disabled", bool(disabled), actor, commit=commit)

    def set_can_match_queues(
        self, group_id: int, queues: IdList, actor: str, commit: bool = True
    ) -> OperationResult:
        return self._set_scope(group_id, "can_match_queues", queues, actor, commit)

    def set_can_transfer_queues(
        self, group_id: int, queues: IdList, actor: str, commit: bool = True
    ) -> OperationResult:
        return self._set_scope(group_id, "can_transfer_queues", queues, actor, commit)

    def set_can_use_groups(
        self, group_id: int, groups: IdList, actor: str, commit: bool = True
    ) -> OperationResult:
        return self._set_scope(group_id, "can_use_groups", groups, actor, commit)

    def _set_scope(
        self, group_id: int, attribute: str, ids: IdList, actor: str, commit: bool = True
    ) -> OperationResult:
        group = self.get_group(group_id)
        if group is None:
            return self._reject(group_id, "Filter rule group not found")
        return self._update_field(group, attribute, normalize_id_list(ids), actor, commit=commit)

    # =========================================================================
    # Ordering
    # =========================================================================

    def move(self, group_id: int, offset: int) -> OperationResult:
        """
        Move a group `offset` places in the evaluation order.

        Negative offsets move the group earlier. All groups are renumbered
        1..N in the same transaction.
        """
        siblings = (
            self.db.query(FilterRuleGroup)
            .order_by(FilterRuleGroup.sort_order, FilterRuleGroup.id)
            .with_for_update()
            .all()
        )
        group = next((g for g in siblings if g.id == group_id), None)
        if group is None:
            self.db.rollback()
            return OperationResult(False, "Failed to find current position", group_id)
        return self._move(group, siblings, offset)

    def move_up(self, group_id: int) -> OperationResult:
        return self.move(group_id, -1)

    def move_down(self, group_id: int) -> OperationResult:
        return self.move(group_id, 1)

    # =========================================================================
    # Deletion
    # =========================================================================

    def delete_group(self, group_id: int, actor: str) -> OperationResult:
        """
        Delete a group with all of its rules and their match history.

        The remaining groups keep their relative order and are renumbered
        1..N. Audit events for the group and its rules are kept.
        """
        group = self.get_group(group_id)
        if group is None:
            return self._reject(group_id, "Filter rule group not found")

        self._audit(self.deleted_event, group.id, {
            "name": group.name,
            "rule_count": len(group.rules)
        }, actor)
        self.db.delete(group)
        self.db.flush()

        remaining = (
            self.db.query(FilterRuleGroup)
            .order_by(FilterRuleGroup.sort_order, FilterRuleGroup.id)
            .with_for_update()
            .all()
        )
        for position, sibling in enumerate(remaining, start=1):
            if sibling.sort_order != position:
                sibling.sort_order = position

        result = self._commit(group_id, f"Filter rule group {group_id} deleted")
        if result.ok:
            logger.item_deleted(self.aggregate_type, group_id, actor)
        return result
