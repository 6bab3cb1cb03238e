"""
Filter Rule Manager Service.

Creates, updates, reorders and deletes filter rules within their group.
Rules are validated against the registered kinds and against their
group's queue and group scopes before anything is written.
"""

from typing import List, Optional, Sequence

from ticketfilter.domain.actions import Action, ActionKind
from ticketfilter.domain.catalog import ValueType
from ticketfilter.domain.conditions import Condition
from ticketfilter.domain.ordering import next_sort_order
from ticketfilter.domain.registry import KindRegistry
from ticketfilter.domain.serialization import encode_actions, encode_conditions
from ticketfilter.domain.ticket import TriggerType
from ticketfilter.logging import get_logger
from ticketfilter.models import AuditEventType, FilterRule, FilterRuleGroup
from ticketfilter.services.audited_manager import AuditedManager, OperationResult

logger = get_logger(__name__)

# Actions whose value names a group of users
GROUP_VALUE_ACTIONS = {ActionKind.CC_ADD_GROUP.value, ActionKind.ADMIN_CC_ADD_GROUP.value}


def _is_int(value: str) -> bool:
    try:
        int(str(value).strip())
    except ValueError:
        return False
    return True


def _is_email(value: str) -> bool:
    local, _, domain = str(value).strip().partition("@")
    return bool(local) and bool(domain)


class FilterRuleManager(AuditedManager):
    """
    Administration of filter rules.

    A group holds two ordering scopes, one for group conditions and one for
    processing rules; each is numbered 1..N independently.
    """

    aggregate_type = "filter_rule"
    label = "Filter rule"

    created_event = AuditEventType.FILTER_RULE_CREATED
    updated_event = AuditEventType.FILTER_RULE_UPDATED
    disabled_event = AuditEventType.FILTER_RULE_DISABLED
    enabled_event = AuditEventType.FILTER_RULE_ENABLED
    deleted_event = AuditEventType.FILTER_RULE_DELETED

    def __init__(self, db, registry: KindRegistry):
        """
        Initialize filter rule manager.

        Args:
            db: SQLAlchemy database session
            registry: Kind registry used to validate conditions and actions
        """
        super().__init__(db)
        self.registry = registry

    def get_rule(self, rule_id: int) -> Optional[FilterRule]:
        return self.db.query(FilterRule).filter(FilterRule.id == rule_id).first()

    def list_rules(self, group_id: int, is_group_condition: bool) -> List[FilterRule]:
        """One ordering scope of a group, in evaluation order."""
        return self._scope_query(group_id, is_group_condition).all()

    def _scope_query(self, group_id: int, is_group_condition: bool):
        return (
            self.db.query(FilterRule)
            .filter(
                FilterRule.group_id == group_id,
                FilterRule.is_group_condition.is_(is_group_condition)
            )
            .order_by(FilterRule.sort_order, FilterRule.name, FilterRule.id)
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_trigger_type(self, trigger_type: Optional[str]) -> Optional[str]:
        if trigger_type and trigger_type not in {t.value for t in TriggerType}:
            return f"Invalid trigger type '{trigger_type}'"
        return None

    def validate_conditions(
        self,
        group: FilterRuleGroup,
        conditions: Sequence[Condition],
        trigger_type: Optional[str] = None
    ) -> Optional[str]:
        """
        Check conditions against the registry and the group's scopes.

        Returns:
            Error message, or None if every condition is valid
        """
        for condition in conditions:
            condition_type = self.registry.condition_type(condition.kind)
            if condition_type is None:
                return f"Unknown condition type '{condition.kind}'"

            if trigger_type and not condition_type.applies_to(TriggerType(trigger_type)):
                return f"Condition '{condition.kind}' can not be used with trigger type {trigger_type}"

            if condition_type.requires_custom_field and not condition.custom_field:
                return f"Condition '{condition.kind}' requires a custom field"

            if condition_type.value_type == ValueType.NONE:
                continue

            if not condition.values:
                return f"Condition '{condition.kind}' requires at least one value"

            for value in condition.values:
                if condition_type.value_type == ValueType.INTEGER and not _is_int(value):
                    return f"Condition '{condition.kind}' requires a number, got '{value}'"
                if condition_type.value_type == ValueType.EMAIL and not _is_email(value):
                    return f"Condition '{condition.kind}' requires an email address, got '{value}'"
                if condition_type.value_type == ValueType.QUEUE and not group.can_match_queue(value):
                    return f"Queue '{value}' is not one this group can match"

        return None

    def validate_actions(self, group: FilterRuleGroup, actions: Sequence[Action]) -> Optional[str]:
        """
        Check actions against the registry and the group's scopes.

        Returns:
            Error message, or None if every action is valid
        """
        for action in actions:
            action_type = self.registry.action_type(action.kind)
            if action_type is None:
                return f"Unknown action type '{action.kind}'"

            if action_type.requires_custom_field and not action.custom_field:
                return f"Action '{action.kind}' requires a custom field"

            if action_type.value_type == ValueType.INTEGER and not _is_int(action.value):
                return f"Action '{action.kind}' requires a number, got '{action.value}'"

            if action_type.value_type == ValueType.EMAIL and not _is_email(action.value):
                return f"Action '{action.kind}' requires an email address, got '{action.value}'"

            if action.kind == ActionKind.QUEUE_SET.value and not group.can_transfer_to_queue(action.value):
                return f"Queue '{action.value}' is not one this group can move tickets to"

            if action.kind in GROUP_VALUE_ACTIONS and not group.can_use_group(action.value):
                return f"Group '{action.value}' is not one this group can use"

            if action_type.requires_notify:
                if not action.notify:
                    return f"Action '{action.kind}' requires a recipient"
                if action.kind == ActionKind.NOTIFY_GROUP.value and not group.can_use_group(action.notify):
                    return f"Group '{action.notify}' is not one this group can use"
                if action.kind == ActionKind.NOTIFY_EMAIL.value and not _is_email(action.notify):
                    return f"Action '{action.kind}' requires an email address, got '{action.notify}'"

        return None

    # =========================================================================
    # Creation
    # =========================================================================

    def add_group_condition(
        self,
        group_id: int,
        name: str,
        created_by: str,
        trigger_type: Optional[str] = None,
        conflicts: Sequence[Condition] = (),
        requirements: Sequence[Condition] = (),
        disabled: bool = False
    ) -> OperationResult:
        """Add a rule that decides whether the group applies to an event."""
        return self.create_rule(
            group_id, True, name, created_by,
            trigger_type=trigger_type,
            conflicts=conflicts,
            requirements=requirements,
            disabled=disabled
        )

    def add_filter_rule(
        self,
        group_id: int,
        name: str,
        created_by: str,
        trigger_type: Optional[str] = None,
        stop_if_matched: bool = False,
        conflicts: Sequence[Condition] = (),
        requirements: Sequence[Condition] = (),
        actions: Sequence[Action] = (),
        disabled: bool = False
    ) -> OperationResult:
        """Add a rule that processes tickets the group applies to."""
        return self.create_rule(
            group_id, False, name, created_by,
            trigger_type=trigger_type,
            stop_if_matched=stop_if_matched,
            conflicts=conflicts,
            requirements=requirements,
            actions=actions,
            disabled=disabled
        )

    def create_rule(
        self,
        group_id: int,
        is_group_condition: bool,
        name: str,
        created_by: str,
        trigger_type: Optional[str] = None,
        stop_if_matched: bool = False,
        conflicts: Sequence[Condition] = (),
        requirements: Sequence[Condition] = (),
        actions: Sequence[Action] = (),
        disabled: bool = False
    ) -> OperationResult:
        """
        Create a filter rule at the end of its ordering scope.

        Validates:
        1. Group exists
        2. Name is provided
        3. Trigger type is empty, Create or QueueMove
        4. Conditions and actions are known kinds with valid values, within
           the group's queue and group scopes
        5. Group conditions carry no actions

        Returns:
            OperationResult carrying the new rule's id
        """
        group = self.db.query(FilterRuleGroup).filter(FilterRuleGroup.id == group_id).first()
        if group is None:
            return self._reject(None, "Filter rule group not found")

        name = (name or "").strip()
        trigger_type = trigger_type or None
        error = (
            ("Name is required" if not name else None)
            or self.validate_trigger_type(trigger_type)
            or self.validate_conditions(group, conflicts, trigger_type)
            or self.validate_conditions(group, requirements, trigger_type)
            or ("Group conditions can not have actions" if is_group_condition and actions else None)
            or self.validate_actions(group, actions)
        )
        if error:
            return self._reject(None, error)

        current_orders = [
            row.sort_order
            for row in self.db.query(FilterRule.sort_order)
            .filter(
                FilterRule.group_id == group_id,
                FilterRule.is_group_condition.is_(is_group_condition)
            )
            .with_for_update()
            .all()
        ]

        rule = FilterRule(
            group_id=group.id,
            is_group_condition=is_group_condition,
            sort_order=next_sort_order(current_orders),
            name=name,
            trigger_type=trigger_type,
            stop_if_matched=stop_if_matched,
            disabled=disabled,
            created_by=created_by
        )
        rule.conflicts = conflicts
        rule.requirements = requirements
        rule.actions = actions
        self.db.add(rule)
        self.db.flush()  # Flush to generate rule.id before using it in audit event

        self._audit(self.created_event, rule.id, {
            "group_id": group.id,
            "name": rule.name,
            "is_group_condition": is_group_condition,
            "sort_order": rule.sort_order
        }, created_by)

        result = self._commit(rule.id, f"Filter rule {rule.id} created")
        if result.ok:
            logger.item_created(self.aggregate_type, rule.id, created_by)
        return result

    # =========================================================================
    # Setters
    # =========================================================================

    def set_name(self, rule_id: int, name: str, actor: str, commit: bool = True) -> OperationResult:
        rule = self.get_rule(rule_id)
        if rule is None:
            return self._reject(rule_id, "Filter rule not found")
        name = (name or "").strip()
        if not name:
            return self._reject(rule_id, "Name is required")
        return self._update_field(rule, "name", name, actor, commit=commit)

    def set_trigger_type(
        self, rule_id: int, trigger_type: Optional[str], actor: str, commit: bool = True
    ) -> OperationResult:
        rule = self.get_rule(rule_id)
        if rule is None:
            return self._reject(rule_id, "Filter rule not found")
        trigger_type = trigger_type or None
        error = (
            self.validate_trigger_type(trigger_type)
            or self.validate_conditions(rule.group, rule.conflicts, trigger_type)
            or self.validate_conditions(rule.group, rule.requirements, trigger_type)
        )
        if error:
            return self._reject(rule_id, error)
        return self._update_field(rule, "trigger_type", trigger_type, actor, commit=commit)

    def set_stop_if_matched(
        self, rule_id: int, stop_if_matched: bool, actor: str, commit: bool = True
    ) -> OperationResult:
        rule = self.get_rule(rule_id)
        if rule is None:
            return self._reject(rule_id, "Filter rule not found")
        return self._update_field(rule, "stop_if_matched", bool(stop_if_matched), actor, commit=commit)

    def set_disabled(self, rule_id: int, disabled: bool, actor: str, commit: bool = True) -> OperationResult:
        rule = self.get_rule(rule_id)
        if rule is None:
            return self._reject(rule_id, "Filter rule not found")
        return self._update_field(rule, "disabled", bool(disabled), actor, commit=commit)

    def set_conflicts(
        self, rule_id: int, conditions: Sequence[Condition], actor: str, commit: bool = True
    ) -> OperationResult:
        return self._set_conditions(rule_id, "conflicts", conditions, actor, commit)

    def set_requirements(
        self, rule_id: int, conditions: Sequence[Condition], actor: str, commit: bool = True
    ) -> OperationResult:
        return self._set_conditions(rule_id, "requirements", conditions, actor, commit)

    def _set_conditions(
        self,
        rule_id: int,
        field: str,
        conditions: Sequence[Condition],
        actor: str,
        commit: bool = True
    ) -> OperationResult:
        rule = self.get_rule(rule_id)
        if rule is None:
            return self._reject(rule_id, "Filter rule not found")
        error = self.validate_conditions(rule.group, conditions, rule.trigger_type)
        if error:
            return self._reject(rule_id, error)
        return self._update_field(
            rule, f"{field}_data", encode_conditions(conditions), actor, field=field, commit=commit
        )

    def set_actions(
        self, rule_id: int, actions: Sequence[Action], actor: str, commit: bool = True
    ) -> OperationResult:
        rule = self.get_rule(rule_id)
        if rule is None:
            return self._reject(rule_id, "Filter rule not found")
        if rule.is_group_condition and actions:
            return self._reject(rule_id, "Group conditions can not have actions")
        error = self.validate_actions(rule.group, actions)
        if error:
            return self._reject(rule_id, error)
        return self._update_field(
            rule, "actions_data", encode_actions(actions), actor, field="actions", commit=commit
        )

    # =========================================================================
    # Ordering
    # =========================================================================

    def move(self, rule_id: int, offset: int) -> OperationResult:
        """
        Move a rule `offset` places within its ordering scope.

        The scope is the rule's group and its group-condition flag. All
        siblings are renumbered 1..N in the same transaction.
        """
        rule = self.get_rule(rule_id)
        if rule is None:
            return OperationResult(False, "Failed to find current position", rule_id)
        siblings = self._scope_query(rule.group_id, rule.is_group_condition).with_for_update().all()
        return self._move(rule, siblings, offset)

    def move_up(self, rule_id: int) -> OperationResult:
        return self.move(rule_id, -1)

    def move_down(self, rule_id: int) -> OperationResult:
        return self.move(rule_id, 1)

    # =========================================================================
    # Deletion
    # =========================================================================

    def delete_rule(self, rule_id: int, actor: str) -> OperationResult:
        """
        Delete a rule together with its match history.

        The rule's siblings are renumbered 1..N.
        """
        rule = self.get_rule(rule_id)
        if rule is None:
            return self._reject(rule_id, "Filter rule not found")

        group_id, is_group_condition = rule.group_id, rule.is_group_condition
        self._audit(self.deleted_event, rule.id, {
            "group_id": group_id,
            "name": rule.name,
            "is_group_condition": is_group_condition,
            "match_count": len(rule.matches)
        }, actor)
        self.db.delete(rule)
        self.db.flush()

        for position, sibling in enumerate(self._scope_query(group_id, is_group_condition).all(), start=1):
            if sibling.sort_order != position:
                sibling.sort_order = position

        result = self._commit(rule_id, f"Filter rule {rule_id} deleted")
        if result.ok:
            logger.item_deleted(self.aggregate_type, rule_id, actor)
        return result
