"""
Rule Groups API Router.

Handles creating, updating, ordering and deleting filter rule groups, and
adding group conditions and processing rules to them.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ticketfilter.api.dependencies import (
    check_result,
    get_group_or_404,
    get_registry,
    get_rule_or_404,
)
from ticketfilter.database import get_db
from ticketfilter.domain.actions import Action
from ticketfilter.domain.conditions import Condition
from ticketfilter.domain.registry import KindRegistry
from ticketfilter.services import FilterRuleManager, RuleGroupManager
from ticketfilter.schemas.filter_rule import (
    FilterRuleCreate,
    FilterRuleResponse,
    GroupConditionCreate,
)
from ticketfilter.schemas.rule_group import (
    MoveRequest,
    OperationResponse,
    RuleGroupCreate,
    RuleGroupResponse,
    RuleGroupUpdate,
)

router = APIRouter(prefix="/rule-groups", tags=["rule-groups"])


def to_conditions(items) -> List[Condition]:
    return [Condition(item.kind, tuple(item.values), item.custom_field) for item in items]


def to_actions(items) -> List[Action]:
    return [Action(item.kind, item.value, item.custom_field, item.notify) for item in items]


@router.get("", response_model=List[RuleGroupResponse])
def list_rule_groups(
    include_disabled: bool = True,
    db: Session = Depends(get_db)
):
    """List rule groups in evaluation order."""
    return RuleGroupManager(db).list_groups(include_disabled=include_disabled)


@router.post("", response_model=RuleGroupResponse, status_code=201)
def create_rule_group(
    group_data: RuleGroupCreate,
    db: Session = Depends(get_db)
):
    """
    Create a rule group.

    The group is placed last in the evaluation order. It does nothing
    until it has at least one group condition.
    """
    result = check_result(RuleGroupManager(db).create_group(
        name=group_data.name,
        created_by=group_data.created_by,
        can_match_queues=group_data.can_match_queues,
        can_transfer_queues=group_data.can_transfer_queues,
        can_use_groups=group_data.can_use_groups,
        disabled=group_data.disabled
    ))
    return get_group_or_404(db, result.item_id)


@router.get("/{group_id}", response_model=RuleGroupResponse)
def get_rule_group(group_id: int, db: Session = Depends(get_db)):
    """Get rule group."""
    return get_group_or_404(db, group_id)


@router.patch("/{group_id}", response_model=OperationResponse)
def update_rule_group(
    group_id: int,
    update_data: RuleGroupUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a rule group.

    Each supplied field is audited as its own change and all of them are
    committed together; the first rejected change discards the rest.
    """
    get_group_or_404(db, group_id)
    manager = RuleGroupManager(db)
    actor = update_data.updated_by

    changes = []
    if update_data.name is not None:
        changes.append((manager.set_name, update_data.name))
    if update_data.can_match_queues is not None:
        changes.append((manager.set_can_match_queues, update_data.can_match_queues))
    if update_data.can_transfer_queues is not None:
        changes.append((manager.set_can_transfer_queues, update_data.can_transfer_queues))
    if update_data.can_use_groups is not None:
        changes.append((manager.set_can_use_groups, update_data.can_use_groups))
    if update_data.disabled is not None:
        changes.append((manager.set_disabled, update_data.disabled))

    messages = [
        check_result(setter(group_id, value, actor, commit=False)).message
        for setter, value in changes
    ]
    check_result(manager.commit_changes(group_id))
    return OperationResponse(
        ok=True,
        message=messages[-1] if messages else "No change made",
        item_id=group_id,
        messages=messages
    )


@router.delete("/{group_id}", response_model=OperationResponse)
def delete_rule_group(
    group_id: int,
    actor: str,
    db: Session = Depends(get_db)
):
    """Delete a rule group with all its rules and their match history."""
    get_group_or_404(db, group_id)
    result = check_result(RuleGroupManager(db).delete_group(group_id, actor))
    return OperationResponse(**result._asdict())


# =============================================================================
# Ordering
# =============================================================================

@router.post("/{group_id}/move", response_model=OperationResponse)
def move_rule_group(
    group_id: int,
    move: MoveRequest,
    db: Session = Depends(get_db)
):
    """Move a rule group in the evaluation order."""
    get_group_or_404(db, group_id)
    result = check_result(RuleGroupManager(db).move(group_id, move.offset))
    return OperationResponse(**result._asdict())


@router.post("/{group_id}/move-up", response_model=OperationResponse)
def move_rule_group_up(group_id: int, db: Session = Depends(get_db)):
    """Move a rule group one place earlier."""
    get_group_or_404(db, group_id)
    result = check_result(RuleGroupManager(db).move_up(group_id))
    return OperationResponse(**result._asdict())


@router.post("/{group_id}/move-down", response_model=OperationResponse)
def move_rule_group_down(group_id: int, db: Session = Depends(get_db)):
    """Move a rule group one place later."""
    get_group_or_404(db, group_id)
    result = check_result(RuleGroupManager(db).move_down(group_id))
    return OperationResponse(**result._asdict())


# =============================================================================
# Rules within a group
# =============================================================================

@router.get("/{group_id}/conditions", response_model=List[FilterRuleResponse])
def list_group_conditions(
    group_id: int,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """List the group conditions of a rule group, in order."""
    get_group_or_404(db, group_id)
    return FilterRuleManager(db, registry).list_rules(group_id, is_group_condition=True)


@router.post("/{group_id}/conditions", response_model=FilterRuleResponse, status_code=201)
def add_group_condition(
    group_id: int,
    rule_data: GroupConditionCreate,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """Add a group condition, deciding when the group applies."""
    get_group_or_404(db, group_id)
    result = check_result(FilterRuleManager(db, registry).add_group_condition(
        group_id,
        name=rule_data.name,
        created_by=rule_data.created_by,
        trigger_type=rule_data.trigger_type.value if rule_data.trigger_type else None,
        conflicts=to_conditions(rule_data.conflicts),
        requirements=to_conditions(rule_data.requirements),
        disabled=rule_data.disabled
    ))
    return get_rule_or_404(db, result.item_id)


@router.get("/{group_id}/rules", response_model=List[FilterRuleResponse])
def list_filter_rules(
    group_id: int,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """List the processing rules of a rule group, in order."""
    get_group_or_404(db, group_id)
    return FilterRuleManager(db, registry).list_rules(group_id, is_group_condition=False)


@router.post("/{group_id}/rules", response_model=FilterRuleResponse, status_code=201)
def add_filter_rule(
    group_id: int,
    rule_data: FilterRuleCreate,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """Add a processing rule to the end of the group's rules."""
    get_group_or_404(db, group_id)
    result = check_result(FilterRuleManager(db, registry).add_filter_rule(
        group_id,
        name=rule_data.name,
        created_by=rule_data.created_by,
        trigger_type=rule_data.trigger_type.value if rule_data.trigger_type else None,
        stop_if_matched=rule_data.stop_if_matched,
        conflicts=to_conditions(rule_data.conflicts),
        requirements=to_conditions(rule_data.requirements),
        actions=to_actions(rule_data.actions),
        disabled=rule_data.disabled
    ))
    return get_rule_or_404(db, result.item_id)
