"""
Filter Rules API Router.

Handles reading, updating, ordering and deleting individual filter rules.
Rules are created through their rule group (see rule_groups).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ticketfilter.api.dependencies import check_result, get_registry, get_rule_or_404
from ticketfilter.api.rule_groups import to_actions, to_conditions
from ticketfilter.database import get_db
from ticketfilter.domain.registry import KindRegistry
from ticketfilter.services import FilterRuleManager
from ticketfilter.schemas.filter_rule import FilterRuleResponse, FilterRuleUpdate
from ticketfilter.schemas.rule_group import MoveRequest, OperationResponse

router = APIRouter(prefix="/filter-rules", tags=["filter-rules"])


@router.get("/{rule_id}", response_model=FilterRuleResponse)
def get_filter_rule(rule_id: int, db: Session = Depends(get_db)):
    """Get filter rule with its conditions and actions."""
    return get_rule_or_404(db, rule_id)


@router.patch("/{rule_id}", response_model=OperationResponse)
def update_filter_rule(
    rule_id: int,
    update_data: FilterRuleUpdate,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """
    Update a filter rule.

    Each supplied field is audited as its own change and all of them are
    committed together; the first rejected change discards the rest.
    """
    get_rule_or_404(db, rule_id)
    manager = FilterRuleManager(db, registry)
    actor = update_data.updated_by
    supplied = update_data.model_fields_set

    changes = []
    if update_data.name is not None:
        changes.append((manager.set_name, update_data.name))
    if "trigger_type" in supplied:
        trigger_type = update_data.trigger_type.value if update_data.trigger_type else None
        changes.append((manager.set_trigger_type, trigger_type))
    if update_data.stop_if_matched is not None:
        changes.append((manager.set_stop_if_matched, update_data.stop_if_matched))
    if update_data.conflicts is not None:
        changes.append((manager.set_conflicts, to_conditions(update_data.conflicts)))
    if update_data.requirements is not None:
        changes.append((manager.set_requirements, to_conditions(update_data.requirements)))
    if update_data.actions is not None:
        changes.append((manager.set_actions, to_actions(update_data.actions)))
    if update_data.disabled is not None:
        changes.append((manager.set_disabled, update_data.disabled))

    messages = [
        check_result(setter(rule_id, value, actor, commit=False)).message
        for setter, value in changes
    ]
    check_result(manager.commit_changes(rule_id))
    return OperationResponse(
        ok=True,
        message=messages[-1] if messages else "No change made",
        item_id=rule_id,
        messages=messages
    )


@router.delete("/{rule_id}", response_model=OperationResponse)
def delete_filter_rule(
    rule_id: int,
    actor: str,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """Delete a filter rule and its match history."""
    get_rule_or_404(db, rule_id)
    result = check_result(FilterRuleManager(db, registry).delete_rule(rule_id, actor))
    return OperationResponse(**result._asdict())


@router.post("/{rule_id}/move", response_model=OperationResponse)
def move_filter_rule(
    rule_id: int,
    move: MoveRequest,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """Move a filter rule within its group's group conditions or rules."""
    get_rule_or_404(db, rule_id)
    result = check_result(FilterRuleManager(db, registry).move(rule_id, move.offset))
    return OperationResponse(**result._asdict())


@router.post("/{rule_id}/move-up", response_model=OperationResponse)
def move_filter_rule_up(
    rule_id: int,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """Move a filter rule one place earlier."""
    get_rule_or_404(db, rule_id)
    result = check_result(FilterRuleManager(db, registry).move_up(rule_id))
    return OperationResponse(**result._asdict())


@router.post("/{rule_id}/move-down", response_model=OperationResponse)
def move_filter_rule_down(
    rule_id: int,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """Move a filter rule one place later."""
    get_rule_or_404(db, rule_id)
    result = check_result(FilterRuleManager(db, registry).move_down(rule_id))
    return OperationResponse(**result._asdict())
