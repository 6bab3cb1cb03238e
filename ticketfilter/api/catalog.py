"""
Catalog API Router.

Lists the condition and action kinds available to filter rules, with
display names in the requested locale.
"""

from typing import List

from fastapi import APIRouter, Depends

from ticketfilter.api.dependencies import get_registry, get_translator
from ticketfilter.domain.catalog import Translator
from ticketfilter.domain.registry import KindRegistry
from ticketfilter.schemas.catalog import ActionTypeResponse, ConditionTypeResponse

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/conditions", response_model=List[ConditionTypeResponse])
def list_condition_types(
    registry: KindRegistry = Depends(get_registry),
    translate: Translator = Depends(get_translator)
):
    """List condition kinds. An empty trigger_types list means any trigger."""
    return [
        ConditionTypeResponse(
            kind=condition_type.kind,
            name=condition_type.name,
            value_type=condition_type.value_type.value,
            trigger_types=[t.value for t in condition_type.trigger_types],
            requires_custom_field=condition_type.requires_custom_field
        )
        for condition_type in registry.condition_types(translate)
    ]


@router.get("/actions", response_model=List[ActionTypeResponse])
def list_action_types(
    registry: KindRegistry = Depends(get_registry),
    translate: Translator = Depends(get_translator)
):
    """List action kinds."""
    return [
        ActionTypeResponse(
            kind=action_type.kind,
            name=action_type.name,
            value_type=action_type.value_type.value,
            is_notification=action_type.is_notification,
            requires_notify=action_type.requires_notify,
            requires_custom_field=action_type.requires_custom_field
        )
        for action_type in registry.action_types(translate)
    ]
