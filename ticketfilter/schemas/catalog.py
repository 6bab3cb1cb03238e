"""
Pydantic schemas for Catalog API.
"""

from typing import List

from pydantic import BaseModel


class ConditionTypeResponse(BaseModel):
    """A condition kind available to rules."""
    kind: str
    name: str
    value_type: str
    trigger_types: List[str]
    requires_custom_field: bool


class ActionTypeResponse(BaseModel):
    """An action kind available to rules."""
    kind: str
    name: str
    value_type: str
    is_notification: bool
    requires_notify: bool
    requires_custom_field: bool
