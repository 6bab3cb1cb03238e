"""
Pydantic schemas for Filter Rule API.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ticketfilter.domain.ticket import TriggerType


class ConditionSchema(BaseModel):
    """A condition: kind, candidate values (any may match) and custom field."""
    kind: str = Field(..., description="Condition kind (e.g., 'SubjectContains')")
    values: List[str] = Field(default_factory=list)
    custom_field: Optional[str] = None

    class Config:
        from_attributes = True


class ActionSchema(BaseModel):
    """An action: kind with its value, custom field and notify target."""
    kind: str = Field(..., description="Action kind (e.g., 'QueueSet')")
    value: str = ""
    custom_field: Optional[str] = None
    notify: Optional[str] = None

    class Config:
        from_attributes = True


class GroupConditionCreate(BaseModel):
    """Schema for adding a group condition to a rule group."""
    name: str = Field(..., max_length=200)
    created_by: str
    trigger_type: Optional[TriggerType] = None
    conflicts: List[ConditionSchema] = Field(default_factory=list)
    requirements: List[ConditionSchema] = Field(default_factory=list)
    disabled: bool = False


class FilterRuleCreate(GroupConditionCreate):
    """Schema for adding a processing rule to a rule group."""
    stop_if_matched: bool = False
    actions: List[ActionSchema] = Field(default_factory=list)


class FilterRuleUpdate(BaseModel):
    """
    Schema for updating a filter rule. Omitted fields are left alone.

    An explicit null trigger_type makes the rule apply to every trigger.
    """
    updated_by: str
    name: Optional[str] = Field(None, max_length=200)
    trigger_type: Optional[TriggerType] = None
    stop_if_matched: Optional[bool] = None
    conflicts: Optional[List[ConditionSchema]] = None
    requirements: Optional[List[ConditionSchema]] = None
    actions: Optional[List[ActionSchema]] = None
    disabled: Optional[bool] = None


class FilterRuleResponse(BaseModel):
    """Schema for filter rule response."""
    id: int
    group_id: int
    is_group_condition: bool
    sort_order: int
    name: str
    trigger_type: Optional[str] = None
    stop_if_matched: bool
    conflicts: List[ConditionSchema]
    requirements: List[ConditionSchema]
    actions: List[ActionSchema]
    disabled: bool
    created_by: str
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True
