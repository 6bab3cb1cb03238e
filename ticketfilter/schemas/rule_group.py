"""
Pydantic schemas for Rule Group API.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RuleGroupCreate(BaseModel):
    """Schema for creating a rule group."""
    name: str = Field(..., max_length=200)
    created_by: str
    can_match_queues: List[str] = Field(default_factory=list, description="Queues rules may match on")
    can_transfer_queues: List[str] = Field(default_factory=list, description="Queues rules may move tickets to")
    can_use_groups: List[str] = Field(default_factory=list, description="Groups rules may add or notify")
    disabled: bool = False


class RuleGroupUpdate(BaseModel):
    """Schema for updating a rule group. Omitted fields are left alone."""
    updated_by: str
    name: Optional[str] = Field(None, max_length=200)
    can_match_queues: Optional[List[str]] = None
    can_transfer_queues: Optional[List[str]] = None
    can_use_groups: Optional[List[str]] = None
    disabled: Optional[bool] = None


class RuleGroupResponse(BaseModel):
    """Schema for rule group response."""
    id: int
    sort_order: int
    name: str
    can_match_queues: List[str]
    can_transfer_queues: List[str]
    can_use_groups: List[str]
    disabled: bool
    created_by: str
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class MoveRequest(BaseModel):
    """Schema for moving a group or rule within its ordering."""
    offset: int = Field(..., description="Places to move; negative moves earlier")


class OperationResponse(BaseModel):
    """Schema for the result of a create, update, delete or move."""
    ok: bool
    message: str
    item_id: Optional[int] = None
    messages: List[str] = Field(default_factory=list)
