"""
Pydantic schemas for Evaluation API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ticketfilter.domain.ticket import TriggerType
from ticketfilter.schemas.filter_rule import ActionSchema, ConditionSchema


class TicketPayload(BaseModel):
    """Snapshot of the host ticket an event is about."""
    id: int
    queue: str
    subject: str = ""
    body: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    attachments: List[str] = Field(default_factory=list)
    priority: int = 0
    status: str = "new"
    requestors: List[str] = Field(default_factory=list)
    recipients: List[str] = Field(default_factory=list)
    cc: List[str] = Field(default_factory=list)
    admin_cc: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, List[str]] = Field(default_factory=dict)


class EvaluationRequest(BaseModel):
    """Schema for evaluating an event with an explicit trigger type."""
    trigger_type: TriggerType
    from_queue: Optional[str] = Field(None, description="Queue before the event (the creation queue for Create)")
    to_queue: Optional[str] = Field(None, description="Queue after the event")
    ticket: TicketPayload


class TicketEventRequest(BaseModel):
    """Schema for a raw host transaction (Create, or Set on Queue)."""
    transaction_type: str = Field(..., description="Host transaction type (e.g., 'Create', 'Set')")
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    ticket: TicketPayload


class ValueCheckResponse(BaseModel):
    target: Optional[str] = None
    matched: bool


class ConditionResultResponse(BaseModel):
    condition: ConditionSchema
    matched: bool
    checks: List[ValueCheckResponse]


class RuleMatchResponse(BaseModel):
    """How one rule handled the event."""
    rule_id: int
    name: str
    matched: bool
    conflicts: List[ConditionResultResponse]
    requirements: List[ConditionResultResponse]
    actions: List[ActionSchema]


class GroupCheckResponse(BaseModel):
    """How one rule group handled the event."""
    group_id: int
    name: str
    eligible: bool
    error: Optional[str] = None
    group_conditions: List[RuleMatchResponse]
    filter_rules: List[RuleMatchResponse]


class ActionOutcomeResponse(BaseModel):
    action: ActionSchema
    ok: bool
    message: str


class TicketChangeResponse(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class NotificationResponse(BaseModel):
    channel: str
    recipient: Optional[str] = None
    subject: str
    body: str


class EvaluationResponse(BaseModel):
    """
    Schema for evaluation response.

    changes and outbox are what the host should apply to its ticket and
    deliver; ticket is the resulting snapshot.
    """
    ok: bool
    applicable: bool = True
    trigger_type: Optional[TriggerType] = None
    groups: List[GroupCheckResponse] = Field(default_factory=list)
    outcomes: List[ActionOutcomeResponse] = Field(default_factory=list)
    changes: List[TicketChangeResponse] = Field(default_factory=list)
    outbox: List[NotificationResponse] = Field(default_factory=list)
    matches_recorded: bool = False
    ticket: TicketPayload


class PreviewResponse(BaseModel):
    """Schema for preview response. Nothing was recorded or performed."""
    trigger_type: TriggerType
    groups: List[GroupCheckResponse]
    actions: List[ActionSchema]
