"""
Pydantic schemas for Match History API.
"""

from datetime import datetime

from pydantic import BaseModel


class FilterRuleMatchResponse(BaseModel):
    """Schema for match record response."""
    id: int
    filter_rule_id: int
    ticket_id: int
    created_at: datetime

    class Config:
        from_attributes = True
