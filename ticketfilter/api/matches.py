"""
Match History API Router.

Lists which filter rules matched which tickets.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ticketfilter.api.dependencies import get_rule_or_404
from ticketfilter.database import get_db
from ticketfilter.services import MatchHistory
from ticketfilter.schemas.match import FilterRuleMatchResponse

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("/rules/{rule_id}", response_model=List[FilterRuleMatchResponse])
def list_rule_matches(
    rule_id: int,
    limit: int = Query(default=100, le=500),
    db: Session = Depends(get_db)
):
    """List matches of a filter rule, most recent first."""
    get_rule_or_404(db, rule_id)
    return MatchHistory(db).for_rule(rule_id, limit=limit)


@router.get("/tickets/{ticket_id}", response_model=List[FilterRuleMatchResponse])
def list_ticket_matches(
    ticket_id: int,
    limit: int = Query(default=100, le=500),
    db: Session = Depends(get_db)
):
    """List rules that matched a ticket, most recent first."""
    return MatchHistory(db).for_ticket(ticket_id, limit=limit)
