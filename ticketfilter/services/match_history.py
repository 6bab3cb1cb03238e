"""
Match History Service.

Records and lists which filter rules matched which tickets.
"""

from typing import List

from sqlalchemy.orm import Session

from ticketfilter.models import FilterRule, FilterRuleMatch


class MatchHistory:
    """
    Match record storage.

    Match records are append-only. record_match adds to the session
    without committing; the caller commits once per evaluation.
    """

    def __init__(self, db: Session):
        self.db = db

    def record_match(self, rule: FilterRule, ticket_id: int) -> FilterRuleMatch:
        match = FilterRuleMatch(filter_rule_id=rule.id, ticket_id=ticket_id)
        self.db.add(match)
        return match

    def for_rule(self, rule_id: int, limit: int = 100) -> List[FilterRuleMatch]:
        """Most recent matches of one rule first."""
        return (
            self.db.query(FilterRuleMatch)
            .filter(FilterRuleMatch.filter_rule_id == rule_id)
            .order_by(FilterRuleMatch.created_at.desc(), FilterRuleMatch.id.desc())
            .limit(limit)
            .all()
        )

    def for_ticket(self, ticket_id: int, limit: int = 100) -> List[FilterRuleMatch]:
        """Most recent matches on one ticket first."""
        return (
            self.db.query(FilterRuleMatch)
            .filter(FilterRuleMatch.ticket_id == ticket_id)
            .order_by(FilterRuleMatch.created_at.desc(), FilterRuleMatch.id.desc())
            .limit(limit)
            .all()
        )
