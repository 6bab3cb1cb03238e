"""
FilterRuleMatch model.

Match records are an append-only history of which rule matched which
ticket, and when.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import relationship

from ticketfilter.database import Base, utcnow


class FilterRuleMatch(Base):
    """
    FilterRuleMatch: a filter rule matched an event on a ticket.

    Never modified. Deleted only together with its filter rule.
    """
    __tablename__ = "filter_rule_matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filter_rule_id = Column(Integer, ForeignKey("filter_rules.id", ondelete="CASCADE"), nullable=False)
    ticket_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    filter_rule = relationship("FilterRule", back_populates="matches")

    __table_args__ = (
        Index("idx_filter_rule_matches_rule", "filter_rule_id", "created_at"),
        Index("idx_filter_rule_matches_ticket", "ticket_id", "created_at"),
    )

    def __repr__(self):
        return f"<FilterRuleMatch(id={self.id}, rule={self.filter_rule_id}, ticket={self.ticket_id})>"
