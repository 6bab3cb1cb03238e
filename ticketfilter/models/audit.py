"""
AuditEvent model.

Audit events provide an append-only trail of changes to rule groups and
filter rules.
"""

from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, Enum as SQLEnum

from ticketfilter.database import Base, utcnow


class AuditEventType(str, PyEnum):
    """Types of audit events."""
    # Rule group lifecycle
    FILTER_RULE_GROUP_CREATED = "filter_rule_group_created"
    FILTER_RULE_GROUP_UPDATED = "filter_rule_group_updated"
    FILTER_RULE_GROUP_DISABLED = "filter_rule_group_disabled"
    FILTER_RULE_GROUP_ENABLED = "filter_rule_group_enabled"
    FILTER_RULE_GROUP_DELETED = "filter_rule_group_deleted"

    # Filter rule lifecycle
    FILTER_RULE_CREATED = "filter_rule_created"
    FILTER_RULE_UPDATED = "filter_rule_updated"
    FILTER_RULE_DISABLED = "filter_rule_disabled"
    FILTER_RULE_ENABLED = "filter_rule_enabled"
    FILTER_RULE_DELETED = "filter_rule_deleted"


class AuditEvent(Base):
    """
    AuditEvent: one logical change to a rule group or filter rule.

    Audit events are NEVER modified or deleted, and outlive the objects
    they describe. Sort order changes are not audited.
    """
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(SQLEnum(AuditEventType, name="audit_event_type", values_callable=lambda x: [e.value for e in x]), nullable=False)

    # 'filter_rule_group' or 'filter_rule'
    aggregate_type = Column(String(50), nullable=False)
    aggregate_id = Column(Integer, nullable=False)

    # Field, old and new value for updates; a snapshot for create/delete
    event_data = Column(JSON, nullable=False, default=dict)

    actor = Column(String(255), nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_audit_events_aggregate", "aggregate_type", "aggregate_id", "occurred_at"),
    )

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}', aggregate='{self.aggregate_type}:{self.aggregate_id}')>"
