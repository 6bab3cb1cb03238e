"""
SQLAlchemy ORM models for the ticket filter engine.

Import all models here to ensure they're registered with Base.metadata.
This is required for Alembic autogenerate to work correctly.
"""

from ticketfilter.models.rule_group import FilterRuleGroup, normalize_id_list
from ticketfilter.models.filter_rule import FilterRule
from ticketfilter.models.match import FilterRuleMatch
from ticketfilter.models.audit import AuditEvent, AuditEventType

__all__ = [
    # Rules
    "FilterRuleGroup",
    "FilterRule",
    "normalize_id_list",
    # History
    "FilterRuleMatch",
    # Audit
    "AuditEvent",
    "AuditEventType",
]
