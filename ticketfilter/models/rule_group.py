"""
FilterRuleGroup model.

A rule group gates a set of filter rules behind its own group conditions
and scopes which queues and groups those rules may refer to.
"""

from typing import Iterable, List, Union

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, JSON, String
from sqlalchemy.orm import relationship

from ticketfilter.database import Base, utcnow

IdList = Union[str, Iterable[object]]


def normalize_id_list(value: IdList) -> List[str]:
    """
    Normalise a queue or group id list.

    Accepts a comma-separated string or any iterable of ids; blanks are
    dropped and the result is de-duplicated and sorted.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    ids = {str(getattr(item, "id", item)).strip() for item in value}
    ids.discard("")
    return sorted(ids, key=lambda i: (not i.isdigit(), int(i) if i.isdigit() else 0, i))


class FilterRuleGroup(Base):
    """
    FilterRuleGroup: ordered container of filter rules.

    Holds two ordered rule collections:
    - group_conditions: rules deciding whether the group applies (OR-combined)
    - filter_rules: rules that process the ticket and carry actions

    Both are ordered by sort_order then name. Rules are created through
    the rule manager, which sets is_group_condition and the sort order.
    """
    __tablename__ = "filter_rule_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sort_order = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False, default="")

    # Permission scopes for the rules in this group (host identifiers)
    can_match_queues = Column(JSON, nullable=False, default=list)
    can_transfer_queues = Column(JSON, nullable=False, default=list)
    can_use_groups = Column(JSON, nullable=False, default=list)

    disabled = Column(Boolean, nullable=False, default=False)

    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Owns every rule for lifecycle (cascade delete)
    rules = relationship(
        "FilterRule",
        back_populates="group",
        cascade="all, delete-orphan",
    )

    group_conditions = relationship(
        "FilterRule",
        primaryjoin="and_(FilterRuleGroup.id == foreign(FilterRule.group_id), "
                    "FilterRule.is_group_condition.is_(True))",
        order_by="[FilterRule.sort_order, FilterRule.name, FilterRule.id]",
        viewonly=True,
    )

    filter_rules = relationship(
        "FilterRule",
        primaryjoin="and_(FilterRuleGroup.id == foreign(FilterRule.group_id), "
                    "FilterRule.is_group_condition.is_(False))",
        order_by="[FilterRule.sort_order, FilterRule.name, FilterRule.id]",
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_filter_rule_groups_sort_order", "sort_order"),
    )

    def can_match_queue(self, queue: str) -> bool:
        return str(queue) in (self.can_match_queues or [])

    def can_transfer_to_queue(self, queue: str) -> bool:
        return str(queue) in (self.can_transfer_queues or [])

    def can_use_group(self, group: str) -> bool:
        return str(group) in (self.can_use_groups or [])

    def __repr__(self):
        return f"<FilterRuleGroup(id={self.id}, name='{self.name}', sort_order={self.sort_order})>"
