"""
FilterRule model.

A filter rule holds the conditions it must not meet (conflicts), the
conditions any one of which it must meet (requirements), and the actions
to perform when it matches. Conditions and actions are embedded in the
row as versioned JSON.
"""

from typing import List, Sequence

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
)
from sqlalchemy.orm import relationship

from ticketfilter.database import Base, utcnow
from ticketfilter.domain.actions import Action
from ticketfilter.domain.conditions import Condition
from ticketfilter.domain.serialization import (
    SerializationError,
    decode_actions,
    decode_conditions,
    encode_actions,
    encode_conditions,
)
from ticketfilter.logging import get_logger

logger = get_logger(__name__)


class FilterRule(Base):
    """
    FilterRule: named, ordered match rule within a rule group.

    is_group_condition splits a group's rules into two ordering scopes:
    group conditions (gate the group) and processing rules (carry actions).
    trigger_type restricts the rule to one trigger; NULL means any.

    Unreadable condition or action data is logged and treated as an empty
    list, so one corrupt rule never aborts evaluation. A group condition
    with unreadable conditions never matches.
    """
    __tablename__ = "filter_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(Integer, ForeignKey("filter_rule_groups.id", ondelete="CASCADE"), nullable=False)
    is_group_condition = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False, default="")
    trigger_type = Column(String(50), nullable=True)
    stop_if_matched = Column(Boolean, nullable=False, default=False)

    # Encoded condition / action lists (see ticketfilter.domain.serialization)
    conflicts_data = Column("conflicts", Text, nullable=False, default="")
    requirements_data = Column("requirements", Text, nullable=False, default="")
    actions_data = Column("actions", Text, nullable=False, default="")

    disabled = Column(Boolean, nullable=False, default=False)

    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    group = relationship("FilterRuleGroup", back_populates="rules")
    matches = relationship(
        "FilterRuleMatch",
        back_populates="filter_rule",
        cascade="all, delete-orphan",
        order_by="FilterRuleMatch.created_at",
    )

    __table_args__ = (
        Index("idx_filter_rules_scope", "group_id", "is_group_condition", "sort_order"),
    )

    def _decode(self, attribute: str, decoder, encoded: str) -> list:
        try:
            return decoder(encoded)
        except SerializationError as e:
            logger.rule_data_corrupt(self.id, attribute, str(e))
            return []

    @property
    def conditions_corrupt(self) -> bool:
        """Whether the stored conflicts or requirements can not be decoded."""
        for encoded in (self.conflicts_data, self.requirements_data):
            try:
                decode_conditions(encoded)
            except SerializationError:
                return True
        return False

    @property
    def conflicts(self) -> List[Condition]:
        return self._decode("conflicts", decode_conditions, self.conflicts_data)

    @conflicts.setter
    def conflicts(self, conditions: Sequence[Condition]) -> None:
        self.conflicts_data = encode_conditions(conditions)

    @property
    def requirements(self) -> List[Condition]:
        return self._decode("requirements", decode_conditions, self.requirements_data)

    @requirements.setter
    def requirements(self, conditions: Sequence[Condition]) -> None:
        self.requirements_data = encode_conditions(conditions)

    @property
    def actions(self) -> List[Action]:
        return self._decode("actions", decode_actions, self.actions_data)

    @actions.setter
    def actions(self, actions: Sequence[Action]) -> None:
        self.actions_data = encode_actions(actions)

    def __repr__(self):
        return (
            f"<FilterRule(id={self.id}, group_id={self.group_id}, name='{self.name}', "
            f"group_condition={self.is_group_condition}, sort_order={self.sort_order})>"
        )
