"""
Rule Evaluator Service.

Group-level matching: gating a group on its group conditions, then
cascading an event through the group's processing rules.

CRITICAL: This evaluator performs no I/O of its own.
- Match recording is delegated to a callback
- Actions are collected, never performed
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ticketfilter.config import settings
from ticketfilter.domain.actions import Action
from ticketfilter.domain.matching import RuleMatch, match_rule
from ticketfilter.domain.registry import KindRegistry
from ticketfilter.domain.ticket import EventContext
from ticketfilter.logging import get_logger
from ticketfilter.models import FilterRule, FilterRuleGroup

logger = get_logger(__name__)


@dataclass
class GroupCheck:
    """How one rule group handled one event."""
    group: FilterRuleGroup
    eligible: bool
    group_conditions: List[RuleMatch] = field(default_factory=list)
    filter_rules: List[RuleMatch] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def matched_rules(self) -> List[FilterRule]:
        return [m.rule for m in self.filter_rules if m.matched]

    @property
    def stopped(self) -> bool:
        return any(m.matched and m.rule.stop_if_matched for m in self.filter_rules)


class RuleEvaluator:
    """
    Evaluates rule groups against an event.

    Rules are read through the group's ordered collections: group
    conditions are OR-combined, processing rules cascade until a matching
    rule has its stop flag set.
    """

    def __init__(self, registry: KindRegistry, empty_requirements_match: Optional[bool] = None):
        """
        Initialize rule evaluator.

        Args:
            registry: Kind registry used to resolve conditions
            empty_requirements_match: Whether a rule without requirements
                matches when no conflict fires (defaults to settings)
        """
        self.registry = registry
        if empty_requirements_match is None:
            empty_requirements_match = settings.empty_requirements_match
        self.empty_requirements_match = empty_requirements_match

    def match(
        self,
        rule: FilterRule,
        context: EventContext,
        include_all: bool = False,
        include_disabled: bool = False
    ) -> RuleMatch:
        return match_rule(
            rule,
            context,
            self.registry,
            include_all=include_all,
            include_disabled=include_disabled,
            empty_requirements_match=self.empty_requirements_match
        )

    def check_group_conditions(
        self,
        group: FilterRuleGroup,
        context: EventContext,
        include_disabled: bool = False,
        include_all: bool = False
    ) -> Tuple[bool, List[RuleMatch]]:
        """
        Decide whether a group applies to an event.

        Group conditions are tried in order and the first match makes the
        group eligible. A group without enabled group conditions never
        applies.

        Returns:
            (eligible, details of each group condition checked)
        """
        checked = []
        for rule in group.group_conditions:
            if rule.disabled and not include_disabled:
                continue
            result = self.match(rule, context, include_all, include_disabled)
            checked.append(result)
            if result.matched:
                return True, checked
        return False, checked

    def check_filter_rules(
        self,
        group: FilterRuleGroup,
        context: EventContext,
        actions: Optional[List[Action]] = None,
        record_match: Optional[Callable[[FilterRule], object]] = None,
        include_disabled: bool = False,
        include_all: bool = False
    ) -> List[RuleMatch]:
        """
        Cascade an event through a group's processing rules.

        Each matching rule's actions are appended to `actions` and, if
        given, `record_match` is called with the rule. A matching rule with
        its stop flag set ends the cascade for this group only.

        Returns:
            Details of each processing rule checked, in order
        """
        if actions is None:
            actions = []

        checked = []
        for rule in group.filter_rules:
            if rule.disabled and not include_disabled:
                continue
            result = self.match(rule, context, include_all, include_disabled)
            checked.append(result)
            if not result.matched:
                continue

            actions.extend(result.actions)
            if record_match is not None:
                record_match(rule)
            logger.rule_matched(rule.id, group.id, context.ticket.id, rule.stop_if_matched)
            if rule.stop_if_matched:
                break
        return checked

    def check_group(
        self,
        group: FilterRuleGroup,
        context: EventContext,
        record_match: Optional[Callable[[FilterRule], object]] = None,
        include_disabled: bool = False,
        include_all: bool = False
    ) -> GroupCheck:
        """Gate a group and, if eligible, run its processing rules."""
        eligible, conditions = self.check_group_conditions(
            group, context, include_disabled, include_all
        )
        check = GroupCheck(group, eligible, group_conditions=conditions)
        if not eligible:
            logger.group_skipped(group.id, context.ticket.id)
            return check

        check.filter_rules = self.check_filter_rules(
            group,
            context,
            actions=check.actions,
            record_match=record_match,
            include_disabled=include_disabled,
            include_all=include_all
        )
        return check
