"""
Filter rule matching.

A rule matches an event when none of its conflicts match and at least one
of its requirements does. Conflicts always win.

CRITICAL: matching has no side effects. Recording matches and performing
actions belongs to the services layer.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ticketfilter.domain.actions import Action
from ticketfilter.domain.conditions import Condition, ConditionResult
from ticketfilter.domain.registry import KindRegistry
from ticketfilter.domain.ticket import EventContext


@dataclass
class RuleMatch:
    """
    Details of one rule checked against one event.

    Without include_all, `requirements` holds only the conditions checked
    up to the first matching requirement, and `conflicts` stops at the
    first matching conflict.
    """
    rule: Any
    matched: bool
    conflicts: List[ConditionResult] = field(default_factory=list)
    requirements: List[ConditionResult] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)

    @property
    def matched_conditions(self) -> List[Condition]:
        return [result.condition for result in self.requirements if result.matched]

    @property
    def conflicted(self) -> bool:
        return any(result.matched for result in self.conflicts)


def _test_all(
    conditions: Sequence[Condition],
    context: EventContext,
    registry: KindRegistry,
    include_all: bool
) -> List[ConditionResult]:
    results = []
    for condition in conditions:
        result = condition.test(context, registry)
        results.append(result)
        if result.matched and not include_all:
            break
    return results


def rule_applies(rule: Any, context: EventContext, include_disabled: bool = False) -> bool:
    """Whether a rule takes part in evaluating this event at all."""
    if rule.disabled and not include_disabled:
        return False
    if rule.trigger_type and rule.trigger_type != context.trigger_type.value:
        return False
    return True


def match_rule(
    rule: Any,
    context: EventContext,
    registry: KindRegistry,
    include_all: bool = False,
    include_disabled: bool = False,
    empty_requirements_match: bool = True,
    conflicts: Optional[Sequence[Condition]] = None,
    requirements: Optional[Sequence[Condition]] = None,
    actions: Optional[Sequence[Action]] = None
) -> RuleMatch:
    """
    Match a filter rule against an event.

    `rule` needs disabled, trigger_type, is_group_condition, conflicts,
    requirements and actions attributes; the three lists can be passed in
    explicitly when the caller has already decoded them. A group condition
    whose `conditions_corrupt` is true never matches.

    Args:
        rule: FilterRule (or any object with the same attributes)
        context: The event being classified
        registry: Kind registry used to resolve conditions
        include_all: Test every condition instead of stopping early; the
            matched result is unchanged
        include_disabled: Check the rule even if it is disabled
        empty_requirements_match: Whether a rule with no requirements
            matches when no conflict fires

    Returns:
        RuleMatch; `actions` is filled only for matching processing rules
    """
    if not rule_applies(rule, context, include_disabled):
        return RuleMatch(rule, False)

    # A group condition that can not be read must not open its group
    if rule.is_group_condition and getattr(rule, "conditions_corrupt", False):
        return RuleMatch(rule, False)

    conflicts = rule.conflicts if conflicts is None else conflicts
    requirements = rule.requirements if requirements is None else requirements

    conflict_results = _test_all(conflicts, context, registry, include_all)
    conflicted = any(result.matched for result in conflict_results)
    if conflicted and not include_all:
        return RuleMatch(rule, False, conflicts=conflict_results)

    requirement_results = _test_all(requirements, context, registry, include_all)
    if requirements:
        required = any(result.matched for result in requirement_results)
    else:
        required = empty_requirements_match

    match = RuleMatch(
        rule,
        required and not conflicted,
        conflicts=conflict_results,
        requirements=requirement_results,
    )
    if match.matched and not rule.is_group_condition:
        match.actions = list(rule.actions if actions is None else actions)
    return match
