"""
Rule Matching Tests.

Tests for matching a single filter rule against an event: conflicts,
requirements, trigger restriction and the disabled flag.
"""

from types import SimpleNamespace

from ticketfilter.domain import (
    Action,
    ActionKind,
    Condition,
    ConditionKind,
    EventContext,
    TriggerType,
    match_rule,
)
from ticketfilter.services import RuleEvaluator


def plain_rule(conflicts=(), requirements=(), actions=(), **kwargs):
    """Plain object with the attributes matching reads from a rule."""
    fields = dict(
        id=1,
        disabled=False,
        trigger_type=None,
        is_group_condition=False,
        stop_if_matched=False,
        conflicts=list(conflicts),
        requirements=list(requirements),
        actions=list(actions),
    )
    fields.update(kwargs)
    return SimpleNamespace(**fields)


URGENT = Condition(ConditionKind.SUBJECT_CONTAINS, ("urgent",))
INVOICE = Condition(ConditionKind.SUBJECT_CONTAINS, ("invoice",))
SERVER = Condition(ConditionKind.BODY_CONTAINS, ("server",))
TO_TECHNICAL = Action(ActionKind.QUEUE_SET, "Technical")


class TestConflictsAndRequirements:

    def test_requirement_match(self, create_context, registry):
        rule = plain_rule(requirements=[URGENT], actions=[TO_TECHNICAL])

        result = match_rule(rule, create_context, registry)

        assert result.matched is True
        assert result.actions == [TO_TECHNICAL]
        assert result.matched_conditions == [URGENT]

    def test_requirements_are_or_combined(self, create_context, registry):
        """One matching requirement is enough."""
        rule = plain_rule(requirements=[INVOICE, SERVER])

        assert match_rule(rule, create_context, registry).matched is True

    def test_no_requirement_matches(self, create_context, registry):
        rule = plain_rule(requirements=[INVOICE], actions=[TO_TECHNICAL])

        result = match_rule(rule, create_context, registry)

        assert result.matched is False
        assert result.actions == []

    def test_conflict_wins_over_requirement(self, create_context, registry):
        """A matching conflict rejects the rule even if a requirement matches."""
        rule = plain_rule(conflicts=[SERVER], requirements=[URGENT])

        result = match_rule(rule, create_context, registry)

        assert result.matched is False
        assert result.conflicted is True
        assert result.requirements == []

    def test_conflicts_are_or_combined(self, create_context, registry):
        rule = plain_rule(conflicts=[INVOICE, SERVER], requirements=[URGENT])

        assert match_rule(rule, create_context, registry).matched is False

    def test_non_matching_conflicts_allow_match(self, create_context, registry):
        rule = plain_rule(conflicts=[INVOICE], requirements=[URGENT])

        assert match_rule(rule, create_context, registry).matched is True


class TestRuleApplicability:

    def test_disabled_rule_never_matches(self, create_context, registry):
        rule = plain_rule(requirements=[URGENT], disabled=True)

        assert match_rule(rule, create_context, registry).matched is False

    def test_disabled_rule_matches_when_included(self, create_context, registry):
        rule = plain_rule(requirements=[URGENT], disabled=True)

        assert match_rule(rule, create_context, registry, include_disabled=True).matched is True

    def test_trigger_type_restriction(self, create_context, move_context, registry):
        rule = plain_rule(requirements=[URGENT], trigger_type="QueueMove")

        assert match_rule(rule, create_context, registry).matched is False
        assert match_rule(rule, move_context, registry).matched is True

    def test_group_condition_carries_no_actions(self, create_context, registry):
        rule = plain_rule(requirements=[URGENT], actions=[TO_TECHNICAL], is_group_condition=True)

        result = match_rule(rule, create_context, registry)

        assert result.matched is True
        assert result.actions == []


class TestEmptyRequirements:
    """A rule with no requirements follows the configured policy."""

    def test_matches_by_default(self, create_context, registry):
        rule = plain_rule(actions=[TO_TECHNICAL])

        assert match_rule(rule, create_context, registry).matched is True

    def test_conflict_still_rejects(self, create_context, registry):
        rule = plain_rule(conflicts=[URGENT])

        assert match_rule(rule, create_context, registry).matched is False

    def test_policy_can_be_turned_off(self, create_context, registry):
        rule = plain_rule(actions=[TO_TECHNICAL])

        result = match_rule(rule, create_context, registry, empty_requirements_match=False)

        assert result.matched is False

    def test_evaluator_passes_policy_through(self, create_context, registry):
        rule = plain_rule()

        assert RuleEvaluator(registry, empty_requirements_match=True).match(rule, create_context).matched
        assert not RuleEvaluator(registry, empty_requirements_match=False).match(rule, create_context).matched


class TestMatchDetail:

    def test_checking_stops_early_by_default(self, create_context, registry):
        rule = plain_rule(requirements=[URGENT, SERVER])

        result = match_rule(rule, create_context, registry)

        assert [r.condition for r in result.requirements] == [URGENT]

    def test_include_all_reports_every_condition(self, create_context, registry):
        """include_all changes the detail, never the outcome."""
        rule = plain_rule(conflicts=[SERVER, INVOICE], requirements=[URGENT, SERVER])

        result = match_rule(rule, create_context, registry, include_all=True)

        assert result.matched is False
        assert [r.matched for r in result.conflicts] == [True, False]
        assert [r.matched for r in result.requirements] == [True, True]

    def test_queue_move_scenario(self, ticket, registry):
        """A move from General into Support is picked up by a FromQueue rule."""
        context = EventContext(TriggerType.QUEUE_MOVE, "General", "Support", ticket)
        rule = plain_rule(
            requirements=[Condition(ConditionKind.FROM_QUEUE, ("General",))],
            actions=[Action(ActionKind.PRIORITY_ADD, "5")],
            trigger_type="QueueMove",
        )

        result = match_rule(rule, context, registry)

        assert result.matched is True
        assert result.actions == [Action(ActionKind.PRIORITY_ADD, "5")]


class TestStoredRules:

    def test_corrupt_data_is_treated_as_empty(self, make_group, make_rule, db_session,
                                              create_context, registry, caplog):
        """Undecodable conflicts are logged and ignored."""
        group = make_group()
        rule = make_rule(group, requirements=[URGENT], actions=[TO_TECHNICAL])
        rule.conflicts_data = "{broken"
        db_session.commit()

        assert rule.conflicts == []
        assert match_rule(rule, create_context, registry).matched is True
        assert f"Failed to decode conflicts of filter rule {rule.id}" in caplog.text

    def test_corrupt_group_condition_never_matches(self, make_group, make_rule, db_session,
                                                   ticket, registry):
        """A group whose only group condition is unreadable applies to nothing."""
        group = make_group()
        gate = make_rule(group, "In support", group_condition=True,
                         requirements=[Condition(ConditionKind.IN_QUEUE, ("Support",))])
        gate.requirements_data = "{broken"
        db_session.commit()
        ticket.queue = "General"
        context = EventContext(TriggerType.CREATE, "General", "General", ticket)

        eligible, checked = RuleEvaluator(registry).check_group_conditions(group, context)

        assert gate.conditions_corrupt is True
        assert match_rule(gate, context, registry).matched is False
        assert eligible is False
        assert [m.matched for m in checked] == [False]

    def test_readable_group_condition_is_not_corrupt(self, make_group, make_rule):
        group = make_group()
        gate = make_rule(group, "Anything", group_condition=True)

        assert gate.conditions_corrupt is False


class TestResolvedTicketRule:
    """An urgent rule that must not fire on resolved tickets."""

    RESOLVED = Condition(ConditionKind.STATUS_IS, ("resolved",))

    def test_matches_new_ticket(self, create_context, registry):
        rule = plain_rule(conflicts=[self.RESOLVED], requirements=[URGENT], stop_if_matched=True)

        result = match_rule(rule, create_context, registry)

        assert result.matched is True
        assert result.conflicts[0].matched is False

    def test_resolved_ticket_conflicts(self, ticket, create_context, registry):
        ticket.subject = "urgent"
        ticket.status = "resolved"
        rule = plain_rule(conflicts=[self.RESOLVED], requirements=[URGENT], stop_if_matched=True)

        result = match_rule(rule, create_context, registry)

        assert result.matched is False
        assert result.conflicted is True
