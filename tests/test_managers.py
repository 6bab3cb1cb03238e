"""
Manager Tests.

Tests for creating, updating and deleting rule groups and filter rules,
including validation and the audit trail.
"""

import pytest

from ticketfilter.domain import Action, ActionKind, Condition, ConditionKind
from ticketfilter.models import (
    AuditEvent,
    AuditEventType,
    FilterRule,
    FilterRuleGroup,
    FilterRuleMatch,
    normalize_id_list,
)
from ticketfilter.services import MatchHistory

URGENT = Condition(ConditionKind.SUBJECT_CONTAINS, ("urgent",))


def audit_events(db_session, aggregate_type, aggregate_id):
    return (
        db_session.query(AuditEvent)
        .filter(
            AuditEvent.aggregate_type == aggregate_type,
            AuditEvent.aggregate_id == aggregate_id
        )
        .order_by(AuditEvent.id)
        .all()
    )


class TestRuleGroupManager:

    def test_create_group(self, group_manager, db_session):
        result = group_manager.create_group(
            "Inbound", "admin", can_match_queues="General, Support", can_use_groups=["SD"]
        )

        assert result.ok is True
        assert result.message == f"Filter rule group {result.item_id} created"
        group = group_manager.get_group(result.item_id)
        assert group.sort_order == 1
        assert group.can_match_queues == ["General", "Support"]
        assert group.can_transfer_queues == []
        assert group.can_use_groups == ["SD"]

        events = audit_events(db_session, "filter_rule_group", group.id)
        assert [e.event_type for e in events] == [AuditEventType.FILTER_RULE_GROUP_CREATED]
        assert events[0].actor == "admin"
        assert events[0].event_data["name"] == "Inbound"

    def test_name_is_required(self, group_manager, db_session):
        result = group_manager.create_group("  ", "admin")

        assert result.ok is False
        assert result.message == "Name is required"
        assert db_session.query(FilterRuleGroup).count() == 0

    def test_rename(self, make_group, group_manager, db_session):
        group = make_group("Old name")

        result = group_manager.set_name(group.id, "New name", "admin")

        assert result == (True, "Filter rule group updated", group.id)
        assert group_manager.get_group(group.id).updated_by == "admin"
        event = audit_events(db_session, "filter_rule_group", group.id)[-1]
        assert event.event_type == AuditEventType.FILTER_RULE_GROUP_UPDATED
        assert event.event_data == {"field": "name", "old_value": "Old name", "new_value": "New name"}

    def test_same_value_is_no_change(self, make_group, group_manager, db_session):
        group = make_group("Same")

        result = group_manager.set_name(group.id, "Same", "admin")

        assert result.ok is True
        assert result.message == "No change made"
        assert len(audit_events(db_session, "filter_rule_group", group.id)) == 1

    def test_disable_and_enable(self, make_group, group_manager, db_session):
        group = make_group()

        assert group_manager.set_disabled(group.id, True, "admin").message == "Filter rule group disabled"
        assert group_manager.set_disabled(group.id, False, "admin").message == "Filter rule group enabled"

        events = audit_events(db_session, "filter_rule_group", group.id)
        assert [e.event_type for e in events[1:]] == [
            AuditEventType.FILTER_RULE_GROUP_DISABLED,
            AuditEventType.FILTER_RULE_GROUP_ENABLED,
        ]

    def test_scope_is_normalised(self, make_group, group_manager):
        group = make_group()

        group_manager.set_can_transfer_queues(group.id, "Technical,,Technical", "admin")

        assert group_manager.get_group(group.id).can_transfer_queues == ["Technical"]

    def test_missing_group(self, group_manager):
        result = group_manager.set_name(404, "Nope", "admin")

        assert result.ok is False
        assert result.message == "Filter rule group not found"


class TestFilterRuleCreation:

    def test_create_rule(self, make_group, rule_manager, db_session):
        group = make_group()

        result = rule_manager.add_filter_rule(
            group.id, "Escalate", "admin",
            trigger_type="Create",
            stop_if_matched=True,
            requirements=[URGENT],
            actions=[Action(ActionKind.QUEUE_SET, "Technical")]
        )

        assert result.ok is True
        assert result.message == f"Filter rule {result.item_id} created"
        rule = rule_manager.get_rule(result.item_id)
        assert rule.is_group_condition is False
        assert rule.trigger_type == "Create"
        assert rule.requirements == [URGENT]
        assert rule.actions == [Action(ActionKind.QUEUE_SET, "Technical")]
        assert rule in group.filter_rules

        event = audit_events(db_session, "filter_rule", rule.id)[0]
        assert event.event_type == AuditEventType.FILTER_RULE_CREATED
        assert event.event_data["group_id"] == group.id

    def test_group_condition(self, make_group, rule_manager):
        group = make_group()

        result = rule_manager.add_group_condition(
            group.id, "In support", "admin",
            requirements=[Condition(ConditionKind.IN_QUEUE, ("Support",))]
        )

        rule = rule_manager.get_rule(result.item_id)
        assert rule.is_group_condition is True
        assert group.group_conditions == [rule]
        assert group.filter_rules == []

    @pytest.mark.parametrize("kwargs,error", [
        ({"requirements": [Condition(ConditionKind.IN_QUEUE, ("Billing",))]},
         "Queue 'Billing' is not one this group can match"),
        ({"actions": [Action(ActionKind.QUEUE_SET, "Billing")]},
         "Queue 'Billing' is not one this group can move tickets to"),
        ({"actions": [Action(ActionKind.CC_ADD_GROUP, "Sales")]},
         "Group 'Sales' is not one this group can use"),
        ({"actions": [Action(ActionKind.NOTIFY_GROUP, "Hi", notify="Sales")]},
         "Group 'Sales' is not one this group can use"),
        ({"actions": [Action(ActionKind.NOTIFY_EMAIL, "Hi")]},
         "Action 'NotifyEmail' requires a recipient"),
        ({"actions": [Action(ActionKind.PRIORITY_SET, "high")]},
         "Action 'PrioritySet' requires a number, got 'high'"),
        ({"actions": [Action(ActionKind.CC_ADD, "not-an-address")]},
         "Action 'CcAdd' requires an email address, got 'not-an-address'"),
        ({"actions": [Action(ActionKind.CUSTOM_FIELD_SET, "Low")]},
         "Action 'CustomFieldSet' requires a custom field"),
        ({"actions": [Action("EscalateToManager")]},
         "Unknown action type 'EscalateToManager'"),
        ({"requirements": [Condition("TicketIsVip")]},
         "Unknown condition type 'TicketIsVip'"),
        ({"requirements": [Condition(ConditionKind.PRIORITY_OVER, ("ten",))]},
         "Condition 'PriorityOver' requires a number, got 'ten'"),
        ({"conflicts": [Condition(ConditionKind.SUBJECT_CONTAINS)]},
         "Condition 'SubjectContains' requires at least one value"),
        ({"trigger_type": "Create", "requirements": [Condition(ConditionKind.TO_QUEUE, ("Support",))]},
         "Condition 'ToQueue' can not be used with trigger type Create"),
        ({"trigger_type": "Delete"},
         "Invalid trigger type 'Delete'"),
    ])
    def test_invalid_rule_is_rejected(self, make_group, rule_manager, db_session, kwargs, error):
        group = make_group()

        result = rule_manager.add_filter_rule(group.id, "Invalid", "admin", **kwargs)

        assert result.ok is False
        assert result.message == error
        assert db_session.query(FilterRule).count() == 0

    def test_group_condition_can_not_have_actions(self, make_group, rule_manager):
        group = make_group()

        result = rule_manager.create_rule(
            group.id, True, "Gate", "admin", actions=[Action(ActionKind.PRIORITY_SET, "5")]
        )

        assert result.ok is False
        assert result.message == "Group conditions can not have actions"

    def test_missing_group(self, rule_manager):
        result = rule_manager.add_filter_rule(999, "Orphan", "admin")

        assert result.ok is False
        assert result.message == "Filter rule group not found"


class TestFilterRuleUpdates:

    def test_set_requirements(self, make_group, make_rule, rule_manager, db_session):
        group = make_group()
        rule = make_rule(group)

        result = rule_manager.set_requirements(rule.id, [URGENT], "admin")

        assert result.message == "Filter rule updated"
        assert rule_manager.get_rule(rule.id).requirements == [URGENT]
        event = audit_events(db_session, "filter_rule", rule.id)[-1]
        assert event.event_data["field"] == "requirements"

    def test_invalid_requirements_leave_rule_unchanged(self, make_group, make_rule, rule_manager):
        group = make_group()
        rule = make_rule(group, requirements=[URGENT])

        result = rule_manager.set_requirements(
            rule.id, [Condition(ConditionKind.IN_QUEUE, ("Billing",))], "admin"
        )

        assert result.ok is False
        assert rule_manager.get_rule(rule.id).requirements == [URGENT]

    def test_set_actions_on_group_condition(self, make_group, make_rule, rule_manager):
        group = make_group()
        condition = make_rule(group, group_condition=True)

        result = rule_manager.set_actions(condition.id, [Action(ActionKind.REPLY, "Hi")], "admin")

        assert result.ok is False

    def test_trigger_type_change_revalidates_conditions(self, make_group, make_rule, rule_manager):
        group = make_group()
        rule = make_rule(group, requirements=[Condition(ConditionKind.FROM_QUEUE, ("General",))])

        result = rule_manager.set_trigger_type(rule.id, "Create", "admin")

        assert result.ok is False
        assert rule_manager.set_trigger_type(rule.id, "QueueMove", "admin").ok is True

    def test_disable_rule(self, make_group, make_rule, rule_manager, db_session):
        group = make_group()
        rule = make_rule(group)

        result = rule_manager.set_disabled(rule.id, True, "admin")

        assert result.message == "Filter rule disabled"
        event = audit_events(db_session, "filter_rule", rule.id)[-1]
        assert event.event_type == AuditEventType.FILTER_RULE_DISABLED

    def test_stop_flag(self, make_group, make_rule, rule_manager):
        group = make_group()
        rule = make_rule(group)

        assert rule_manager.set_stop_if_matched(rule.id, True, "admin").ok is True
        assert rule_manager.get_rule(rule.id).stop_if_matched is True


class TestStagedUpdates:

    def test_staged_changes_commit_together(self, make_group, make_rule, rule_manager, db_session):
        group = make_group()
        rule = make_rule(group)

        assert rule_manager.set_name(rule.id, "Urgent", "admin", commit=False).ok is True
        assert rule_manager.set_requirements(rule.id, [URGENT], "admin", commit=False).ok is True
        result = rule_manager.commit_changes(rule.id)

        assert result.message == "Filter rule updated"
        db_session.rollback()
        rule = rule_manager.get_rule(rule.id)
        assert rule.name == "Urgent"
        assert rule.requirements == [URGENT]
        events = audit_events(db_session, "filter_rule", rule.id)
        assert [e.event_data.get("field") for e in events[1:]] == ["name", "requirements"]

    def test_rejected_change_discards_staged_ones(self, make_group, make_rule, rule_manager, db_session):
        group = make_group()
        rule = make_rule(group)

        rule_manager.set_name(rule.id, "Renamed", "admin", commit=False)
        result = rule_manager.set_requirements(
            rule.id, [Condition(ConditionKind.IN_QUEUE, ("Billing",))], "admin", commit=False
        )

        assert result.ok is False
        assert rule_manager.commit_changes(rule.id).message == "No change made"
        assert rule_manager.get_rule(rule.id).name == "Rule"
        assert len(audit_events(db_session, "filter_rule", rule.id)) == 1

    def test_nothing_staged(self, make_group, group_manager):
        group = make_group()

        assert group_manager.set_name(group.id, group.name, "admin", commit=False).message == "No change made"
        assert group_manager.commit_changes(group.id).message == "No change made"


class TestDeletion:

    def test_delete_rule_renumbers_siblings(self, make_group, make_rule, rule_manager, db_session):
        group = make_group()
        make_rule(group, "A")
        second = make_rule(group, "B")
        third = make_rule(group, "C")
        MatchHistory(db_session).record_match(second, 101)
        db_session.commit()
        second_id = second.id

        result = rule_manager.delete_rule(second_id, "admin")

        assert result.ok is True
        assert [r.sort_order for r in rule_manager.list_rules(group.id, False)] == [1, 2]
        assert third.sort_order == 2
        assert db_session.query(FilterRuleMatch).count() == 0
        event = audit_events(db_session, "filter_rule", second_id)[-1]
        assert event.event_type == AuditEventType.FILTER_RULE_DELETED
        assert event.event_data["match_count"] == 1

    def test_delete_group_removes_rules_and_matches(self, make_group, make_rule,
                                                    group_manager, db_session):
        first = make_group("First")
        second = make_group("Second")
        rule = make_rule(first, requirements=[URGENT])
        make_rule(first, "Gate", group_condition=True)
        MatchHistory(db_session).record_match(rule, 101)
        db_session.commit()
        first_id = first.id

        result = group_manager.delete_group(first_id, "admin")

        assert result == (True, f"Filter rule group {first_id} deleted", first_id)
        assert db_session.query(FilterRule).count() == 0
        assert db_session.query(FilterRuleMatch).count() == 0
        assert second.sort_order == 1

        events = audit_events(db_session, "filter_rule_group", first_id)
        assert events[-1].event_type == AuditEventType.FILTER_RULE_GROUP_DELETED
        assert events[-1].event_data["rule_count"] == 2

    def test_audit_trail_outlives_rule(self, make_group, make_rule, rule_manager, db_session):
        group = make_group()
        rule = make_rule(group)
        rule_id = rule.id

        rule_manager.delete_rule(rule_id, "admin")

        assert len(audit_events(db_session, "filter_rule", rule_id)) == 2


class TestNormalizeIdList:

    @pytest.mark.parametrize("value,expected", [
        (None, []),
        ("", []),
        ("3, 1,2", ["1", "2", "3"]),
        ([10, 2, "2"], ["2", "10"]),
        (["Support", "General", " "], ["General", "Support"]),
        (["5", "General"], ["5", "General"]),
    ])
    def test_normalize(self, value, expected):
        assert normalize_id_list(value) == expected
