"""
Kind Registry Tests.

Tests for the built-in condition and action catalog and for registering
additional kinds.
"""

from ticketfilter.domain import (
    Action,
    ActionType,
    Condition,
    ConditionKind,
    ConditionType,
    KindRegistry,
    ValueType,
    match_rule,
)
from ticketfilter.domain.actions import ActionOutcome


def vip_conditions(translate):
    """Provider adding a condition on a custom field flag."""
    def is_vip(context, condition, value):
        return "yes" in context.ticket.custom_fields.get("VIP", [])

    return [ConditionType("TicketIsVip", translate("Ticket is VIP"), ValueType.NONE, is_vip)]


def escalation_actions(translate):
    def escalate(gateway, action):
        gateway.set_priority(99)
        return ActionOutcome(action, True, "Escalated")

    return [ActionType("Escalate", translate("Escalate"), ValueType.NONE, escalate)]


class TestBuiltinCatalog:

    def test_condition_kinds(self, registry):
        kinds = [c.kind for c in registry.condition_types()]

        assert len(kinds) == 18
        assert kinds[0] == "AlwaysMatch"
        assert set(kinds) == {kind.value for kind in ConditionKind}

    def test_action_kinds(self, registry):
        action_types = registry.action_types()

        assert len(action_types) == 22
        assert [a.kind for a in action_types if a.is_notification] == ["Reply", "NotifyEmail", "NotifyGroup"]
        assert [a.kind for a in action_types if a.requires_custom_field] == ["CustomFieldSet"]

    def test_trigger_restrictions(self, registry):
        assert [t.value for t in registry.condition_type("HasAttachment").trigger_types] == ["Create"]
        assert [t.value for t in registry.condition_type("FromQueue").trigger_types] == ["QueueMove"]
        assert registry.condition_type("StatusIs").trigger_types == ()

    def test_names_are_translated(self, registry):
        names = {c.kind: c.name for c in registry.condition_types(str.upper)}

        assert names["SubjectContains"] == "SUBJECT CONTAINS"
        assert registry.condition_type("SubjectContains").name == "Subject contains"

    def test_empty_registry(self):
        registry = KindRegistry(include_builtins=False)

        assert registry.condition_types() == []
        assert registry.action_type("QueueSet") is None


class TestRegisteredKinds:

    def test_custom_condition_is_usable(self, registry, ticket, create_context):
        registry.register_condition_provider(vip_conditions)
        ticket.custom_fields["VIP"] = ["yes"]

        assert registry.condition_types()[-1].kind == "TicketIsVip"
        assert Condition("TicketIsVip").test(create_context, registry).matched is True

    def test_custom_condition_in_rule(self, registry, create_context):
        from types import SimpleNamespace

        registry.register_condition_provider(vip_conditions)
        rule = SimpleNamespace(
            id=1, disabled=False, trigger_type=None, is_group_condition=False,
            conflicts=[Condition("TicketIsVip")],
            requirements=[Condition(ConditionKind.ALWAYS_MATCH)],
            actions=[],
        )

        assert match_rule(rule, create_context, registry).matched is True

    def test_custom_action_is_usable(self, registry, gateway):
        registry.register_action_provider(escalation_actions)

        outcome = Action("Escalate").perform(gateway, registry)

        assert outcome.ok is True
        assert gateway.ticket.priority == 99

    def test_first_registration_wins(self, registry):
        def shadowing(translate):
            return [ConditionType("SubjectContains", "Replaced", ValueType.STRING, lambda *args: True)]

        registry.register_condition_provider(shadowing)

        assert registry.condition_type("SubjectContains").name == "Subject contains"
        assert [c.name for c in registry.condition_types() if c.kind == "SubjectContains"] == ["Subject contains"]

    def test_registries_are_independent(self, registry):
        registry.register_condition_provider(vip_conditions)

        assert KindRegistry().condition_type("TicketIsVip") is None
