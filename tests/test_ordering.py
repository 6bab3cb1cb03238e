"""
Ordering Tests.

Tests for sort order assignment and moving groups and rules within their
ordering scope.
"""

from types import SimpleNamespace

import pytest

from ticketfilter.domain.ordering import OrderingError, next_sort_order, swap_position


def items(*ids):
    return [SimpleNamespace(id=i) for i in ids]


class TestSwapPosition:

    def test_swap_with_previous(self):
        assert [i.id for i in swap_position(items(1, 2, 3), 2, -1)] == [2, 1, 3]

    def test_swap_by_larger_offset(self):
        assert [i.id for i in swap_position(items(1, 2, 3, 4), 1, 3)] == [4, 2, 3, 1]

    def test_input_is_not_modified(self):
        original = items(1, 2)

        swap_position(original, 1, 1)

        assert [i.id for i in original] == [1, 2]

    def test_missing_item(self):
        with pytest.raises(OrderingError, match="Failed to find current position"):
            swap_position(items(1, 2), 9, 1)

    def test_past_top(self):
        with pytest.raises(OrderingError, match="already at the top"):
            swap_position(items(1, 2), 1, -1)

    def test_past_bottom(self):
        with pytest.raises(OrderingError, match="already at the bottom"):
            swap_position(items(1, 2), 2, 1)

    def test_next_sort_order(self):
        assert next_sort_order([]) == 1
        assert next_sort_order([3, 1, 2]) == 4


class TestRuleOrdering:

    def test_rules_are_appended(self, make_group, make_rule):
        group = make_group()
        rules = [make_rule(group, f"Rule {n}") for n in range(3)]

        assert [r.sort_order for r in rules] == [1, 2, 3]

    def test_move_third_of_five_up(self, make_group, make_rule, rule_manager):
        """Positions 2 and 3 swap; the rest keep their places."""
        group = make_group()
        rules = [make_rule(group, f"Rule {n}") for n in range(1, 6)]

        result = rule_manager.move(rules[2].id, -1)

        assert result.ok is True
        assert result.message == "Moved"
        ordered = rule_manager.list_rules(group.id, is_group_condition=False)
        assert [r.name for r in ordered] == ["Rule 1", "Rule 3", "Rule 2", "Rule 4", "Rule 5"]
        assert [r.sort_order for r in ordered] == [1, 2, 3, 4, 5]

    def test_move_up_at_top_fails(self, make_group, make_rule, rule_manager):
        group = make_group()
        first = make_rule(group, "First")
        make_rule(group, "Second")

        result = rule_manager.move_up(first.id)

        assert result.ok is False
        assert result.message == "Can not move up. It's already at the top"
        assert rule_manager.get_rule(first.id).sort_order == 1

    def test_move_down_at_bottom_fails(self, make_group, make_rule, rule_manager):
        group = make_group()
        make_rule(group, "First")
        last = make_rule(group, "Second")

        result = rule_manager.move_down(last.id)

        assert result.ok is False
        assert "already at the bottom" in result.message

    def test_zero_offset(self, make_group, make_rule, rule_manager):
        group = make_group()
        rule = make_rule(group)

        assert rule_manager.move(rule.id, 0) == (True, "Not moved", rule.id)

    def test_missing_rule(self, rule_manager):
        result = rule_manager.move_up(999)

        assert result.ok is False
        assert result.message == "Failed to find current position"

    def test_group_conditions_have_their_own_scope(self, make_group, make_rule, rule_manager):
        group = make_group()
        condition = make_rule(group, "Condition", group_condition=True)
        rule = make_rule(group, "Rule")

        assert condition.sort_order == 1
        assert rule.sort_order == 1
        assert rule_manager.move_up(rule.id).ok is False

    def test_groups_have_independent_scopes(self, make_group, make_rule):
        first = make_group("First")
        second = make_group("Second")
        make_rule(first, "One")

        assert make_rule(second, "Two").sort_order == 1

    def test_moves_are_not_audited(self, make_group, make_rule, rule_manager, db_session):
        from ticketfilter.models import AuditEvent

        group = make_group()
        make_rule(group, "First")
        second = make_rule(group, "Second")
        before = db_session.query(AuditEvent).count()

        rule_manager.move_up(second.id)

        assert db_session.query(AuditEvent).count() == before


class TestGroupOrdering:

    def test_groups_are_appended(self, make_group):
        assert [make_group(name).sort_order for name in ("A", "B", "C")] == [1, 2, 3]

    def test_move_group_down(self, make_group, group_manager):
        first = make_group("A")
        make_group("B")
        make_group("C")

        result = group_manager.move_down(first.id)

        assert result.ok is True
        assert [g.name for g in group_manager.list_groups()] == ["B", "A", "C"]

    def test_move_group_up_at_top_fails(self, make_group, group_manager):
        group = make_group("A")
        make_group("B")

        result = group_manager.move_up(group.id)

        assert result.ok is False
        assert result.message == "Can not move up. It's already at the top"

    def test_missing_group(self, group_manager):
        assert group_manager.move(42, 1).ok is False

    def test_disabled_groups_keep_their_place(self, make_group, group_manager):
        make_group("A")
        middle = make_group("B", disabled=True)
        last = make_group("C")

        group_manager.move_up(last.id)

        assert [g.name for g in group_manager.list_groups()] == ["A", "C", "B"]
        assert [g.name for g in group_manager.list_groups(include_disabled=False)] == ["A", "C"]
        assert middle.sort_order == 3
