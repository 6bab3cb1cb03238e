"""
Match History Tests.
"""

from ticketfilter.services import MatchHistory


class TestMatchHistory:

    def test_record_is_not_committed(self, make_group, make_rule, db_session):
        """Recording joins the caller's transaction."""
        rule = make_rule(make_group())
        history = MatchHistory(db_session)

        history.record_match(rule, 101)
        db_session.rollback()

        assert history.for_ticket(101) == []

    def test_for_rule_most_recent_first(self, make_group, make_rule, db_session):
        rule = make_rule(make_group())
        history = MatchHistory(db_session)
        for ticket_id in (101, 102, 103):
            history.record_match(rule, ticket_id)
        db_session.commit()

        assert [m.ticket_id for m in history.for_rule(rule.id)] == [103, 102, 101]
        assert [m.ticket_id for m in history.for_rule(rule.id, limit=2)] == [103, 102]

    def test_for_ticket(self, make_group, make_rule, db_session):
        group = make_group()
        first = make_rule(group, "First")
        second = make_rule(group, "Second")
        history = MatchHistory(db_session)
        history.record_match(first, 101)
        history.record_match(second, 101)
        history.record_match(second, 202)
        db_session.commit()

        matches = history.for_ticket(101)

        assert {m.filter_rule_id for m in matches} == {first.id, second.id}
        assert all(m.filter_rule is not None for m in matches)
