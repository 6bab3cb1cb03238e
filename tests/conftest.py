"""
Pytest configuration and fixtures.

Provides an in-memory test database, the kind registry, factories for rule
groups and filter rules, and an API client.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ticketfilter.database import Base, get_db
from ticketfilter.domain import (
    EventContext,
    InMemoryTicketGateway,
    KindRegistry,
    Ticket,
    TriggerType,
)
from ticketfilter.services import FilterRuleManager, RuleGroupManager

# In-memory database shared by every session of one test
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def db_engine():
    """Create test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Provide a clean database session for each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def registry():
    """Registry with the built-in condition and action kinds."""
    return KindRegistry()


@pytest.fixture
def group_manager(db_session):
    return RuleGroupManager(db_session)


@pytest.fixture
def rule_manager(db_session, registry):
    return FilterRuleManager(db_session, registry)


@pytest.fixture
def make_group(group_manager):
    """Factory creating a rule group scoped to the test queues and groups."""
    def _make(name="Support filtering", **kwargs):
        kwargs.setdefault("can_match_queues", ["General", "Support"])
        kwargs.setdefault("can_transfer_queues", ["Support", "Technical"])
        kwargs.setdefault("can_use_groups", ["SD", "Support Team"])
        result = group_manager.create_group(name, "test_suite", **kwargs)
        assert result.ok, result.message
        return group_manager.get_group(result.item_id)
    return _make


@pytest.fixture
def make_rule(rule_manager):
    """Factory creating a processing rule, or a group condition."""
    def _make(group, name="Rule", group_condition=False, **kwargs):
        if group_condition:
            result = rule_manager.add_group_condition(group.id, name, "test_suite", **kwargs)
        else:
            result = rule_manager.add_filter_rule(group.id, name, "test_suite", **kwargs)
        assert result.ok, result.message
        return rule_manager.get_rule(result.item_id)
    return _make


@pytest.fixture
def ticket():
    """A new ticket created in the Support queue."""
    return Ticket(
        id=101,
        queue="Support",
        subject="urgent: help",
        body="The mail server is down again",
        headers={"X-Mailer": "Thunderbird 115", "X-Priority": "1"},
        attachments=["screenshot.png"],
        priority=10,
        status="new",
        requestors=["Alice@Example.com"],
        recipients=["support@example.org"],
        custom_fields={"Severity": ["High"], "Product": ["Mail Gateway"]}
    )


@pytest.fixture
def gateway(ticket):
    return InMemoryTicketGateway(ticket)


@pytest.fixture
def create_context(ticket):
    """Creation of the ticket in its queue."""
    return EventContext(TriggerType.CREATE, ticket.queue, ticket.queue, ticket)


@pytest.fixture
def move_context(ticket):
    """The ticket moving from General to its queue."""
    return EventContext(TriggerType.QUEUE_MOVE, "General", ticket.queue, ticket)


@pytest.fixture
def client(db_engine):
    """API client bound to the test database."""
    from fastapi.testclient import TestClient
    from ticketfilter.main import app

    Session = sessionmaker(bind=db_engine)

    def override_get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
