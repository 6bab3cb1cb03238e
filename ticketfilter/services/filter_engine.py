"""
Filter Engine Service.

Drives evaluation of one ticket event: every enabled rule group in order,
then the collected actions, ticket changes first and notifications last.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ticketfilter.config import settings
from ticketfilter.domain.actions import Action, ActionOutcome
from ticketfilter.domain.registry import KindRegistry, build_default_registry
from ticketfilter.domain.ticket import (
    EventContext,
    Ticket,
    TicketEvent,
    TicketGateway,
    TriggerType,
)
from ticketfilter.logging import get_logger
from ticketfilter.models import FilterRule, FilterRuleGroup
from ticketfilter.services.match_history import MatchHistory
from ticketfilter.services.rule_evaluator import GroupCheck, RuleEvaluator

logger = get_logger(__name__)


@dataclass
class EvaluationOutcome:
    """Result of evaluating one event."""
    context: EventContext
    groups: List[GroupCheck] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)  # in execution order
    outcomes: List[ActionOutcome] = field(default_factory=list)
    matches_recorded: bool = False

    @property
    def ok(self) -> bool:
        """False if any group failed or any action was not carried out."""
        return (
            all(group.error is None for group in self.groups)
            and all(outcome.ok for outcome in self.outcomes)
        )

    @property
    def matched_rules(self) -> List[FilterRule]:
        return [rule for group in self.groups for rule in group.matched_rules]


class FilterEngine:
    """
    Evaluation driver for ticket events.

    Owns a kind registry; pass one in to add third-party condition or
    action kinds.

    Example:
        >>> engine = FilterEngine(db)
        >>> gateway = InMemoryTicketGateway(ticket)
        >>> outcome = engine.evaluate(TriggerType.CREATE, "General", "General", gateway)
        >>> [change.field for change in gateway.changes]
        ['queue', 'priority']
    """

    def __init__(
        self,
        db: Session,
        registry: Optional[KindRegistry] = None,
        record_matches: Optional[bool] = None,
        empty_requirements_match: Optional[bool] = None
    ):
        """
        Initialize filter engine.

        Args:
            db: SQLAlchemy database session
            registry: Kind registry (defaults to the built-in kinds)
            record_matches: Store a match record for each matching rule
                (defaults to settings)
            empty_requirements_match: Policy for rules without requirements
                (defaults to settings)
        """
        self.db = db
        self.registry = registry or build_default_registry()
        self.record_matches = settings.record_matches if record_matches is None else record_matches
        self.evaluator = RuleEvaluator(self.registry, empty_requirements_match)
        self.history = MatchHistory(db)

    # =========================================================================
    # Host event hooks
    # =========================================================================

    def is_applicable(self, event: TicketEvent) -> bool:
        """Whether the event is a ticket creation or a queue change."""
        return self.trigger_type_for(event) is not None

    @staticmethod
    def trigger_type_for(event: TicketEvent) -> Optional[TriggerType]:
        if event.transaction_type == "Create":
            return TriggerType.CREATE
        if event.transaction_type == "Set" and event.field == "Queue":
            return TriggerType.QUEUE_MOVE
        return None

    def process_event(self, event: TicketEvent, gateway: TicketGateway) -> Optional[EvaluationOutcome]:
        """
        Evaluate a host transaction.

        Creation is evaluated with the ticket's queue as both source and
        destination; a queue change with the old and new queues.

        Returns:
            EvaluationOutcome, or None if the event is not a trigger
        """
        trigger_type = self.trigger_type_for(event)
        if trigger_type is None:
            logger.evaluation_ignored(event.transaction_type, event.field)
            return None

        if trigger_type == TriggerType.CREATE:
            queue = gateway.ticket.queue
            return self.evaluate(trigger_type, queue, queue, gateway)
        return self.evaluate(trigger_type, event.old_value, event.new_value, gateway)

    # =========================================================================
    # Evaluation
    # =========================================================================

    def load_groups(self, include_disabled: bool = False) -> List[FilterRuleGroup]:
        query = self.db.query(FilterRuleGroup)
        if not include_disabled:
            query = query.filter(FilterRuleGroup.disabled.is_(False))
        return query.order_by(FilterRuleGroup.sort_order, FilterRuleGroup.id).all()

    def evaluate(
        self,
        trigger_type: TriggerType,
        from_queue: Optional[str],
        to_queue: Optional[str],
        gateway: TicketGateway
    ) -> Optional[EvaluationOutcome]:
        """
        Evaluate an event and perform the resulting actions.

        Process:
        1. Check each enabled group in sort order; a failing group is
           logged and skipped
        2. Record a match for each matching processing rule
        3. Perform non-notification actions, then notification actions,
           each group keeping its relative order

        Args:
            trigger_type: Create or QueueMove
            from_queue: Queue before the event (the creation queue for Create)
            to_queue: Queue after the event
            gateway: Access to the host ticket

        Returns:
            EvaluationOutcome with per-group details and action outcomes,
            or None if the trigger type is not Create or QueueMove
        """
        try:
            trigger_type = TriggerType(trigger_type)
        except ValueError:
            logger.evaluation_ignored(str(trigger_type), None)
            return None

        ticket_id = gateway.ticket.id
        logger.evaluation_started(trigger_type.value, ticket_id, from_queue, to_queue)

        outcome = self._check_groups(
            trigger_type, from_queue, to_queue, gateway.ticket, record=self.record_matches
        )

        if self.record_matches:
            outcome.matches_recorded = self._commit_matches(ticket_id)

        for action in outcome.actions:
            outcome.outcomes.append(self._perform(action, gateway))

        logger.evaluation_completed(
            trigger_type.value,
            ticket_id,
            groups_applied=sum(1 for group in outcome.groups if group.eligible),
            rules_matched=len(outcome.matched_rules),
            actions_performed=sum(1 for o in outcome.outcomes if o.ok),
            actions_failed=sum(1 for o in outcome.outcomes if not o.ok)
        )
        return outcome

    def preview(
        self,
        trigger_type: TriggerType,
        from_queue: Optional[str],
        to_queue: Optional[str],
        ticket: Ticket
    ) -> EvaluationOutcome:
        """
        Show how an event would be processed.

        Disabled groups and rules are included and every condition of each
        checked rule is reported. Nothing is recorded and no action is
        performed; `actions` lists what would run, in execution order.
        """
        return self._check_groups(
            TriggerType(trigger_type), from_queue, to_queue, ticket,
            record=False, include_disabled=True, include_all=True
        )

    def _check_groups(
        self,
        trigger_type: TriggerType,
        from_queue: Optional[str],
        to_queue: Optional[str],
        ticket: Ticket,
        record: bool,
        include_disabled: bool = False,
        include_all: bool = False
    ) -> EvaluationOutcome:
        context = EventContext(trigger_type, from_queue, to_queue, ticket)
        outcome = EvaluationOutcome(context)
        collected: List[Action] = []

        for group in self.load_groups(include_disabled):
            matched: List[FilterRule] = []
            try:
                check = self.evaluator.check_group(
                    group,
                    context,
                    record_match=matched.append,
                    include_disabled=include_disabled,
                    include_all=include_all
                )
            except Exception as e:
                logger.group_failed(group.id, ticket.id, str(e))
                outcome.groups.append(GroupCheck(group, False, error=str(e)))
                continue

            outcome.groups.append(check)
            collected.extend(check.actions)
            if record:
                for rule in matched:
                    self.history.record_match(rule, ticket.id)

        outcome.actions = self.execution_order(collected)
        return outcome

    def execution_order(self, actions: List[Action]) -> List[Action]:
        """Non-notification actions first, then notifications, order kept within each."""
        changes = [a for a in actions if not a.is_notification(self.registry)]
        notifications = [a for a in actions if a.is_notification(self.registry)]
        return changes + notifications

    def _commit_matches(self, ticket_id: int) -> bool:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.matches_not_recorded(ticket_id, str(e))
            return False
        return True

    def _perform(self, action: Action, gateway: TicketGateway) -> ActionOutcome:
        result = action.perform(gateway, self.registry)
        if result.ok:
            logger.action_performed(action.kind, gateway.ticket.id, result.message)
        else:
            logger.action_failed(action.kind, gateway.ticket.id, result.message)
        return result
