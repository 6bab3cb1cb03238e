"""
Evaluations API Router.

Handles evaluating ticket events against the filter rules, and previewing
how an event would be processed.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ticketfilter.api.dependencies import get_registry
from ticketfilter.database import get_db
from ticketfilter.domain.actions import Action
from ticketfilter.domain.conditions import ConditionResult
from ticketfilter.domain.matching import RuleMatch
from ticketfilter.domain.registry import KindRegistry
from ticketfilter.domain.ticket import InMemoryTicketGateway, Ticket, TicketEvent
from ticketfilter.services import EvaluationOutcome, FilterEngine, GroupCheck
from ticketfilter.schemas.evaluation import (
    EvaluationRequest,
    EvaluationResponse,
    PreviewResponse,
    TicketEventRequest,
    TicketPayload,
)

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


def _ticket(payload: TicketPayload) -> Ticket:
    return Ticket(**payload.model_dump())


def _action(action: Action) -> dict:
    return asdict(action)


def _condition_result(result: ConditionResult) -> dict:
    return {
        "condition": {
            "kind": result.condition.kind,
            "values": list(result.condition.values),
            "custom_field": result.condition.custom_field
        },
        "matched": result.matched,
        "checks": [asdict(check) for check in result.checks]
    }


def _rule_match(match: RuleMatch) -> dict:
    return {
        "rule_id": match.rule.id,
        "name": match.rule.name,
        "matched": match.matched,
        "conflicts": [_condition_result(r) for r in match.conflicts],
        "requirements": [_condition_result(r) for r in match.requirements],
        "actions": [_action(a) for a in match.actions]
    }


def _group_check(check: GroupCheck) -> dict:
    return {
        "group_id": check.group.id,
        "name": check.group.name,
        "eligible": check.eligible,
        "error": check.error,
        "group_conditions": [_rule_match(m) for m in check.group_conditions],
        "filter_rules": [_rule_match(m) for m in check.filter_rules]
    }


def _evaluation_response(outcome: EvaluationOutcome, gateway: InMemoryTicketGateway) -> dict:
    return {
        "ok": outcome.ok,
        "applicable": True,
        "trigger_type": outcome.context.trigger_type,
        "groups": [_group_check(g) for g in outcome.groups],
        "outcomes": [
            {"action": _action(o.action), "ok": o.ok, "message": o.message}
            for o in outcome.outcomes
        ],
        "changes": [asdict(change) for change in gateway.changes],
        "outbox": [asdict(notification) for notification in gateway.outbox],
        "matches_recorded": outcome.matches_recorded,
        "ticket": asdict(gateway.ticket)
    }


@router.post("", response_model=EvaluationResponse)
def evaluate_event(
    request: EvaluationRequest,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """
    Evaluate a ticket event and perform the resulting actions.

    Actions are applied to the supplied ticket snapshot; the response
    carries the changes and messages for the host to apply and deliver.
    """
    gateway = InMemoryTicketGateway(_ticket(request.ticket))
    outcome = FilterEngine(db, registry).evaluate(
        request.trigger_type,
        request.from_queue,
        request.to_queue,
        gateway
    )
    if outcome is None:
        return {"ok": True, "applicable": False, "ticket": asdict(gateway.ticket)}
    return _evaluation_response(outcome, gateway)


@router.post("/events", response_model=EvaluationResponse)
def process_ticket_event(
    request: TicketEventRequest,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """
    Evaluate a raw host transaction.

    Only ticket creation and queue changes are evaluated; any other
    transaction is answered with applicable=false and no changes.
    """
    event = TicketEvent(
        request.transaction_type,
        request.field,
        request.old_value,
        request.new_value
    )
    gateway = InMemoryTicketGateway(_ticket(request.ticket))
    outcome = FilterEngine(db, registry).process_event(event, gateway)
    if outcome is None:
        return {"ok": True, "applicable": False, "ticket": asdict(gateway.ticket)}
    return _evaluation_response(outcome, gateway)


@router.post("/preview", response_model=PreviewResponse)
def preview_event(
    request: EvaluationRequest,
    db: Session = Depends(get_db),
    registry: KindRegistry = Depends(get_registry)
):
    """
    Show how an event would be processed, including disabled groups and
    rules and every condition checked. Nothing is recorded or performed.
    """
    outcome = FilterEngine(db, registry).preview(
        request.trigger_type,
        request.from_queue,
        request.to_queue,
        _ticket(request.ticket)
    )
    return {
        "trigger_type": outcome.context.trigger_type,
        "groups": [_group_check(g) for g in outcome.groups],
        "actions": [_action(a) for a in outcome.actions]
    }
