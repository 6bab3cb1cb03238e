"""
Structured Logging Module for the ticket filter engine.

Provides JSON-formatted structured logging for observability.
Key events: evaluation, rule matches, action execution, rule administration.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from ticketfilter.config import settings


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    All logs are emitted as single-line JSON objects for easy parsing
    by log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class StructuredLogger:
    """
    Structured logger wrapper with domain-specific methods.

    Provides type-safe logging for filter engine events.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        message: str,
        exc_info: bool = False,
        **kwargs: Any
    ) -> None:
        """Internal log method with extra fields."""
        extra = {"extra_fields": kwargs}
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    # ===== Evaluation Events =====

    def evaluation_started(
        self,
        trigger_type: str,
        ticket_id: int,
        from_queue: Optional[str],
        to_queue: Optional[str]
    ) -> None:
        """Log filter evaluation started for a ticket event."""
        self._log(
            logging.DEBUG,
            f"Evaluation started for ticket {ticket_id} ({trigger_type})",
            event="evaluation.started",
            trigger_type=trigger_type,
            ticket_id=ticket_id,
            from_queue=from_queue,
            to_queue=to_queue
        )

    def evaluation_completed(
        self,
        trigger_type: str,
        ticket_id: int,
        groups_applied: int,
        rules_matched: int,
        actions_performed: int,
        actions_failed: int
    ) -> None:
        """Log filter evaluation completed."""
        self._log(
            logging.INFO,
            f"Evaluation completed: {rules_matched} rules matched, "
            f"{actions_performed} actions performed",
            event="evaluation.completed",
            trigger_type=trigger_type,
            ticket_id=ticket_id,
            groups_applied=groups_applied,
            rules_matched=rules_matched,
            actions_performed=actions_performed,
            actions_failed=actions_failed
        )

    def evaluation_ignored(self, transaction_type: str, field: Optional[str]) -> None:
        """Log an event that is not a recognised trigger."""
        self._log(
            logging.DEBUG,
            f"Event ignored (type={transaction_type}, field={field})",
            event="evaluation.ignored",
            transaction_type=transaction_type,
            field=field
        )

    def group_skipped(self, group_id: int, ticket_id: int) -> None:
        """Log a rule group whose group conditions did not match."""
        self._log(
            logging.DEBUG,
            f"Rule group {group_id} not applicable",
            event="group.skipped",
            group_id=group_id,
            ticket_id=ticket_id
        )

    def group_failed(self, group_id: int, ticket_id: int, error: str) -> None:
        """Log a rule group that raised during evaluation."""
        self._log(
            logging.ERROR,
            f"Rule group {group_id} failed: {error}",
            exc_info=True,
            event="group.failed",
            group_id=group_id,
            ticket_id=ticket_id,
            error=error
        )

    def rule_matched(
        self,
        rule_id: int,
        group_id: int,
        ticket_id: int,
        stop: bool
    ) -> None:
        """Log filter rule matched."""
        self._log(
            logging.INFO,
            f"Filter rule {rule_id} matched ticket {ticket_id}" +
            (" [STOP]" if stop else ""),
            event="rule.matched",
            rule_id=rule_id,
            group_id=group_id,
            ticket_id=ticket_id,
            stop=stop
        )

    def matches_not_recorded(self, ticket_id: int, error: str) -> None:
        """Log a failure to store match records."""
        self._log(
            logging.ERROR,
            f"Failed to record matches for ticket {ticket_id}: {error}",
            event="evaluation.matches_not_recorded",
            ticket_id=ticket_id,
            error=error
        )

    # ===== Action Events =====

    def action_performed(self, kind: str, ticket_id: int, message: str) -> None:
        """Log action performed on a ticket."""
        self._log(
            logging.INFO,
            f"Action {kind} performed: {message}",
            event="action.performed",
            kind=kind,
            ticket_id=ticket_id
        )

    def action_failed(self, kind: str, ticket_id: int, error: str) -> None:
        """Log action failure."""
        self._log(
            logging.ERROR,
            f"Action {kind} failed: {error}",
            event="action.failed",
            kind=kind,
            ticket_id=ticket_id,
            error=error
        )

    # ===== Internal Errors =====

    def unknown_kind(self, category: str, kind: str) -> None:
        """Log a condition or action kind missing from the registry."""
        self._log(
            logging.ERROR,
            f"Unknown {category} kind '{kind}'",
            event="catalog.unknown_kind",
            category=category,
            kind=kind
        )

    def condition_failed(self, kind: str, error: str) -> None:
        """Log a condition handler that raised."""
        self._log(
            logging.ERROR,
            f"Condition {kind} raised: {error}",
            exc_info=True,
            event="condition.failed",
            kind=kind,
            error=error
        )

    def rule_data_corrupt(self, rule_id: Optional[int], attribute: str, error: str) -> None:
        """Log undecodable conditions or actions on a rule."""
        self._log(
            logging.ERROR,
            f"Failed to decode {attribute} of filter rule {rule_id}: {error}",
            event="rule.data_corrupt",
            rule_id=rule_id,
            attribute=attribute,
            error=error
        )

    # ===== Administration Events =====

    def item_created(self, aggregate_type: str, item_id: int, actor: str) -> None:
        """Log rule group or filter rule created."""
        self._log(
            logging.INFO,
            f"{aggregate_type} {item_id} created by {actor}",
            event="admin.created",
            aggregate_type=aggregate_type,
            item_id=item_id,
            actor=actor
        )

    def item_changed(
        self,
        aggregate_type: str,
        item_id: int,
        field: str,
        actor: str
    ) -> None:
        """Log a single field change."""
        self._log(
            logging.INFO,
            f"{aggregate_type} {item_id} field '{field}' changed by {actor}",
            event="admin.changed",
            aggregate_type=aggregate_type,
            item_id=item_id,
            field=field,
            actor=actor
        )

    def item_deleted(self, aggregate_type: str, item_id: int, actor: str) -> None:
        """Log rule group or filter rule deleted."""
        self._log(
            logging.WARNING,
            f"{aggregate_type} {item_id} deleted by {actor}",
            event="admin.deleted",
            aggregate_type=aggregate_type,
            item_id=item_id,
            actor=actor
        )

    def item_moved(self, aggregate_type: str, item_id: int, offset: int) -> None:
        """Log sort order change."""
        self._log(
            logging.DEBUG,
            f"{aggregate_type} {item_id} moved by {offset}",
            event="admin.moved",
            aggregate_type=aggregate_type,
            item_id=item_id,
            offset=offset
        )

    def validation_failed(
        self,
        aggregate_type: str,
        item_id: Optional[int],
        error: str
    ) -> None:
        """Log rejected create/update."""
        self._log(
            logging.WARNING,
            f"Validation failed for {aggregate_type}: {error}",
            event="admin.validation_failed",
            aggregate_type=aggregate_type,
            item_id=item_id,
            error=error
        )


def setup_logging() -> None:
    """
    Configure application-wide logging.

    Should be called once at application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    # Remove existing handlers
    root_logger.handlers = []

    # Add JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    # Set levels for noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.rule_matched(rule_id=4, group_id=1, ticket_id=123, stop=True)
    """
    return StructuredLogger(name)
