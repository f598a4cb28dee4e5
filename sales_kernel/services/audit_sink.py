"""
Audit sink collaborator.

The workflow hands every AuditEvent to an ``AuditSink`` after its
transaction commits.  Delivery is fire-and-forget: a failing sink is
logged as ``audit_emit_failed`` and never rolls back or fails the order
operation that produced the event.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from sales_kernel.domain.dtos import AuditEvent
from sales_kernel.logging_config import get_logger

logger = get_logger("services.audit")


class AuditSink(Protocol):
    """Pluggable receiver for order audit events."""

    def emit(self, event: AuditEvent) -> None:
        ...


class LoggingAuditSink:
    """Default sink: one structured log record per event."""

    def emit(self, event: AuditEvent) -> None:
        logger.info(
            "order_audit_event",
            extra={
                "action": event.action,
                "actor_id": str(event.actor_id),
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "amount": str(event.amount),
                "reason": event.reason,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )


def deliver(sink: AuditSink, events: Iterable[AuditEvent]) -> None:
    """Send ``events`` to ``sink``; failures are logged, not raised."""
    for event in events:
        try:
            sink.emit(event)
        except Exception:
            logger.error(
                "audit_emit_failed",
                extra={
                    "action": event.action,
                    "order_id": str(event.order_id),
                },
                exc_info=True,
            )
