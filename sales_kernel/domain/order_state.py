"""
Module: sales_kernel.domain.order_state
Responsibility:
    The sales-order state machine as a pure function.  Given an immutable
    order snapshot, an action, and the context of the call (actor, time,
    reason, fulfillment details), ``transition`` returns the new snapshot
    together with the side effects the caller must carry out.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    OrderWorkflowService locks rows, calls ``transition``, then executes
    the returned effects inside its transaction.

Invariants enforced:
    - Every transition is looked up in SALES_ORDER_WORKFLOW; an action not
      listed for the current status raises InvalidTransitionError.
    - ``cancelled`` is terminal.
    - Stock is reserved exactly once (on approve / auto-approve) and
      consumed exactly once (on the approved -> completed delivery).
    - Notes are append-only.

Failure modes:
    - InvalidTransitionError: illegal action for the current status.
    - InvalidFulfillmentStatusError: unknown fulfillment status.

Audit relevance:
    Every transition yields exactly one EmitAudit effect; the service
    delivers it to the audit sink after commit.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sales_kernel.domain.dtos import AuditEvent, SalesOrderInfo
from sales_kernel.domain.enums import FulfillmentStatus, OrderStatus, PaymentType
from sales_kernel.domain.settings import OrderSettings
from sales_kernel.domain.workflow import Guard, Transition, Workflow
from sales_kernel.exceptions import (
    InvalidFulfillmentStatusError,
    InvalidTransitionError,
)
from sales_kernel.logging_config import get_logger

logger = get_logger("domain.order_state")


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------

ACTION_AUTO_APPROVE = "auto_approve"
ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"
ACTION_FULFILL = "fulfill"
ACTION_DELIVER = "deliver"

FULFILLMENT_STATUSES: tuple[str, ...] = tuple(s.value for s in FulfillmentStatus)


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

CREDIT_REVALIDATED = Guard(
    name="credit_revalidated",
    description="Credit re-checked under a lock on the customer row",
)

STOCK_REVALIDATED = Guard(
    name="stock_revalidated",
    description="Stock re-checked under locks on the inventory rows",
)


# -----------------------------------------------------------------------------
# Sales Order Workflow
# -----------------------------------------------------------------------------

SALES_ORDER_WORKFLOW = Workflow(
    name="sales_order",
    description="Sales order approval and fulfillment lifecycle",
    initial_state=OrderStatus.PENDING.value,
    states=tuple(s.value for s in OrderStatus),
    transitions=(
        Transition("pending", "approved", action=ACTION_AUTO_APPROVE),
        Transition(
            "pending",
            "approved",
            action=ACTION_APPROVE,
            guards=(CREDIT_REVALIDATED, STOCK_REVALIDATED),
            requires_approval=True,
        ),
        Transition("pending", "cancelled", action=ACTION_REJECT),
        Transition("approved", "approved", action=ACTION_FULFILL),
        Transition("approved", "completed", action=ACTION_DELIVER),
        Transition("completed", "completed", action=ACTION_FULFILL),
        Transition("completed", "completed", action=ACTION_DELIVER),
    ),
    terminal_states=("cancelled",),
)

logger.info(
    "sales_order_workflow_defined",
    extra={
        "workflow": SALES_ORDER_WORKFLOW.name,
        "states": list(SALES_ORDER_WORKFLOW.states),
        "transitions": len(SALES_ORDER_WORKFLOW.transitions),
    },
)


# -----------------------------------------------------------------------------
# Context and effects
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TransitionContext:
    """Who is acting, when, and with what extra input."""

    actor_id: UUID
    now: datetime
    reason: str | None = None
    fulfillment_status: str | None = None
    tracking_number: str | None = None
    delivery_date: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class StockLine:
    product_id: UUID
    quantity: Decimal


@dataclass(frozen=True)
class PersistOrder:
    order: SalesOrderInfo


@dataclass(frozen=True)
class ReserveStock:
    lines: tuple[StockLine, ...]


@dataclass(frozen=True)
class ConsumeStock:
    lines: tuple[StockLine, ...]


@dataclass(frozen=True)
class EmitAudit:
    event: AuditEvent


Effect = PersistOrder | ReserveStock | ConsumeStock | EmitAudit


@dataclass(frozen=True)
class TransitionResult:
    """New order snapshot plus the effects to execute, in order."""

    order: SalesOrderInfo
    effects: tuple[Effect, ...]

    def effects_of(self, kind: type) -> tuple:
        return tuple(e for e in self.effects if isinstance(e, kind))


# -----------------------------------------------------------------------------
# Initial status
# -----------------------------------------------------------------------------


def initial_status(
    settings: OrderSettings,
    payment_type: PaymentType,
    total_amount: Decimal,
) -> OrderStatus:
    """
    Status of a new order; first matching row wins.

    ==============================  ==========
    require_approval is off         approved
    total >= threshold              pending
    cash, below threshold           approved
    credit, below threshold         pending
    ==============================  ==========
    """
    if not settings.require_approval:
        return OrderStatus.APPROVED
    if settings.meets_threshold(total_amount):
        return OrderStatus.PENDING
    if payment_type == PaymentType.CASH:
        return OrderStatus.APPROVED
    return OrderStatus.PENDING


def create(
    draft: SalesOrderInfo,
    settings: OrderSettings,
    context: TransitionContext,
) -> TransitionResult:
    """
    Place a freshly priced ``draft`` (status pending) into its initial status.

    An order that starts out approved goes through ``auto_approve`` so it
    reserves stock just as a manual approval would.
    """
    if draft.status != OrderStatus.PENDING:
        raise InvalidTransitionError(str(draft.id), draft.status.value, "create")

    created_event = _audit("created", draft, context)
    if initial_status(settings, draft.payment_type, draft.total_amount) == OrderStatus.APPROVED:
        approved = transition(draft, ACTION_AUTO_APPROVE, context)
        effects = tuple(
            EmitAudit(created_event) if isinstance(e, EmitAudit) else e
            for e in approved.effects
        )
        return TransitionResult(order=approved.order, effects=effects)

    return TransitionResult(
        order=draft,
        effects=(PersistOrder(draft), EmitAudit(created_event)),
    )


# -----------------------------------------------------------------------------
# Transition function
# -----------------------------------------------------------------------------


def transition(
    order: SalesOrderInfo,
    action: str,
    context: TransitionContext,
) -> TransitionResult:
    """
    Apply ``action`` to ``order``.

    ``fulfill`` is resolved to ``deliver`` when the requested fulfillment
    status is ``delivered``.
    """
    if action == ACTION_FULFILL:
        if context.fulfillment_status not in FULFILLMENT_STATUSES:
            # Illegal order status wins over a bad fulfillment value
            _lookup(order, action)
            raise InvalidFulfillmentStatusError(
                str(context.fulfillment_status), FULFILLMENT_STATUSES
            )
        if context.fulfillment_status == FulfillmentStatus.DELIVERED.value:
            action = ACTION_DELIVER

    rule = _lookup(order, action)

    if action in (ACTION_APPROVE, ACTION_AUTO_APPROVE):
        return _approve(order, rule, action, context)
    if action == ACTION_REJECT:
        return _reject(order, rule, context)
    return _fulfill(order, rule, action, context)


def _lookup(order: SalesOrderInfo, action: str) -> Transition:
    rule = SALES_ORDER_WORKFLOW.find_transition(order.status.value, action)
    if rule is None:
        raise InvalidTransitionError(str(order.id), order.status.value, action)
    return rule


def _approve(
    order: SalesOrderInfo,
    rule: Transition,
    action: str,
    context: TransitionContext,
) -> TransitionResult:
    new_order = replace(
        order,
        status=OrderStatus(rule.to_state),
        approved_by_id=context.actor_id,
        approved_at=context.now,
        approval_reason=context.reason,
    )
    audit_action = "approved" if action == ACTION_APPROVE else "auto_approved"
    return TransitionResult(
        order=new_order,
        effects=(
            ReserveStock(_stock_lines(order)),
            PersistOrder(new_order),
            EmitAudit(_audit(audit_action, new_order, context)),
        ),
    )


def _reject(
    order: SalesOrderInfo,
    rule: Transition,
    context: TransitionContext,
) -> TransitionResult:
    new_order = replace(
        order,
        status=OrderStatus(rule.to_state),
        cancelled_by_id=context.actor_id,
        cancelled_at=context.now,
        cancellation_reason=context.reason,
    )
    return TransitionResult(
        order=new_order,
        effects=(
            PersistOrder(new_order),
            EmitAudit(_audit("rejected", new_order, context)),
        ),
    )


def _fulfill(
    order: SalesOrderInfo,
    rule: Transition,
    action: str,
    context: TransitionContext,
) -> TransitionResult:
    fulfillment = FulfillmentStatus(context.fulfillment_status)
    notes = order.notes
    if fulfillment == FulfillmentStatus.SHIPPED and context.tracking_number:
        notes = append_note(notes, f"Tracking: {context.tracking_number}")
    if context.notes:
        notes = append_note(notes, context.notes)

    delivery_date = context.delivery_date or order.delivery_date
    if action == ACTION_DELIVER:
        delivery_date = context.delivery_date or context.now

    new_order = replace(
        order,
        status=OrderStatus(rule.to_state),
        fulfillment_status=fulfillment,
        notes=notes,
        delivery_date=delivery_date,
    )

    effects: list[Effect] = []
    if action == ACTION_DELIVER and order.status == OrderStatus.APPROVED:
        effects.append(ConsumeStock(_stock_lines(order)))
    effects.append(PersistOrder(new_order))
    effects.append(
        EmitAudit(_audit(f"fulfillment_{fulfillment.value}", new_order, context))
    )
    return TransitionResult(order=new_order, effects=tuple(effects))


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def append_note(existing: str | None, addition: str) -> str:
    """Append ``addition`` on a new line; never overwrite."""
    if not existing:
        return addition
    return f"{existing}\n{addition}"


def _stock_lines(order: SalesOrderInfo) -> tuple[StockLine, ...]:
    return tuple(StockLine(item.product_id, item.quantity) for item in order.items)


def _audit(action: str, order: SalesOrderInfo, context: TransitionContext) -> AuditEvent:
    return AuditEvent(
        action=action,
        actor_id=context.actor_id,
        order_id=order.id,
        order_number=order.order_number,
        amount=order.total_amount,
        occurred_at=context.now,
        reason=context.reason,
    )
