"""
Tests for the sales-order state machine (pure).

Covers:
- SALES_ORDER_WORKFLOW table shape
- initial_status table (first match wins)
- create(): pending vs auto-approved drafts and their effects
- transition(): approve, reject, fulfill, deliver; illegal actions
- notes are append-only; tracking numbers on shipment
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from sales_kernel.domain import order_state
from sales_kernel.domain.dtos import SalesOrderInfo, SalesOrderItemInfo
from sales_kernel.domain.enums import FulfillmentStatus, OrderStatus, PaymentType
from sales_kernel.domain.order_state import (
    SALES_ORDER_WORKFLOW,
    ConsumeStock,
    EmitAudit,
    PersistOrder,
    ReserveStock,
    TransitionContext,
)
from sales_kernel.domain.settings import OrderSettings
from sales_kernel.exceptions import (
    InvalidFulfillmentStatusError,
    InvalidTransitionError,
)

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)
ACTOR = uuid4()
SETTINGS = OrderSettings(
    require_approval=True,
    approval_threshold=Decimal("1000000"),
    tax_rate=Decimal("0.075"),
)


def make_order(
    status=OrderStatus.PENDING,
    payment_type=PaymentType.CASH,
    total="1075.00",
    notes=None,
) -> SalesOrderInfo:
    product_id = uuid4()
    return SalesOrderInfo(
        id=uuid4(),
        order_number="SO-2026-00001",
        customer_id=uuid4(),
        payment_type=payment_type,
        status=status,
        fulfillment_status=FulfillmentStatus.AWAITING,
        subtotal=Decimal("1000.00"),
        discount_amount=Decimal("0"),
        tax_amount=Decimal("75.00"),
        total_amount=Decimal(total),
        order_date=NOW,
        items=(
            SalesOrderItemInfo(
                product_id=product_id,
                quantity=Decimal("100"),
                unit_price=Decimal("10.00"),
                total_amount=Decimal("1000.00"),
                sequence=1,
            ),
        ),
        notes=notes,
    )


def ctx(**kwargs) -> TransitionContext:
    return TransitionContext(actor_id=ACTOR, now=NOW, **kwargs)


class TestWorkflowTable:
    def test_cancelled_is_terminal(self):
        assert "cancelled" in SALES_ORDER_WORKFLOW.terminal_states
        assert SALES_ORDER_WORKFLOW.actions_from("cancelled") == ()

    def test_initial_state_is_pending(self):
        assert SALES_ORDER_WORKFLOW.initial_state == "pending"

    def test_manual_approval_is_guarded(self):
        rule = SALES_ORDER_WORKFLOW.find_transition("pending", order_state.ACTION_APPROVE)

        assert rule.requires_approval is True
        assert {g.name for g in rule.guards} == {"credit_revalidated", "stock_revalidated"}


class TestInitialStatus:
    """First matching row wins."""

    @pytest.mark.parametrize(
        "require_approval,payment_type,total,expected",
        [
            (False, PaymentType.CREDIT, "5000000", OrderStatus.APPROVED),
            (False, PaymentType.CASH, "5000000", OrderStatus.APPROVED),
            (True, PaymentType.CASH, "1000000.00", OrderStatus.PENDING),
            (True, PaymentType.CASH, "999999.99", OrderStatus.APPROVED),
            (True, PaymentType.CREDIT, "999999.99", OrderStatus.PENDING),
            (True, PaymentType.CREDIT, "1000000.00", OrderStatus.PENDING),
        ],
    )
    def test_table(self, require_approval, payment_type, total, expected):
        settings = replace(SETTINGS, require_approval=require_approval)

        assert order_state.initial_status(settings, payment_type, Decimal(total)) == expected


class TestCreate:
    def test_cash_below_threshold_is_auto_approved(self):
        result = order_state.create(make_order(), SETTINGS, ctx())

        assert result.order.status == OrderStatus.APPROVED
        assert result.order.approved_by_id == ACTOR
        assert result.order.approved_at == NOW
        assert [type(e) for e in result.effects] == [ReserveStock, PersistOrder, EmitAudit]
        assert result.effects_of(EmitAudit)[0].event.action == "created"

    def test_credit_order_stays_pending(self):
        result = order_state.create(
            make_order(payment_type=PaymentType.CREDIT), SETTINGS, ctx()
        )

        assert result.order.status == OrderStatus.PENDING
        assert result.order.approved_by_id is None
        assert [type(e) for e in result.effects] == [PersistOrder, EmitAudit]
        assert result.effects_of(ReserveStock) == ()

    def test_draft_must_be_pending(self):
        with pytest.raises(InvalidTransitionError):
            order_state.create(make_order(status=OrderStatus.APPROVED), SETTINGS, ctx())


class TestApproveReject:
    def test_approve_pending(self):
        order = make_order()

        result = order_state.transition(order, order_state.ACTION_APPROVE, ctx(reason="ok"))

        assert result.order.status == OrderStatus.APPROVED
        assert result.order.approval_reason == "ok"
        reserve = result.effects_of(ReserveStock)[0]
        assert [(s.product_id, s.quantity) for s in reserve.lines] == [
            (order.items[0].product_id, Decimal("100"))
        ]
        assert result.effects_of(EmitAudit)[0].event.action == "approved"

    def test_input_snapshot_is_not_mutated(self):
        order = make_order()

        order_state.transition(order, order_state.ACTION_APPROVE, ctx())

        assert order.status == OrderStatus.PENDING
        assert order.approved_by_id is None

    @pytest.mark.parametrize(
        "status", [OrderStatus.APPROVED, OrderStatus.COMPLETED, OrderStatus.CANCELLED]
    )
    def test_approve_non_pending_rejected(self, status):
        with pytest.raises(InvalidTransitionError) as exc_info:
            order_state.transition(make_order(status=status), order_state.ACTION_APPROVE, ctx())

        assert exc_info.value.current_status == status.value
        assert exc_info.value.action == "approve"

    def test_reject_pending(self):
        result = order_state.transition(
            make_order(), order_state.ACTION_REJECT, ctx(reason="duplicate")
        )

        assert result.order.status == OrderStatus.CANCELLED
        assert result.order.cancelled_by_id == ACTOR
        assert result.order.cancelled_at == NOW
        assert result.order.cancellation_reason == "duplicate"
        assert result.effects_of(ReserveStock) == ()
        assert result.effects_of(EmitAudit)[0].event.reason == "duplicate"

    def test_reject_approved_rejected(self):
        with pytest.raises(InvalidTransitionError):
            order_state.transition(
                make_order(status=OrderStatus.APPROVED), order_state.ACTION_REJECT, ctx()
            )


class TestFulfill:
    def test_processing_keeps_status(self):
        result = order_state.transition(
            make_order(status=OrderStatus.APPROVED),
            order_state.ACTION_FULFILL,
            ctx(fulfillment_status="processing"),
        )

        assert result.order.status == OrderStatus.APPROVED
        assert result.order.fulfillment_status == FulfillmentStatus.PROCESSING
        assert result.effects_of(ConsumeStock) == ()

    def test_shipped_appends_tracking(self):
        result = order_state.transition(
            make_order(status=OrderStatus.APPROVED, notes="Gate 3"),
            order_state.ACTION_FULFILL,
            ctx(fulfillment_status="shipped", tracking_number="TRK-99"),
        )

        assert result.order.notes == "Gate 3\nTracking: TRK-99"

    def test_tracking_ignored_unless_shipped(self):
        result = order_state.transition(
            make_order(status=OrderStatus.APPROVED),
            order_state.ACTION_FULFILL,
            ctx(fulfillment_status="processing", tracking_number="TRK-99"),
        )

        assert result.order.notes is None

    def test_delivered_completes_and_consumes_stock(self):
        result = order_state.transition(
            make_order(status=OrderStatus.APPROVED),
            order_state.ACTION_FULFILL,
            ctx(fulfillment_status="delivered"),
        )

        assert result.order.status == OrderStatus.COMPLETED
        assert result.order.fulfillment_status == FulfillmentStatus.DELIVERED
        assert result.order.delivery_date == NOW
        assert len(result.effects_of(ConsumeStock)) == 1

    def test_delivered_keeps_explicit_delivery_date(self):
        when = datetime(2026, 3, 20, tzinfo=timezone.utc)

        result = order_state.transition(
            make_order(status=OrderStatus.APPROVED),
            order_state.ACTION_FULFILL,
            ctx(fulfillment_status="delivered", delivery_date=when),
        )

        assert result.order.delivery_date == when

    def test_completed_order_does_not_consume_again(self):
        result = order_state.transition(
            make_order(status=OrderStatus.COMPLETED),
            order_state.ACTION_FULFILL,
            ctx(fulfillment_status="delivered"),
        )

        assert result.order.status == OrderStatus.COMPLETED
        assert result.effects_of(ConsumeStock) == ()

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.CANCELLED])
    def test_fulfill_requires_approved_or_completed(self, status):
        with pytest.raises(InvalidTransitionError):
            order_state.transition(
                make_order(status=status),
                order_state.ACTION_FULFILL,
                ctx(fulfillment_status="processing"),
            )

    def test_unknown_fulfillment_status(self):
        with pytest.raises(InvalidFulfillmentStatusError) as exc_info:
            order_state.transition(
                make_order(status=OrderStatus.APPROVED),
                order_state.ACTION_FULFILL,
                ctx(fulfillment_status="lost"),
            )

        assert exc_info.value.code == "INVALID_STATUS"

    def test_illegal_status_reported_before_bad_fulfillment_value(self):
        with pytest.raises(InvalidTransitionError):
            order_state.transition(
                make_order(status=OrderStatus.PENDING),
                order_state.ACTION_FULFILL,
                ctx(fulfillment_status="lost"),
            )

    def test_notes_appended(self):
        result = order_state.transition(
            make_order(status=OrderStatus.APPROVED, notes="first"),
            order_state.ACTION_FULFILL,
            ctx(fulfillment_status="processing", notes="second"),
        )

        assert result.order.notes == "first\nsecond"


class TestAppendNote:
    def test_empty(self):
        assert order_state.append_note(None, "x") == "x"
        assert order_state.append_note("", "x") == "x"

    def test_existing(self):
        assert order_state.append_note("a", "b") == "a\nb"
