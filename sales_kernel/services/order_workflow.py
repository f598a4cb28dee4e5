"""
OrderWorkflowService -- create, approve, reject and fulfill sales orders.

Responsibility:
    Orchestrates the order lifecycle.  Every decision is delegated to a pure
    component (CreditPolicy, FormulaResolver, OrderPricing, order_state);
    this service loads and locks rows, calls them in a fixed order, executes
    the effects the state machine returns, and owns the transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Commits on success, rolls back
    on any exception and re-raises it.

Invariants enforced:
    - Creation order is fixed: credit eligibility, line resolution, stock,
      pricing, credit for the priced total, status, persist.  The amount
      check cannot move earlier because the total is unknown until priced.
    - Creation takes no locks on customers or inventory.  Only the
      order-number counter row is locked, and only at the tail.
    - Approval is the authoritative gate: it locks the order row, the
      customer row (credit orders) and the inventory rows (sorted), then
      re-checks credit and stock before reserving.
    - ApprovalRequired is returned, never raised; the order is committed.
    - Audit events go to the sink after commit; sink failures are logged
      and do not affect the committed order.

Failure modes:
    - CustomerNotFoundError / OrderNotFoundError / FormulaNotFoundError.
    - CreditNotAllowedError (blocked / not credit-enabled),
      CreditLimitExceededError (amount).
    - FormulaNotAvailableError, FormulaInvalidError, InvalidQuantityError,
      ValidationError.
    - InsufficientStockError, StockServiceUnavailableError.
    - InvalidTransitionError, InvalidFulfillmentStatusError.
    - PermissionDeniedError when an optional gate refuses the actor.

Audit relevance:
    created / auto-approved / approved / rejected / fulfillment events, each
    carrying actor, order and amount.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from sales_kernel.domain import credit_policy, formula_resolver, order_state, pricing
from sales_kernel.domain.clock import Clock, SystemClock
from sales_kernel.domain.dtos import (
    ApprovalRequired,
    AuditEvent,
    CustomerInfo,
    OrderCreationResult,
    OrderRequest,
    ResolvedLine,
    SalesOrderInfo,
    SalesOrderItemInfo,
)
from sales_kernel.domain.enums import FulfillmentStatus, OrderStatus, PaymentType
from sales_kernel.domain.order_state import (
    ConsumeStock,
    EmitAudit,
    PersistOrder,
    ReserveStock,
    TransitionContext,
)
from sales_kernel.domain.settings import OrderSettings
from sales_kernel.domain.values import ZERO, to_decimal
from sales_kernel.exceptions import (
    CreditLimitExceededError,
    CreditNotAllowedError,
    CustomerNotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from sales_kernel.logging_config import LogContext, get_logger
from sales_kernel.models.customer import Customer
from sales_kernel.models.sales_order import SalesOrder, SalesOrderItem
from sales_kernel.services.audit_sink import AuditSink, LoggingAuditSink, deliver
from sales_kernel.services.formula_service import FormulaService
from sales_kernel.services.permissions import (
    SALES_APPROVE,
    SALES_CREATE,
    SALES_FULFILL,
    SALES_REJECT,
    PermissionGate,
    require,
)
from sales_kernel.services.product_catalog import ProductCatalog, SqlProductCatalog
from sales_kernel.services.sequence_service import SequenceService
from sales_kernel.services.stock_availability import InventoryGateway, StockAvailability

logger = get_logger("services.order_workflow")


class OrderWorkflowService:
    """
    Sales order lifecycle.

    Transaction boundary: each public method is one transaction.  This
    service commits on success and rolls back on failure; its helpers
    (stock, sequence, formula usage) only flush.

    Usage:
        workflow = OrderWorkflowService(session, clock=clock)
        result = workflow.create(request, actor_id=actor, settings=settings)
        if result.requires_approval:
            workflow.approve(result.order.id, actor_id=manager)
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        audit_sink: AuditSink | None = None,
        permission_gate: PermissionGate | None = None,
        inventory: InventoryGateway | None = None,
        catalog: ProductCatalog | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._audit_sink = audit_sink or LoggingAuditSink()
        self._gate = permission_gate
        self._catalog = catalog or SqlProductCatalog(session)
        self._stock = StockAvailability(session, inventory, self._catalog)
        self._formulas = FormulaService(session, self._catalog)
        self._sequences = SequenceService(session)

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        request: OrderRequest,
        actor_id: UUID,
        settings: OrderSettings,
    ) -> OrderCreationResult:
        """
        Create a sales order from a formula or from direct items.

        Returns the persisted order and, when the order waits in ``pending``
        because its total meets the approval threshold, an ApprovalRequired
        signal.
        """
        require(self._gate, actor_id, SALES_CREATE)
        now = self._clock.now()
        payment_type = _parse_payment_type(request.payment_type)

        try:
            with LogContext.bind(customer_id=request.customer_id, actor_id=actor_id):
                logger.info(
                    "order_create_started",
                    extra={
                        "payment_type": payment_type.value,
                        "formula_id": str(request.formula_id) if request.formula_id else None,
                    },
                )

                # 1. Customer
                customer = self._get_customer(request.customer_id).to_dto()

                # 2. Credit eligibility (amount unknown yet)
                if payment_type == PaymentType.CREDIT:
                    self._enforce_credit(customer, ZERO)

                # 3. Lines
                lines = self._resolve_lines(request, customer.id)

                # 4. Stock, fail-fast
                self._stock.check_all(_aggregate((line.product_id, line.quantity) for line in lines))

                # 5. Pricing
                priced = pricing.price(
                    lines,
                    to_decimal(request.discount_amount, "discount_amount"),
                    settings.tax_rate,
                )

                # 6. Credit for the priced total
                credit_snapshot = None
                if payment_type == PaymentType.CREDIT:
                    self._enforce_credit(customer, priced.total_amount)
                    credit_snapshot = credit_policy.available_credit(customer)

                # 7. Initial status via the state machine
                order_date = request.order_date or now
                draft = SalesOrderInfo(
                    id=uuid4(),
                    order_number=self._sequences.next_order_number(order_date.year),
                    customer_id=customer.id,
                    payment_type=payment_type,
                    status=OrderStatus.PENDING,
                    fulfillment_status=FulfillmentStatus.AWAITING,
                    subtotal=priced.subtotal,
                    discount_amount=priced.discount_amount,
                    tax_amount=priced.tax_amount,
                    total_amount=priced.total_amount,
                    order_date=order_date,
                    items=tuple(
                        SalesOrderItemInfo(
                            product_id=line.product_id,
                            quantity=line.quantity,
                            unit_price=line.unit_price,
                            total_amount=line.line_total,
                            sequence=index,
                        )
                        for index, line in enumerate(lines, start=1)
                    ),
                    formula_id=request.formula_id,
                    credit_available=credit_snapshot,
                    delivery_date=request.delivery_date,
                    notes=request.notes,
                    delivery_address=request.delivery_address or customer.address,
                    created_by_id=actor_id,
                )
                result = order_state.create(
                    draft, settings, TransitionContext(actor_id=actor_id, now=now)
                )

                # 8. Persist (and reserve stock when auto-approved)
                row, events = self._execute(result.effects, None, actor_id)
                if request.formula_id is not None:
                    self._formulas.record_usage(request.formula_id, now, actor_id)

                created = row.to_dto()
                self._session.commit()
        except Exception as exc:
            self._rollback("create", exc)
            raise

        deliver(self._audit_sink, events)

        # 9. Approval signal
        approval_required = None
        if created.status == OrderStatus.PENDING and settings.meets_threshold(created.total_amount):
            approval_required = ApprovalRequired(
                order_id=created.id,
                order_number=created.order_number,
                total_amount=created.total_amount,
                threshold=settings.approval_threshold,
            )

        logger.info(
            "order_created",
            extra={
                "order_id": str(created.id),
                "order_number": created.order_number,
                "status": created.status.value,
                "total_amount": str(created.total_amount),
                "approval_required": approval_required is not None,
            },
        )
        return OrderCreationResult(order=created, approval_required=approval_required)

    # =========================================================================
    # Approve / reject
    # =========================================================================

    def approve(
        self,
        order_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
    ) -> SalesOrderInfo:
        """
        Approve a pending order after re-checking credit and stock under lock.

        Raises:
            InvalidTransitionError: order is not pending.
            CreditLimitExceededError / CreditNotAllowedError: credit no
                longer covers the order.
            InsufficientStockError: stock no longer covers the order.
        """
        require(self._gate, actor_id, SALES_APPROVE)
        now = self._clock.now()
        try:
            with LogContext.bind(order_id=order_id, actor_id=actor_id):
                row = self._lock_order(order_id)
                order = row.to_dto()
                result = order_state.transition(
                    order,
                    order_state.ACTION_APPROVE,
                    TransitionContext(actor_id=actor_id, now=now, reason=reason),
                )

                # Guard: credit_revalidated
                if order.is_credit_order:
                    customer = self._lock_customer(order.customer_id).to_dto()
                    self._enforce_credit(customer, order.total_amount)

                # Guard: stock_revalidated
                self._stock.lock_products([item.product_id for item in order.items])
                self._stock.check_all(
                    _aggregate((item.product_id, item.quantity) for item in order.items)
                )

                row, events = self._execute(result.effects, row, actor_id)
                approved = row.to_dto()
                self._session.commit()
        except Exception as exc:
            self._rollback("approve", exc)
            raise

        deliver(self._audit_sink, events)
        logger.info(
            "order_approved",
            extra={
                "order_id": str(approved.id),
                "order_number": approved.order_number,
                "total_amount": str(approved.total_amount),
            },
        )
        return approved

    def reject(
        self,
        order_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
    ) -> SalesOrderInfo:
        """Cancel a pending order.  Terminal."""
        require(self._gate, actor_id, SALES_REJECT)
        now = self._clock.now()
        try:
            with LogContext.bind(order_id=order_id, actor_id=actor_id):
                row = self._lock_order(order_id)
                result = order_state.transition(
                    row.to_dto(),
                    order_state.ACTION_REJECT,
                    TransitionContext(actor_id=actor_id, now=now, reason=reason),
                )
                row, events = self._execute(result.effects, row, actor_id)
                rejected = row.to_dto()
                self._session.commit()
        except Exception as exc:
            self._rollback("reject", exc)
            raise

        deliver(self._audit_sink, events)
        logger.info(
            "order_rejected",
            extra={"order_id": str(rejected.id), "order_number": rejected.order_number},
        )
        return rejected

    # =========================================================================
    # Fulfill
    # =========================================================================

    def fulfill(
        self,
        order_id: UUID,
        actor_id: UUID,
        fulfillment_status: FulfillmentStatus | str,
        tracking_number: str | None = None,
        delivery_date: datetime | None = None,
        notes: str | None = None,
    ) -> SalesOrderInfo:
        """
        Record fulfillment progress on an approved or completed order.

        ``delivered`` completes the order and consumes its reserved stock;
        ``shipped`` with a tracking number appends it to the notes.
        """
        require(self._gate, actor_id, SALES_FULFILL)
        now = self._clock.now()
        status_value = (
            fulfillment_status.value
            if isinstance(fulfillment_status, FulfillmentStatus)
            else fulfillment_status
        )
        try:
            with LogContext.bind(order_id=order_id, actor_id=actor_id):
                row = self._lock_order(order_id)
                result = order_state.transition(
                    row.to_dto(),
                    order_state.ACTION_FULFILL,
                    TransitionContext(
                        actor_id=actor_id,
                        now=now,
                        fulfillment_status=status_value,
                        tracking_number=tracking_number,
                        delivery_date=delivery_date,
                        notes=notes,
                    ),
                )
                row, events = self._execute(result.effects, row, actor_id)
                updated = row.to_dto()
                self._session.commit()
        except Exception as exc:
            self._rollback("fulfill", exc)
            raise

        deliver(self._audit_sink, events)
        logger.info(
            "order_fulfillment_updated",
            extra={
                "order_id": str(updated.id),
                "fulfillment_status": updated.fulfillment_status.value,
                "status": updated.status.value,
            },
        )
        return updated

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_customer(self, customer_id: UUID) -> Customer:
        customer = self._session.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFoundError(str(customer_id))
        return customer

    def _lock_customer(self, customer_id: UUID) -> Customer:
        customer = self._session.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if customer is None:
            raise CustomerNotFoundError(str(customer_id))
        return customer

    def _lock_order(self, order_id: UUID) -> SalesOrder:
        order = self._session.execute(
            select(SalesOrder)
            .where(SalesOrder.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order

    def _enforce_credit(self, customer: CustomerInfo, amount: Decimal) -> None:
        decision = credit_policy.evaluate(customer, amount)
        if decision.allowed:
            return
        logger.info(
            "credit_check_failed",
            extra={
                "reason": decision.reason,
                "available": str(decision.available_credit),
                "required": str(amount),
            },
        )
        if decision.is_eligibility_failure:
            raise CreditNotAllowedError(str(customer.id), decision.reason)
        raise CreditLimitExceededError(
            str(customer.id), decision.available_credit, amount
        )

    def _resolve_lines(self, request: OrderRequest, customer_id: UUID) -> list[ResolvedLine]:
        if request.formula_id is not None:
            if request.total_quantity is None:
                raise ValidationError("total_quantity", "required for formula orders")
            return formula_resolver.resolve(
                self._formulas.get_formula(request.formula_id),
                customer_id,
                to_decimal(request.total_quantity, "total_quantity"),
                self._catalog.selling_price,
            )

        if not request.items:
            raise ValidationError("items", "an order needs at least one item")
        lines = [
            ResolvedLine(
                product_id=item.product_id,
                quantity=to_decimal(item.quantity, "quantity"),
                unit_price=to_decimal(item.unit_price, "unit_price"),
            )
            for item in request.items
        ]
        for line in lines:
            pricing.validate_line(line)
        return lines

    def _execute(
        self,
        effects: Sequence[object],
        row: SalesOrder | None,
        actor_id: UUID,
    ) -> tuple[SalesOrder, list[AuditEvent]]:
        """Carry out state-machine effects in order; audit events are returned, not sent."""
        events: list[AuditEvent] = []
        for effect in effects:
            if isinstance(effect, ReserveStock):
                self._stock.reserve((line.product_id, line.quantity) for line in effect.lines)
            elif isinstance(effect, ConsumeStock):
                self._stock.consume((line.product_id, line.quantity) for line in effect.lines)
            elif isinstance(effect, PersistOrder):
                if row is None:
                    row = self._insert(effect.order, actor_id)
                else:
                    row.apply(effect.order, actor_id)
                self._session.flush()
            elif isinstance(effect, EmitAudit):
                events.append(effect.event)
        assert row is not None, "state machine produced no PersistOrder effect"
        return row, events

    def _insert(self, order: SalesOrderInfo, actor_id: UUID) -> SalesOrder:
        row = SalesOrder(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            payment_type=order.payment_type.value,
            formula_id=order.formula_id,
            status=order.status.value,
            fulfillment_status=order.fulfillment_status.value,
            subtotal=order.subtotal,
            discount_amount=order.discount_amount,
            tax_amount=order.tax_amount,
            total_amount=order.total_amount,
            credit_available=order.credit_available,
            order_date=order.order_date,
            delivery_date=order.delivery_date,
            notes=order.notes,
            delivery_address=order.delivery_address,
            approved_by_id=order.approved_by_id,
            approved_at=order.approved_at,
            approval_reason=order.approval_reason,
            created_by_id=actor_id,
            items=[
                SalesOrderItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_amount=item.total_amount,
                    sequence=item.sequence,
                    created_by_id=actor_id,
                )
                for item in order.items
            ],
        )
        self._session.add(row)
        return row

    def _rollback(self, operation: str, exc: Exception) -> None:
        self._session.rollback()
        logger.warning(
            "transaction_rolled_back",
            extra={
                "operation": operation,
                "error_code": getattr(exc, "code", type(exc).__name__),
            },
        )


def _aggregate(lines: Iterable[tuple[UUID, Decimal]]) -> list[tuple[UUID, Decimal]]:
    """Sum quantities per product, keeping first-seen order."""
    totals: dict[UUID, Decimal] = {}
    for product_id, quantity in lines:
        totals[product_id] = totals.get(product_id, ZERO) + quantity
    return list(totals.items())


def _parse_payment_type(value: PaymentType | str) -> PaymentType:
    try:
        return PaymentType(value)
    except ValueError:
        allowed = ", ".join(p.value for p in PaymentType)
        raise ValidationError(
            "payment_type", f"'{value}' is not one of {allowed}"
        ) from None
