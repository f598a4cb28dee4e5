"""
Domain DTOs (``sales_kernel.domain.dtos``).

Responsibility
--------------
Frozen dataclass value objects that cross the service boundary.  Services
convert ORM rows into these before returning; pure domain functions
(CreditPolicy, FormulaResolver, OrderPricing, order_state) consume and
produce nothing else.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  No dependency on db/, models/,
services/, or selectors/.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary and quantity fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sales_kernel.domain.enums import (
    CREDIT_ENABLED_TYPES,
    CustomerType,
    FulfillmentStatus,
    OrderStatus,
    PaymentType,
)
from sales_kernel.domain.values import HUNDRED, ZERO


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CustomerInfo:
    """Immutable snapshot of a customer's credit-relevant state."""

    id: UUID
    customer_code: str
    name: str
    customer_type: CustomerType
    credit_limit: Decimal = ZERO
    outstanding_balance: Decimal = ZERO
    credit_blocked: bool = False
    payment_terms_days: int = 0
    is_active: bool = True
    address: str | None = None

    @property
    def has_credit_facility(self) -> bool:
        return self.customer_type in CREDIT_ENABLED_TYPES

    @property
    def is_cash_only(self) -> bool:
        return self.customer_type == CustomerType.CASH


@dataclass(frozen=True)
class CreditSummary:
    """Credit position of one customer, for display."""

    customer_id: UUID
    credit_limit: Decimal
    outstanding_balance: Decimal
    available_credit: Decimal
    credit_usage_percentage: Decimal
    pending_orders_total: Decimal
    payment_terms_days: int
    is_blocked: bool


@dataclass(frozen=True)
class CreditAlert:
    """A credit customer that is blocked or close to its limit."""

    customer_id: UUID
    customer_code: str
    name: str
    alert_type: str  # "blocked" | "near_limit"
    credit_usage_percentage: Decimal
    available_credit: Decimal


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FormulaItemInfo:
    """One product and its percentage share of a formula."""

    product_id: UUID
    percentage: Decimal
    sequence: int = 1


@dataclass(frozen=True)
class FormulaInfo:
    """Immutable snapshot of a formula and its ordered items."""

    id: UUID
    formula_code: str
    name: str
    is_active: bool
    items: tuple[FormulaItemInfo, ...] = ()
    customer_id: UUID | None = None
    usage_count: int = 0
    last_used_at: datetime | None = None

    @property
    def total_percentage(self) -> Decimal:
        return sum((item.percentage for item in self.items), ZERO)

    def is_available_to(self, customer_id: UUID) -> bool:
        return self.customer_id is None or self.customer_id == customer_id


# ---------------------------------------------------------------------------
# Order input
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DirectItem:
    """A caller-supplied order line (direct, non-formula order)."""

    product_id: UUID
    quantity: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class ResolvedLine:
    """A line item ready for stock checking and pricing."""

    product_id: UUID
    quantity: Decimal
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class OrderRequest:
    """
    Everything the caller supplies to create a sales order.

    Exactly one of ``formula_id`` (with ``total_quantity``) or ``items``
    drives line resolution; when ``formula_id`` is set, ``items`` is ignored.
    """

    customer_id: UUID
    payment_type: PaymentType = PaymentType.CASH
    formula_id: UUID | None = None
    total_quantity: Decimal | None = None
    items: tuple[DirectItem, ...] = ()
    discount_amount: Decimal = ZERO
    order_date: datetime | None = None
    delivery_date: datetime | None = None
    notes: str | None = None
    delivery_address: str | None = None


# ---------------------------------------------------------------------------
# Sales orders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SalesOrderItemInfo:
    """Immutable snapshot of a persisted order line."""

    product_id: UUID
    quantity: Decimal
    unit_price: Decimal
    total_amount: Decimal
    sequence: int
    id: UUID | None = None


@dataclass(frozen=True)
class SalesOrderInfo:
    """
    Immutable snapshot of a sales order.

    The state machine in ``order_state`` takes one of these and returns a
    new one; it never mutates.
    """

    id: UUID
    order_number: str
    customer_id: UUID
    payment_type: PaymentType
    status: OrderStatus
    fulfillment_status: FulfillmentStatus
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    order_date: datetime
    items: tuple[SalesOrderItemInfo, ...] = field(default_factory=tuple)
    formula_id: UUID | None = None
    credit_available: Decimal | None = None
    delivery_date: datetime | None = None
    notes: str | None = None
    delivery_address: str | None = None
    created_by_id: UUID | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    approval_reason: str | None = None
    cancelled_by_id: UUID | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    @property
    def is_credit_order(self) -> bool:
        return self.payment_type == PaymentType.CREDIT

    @property
    def is_formula_based(self) -> bool:
        return self.formula_id is not None


@dataclass(frozen=True)
class ApprovalRequired:
    """
    Informational signal: the order was created and persisted, but its
    total meets the approval threshold so it waits in ``pending``.

    NOT an error.  Callers must not treat it as a failed creation.
    """

    order_id: UUID
    order_number: str
    total_amount: Decimal
    threshold: Decimal


@dataclass(frozen=True)
class OrderCreationResult:
    """Outcome of a successful ``create``."""

    order: SalesOrderInfo
    approval_required: ApprovalRequired | None = None

    @property
    def requires_approval(self) -> bool:
        return self.approval_required is not None


def usage_percentage(outstanding: Decimal, limit: Decimal) -> Decimal:
    """outstanding / limit * 100, or 0 when there is no limit."""
    if limit <= ZERO:
        return ZERO
    return outstanding / limit * HUNDRED


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuditEvent:
    """What the audit sink receives for create/approve/reject/fulfill."""

    action: str
    actor_id: UUID
    order_id: UUID
    order_number: str
    amount: Decimal
    occurred_at: datetime
    reason: str | None = None
