"""
Module: sales_kernel.models.sales_order
Responsibility: ORM persistence for sales orders and their line items.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/enums.py; to_dto() imports domain/dtos.py lazily.
    State changes are decided by sales_kernel.domain.order_state and written
    here by the OrderWorkflowService; nothing else mutates these rows.

Invariants enforced:
    - order_number is globally unique (uq_sales_order_number).
    - total_amount = subtotal - discount_amount + tax_amount (computed once by
      OrderPricing; stored, never recomputed).
    - Line items are owned by the order (cascade all, delete-orphan), created
      atomically with it, and never mutated afterwards.
    - credit_available is an audit snapshot taken at creation and never
      updated.

Failure modes:
    - IntegrityError on duplicate order_number.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sales_kernel.db.base import TrackedBase, UUIDString
from sales_kernel.domain.enums import FulfillmentStatus, OrderStatus, PaymentType  # noqa: F401  (re-exported)

if TYPE_CHECKING:
    from sales_kernel.domain.dtos import SalesOrderInfo, SalesOrderItemInfo


class SalesOrder(TrackedBase):
    """A customer's sales order and its pricing, approval and fulfillment state."""

    __tablename__ = "sales_orders"

    __table_args__ = (
        UniqueConstraint("order_number", name="uq_sales_order_number"),
        Index("idx_sales_orders_customer_id", "customer_id"),
        Index("idx_sales_orders_status", "status"),
        Index("idx_sales_orders_order_date", "order_date"),
    )

    order_number: Mapped[str] = mapped_column(String(30), nullable=False)
    customer_id: Mapped[UUID] = mapped_column(
        ForeignKey("customers.id"), nullable=False
    )
    payment_type: Mapped[str] = mapped_column(String(10), nullable=False)
    formula_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("formulas.id"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.PENDING.value
    )
    fulfillment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FulfillmentStatus.AWAITING.value
    )

    # Money
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    credit_available: Mapped[Decimal | None] = mapped_column(nullable=True)

    order_date: Mapped[datetime] = mapped_column(nullable=False)
    delivery_date: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivery_address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Approval / cancellation stamps
    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approval_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["SalesOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SalesOrderItem.sequence",
    )

    def __repr__(self) -> str:
        return f"<SalesOrder {self.order_number}: {self.status}/{self.fulfillment_status}>"

    def to_dto(self) -> "SalesOrderInfo":
        """Convert ORM model to frozen domain DTO."""
        from sales_kernel.domain.dtos import SalesOrderInfo

        return SalesOrderInfo(
            id=self.id,
            order_number=self.order_number,
            customer_id=self.customer_id,
            payment_type=PaymentType(self.payment_type),
            status=OrderStatus(self.status),
            fulfillment_status=FulfillmentStatus(self.fulfillment_status),
            subtotal=self.subtotal,
            discount_amount=self.discount_amount,
            tax_amount=self.tax_amount,
            total_amount=self.total_amount,
            order_date=self.order_date,
            items=tuple(item.to_dto() for item in self.items),
            formula_id=self.formula_id,
            credit_available=self.credit_available,
            delivery_date=self.delivery_date,
            notes=self.notes,
            delivery_address=self.delivery_address,
            created_by_id=self.created_by_id,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            approval_reason=self.approval_reason,
            cancelled_by_id=self.cancelled_by_id,
            cancelled_at=self.cancelled_at,
            cancellation_reason=self.cancellation_reason,
        )

    def apply(self, info: "SalesOrderInfo", actor_id: UUID) -> None:
        """Copy the mutable lifecycle fields of ``info`` onto this row."""
        self.status = info.status.value
        self.fulfillment_status = info.fulfillment_status.value
        self.delivery_date = info.delivery_date
        self.notes = info.notes
        self.approved_by_id = info.approved_by_id
        self.approved_at = info.approved_at
        self.approval_reason = info.approval_reason
        self.cancelled_by_id = info.cancelled_by_id
        self.cancelled_at = info.cancelled_at
        self.cancellation_reason = info.cancellation_reason
        self.updated_by_id = actor_id


class SalesOrderItem(TrackedBase):
    """One product line on a sales order."""

    __tablename__ = "sales_order_items"

    __table_args__ = (
        Index("idx_sales_order_items_order_id", "sales_order_id"),
    )

    sales_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("sales_orders.id"), nullable=False
    )
    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id"), nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)

    order: Mapped[SalesOrder] = relationship(back_populates="items")

    def to_dto(self) -> "SalesOrderItemInfo":
        """Convert ORM model to frozen domain DTO."""
        from sales_kernel.domain.dtos import SalesOrderItemInfo

        return SalesOrderItemInfo(
            id=self.id,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            total_amount=self.total_amount,
            sequence=self.sequence,
        )
