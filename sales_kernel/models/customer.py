"""
Module: sales_kernel.models.customer
Responsibility: ORM persistence for customers -- the credit-bearing
    counterparty of every sales order.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/enums.py; to_dto() imports domain/dtos.py lazily.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - customer_type CASH implies credit_limit == 0 (set by the credit service;
      this model does not enforce it at the ORM level).
    - outstanding_balance is maintained by external invoicing / payment
      processes.  The order engine reads it and never writes it.

Failure modes:
    - IntegrityError on duplicate customer_code (uq_customer_code constraint).

Audit relevance:
    credit_limit, outstanding_balance, and credit_blocked are the inputs to
    every credit decision.  Approval locks this row (SELECT ... FOR UPDATE)
    so two approvals against the same customer serialize.
"""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sales_kernel.db.base import TrackedBase
from sales_kernel.domain.enums import CREDIT_ENABLED_TYPES, CustomerType  # noqa: F401  (re-exported)

if TYPE_CHECKING:
    from sales_kernel.domain.dtos import CustomerInfo


class Customer(TrackedBase):
    """
    A customer that places sales orders.

    Guarantees:
        - customer_code is globally unique.
        - credit_limit and outstanding_balance are non-negative Decimals.
    """

    __tablename__ = "customers"

    __table_args__ = (
        UniqueConstraint("customer_code", name="uq_customer_code"),
        Index("idx_customer_type", "customer_type"),
        Index("idx_customer_credit_blocked", "credit_blocked"),
    )

    customer_code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    customer_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CustomerType.CASH.value,
    )

    # Credit facility
    credit_limit: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    outstanding_balance: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    credit_blocked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    payment_terms_days: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<Customer {self.customer_code}: {self.name} ({CustomerType(self.customer_type).value})>"

    def to_dto(self) -> "CustomerInfo":
        """Convert ORM model to frozen domain DTO."""
        from sales_kernel.domain.dtos import CustomerInfo

        return CustomerInfo(
            id=self.id,
            customer_code=self.customer_code,
            name=self.name,
            customer_type=CustomerType(self.customer_type),
            credit_limit=self.credit_limit,
            outstanding_balance=self.outstanding_balance,
            credit_blocked=self.credit_blocked,
            payment_terms_days=self.payment_terms_days,
            is_active=self.is_active,
            address=self.address,
        )
