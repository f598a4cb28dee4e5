"""
Module: sales_kernel.models.formula
Responsibility: ORM persistence for product-mix formulas -- a percentage
    breakdown by product that, multiplied by a total quantity, yields the
    line items of a formula-based order.
Architecture position: Kernel > Models.  May import from db/base.py; to_dto() imports
    domain/dtos.py lazily.

Invariants enforced (by FormulaResolver, not at the ORM level):
    - A formula is usable only when is_active and its item percentages
      total 100.00 (tolerance 0.01).
    - customer_id NULL means the formula is available to every customer.

Audit relevance:
    usage_count / last_used_at are the only fields the order engine writes,
    on successful order creation.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sales_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from sales_kernel.domain.dtos import FormulaInfo, FormulaItemInfo


class Formula(TrackedBase):
    """A named product mix, optionally reserved for one customer."""

    __tablename__ = "formulas"

    __table_args__ = (
        UniqueConstraint("formula_code", name="uq_formula_code"),
        Index("idx_formula_customer_id", "customer_id"),
        Index("idx_formula_is_active", "is_active"),
    )

    formula_code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("customers.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    usage_count: Mapped[int] = mapped_column(nullable=False, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(nullable=True)

    items: Mapped[list["FormulaItem"]] = relationship(
        back_populates="formula",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="FormulaItem.sequence",
    )

    def __repr__(self) -> str:
        return f"<Formula {self.formula_code}: {self.name}>"

    def to_dto(self) -> "FormulaInfo":
        """Convert ORM model to frozen domain DTO."""
        from sales_kernel.domain.dtos import FormulaInfo

        return FormulaInfo(
            id=self.id,
            formula_code=self.formula_code,
            name=self.name,
            is_active=self.is_active,
            items=tuple(item.to_dto() for item in self.items),
            customer_id=self.customer_id,
            usage_count=self.usage_count,
            last_used_at=self.last_used_at,
        )


class FormulaItem(TrackedBase):
    """One product and its share of the formula, in percent."""

    __tablename__ = "formula_items"

    __table_args__ = (
        Index("idx_formula_items_formula_id", "formula_id"),
    )

    formula_id: Mapped[UUID] = mapped_column(
        ForeignKey("formulas.id"), nullable=False
    )
    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id"), nullable=False
    )
    percentage: Mapped[Decimal] = mapped_column(nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False, default=1)

    formula: Mapped[Formula] = relationship(back_populates="items")

    def to_dto(self) -> "FormulaItemInfo":
        """Convert ORM model to frozen domain DTO."""
        from sales_kernel.domain.dtos import FormulaItemInfo

        return FormulaItemInfo(
            product_id=self.product_id,
            percentage=self.percentage,
            sequence=self.sequence,
        )
