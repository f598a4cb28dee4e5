"""
Module: sales_kernel.models.product
Responsibility: ORM persistence for the product catalog and the per-product
    inventory level.  Both tables back external collaborators (catalog and
    inventory); the order engine only reads them, except that approval
    reserves stock and delivery consumes it.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One InventoryLevel row per product (uq_inventory_product).
    - available = on_hand - reserved; neither column goes negative.

Audit relevance:
    Approval locks the InventoryLevel rows of every product on the order
    (SELECT ... FOR UPDATE, sorted by product id) before re-checking and
    reserving, so two approvals against the same product serialize.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sales_kernel.db.base import TrackedBase


class Product(TrackedBase):
    """A sellable product with its current selling price."""

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
    )

    sku: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"


class InventoryLevel(TrackedBase):
    """
    Quantity on hand and quantity reserved for one product.

    Guarantees:
        - on_hand >= 0 and reserved >= 0 (check constraints).
    """

    __tablename__ = "inventory_levels"

    __table_args__ = (
        UniqueConstraint("product_id", name="uq_inventory_product"),
        CheckConstraint("on_hand >= 0", name="ck_inventory_on_hand_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_inventory_reserved_non_negative"),
    )

    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id"), nullable=False
    )
    on_hand: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    reserved: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    @property
    def available(self) -> Decimal:
        """Quantity available for sale, floored at zero."""
        return max(Decimal("0"), self.on_hand - self.reserved)

    def __repr__(self) -> str:
        return f"<InventoryLevel {self.product_id}: {self.on_hand} on hand, {self.reserved} reserved>"
