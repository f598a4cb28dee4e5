"""
Product catalog collaborator.

``ProductCatalog`` is the interface the order engine needs from the
catalog: the current selling price (for formula resolution) and the
display name (for InsufficientStockError).  ``SqlProductCatalog`` backs it
with the ``products`` table.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sales_kernel.exceptions import ProductNotFoundError
from sales_kernel.models.product import Product
from sales_kernel.services.base import BaseService


class ProductCatalog(Protocol):
    """Pluggable interface for product lookups."""

    def selling_price(self, product_id: UUID) -> Decimal:
        """Current selling price of the product."""
        ...

    def name(self, product_id: UUID) -> str:
        """Display name of the product."""
        ...


class SqlProductCatalog(BaseService):
    """ProductCatalog over the ``products`` table."""

    def _get(self, product_id: UUID) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def selling_price(self, product_id: UUID) -> Decimal:
        return self._get(product_id).selling_price

    def name(self, product_id: UUID) -> str:
        return self._get(product_id).name
