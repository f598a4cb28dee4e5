"""
StockAvailability -- point-in-time stock checks over the inventory collaborator.

Responsibility:
    Answer "is there enough of product P to sell Q?" for order creation and
    approval, and commit stock when an order is approved or delivered.

Architecture position:
    Kernel > Services -- adapter over an ``InventoryGateway``.  Runs inside
    the caller's transaction (flush-only, never commits).

Invariants enforced:
    - available_stock = on_hand - reserved, floored at 0.  A product with
      no inventory row has 0 available.
    - Creation only checks; nothing is locked or reserved for a pending
      order.  Approval locks the inventory rows (sorted by product id) and
      re-checks before reserving.
    - reserve() is conditional on the row still having the quantity
      available, so an unlocked reservation cannot over-commit stock.
    - consume() releases the reservation and reduces on_hand, both floored
      at 0.

Failure modes:
    - InsufficientStockError: requested quantity exceeds availability.
    - StockServiceUnavailableError: the inventory backend raised a
      SQLAlchemyError.  The caller's transaction rolls back.
    - ProductNotFoundError: a shortfall on a product unknown to the catalog.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Protocol, Sequence
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sales_kernel.domain.values import ZERO
from sales_kernel.exceptions import InsufficientStockError, StockServiceUnavailableError
from sales_kernel.logging_config import get_logger
from sales_kernel.models.product import InventoryLevel
from sales_kernel.services.base import BaseService
from sales_kernel.services.product_catalog import ProductCatalog, SqlProductCatalog

logger = get_logger("services.stock")


class InventoryGateway(Protocol):
    """Pluggable interface to the inventory subsystem."""

    def available_stock(self, product_id: UUID) -> Decimal:
        """on_hand - reserved, never negative."""
        ...

    def lock(self, product_ids: Sequence[UUID]) -> None:
        """Exclusively lock the inventory rows of ``product_ids``."""
        ...

    def reserve(self, product_id: UUID, quantity: Decimal) -> bool:
        """Reserve ``quantity`` if still available; False if not."""
        ...

    def consume(self, product_id: UUID, quantity: Decimal) -> None:
        """Release ``quantity`` from reserved and remove it from on_hand."""
        ...


class SqlInventoryGateway(BaseService):
    """InventoryGateway over the ``inventory_levels`` table."""

    def available_stock(self, product_id: UUID) -> Decimal:
        level = self.session.execute(
            select(InventoryLevel)
            .where(InventoryLevel.product_id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if level is None:
            return ZERO
        return level.available

    def lock(self, product_ids: Sequence[UUID]) -> None:
        if not product_ids:
            return
        # Every transaction locks in the same (sorted) order.
        ordered = sorted(set(product_ids), key=str)
        self.session.execute(
            select(InventoryLevel)
            .where(InventoryLevel.product_id.in_(ordered))
            .order_by(InventoryLevel.product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()

    def reserve(self, product_id: UUID, quantity: Decimal) -> bool:
        result = self.session.execute(
            update(InventoryLevel)
            .where(InventoryLevel.product_id == product_id)
            .where(InventoryLevel.on_hand - InventoryLevel.reserved >= quantity)
            .values(reserved=InventoryLevel.reserved + quantity)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def consume(self, product_id: UUID, quantity: Decimal) -> None:
        self.session.execute(
            update(InventoryLevel)
            .where(InventoryLevel.product_id == product_id)
            .values(
                on_hand=case(
                    (InventoryLevel.on_hand >= quantity, InventoryLevel.on_hand - quantity),
                    else_=ZERO,
                ),
                reserved=case(
                    (InventoryLevel.reserved >= quantity, InventoryLevel.reserved - quantity),
                    else_=ZERO,
                ),
            )
            .execution_options(synchronize_session="fetch")
        )


class StockAvailability:
    """
    Stock checks and commitments for sales orders.

    Contract:
        Every call to the gateway is wrapped so that backend failures surface
        as StockServiceUnavailableError, never as a raw SQLAlchemyError.
    """

    def __init__(
        self,
        session: Session,
        gateway: InventoryGateway | None = None,
        catalog: ProductCatalog | None = None,
    ):
        self._gateway = gateway or SqlInventoryGateway(session)
        self._catalog = catalog or SqlProductCatalog(session)

    def available_stock(self, product_id: UUID) -> Decimal:
        try:
            return self._gateway.available_stock(product_id)
        except SQLAlchemyError as exc:
            logger.error(
                "stock_service_unavailable",
                extra={"product_id": str(product_id)},
                exc_info=True,
            )
            raise StockServiceUnavailableError(str(product_id), str(exc)) from exc

    def is_available(self, product_id: UUID, quantity: Decimal) -> bool:
        return self.available_stock(product_id) >= quantity

    def check(self, product_id: UUID, quantity: Decimal) -> None:
        """Raise InsufficientStockError if ``quantity`` is not available."""
        available = self.available_stock(product_id)
        if available < quantity:
            logger.info(
                "stock_check_failed",
                extra={
                    "product_id": str(product_id),
                    "requested": str(quantity),
                    "available": str(available),
                },
            )
            raise InsufficientStockError(
                product_id=str(product_id),
                product_name=self._catalog.name(product_id),
                requested=quantity,
                available=available,
            )

    def check_all(self, lines: Iterable[tuple[UUID, Decimal]]) -> None:
        """Check every (product_id, quantity); stop at the first shortfall."""
        for product_id, quantity in lines:
            self.check(product_id, quantity)

    def lock_products(self, product_ids: Sequence[UUID]) -> None:
        try:
            self._gateway.lock(product_ids)
        except SQLAlchemyError as exc:
            first = str(product_ids[0]) if product_ids else ""
            raise StockServiceUnavailableError(first, str(exc)) from exc

    def reserve(self, lines: Iterable[tuple[UUID, Decimal]]) -> None:
        for product_id, quantity in lines:
            try:
                reserved = self._gateway.reserve(product_id, quantity)
            except SQLAlchemyError as exc:
                raise StockServiceUnavailableError(str(product_id), str(exc)) from exc
            if not reserved:
                raise InsufficientStockError(
                    product_id=str(product_id),
                    product_name=self._catalog.name(product_id),
                    requested=quantity,
                    available=self.available_stock(product_id),
                )
            logger.debug(
                "stock_reserved",
                extra={"product_id": str(product_id), "quantity": str(quantity)},
            )

    def consume(self, lines: Iterable[tuple[UUID, Decimal]]) -> None:
        for product_id, quantity in lines:
            try:
                self._gateway.consume(product_id, quantity)
            except SQLAlchemyError as exc:
                raise StockServiceUnavailableError(str(product_id), str(exc)) from exc
            logger.debug(
                "stock_consumed",
                extra={"product_id": str(product_id), "quantity": str(quantity)},
            )
