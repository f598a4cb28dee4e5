"""
OrderSelector -- read-side queries over sales orders.

Lists orders with the filters the sales desk uses (status, fulfillment
status, payment type, customer, order-date range, order-number search)
and loads single orders.  Sorting is restricted to a whitelist of columns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from sales_kernel.domain.dtos import SalesOrderInfo
from sales_kernel.domain.enums import FulfillmentStatus, OrderStatus, PaymentType
from sales_kernel.exceptions import OrderNotFoundError, ValidationError
from sales_kernel.models.sales_order import SalesOrder
from sales_kernel.selectors.base import BaseSelector

SORTABLE_COLUMNS = {
    "order_date": SalesOrder.order_date,
    "order_number": SalesOrder.order_number,
    "total_amount": SalesOrder.total_amount,
    "created_at": SalesOrder.created_at,
    "status": SalesOrder.status,
}


@dataclass(frozen=True)
class OrderFilters:
    """Optional filters for ``OrderSelector.list_orders``; None means no filter."""

    status: OrderStatus | None = None
    fulfillment_status: FulfillmentStatus | None = None
    payment_type: PaymentType | None = None
    customer_id: UUID | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    search: str | None = None
    sort_by: str = "order_date"
    descending: bool = True
    limit: int | None = None
    offset: int = 0


class OrderSelector(BaseSelector):
    """Read-only access to sales orders."""

    def get_order(self, order_id: UUID) -> SalesOrderInfo:
        order = self.session.get(SalesOrder, order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order.to_dto()

    def get_by_number(self, order_number: str) -> SalesOrderInfo:
        order = self.session.execute(
            select(SalesOrder).where(SalesOrder.order_number == order_number)
        ).scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(order_number)
        return order.to_dto()

    def list_orders(self, filters: OrderFilters | None = None) -> list[SalesOrderInfo]:
        """
        Orders matching ``filters``.

        Raises:
            ValidationError: ``sort_by`` is not a sortable column.
        """
        filters = filters or OrderFilters()
        column = SORTABLE_COLUMNS.get(filters.sort_by)
        if column is None:
            raise ValidationError(
                "sort_by",
                f"'{filters.sort_by}' is not one of {', '.join(sorted(SORTABLE_COLUMNS))}",
            )

        stmt = select(SalesOrder)
        if filters.status is not None:
            stmt = stmt.where(SalesOrder.status == OrderStatus(filters.status).value)
        if filters.fulfillment_status is not None:
            stmt = stmt.where(
                SalesOrder.fulfillment_status
                == FulfillmentStatus(filters.fulfillment_status).value
            )
        if filters.payment_type is not None:
            stmt = stmt.where(
                SalesOrder.payment_type == PaymentType(filters.payment_type).value
            )
        if filters.customer_id is not None:
            stmt = stmt.where(SalesOrder.customer_id == filters.customer_id)
        if filters.date_from is not None:
            stmt = stmt.where(SalesOrder.order_date >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(SalesOrder.order_date <= filters.date_to)
        if filters.search:
            stmt = stmt.where(SalesOrder.order_number.ilike(f"%{filters.search}%"))

        stmt = stmt.order_by(column.desc() if filters.descending else column.asc())
        stmt = stmt.order_by(SalesOrder.order_number)
        if filters.offset:
            stmt = stmt.offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)

        return [order.to_dto() for order in self.session.execute(stmt).scalars().all()]
