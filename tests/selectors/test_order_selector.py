"""
Tests for OrderSelector -- order listing, filtering and lookups.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from sales_kernel.domain.dtos import DirectItem, OrderRequest
from sales_kernel.domain.enums import CustomerType, OrderStatus, PaymentType
from sales_kernel.exceptions import OrderNotFoundError, ValidationError
from sales_kernel.selectors.order_selector import OrderFilters, OrderSelector


def day(n: int) -> datetime:
    return datetime(2026, 1, n, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def selector(session) -> OrderSelector:
    return OrderSelector(session)


@pytest.fixture
def orders(workflow, settings, test_actor_id, create_customer, create_product):
    """Three orders: two cash (approved) and one credit (pending)."""
    cash = create_customer(customer_type=CustomerType.CASH)
    credit = create_customer(credit_limit=Decimal("100000"))
    product = create_product(price=Decimal("10.00"))

    def place(customer, payment_type, quantity, when):
        return workflow.create(
            OrderRequest(
                customer_id=customer.id,
                payment_type=payment_type,
                items=(DirectItem(product.id, Decimal(quantity), Decimal("10.00")),),
                order_date=when,
            ),
            test_actor_id,
            settings,
        ).order

    first = place(cash, PaymentType.CASH, "10", day(5))
    second = place(credit, PaymentType.CREDIT, "30", day(10))
    third = place(cash, PaymentType.CASH, "20", day(15))
    return {"cash": cash, "credit": credit, "orders": [first, second, third]}


class TestLookups:
    def test_get_order(self, selector, orders):
        first = orders["orders"][0]

        loaded = selector.get_order(first.id)

        assert loaded.order_number == "SO-2026-00001"
        assert len(loaded.items) == 1

    def test_get_by_number(self, selector, orders):
        assert selector.get_by_number("SO-2026-00002").id == orders["orders"][1].id

    def test_not_found(self, selector):
        with pytest.raises(OrderNotFoundError):
            selector.get_order(uuid4())
        with pytest.raises(OrderNotFoundError):
            selector.get_by_number("SO-1999-00001")


class TestListOrders:
    def test_default_newest_first(self, selector, orders):
        numbers = [o.order_number for o in selector.list_orders()]

        assert numbers == ["SO-2026-00003", "SO-2026-00002", "SO-2026-00001"]

    def test_filter_by_status(self, selector, orders):
        pending = selector.list_orders(OrderFilters(status=OrderStatus.PENDING))

        assert [o.id for o in pending] == [orders["orders"][1].id]

    def test_filter_by_payment_type_and_customer(self, selector, orders):
        cash = selector.list_orders(OrderFilters(payment_type=PaymentType.CASH))
        by_customer = selector.list_orders(OrderFilters(customer_id=orders["credit"].id))

        assert len(cash) == 2
        assert [o.payment_type for o in by_customer] == [PaymentType.CREDIT]

    def test_date_range(self, selector, orders):
        found = selector.list_orders(OrderFilters(date_from=day(6), date_to=day(14)))

        assert [o.order_number for o in found] == ["SO-2026-00002"]

    def test_search_by_order_number(self, selector, orders):
        found = selector.list_orders(OrderFilters(search="00003"))

        assert [o.order_number for o in found] == ["SO-2026-00003"]

    def test_sort_by_total_ascending(self, selector, orders):
        found = selector.list_orders(OrderFilters(sort_by="total_amount", descending=False))

        assert [o.total_amount for o in found] == sorted(o.total_amount for o in found)
        assert found[0].order_number == "SO-2026-00001"

    def test_limit_and_offset(self, selector, orders):
        found = selector.list_orders(OrderFilters(limit=1, offset=1))

        assert [o.order_number for o in found] == ["SO-2026-00002"]

    def test_invalid_sort_column(self, selector):
        with pytest.raises(ValidationError) as exc_info:
            selector.list_orders(OrderFilters(sort_by="customer_id; DROP TABLE"))

        assert exc_info.value.field == "sort_by"
