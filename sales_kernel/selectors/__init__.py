"""Selectors for the sales kernel (read side)."""

from sales_kernel.selectors.order_selector import OrderFilters, OrderSelector

__all__ = [
    "OrderFilters",
    "OrderSelector",
]
