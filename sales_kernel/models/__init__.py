"""ORM models for the sales kernel."""

from sales_kernel.models.customer import CREDIT_ENABLED_TYPES, Customer, CustomerType
from sales_kernel.models.formula import Formula, FormulaItem
from sales_kernel.models.product import InventoryLevel, Product
from sales_kernel.models.sales_order import (
    FulfillmentStatus,
    OrderStatus,
    PaymentType,
    SalesOrder,
    SalesOrderItem,
)
from sales_kernel.models.sequence import SequenceCounter

__all__ = [
    "CREDIT_ENABLED_TYPES",
    "Customer",
    "CustomerType",
    "Formula",
    "FormulaItem",
    "FulfillmentStatus",
    "InventoryLevel",
    "OrderStatus",
    "PaymentType",
    "Product",
    "SalesOrder",
    "SalesOrderItem",
    "SequenceCounter",
]
