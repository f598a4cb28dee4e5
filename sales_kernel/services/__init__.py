"""Services for the sales kernel (write side)."""

from sales_kernel.services.audit_sink import AuditSink, LoggingAuditSink
from sales_kernel.services.customer_credit_service import CustomerCreditService
from sales_kernel.services.formula_service import FormulaService
from sales_kernel.services.order_workflow import OrderWorkflowService
from sales_kernel.services.permissions import PermissionGate
from sales_kernel.services.product_catalog import ProductCatalog, SqlProductCatalog
from sales_kernel.services.sequence_service import SequenceService
from sales_kernel.services.stock_availability import (
    InventoryGateway,
    SqlInventoryGateway,
    StockAvailability,
)

__all__ = [
    "AuditSink",
    "CustomerCreditService",
    "FormulaService",
    "InventoryGateway",
    "LoggingAuditSink",
    "OrderWorkflowService",
    "PermissionGate",
    "ProductCatalog",
    "SequenceService",
    "SqlInventoryGateway",
    "SqlProductCatalog",
    "StockAvailability",
]
