"""
Pure domain layer.

This module contains pure data transfer objects and domain logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (time comes from an injected Clock)

All domain objects are immutable and deterministic.
"""

from sales_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from sales_kernel.domain.credit_policy import CreditDecision
from sales_kernel.domain.dtos import (
    ApprovalRequired,
    AuditEvent,
    CreditAlert,
    CreditSummary,
    CustomerInfo,
    DirectItem,
    FormulaInfo,
    FormulaItemInfo,
    OrderCreationResult,
    OrderRequest,
    ResolvedLine,
    SalesOrderInfo,
    SalesOrderItemInfo,
)
from sales_kernel.domain.enums import (
    CREDIT_ENABLED_TYPES,
    CustomerType,
    FulfillmentStatus,
    OrderStatus,
    PaymentType,
)
from sales_kernel.domain.order_state import (
    SALES_ORDER_WORKFLOW,
    TransitionContext,
    TransitionResult,
)
from sales_kernel.domain.pricing import PricingResult
from sales_kernel.domain.settings import OrderSettings
from sales_kernel.domain.values import round_money, to_decimal

__all__ = [
    # Time
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Enums
    "CREDIT_ENABLED_TYPES",
    "CustomerType",
    "FulfillmentStatus",
    "OrderStatus",
    "PaymentType",
    # DTOs
    "ApprovalRequired",
    "AuditEvent",
    "CreditAlert",
    "CreditSummary",
    "CustomerInfo",
    "DirectItem",
    "FormulaInfo",
    "FormulaItemInfo",
    "OrderCreationResult",
    "OrderRequest",
    "ResolvedLine",
    "SalesOrderInfo",
    "SalesOrderItemInfo",
    # Decisions
    "CreditDecision",
    "PricingResult",
    "OrderSettings",
    "SALES_ORDER_WORKFLOW",
    "TransitionContext",
    "TransitionResult",
    # Values
    "round_money",
    "to_decimal",
]
