"""
Enumerations shared by the domain core and the ORM layer.

Pure value definitions -- ZERO I/O.  ORM models store the ``.value`` strings;
DTO builders convert back to members with ``Enum(value)``.
"""

from enum import Enum


class CustomerType(str, Enum):
    """Classification of customers.

    Contract: only CREDIT and BOTH carry a credit facility.  The remaining
    types are trade classifications that buy for cash.
    """

    CASH = "cash"
    CREDIT = "credit"
    BOTH = "both"
    WHOLESALE = "wholesale"
    RETAIL = "retail"
    DISTRIBUTOR = "distributor"


CREDIT_ENABLED_TYPES: frozenset[CustomerType] = frozenset(
    {CustomerType.CREDIT, CustomerType.BOTH}
)


class PaymentType(str, Enum):
    """How the customer pays for the order."""

    CASH = "cash"
    CREDIT = "credit"


class OrderStatus(str, Enum):
    """Order-level lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FulfillmentStatus(str, Enum):
    """Physical fulfillment progress; meaningful once the order is approved."""

    AWAITING = "awaiting"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
