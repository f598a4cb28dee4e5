"""
Typed Exception Hierarchy for the Sales Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Order submission and approval fail for many distinct business reasons: the
customer is over their limit, a product ran out between creation and
approval, a formula no longer sums to 100%, an approver tried to approve a
cancelled order.  Callers must be able to tell these apart without parsing
message strings, and must be able to render a precise message from
structured fields (product name, requested vs. available, credit numbers).

Every exception therefore:
  1. Has its own class (catch by type, not message)
  2. Carries a class-level CODE attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not only in the message)

Example:
    try:
        workflow.approve(order_id, actor_id=actor)
    except InsufficientStockError as e:
        api_response(
            code=e.code,
            product=e.product_name,
            requested=e.requested,
            available=e.available,
        )
    except CreditLimitExceededError as e:
        api_response(code=e.code, available=e.available, required=e.required)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from SalesKernelError:

    SalesKernelError (base)
    |
    +-- NotFoundError
    |   +-- CustomerNotFoundError
    |   +-- OrderNotFoundError
    |   +-- FormulaNotFoundError
    |   +-- ProductNotFoundError
    |
    +-- ValidationError
    |   +-- InvalidQuantityError
    |   +-- InvalidFulfillmentStatusError
    |
    +-- FormulaInvalidError
    +-- FormulaNotAvailableError
    +-- InsufficientStockError
    +-- CreditLimitExceededError
    |
    +-- BusinessRuleError
    |   +-- CreditNotAllowedError
    |
    +-- InvalidTransitionError
    +-- PermissionDeniedError
    |
    +-- CollaboratorError
        +-- StockServiceUnavailableError

ApprovalRequired is NOT in this hierarchy.  An order that needs
approval was created successfully; see sales_kernel.domain.dtos.

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                     | When Raised
-------------------------|-----------------------------------------------------
CUSTOMER_NOT_FOUND       | Unknown customer id
ORDER_NOT_FOUND          | Unknown sales order id
FORMULA_NOT_FOUND        | Unknown formula id
PRODUCT_NOT_FOUND        | Unknown product id (catalog lookup)
VALIDATION_ERROR         | Malformed input (negative price, bad discount, ...)
INVALID_QUANTITY         | Quantity <= 0
INVALID_STATUS           | Unknown fulfillment status
FORMULA_INVALID          | Inactive, or percentages do not total 100 (+/-0.01)
FORMULA_NOT_AVAILABLE    | Formula restricted to a different customer
INSUFFICIENT_STOCK       | available_stock < requested quantity
CREDIT_LIMIT_EXCEEDED    | Order total exceeds signed available credit
BUSINESS_RULE_VIOLATION  | Policy violation (limit below outstanding, ...)
CREDIT_NOT_ALLOWED       | Credit order for blocked / non-credit customer
INVALID_TRANSITION       | Sales-order state machine violation
PERMISSION_DENIED        | Permission gate refused the actor
STOCK_SERVICE_UNAVAILABLE| Inventory collaborator failed

===============================================================================
PROPAGATION
===============================================================================

Every error raised inside a workflow operation rolls back the whole
transaction: no partial orders, no orphaned line items, no half-reserved
stock.  The engine does no user-facing formatting beyond the message.
"""

from decimal import Decimal


class SalesKernelError(Exception):
    """
    Base exception for all sales kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SALES_KERNEL_ERROR"


# Lookup failures


class NotFoundError(SalesKernelError):
    """Base exception for unknown entities."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class CustomerNotFoundError(NotFoundError):
    """Customer with given ID was not found."""

    code: str = "CUSTOMER_NOT_FOUND"

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__("Customer", customer_id)


class OrderNotFoundError(NotFoundError):
    """Sales order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Sales order", order_id)


class FormulaNotFoundError(NotFoundError):
    """Formula with given ID was not found."""

    code: str = "FORMULA_NOT_FOUND"

    def __init__(self, formula_id: str):
        self.formula_id = formula_id
        super().__init__("Formula", formula_id)


class ProductNotFoundError(NotFoundError):
    """Product with given ID is not in the catalog."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Product", product_id)


# Input validation


class ValidationError(SalesKernelError):
    """Malformed input."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class InvalidQuantityError(ValidationError):
    """Quantity must be strictly positive."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Decimal, field: str = "quantity"):
        self.quantity = quantity
        super().__init__(field, f"must be greater than zero, got {quantity}")


class InvalidFulfillmentStatusError(ValidationError):
    """Fulfillment status is not one of the known values."""

    code: str = "INVALID_STATUS"

    def __init__(self, status: str, allowed: tuple[str, ...]):
        self.status = status
        self.allowed = allowed
        super().__init__(
            "fulfillment_status",
            f"'{status}' is not one of {', '.join(allowed)}",
        )


# Formula errors


class FormulaInvalidError(SalesKernelError):
    """Formula is inactive or its percentages do not total 100%."""

    code: str = "FORMULA_INVALID"

    def __init__(self, formula_id: str, reason: str):
        self.formula_id = formula_id
        self.reason = reason
        super().__init__(f"Formula {formula_id} is not usable: {reason}")


class FormulaNotAvailableError(SalesKernelError):
    """Formula is restricted to a different customer."""

    code: str = "FORMULA_NOT_AVAILABLE"

    def __init__(self, formula_id: str, customer_id: str):
        self.formula_id = formula_id
        self.customer_id = customer_id
        super().__init__(
            f"Formula {formula_id} is not available for customer {customer_id}"
        )


# Stock and credit


class InsufficientStockError(SalesKernelError):
    """Requested quantity exceeds the quantity available for sale."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        product_name: str,
        requested: Decimal,
        available: Decimal,
    ):
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name}: "
            f"requested {requested}, available {available}"
        )


class CreditLimitExceededError(SalesKernelError):
    """Order total exceeds the customer's available credit."""

    code: str = "CREDIT_LIMIT_EXCEEDED"

    def __init__(self, customer_id: str, available: Decimal, required: Decimal):
        self.customer_id = customer_id
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient credit limit for customer {customer_id}. "
            f"Available: {available}, Required: {required}"
        )


# Policy violations


class BusinessRuleError(SalesKernelError):
    """Catch-all for policy violations."""

    code: str = "BUSINESS_RULE_VIOLATION"

    def __init__(self, message: str):
        self.rule_message = message
        super().__init__(message)


class CreditNotAllowedError(BusinessRuleError):
    """Credit order for a customer without a usable credit facility."""

    code: str = "CREDIT_NOT_ALLOWED"

    def __init__(self, customer_id: str, reason: str):
        self.customer_id = customer_id
        self.reason = reason
        super().__init__(
            f"Credit purchase not allowed for customer {customer_id}: {reason}"
        )


# State machine


class InvalidTransitionError(SalesKernelError):
    """Action is not legal from the order's current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, order_id: str, current_status: str, action: str):
        self.order_id = order_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} sales order {order_id} in status '{current_status}'"
        )


class PermissionDeniedError(SalesKernelError):
    """The permission gate refused the actor."""

    code: str = "PERMISSION_DENIED"

    def __init__(self, actor_id: str, permission: str):
        self.actor_id = actor_id
        self.permission = permission
        super().__init__(f"Actor {actor_id} lacks permission '{permission}'")


# External collaborators


class CollaboratorError(SalesKernelError):
    """Base exception for failures of external collaborators."""

    code: str = "COLLABORATOR_ERROR"


class StockServiceUnavailableError(CollaboratorError):
    """The inventory collaborator could not answer."""

    code: str = "STOCK_SERVICE_UNAVAILABLE"

    def __init__(self, product_id: str, detail: str):
        self.product_id = product_id
        self.detail = detail
        super().__init__(
            f"Stock service unavailable for product {product_id}: {detail}"
        )
