"""
Module: sales_kernel.domain.credit_policy
Responsibility:
    Decide whether a customer may buy on credit for a given amount, and
    validate changes to a customer's credit facility.

Architecture position:
    Kernel > Domain -- pure functions over ``CustomerInfo``, zero I/O.
    The services load and lock the customer row; this module only decides.

Invariants enforced:
    - A blocked customer never passes, whatever the amount.
    - Only CREDIT and BOTH customer types carry a credit facility.
    - The comparison uses the signed availability (limit - outstanding);
      the value reported for display is clamped at zero.
    - A credit limit can never be set below the outstanding balance.
    - Cash customers have no credit facility to change.

Failure modes:
    - ``evaluate`` never raises; it returns a ``CreditDecision``.
    - ``set_limit`` / ``set_blocked`` / ``check_type_change`` raise
      BusinessRuleError or ValidationError.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sales_kernel.domain.dtos import CustomerInfo, usage_percentage
from sales_kernel.domain.enums import CustomerType
from sales_kernel.domain.values import ZERO
from sales_kernel.exceptions import BusinessRuleError, ValidationError

REASON_BLOCKED = "blocked"
REASON_NOT_CREDIT_ENABLED = "not credit-enabled"
REASON_INSUFFICIENT_CREDIT = "insufficient credit"


@dataclass(frozen=True)
class CreditDecision:
    """
    Outcome of a credit check.

    ``available_credit`` is for display (never negative); ``signed_available``
    is the raw limit minus outstanding used for the comparison.
    """

    allowed: bool
    reason: str | None
    available_credit: Decimal
    signed_available: Decimal

    @property
    def is_eligibility_failure(self) -> bool:
        return self.reason in (REASON_BLOCKED, REASON_NOT_CREDIT_ENABLED)


def signed_available(customer: CustomerInfo) -> Decimal:
    return customer.credit_limit - customer.outstanding_balance


def available_credit(customer: CustomerInfo) -> Decimal:
    """Credit the customer can still draw, floored at zero."""
    return max(ZERO, signed_available(customer))


def evaluate(customer: CustomerInfo, requested_amount: Decimal) -> CreditDecision:
    """
    Decide whether ``customer`` may take ``requested_amount`` on credit.

    Called with ``requested_amount=0`` as a pure eligibility check.
    """
    signed = signed_available(customer)
    display = max(ZERO, signed)

    if customer.credit_blocked:
        return CreditDecision(False, REASON_BLOCKED, display, signed)
    if not customer.has_credit_facility:
        return CreditDecision(False, REASON_NOT_CREDIT_ENABLED, display, signed)
    if requested_amount > signed:
        return CreditDecision(False, REASON_INSUFFICIENT_CREDIT, display, signed)
    return CreditDecision(True, None, display, signed)


def credit_usage_percentage(customer: CustomerInfo) -> Decimal:
    """Outstanding balance as a percentage of the limit (0 without a limit)."""
    return usage_percentage(customer.outstanding_balance, customer.credit_limit)


def set_limit(customer: CustomerInfo, new_limit: Decimal) -> Decimal:
    """Validate a new credit limit and return it."""
    if new_limit < ZERO:
        raise ValidationError("credit_limit", f"cannot be negative, got {new_limit}")
    if customer.is_cash_only:
        raise BusinessRuleError("Cannot set credit limit for cash-only customers")
    if new_limit < customer.outstanding_balance:
        raise BusinessRuleError(
            f"Credit limit ({new_limit}) cannot be less than the current "
            f"outstanding balance ({customer.outstanding_balance})"
        )
    return new_limit


def set_blocked(customer: CustomerInfo, blocked: bool) -> bool:
    """Validate a block/unblock request and return the new flag."""
    if customer.is_cash_only:
        raise BusinessRuleError("Cash-only customers have no credit to block")
    return blocked


def check_type_change(customer: CustomerInfo, new_type: CustomerType) -> None:
    """
    Refuse a switch to CASH while the customer still owes money.

    A successful switch to CASH zeroes the limit and payment terms; the
    service applies that.
    """
    if new_type == CustomerType.CASH and customer.outstanding_balance > ZERO:
        raise BusinessRuleError(
            "Cannot change to cash-only while outstanding balance is "
            f"{customer.outstanding_balance}"
        )
