"""
OrderPricing -- subtotal, tax and total for a set of order lines.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - subtotal = round2(sum(quantity * unit_price))
    - tax_amount = round2((subtotal - discount) * tax_rate), half-up
    - discount has at most 2 decimal places
    - total_amount = subtotal - discount + tax_amount, exactly
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sales_kernel.domain.dtos import ResolvedLine
from sales_kernel.domain.values import ZERO, round_money
from sales_kernel.exceptions import InvalidQuantityError, ValidationError


@dataclass(frozen=True)
class PricingResult:
    """Monetary figures of a priced order."""

    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    @property
    def taxable_amount(self) -> Decimal:
        return self.subtotal - self.discount_amount


def validate_line(line: ResolvedLine) -> None:
    if line.quantity <= ZERO:
        raise InvalidQuantityError(line.quantity)
    if line.unit_price < ZERO:
        raise ValidationError(
            "unit_price", f"cannot be negative, got {line.unit_price}"
        )


def price(
    lines: Sequence[ResolvedLine],
    discount_amount: Decimal,
    tax_rate: Decimal,
) -> PricingResult:
    """Price ``lines`` with a flat discount and a single tax rate."""
    if discount_amount < ZERO:
        raise ValidationError(
            "discount_amount", f"cannot be negative, got {discount_amount}"
        )
    if discount_amount != round_money(discount_amount):
        raise ValidationError(
            "discount_amount", f"must have at most 2 decimal places, got {discount_amount}"
        )
    if tax_rate < ZERO:
        raise ValidationError("tax_rate", f"cannot be negative, got {tax_rate}")

    for line in lines:
        validate_line(line)

    subtotal = round_money(sum((line.line_total for line in lines), ZERO))
    if discount_amount > subtotal:
        raise ValidationError(
            "discount_amount",
            f"{discount_amount} exceeds subtotal {subtotal}",
        )

    tax_amount = round_money((subtotal - discount_amount) * tax_rate)
    return PricingResult(
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        total_amount=subtotal - discount_amount + tax_amount,
    )
