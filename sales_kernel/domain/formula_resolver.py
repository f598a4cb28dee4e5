"""
FormulaResolver -- expand a product-mix formula into order lines.

Responsibility:
    Turn (formula, total quantity) into per-product lines, each priced at
    the catalog's current selling price.  Also validates that a formula is
    usable at all.

Architecture position:
    Kernel > Domain -- pure.  The price lookup is injected as a callable so
    this module never touches the catalog directly.

Invariants enforced:
    - Only active formulas whose percentages are within 0.01 of 100
      (exclusive) resolve; 99.99 and 100.01 are invalid.
    - quantity_i = percentage_i / 100 * total_quantity, unrounded; the
      resolved quantities sum back to total_quantity.
    - Unit prices are read at resolution time, never cached on the formula.

Failure modes:
    - FormulaNotAvailableError: formula restricted to another customer.
    - FormulaInvalidError: inactive, or percentages out of tolerance.
    - InvalidQuantityError: total_quantity <= 0.
    - ProductNotFoundError: propagated from the price lookup.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable
from uuid import UUID

from sales_kernel.domain.dtos import FormulaInfo, ResolvedLine
from sales_kernel.domain.values import HUNDRED, ZERO
from sales_kernel.exceptions import (
    FormulaInvalidError,
    FormulaNotAvailableError,
    InvalidQuantityError,
)

PERCENTAGE_TOLERANCE = Decimal("0.01")

PriceLookup = Callable[[UUID], Decimal]


def is_valid(formula: FormulaInfo) -> bool:
    """True when the formula is active and its percentages total 100."""
    return (
        formula.is_active
        and bool(formula.items)
        and abs(formula.total_percentage - HUNDRED) < PERCENTAGE_TOLERANCE
    )


def validate(formula: FormulaInfo) -> None:
    """Raise FormulaInvalidError unless the formula can be used."""
    if not formula.is_active:
        raise FormulaInvalidError(str(formula.id), "formula is inactive")
    if not formula.items:
        raise FormulaInvalidError(str(formula.id), "formula has no items")
    total = formula.total_percentage
    if abs(total - HUNDRED) >= PERCENTAGE_TOLERANCE:
        raise FormulaInvalidError(
            str(formula.id),
            f"percentages total {total}%, expected 100%",
        )


def calculate_requirements(
    formula: FormulaInfo,
    total_quantity: Decimal,
) -> list[tuple[UUID, Decimal]]:
    """(product_id, quantity) per formula item, in item order."""
    return [
        (item.product_id, item.percentage / HUNDRED * total_quantity)
        for item in formula.items
    ]


def resolve(
    formula: FormulaInfo,
    customer_id: UUID,
    total_quantity: Decimal,
    price_lookup: PriceLookup,
) -> list[ResolvedLine]:
    """
    Expand ``formula`` for ``total_quantity`` into priced lines.

    Checks run in a fixed order: availability to the customer, formula
    validity, then quantity.  Items with a 0% share produce no line.
    """
    if not formula.is_available_to(customer_id):
        raise FormulaNotAvailableError(str(formula.id), str(customer_id))
    validate(formula)
    if total_quantity <= ZERO:
        raise InvalidQuantityError(total_quantity, field="total_quantity")

    return [
        ResolvedLine(
            product_id=product_id,
            quantity=quantity,
            unit_price=price_lookup(product_id),
        )
        for product_id, quantity in calculate_requirements(formula, total_quantity)
        if quantity > ZERO
    ]
