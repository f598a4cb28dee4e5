"""
Values -- Decimal helpers for money and quantities.

Responsibility:
    The one place where monetary rounding is defined.  Every rounding in
    the engine goes through ``round_money`` so the rule (2 decimal places,
    half-up) cannot drift between call sites.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Money and quantities are Decimal, never float.  ``to_decimal`` rejects
      floats as a ValidationError.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from sales_kernel.exceptions import ValidationError

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return amount.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Coerce an int, str, or Decimal to Decimal.

    Raises:
        ValidationError: for float or bool input, or a value that is not a
            finite number.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(
            field, f"must be Decimal, int or str, not {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError(field, f"is not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(field, f"must be finite, got {value!r}")
    return result
