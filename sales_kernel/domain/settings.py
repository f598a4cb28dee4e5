"""
OrderSettings -- per-tenant order configuration.

Responsibility:
    Immutable bundle of the three knobs that drive order creation: whether
    large orders need approval, the threshold at which they do, and the
    tax rate.  Loaded by ``sales_config`` and passed explicitly into every
    workflow call; the engine never reads settings from module globals.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.

Invariants enforced:
    - approval_threshold >= 0.
    - 0 <= tax_rate <= 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

DEFAULT_APPROVAL_THRESHOLD = Decimal("1000000")
DEFAULT_TAX_RATE = Decimal("0.075")


@dataclass(frozen=True)
class OrderSettings:
    """Approval and tax settings in effect for one tenant."""

    require_approval: bool = True
    approval_threshold: Decimal = DEFAULT_APPROVAL_THRESHOLD
    tax_rate: Decimal = DEFAULT_TAX_RATE

    def __post_init__(self) -> None:
        if not isinstance(self.approval_threshold, Decimal):
            raise TypeError("approval_threshold must be Decimal")
        if not isinstance(self.tax_rate, Decimal):
            raise TypeError("tax_rate must be Decimal")
        if self.approval_threshold < 0:
            raise ValueError(
                f"approval_threshold cannot be negative: {self.approval_threshold}"
            )
        if self.tax_rate < 0 or self.tax_rate > 1:
            raise ValueError(f"tax_rate must be between 0 and 1: {self.tax_rate}")

    def meets_threshold(self, total_amount: Decimal) -> bool:
        """True when ``total_amount`` is at or above the approval threshold."""
        return total_amount >= self.approval_threshold
