"""
Tests for the Decimal helpers in sales_kernel.domain.values.
"""

from decimal import Decimal

import pytest

from sales_kernel.domain.values import round_money, to_decimal
from sales_kernel.exceptions import ValidationError


class TestToDecimal:
    @pytest.mark.parametrize(
        "value,expected",
        [(Decimal("1.50"), Decimal("1.50")), (3, Decimal("3")), ("2.25", Decimal("2.25"))],
    )
    def test_accepted_inputs(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", [1.5, True])
    def test_float_and_bool_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            to_decimal(value, "quantity")

        assert exc_info.value.field == "quantity"

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            to_decimal(value, "unit_price")

        assert exc_info.value.field == "unit_price"


class TestRoundMoney:
    def test_half_up(self):
        assert round_money(Decimal("0.005")) == Decimal("0.01")
        assert round_money(Decimal("0.004")) == Decimal("0.00")
