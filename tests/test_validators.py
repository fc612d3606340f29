from decimal import Decimal

import pytest

from app.utils.validators import parse_money, digits_only, is_plausible_phone


@pytest.mark.parametrize("value,expected", [
    ("50", Decimal("50")),
    ("50,50", Decimal("50.50")),
    ("R$ 1.234,56", Decimal("1234.56")),
    (20, Decimal("20")),
    (37.5, Decimal("37.5")),
])
def test_parse_money(value, expected):
    assert parse_money(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "cinquenta", "NaN", "Infinity", float("nan"), float("inf"), float("-inf")])
def test_parse_money_rejects_non_numbers(value):
    assert parse_money(value) is None


def test_phone_digits():
    assert digits_only("(11) 98765-4321") == "11987654321"
    assert is_plausible_phone("+55 11 98765-4321")
    assert not is_plausible_phone("98765-4321")
