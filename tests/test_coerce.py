from decimal import Decimal

import pytest

from kpi_engine.utils.coerce import is_loose_true, to_count, to_decimal


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, None),
        ("", None),
        ("   ", None),
        ("abc", None),
        (True, None),
        (float("nan"), None),
        (12, Decimal("12")),
        (12.5, Decimal("12.5")),
        ("1 234", Decimal("1234")),
        ("1,234.50", Decimal("1234.50")),
        ("1.234,50", Decimal("1234.50")),
        ("(100)", Decimal("-100")),
        ("Rp 15000", Decimal("15000")),
    ],
)
def test_to_decimal(raw, expected):
    assert to_decimal(raw) == expected


def test_to_count_defaults_to_zero():
    assert to_count(None) == 0
    assert to_count("n/a") == 0
    assert to_count(False) == 0


def test_to_count_numbers():
    assert to_count(42) == 42
    assert to_count("42") == 42
    assert to_count(12.9) == 12
    assert to_count("2 500") == 2500


@pytest.mark.parametrize(
    "raw, expected",
    [
        (True, True),
        (False, False),
        (1, True),
        (1.0, True),
        (2, False),
        (0, False),
        ("true", True),
        (" True ", True),
        ("1", False),
        ("yes", False),
        (None, False),
    ],
)
def test_is_loose_true(raw, expected):
    assert is_loose_true(raw) is expected
