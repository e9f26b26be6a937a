import pytest

from src.modules.pricing.money import format_euro, parse_price_cents


@pytest.mark.parametrize(
    "value,expected",
    [
        (486957, 486957),
        ("4.869,57", 486957),
        ("4869.57", 486957),
        ("4869,57", 486957),
        ("€ 1.234", 123400),
        ("1.234.567", 123456700),
        ("12,5", 1250),
        ("EUR 99", 9900),
        (12.5, 1250),
        (0, 0),
    ],
)
def test_parse_price_cents(value, expected):
    assert parse_price_cents(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        "", "abc", "NaN", "Infinity", "-3,00", -5, True, None,
        "1e3", "1e30", "12,5x", ".", float("inf"), 1e300, 2**31, "30.000.000,00",
    ],
)
def test_parse_price_cents_rejects(value):
    with pytest.raises(ValueError):
        parse_price_cents(value)


@pytest.mark.parametrize(
    "cents,expected",
    [
        (486957, "4.869,57"),
        (5, "0,05"),
        (-150, "-1,50"),
        (123456789, "1.234.567,89"),
    ],
)
def test_format_euro(cents, expected):
    assert format_euro(cents) == expected
