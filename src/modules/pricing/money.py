"""
Money parsing.

Vendors paste prices the way their spreadsheets show them, so an amount
may arrive as integer cents or as a euro string in Italian ("4.869,57")
or plain ("4869.57") notation.
"""
import re
from decimal import Decimal, InvalidOperation

from src.modules.pricing.estimator import to_cents

_CURRENCY_NOISE = re.compile(r"[€\s]|EUR", re.IGNORECASE)
_AMOUNT = re.compile(r"-?[\d.,]+")

# Upper bound of the 32-bit integer columns prices are stored in
MAX_CENTS = 2**31 - 1


def parse_euro_string(text: str) -> Decimal:
    cleaned = _CURRENCY_NOISE.sub("", text)
    if not cleaned:
        raise ValueError("Empty price")
    if not _AMOUNT.fullmatch(cleaned):
        raise ValueError(f"Invalid price: {text!r}")

    if "," in cleaned:
        # Italian: dots group thousands, comma is the decimal separator
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif cleaned.count(".") > 1:
        cleaned = cleaned.replace(".", "")
    elif re.fullmatch(r"\d{1,3}\.\d{3}", cleaned):
        # "4.869" is four thousand, not four euro
        cleaned = cleaned.replace(".", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Invalid price: {text!r}")
    return amount


def _euro_to_cents(amount: Decimal, original: float | str) -> int:
    if not amount.is_finite():
        raise ValueError(f"Invalid price: {original!r}")
    try:
        return to_cents(amount * 100)
    except InvalidOperation:
        raise ValueError(f"Invalid price: {original!r}")


def parse_price_cents(value: int | float | str) -> int:
    """
    Normalize a price to integer cents.

    Integers are taken as cents already; floats and strings as euro.

    Raises:
        ValueError: unparseable, negative or out-of-range amount
    """
    if isinstance(value, bool):
        raise ValueError("Invalid price")
    if isinstance(value, int):
        cents = value
    elif isinstance(value, float):
        cents = _euro_to_cents(Decimal(str(value)), value)
    elif isinstance(value, str):
        cents = _euro_to_cents(parse_euro_string(value), value)
    else:
        raise ValueError("Invalid price")

    if cents < 0:
        raise ValueError("Price must be non-negative")
    if cents > MAX_CENTS:
        raise ValueError("Price is too large")
    return cents


def format_euro(cents: int) -> str:
    """Italian display format, e.g. 486957 -> '4.869,57'."""
    euros, rest = divmod(abs(cents), 100)
    grouped = f"{euros:,}".replace(",", ".")
    sign = "-" if cents < 0 else ""
    return f"{sign}{grouped},{rest:02d}"
