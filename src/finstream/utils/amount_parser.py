"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

from finstream.domain.errors import ValidationError

CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.000001")
QUANTITY_QUANTUM = Decimal("0.0001")

# Largest magnitudes the Numeric(14, 2) and Numeric(14, 4) columns hold
MAX_MONEY = Decimal("999999999999.99")
MAX_QUANTITY = Decimal("9999999999.9999")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValidationError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValidationError("Empty amount string")

    # Remove whitespace
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols
    amount_str = re.sub(r"[$€£¥]", "", amount_str)

    # Remove commas
    amount_str = amount_str.replace(",", "")

    # Remove whitespace again
    amount_str = amount_str.strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValidationError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValidationError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return amount


def _to_decimal(value: Decimal | int | str) -> Decimal:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"Amount {value!r} must be a Decimal, int or string, not {type(value).__name__}")
    if isinstance(value, str):
        return parse_amount(value)
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f"Amount {value} is not a finite number")
        return value
    raise ValidationError(f"Unsupported amount type {type(value).__name__}")


def _quantize(value: Decimal, quantum: Decimal, limit: Decimal, rounding=None) -> Decimal:
    if abs(value) > limit:
        raise ValidationError(f"Amount {value} is out of range (limit {limit})")
    try:
        return value.quantize(quantum, rounding=rounding)
    except InvalidOperation as e:
        raise ValidationError(f"Amount {value} is out of range (limit {limit})") from e


def to_money(value: Decimal | int | str) -> Decimal:
    """Convert a value to an exact cent amount.

    Floats are rejected. Values with sub-cent precision are rejected
    rather than rounded, so no money is silently created or lost.

    Raises:
        ValidationError: If the value is not an exact cent amount or is out of range
    """
    amount = _to_decimal(value)
    quantized = _quantize(amount, CENT, MAX_MONEY)
    if quantized != amount:
        raise ValidationError(f"Amount {amount} has more than two decimal places")
    return quantized


def round_money(value: Decimal) -> Decimal:
    """Round a computed amount half-up to cents."""
    return _quantize(value, CENT, MAX_MONEY, rounding=ROUND_HALF_UP)


def to_rate(value: Decimal | int | str) -> Decimal:
    """Convert a tax rate fraction (0.07 for 7%) to a Decimal in [0, 1]."""
    rate = _to_decimal(value)
    if rate < 0 or rate > 1:
        raise ValidationError(f"Tax rate {rate} must be between 0 and 1")
    quantized = _quantize(rate, RATE_QUANTUM, Decimal(1))
    if quantized != rate:
        raise ValidationError(f"Tax rate {rate} has more than six decimal places")
    return quantized


def to_quantity(value: Decimal | int | str) -> Decimal:
    """Convert an item quantity or unit price to a Decimal with at most four decimal places."""
    quantity = _to_decimal(value)
    quantized = _quantize(quantity, QUANTITY_QUANTUM, MAX_QUANTITY)
    if quantized != quantity:
        raise ValidationError(f"Value {quantity} has more than four decimal places")
    return quantized
