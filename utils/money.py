from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from utils.errors import ValidationError

CENT = Decimal("0.01")


def to_money(value, field: str = "amount", *, allow_none: bool = False) -> Decimal | None:
    """Parse a non-negative currency amount, rounded half-up to cents."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if allow_none:
            return None
        raise ValidationError(f"{field} is required.")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.")
    try:
        amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number.") from None
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative.")
    return amount


def as_float(value) -> float | None:
    return None if value is None else float(value)


def format_money(value, symbol: str = "R") -> str:
    return f"{symbol} {Decimal(str(value or 0)).quantize(CENT):.2f}"
