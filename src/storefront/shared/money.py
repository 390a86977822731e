"""Monetary amounts: two-decimal ``Decimal`` values, never floats."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.exceptions import ValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value, field: str = "price") -> Decimal:
    """Coerce ``value`` to a non-negative amount rounded to cents."""
    try:
        amount = Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field: [f"Invalid amount: {value!r}"]})

    if amount < 0:
        raise ValidationError({field: ["Amount cannot be negative"]})
    return amount


def line_total(price, quantity: int) -> Decimal:
    return (Decimal(price) * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


def sum_money(amounts) -> Decimal:
    return sum((Decimal(a) for a in amounts), ZERO).quantize(CENTS, rounding=ROUND_HALF_UP)
