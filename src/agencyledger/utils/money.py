"""Fixed-point money helpers.

All amounts are Decimals quantized to cents. Floats are rejected outright so a
binary rounding error can never enter the ledger.
"""

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP, InvalidOperation
from typing import Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Installment base amounts are floored to whole currency units
INSTALLMENT_QUANTUM = Decimal("1")


def to_money(value: Decimal | int | str) -> Decimal:
    """Convert a value to a Decimal with two fractional digits.

    Args:
        value: Decimal, int or numeric string

    Returns:
        Decimal quantized to cents

    Raises:
        TypeError: If value is a float
        ValueError: If value is not numeric
    """
    if isinstance(value, float):
        raise TypeError("Money values must not be floats; use Decimal or str")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid money value '{value}'") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid money value '{value}'")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Sum money values, returning 0.00 for an empty iterable."""
    total = ZERO
    for value in values:
        total += value
    return to_money(total)


def split_with_remainder(total: Decimal, parts: int) -> list[Decimal]:
    """Split total into parts equal floored shares, the last absorbing the rest.

    >>> split_with_remainder(Decimal("1000.00"), 3)
    [Decimal('333.00'), Decimal('333.00'), Decimal('334.00')]
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")
    total = to_money(total)
    base = (total / parts).quantize(INSTALLMENT_QUANTUM, rounding=ROUND_FLOOR)
    base = to_money(base)
    last = total - base * (parts - 1)
    return [base] * (parts - 1) + [to_money(last)]
