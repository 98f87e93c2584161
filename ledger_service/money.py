"""
Money Normalization Module

Converts incoming amounts to Decimal and truncates them to 2 decimal places.
Balance arithmetic is exact: an addition that would drop digits raises
instead of rounding. NEVER uses float for stored monetary values.
"""

from decimal import (
    Decimal, ROUND_FLOOR, Inexact, InvalidOperation, Overflow, getcontext, localcontext
)
from typing import Union

# Set global decimal context for financial precision
getcontext().prec = 28

# Digits available to balances; far beyond any sum of bounded amounts
BALANCE_PRECISION = 60

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("999999999999999.99")  # Largest single deposit/withdrawal

AmountLike = Union[Decimal, int, float, str]


def to_decimal(value: AmountLike) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Floats are converted through their shortest repr, so 10.555 becomes
    Decimal('10.555') and not its binary approximation.
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


def normalize_amount(value: AmountLike) -> Decimal:
    """
    Truncate an amount to 2 decimal places (floor, not round-half-up).

    >>> normalize_amount("10.555")
    Decimal('10.55')

    Raises:
        ValueError: The value is not a number or its magnitude exceeds MAX_AMOUNT
    """
    amount = to_decimal(value)
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"Amount must not exceed {MAX_AMOUNT}, got {value!r}")
    try:
        return amount.quantize(CENT, rounding=ROUND_FLOOR)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")


def add_amounts(*amounts: Decimal) -> Decimal:
    """
    Sum amounts exactly.

    Raises:
        ValueError: The exact sum does not fit in BALANCE_PRECISION digits
    """
    total = ZERO
    with localcontext() as ctx:
        ctx.prec = BALANCE_PRECISION
        ctx.traps[Inexact] = True
        try:
            for amount in amounts:
                total = total + amount
        except (Inexact, InvalidOperation, Overflow):
            raise ValueError("Balance exceeds the supported precision")
    return total


def format_amount(value: Decimal) -> str:
    """Format for display and JSON responses"""
    with localcontext() as ctx:
        ctx.prec = BALANCE_PRECISION
        return f"{value.quantize(CENT, rounding=ROUND_FLOOR):.2f}"
