"""
Integer-cent money helpers.

Every amount in the booking pipeline is an int of minor units. Rates (service fee,
tax, promo percentage) are Decimal. Each derived amount is rounded on its own with
round-half-away-from-zero; the cumulative total is never re-rounded.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from src.platform.exception.exceptions import ValidationError


_WHOLE_CENT = Decimal('1')
ZERO_RATE = Decimal('0')
FULL_RATE = Decimal('1')

# Rates are stored as NUMERIC(9, 6); more places would be cut off on reload
RATE_PLACES = 6
_RATE_STEP = Decimal(1).scaleb(-RATE_PLACES)


def to_rate(value: Any, *, field: str = 'rate') -> Decimal:
    """Parse a fraction into Decimal. Floats go through str() so 0.06 stays 0.06."""
    if isinstance(value, Decimal):
        rate = value
    else:
        try:
            rate = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(f'{field} must be a number between 0 and 1') from e
    if not rate.is_finite() or rate < ZERO_RATE or rate > FULL_RATE:
        raise ValidationError(f'{field} must be between 0 and 1')
    if rate.quantize(_RATE_STEP) != rate:
        raise ValidationError(f'{field} allows at most {RATE_PLACES} decimal places')
    return rate


def round_cents(amount: Decimal) -> int:
    # ROUND_HALF_UP on Decimal rounds ties away from zero: 0.5 -> 1, -0.5 -> -1
    return int(amount.quantize(_WHOLE_CENT, rounding=ROUND_HALF_UP))


def apply_rate(cents: int, rate: Decimal) -> int:
    return round_cents(Decimal(cents) * rate)


def format_cents(cents: int, *, currency_symbol: str = '$') -> str:
    sign = '-' if cents < 0 else ''
    dollars, remainder = divmod(abs(cents), 100)
    return f'{sign}{currency_symbol}{dollars:,}.{remainder:02d}'
