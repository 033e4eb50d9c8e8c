"""Pure functions for rounding and formatting money.

Every monetary value that is compared, persisted or displayed goes through
round2() exactly once per computation step. Sums are accumulated unrounded
and rounded once at the end.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from carryover.domain.models import ZERO, Money

CENT = Decimal("0.01")


def to_decimal(value: object) -> Decimal:
    """Convert a loosely typed amount to a finite Decimal.

    Args:
        value: Decimal, int, float, numeric string or None.

    Returns:
        The value as a Decimal. None, NaN, infinities and anything that
        doesn't parse as a number become 0.
    """
    if value is None or isinstance(value, bool):
        return Decimal(0)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        # str() gives the shortest repr, so 1.005 stays 1.005 rather than 1.00499...
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip().replace(",", ""))
        except InvalidOperation:
            return Decimal(0)
    else:
        return Decimal(0)

    if not result.is_finite():
        return Decimal(0)
    return result


def round2(value: object) -> Money:
    """Round an amount to the nearest cent (half up).

    Args:
        value: Any amount accepted by to_decimal().

    Returns:
        Money with exactly two decimal places. Negative zero is normalized.
    """
    amount = to_decimal(value)
    with localcontext() as ctx:
        # Room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        try:
            rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            # Beyond the context's exponent range
            return ZERO
    if rounded == 0:
        return ZERO
    return Money(rounded)


def money_sum(values: Iterable[object]) -> Money:
    """Sum amounts and round the total once.

    Args:
        values: Amounts accepted by to_decimal().

    Returns:
        Rounded total (0.00 for an empty iterable).
    """
    return round2(sum((to_decimal(v) for v in values), Decimal(0)))


def format_money(amount: Money, include_sign: bool = False) -> str:
    """Format an amount for display.

    Args:
        amount: Amount to format.
        include_sign: Prefix positive amounts with "+".

    Returns:
        String such as "£1,234.50", "-£12.00" or "+£3.10".
    """
    rounded = round2(amount)
    if rounded < 0:
        return f"-£{abs(rounded):,.2f}"
    if include_sign and rounded > 0:
        return f"+£{rounded:,.2f}"
    return f"£{rounded:,.2f}"
