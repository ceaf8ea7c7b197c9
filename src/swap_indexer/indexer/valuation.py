"""Convert raw token amounts into USD values and accumulate them.

All arithmetic is done on ``Decimal`` in a local context wide enough to
hold any uint256 amount exactly, so repeated conversions and running
totals never drift. Callers that combine USD values outside this module
do so inside ``usd_precision()`` or through ``add_usd``.
"""

from collections.abc import Sequence
from contextlib import AbstractContextManager
from decimal import ROUND_DOWN, Context, Decimal, localcontext

from swap_indexer.core.models import ZERO
from swap_indexer.indexer.exceptions import MissingPriceError
from swap_indexer.store.models import Token

# 2**256 has 78 decimal digits
_PRECISION = 78


def usd_precision() -> AbstractContextManager[Context]:
    """Return a decimal context manager with 78 digits of precision."""
    return localcontext(prec=_PRECISION)


def add_usd(total: Decimal, delta: Decimal) -> Decimal:
    """Return ``total + delta`` without rounding away any digit."""
    with usd_precision():
        return total + delta


def scale_amount(amount: int, decimals: int) -> Decimal:
    """Return a raw integer amount expressed in whole token units.

    Args:
        amount: Raw amount in the token's smallest unit.
        decimals: Token decimal scale.

    Returns:
        ``amount / 10**decimals`` as an exact Decimal.

    Raises:
        ValueError: If the amount or the decimal scale is negative.

    """
    if amount < 0:
        msg = f"amount must be non-negative, got {amount}"
        raise ValueError(msg)
    if decimals < 0:
        msg = f"decimals must be non-negative, got {decimals}"
        raise ValueError(msg)
    with usd_precision():
        return Decimal(amount).scaleb(-decimals)


def amount_to_usd(amount: int, token: Token) -> Decimal:
    """Return the USD value of a raw amount of ``token``.

    Args:
        amount: Raw amount in the token's smallest unit.
        token: Token record carrying decimals and last price.

    Returns:
        ``amount / 10**decimals * last_price_usd``.

    Raises:
        MissingPriceError: If the token has no last-known price.

    """
    if token.last_price_usd is None:
        raise MissingPriceError(token.id)
    units = scale_amount(amount, token.decimals)
    with usd_precision():
        return units * token.last_price_usd


def calculate_average(values: Sequence[Decimal]) -> Decimal:
    """Return the arithmetic mean of ``values``, or zero when empty."""
    if not values:
        return ZERO
    with usd_precision():
        return sum(values, ZERO) / len(values)


def truncate(value: Decimal, places: int) -> Decimal:
    """Cut ``value`` to ``places`` decimal places, rounding toward zero."""
    with usd_precision():
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)
