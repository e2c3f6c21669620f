"""Geometric compounding of a price history into a single cumulative return."""

from .price import Price, PriceHistory


def reduce(price_history: PriceHistory) -> Price:
    """Compound daily returns into one cumulative return.

    Each day's percentage is converted to a multiplier, the multipliers are
    multiplied left to right starting from the identity (0%), and the product
    is converted back to a percentage. Returns are never summed.

    Args:
        price_history: Daily returns in day order.

    Returns:
        Cumulative return over the whole history. ``Price(0.0)`` for an empty
        history.

    Examples:
        A 2x leveraged up/down day loses money::

            reduce([Price(20.0), Price(-20.0)])  # about -4%
    """
    accumulator = Price.zero()
    for price in price_history:
        accumulator = _reduce_two(accumulator, price)
    return accumulator


def _reduce_two(price_a: Price, price_b: Price) -> Price:
    return price_a.compose(price_b)
