"""Element-wise transformations of a price history.

All functions are pure: they return a new history of the same length and
order and never modify their input.
"""

from .price import PriceHistory


def leverage(price_history: PriceHistory, factor: float) -> PriceHistory:
    """Scale every daily return by a leverage factor.

    Args:
        price_history: Daily returns.
        factor: Daily leverage multiplier (2.0 for a 2x fund).

    Returns:
        Leveraged daily returns.
    """
    return [price.with_delta(price.percent_delta * factor) for price in price_history]


def expense_ratio(price_history: PriceHistory, rate_percent: float) -> PriceHistory:
    """Apply a per-day expense drag to every daily return.

    Each day's delta is reduced multiplicatively by ``rate_percent`` percent.

    Args:
        price_history: Daily returns.
        rate_percent: Daily expense rate in percent, see :func:`daily_rate`.

    Returns:
        Daily returns after expenses.
    """
    keep = 1.0 - (rate_percent / 100.0)
    return [price.with_delta(price.percent_delta * keep) for price in price_history]


def daily_rate(annual_rate_percent: float, trading_days_per_year: int) -> float:
    """Spread an annual expense rate evenly over the trading days of a year.

    Args:
        annual_rate_percent: Annual expense ratio in percent (0.91 for 0.91%).
        trading_days_per_year: Number of trading days in a simulated year.

    Returns:
        Daily expense rate in percent.

    Raises:
        ValueError: If trading_days_per_year is not positive.
    """
    if trading_days_per_year <= 0:
        raise ValueError(
            f"trading_days_per_year must be positive, got {trading_days_per_year}"
        )
    return annual_rate_percent / float(trading_days_per_year)
