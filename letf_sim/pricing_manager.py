"""Builds a price history by driving a pricing strategy day by day."""

from .price import PriceHistory
from .pricing_strategy import PricingStrategy


class PricingManager:
    """Drives a :class:`PricingStrategy` across a range of trading days.

    Args:
        pricing_strategy: Strategy that produces each day's price. The manager
            takes ownership; it is not safe to share between threads.
    """

    def __init__(self, pricing_strategy: PricingStrategy):
        self.pricing_strategy = pricing_strategy

    def calculate_prices(self, from_period: int, to_period: int) -> PriceHistory:
        """Generate one price per day in ``[from_period, to_period)``.

        Args:
            from_period: First day index (inclusive).
            to_period: Last day index (exclusive).

        Returns:
            Prices in increasing day order. Empty when the range is empty or
            inverted.
        """
        price_history: PriceHistory = []
        for period in range(from_period, to_period):
            price = self.pricing_strategy.calculate_price(period, price_history)
            price_history.append(price)
        return price_history
