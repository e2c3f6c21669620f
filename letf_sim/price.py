"""Daily price change value type.

A :class:`Price` is one day's return expressed as a signed percentage
(``1.230`` means +1.23%). Prices are immutable values; every operation that
looks like a mutation returns a new instance.

Examples:
    Compose two daily returns::

        from letf_sim.price import Price

        up = Price(10.0)
        down = Price(-10.0)
        up.compose(down)  # Price(percent_delta=-1.0)
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Price:
    """One day's percentage return.

    Attributes:
        percent_delta: Signed percentage change. Magnitude is unconstrained,
            leverage and compounding may produce extreme values.
    """

    percent_delta: float

    @classmethod
    def zero(cls) -> "Price":
        """Identity price (0%)."""
        return cls(0.0)

    @classmethod
    def total_loss(cls) -> "Price":
        """Price of a position that lost everything (-100%)."""
        return cls(-100.0)

    @classmethod
    def from_multiplier(cls, multiplier: float) -> "Price":
        """Convert a growth multiplier back to a percentage change.

        Args:
            multiplier: Growth multiplier, e.g. ``1.05`` for +5%.

        Returns:
            Price with ``(multiplier - 1) * 100`` as its delta.
        """
        return cls((multiplier - 1.0) * 100.0)

    def as_multiplier(self) -> float:
        """Return the growth multiplier, ``delta / 100 + 1``."""
        return (self.percent_delta / 100.0) + 1.0

    def with_delta(self, percent_delta: float) -> "Price":
        """Return a new price with the delta replaced."""
        return Price(percent_delta)

    def add(self, other: "Price") -> "Price":
        """Sum two percentage deltas (not a compounding operation)."""
        return Price(self.percent_delta + other.percent_delta)

    def __add__(self, other: "Price") -> "Price":
        return self.add(other)

    def clone(self) -> "Price":
        return Price(self.percent_delta)

    def compose(self, other: "Price") -> "Price":
        """Compound this return with another one.

        Args:
            other: Return applied after this one.

        Returns:
            Cumulative return of holding through both periods.
        """
        return Price.from_multiplier(self.as_multiplier() * other.as_multiplier())

    def annualized_return(self, years: float) -> "Price":
        """Convert a cumulative return over ``years`` into a per-year return.

        Args:
            years: Length of the period the cumulative return covers.

        Returns:
            Geometric average annual return. A cumulative loss of 100% or
            more annualizes to a total loss.

        Raises:
            ValueError: If years is not positive.
        """
        if years <= 0:
            raise ValueError(f"years must be positive, got {years}")
        multiplier = self.as_multiplier()
        if multiplier <= 0.0:
            return Price.total_loss()
        return Price.from_multiplier(multiplier ** (1.0 / years))

    def __str__(self) -> str:
        return f"{self.percent_delta:0.3f}%"


# Ordered daily returns, index = trading day offset from simulation start
PriceHistory = List[Price]
