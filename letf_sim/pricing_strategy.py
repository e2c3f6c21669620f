"""Per-day pricing strategies.

A pricing strategy decides the return of the next simulated trading day.
Two implementations are provided:

* :class:`SamplingPricingStrategy` draws uniformly, with replacement, from the
  historical option pool (bootstrap resampling).
* :class:`AlternatingPricingStrategy` walks the option pool round-robin. It is
  deterministic and mostly useful for tests.

Each strategy takes a private copy of the option pool, and the sampling
strategy owns its own random generator, so an instance must only be used by
one worker at a time.
"""

from abc import ABC, abstractmethod
import logging
from typing import Callable, Dict, Optional, Sequence, Tuple, Type, Union

import numpy as np

from .price import Price, PriceHistory

logger = logging.getLogger(__name__)

SeedLike = Union[None, int, np.random.SeedSequence]


class EmptyOptionPoolError(ValueError):
    """Raised when a strategy is built without any price options."""


class PricingStrategy(ABC):
    """Abstract base class for pricing strategies.

    Args:
        pricing_options: Historical daily returns to choose from. The sequence
            is copied, later changes by the caller have no effect.

    Raises:
        EmptyOptionPoolError: If ``pricing_options`` is empty.
    """

    name: str = ""

    def __init__(self, pricing_options: Sequence[Price]):
        options: Tuple[Price, ...] = tuple(pricing_options)
        if not options:
            raise EmptyOptionPoolError(
                f"{self.__class__.__name__} requires at least one price option"
            )
        self._pricing_options = options

    @property
    def pricing_options(self) -> Tuple[Price, ...]:
        return self._pricing_options

    @abstractmethod
    def calculate_price(self, period: int, price_history: PriceHistory) -> Price:
        """Return the price for ``period``.

        Args:
            period: Trading day index within the simulation.
            price_history: Prices generated so far for the current trial.

        Returns:
            Price for the requested day.
        """
        ...

    def reseed(self, seed: SeedLike) -> None:
        """Reset any random state. Deterministic strategies ignore this."""


class SamplingPricingStrategy(PricingStrategy):
    """Uniform random sampling, with replacement, from the option pool.

    The process has no memory: ``period`` and ``price_history`` are accepted
    for interface compatibility but do not influence the draw.

    Args:
        pricing_options: Historical daily returns to sample from.
        seed: Seed or SeedSequence for the private generator. None draws fresh
            entropy from the operating system.
    """

    name = "sampling"

    def __init__(self, pricing_options: Sequence[Price], seed: SeedLike = None):
        super().__init__(pricing_options)
        self.rng = np.random.default_rng(seed)

    def calculate_price(self, period: int, price_history: PriceHistory) -> Price:
        choice = int(self.rng.integers(len(self._pricing_options)))
        return self._pricing_options[choice].clone()

    def reseed(self, seed: SeedLike) -> None:
        """Replace the random generator.

        Args:
            seed: New random seed (int or SeedSequence).
        """
        self.rng = np.random.default_rng(seed)


class AlternatingPricingStrategy(PricingStrategy):
    """Deterministic round-robin over the option pool."""

    name = "alternating"

    def __init__(self, pricing_options: Sequence[Price], seed: SeedLike = None):
        # seed is accepted so both strategies share one factory signature
        super().__init__(pricing_options)

    def calculate_price(self, period: int, price_history: PriceHistory) -> Price:
        choice = period % len(self._pricing_options)
        return self._pricing_options[choice].clone()


STRATEGIES: Dict[str, Type[PricingStrategy]] = {
    SamplingPricingStrategy.name: SamplingPricingStrategy,
    AlternatingPricingStrategy.name: AlternatingPricingStrategy,
}

StrategyFactory = Callable[[Sequence[Price], SeedLike], PricingStrategy]


def create_pricing_strategy(
    name: str, pricing_options: Sequence[Price], seed: SeedLike = None
) -> PricingStrategy:
    """Build a pricing strategy by name.

    Args:
        name: ``"sampling"`` or ``"alternating"``.
        pricing_options: Historical daily returns.
        seed: Optional seed for strategies with random state.

    Returns:
        New strategy instance owning its own copy of the options.

    Raises:
        ValueError: If the strategy name is unknown.
        EmptyOptionPoolError: If ``pricing_options`` is empty.
    """
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown pricing strategy '{name}'. Available: {sorted(STRATEGIES)}"
        ) from None
    logger.debug("Creating %s strategy over %d options", name, len(pricing_options))
    return strategy_cls(pricing_options, seed)
