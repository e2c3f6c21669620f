"""Tests for the pricing strategies."""

import numpy as np
import pytest

from letf_sim.price import Price
from letf_sim.pricing_strategy import (
    STRATEGIES,
    AlternatingPricingStrategy,
    EmptyOptionPoolError,
    PricingStrategy,
    SamplingPricingStrategy,
    create_pricing_strategy,
)


class TestAlternatingPricingStrategy:
    """Test the deterministic round-robin strategy."""

    def test_round_robin(self, three_options):
        strategy = AlternatingPricingStrategy(three_options)
        prices = [strategy.calculate_price(period, []) for period in range(6)]
        assert prices == three_options + three_options

    def test_ignores_history(self, three_options):
        strategy = AlternatingPricingStrategy(three_options)
        history = [Price(99.0)] * 7
        assert strategy.calculate_price(4, history) == three_options[1]

    def test_single_option(self):
        strategy = AlternatingPricingStrategy([Price(2.0)])
        assert all(strategy.calculate_price(p, []) == Price(2.0) for p in range(5))

    def test_reseed_is_noop(self, three_options):
        strategy = AlternatingPricingStrategy(three_options)
        strategy.reseed(123)
        assert strategy.calculate_price(2, []) == three_options[2]


class TestSamplingPricingStrategy:
    """Test bootstrap sampling from the option pool."""

    def test_draws_from_pool(self, three_options):
        strategy = SamplingPricingStrategy(three_options, seed=1)
        for period in range(200):
            assert strategy.calculate_price(period, []) in three_options

    def test_uniform_frequency(self, up_down_options):
        """Each of two options is drawn about half the time."""
        strategy = SamplingPricingStrategy(up_down_options, seed=42)
        draws = [strategy.calculate_price(p, []).percent_delta for p in range(10_000)]
        share_up = np.mean(np.array(draws) > 0)
        assert share_up == pytest.approx(0.5, abs=0.03)

    def test_same_seed_same_sequence(self, three_options):
        a = SamplingPricingStrategy(three_options, seed=7)
        b = SamplingPricingStrategy(three_options, seed=7)
        assert [a.calculate_price(p, []) for p in range(50)] == [
            b.calculate_price(p, []) for p in range(50)
        ]

    def test_reseed_restarts_stream(self, three_options):
        strategy = SamplingPricingStrategy(three_options)
        strategy.reseed(np.random.SeedSequence([5, 0]))
        first = [strategy.calculate_price(p, []) for p in range(30)]
        strategy.reseed(np.random.SeedSequence([5, 0]))
        second = [strategy.calculate_price(p, []) for p in range(30)]
        assert first == second


class TestOptionPool:
    """Test option pool ownership and validation."""

    @pytest.mark.parametrize("strategy_cls", [SamplingPricingStrategy, AlternatingPricingStrategy])
    def test_empty_pool_rejected(self, strategy_cls):
        with pytest.raises(EmptyOptionPoolError):
            strategy_cls([])

    def test_empty_pool_is_value_error(self):
        with pytest.raises(ValueError):
            AlternatingPricingStrategy([])

    def test_pool_is_copied(self, three_options):
        """Changing the caller's list afterwards does not affect the strategy."""
        strategy = AlternatingPricingStrategy(three_options)
        three_options[0] = Price(50.0)
        three_options.append(Price(-50.0))
        assert strategy.pricing_options == (Price(1.5), Price(-0.5), Price(0.25))
        assert strategy.calculate_price(3, []) == Price(1.5)

    def test_abstract(self):
        with pytest.raises(TypeError):
            PricingStrategy([Price(1.0)])  # type: ignore[abstract]


class TestCreatePricingStrategy:
    """Test the strategy factory."""

    @pytest.mark.parametrize("name", sorted(STRATEGIES))
    def test_known_names(self, name, three_options):
        strategy = create_pricing_strategy(name, three_options, seed=1)
        assert isinstance(strategy, STRATEGIES[name])
        assert strategy.name == name

    def test_unknown_name(self, three_options):
        with pytest.raises(ValueError, match="Unknown pricing strategy 'garch'"):
            create_pricing_strategy("garch", three_options)
