"""Tests for the Price value type."""

import dataclasses

import pytest

from letf_sim.price import Price


class TestPriceBasics:
    """Test construction and value semantics."""

    def test_percent_delta(self):
        """Price stores its signed percentage."""
        assert Price(1.23).percent_delta == 1.23
        assert Price(-4.5).percent_delta == -4.5

    def test_immutable(self):
        """Prices cannot be modified in place."""
        price = Price(1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            price.percent_delta = 2.0  # type: ignore[misc]

    def test_with_delta_returns_new_price(self):
        """with_delta replaces the delta without touching the original."""
        price = Price(1.0)
        updated = price.with_delta(3.0)
        assert updated == Price(3.0)
        assert price == Price(1.0)

    def test_add(self):
        """add sums percentage deltas."""
        assert Price(1.5).add(Price(2.0)) == Price(3.5)
        assert Price(1.5) + Price(-2.0) == Price(-0.5)

    def test_clone(self):
        """clone is equal but a distinct object."""
        price = Price(2.5)
        clone = price.clone()
        assert clone == price
        assert clone is not price

    def test_str(self):
        """String form uses three decimals and a percent sign."""
        assert str(Price(1.23)) == "1.230%"
        assert str(Price(-0.5)) == "-0.500%"


class TestPriceCompounding:
    """Test multiplier conversion and composition."""

    def test_as_multiplier(self):
        assert Price(10.0).as_multiplier() == pytest.approx(1.1)
        assert Price(-10.0).as_multiplier() == pytest.approx(0.9)
        assert Price.zero().as_multiplier() == 1.0

    def test_from_multiplier(self):
        assert Price.from_multiplier(1.25).percent_delta == pytest.approx(25.0)
        assert Price.from_multiplier(0.5).percent_delta == pytest.approx(-50.0)

    def test_negative_multiplier_is_not_clamped(self):
        """Leverage can lose more than the whole position in one day."""
        assert Price.from_multiplier(-0.3).percent_delta == pytest.approx(-130.0)
        assert Price.total_loss().percent_delta == -100.0

    def test_compose(self):
        """Composition multiplies the growth multipliers."""
        composed = Price(10.0).compose(Price(-10.0))
        assert composed.percent_delta == pytest.approx(-1.0)

    def test_compose_past_total_loss(self):
        """Composition multiplies through a negative multiplier unchanged."""
        composed = Price(5.0).compose(Price(-150.0))
        assert composed.percent_delta == pytest.approx((1.05 * -0.5 - 1) * 100)


class TestAnnualizedReturn:
    """Test conversion of cumulative to annual returns."""

    def test_one_year_is_identity(self):
        assert Price(12.0).annualized_return(1).percent_delta == pytest.approx(12.0)

    def test_two_years(self):
        """21% over two years is 10% per year."""
        assert Price(21.0).annualized_return(2).percent_delta == pytest.approx(10.0)

    def test_total_loss_stays_total_loss(self):
        assert Price.total_loss().annualized_return(5).percent_delta == pytest.approx(-100.0)

    def test_worse_than_total_loss_annualizes_to_total_loss(self):
        assert Price(-150.0).annualized_return(3) == Price.total_loss()

    def test_invalid_years(self):
        with pytest.raises(ValueError, match="years must be positive"):
            Price(5.0).annualized_return(0)
