"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from letf_sim.monte_carlo import MonteCarloConfig
from letf_sim.price import Price


@pytest.fixture
def project_root():
    """Return the package directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def up_down_options():
    """Two-option pool alternating +1% / -1%."""
    return [Price(1.0), Price(-1.0)]


@pytest.fixture
def three_options():
    return [Price(1.5), Price(-0.5), Price(0.25)]


@pytest.fixture
def small_config():
    """A fast deterministic configuration."""
    return MonteCarloConfig(
        n_simulations=50,
        n_years=1,
        trading_days_per_year=20,
        n_workers=2,
        strategy="alternating",
        progress_bar=False,
        progress_interval=10,
    )
