"""Leveraged ETF Monte Carlo Simulator"""

from ._version import __version__

# Use lazy imports so importing the package stays cheap
# Direct imports are defined but modules are imported only when accessed

__all__ = [
    "__version__",
    "AlternatingPricingStrategy",
    "Config",
    "MonteCarloConfig",
    "MonteCarloEngine",
    "MonteCarloResults",
    "Price",
    "PricingManager",
    "PricingStrategy",
    "SamplingPricingStrategy",
    "SimulationResult",
    "SummaryStatistics",
    "TrackConfig",
    "evaluate_trial",
    "expense_ratio",
    "leverage",
    "load_daily_changes",
    "reduce",
]


def __getattr__(name):
    """Lazy import modules on first attribute access."""
    if name == "Price":
        from .price import Price

        return Price
    elif name in ["AlternatingPricingStrategy", "PricingStrategy", "SamplingPricingStrategy"]:
        from .pricing_strategy import (
            AlternatingPricingStrategy,
            PricingStrategy,
            SamplingPricingStrategy,
        )

        return locals()[name]
    elif name == "PricingManager":
        from .pricing_manager import PricingManager

        return PricingManager
    elif name == "expense_ratio" or name == "leverage":
        from .transforms import expense_ratio, leverage

        return locals()[name]
    elif name == "reduce":
        from .reducer import reduce

        return reduce
    elif name in ["SimulationResult", "TrackConfig", "evaluate_trial"]:
        from .trial import SimulationResult, TrackConfig, evaluate_trial

        return locals()[name]
    elif name in ["MonteCarloConfig", "MonteCarloEngine", "MonteCarloResults"]:
        from .monte_carlo import MonteCarloConfig, MonteCarloEngine, MonteCarloResults

        return locals()[name]
    elif name == "SummaryStatistics":
        from .summary_statistics import SummaryStatistics

        return SummaryStatistics
    elif name == "Config":
        from .config import Config

        return Config
    elif name == "load_daily_changes":
        from .price_loader import load_daily_changes

        return load_daily_changes
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
