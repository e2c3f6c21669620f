"""Evaluation of a single simulation trial.

A trial turns one raw price history into two cumulative returns:

* the *baseline* track holds the unleveraged index and pays a low expense
  ratio;
* the *leveraged* track applies the leverage factor to every day first and
  then pays the leveraged fund's higher expense ratio.

Both tracks are derived from the same raw history so they answer what the
same sequence of market days does to each position.
"""

from dataclasses import dataclass
from typing import Tuple

from .price import Price, PriceHistory
from .reducer import reduce
from .transforms import daily_rate, expense_ratio, leverage

RESULT_COUNT = 2
TRACK_NAMES: Tuple[str, str] = ("baseline", "leveraged")


@dataclass(frozen=True)
class TrackConfig:
    """Parameters of the two tracks compared in every trial.

    Attributes:
        leverage: Daily leverage multiplier of the leveraged track.
        baseline_expense_ratio: Annual expense ratio of the baseline track,
            in percent.
        leveraged_expense_ratio: Annual expense ratio of the leveraged track,
            in percent.
        trading_days_per_year: Trading days the annual rates are spread over.
    """

    leverage: float = 2.0
    baseline_expense_ratio: float = 0.03
    leveraged_expense_ratio: float = 0.91
    trading_days_per_year: int = 253

    @property
    def baseline_daily_rate(self) -> float:
        return daily_rate(self.baseline_expense_ratio, self.trading_days_per_year)

    @property
    def leveraged_daily_rate(self) -> float:
        return daily_rate(self.leveraged_expense_ratio, self.trading_days_per_year)


@dataclass(frozen=True)
class SimulationResult:
    """Final cumulative return of each track for one trial."""

    baseline_return: Price
    leveraged_return: Price

    @property
    def returns(self) -> Tuple[Price, Price]:
        """Both returns, in :data:`TRACK_NAMES` order."""
        return (self.baseline_return, self.leveraged_return)

    def __getitem__(self, index: int) -> Price:
        return self.returns[index]

    def __len__(self) -> int:
        return RESULT_COUNT


def evaluate_trial(price_history: PriceHistory, tracks: TrackConfig) -> SimulationResult:
    """Compute both tracks' cumulative returns for one raw price history.

    Args:
        price_history: Raw (unleveraged, pre-expense) daily returns.
        tracks: Leverage and expense settings.

    Returns:
        Cumulative baseline and leveraged returns.
    """
    baseline_history = expense_ratio(price_history, tracks.baseline_daily_rate)
    leveraged_history = expense_ratio(
        leverage(price_history, tracks.leverage), tracks.leveraged_daily_rate
    )
    return SimulationResult(
        baseline_return=reduce(baseline_history),
        leveraged_return=reduce(leveraged_history),
    )
