"""Summary statistics for simulation results.

Aggregates the cumulative returns of all trials, separately for the baseline
and the leveraged track. Besides the usual descriptive statistics each track
reports an annualized mean and a hit ratio: the share of trials whose
annualized return reaches a target.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Sequence, Tuple
import warnings

import numpy as np
import pandas as pd
from scipy import stats

from .trial import TRACK_NAMES, SimulationResult

DEFAULT_QUANTILES: Tuple[float, ...] = (0.05, 0.25, 0.5, 0.75, 0.95)


def format_quantile_key(q: float) -> str:
    """Format a quantile value as a dictionary key using per-mille resolution.

    Args:
        q: Quantile value in range [0, 1].

    Returns:
        Formatted key string, e.g. ``q0250`` for the 25th percentile.
    """
    return f"q{round(q * 1000):04d}"


def annualize(returns: np.ndarray, years: float) -> np.ndarray:
    """Convert cumulative percentage returns to geometric annual returns.

    Args:
        returns: Cumulative returns in percent.
        years: Horizon the returns were accumulated over.

    Returns:
        Annualized returns in percent. Total losses stay at -100%.
    """
    if years <= 0:
        raise ValueError(f"years must be positive, got {years}")
    multipliers = np.clip(np.asarray(returns, dtype=float) / 100.0 + 1.0, 0.0, None)
    return (np.power(multipliers, 1.0 / years) - 1.0) * 100.0


@dataclass
class TrackStatistics:
    """Descriptive statistics of one track's cumulative returns (in percent).

    ``sharpe_ratio`` is the mean cumulative return over its standard deviation,
    without a risk-free rate.
    """

    track: str
    count: int
    mean: float
    annualized_mean: float
    median: float
    std: float
    min: float
    max: float
    iqr: float
    skewness: float
    kurtosis: float
    hit_ratio: float
    sharpe_ratio: float
    percentiles: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, float]:
        """Flatten to a single-level dictionary."""
        data = asdict(self)
        percentiles = data.pop("percentiles")
        data.pop("track")
        data.update(percentiles)
        return data


class SummaryStatistics:
    """Calculate per-track summary statistics for simulation results.

    Args:
        years: Simulated horizon, used for annualization.
        target_annual_return: Annual return in percent a trial must reach to
            count towards the hit ratio.
        quantiles: Quantiles reported in ``percentiles``.
    """

    def __init__(
        self,
        years: float,
        target_annual_return: float = 15.0,
        quantiles: Sequence[float] = DEFAULT_QUANTILES,
    ):
        if years <= 0:
            raise ValueError(f"years must be positive, got {years}")
        self.years = years
        self.target_annual_return = target_annual_return
        self.quantiles = tuple(quantiles)

    def calculate(self, results: Sequence[SimulationResult]) -> Dict[str, TrackStatistics]:
        """Calculate statistics for both tracks.

        Args:
            results: Simulation results in any order.

        Returns:
            Statistics keyed by track name.
        """
        columns = np.array(
            [[price.percent_delta for price in result.returns] for result in results],
            dtype=float,
        ).reshape(len(results), len(TRACK_NAMES))
        return {
            track: self.calculate_track(track, columns[:, i])
            for i, track in enumerate(TRACK_NAMES)
        }

    def calculate_track(self, track: str, returns: np.ndarray) -> TrackStatistics:
        """Calculate statistics of one array of cumulative returns."""
        data = np.asarray(returns, dtype=float)

        if len(data) == 0:
            return TrackStatistics(
                track=track,
                count=0,
                mean=0.0,
                annualized_mean=0.0,
                median=0.0,
                std=0.0,
                min=0.0,
                max=0.0,
                iqr=0.0,
                skewness=0.0,
                kurtosis=0.0,
                hit_ratio=0.0,
                sharpe_ratio=0.0,
                percentiles={format_quantile_key(q): 0.0 for q in self.quantiles},
            )

        annualized = annualize(data, self.years)
        std = float(np.std(data))

        return TrackStatistics(
            track=track,
            count=len(data),
            mean=float(np.mean(data)),
            annualized_mean=float(np.mean(annualized)),
            median=float(np.median(data)),
            std=std,
            min=float(np.min(data)),
            max=float(np.max(data)),
            iqr=float(np.percentile(data, 75) - np.percentile(data, 25)),
            skewness=self._safe_skew_kurtosis(data, "skew") if std > 0 else 0.0,
            kurtosis=self._safe_skew_kurtosis(data, "kurtosis") if std > 0 else 0.0,
            hit_ratio=float(np.mean(annualized >= self.target_annual_return)),
            sharpe_ratio=float(np.mean(data)) / std if std > 0 else 0.0,
            percentiles={
                format_quantile_key(q): float(v)
                for q, v in zip(self.quantiles, np.quantile(data, self.quantiles))
            },
        )

    def _safe_skew_kurtosis(self, data: np.ndarray, stat_type: str) -> float:
        """Calculate skewness or kurtosis with warning suppression."""
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", message="Precision loss occurred")
            if stat_type == "skew":
                return float(stats.skew(data, nan_policy="omit"))
            return float(stats.kurtosis(data, nan_policy="omit"))


def to_dataframe(statistics: Dict[str, TrackStatistics]) -> pd.DataFrame:
    """Tabulate track statistics, one column per track."""
    return pd.DataFrame({track: s.to_dict() for track, s in statistics.items()})


def format_report(statistics: Dict[str, TrackStatistics], target_annual_return: float) -> str:
    """Render track statistics as a plain-text report."""
    lines: List[str] = []
    for track, s in statistics.items():
        percentiles = ", ".join(f"{key}: {value:.2f}%" for key, value in s.percentiles.items())
        lines.extend(
            [
                f"{track.capitalize()} track ({s.count:,} trials)",
                f"  Mean: {s.mean:.2f}% | Annualized: {s.annualized_mean:.2f}%",
                f"  Median: {s.median:.2f}% | Std: {s.std:.2f}% | IQR: {s.iqr:.2f}%",
                f"  Min/Max: {s.min:.2f}% :: {s.max:.2f}%",
                f"  Skewness: {s.skewness:.3f} | Kurtosis: {s.kurtosis:.3f}",
                f"  Sharpe: {s.sharpe_ratio:.3f}",
                f"  P(annual >= {target_annual_return:.1f}%): {s.hit_ratio:.2%}",
                f"  Percentiles: {percentiles}",
            ]
        )
    return "\n".join(lines)
