"""Console progress reporting for Monte Carlo runs.

:class:`ProgressMonitor` is a progress observer: pass an instance as the
``progress_callback`` of :meth:`letf_sim.monte_carlo.MonteCarloEngine.run` and
it prints a one-line status every time the engine reports progress.
"""

from dataclasses import dataclass
from datetime import timedelta
import sys
import time
from typing import Optional, TextIO


@dataclass
class ProgressStats:
    """Statistics for progress monitoring.

    Attributes:
        completed: Number of collected simulation results
        total: Total planned simulations
        elapsed_time: Elapsed time in seconds
        estimated_time_remaining: Estimated time remaining in seconds
        simulations_per_second: Current processing speed
    """

    completed: int
    total: int
    elapsed_time: float
    estimated_time_remaining: float
    simulations_per_second: float

    def summary(self) -> str:
        """Generate progress summary."""
        progress_pct = (self.completed / self.total) * 100 if self.total else 100.0
        eta = timedelta(seconds=int(self.estimated_time_remaining))
        elapsed = timedelta(seconds=int(self.elapsed_time))

        return (
            f"Progress: {self.completed:,}/{self.total:,} "
            f"({progress_pct:.1f}%) | "
            f"Speed: {self.simulations_per_second:.0f} sims/s | "
            f"Elapsed: {elapsed} | "
            f"ETA: {eta}"
        )


class ProgressMonitor:
    """Progress observer printing a status line on each update.

    Args:
        show_console: Whether to write to ``stream`` at all.
        stream: Output stream, defaults to ``sys.stdout``.
    """

    def __init__(self, show_console: bool = True, stream: Optional[TextIO] = None):
        self.show_console = show_console
        self.stream = stream if stream is not None else sys.stdout
        self.start_time = time.time()
        self.updates = 0
        self.last_stats: Optional[ProgressStats] = None

    def __call__(self, completed: int, total: int, elapsed: float) -> None:
        self.update(completed, total, elapsed)

    def update(self, completed: int, total: int, elapsed: Optional[float] = None) -> ProgressStats:
        """Record a progress report and refresh the console line.

        Args:
            completed: Results collected so far
            total: Results expected
            elapsed: Seconds since the run started. Measured from the monitor's
                creation when omitted.

        Returns:
            Statistics for this update
        """
        if elapsed is None:
            elapsed = time.time() - self.start_time

        speed = completed / elapsed if elapsed > 0 else 0.0
        eta = (total - completed) / speed if speed > 0 else 0.0

        stats = ProgressStats(
            completed=completed,
            total=total,
            elapsed_time=elapsed,
            estimated_time_remaining=eta,
            simulations_per_second=speed,
        )
        self.last_stats = stats
        self.updates += 1

        if self.show_console:
            self.stream.write(f"\r{stats.summary()}")
            self.stream.flush()

        return stats

    def finalize(self) -> None:
        """End the status line."""
        if self.show_console and self.updates:
            self.stream.write("\n")
            self.stream.flush()
