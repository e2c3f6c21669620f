"""Parallel Monte Carlo engine for leveraged ETF simulations.

The engine fans trial indices out to a fixed pool of worker processes and fans
the finished :class:`~letf_sim.trial.SimulationResult` objects back in:

* one dispatcher thread puts trial indices ``0..n_simulations-1`` on a bounded
  work queue, followed by one end-of-work marker per worker;
* every worker process owns a private pricing strategy (and random generator)
  and pricing manager, builds one price history per trial index, evaluates
  both tracks and puts the result on a bounded result queue;
* the calling thread collects exactly ``n_simulations`` results in arrival
  order and reports progress.

Queues are the only shared state, so no locking is needed. Their capacity
bounds how far the dispatcher can run ahead of the workers and the workers
ahead of the collector. Only trial indices and results cross process
boundaries; the option pool is shipped once per worker.

Examples:
    Run a small simulation::

        from letf_sim.monte_carlo import MonteCarloConfig, MonteCarloEngine
        from letf_sim.price_loader import load_daily_changes

        prices = load_daily_changes("resources/daily-changes.csv")
        config = MonteCarloConfig(n_simulations=1_000, n_years=5, n_workers=4)
        results = MonteCarloEngine(prices, config).run()
        print(results.summary())

    Worker processes import this module, so scripts starting a run must guard
    their entry point with ``if __name__ == "__main__":`` on platforms that
    spawn processes.
"""

from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from functools import partial
import logging
import multiprocessing as mp
from multiprocessing.managers import SyncManager
import queue
import signal
import threading
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from .price import Price
from .pricing_manager import PricingManager
from .pricing_strategy import (
    STRATEGIES,
    EmptyOptionPoolError,
    StrategyFactory,
    create_pricing_strategy,
)
from .summary_statistics import SummaryStatistics, format_report
from .trial import TRACK_NAMES, SimulationResult, TrackConfig, evaluate_trial

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, float], None]

# Crosses process boundaries, so it is compared by value
_END_OF_WORK = None


class RunState(Enum):
    """Lifecycle of a single :meth:`MonteCarloEngine.run` call."""

    NOT_STARTED = "not_started"
    DISPATCHING = "dispatching"
    COLLECTING = "collecting"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass
class MonteCarloConfig:
    """Configuration for Monte Carlo simulation.

    Attributes:
        n_simulations: Number of independent trials
        n_years: Simulated horizon in years
        trading_days_per_year: Trading days in one simulated year
        n_workers: Number of worker tasks
        queue_size: Capacity of the work and result queues (None for
            ``n_workers * 10``)
        leverage: Daily leverage factor of the leveraged track
        baseline_expense_ratio: Annual expense ratio of the baseline track in percent
        leveraged_expense_ratio: Annual expense ratio of the leveraged track in percent
        strategy: Pricing strategy name, ``"sampling"`` or ``"alternating"``
        seed: Base seed. When set, every trial draws from a stream derived from
            ``(seed, trial_index)`` so results do not depend on scheduling.
            None seeds each worker from system entropy.
        progress_interval: Report progress every N collected results
        progress_bar: Show a tqdm progress bar
        poll_interval: Seconds a blocked queue operation waits before checking
            for cancellation
    """

    n_simulations: int = 10_000
    n_years: int = 30
    trading_days_per_year: int = 253
    n_workers: int = 8
    queue_size: Optional[int] = None
    leverage: float = 2.0
    baseline_expense_ratio: float = 0.03
    leveraged_expense_ratio: float = 0.91
    strategy: str = "sampling"
    seed: Optional[int] = None
    progress_interval: int = 1000
    progress_bar: bool = True
    poll_interval: float = 0.05

    def __post_init__(self):
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is out of its valid range.
        """
        if self.n_simulations <= 0:
            raise ValueError(f"n_simulations must be positive, got {self.n_simulations}")
        if self.n_years <= 0:
            raise ValueError(f"n_years must be positive, got {self.n_years}")
        if self.trading_days_per_year <= 0:
            raise ValueError(
                f"trading_days_per_year must be positive, got {self.trading_days_per_year}"
            )
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")
        if self.queue_size is None:
            self.queue_size = self.n_workers * 10
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {self.queue_size}")
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown pricing strategy '{self.strategy}'. Available: {sorted(STRATEGIES)}"
            )
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.progress_interval < 1:
            raise ValueError(f"progress_interval must be >= 1, got {self.progress_interval}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")

    @property
    def n_days(self) -> int:
        """Trading days in one trial."""
        return self.trading_days_per_year * self.n_years

    @property
    def tracks(self) -> TrackConfig:
        return TrackConfig(
            leverage=self.leverage,
            baseline_expense_ratio=self.baseline_expense_ratio,
            leveraged_expense_ratio=self.leveraged_expense_ratio,
            trading_days_per_year=self.trading_days_per_year,
        )


@dataclass
class MonteCarloResults:
    """Results from Monte Carlo simulation.

    Attributes:
        results: Per-trial results in arrival order. Arrival order depends on
            worker scheduling and says nothing about the trial index.
        n_requested: Number of trials the run was configured for
        execution_time: Total execution time in seconds
        config: Simulation configuration used
        cancelled: Whether the run was cancelled before all trials finished
    """

    results: List[SimulationResult]
    n_requested: int
    execution_time: float
    config: MonteCarloConfig
    cancelled: bool = False

    @property
    def completed(self) -> int:
        return len(self.results)

    @property
    def baseline_returns(self) -> np.ndarray:
        """Cumulative baseline returns in percent."""
        return np.array([r.baseline_return.percent_delta for r in self.results], dtype=float)

    @property
    def leveraged_returns(self) -> np.ndarray:
        """Cumulative leveraged returns in percent."""
        return np.array([r.leveraged_return.percent_delta for r in self.results], dtype=float)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per trial, one column per track."""
        return pd.DataFrame(
            {
                TRACK_NAMES[0]: self.baseline_returns,
                TRACK_NAMES[1]: self.leveraged_returns,
            }
        )

    def summary(self, target_annual_return: float = 15.0) -> str:
        """Generate summary of simulation results."""
        statistics = SummaryStatistics(
            years=self.config.n_years, target_annual_return=target_annual_return
        ).calculate(self.results)

        status = "cancelled" if self.cancelled else "complete"
        header = (
            f"Simulation Results Summary\n"
            f"{'='*50}\n"
            f"Simulations: {self.completed:,}/{self.n_requested:,} ({status})\n"
            f"Years: {self.config.n_years}\n"
            f"Leverage: {self.config.leverage:.2f}x\n"
            f"Expense Ratios: {self.config.baseline_expense_ratio:.2f}% / "
            f"{self.config.leveraged_expense_ratio:.2f}%\n"
            f"Execution Time: {self.execution_time:.2f}s\n"
            f"{'='*50}\n"
        )
        return header + format_report(statistics, target_annual_return)


def _ignore_interrupts() -> None:
    """Leave Ctrl-C to the parent process, which cancels the run."""
    signal.signal(signal.SIGINT, signal.SIG_IGN)


def _put(target: Any, item: Any, stopped: Callable[[], bool], poll_interval: float) -> bool:
    """Blocking put that gives up once ``stopped`` returns True."""
    while not stopped():
        try:
            target.put(item, timeout=poll_interval)
            return True
        except queue.Full:
            continue
    return False


def run_worker(
    worker_id: int,
    price_options: Tuple[Price, ...],
    config: MonteCarloConfig,
    strategy_factory: StrategyFactory,
    work_queue: Any,
    result_queue: Any,
    stop_event: Any,
    halt_event: Any,
) -> int:
    """Worker loop: one price history and one result per trial index.

    Standalone function so it can be pickled into a worker process.

    Args:
        worker_id: Index of the worker, for logging.
        price_options: Historical daily returns for the worker's strategy.
        config: Simulation configuration.
        strategy_factory: Builds this worker's private pricing strategy.
        work_queue: Queue of trial indices and end-of-work markers.
        result_queue: Queue receiving one result per trial.
        stop_event: Set when no new trial may start.
        halt_event: Set once the collector stops reading results.

    Returns:
        Number of trials this worker delivered.
    """
    strategy = strategy_factory(price_options, None)
    pricing_manager = PricingManager(strategy)
    tracks = config.tracks
    n_days = config.n_days
    completed = 0

    logger.debug("Worker %d started with %s", worker_id, type(strategy).__name__)
    while not stop_event.is_set():
        try:
            trial_index = work_queue.get(timeout=config.poll_interval)
        except queue.Empty:
            continue
        if trial_index is _END_OF_WORK or stop_event.is_set():
            break

        if config.seed is not None:
            strategy.reseed(np.random.SeedSequence([config.seed, trial_index]))

        price_history = pricing_manager.calculate_prices(0, n_days)
        result = evaluate_trial(price_history, tracks)
        # a trial that started before cancellation is still delivered
        if not _put(result_queue, result, halt_event.is_set, config.poll_interval):
            break
        completed += 1

    logger.debug("Worker %d finished after %d trials", worker_id, completed)
    return completed


class MonteCarloEngine:
    """Runs independent leveraged ETF trials on a pool of worker processes.

    Args:
        price_options: Historical daily returns the strategies draw from. The
            engine keeps a read-only copy; every worker's strategy takes its
            own copy of it.
        config: Simulation configuration
        strategy_factory: Builds one pricing strategy per worker from
            ``(price_options, seed)``. Must be picklable, i.e. a module-level
            function or a :func:`functools.partial` of one. Defaults to the
            strategy named in the configuration.

    Raises:
        EmptyOptionPoolError: If ``price_options`` is empty.

    Attributes:
        state: :class:`RunState` of the current or last run
    """

    def __init__(
        self,
        price_options: Sequence[Price],
        config: Optional[MonteCarloConfig] = None,
        strategy_factory: Optional[StrategyFactory] = None,
    ):
        self.price_options = tuple(price_options)
        if not self.price_options:
            raise EmptyOptionPoolError("MonteCarloEngine requires at least one price option")
        self.config = config or MonteCarloConfig()
        self.strategy_factory = strategy_factory or partial(
            create_pricing_strategy, self.config.strategy
        )
        self.state = RunState.NOT_STARTED

    def run(
        self,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> MonteCarloResults:
        """Execute Monte Carlo simulation.

        Args:
            progress_callback: Optional callback invoked with
                ``(completed, total, elapsed_seconds)`` every
                ``progress_interval`` results and once when collection ends.
            cancel_event: Optional :class:`threading.Event`. When set, no new
                trials are started, the collector waits for running trials to
                deliver their results, and the results collected so far are
                returned.

        Returns:
            MonteCarloResults with exactly ``n_simulations`` results unless
            cancelled

        Raises:
            Exception: Any exception raised inside a worker is re-raised here
                after the remaining tasks have stopped.
        """
        config = self.config
        n_sims = config.n_simulations
        start_time = time.time()

        logger.info(
            "Starting %d simulations of %d days on %d workers (strategy=%s, leverage=%.2f)",
            n_sims,
            config.n_days,
            config.n_workers,
            config.strategy,
            config.leverage,
        )

        results: List[SimulationResult] = []
        cancelled = False
        mp_context = mp.get_context()
        pbar = tqdm(total=n_sims, desc="Running simulations") if config.progress_bar else None

        manager = SyncManager(ctx=mp_context)
        manager.start(_ignore_interrupts)
        work_queue = manager.Queue(maxsize=config.queue_size)
        result_queue = manager.Queue(maxsize=config.queue_size)
        stop_event = manager.Event()
        halt_event = manager.Event()

        dispatcher = ThreadPoolExecutor(max_workers=1, thread_name_prefix="letf-sim")
        pool = ProcessPoolExecutor(
            max_workers=config.n_workers,
            mp_context=mp_context,
            initializer=_ignore_interrupts,
        )

        self.state = RunState.DISPATCHING
        try:
            dispatch_task = dispatcher.submit(self._dispatch, work_queue, stop_event.is_set)
            worker_tasks: List[Future] = [
                pool.submit(
                    run_worker,
                    worker_id,
                    self.price_options,
                    config,
                    self.strategy_factory,
                    work_queue,
                    result_queue,
                    stop_event,
                    halt_event,
                )
                for worker_id in range(config.n_workers)
            ]
            tasks = [dispatch_task] + worker_tasks

            self.state = RunState.COLLECTING
            while len(results) < n_sims:
                if not cancelled and cancel_event is not None and cancel_event.is_set():
                    logger.info(
                        "Cancellation requested after %d/%d simulations", len(results), n_sims
                    )
                    cancelled = True
                    stop_event.set()

                try:
                    result = result_queue.get(timeout=config.poll_interval)
                except queue.Empty:
                    if self._check_tasks(tasks, result_queue, cancelled):
                        break
                    continue

                results.append(result)
                if pbar is not None:
                    pbar.update(1)
                if progress_callback is not None and len(results) % config.progress_interval == 0:
                    progress_callback(len(results), n_sims, time.time() - start_time)
        finally:
            stop_event.set()
            halt_event.set()
            dispatcher.shutdown(wait=True)
            pool.shutdown(wait=True)
            manager.shutdown()
            if pbar is not None:
                pbar.close()

        # Fire final callback so callers always see the final count
        completed = len(results)
        if (
            progress_callback is not None
            and completed > 0
            and completed % config.progress_interval != 0
        ):
            progress_callback(completed, n_sims, time.time() - start_time)

        execution_time = time.time() - start_time
        self.state = RunState.CANCELLED if cancelled else RunState.DONE
        logger.info("Collected %d/%d simulations in %.2fs", completed, n_sims, execution_time)

        return MonteCarloResults(
            results=results,
            n_requested=n_sims,
            execution_time=execution_time,
            config=config,
            cancelled=cancelled,
        )

    def _dispatch(self, work_queue: Any, stopped: Callable[[], bool]) -> int:
        """Emit one trial index per simulation, then one end marker per worker."""
        poll_interval = self.config.poll_interval
        for trial_index in range(self.config.n_simulations):
            if not _put(work_queue, trial_index, stopped, poll_interval):
                logger.debug("Dispatcher stopped after %d trials", trial_index)
                return trial_index
        for _ in range(self.config.n_workers):
            if not _put(work_queue, _END_OF_WORK, stopped, poll_interval):
                break
        return self.config.n_simulations

    @staticmethod
    def _check_tasks(tasks: List[Future], result_queue: Any, cancelled: bool) -> bool:
        """Inspect the tasks after the result queue ran dry.

        Args:
            tasks: Dispatcher task followed by the worker tasks.
            result_queue: Queue the workers deliver to.
            cancelled: Whether the run has been cancelled.

        Returns:
            True when a cancelled run has received every result its workers
            will deliver, False while results may still arrive.

        Raises:
            Exception: The first exception raised by a task.
            RuntimeError: If every task exited before all results arrived.
        """
        for task in tasks:
            if task.done() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]
        if all(task.done() for task in tasks[1:]) and result_queue.empty():
            if cancelled:
                return True
            raise RuntimeError("All workers exited before every simulation produced a result")
        return False
