"""Command-line interface for the leveraged ETF simulator.

Loads a configuration, reads the historical daily changes, runs the Monte
Carlo engine and prints the summary report. Ctrl-C cancels a run; the trials
collected so far are still summarized and the exit code is 130.
"""

import argparse
import logging
from pathlib import Path
import signal
import sys
import threading
from typing import List, Optional

from pydantic import ValidationError
import yaml

from .config import DEFAULT_CONFIG_PATH, Config
from .monte_carlo import MonteCarloEngine, MonteCarloResults
from .price_loader import PriceFileError, load_daily_changes
from .pricing_strategy import STRATEGIES
from .progress_monitor import ProgressMonitor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="letf-sim",
        description="Monte Carlo comparison of an unleveraged and a leveraged ETF position",
    )
    parser.add_argument(
        "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML configuration file"
    )
    parser.add_argument("--prices", type=Path, help="Daily change file (overrides config)")
    parser.add_argument("--output", type=Path, help="Write per-trial returns to this CSV file")
    parser.add_argument("--simulations", type=int, help="Number of trials")
    parser.add_argument("--years", type=int, help="Simulated horizon in years")
    parser.add_argument("--workers", type=int, help="Number of worker tasks")
    parser.add_argument("--leverage", type=float, help="Daily leverage factor")
    parser.add_argument("--strategy", choices=sorted(STRATEGIES), help="Pricing strategy")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable progress bar and progress lines"
    )
    return parser


def _apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    overrides = {
        "input__prices_file": str(args.prices) if args.prices else None,
        "output__results_file": str(args.output) if args.output else None,
        "simulation__n_simulations": args.simulations,
        "simulation__n_years": args.years,
        "simulation__n_workers": args.workers,
        "simulation__strategy": args.strategy,
        "simulation__random_seed": args.seed,
        "tracks__leverage": args.leverage,
    }
    if args.no_progress:
        overrides["simulation__progress_bar"] = False
    return config.override(**{k: v for k, v in overrides.items() if v is not None})


def _write_results(results: MonteCarloResults, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    results.to_dataframe().to_csv(path, index=False)
    logger.info("Wrote %d trial results to %s", results.completed, path)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the simulator.

    Args:
        argv: Command-line arguments, defaults to ``sys.argv[1:]``.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        config = _apply_overrides(Config.from_yaml(args.config), args)
    except (FileNotFoundError, ValidationError, ValueError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    config.setup_logging()

    try:
        price_options = load_daily_changes(config.input.prices_path)
    except (FileNotFoundError, PriceFileError) as e:
        logger.error("Could not load prices: %s", e)
        return 1

    mc_config = config.to_monte_carlo_config()
    engine = MonteCarloEngine(price_options, mc_config)
    # the tqdm bar already shows progress when enabled
    monitor = ProgressMonitor(show_console=not args.no_progress and not mc_config.progress_bar)
    cancel_event = threading.Event()

    # Ctrl-C cancels the run, the partial results are still reported
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())
    try:
        results = engine.run(progress_callback=monitor, cancel_event=cancel_event)
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        monitor.finalize()

    if config.output.results_file:
        _write_results(results, Path(config.output.results_file))

    print(results.summary(target_annual_return=config.tracks.target_annual_return))
    if results.cancelled:
        logger.warning(
            "Interrupted after %d/%d simulations", results.completed, results.n_requested
        )
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
