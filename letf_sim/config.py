"""Configuration management using Pydantic v2 models.

File-based configuration for the leveraged ETF simulator. The master
:class:`Config` combines the simulation, track, input, output and logging sections,
validates them, and converts to the engine's
:class:`~letf_sim.monte_carlo.MonteCarloConfig`.

Examples:
    Load a configuration and run::

        from pathlib import Path
        from letf_sim.config import Config

        config = Config.from_yaml(Path("letf_sim/data/default.yaml"))
        config = config.override(simulation__n_simulations=1_000)
        mc_config = config.to_monte_carlo_config()

Note:
    Returns and expense ratios are expressed in percent (0.91 = 0.91%).
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional
import warnings

from pydantic import BaseModel, Field, field_validator, model_validator

from .monte_carlo import MonteCarloConfig

DEFAULT_CONFIG_PATH = Path(__file__).parent / "data" / "default.yaml"


class SimulationSettings(BaseModel):
    """Simulation execution parameters.

    Attributes:
        n_simulations: Number of independent trials.
        n_years: Simulated horizon in years.
        trading_days_per_year: Trading days in one simulated year.
        n_workers: Number of worker tasks.
        queue_size: Capacity of the work and result queues. None for
            ``n_workers * 10``.
        strategy: Pricing strategy, ``sampling`` or ``alternating``.
        random_seed: Random seed for reproducibility. None for random.
        progress_interval: Report progress every N results.
        progress_bar: Show a tqdm progress bar.
    """

    n_simulations: int = Field(default=10_000, gt=0, description="Number of trials")
    n_years: int = Field(default=30, gt=0, le=200, description="Simulated horizon in years")
    trading_days_per_year: int = Field(
        default=253, gt=0, le=366, description="Trading days per simulated year"
    )
    n_workers: int = Field(default=8, ge=1, le=256, description="Number of worker tasks")
    queue_size: Optional[int] = Field(default=None, ge=1, description="Queue capacity")
    strategy: Literal["sampling", "alternating"] = Field(
        default="sampling", description="Pricing strategy"
    )
    random_seed: Optional[int] = Field(
        default=None, ge=0, description="Random seed for reproducibility"
    )
    progress_interval: int = Field(default=1000, ge=1, description="Progress report interval")
    progress_bar: bool = Field(default=True, description="Show progress bar")


class TrackSettings(BaseModel):
    """Baseline and leveraged track parameters.

    Attributes:
        leverage: Daily leverage multiplier of the leveraged track.
        baseline_expense_ratio: Annual expense ratio of the unleveraged
            position, in percent.
        leveraged_expense_ratio: Annual expense ratio of the leveraged fund,
            in percent.
        target_annual_return: Annual return in percent used for the hit
            ratio in summary statistics.
    """

    leverage: float = Field(default=2.0, gt=0, le=100, description="Daily leverage multiplier")
    baseline_expense_ratio: float = Field(
        default=0.03, ge=0, lt=100, description="Baseline annual expense ratio (%)"
    )
    leveraged_expense_ratio: float = Field(
        default=0.91, ge=0, lt=100, description="Leveraged annual expense ratio (%)"
    )
    target_annual_return: float = Field(
        default=15.0, description="Annual return target for hit ratio (%)"
    )

    @field_validator("leverage")
    @classmethod
    def validate_leverage(cls, v: float) -> float:
        """Warn about leverage beyond what listed funds offer.

        Args:
            v: Leverage value to validate.

        Returns:
            float: The leverage value unchanged.
        """
        if v > 10:
            warnings.warn(f"Leverage {v}x is far beyond typical leveraged funds", UserWarning)
        return v

    @model_validator(mode="after")
    def validate_expense_order(self):
        """Warn if the leveraged fund is cheaper than the baseline.

        Returns:
            TrackSettings: The validated config object.
        """
        if self.leveraged_expense_ratio < self.baseline_expense_ratio:
            warnings.warn(
                f"Leveraged expense ratio {self.leveraged_expense_ratio}% is below baseline "
                f"{self.baseline_expense_ratio}%",
                UserWarning,
            )
        return self


class InputConfig(BaseModel):
    """Location of the historical daily change file."""

    prices_file: str = Field(
        default="resources/daily-changes.csv", description="Daily change file path"
    )

    @property
    def prices_path(self) -> Path:
        return Path(self.prices_file)


class OutputConfig(BaseModel):
    """Where per-trial results are written, if anywhere."""

    results_file: Optional[str] = Field(
        default=None, description="CSV file for per-trial returns (None=do not write)"
    )


class LoggingConfig(BaseModel):
    """Logging of the ``letf_sim`` package logger.

    Attributes:
        enabled: Leave logging untouched when False.
        level: Level of the package logger.
        log_file: Optional file receiving the same records as the console.
        console_output: Write records to stderr.
        format: :class:`logging.Formatter` format string.
    """

    enabled: bool = Field(default=True, description="Configure the package logger")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Package logger level"
    )
    log_file: Optional[str] = Field(default=None, description="Log file (None=console only)")
    console_output: bool = Field(default=True, description="Log to stderr")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Record format",
    )


def _merge_sections(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively apply ``changes`` on top of ``base`` without mutating either."""
    merged = dict(base)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_sections(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config(BaseModel):
    """Complete configuration for the leveraged ETF simulator."""

    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    tracks: TrackSettings = Field(default_factory=TrackSettings)
    input: InputConfig = Field(default_factory=InputConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file.

        Missing sections and fields keep their defaults. Top-level keys
        starting with ``_`` are ignored, so they can hold YAML anchors shared
        between sections.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Config object with validated parameters.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If the file is not valid YAML.
            ValueError: If the document is not a mapping of sections.
            ValidationError: If configuration is invalid.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(
                f"{path}: expected a mapping of sections, got {type(data).__name__}"
            )
        return cls(**{k: v for k, v in data.items() if not str(k).startswith("_")})

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_config: Optional["Config"] = None) -> "Config":
        """Create a config from nested section dictionaries.

        Args:
            data: Section name to field values.
            base_config: Config whose values fill everything ``data`` leaves
                out. Defaults are used when omitted.

        Returns:
            Config object with validated parameters.
        """
        if base_config is None:
            return cls(**data)
        return cls(**_merge_sections(base_config.model_dump(), data))

    def override(self, **kwargs) -> "Config":
        """Return a copy with some fields replaced.

        Args:
            **kwargs: ``section__field=value`` pairs, e.g.
                ``tracks__leverage=3.0``.

        Returns:
            New validated Config; this one is left unchanged.
        """
        changes: Dict[str, Any] = {}
        for dotted, value in kwargs.items():
            section, _, field = dotted.partition("__")
            if field:
                changes.setdefault(section, {})[field] = value
            else:
                changes[section] = value
        return Config.from_dict(changes, base_config=self)

    def to_yaml(self, path: Path) -> None:
        """Write the configuration as YAML, in section order.

        Args:
            path: Destination file. Parent directories are created.
        """
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)

    def to_monte_carlo_config(self) -> MonteCarloConfig:
        """Build the engine configuration."""
        sim = self.simulation
        return MonteCarloConfig(
            n_simulations=sim.n_simulations,
            n_years=sim.n_years,
            trading_days_per_year=sim.trading_days_per_year,
            n_workers=sim.n_workers,
            queue_size=sim.queue_size,
            leverage=self.tracks.leverage,
            baseline_expense_ratio=self.tracks.baseline_expense_ratio,
            leveraged_expense_ratio=self.tracks.leveraged_expense_ratio,
            strategy=sim.strategy,
            seed=sim.random_seed,
            progress_interval=sim.progress_interval,
            progress_bar=sim.progress_bar,
        )

    def setup_logging(self) -> None:
        """Attach the configured handlers to the ``letf_sim`` logger.

        Existing handlers on that logger are replaced. Nothing happens when
        logging is disabled.
        """
        settings = self.logging
        if not settings.enabled:
            return

        import logging
        import sys

        handlers: List[logging.Handler] = []
        if settings.console_output:
            handlers.append(logging.StreamHandler(sys.stderr))
        if settings.log_file:
            log_path = Path(settings.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

        package_logger = logging.getLogger("letf_sim")
        package_logger.setLevel(settings.level)
        package_logger.handlers.clear()
        formatter = logging.Formatter(settings.format)
        for handler in handlers:
            handler.setFormatter(formatter)
            package_logger.addHandler(handler)
