"""
Configuration loader for the Estimator engine.

Loads settings from estimator_config.yaml and provides typed access
to all configuration sections.
"""
from pathlib import Path
from typing import Any, Optional
from functools import lru_cache

import yaml


# Default config path, shipped inside the package
DEFAULT_CONFIG_PATH = Path(__file__).parent / "estimator_config.yaml"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class EstimatorConfig:
    """
    Configuration manager for the Estimator engine.

    Loads YAML configuration and provides typed access to all sections.
    Use get_config() to obtain the singleton instance.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            raise ConfigurationError(f"Config file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r') as f:
                self._config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load()
        # Clear the cached singleton to force reload on next get_config()
        get_config.cache_clear()

    @property
    def version(self) -> str:
        """Configuration file version."""
        return self._config.get("version", "unknown")

    # =========================================================================
    # Schedule
    # =========================================================================

    @property
    def schedule(self) -> dict:
        """Schedule and S-curve configuration."""
        return self._config.get("schedule", {})

    @property
    def workday_hours(self) -> float:
        """Hours in a standard working day."""
        return float(self.schedule.get("workday_hours", 9))

    @property
    def bucket_days(self) -> int:
        """Width of an S-curve bucket in days."""
        return int(self.schedule.get("bucket_days", 7))

    @property
    def tail_buckets(self) -> int:
        """Extra S-curve buckets plotted after the planned finish."""
        return int(self.schedule.get("tail_buckets", 2))

    @property
    def default_horizon_days(self) -> int:
        """Horizon used when no item has a computable end date."""
        return int(self.schedule.get("default_horizon_days", 30))

    @property
    def calendar_mode(self) -> str:
        """Either 'calendar' or 'working'."""
        mode = self.schedule.get("calendar_mode", "calendar")
        if mode not in ("calendar", "working"):
            raise ConfigurationError(f"Unknown calendar_mode: {mode}")
        return mode

    @property
    def working_days(self) -> list[int]:
        """Default working weekdays (0 = Monday)."""
        return list(self.schedule.get("working_days", [0, 1, 2, 3, 4]))

    # =========================================================================
    # Pareto / ABC
    # =========================================================================

    @property
    def pareto(self) -> dict:
        """ABC classification thresholds."""
        return self._config.get("pareto", {})

    @property
    def pareto_thresholds(self) -> tuple[float, float]:
        """Cumulative percentage limits for classes A and B."""
        return (
            float(self.pareto.get("class_a_max", 80)),
            float(self.pareto.get("class_b_max", 95)),
        )

    # =========================================================================
    # Crashing
    # =========================================================================

    @property
    def crashing(self) -> dict:
        """Time-cost trade-off heuristics."""
        return self._config.get("crashing", {
            "max_extra_crews": 3,
            "overtime_levels": [0, 50, 100],
            "overtime_output_factor": 0.8,
            "fatigue_divisor": 500,
            "overtime_premium_factor": 1.5,
            "supervision_overhead_per_crew": 0.05,
        })

    # =========================================================================
    # Pricing
    # =========================================================================

    @property
    def pricing(self) -> dict:
        """Default indirect cost / profit / tax percentages."""
        return self._config.get("pricing", {
            "general_expenses_percent": 15,
            "financial_expenses_percent": 3,
            "profit_percent": 10,
            "tax_percent": 21,
        })

    @property
    def price_deviation_threshold(self) -> float:
        """Minimum price increase (percent) reported as a deviation."""
        section = self._config.get("price_deviation", {})
        return float(section.get("threshold_percent", 10))

    # =========================================================================
    # Raw Access
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level config value by key."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access to config."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """Check if key exists in config."""
        return key in self._config


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> EstimatorConfig:
    """
    Get the singleton configuration instance.

    Args:
        config_path: Optional path to config file. Only used on first call.

    Returns:
        EstimatorConfig singleton instance
    """
    path = Path(config_path) if config_path else None
    return EstimatorConfig(path)


def reload_config() -> EstimatorConfig:
    """Reload configuration from disk and return new instance."""
    get_config.cache_clear()
    return get_config()
