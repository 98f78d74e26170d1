"""
Configuration for the ordering engine.

This module defines the tunable parameters of the ordering strategies and the
host CLI, and how they are loaded from YAML files and environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

DEFAULT_CONFIG_NAME = ".simorder.yml"
VALID_STRATEGIES = ("simple", "vptree", "mst")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class OrderingConfig:
    """
    Configuration for similarity ordering.

    Controls the default strategy, the Simple Greedy comparison budget,
    how often progress is reported, and how dense the MST mode's k-NN graph is.
    """

    # Strategy used when a request does not name one
    strategy: str = "mst"

    # Candidates scored per Simple Greedy step (None = unlimited)
    max_comparisons: Optional[int] = 1000

    # Placements between progress events in the greedy strategies
    progress_interval: int = 50

    # Items between progress events while building the graph and the MST
    graph_progress_interval: int = 100

    # k = min(N - 1, max(min_neighbors, floor(sqrt(N) * neighbor_scale)))
    min_neighbors: int = 20
    neighbor_scale: float = 10.0

    # Logging level for the CLI
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.strategy not in VALID_STRATEGIES:
            raise ValueError(
                f"strategy must be one of {', '.join(VALID_STRATEGIES)}, got {self.strategy!r}"
            )

        if self.max_comparisons is not None and self.max_comparisons < 1:
            raise ValueError(
                f"max_comparisons must be positive or None, got {self.max_comparisons}"
            )

        if self.progress_interval < 1:
            raise ValueError(f"progress_interval must be positive, got {self.progress_interval}")

        if self.graph_progress_interval < 1:
            raise ValueError(
                f"graph_progress_interval must be positive, got {self.graph_progress_interval}"
            )

        if self.min_neighbors < 1:
            raise ValueError(f"min_neighbors must be positive, got {self.min_neighbors}")

        if self.neighbor_scale <= 0:
            raise ValueError(f"neighbor_scale must be positive, got {self.neighbor_scale}")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log_level {self.log_level!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "strategy": self.strategy,
            "max_comparisons": self.max_comparisons,
            "progress_interval": self.progress_interval,
            "graph_progress_interval": self.graph_progress_interval,
            "min_neighbors": self.min_neighbors,
            "neighbor_scale": self.neighbor_scale,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderingConfig":
        """Create from dictionary representation."""
        return cls(
            strategy=data.get("strategy", "mst"),
            max_comparisons=data.get("max_comparisons", 1000),
            progress_interval=data.get("progress_interval", 50),
            graph_progress_interval=data.get("graph_progress_interval", 100),
            min_neighbors=data.get("min_neighbors", 20),
            neighbor_scale=data.get("neighbor_scale", 10.0),
            log_level=data.get("log_level", "WARNING"),
        )

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        file_path = Path(file_path)

        # Create directory if it doesn't exist
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "OrderingConfig":
        """Load configuration from YAML file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        # Look for config in current directory, then home directory
        current_dir_config = Path(DEFAULT_CONFIG_NAME)
        if current_dir_config.exists():
            return current_dir_config

        return Path.home() / DEFAULT_CONFIG_NAME

    @classmethod
    def load_or_default(
        cls, config_path: Optional[Union[str, Path]] = None
    ) -> "OrderingConfig":
        """
        Load configuration from file or return default if not found.

        Args:
            config_path: Optional path to configuration file

        Returns:
            OrderingConfig instance
        """
        if config_path:
            config_path = Path(config_path)
            if config_path.exists():
                return cls.load_from_file(config_path)
        else:
            default_path = cls.get_default_config_path()
            if default_path.exists():
                return cls.load_from_file(default_path)

        return cls()


def _optional_int(value: str) -> Optional[int]:
    if value.strip().lower() in ("", "none", "unlimited"):
        return None
    return int(value)


class ConfigManager:
    """
    Manager for ordering configuration.

    Resolves the configuration file (explicit path, ``SIMORDER_CONFIG``,
    default locations) and layers environment variable overrides on top.
    """

    ENV_MAPPINGS = {
        "SIMORDER_STRATEGY": ("strategy", str),
        "SIMORDER_MAX_COMPARISONS": ("max_comparisons", _optional_int),
        "SIMORDER_PROGRESS_INTERVAL": ("progress_interval", int),
        "SIMORDER_GRAPH_PROGRESS_INTERVAL": ("graph_progress_interval", int),
        "SIMORDER_MIN_NEIGHBORS": ("min_neighbors", int),
        "SIMORDER_NEIGHBOR_SCALE": ("neighbor_scale", float),
        "SIMORDER_LOG_LEVEL": ("log_level", str),
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[OrderingConfig] = None

    @property
    def config(self) -> OrderingConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.apply_environment_overrides(self.load_config())
        return self._config

    def load_config(self) -> OrderingConfig:
        """Load configuration from file or environment."""
        # Explicit path wins over the environment
        if self.config_path:
            return OrderingConfig.load_from_file(self.config_path)

        env_config_path = os.getenv("SIMORDER_CONFIG")
        if env_config_path:
            config_path = Path(env_config_path)
            if config_path.exists():
                return OrderingConfig.load_from_file(config_path)

        return OrderingConfig.load_or_default()

    def save_config(
        self, config: OrderingConfig, path: Optional[Union[str, Path]] = None
    ) -> Path:
        """Save configuration to file."""
        save_path = (
            Path(path)
            if path
            else (self.config_path or OrderingConfig.get_default_config_path())
        )
        config.save_to_file(save_path)
        self._config = config
        return save_path

    def get_environment_overrides(self) -> Dict[str, Any]:
        """Get configuration overrides from environment variables."""
        overrides: Dict[str, Any] = {}

        for env_var, (config_key, config_type) in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    overrides[config_key] = config_type(env_value)
                except ValueError as e:
                    raise ValueError(
                        f"Invalid environment variable {env_var}={env_value}: {e}"
                    )

        return overrides

    def apply_environment_overrides(self, config: OrderingConfig) -> OrderingConfig:
        """Apply environment variable overrides to configuration."""
        overrides = self.get_environment_overrides()

        if not overrides:
            return config

        config_dict = config.to_dict()
        config_dict.update(overrides)
        return OrderingConfig.from_dict(config_dict)

    def validate_config(self, config: OrderingConfig) -> List[str]:
        """Validate configuration and return list of issues."""
        issues = []

        try:
            # This will raise ValueError if invalid
            config.__post_init__()
        except ValueError as e:
            issues.append(str(e))

        if config.max_comparisons is None:
            issues.append("Warning: unlimited max_comparisons makes simple ordering quadratic")

        if config.min_neighbors > 200:
            issues.append("Warning: min_neighbors above 200 makes graph building slow")

        return issues
