"""Configuration management for engine thresholds and file locations.

Loads configuration from environment variables, a .env file, or a YAML file.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_NEGLIGIBLE_PERCENTAGE = 0.01
DEFAULT_COMPLETION_TOLERANCE = 0.01


def _parse_float(key: str, raw: Any, default: float) -> float:
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(key, f"expected a number, got {raw!r}")
    if value < 0:
        raise ConfigurationError(key, f"must not be negative, got {value}")
    return value


@dataclass
class EngineConfig:
    """Settings shared by the CLI and the order store."""

    # Entries at or below this percentage are treated as unallocated
    negligible_percentage: float = DEFAULT_NEGLIGIBLE_PERCENTAGE

    # Allowed distance from 100% for a plan to count as complete
    completion_tolerance: float = DEFAULT_COMPLETION_TOLERANCE

    # Default JSON export of order documents
    orders_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables."""
        orders_file = os.getenv("ALLOCATION_ORDERS_FILE")
        return cls(
            negligible_percentage=_parse_float(
                "ALLOCATION_NEGLIGIBLE_PERCENTAGE",
                os.getenv("ALLOCATION_NEGLIGIBLE_PERCENTAGE"),
                DEFAULT_NEGLIGIBLE_PERCENTAGE,
            ),
            completion_tolerance=_parse_float(
                "ALLOCATION_COMPLETION_TOLERANCE",
                os.getenv("ALLOCATION_COMPLETION_TOLERANCE"),
                DEFAULT_COMPLETION_TOLERANCE,
            ),
            orders_file=Path(orders_file) if orders_file else None,
        )

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "EngineConfig":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the current directory.

        Returns:
            EngineConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            env_path = Path.cwd() / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        return cls.from_env()

    @classmethod
    def from_yaml(cls, config_path: Path | str) -> "EngineConfig":
        """
        Load configuration from a YAML file.

        Keys missing from the file keep the values found in the environment.

        Args:
            config_path: Path to a YAML mapping with any of the dataclass fields

        Returns:
            EngineConfig instance with loaded values
        """
        config_path = Path(config_path)
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigurationError(str(config_path), "config file not found")
        except yaml.YAMLError as e:
            raise ConfigurationError(str(config_path), f"invalid YAML: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(str(config_path), "top level must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(str(config_path), f"unknown keys: {sorted(unknown)}")

        base = cls.from_env()
        orders_file = data.get("orders_file")
        return cls(
            negligible_percentage=_parse_float(
                "negligible_percentage",
                data.get("negligible_percentage"),
                base.negligible_percentage,
            ),
            completion_tolerance=_parse_float(
                "completion_tolerance",
                data.get("completion_tolerance"),
                base.completion_tolerance,
            ),
            orders_file=Path(orders_file) if orders_file else base.orders_file,
        )


# Global config instance (lazy loaded)
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = EngineConfig.load()
    return _config


def reload_config(env_file: Optional[Path] = None) -> EngineConfig:
    """Reload configuration from environment."""
    global _config
    _config = EngineConfig.load(env_file)
    return _config
