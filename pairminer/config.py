"""Configuration management for the pairminer CLI."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from pairminer.errors import ConfigError
from pairminer.version import (
    DEFAULT_CONFIG,
    DUPLICATE_POLICIES,
    NEGATIVE_STRATEGIES,
    OUTPUT_MODES,
)


class Config:
    """Configuration manager with file and environment support."""

    CONFIG_FILENAMES = [
        ".pairminer.yaml",
        ".pairminer.yml",
        "pairminer.yaml",
        "pairminer.yml",
    ]

    INT_KEYS = ("workers", "fanout", "seed")

    def __init__(self) -> None:
        self._config: dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Path | None = None

    def load(self, config_path: Path | None = None) -> "Config":
        """Load configuration from file and environment."""
        # 1. Load from config file
        if config_path:
            if not config_path.exists():
                raise ConfigError(f"Config file not found: {config_path}")
            self._load_file(config_path)
        else:
            self._auto_discover()

        # 2. Override with environment variables
        self._load_env()

        self.validate()
        return self

    def _auto_discover(self) -> None:
        """Auto-discover config file in current directory or home."""
        search_dirs = [Path.cwd(), Path.home()]

        for search_dir in search_dirs:
            for filename in self.CONFIG_FILENAMES:
                config_path = search_dir / filename
                if config_path.exists():
                    self._load_file(config_path)
                    return

    def _load_file(self, path: Path) -> None:
        """Load configuration from YAML file."""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        self._config.update(data)
        self._config_path = path

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        env_mappings = {
            "PAIRMINER_LANGUAGE": "language",
            "PAIRMINER_WORKERS": "workers",
            "PAIRMINER_FANOUT": "fanout",
            "PAIRMINER_OUTPUT_MODE": "output_mode",
            "PAIRMINER_NEGATIVES": "negatives",
            "PAIRMINER_SEED": "seed",
            "PAIRMINER_DUPLICATES": "duplicates",
            "PAIRMINER_SPLIT": "split",
            "PAIRMINER_LOG_LEVEL": "log_level",
        }

        for env_var, config_key in env_mappings.items():
            value = os.environ.get(env_var)
            if value is None:
                continue
            if config_key in self.INT_KEYS:
                try:
                    self._config[config_key] = int(value)
                except ValueError as exc:
                    raise ConfigError(f"{env_var} must be an integer, got {value!r}") from exc
            else:
                self._config[config_key] = value

    def validate(self) -> None:
        """Reject values the pipeline cannot run with."""
        choices = {
            "output_mode": OUTPUT_MODES,
            "negatives": NEGATIVE_STRATEGIES,
            "duplicates": DUPLICATE_POLICIES,
        }
        for key, allowed in choices.items():
            if self._config.get(key) not in allowed:
                raise ConfigError(
                    f"{key} must be one of {', '.join(allowed)}, got {self._config.get(key)!r}"
                )
        for key in self.INT_KEYS:
            value = self._config.get(key)
            if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                raise ConfigError(f"{key} must be an integer, got {value!r}")
        for key in ("workers", "fanout"):
            value = self._config.get(key)
            if value is not None and value < 1:
                raise ConfigError(f"{key} must be a positive integer, got {value!r}")
        if not isinstance(self._config.get("split"), str):
            raise ConfigError(
                f"split must be a string like '8,1,1', got {self._config.get('split')!r}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        self._config[key] = value

    @property
    def config_path(self) -> Path | None:
        """Return the path to the loaded config file."""
        return self._config_path

    def to_dict(self) -> dict[str, Any]:
        """Return configuration as dictionary."""
        return dict(self._config)
