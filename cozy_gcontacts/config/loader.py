"""
Configuration loader module for Cozy / Google contact synchronization.

Provides YAML-based configuration file loading with support for:
- Loading configuration from default or custom paths
- Graceful handling of missing configuration files
- Validation of known keys and their value ranges
- Merging with CLI argument overrides
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

# Default configuration directory and file name
DEFAULT_CONFIG_DIR = Path("~/.cozy-gcontacts")
DEFAULT_CONFIG_FILE = "config.yaml"

# Environment variable overriding the configuration directory
CONFIG_DIR_ENV_VAR = "COZY_GCONTACTS_CONFIG_DIR"

# Accepted values for the "direction" key
VALID_DIRECTIONS = ("cozy_to_google", "google_to_cozy", "both")

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory.

    The explicit argument wins, then $COZY_GCONTACTS_CONFIG_DIR, then
    ~/.cozy-gcontacts. The result is absolute with ``~`` expanded.
    """
    chosen = config_dir or os.environ.get(CONFIG_DIR_ENV_VAR) or DEFAULT_CONFIG_DIR
    return Path(chosen).expanduser().resolve()


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load_and_validate()

        # Load from specific file
        config = loader.load_from_file("/path/to/config.yaml")

        # CLI values take precedence over the file
        config = merge_cli_overrides(config, {"direction": "both"})
    """

    def __init__(
        self, config_dir: Path | None = None, config_file: str = DEFAULT_CONFIG_FILE
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.cozy-gcontacts/ or $COZY_GCONTACTS_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.config_file = config_file

    def _get_config_path(self) -> Path:
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Dictionary containing configuration values, or empty dict if file
            doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self._get_config_path())

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Returns an empty dict if the file doesn't exist, allowing
        graceful operation with CLI defaults.

        Args:
            path: Path to the configuration file

        Returns:
            Dictionary containing configuration values

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path)

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)

            if config is None:
                logger.debug(f"Configuration file is empty: {path}")
                return {}

            if not isinstance(config, dict):
                raise ConfigError(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(config).__name__}"
                )

            logger.debug(f"Loaded configuration from {path}")
            return config

        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration structure and values.

        Unknown keys are ignored so newer config files keep working with
        older releases.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        valid_keys: dict[str, type[Any] | tuple[type[Any], ...]] = {
            # Sync options
            "source_account_id": str,
            "direction": str,
            "refresh_after_create": bool,
            "verbose": bool,
            # Cozy options
            "cozy_url": str,
            "cozy_token": str,
            "cozy_timeout": (int, float),
            # Google options
            "google_access_token": str,
            "google_refresh_token": str,
            "google_client_id": str,
            "google_client_secret": str,
            # YAML loads an unquoted ISO timestamp as a datetime
            "google_token_expiry": (str, datetime),
            # API options
            "api_page_size": int,
            "api_max_retries": int,
            "api_initial_retry_delay": (int, float),
            "api_max_retry_delay": (int, float),
            # Logging options
            "log_dir": str,
        }

        for key, value in config.items():
            if key not in valid_keys:
                continue
            expected_type = valid_keys[key]
            # bool is an int subclass; reject it for numeric keys
            is_bool_for_number = isinstance(value, bool) and expected_type is not bool
            if not isinstance(value, expected_type) or is_bool_for_number:
                if isinstance(expected_type, tuple):
                    type_name = " or ".join(t.__name__ for t in expected_type)
                else:
                    type_name = expected_type.__name__
                raise ConfigError(
                    f"Invalid type for '{key}': expected {type_name}, "
                    f"got {type(value).__name__}"
                )

        if "direction" in config and config["direction"] not in VALID_DIRECTIONS:
            raise ConfigError(
                f"Invalid direction '{config['direction']}'. "
                f"Must be one of: {', '.join(VALID_DIRECTIONS)}"
            )

        if "source_account_id" in config and not config["source_account_id"].strip():
            raise ConfigError("source_account_id cannot be empty")

        for key in ("api_page_size", "api_max_retries"):
            if key in config and config[key] < 1:
                raise ConfigError(f"{key} must be >= 1, got {config[key]}")

        for key in ("api_initial_retry_delay", "api_max_retry_delay", "cozy_timeout"):
            if key in config and config[key] <= 0:
                raise ConfigError(f"{key} must be > 0, got {config[key]}")

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration and validate it.

        Returns:
            Validated configuration dictionary

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:
            self.validate(config)
        return config


def merge_cli_overrides(
    config: dict[str, Any], overrides: dict[str, Any]
) -> dict[str, Any]:
    """
    Merge CLI option values over file configuration.

    ``None`` means "not given on the command line" and keeps the file value.

    Args:
        config: Configuration loaded from file
        overrides: Values collected from CLI options

    Returns:
        New merged dictionary; neither input is modified
    """
    merged = dict(config)
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged
