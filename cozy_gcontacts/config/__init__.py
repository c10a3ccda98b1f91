"""
cozy_gcontacts.config - Configuration management module

Contains configuration directory resolution, loading, validation, and CLI
override merging.
"""

from cozy_gcontacts.config.loader import (
    CONFIG_DIR_ENV_VAR,
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONFIG_FILE,
    VALID_DIRECTIONS,
    ConfigError,
    ConfigLoader,
    merge_cli_overrides,
    resolve_config_dir,
)

__all__ = [
    "CONFIG_DIR_ENV_VAR",
    "ConfigLoader",
    "ConfigError",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "VALID_DIRECTIONS",
    "merge_cli_overrides",
    "resolve_config_dir",
]
