"""CLI package for cozy_gcontacts."""

from cozy_gcontacts.cli.main import (
    REQUIRED_SYNC_KEYS,
    build_runner,
    cli,
    get_config_dir,
    get_config_file,
)

__all__ = [
    "REQUIRED_SYNC_KEYS",
    "build_runner",
    "cli",
    "get_config_dir",
    "get_config_file",
]
