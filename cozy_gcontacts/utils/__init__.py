"""
cozy_gcontacts.utils - Utility module

Logging setup shared by the CLI and the sync modules.
"""

from cozy_gcontacts.utils.logging import (
    LOGGER_NAME,
    set_log_account,
    setup_logging,
)

__all__ = ["LOGGER_NAME", "set_log_account", "setup_logging"]
