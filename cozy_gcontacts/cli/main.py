"""
Command-line interface for cozy_gcontacts.

Usage:
    # Show help
    cozy-gcontacts --help

    # Run synchronization in both directions
    cozy-gcontacts sync

    # Only push Cozy contacts to Google
    cozy-gcontacts sync --direction cozy_to_google
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

from cozy_gcontacts import __version__
from cozy_gcontacts.api.cozy_api import CozyAPIError, CozyContactsClient
from cozy_gcontacts.api.people_api import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_PAGE_SIZE,
    GoogleContactsClient,
    PeopleAPIError,
)
from cozy_gcontacts.auth.google_auth import AuthenticationError, GoogleCredentials
from cozy_gcontacts.config.loader import (
    DEFAULT_CONFIG_FILE,
    VALID_DIRECTIONS,
    ConfigError,
    ConfigLoader,
    merge_cli_overrides,
    resolve_config_dir,
)
from cozy_gcontacts.sync.runner import ContactSyncRunner, SyncDirection
from cozy_gcontacts.utils.logging import set_log_account, setup_logging

# Keys that must be set (file or CLI) before a sync can run
REQUIRED_SYNC_KEYS = ("source_account_id", "cozy_url", "cozy_token")

logger = logging.getLogger(__name__)


def get_config_dir(config_dir: Optional[str]) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_dir: Path, config_file: Optional[str]) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / DEFAULT_CONFIG_FILE


def build_runner(config: dict[str, Any]) -> ContactSyncRunner:
    """
    Build the clients and the runner from a merged configuration.

    Raises:
        ConfigError: If a required key is missing
        AuthenticationError: If Google credentials are unusable
    """
    missing = [key for key in REQUIRED_SYNC_KEYS if not config.get(key)]
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    credentials = GoogleCredentials.from_config(config)
    credentials.refresh_if_needed()

    google_client = GoogleContactsClient(
        credentials.credentials,
        page_size=config.get("api_page_size", DEFAULT_PAGE_SIZE),
        max_retries=config.get("api_max_retries", DEFAULT_MAX_RETRIES),
        initial_retry_delay=config.get(
            "api_initial_retry_delay", DEFAULT_INITIAL_RETRY_DELAY
        ),
        max_retry_delay=config.get("api_max_retry_delay", DEFAULT_MAX_RETRY_DELAY),
    )
    cozy_kwargs = {}
    if "cozy_timeout" in config:
        cozy_kwargs["timeout"] = config["cozy_timeout"]
    cozy_client = CozyContactsClient(
        config["cozy_url"], config["cozy_token"], **cozy_kwargs
    )

    return ContactSyncRunner(
        cozy_client,
        google_client,
        config["source_account_id"],
        refresh_after_create=config.get("refresh_after_create", False),
    )


@click.group()
@click.version_option(version=__version__, prog_name="cozy-gcontacts")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="COZY_GCONTACTS_CONFIG_DIR",
    help="Configuration directory path (default: ~/.cozy-gcontacts).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="COZY_GCONTACTS_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: Optional[str],
    config_file: Optional[str],
) -> None:
    """
    Cozy <-> Google Contacts Sync.

    Creates the contacts missing on either side so that a Cozy instance and
    a Google account hold the same contacts.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(resolved_config_dir, config_file)
    ctx.obj["config_dir"] = resolved_config_dir

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # Keep going: every sync setting can also come from the command line
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    if config.get("log_dir"):
        log_dir = Path(config["log_dir"]).expanduser()
    else:
        log_dir = resolved_config_dir / "logs"
    setup_logging(
        verbose=effective_verbose,
        log_dir=log_dir,
        source_account_id=config.get("source_account_id"),
    )


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--direction",
    "-d",
    type=click.Choice(VALID_DIRECTIONS, case_sensitive=False),
    default=None,
    help="Which way to sync (default: both).",
)
@click.option(
    "--account-id",
    "-a",
    default=None,
    help="Source account id the sync metadata is keyed by.",
)
@click.option(
    "--refresh-after-create",
    is_flag=True,
    default=None,
    help="Let later contacts match records created earlier in the same run.",
)
@click.pass_context
def sync_command(
    ctx: click.Context,
    direction: Optional[str],
    account_id: Optional[str],
    refresh_after_create: Optional[bool],
) -> None:
    """
    Synchronize contacts between Cozy and Google.

    Contacts of the source store that have no counterpart recorded for the
    account are created in the destination store. Contacts already linked
    are left untouched.

    Examples:

        # Both directions, Google -> Cozy first
        cozy-gcontacts sync

        # Only pull Google contacts into Cozy
        cozy-gcontacts sync --direction google_to_cozy
    """
    config = merge_cli_overrides(
        ctx.obj.get("config", {}),
        {
            "direction": direction,
            "source_account_id": account_id,
            "refresh_after_create": refresh_after_create or None,
        },
    )
    sync_direction = SyncDirection(config.get("direction", SyncDirection.BOTH.value))
    set_log_account(config.get("source_account_id"))

    try:
        runner = build_runner(config)
        report = asyncio.run(runner.run(sync_direction))
    except (
        ConfigError,
        AuthenticationError,
        PeopleAPIError,
        CozyAPIError,
    ) as e:
        logger.debug("Sync failed", exc_info=True)
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(report.summary())


# =============================================================================
# Health Command
# =============================================================================


@cli.command("health")
def health_command() -> None:
    """
    Check application health status.

    Example:

        cozy-gcontacts health
    """
    click.echo("healthy")
