"""
Host bootstrap for a synchronization run.

Loads both contact lists, picks the strategy for each requested direction
and runs the orchestrator once per direction. Credentials, retries and
client construction stay here and in the CLI, outside the sync core.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from cozy_gcontacts.sync.engine import summarize, synchronize_contacts
from cozy_gcontacts.sync.strategy import (
    Clock,
    SyncOutcome,
    get_cozy_to_google_strategy,
    get_google_to_cozy_strategy,
    utc_now,
)

if TYPE_CHECKING:
    from cozy_gcontacts.api.cozy_api import CozyContactsClient
    from cozy_gcontacts.api.people_api import GoogleContactsClient

logger = logging.getLogger(__name__)


class SyncDirection(str, Enum):
    """Which way contacts flow during a run."""

    COZY_TO_GOOGLE = "cozy_to_google"
    GOOGLE_TO_COZY = "google_to_cozy"
    BOTH = "both"


@dataclass
class SyncReport:
    """Outcomes of every direction run, in execution order."""

    source_account_id: str
    outcomes: dict[SyncDirection, list[Optional[SyncOutcome]]] = field(
        default_factory=dict
    )

    @property
    def total_created(self) -> int:
        return sum(summarize(o).created for o in self.outcomes.values())

    def summary(self) -> str:
        lines = [f"Sync Summary (account {self.source_account_id}):"]
        if not self.outcomes:
            lines.append("  Nothing to do")
        for direction, outcomes in self.outcomes.items():
            stats = summarize(outcomes)
            label = direction.value.replace("_", " ")
            lines.append(
                f"  {label}: {stats.total} processed, {stats.created} created, "
                f"{stats.skipped} already in sync"
            )
        return "\n".join(lines)


class ContactSyncRunner:
    """
    Runs one or both sync directions for a single source account.

    Usage:
        runner = ContactSyncRunner(cozy_client, google_client, account_id)
        report = await runner.run(SyncDirection.BOTH)
        print(report.summary())
    """

    def __init__(
        self,
        cozy_client: CozyContactsClient,
        google_client: GoogleContactsClient,
        source_account_id: str,
        refresh_after_create: bool = False,
        clock: Clock = utc_now,
    ):
        self.cozy_client = cozy_client
        self.google_client = google_client
        self.source_account_id = source_account_id
        self.refresh_after_create = refresh_after_create
        self.clock = clock

    async def run(self, direction: SyncDirection = SyncDirection.BOTH) -> SyncReport:
        """
        Synchronize contacts in the requested direction(s).

        With BOTH, Google -> Cozy runs first. The Cozy list is reloaded
        before Cozy -> Google if the first pass created contacts, so that
        they are seen with their sync entries.

        Raises:
            Any store error, unchanged; directions not yet run are skipped
        """
        direction = SyncDirection(direction)
        report = SyncReport(source_account_id=self.source_account_id)

        google_people = await self.google_client.list_contacts()
        cozy_contacts = await self.cozy_client.list_contacts()
        logger.info(
            f"Loaded {len(cozy_contacts)} Cozy contacts and "
            f"{len(google_people)} Google contacts"
        )

        if direction in (SyncDirection.GOOGLE_TO_COZY, SyncDirection.BOTH):
            strategy = get_google_to_cozy_strategy(
                self.cozy_client, self.source_account_id, clock=self.clock
            )
            outcomes = await synchronize_contacts(
                google_people,
                cozy_contacts,
                strategy,
                refresh_after_create=self.refresh_after_create,
            )
            report.outcomes[SyncDirection.GOOGLE_TO_COZY] = outcomes

            if direction == SyncDirection.BOTH and any(outcomes):
                cozy_contacts = await self.cozy_client.list_contacts()

        if direction in (SyncDirection.COZY_TO_GOOGLE, SyncDirection.BOTH):
            strategy = get_cozy_to_google_strategy(
                self.cozy_client,
                self.google_client,
                self.source_account_id,
                clock=self.clock,
            )
            report.outcomes[SyncDirection.COZY_TO_GOOGLE] = await synchronize_contacts(
                cozy_contacts,
                google_people,
                strategy,
                refresh_after_create=self.refresh_after_create,
            )

        return report
