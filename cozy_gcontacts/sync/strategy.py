"""
Directional sync strategies.

A strategy decides, for one source contact, whether the destination store
already holds its counterpart (nothing to do) or whether a new contact must
be created there. Two variants exist:

- CozyToGoogleStrategy: source items are Cozy contacts, destination items
  are Google persons
- GoogleToCozyStrategy: source items are Google persons, destination items
  are Cozy contacts

Both are bound to a single source-account id for the whole run. Store
failures propagate unchanged; strategies never retry.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from cozy_gcontacts.sync import transpiler
from cozy_gcontacts.sync.contact import CozyContact, GooglePerson, SyncEntry
from cozy_gcontacts.sync.matcher import find_match

if TYPE_CHECKING:
    from cozy_gcontacts.api.cozy_api import CozyContactsClient
    from cozy_gcontacts.api.people_api import GoogleContactsClient

# Slug recorded in the sync entries written by this package
KONNECTOR_SLUG = "konnector-google"

logger = logging.getLogger(__name__)

S = TypeVar("S", CozyContact, GooglePerson)
D = TypeVar("D", CozyContact, GooglePerson)

Matcher = Callable[[Any, Sequence[Any], str], Optional[Any]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way Cozy stores ``lastSync`` (ms, Z suffix)."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class SyncOutcome:
    """
    What happened to one source item during a run.

    Attributes:
        created: Always True; "nothing done" is represented by None
        id: Identifier reported for the created record
        record: The new destination-side item, used to refresh the
                destination snapshot. Not part of equality.
    """

    created: bool
    id: str
    record: Any = field(default=None, compare=False, repr=False)


class SyncStrategy(ABC, Generic[S, D]):
    """
    Create-or-skip decision for one source item.

    Attributes:
        source_account_id: Account the strategy is scoped to
        matcher: Callable ``(item, candidates, account_id) -> match | None``
        clock: Returns the current time for ``lastSync`` stamps
    """

    direction: str = ""

    def __init__(
        self,
        source_account_id: str,
        matcher: Matcher = find_match,
        clock: Clock = utc_now,
    ):
        if not source_account_id:
            raise ValueError("source_account_id is required")
        self.source_account_id = source_account_id
        self.matcher = matcher
        self.clock = clock

    async def decide(
        self, source_item: S, destination_list: Sequence[D]
    ) -> Optional[SyncOutcome]:
        """
        Skip the item if it has a counterpart, create it otherwise.

        Args:
            source_item: Contact from the source store
            destination_list: Snapshot of the destination store

        Returns:
            None if a match exists, else the creation outcome

        Raises:
            Whatever the destination store raises, unchanged
        """
        match = self.matcher(source_item, destination_list, self.source_account_id)
        if match is not None:
            logger.debug(f"[{self.direction}] {source_item!r} already synced")
            return None

        outcome = await self.create(source_item)
        logger.debug(f"[{self.direction}] {source_item!r} created as {outcome.id}")
        return outcome

    @abstractmethod
    async def create(self, source_item: S) -> SyncOutcome:
        """Create the destination counterpart of an unmatched item."""

    def _sync_entry(self, person: GooglePerson) -> SyncEntry:
        return SyncEntry(
            id=person.resource_name,
            remote_rev=person.etag or None,
            last_sync=format_timestamp(self.clock()),
            konnector=KONNECTOR_SLUG,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"source_account_id={self.source_account_id!r})"
        )


class CozyToGoogleStrategy(SyncStrategy[CozyContact, GooglePerson]):
    """
    Push Cozy contacts to Google.

    An unmatched Cozy contact is created in Google, then the new resource
    name is recorded in the Cozy contact's sync metadata so the next run
    matches it. The outcome id is the Cozy contact id.
    """

    direction = "cozy_to_google"

    def __init__(
        self,
        cozy_client: CozyContactsClient,
        google_client: GoogleContactsClient,
        source_account_id: str,
        matcher: Matcher = find_match,
        clock: Clock = utc_now,
    ):
        super().__init__(source_account_id, matcher=matcher, clock=clock)
        self.cozy_client = cozy_client
        self.google_client = google_client

    async def create(self, source_item: CozyContact) -> SyncOutcome:
        person = await self.google_client.create_contact(
            transpiler.to_google(source_item)
        )
        updated = source_item.with_sync_entry(
            self.source_account_id, self._sync_entry(person)
        )
        saved = await self.cozy_client.save(updated)
        return SyncOutcome(created=True, id=saved.id, record=person)


class GoogleToCozyStrategy(SyncStrategy[GooglePerson, CozyContact]):
    """
    Pull Google persons into Cozy.

    An unmatched person is transpiled and saved as a new Cozy contact
    carrying the sync entry for the account. The outcome id is the id the
    Cozy store assigned.
    """

    direction = "google_to_cozy"

    def __init__(
        self,
        cozy_client: CozyContactsClient,
        source_account_id: str,
        matcher: Matcher = find_match,
        clock: Clock = utc_now,
    ):
        super().__init__(source_account_id, matcher=matcher, clock=clock)
        self.cozy_client = cozy_client

    async def create(self, source_item: GooglePerson) -> SyncOutcome:
        contact = transpiler.to_cozy(source_item).with_sync_entry(
            self.source_account_id, self._sync_entry(source_item)
        )
        saved = await self.cozy_client.save(contact)
        return SyncOutcome(created=True, id=saved.id, record=saved)


def get_cozy_to_google_strategy(
    cozy_client: CozyContactsClient,
    google_client: GoogleContactsClient,
    source_account_id: str,
    clock: Clock = utc_now,
) -> CozyToGoogleStrategy:
    """Build the Cozy -> Google strategy for one run."""
    return CozyToGoogleStrategy(
        cozy_client, google_client, source_account_id, clock=clock
    )


def get_google_to_cozy_strategy(
    cozy_client: CozyContactsClient,
    source_account_id: str,
    clock: Clock = utc_now,
) -> GoogleToCozyStrategy:
    """Build the Google -> Cozy strategy for one run."""
    return GoogleToCozyStrategy(cozy_client, source_account_id, clock=clock)
