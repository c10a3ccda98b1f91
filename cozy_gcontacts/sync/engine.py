"""
Synchronization orchestrator.

Applies a strategy to every item of a source contact list, one item at a
time, and returns one outcome per item in source order:

    outcomes = await synchronize_contacts(cozy_contacts, google_people, strategy)
    # [None, SyncOutcome(created=True, id="..."), ...]

The first store failure aborts the run and is re-raised unchanged; no
partial outcome list is returned in that case.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from cozy_gcontacts.sync.matcher import find_duplicate_keys
from cozy_gcontacts.sync.strategy import SyncOutcome, SyncStrategy

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Counts of outcomes from one synchronization run."""

    total: int = 0
    created: int = 0
    skipped: int = 0

    def summary(self, label: str = "Sync") -> str:
        return (
            f"{label}: {self.total} contacts processed, "
            f"{self.created} created, {self.skipped} already in sync"
        )


def summarize(outcomes: Sequence[Optional[SyncOutcome]]) -> SyncStats:
    """Count created and skipped items in an outcome list."""
    created = sum(1 for outcome in outcomes if outcome is not None)
    return SyncStats(
        total=len(outcomes), created=created, skipped=len(outcomes) - created
    )


async def synchronize_contacts(
    source_list: Sequence[Any],
    destination_list: Sequence[Any],
    strategy: SyncStrategy,
    refresh_after_create: bool = False,
) -> list[Optional[SyncOutcome]]:
    """
    Run ``strategy`` over every item of ``source_list``.

    Items are processed sequentially in list order; each decision is
    awaited before the next one starts, so destination writes happen one at
    a time and in a deterministic order.

    Args:
        source_list: Items from the source store
        destination_list: Snapshot of the destination store. Never modified.
        strategy: Strategy bound to the run's source account
        refresh_after_create: If True, each created destination record is
            added to a private copy of the snapshot so that later items can
            match it. By default the snapshot stays as given for the whole
            run.

    Returns:
        One outcome per source item, at the same position: None when the
        item already had a counterpart, a SyncOutcome when it was created

    Raises:
        The first exception raised by the strategy, unchanged
    """
    if not source_list:
        logger.debug("No contacts to synchronize")
        return []

    duplicates = find_duplicate_keys(destination_list, strategy.source_account_id)
    for key, count in duplicates.items():
        logger.warning(
            f"Remote id {key} is held by {count} destination contacts; "
            "the first one will be used"
        )

    refreshed: list[Any] = list(destination_list) if refresh_after_create else []
    destination = refreshed if refresh_after_create else destination_list

    outcomes: list[Optional[SyncOutcome]] = []
    for index, item in enumerate(source_list):
        outcome = await strategy.decide(item, destination)
        if refresh_after_create and outcome is not None and outcome.record is not None:
            refreshed.append(outcome.record)
        logger.debug(f"Item {index}: {'created' if outcome else 'skipped'}")
        outcomes.append(outcome)

    stats = summarize(outcomes)
    logger.info(stats.summary(label=strategy.direction or "sync"))
    return outcomes
