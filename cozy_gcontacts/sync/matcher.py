"""
Cross-store contact matching by source-scoped remote identifier.

A Cozy contact and a Google person are the same contact when the Cozy
contact's sync entry for the source account records the person's resource
name. Matching never looks at names, emails or phones: an item without a
sync entry for the scoped account is simply unmatched.
"""

from collections import defaultdict
from collections.abc import Iterable
from typing import Optional, TypeVar, Union

from cozy_gcontacts.sync.contact import CozyContact, GooglePerson

SyncItem = Union[CozyContact, GooglePerson]
T = TypeVar("T", CozyContact, GooglePerson)


def sync_key(item: SyncItem, source_account_id: str) -> Optional[str]:
    """
    Return the join key of an item under a source-account scope.

    Args:
        item: A Cozy contact or a Google person
        source_account_id: Identifier of the source account the run is
                           scoped to

    Returns:
        For a Cozy contact, the remote id recorded for the account (None if
        never synced with it). For a Google person, its resource name (None
        if empty).
    """
    if isinstance(item, GooglePerson):
        return item.resource_name or None

    entry = item.sync_entry(source_account_id)
    if entry is None or not entry.id:
        return None
    return entry.id


def find_match(
    contact: SyncItem, candidates: Iterable[T], source_account_id: str
) -> Optional[T]:
    """
    Find the counterpart of ``contact`` among ``candidates``.

    Identifiers are expected to be unique. If several candidates share the
    key, the first one in iteration order wins.

    Args:
        contact: Item from the source store
        candidates: Items from the destination store
        source_account_id: Account the run is scoped to

    Returns:
        The first candidate whose join key equals the contact's, or None if
        the contact is unmatched or nothing matches
    """
    key = sync_key(contact, source_account_id)
    if key is None:
        return None

    for candidate in candidates:
        if sync_key(candidate, source_account_id) == key:
            return candidate
    return None


def find_duplicate_keys(
    candidates: Iterable[SyncItem], source_account_id: str
) -> dict[str, int]:
    """
    Report join keys held by more than one candidate.

    Returns:
        Mapping of duplicated key to the number of candidates holding it
    """
    counts: dict[str, int] = defaultdict(int)
    for candidate in candidates:
        key = sync_key(candidate, source_account_id)
        if key is not None:
            counts[key] += 1
    return {key: count for key, count in counts.items() if count > 1}
