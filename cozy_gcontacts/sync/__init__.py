"""
cozy_gcontacts.sync - Synchronization core

Contact models, matching, directional strategies and the orchestrator.
"""

from cozy_gcontacts.sync.contact import (
    ContactName,
    CozyContact,
    CozyMetadata,
    GooglePerson,
    SyncEntry,
)
from cozy_gcontacts.sync.engine import SyncStats, summarize, synchronize_contacts
from cozy_gcontacts.sync.matcher import find_match, sync_key
from cozy_gcontacts.sync.strategy import (
    CozyToGoogleStrategy,
    GoogleToCozyStrategy,
    SyncOutcome,
    SyncStrategy,
    get_cozy_to_google_strategy,
    get_google_to_cozy_strategy,
)

__all__ = [
    "ContactName",
    "CozyContact",
    "CozyMetadata",
    "CozyToGoogleStrategy",
    "GooglePerson",
    "GoogleToCozyStrategy",
    "SyncEntry",
    "SyncOutcome",
    "SyncStats",
    "SyncStrategy",
    "find_match",
    "get_cozy_to_google_strategy",
    "get_google_to_cozy_strategy",
    "summarize",
    "sync_key",
    "synchronize_contacts",
]
