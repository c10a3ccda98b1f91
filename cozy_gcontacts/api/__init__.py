"""
cozy_gcontacts.api - Store clients

Clients for the two contact stores: the Google People API and the Cozy
stack data API.
"""

from cozy_gcontacts.api.cozy_api import CozyAPIError, CozyContactsClient
from cozy_gcontacts.api.people_api import (
    GoogleContactsClient,
    PeopleAPIError,
    RateLimitError,
)

__all__ = [
    "CozyAPIError",
    "CozyContactsClient",
    "GoogleContactsClient",
    "PeopleAPIError",
    "RateLimitError",
]
