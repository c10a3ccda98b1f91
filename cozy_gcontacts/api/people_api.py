"""
Google People API client for contact synchronization.

Provides the Google side of a sync run:
- Listing all connections of the authenticated user with pagination
- Creating contacts
- Exponential backoff retry logic for rate limits and server errors

The googleapiclient transport is blocking; public methods are coroutines
that run it in a worker thread so the event loop stays free.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from cozy_gcontacts.sync.contact import GooglePerson

# Person fields to request from the API.
# braggingRights, relationshipInterests, relationshipStatuses, residences and
# taglines are deprecated by the People API and return no data, so they are
# not requested. calendarUrls, sipAddresses and userDefined are contact
# fields a Cozy user may have set in Google.
# See https://developers.google.com/people/api/rest/v1/people.connections/list
PERSON_FIELDS = ",".join(
    [
        "addresses",
        "ageRanges",
        "biographies",
        "birthdays",
        "calendarUrls",
        "coverPhotos",
        "emailAddresses",
        "events",
        "genders",
        "imClients",
        "interests",
        "locales",
        "memberships",
        "metadata",
        "names",
        "nicknames",
        "occupations",
        "organizations",
        "phoneNumbers",
        "photos",
        "relations",
        "sipAddresses",
        "skills",
        "urls",
        "userDefined",
    ]
)

# Maximum number of contacts per page when listing
DEFAULT_PAGE_SIZE = 100

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_RETRY_DELAY = 1.0  # seconds
DEFAULT_MAX_RETRY_DELAY = 60.0  # seconds

logger = logging.getLogger(__name__)


class PeopleAPIError(Exception):
    """Raised when a People API operation fails."""

    pass


class RateLimitError(PeopleAPIError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


class GoogleContactsClient:
    """
    Google People API client for contact operations.

    Attributes:
        credentials: Google OAuth2 credentials
        service: Google API service object

    Usage:
        client = GoogleContactsClient(credentials)

        people = await client.list_contacts()
        created = await client.create_contact(transpiler.to_google(contact))
    """

    def __init__(
        self,
        credentials: Credentials,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
    ):
        """
        Initialize the People API client.

        Args:
            credentials: Valid Google OAuth2 credentials with contacts scope
            page_size: Number of contacts per page when listing (default 100)
            max_retries: Maximum attempts for failed API calls (default 5)
            initial_retry_delay: Initial backoff delay in seconds (default 1.0)
            max_retry_delay: Maximum backoff delay in seconds (default 60.0)
        """
        self.credentials = credentials
        self.page_size = max(1, min(page_size, 1000))  # API max is 1000
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self._service = None

    @property
    def service(self) -> Any:
        """
        Get or create the Google API service object.

        Raises:
            PeopleAPIError: If service cannot be created
        """
        if self._service is None:
            try:
                self._service = build(
                    "people", "v1", credentials=self.credentials, cache_discovery=False
                )
                logger.debug("Created People API service")
            except Exception as e:
                logger.error(f"Failed to create People API service: {e}")
                raise PeopleAPIError(f"Failed to create API service: {e}") from e
        return self._service

    def _retry_with_backoff(
        self, operation: Callable[[], Any], operation_name: str
    ) -> Any:
        """
        Execute an operation with exponential backoff retry.

        Args:
            operation: Callable to execute
            operation_name: Name for logging purposes

        Returns:
            Result of the operation

        Raises:
            RateLimitError: If retries are exhausted due to rate limits
            PeopleAPIError: For other API errors
        """
        delay = self.initial_retry_delay

        for attempt in range(self.max_retries):
            try:
                return operation()

            except HttpError as e:
                status_code = e.resp.status
                last_attempt = attempt >= self.max_retries - 1

                # Rate limit or quota exceeded
                if status_code in (429, 403):
                    if last_attempt:
                        raise RateLimitError(
                            f"Rate limit exceeded for {operation_name} "
                            f"after {self.max_retries} retries"
                        ) from e
                    logger.warning(
                        f"{operation_name} rate limited, retrying in "
                        f"{delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, self.max_retry_delay)
                    continue

                if status_code >= 500 and not last_attempt:
                    logger.warning(
                        f"{operation_name} server error ({status_code}), "
                        f"retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, self.max_retry_delay)
                    continue

                logger.error(f"{operation_name} failed with status {status_code}: {e}")
                raise PeopleAPIError(f"{operation_name} failed: {e}") from e

        raise PeopleAPIError(f"{operation_name} failed after all retries")

    def _list_all(self) -> list[GooglePerson]:
        people: list[GooglePerson] = []
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "resourceName": "people/me",
                "personFields": PERSON_FIELDS,
                "pageSize": self.page_size,
            }
            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                return self.service.people().connections().list(**p).execute()

            response = self._retry_with_backoff(execute_list, "list_contacts")

            for person in response.get("connections", []):
                if not person.get("resourceName"):
                    logger.warning("Skipping connection without resourceName")
                    continue
                people.append(GooglePerson.from_api_response(person))

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(people)} Google contacts")
        return people

    async def list_contacts(self) -> list[GooglePerson]:
        """
        List all contacts of the authenticated user, following every page.

        Raises:
            PeopleAPIError: If listing fails
            RateLimitError: If rate limit exceeded
        """
        logger.debug("Listing Google contacts")
        return await asyncio.to_thread(self._list_all)

    def _create(self, body: dict[str, Any]) -> GooglePerson:
        def execute_create() -> Any:
            return (
                self.service.people()
                .createContact(body=body, personFields=PERSON_FIELDS)
                .execute()
            )

        response = self._retry_with_backoff(execute_create, "create_contact")
        person = GooglePerson.from_api_response(response)
        logger.info(f"Created Google contact: {person.resource_name}")
        return person

    async def create_contact(self, body: dict[str, Any]) -> GooglePerson:
        """
        Create a new contact.

        Args:
            body: People API ``Person`` body (see transpiler.to_google)

        Returns:
            Created person with resource_name and etag populated

        Raises:
            PeopleAPIError: If creation fails
        """
        return await asyncio.to_thread(self._create, body)

    def __repr__(self) -> str:
        return f"GoogleContactsClient(page_size={self.page_size})"
