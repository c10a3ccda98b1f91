"""
Cozy stack client for the ``io.cozy.contacts`` doctype.

Talks to the cozy-stack data API over HTTP with a bearer token:
- ``GET  /data/io.cozy.contacts/_normal_docs`` pages through all contacts
- ``POST /data/io.cozy.contacts/`` creates a contact
- ``PUT  /data/io.cozy.contacts/<id>`` updates an existing contact
"""

import asyncio
import logging
from typing import Any, Optional

import requests
from requests.exceptions import RequestException

from cozy_gcontacts.sync.contact import CONTACTS_DOCTYPE, CozyContact

# Documents per page when listing
DEFAULT_LIST_LIMIT = 1000

# Timeout for HTTP requests (in seconds)
DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


class CozyAPIError(Exception):
    """Raised when a request to the Cozy stack fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CozyContactsClient:
    """
    Client for contacts stored in a Cozy instance.

    Attributes:
        base_url: URL of the Cozy instance (e.g. "https://alice.mycozy.cloud")
        timeout: Timeout for each HTTP request

    Usage:
        client = CozyContactsClient("https://alice.mycozy.cloud", token)

        contacts = await client.list_contacts()
        saved = await client.save(contact)
        print(saved.id, saved.rev)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    def _url(self, path: str = "") -> str:
        return f"{self.base_url}/data/{CONTACTS_DOCTYPE}/{path}"

    def _request(self, method: str, path: str = "", **kwargs: Any) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            CozyAPIError: On transport errors or non-2xx responses
        """
        url = self._url(path)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except RequestException as e:
            raise CozyAPIError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            raise CozyAPIError(
                f"{method} {url} failed with status {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise CozyAPIError(f"{method} {url} returned invalid JSON") from e

    def _list_all(self) -> list[CozyContact]:
        contacts: list[CozyContact] = []
        bookmark: Optional[str] = None

        while True:
            params: dict[str, Any] = {"limit": DEFAULT_LIST_LIMIT}
            if bookmark:
                params["bookmark"] = bookmark
            try:
                body = self._request("GET", "_normal_docs", params=params)
            except CozyAPIError as e:
                # The doctype database is created on first write
                if e.status_code == 404:
                    logger.debug(f"No {CONTACTS_DOCTYPE} database yet")
                    return contacts
                raise

            rows = body.get("rows", [])
            contacts.extend(CozyContact.from_doc(doc) for doc in rows)

            bookmark = body.get("bookmark")
            if not rows or not bookmark or len(rows) < DEFAULT_LIST_LIMIT:
                break

        logger.info(f"Listed {len(contacts)} Cozy contacts")
        return contacts

    async def list_contacts(self) -> list[CozyContact]:
        """
        List every contact of the instance.

        Raises:
            CozyAPIError: If the stack cannot be reached or answers an error
        """
        return await asyncio.to_thread(self._list_all)

    def _save(self, contact: CozyContact) -> CozyContact:
        doc = contact.to_doc()
        if contact.id:
            body = self._request("PUT", contact.id, json=doc)
        else:
            body = self._request("POST", json=doc)

        saved = CozyContact.from_doc(body.get("data") or doc)
        saved.id = body.get("id", saved.id)
        saved.rev = body.get("rev", saved.rev)
        logger.debug(f"Saved Cozy contact {saved.id} (rev {saved.rev})")
        return saved

    async def save(self, contact: CozyContact) -> CozyContact:
        """
        Create the contact if it has no id, update it otherwise.

        Args:
            contact: Contact to write; updates must carry the current rev

        Returns:
            The stored contact with id and rev assigned by the stack

        Raises:
            CozyAPIError: If the write is rejected
        """
        return await asyncio.to_thread(self._save, contact)

    def __repr__(self) -> str:
        return f"CozyContactsClient(base_url={self.base_url!r})"
