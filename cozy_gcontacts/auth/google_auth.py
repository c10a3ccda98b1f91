"""
OAuth2 credentials for the Google side of a sync run.

The Cozy stack hands the connector an access token, a refresh token and,
optionally, the access token's expiry. GoogleCredentials wraps them in a
google-auth Credentials object. With a known expiry, refresh_if_needed()
renews an expired token before the run starts. Without one the token is
taken as valid; the authorized HTTP transport of googleapiclient then
refreshes it on demand when Google answers 401. The object is owned by the
host bootstrap and passed to the Google client; the sync core never sees
it.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

# OAuth2 scope required for Google Contacts access
SCOPES = ["https://www.googleapis.com/auth/contacts"]

# Google's OAuth2 token endpoint
TOKEN_URI = "https://oauth2.googleapis.com/token"

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails or credentials are invalid."""

    pass


def parse_expiry(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Normalize a token expiry to the naive UTC datetime google-auth expects.

    Accepts an ISO 8601 string (a trailing ``Z`` is allowed) or a datetime,
    as PyYAML returns for unquoted timestamps. Naive values are taken as UTC.

    Raises:
        AuthenticationError: If the value is not a valid timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise AuthenticationError(f"Invalid Google token expiry: {e}") from e
    if not isinstance(value, datetime):
        raise AuthenticationError(
            f"Invalid Google token expiry type: {type(value).__name__}"
        )
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class GoogleCredentials:
    """
    Token holder for one Google account.

    Usage:
        creds = GoogleCredentials.from_config(config)
        creds.refresh_if_needed()
        client = GoogleContactsClient(creds.credentials)
    """

    def __init__(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        expiry: Union[str, datetime, None] = None,
    ):
        if not access_token:
            raise AuthenticationError("A Google access token is required")
        self.credentials = Credentials(
            token=access_token,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=SCOPES,
            expiry=parse_expiry(expiry),
        )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "GoogleCredentials":
        """
        Build credentials from the ``google_*`` configuration keys.

        Raises:
            AuthenticationError: If no access token is configured or the
                                 expiry is malformed
        """
        return cls(
            access_token=config.get("google_access_token", ""),
            refresh_token=config.get("google_refresh_token"),
            client_id=config.get("google_client_id"),
            client_secret=config.get("google_client_secret"),
            expiry=config.get("google_token_expiry"),
        )

    @property
    def can_refresh(self) -> bool:
        creds = self.credentials
        return bool(
            creds.refresh_token and creds.client_id and creds.client_secret
        )

    def refresh_if_needed(self) -> bool:
        """
        Refresh the access token if it is expired.

        Only a token with a known expiry can be seen as expired here; one
        without an expiry is left to the on-demand refresh of the transport.

        Returns:
            True if a refresh happened, False if the token was still usable

        Raises:
            AuthenticationError: If the token is expired and cannot be
                                 refreshed
        """
        if not self.credentials.expired:
            return False

        if not self.can_refresh:
            raise AuthenticationError(
                "Google access token expired and no refresh token is configured"
            )

        try:
            self.credentials.refresh(Request())
        except RefreshError as e:
            raise AuthenticationError(f"Failed to refresh Google token: {e}") from e

        logger.debug("Refreshed Google access token")
        return True
