"""cozy_gcontacts.auth - Google OAuth2 credentials."""

from cozy_gcontacts.auth.google_auth import AuthenticationError, GoogleCredentials

__all__ = ["AuthenticationError", "GoogleCredentials"]
