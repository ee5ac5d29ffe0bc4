"""Google OAuth and service account authentication for the Sheets API."""

from sheets_utils.google.exceptions import (
    AuthExchangeError,
    ConfigurationError,
    CredentialsNotFoundError,
    GoogleAuthError,
    ScopeMismatchError,
    TokenError,
)
from sheets_utils.google.oauth import GoogleOAuth
from sheets_utils.google.service_account import GoogleServiceAccount
from sheets_utils.google.token_store import TokenStore

__all__ = [
    "GoogleOAuth",
    "GoogleServiceAccount",
    "TokenStore",
    "GoogleAuthError",
    "ConfigurationError",
    "CredentialsNotFoundError",
    "TokenError",
    "ScopeMismatchError",
    "AuthExchangeError",
]
