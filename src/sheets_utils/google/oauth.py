"""Google OAuth management using Authlib.

This module provides OAuth 2.0 authentication for the Google Sheets API with:
- Cached token loading and saving (see ``token_store``)
- Interactive consent flow: print a URL, read back the authorization code
- Google API service creation

Credentials are stored centrally by default:
    google/credentials.json - OAuth client credentials
    google/token.json       - OAuth tokens
"""

import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TextIO

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from sheets_utils.config import GOOGLE_CREDENTIALS, GOOGLE_TOKEN
from sheets_utils.google.exceptions import (
    AuthExchangeError,
    ConfigurationError,
    CredentialsNotFoundError,
    ScopeMismatchError,
    TokenError,
)
from sheets_utils.google.token_store import TokenStore

logger = logging.getLogger(__name__)


# Google OAuth scopes relevant to spreadsheets
SCOPES = {
    "sheets": "https://www.googleapis.com/auth/spreadsheets",
    "sheets_readonly": "https://www.googleapis.com/auth/spreadsheets.readonly",
    "drive": "https://www.googleapis.com/auth/drive",
    "drive_readonly": "https://www.googleapis.com/auth/drive.readonly",
    "drive_file": "https://www.googleapis.com/auth/drive.file",
}

DEFAULT_SCOPES = ["sheets"]


def resolve_scopes(scopes: list[str]) -> list[str]:
    """Resolve scope names to full URLs."""
    resolved = []
    for scope in scopes:
        if scope.startswith("https://"):
            resolved.append(scope)
        elif scope in SCOPES:
            resolved.append(SCOPES[scope])
        else:
            raise ValueError(
                f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
            )
    return resolved


class GoogleOAuth:
    """Google OAuth management using Authlib.

    Handles the installed-app authorization flow, token caching, and
    Google API service creation.

    Example:
        >>> auth = GoogleOAuth(scopes=["sheets"])
        >>> if not auth.is_authorized():
        ...     auth.authorize_interactive()
        >>> sheets_service = auth.build_service("sheets", "v4")
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    REVOKE_URL = "https://oauth2.googleapis.com/revoke"
    DEFAULT_REDIRECT_URI = "http://localhost"

    # Fixed state value; the code is pasted back by hand, not via a callback
    STATE = "state-token"

    def __init__(
        self,
        scopes: list[str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_path: str | Path | None = None,
        credentials_path: str | Path | None = None,
    ):
        """Initialize Google OAuth.

        Args:
            scopes: List of scope names (e.g., ["sheets"]) or full URLs.
                   If None, defaults to ["sheets"].
            client_id: OAuth client ID (loaded from credentials file if not provided).
            client_secret: OAuth client secret (loaded from credentials file if not provided).
            token_path: Path to store/load tokens. Defaults to google/token.json.
            credentials_path: Path to OAuth credentials file. Defaults to google/credentials.json.

        Raises:
            CredentialsNotFoundError: If the credentials file does not exist.
            ConfigurationError: If the credentials file is malformed.
        """
        self.token_path = Path(token_path) if token_path else GOOGLE_TOKEN
        self.credentials_path = Path(credentials_path) if credentials_path else GOOGLE_CREDENTIALS
        self.token_store = TokenStore(self.token_path)

        self.required_scopes = resolve_scopes(scopes or DEFAULT_SCOPES)

        redirect_uri = self.DEFAULT_REDIRECT_URI
        if not client_id or not client_secret:
            client_id, client_secret, redirect_uri = self._load_client_credentials()

        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=self.redirect_uri,
            token=self._load_token(),
            update_token=self._save_token,
            token_endpoint=self.TOKEN_URL,
            token_endpoint_auth_method="client_secret_post",
        )

    def _load_client_credentials(self) -> tuple[str, str, str]:
        """Load OAuth client credentials from file."""
        if not self.credentials_path.exists():
            raise CredentialsNotFoundError(str(self.credentials_path))

        try:
            with open(self.credentials_path) as f:
                creds = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in credentials file: {e}") from e

        if not isinstance(creds, dict):
            raise ConfigurationError("Invalid credentials.json format. Expected a JSON object.")

        # Handle both web and installed app credential formats
        if "installed" in creds:
            app_creds = creds["installed"]
        elif "web" in creds:
            app_creds = creds["web"]
        else:
            raise ConfigurationError(
                "Invalid credentials.json format. Expected 'installed' or 'web' key."
            )

        try:
            client_id = app_creds["client_id"]
            client_secret = app_creds["client_secret"]
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"credentials.json is missing {e}") from e

        redirect_uris = app_creds.get("redirect_uris") or [self.DEFAULT_REDIRECT_URI]
        return client_id, client_secret, redirect_uris[0]

    def _load_token(self) -> dict[str, Any] | None:
        """Load token from storage, dropping it if it lacks required scopes."""
        token = self.token_store.load()
        if token is None:
            return None

        if "scope" in token:
            current_scopes = set(token["scope"].split())
            required_scopes = set(self.required_scopes)

            if not required_scopes.issubset(current_scopes):
                missing = required_scopes - current_scopes
                logger.warning(f"Token missing required scopes: {missing}")
                return None

        logger.info(f"Loaded token from {self.token_path}")
        return token

    def _save_token(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Save token to storage (also the Authlib refresh callback)."""
        if access_token:
            token["access_token"] = access_token
        if refresh_token:
            token["refresh_token"] = refresh_token

        # A response without scope means the requested scopes were granted
        if not token.get("scope"):
            token["scope"] = " ".join(self.required_scopes)

        token_scopes = set(token["scope"].split())
        required_scopes = set(self.required_scopes)

        if not required_scopes.issubset(token_scopes):
            missing = required_scopes - token_scopes
            raise ScopeMismatchError(missing)

        try:
            self.token_store.save(
                token,
                client_id=self.client_id,
                client_secret=self.client_secret,
                token_uri=self.TOKEN_URL,
            )
        except OSError as e:
            raise ConfigurationError(f"Unable to cache oauth token: {e}") from e

        logger.info(f"Token saved with scopes: {token_scopes}")

    def is_authorized(self) -> bool:
        """Check if we have a cached token with required scopes.

        Expiry is not checked; refresh happens in the HTTP transport.
        """
        if not self.session.token:
            return False

        scope = self.session.token.get("scope")
        if not scope:
            return True

        return set(self.required_scopes).issubset(set(scope.split()))

    def get_authorization_url(self) -> str:
        """Start OAuth authorization flow.

        Returns:
            Authorization URL for user to visit.
        """
        authorization_url, _ = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            state=self.STATE,
            access_type="offline",
            prompt="consent",
        )
        return authorization_url

    def fetch_token(self, authorization_code: str) -> dict[str, Any]:
        """Exchange an authorization code for a token and cache it.

        Args:
            authorization_code: The code shown after consent, or the full
                redirect URL carrying it.

        Returns:
            The fetched OAuth token dict.

        Raises:
            AuthExchangeError: If the token endpoint rejects the exchange.
            ScopeMismatchError: If the granted token lacks required scopes.
        """
        kwargs: dict[str, Any] = {}
        if authorization_code.startswith(("http://", "https://")):
            kwargs["authorization_response"] = authorization_code
        else:
            kwargs["code"] = authorization_code

        try:
            token = self.session.fetch_token(
                self.TOKEN_URL,
                grant_type="authorization_code",
                state=self.STATE,
                **kwargs,
            )
        except (AuthlibBaseError, requests.RequestException) as e:
            raise AuthExchangeError(f"Unable to retrieve token from web: {e}") from e

        self._save_token(token)
        self.session.token = token
        return token

    def authorize_interactive(
        self,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None,
    ) -> dict[str, Any]:
        """Run the consent flow on a terminal.

        Prints the consent URL, then blocks until the operator types the
        authorization code.

        Args:
            input_stream: Where the code is read from. Defaults to stdin.
            output_stream: Where the URL is printed. Defaults to stdout.

        Returns:
            The fetched OAuth token dict.

        Raises:
            AuthExchangeError: If no code can be read or the exchange fails.
        """
        input_stream = input_stream or sys.stdin
        output_stream = output_stream or sys.stdout

        url = self.get_authorization_url()
        print(
            "Go to the following link in your browser then type the "
            f"authorization code: \n{url}",
            file=output_stream,
            flush=True,
        )

        code = self._read_code(input_stream)
        return self.fetch_token(code)

    @staticmethod
    def _read_code(input_stream: TextIO) -> str:
        """Read the first whitespace-delimited word from the stream."""
        try:
            for line in iter(input_stream.readline, ""):
                words = line.split()
                if words:
                    return words[0]
        except (OSError, ValueError) as e:
            raise AuthExchangeError(f"Unable to read authorization code: {e}") from e
        raise AuthExchangeError("Unable to read authorization code: end of input")

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries.

        Returns:
            Google Credentials object with current token. google-auth
            refreshes it on use if it has expired and a refresh token exists.

        Raises:
            TokenError: If not authorized or missing required scopes.
        """
        if not self.is_authorized():
            raise TokenError("Not authorized or missing required scopes")

        token = self.session.token
        expiry = None
        expires_at = token.get("expires_at")
        if expires_at and expires_at > 0:
            # google-auth compares against naive UTC datetimes
            expiry = datetime.fromtimestamp(expires_at, tz=timezone.utc).replace(tzinfo=None)

        return GoogleCredentials(
            token=token["access_token"],
            refresh_token=token.get("refresh_token"),
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
            expiry=expiry,
        )

    def build_service(self, service_name: str = "sheets", version: str = "v4"):
        """Build a Google API service with current credentials.

        Args:
            service_name: Name of the service (e.g., 'sheets', 'drive').
            version: API version (e.g., 'v4').

        Returns:
            Google API service object.
        """
        creds = self.get_credentials()
        return build(service_name, version, credentials=creds)

    def revoke_token(self):
        """Revoke the current token and clear local storage."""
        if not self.session.token:
            logger.warning("No token to revoke")
            return

        try:
            self.session.post(
                self.REVOKE_URL,
                params={"token": self.session.token["access_token"]},
            )
        except requests.RequestException as e:
            logger.warning(f"Failed to revoke token remotely: {e}")

        self.token_store.delete()
        self.session.token = None

        logger.info("Token revoked successfully")

    def get_token_info(self) -> dict[str, Any]:
        """Get information about the current token.

        Returns:
            Dictionary with token status, scopes, expiry, etc.
        """
        if not self.session.token:
            return {"status": "no_token"}

        token = self.session.token
        expires_at = token.get("expires_at", 0)

        if expires_at:
            expires_in = expires_at - datetime.now().timestamp()
            expires_str = str(timedelta(seconds=max(0, expires_in)))
            is_expired = expires_at < datetime.now().timestamp()
        else:
            expires_str = "unknown"
            is_expired = False

        return {
            "status": "valid" if not is_expired else "expired",
            "scopes": (token.get("scope") or "").split(),
            "expires_in": expires_str,
            "has_refresh_token": bool(token.get("refresh_token")),
        }
