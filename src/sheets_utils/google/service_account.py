"""Google Service Account authentication.

Service accounts are used for server-to-server authentication without user interaction.
The service account acts as its own identity and can open spreadsheets that
have been shared with the service account email.

Example:
    >>> auth = GoogleServiceAccount(key_path="service_account_key.json")
    >>> sheets_service = auth.build_service("sheets", "v4")
"""

import json
import logging
from pathlib import Path

from google.oauth2 import service_account
from googleapiclient.discovery import build

from sheets_utils.config import GOOGLE_SERVICE_ACCOUNT
from sheets_utils.google.exceptions import ConfigurationError, CredentialsNotFoundError
from sheets_utils.google.oauth import DEFAULT_SCOPES, resolve_scopes

logger = logging.getLogger(__name__)


class GoogleServiceAccount:
    """Google Service Account authentication.

    Uses a service account key file for server-to-server authentication.
    No user interaction required.

    Note: The spreadsheet must be shared with the service account email
    address before it can be read or written.
    """

    def __init__(
        self,
        key_path: str | Path | None = None,
        scopes: list[str] | None = None,
    ):
        """Initialize service account authentication.

        Args:
            key_path: Path to service account JSON key file.
                Defaults to google/service_account_key.json.
            scopes: List of scope names (e.g., ["sheets"]) or full URLs.
                   If None, defaults to ["sheets"].

        Raises:
            CredentialsNotFoundError: If key file not found.
            ConfigurationError: If key file is invalid.
        """
        self.key_path = Path(key_path) if key_path else GOOGLE_SERVICE_ACCOUNT

        if not self.key_path.exists():
            raise CredentialsNotFoundError(str(self.key_path))

        self.scopes = resolve_scopes(scopes or DEFAULT_SCOPES)

        # Load and validate the key file
        try:
            with open(self.key_path) as f:
                key_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in key file: {e}") from e

        if not isinstance(key_data, dict) or key_data.get("type") != "service_account":
            got = key_data.get("type") if isinstance(key_data, dict) else None
            raise ConfigurationError(
                f"Invalid key file: expected type 'service_account', got '{got}'"
            )

        self.client_email = key_data.get("client_email", "")
        self.project_id = key_data.get("project_id", "")

        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                key_data,
                scopes=self.scopes,
            )
        except (ValueError, KeyError) as e:
            raise ConfigurationError(f"Invalid service account key: {e}") from e

        logger.info(f"Service account initialized: {self.client_email}")
        logger.info(f"Scopes: {self.scopes}")

    @property
    def credentials(self):
        """Get the service account credentials."""
        return self._credentials

    @property
    def email(self) -> str:
        """Get the service account email address.

        Share your spreadsheets with this email to grant access.
        """
        return self.client_email

    def build_service(self, service_name: str = "sheets", version: str = "v4"):
        """Build a Google API service with service account credentials.

        Args:
            service_name: Name of the service (e.g., 'sheets', 'drive').
            version: API version (e.g., 'v4').

        Returns:
            Google API service object.
        """
        return build(service_name, version, credentials=self._credentials)

    def get_info(self) -> dict:
        """Get information about the service account.

        Returns:
            Dictionary with service account details.
        """
        return {
            "type": "service_account",
            "email": self.client_email,
            "project_id": self.project_id,
            "scopes": self.scopes,
            "key_path": str(self.key_path),
        }
