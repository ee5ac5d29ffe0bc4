"""On-disk cache for OAuth tokens.

Tokens are written in the google-auth authorized-user format so the file can
also be read by ``google.oauth2.credentials.Credentials.from_authorized_user_file``.
The bare OAuth2 format (``access_token`` instead of ``token``) is accepted on
load as well.

Anything that does not look like a token is treated as absent, which sends
the caller back through the authorization flow.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TOKEN_FILE_MODE = 0o600


def _parse_expiry(expiry: Any) -> float | None:
    """Convert a stored expiry into a POSIX timestamp.

    Raises:
        ValueError: If the value is neither empty, numeric nor ISO 8601.
    """
    if expiry is None or expiry == "":
        return None
    if isinstance(expiry, bool):
        raise ValueError(f"Invalid expiry: {expiry!r}")
    if isinstance(expiry, (int, float)):
        try:
            # Must be representable as a datetime for google-auth
            datetime.fromtimestamp(expiry, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Invalid expiry: {expiry!r}") from e
        return float(expiry)
    if isinstance(expiry, str):
        dt = datetime.fromisoformat(expiry.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()
    raise ValueError(f"Invalid expiry: {expiry!r}")


def _format_expiry(expires_at: float | None) -> str | None:
    if not expires_at:
        return None
    dt = datetime.fromtimestamp(expires_at, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


class TokenStore:
    """Read and write a cached OAuth token at a fixed path."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> dict[str, Any] | None:
        """Load the cached token.

        Returns:
            Authlib-style token dict (``access_token``, ``refresh_token``,
            ``token_type``, ``expires_at``, ``scope``), or None if the file is
            missing or does not hold a well-formed token.
        """
        if not self.path.exists():
            logger.info("No existing token found")
            return None

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read token file {self.path}: {e}")
            return None

        try:
            return self._from_stored(data)
        except ValueError as e:
            logger.warning(f"Ignoring malformed token file {self.path}: {e}")
            return None

    @staticmethod
    def _from_stored(data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise ValueError("token file must contain a JSON object")

        access_token = data.get("token", data.get("access_token"))
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("missing access token")

        refresh_token = data.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise ValueError("refresh_token must be a string")

        scopes = data.get("scopes")
        if scopes is None:
            scope = data.get("scope")
            scopes = scope.split() if isinstance(scope, str) else None
        if scopes is not None and (
            not isinstance(scopes, list) or not all(isinstance(s, str) for s in scopes)
        ):
            raise ValueError("scopes must be a list of strings")

        token_type = data.get("type", data.get("token_type")) or "Bearer"
        if not isinstance(token_type, str):
            raise ValueError("token type must be a string")

        expires_at = _parse_expiry(data.get("expiry", data.get("expires_at")))

        token: dict[str, Any] = {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": token_type,
            "expires_at": expires_at,
        }
        # Tokens written by other tools may not record scopes at all
        if scopes is not None:
            token["scope"] = " ".join(scopes)
        return token

    def save(
        self,
        token: dict[str, Any],
        client_id: str,
        client_secret: str,
        token_uri: str,
    ) -> None:
        """Persist a token, replacing any existing cache file.

        The file is created readable and writable by the owner only.
        """
        scopes = token.get("scope", "")
        if isinstance(scopes, str):
            scopes = scopes.split()

        stored = {
            "token": token["access_token"],
            "refresh_token": token.get("refresh_token"),
            "token_uri": token_uri,
            "client_id": client_id,
            "client_secret": client_secret,
            "scopes": list(scopes),
            "type": token.get("token_type", "Bearer"),
            "expiry": _format_expiry(token.get("expires_at")),
        }

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TOKEN_FILE_MODE)
        with os.fdopen(fd, "w") as f:
            json.dump(stored, f, indent=2)
        # os.open only applies the mode to newly created files
        os.chmod(self.path, TOKEN_FILE_MODE)

        logger.info(f"Saving credential file to: {self.path}")

    def delete(self) -> None:
        if self.path.exists():
            self.path.unlink()
