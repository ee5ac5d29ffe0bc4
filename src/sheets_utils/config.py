"""Centralized credential configuration.

By default all credentials live under the sheets-utils repo root:
    .env                            - SHEETS_SPREADSHEET_ID and other settings
    google/credentials.json         - Google OAuth client credentials
    google/token.json               - Google OAuth tokens
    google/service_account_key.json - Google service account key

Set SHEETS_UTILS_HOME to keep the google/ files somewhere else.

This module auto-loads the .env file on import, making settings
available to all sheets-utils modules and any code that imports them.
"""

import os
from pathlib import Path

# Repository root (where this package is installed from)
# __file__ is src/sheets_utils/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = REPO_ROOT / ".env"


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Only set if not already in environment (env vars take precedence)
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


# Auto-load .env from repo root on import
_loaded = _load_env_file(ENV_FILE)

GOOGLE_DIR = Path(os.environ.get("SHEETS_UTILS_HOME") or REPO_ROOT / "google")

# Credential file paths
GOOGLE_CREDENTIALS = GOOGLE_DIR / "credentials.json"
GOOGLE_TOKEN = GOOGLE_DIR / "token.json"
GOOGLE_SERVICE_ACCOUNT = GOOGLE_DIR / "service_account_key.json"


def default_spreadsheet_id() -> str:
    """Spreadsheet used when none is given explicitly."""
    return os.environ.get("SHEETS_SPREADSHEET_ID", "")


def ensure_google_dir() -> Path:
    """Create google credentials directory if it doesn't exist.

    Returns:
        Path to google directory.
    """
    GOOGLE_DIR.mkdir(parents=True, exist_ok=True)
    return GOOGLE_DIR


def get_credential_status() -> dict:
    """Get status of all configured credentials.

    Returns:
        Dictionary with credential status.
    """
    return {
        "repo_root": str(REPO_ROOT),
        "google_dir": str(GOOGLE_DIR),
        "env_file": ENV_FILE.exists(),
        "spreadsheet_id": default_spreadsheet_id(),
        "google": {
            "credentials": GOOGLE_CREDENTIALS.exists(),
            "token": GOOGLE_TOKEN.exists(),
            "service_account": GOOGLE_SERVICE_ACCOUNT.exists(),
        },
    }
