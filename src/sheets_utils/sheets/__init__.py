"""Google Sheets API client.

Read, write, append, clear and manage sheets in one spreadsheet, with
service account or OAuth authentication.

Usage:
    from sheets_utils.sheets import SheetsClient

    # Service account (share the spreadsheet with its email first)
    client = SheetsClient.from_service_account("service_account_key.json", "1AbC...")

    # Or as a user; prompts for an authorization code the first time
    client = SheetsClient.from_oauth("credentials.json", "token.json", "1AbC...")

    values = client.get_range("Sheet1!A1:C10")
    client.update_range([["Name", "Age"], ["Alice", 30]], "Sheet1!A1")

OAuth Setup:
    1. Download OAuth credentials from Google Cloud Console
    2. Import: sheets-utils import ~/Downloads/credentials.json
    3. Authorize: sheets-utils login
"""

from __future__ import annotations

from sheets_utils.sheets.client import SheetsClient
from sheets_utils.sheets.exceptions import (
    NotFoundError,
    RemoteCallError,
    SheetsError,
    UnexpectedResponseShapeError,
    ValidationError,
)
from sheets_utils.sheets.values import cell_to_text, grid_to_text

__all__ = [
    "SheetsClient",
    "SheetsError",
    "NotFoundError",
    "ValidationError",
    "UnexpectedResponseShapeError",
    "RemoteCallError",
    "cell_to_text",
    "grid_to_text",
]
