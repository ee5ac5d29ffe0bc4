"""Google Sheets API client implementation."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, TextIO

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from sheets_utils.config import default_spreadsheet_id
from sheets_utils.google import GoogleOAuth, GoogleServiceAccount
from sheets_utils.sheets.exceptions import (
    NotFoundError,
    RemoteCallError,
    UnexpectedResponseShapeError,
    ValidationError,
)
from sheets_utils.sheets.values import grid_to_text

logger = logging.getLogger(__name__)

USER_ENTERED = "USER_ENTERED"


class SheetsClient:
    """Google Sheets API client bound to a default spreadsheet.

    Every remote call runs while holding a per-instance lock, so one client
    never has more than one request in flight. Share a client between threads
    freely; use separate clients when calls need to run in parallel.

    Usage:
        client = SheetsClient.from_oauth("credentials.json", "token.json", "1AbC...")

        # Read values
        values = client.get_range("Sheet1!A1:C10")

        # Write values
        client.update_range([["Name", "Age"], ["Alice", 30]], "Sheet1!A1")

        # Append rows
        client.append_rows([["Bob", 25], ["Carol", 35]], "Sheet1!A1")

        # Same operations against another spreadsheet
        client.get_range("Sheet1!A1:C10", spreadsheet_id="1XyZ...")
    """

    def __init__(self, service: Any, spreadsheet_id: str = "") -> None:
        """Initialize Sheets client.

        Args:
            service: Sheets v4 service from ``googleapiclient.discovery.build``.
            spreadsheet_id: Spreadsheet used when an operation is not given one.
        """
        self._service = service
        self._spreadsheet_id = spreadsheet_id
        self._lock = threading.Lock()

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def from_service_account(
        cls,
        key_path: str | Path | None = None,
        spreadsheet_id: str | None = None,
    ) -> SheetsClient:
        """Create a client authenticated with a service account key file."""
        auth = GoogleServiceAccount(key_path=key_path, scopes=["sheets"])
        return cls(
            auth.build_service("sheets", "v4"),
            spreadsheet_id if spreadsheet_id is not None else default_spreadsheet_id(),
        )

    @classmethod
    def from_oauth(
        cls,
        credentials_path: str | Path | None = None,
        token_path: str | Path | None = None,
        spreadsheet_id: str | None = None,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None,
    ) -> SheetsClient:
        """Create a client authenticated as a user.

        Reuses the cached token when there is one. Otherwise runs the
        interactive consent flow on the given streams and caches the result.

        Raises:
            ConfigurationError: If the credentials file is missing or malformed.
            AuthExchangeError: If the consent flow cannot complete.
        """
        auth = GoogleOAuth(
            scopes=["sheets"],
            credentials_path=credentials_path,
            token_path=token_path,
        )
        if not auth.is_authorized():
            logger.info("No usable cached token, starting authorization flow")
            auth.authorize_interactive(input_stream, output_stream)
        return cls(
            auth.build_service("sheets", "v4"),
            spreadsheet_id if spreadsheet_id is not None else default_spreadsheet_id(),
        )

    @classmethod
    def connect(
        cls,
        credentials_path: str | Path,
        spreadsheet_id: str | None = None,
        token_path: str | Path | None = None,
    ) -> SheetsClient:
        """Create a client from a single credentials file.

        Without a token path the file is treated as a service account key,
        otherwise as an OAuth client descriptor.
        """
        if not token_path:
            return cls.from_service_account(credentials_path, spreadsheet_id)
        return cls.from_oauth(credentials_path, token_path, spreadsheet_id)

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    def update_spreadsheet_id(self, spreadsheet_id: str) -> None:
        """Change the default spreadsheet."""
        self._spreadsheet_id = spreadsheet_id

    def _resolve(self, spreadsheet_id: str | None) -> str:
        return spreadsheet_id or self._spreadsheet_id

    def _execute(self, request: Any) -> dict[str, Any]:
        """Execute one API request under the client lock."""
        with self._lock:
            logger.debug(f"{request.method} {request.uri}")
            try:
                return request.execute()
            except HttpError as e:
                raise RemoteCallError(
                    f"Sheets API call failed: {e}", status_code=e.resp.status
                ) from e
            except RefreshError as e:
                raise RemoteCallError(f"Unable to refresh credentials: {e}") from e
            except (TransportError, httplib2.HttpLib2Error, OSError) as e:
                raise RemoteCallError(f"Sheets API request failed: {e!r}") from e

    # =========================================================================
    # Reading Data
    # =========================================================================

    def get_range(
        self,
        range_spec: str,
        spreadsheet_id: str | None = None,
        value_render_option: str = "FORMATTED_VALUE",
    ) -> list[list[str]]:
        """Read values from a range.

        Args:
            range_spec: A1 notation (e.g., "Sheet1!A1:C10").
            spreadsheet_id: Overrides the default spreadsheet.
            value_render_option: How to render values ("FORMATTED_VALUE",
                "UNFORMATTED_VALUE", "FORMULA").

        Returns:
            2D list of cell text. Rows keep the length the API returned.

        Raises:
            NotFoundError: If the range holds no data.
        """
        result = self._execute(
            self._service.spreadsheets()
            .values()
            .get(
                spreadsheetId=self._resolve(spreadsheet_id),
                range=range_spec,
                valueRenderOption=value_render_option,
            )
        )
        rows = result.get("values", [])
        if not rows:
            raise NotFoundError(f"No data found in {range_spec}")
        return grid_to_text(rows)

    def get_cell(
        self,
        sheet_name: str,
        cell_address: str,
        spreadsheet_id: str | None = None,
    ) -> str:
        """Read a single cell value.

        Args:
            sheet_name: Sheet title.
            cell_address: Cell in A1 notation without the sheet (e.g., "B2").
            spreadsheet_id: Overrides the default spreadsheet.

        Raises:
            NotFoundError: If the cell is empty.
        """
        rows = self.get_range(f"{sheet_name}!{cell_address}:{cell_address}", spreadsheet_id)
        if not rows[0]:
            raise NotFoundError(f"Cell {sheet_name}!{cell_address} is empty")
        return rows[0][0]

    def get_ranges(
        self,
        range_specs: list[str],
        spreadsheet_id: str | None = None,
    ) -> dict[str, list[list[str]]]:
        """Read several ranges in one batch call.

        Returns:
            Mapping from each requested range to its grid. Ranges without
            data map to an empty list.

        Raises:
            NotFoundError: If the response contains no ranges at all.
        """
        result = self._execute(
            self._service.spreadsheets()
            .values()
            .batchGet(spreadsheetId=self._resolve(spreadsheet_id), ranges=range_specs)
        )
        value_ranges = result.get("valueRanges", [])
        if not value_ranges:
            raise NotFoundError(f"No data found in {range_specs}")

        # Ranges come back in request order, normalized ("Sheet1!A:B" -> "Sheet1!A1:B1000")
        grids = {}
        for index, value_range in enumerate(value_ranges):
            key = range_specs[index] if index < len(range_specs) else value_range.get("range")
            grids[key] = grid_to_text(value_range.get("values", []))
        return grids

    # =========================================================================
    # Writing Data
    # =========================================================================

    def update_range(
        self,
        rows: list[list[Any]],
        range_spec: str,
        spreadsheet_id: str | None = None,
    ) -> dict[str, Any]:
        """Write values to a range as if typed by a user.

        Formulas are evaluated and numbers or dates are parsed.

        Returns:
            The API's UpdateValuesResponse.
        """
        return self._execute(
            self._service.spreadsheets()
            .values()
            .update(
                spreadsheetId=self._resolve(spreadsheet_id),
                range=range_spec,
                valueInputOption=USER_ENTERED,
                body={"values": rows, "majorDimension": "ROWS"},
            )
        )

    def update_ranges(
        self,
        grids: list[list[list[Any]]],
        range_specs: list[str],
        spreadsheet_id: str | None = None,
    ) -> dict[str, Any]:
        """Write several ranges in one batch call.

        ``grids[i]`` is written to ``range_specs[i]``.

        Raises:
            ValidationError: If the two lists differ in length.
        """
        if len(grids) != len(range_specs):
            raise ValidationError(
                f"grids and range_specs need the same length "
                f"(got {len(grids)} and {len(range_specs)})"
            )

        body = {
            "valueInputOption": USER_ENTERED,
            "data": [
                {"range": range_spec, "values": rows}
                for rows, range_spec in zip(grids, range_specs)
            ],
        }
        return self._execute(
            self._service.spreadsheets()
            .values()
            .batchUpdate(spreadsheetId=self._resolve(spreadsheet_id), body=body)
        )

    def append_rows(
        self,
        rows: list[list[Any]],
        range_spec: str,
        spreadsheet_id: str | None = None,
    ) -> dict[str, Any]:
        """Append rows after the last row of the table found in the range.

        Returns:
            The API's AppendValuesResponse.
        """
        return self._execute(
            self._service.spreadsheets()
            .values()
            .append(
                spreadsheetId=self._resolve(spreadsheet_id),
                range=range_spec,
                valueInputOption=USER_ENTERED,
                body={"values": rows},
            )
        )

    def clear_range(self, range_spec: str, spreadsheet_id: str | None = None) -> None:
        """Clear values (not formatting) from a range."""
        self._execute(
            self._service.spreadsheets()
            .values()
            .clear(spreadsheetId=self._resolve(spreadsheet_id), range=range_spec, body={})
        )

    def clear_ranges(self, range_specs: list[str], spreadsheet_id: str | None = None) -> None:
        """Clear values from several ranges in one batch call."""
        self._execute(
            self._service.spreadsheets()
            .values()
            .batchClear(
                spreadsheetId=self._resolve(spreadsheet_id),
                body={"ranges": range_specs},
            )
        )

    def delete_range(
        self,
        sheet_id: int,
        start_row: int,
        start_col: int,
        end_row: int,
        end_col: int,
        spreadsheet_id: str | None = None,
    ) -> dict[str, Any]:
        """Delete a block of cells and shift the remaining cells into place.

        Indexes are zero-based and end-exclusive. A negative bound is left
        unset (open-ended). Cells shift up (ROWS) unless both row bounds are
        negative and at least one column bound is not, then they shift left
        (COLUMNS). The column check runs first.
        """
        if start_col < 0 and end_col < 0:
            shift_dimension = "ROWS"
        elif start_row < 0 and end_row < 0:
            shift_dimension = "COLUMNS"
        else:
            shift_dimension = "ROWS"

        grid_range: dict[str, int] = {"sheetId": sheet_id}
        if start_col >= 0:
            grid_range["startColumnIndex"] = start_col
        if start_row >= 0:
            grid_range["startRowIndex"] = start_row
        if end_row >= 0:
            grid_range["endRowIndex"] = end_row
        if end_col >= 0:
            grid_range["endColumnIndex"] = end_col

        return self._batch_update(
            [{"deleteRange": {"range": grid_range, "shiftDimension": shift_dimension}}],
            spreadsheet_id,
            include_spreadsheet=True,
        )

    # =========================================================================
    # Sheet Management
    # =========================================================================

    def _batch_update(
        self,
        requests: list[dict[str, Any]],
        spreadsheet_id: str | None,
        include_spreadsheet: bool = False,
    ) -> dict[str, Any]:
        return self._execute(
            self._service.spreadsheets().batchUpdate(
                spreadsheetId=self._resolve(spreadsheet_id),
                body={
                    "requests": requests,
                    "includeSpreadsheetInResponse": include_spreadsheet,
                },
            )
        )

    def list_sheets(self, spreadsheet_id: str | None = None) -> dict[str, int]:
        """Map each sheet title to its sheet ID."""
        result = self._execute(
            self._service.spreadsheets().get(spreadsheetId=self._resolve(spreadsheet_id))
        )
        return _sheet_ids(result)

    def get_sheet_id_from_name(self, name: str, spreadsheet_id: str | None = None) -> int:
        """Look up a sheet ID by title.

        Raises:
            NotFoundError: If no sheet has that title.
        """
        sheets = self.list_sheets(spreadsheet_id)
        if name not in sheets:
            raise NotFoundError(f"Sheet not found: {name}")
        return sheets[name]

    def create_sheet(self, title: str, spreadsheet_id: str | None = None) -> int:
        """Add a sheet and return its ID.

        Raises:
            UnexpectedResponseShapeError: If the updated spreadsheet in the
                response has no sheet with that title.
        """
        result = self._batch_update(
            [{"addSheet": {"properties": {"title": title}}}],
            spreadsheet_id,
            include_spreadsheet=True,
        )
        sheets = _sheet_ids(result.get("updatedSpreadsheet", {}))
        if title not in sheets:
            raise UnexpectedResponseShapeError(f"Can not find sheet {title!r} after create")

        logger.info(f"Created sheet {title!r} with id {sheets[title]}")
        return sheets[title]

    def delete_sheet_by_id(self, sheet_id: int, spreadsheet_id: str | None = None) -> None:
        """Delete a sheet by its numeric ID."""
        self._batch_update([{"deleteSheet": {"sheetId": sheet_id}}], spreadsheet_id)
        logger.info(f"Deleted sheet {sheet_id}")

    def delete_sheet_by_name(self, name: str, spreadsheet_id: str | None = None) -> None:
        """Delete a sheet by title.

        Raises:
            NotFoundError: If no sheet has that title. Nothing is deleted.
        """
        sheets = self.list_sheets(spreadsheet_id)
        if name not in sheets:
            raise NotFoundError(f"Can not find sheet {name!r}")
        self.delete_sheet_by_id(sheets[name], spreadsheet_id)


def _sheet_ids(spreadsheet: dict[str, Any]) -> dict[str, int]:
    """Parse title -> sheetId from a Spreadsheet resource."""
    ids = {}
    for sheet_data in spreadsheet.get("sheets", []):
        props = sheet_data.get("properties", {})
        ids[props.get("title", "")] = props.get("sheetId", 0)
    return ids
