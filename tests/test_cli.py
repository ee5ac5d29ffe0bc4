"""Tests for the sheets-utils command line."""

import json
from unittest.mock import MagicMock, patch

import pytest

from sheets_utils import cli, config
from sheets_utils.sheets import NotFoundError, SheetsClient


@pytest.fixture
def sheets_client():
    """Patch client construction and return the fake client."""
    client = MagicMock(spec=SheetsClient)
    with (
        patch.object(SheetsClient, "from_oauth", return_value=client) as from_oauth,
        patch.object(SheetsClient, "from_service_account", return_value=client) as from_sa,
    ):
        client.from_oauth = from_oauth
        client.from_service_account = from_sa
        yield client


class TestSheetCommands:
    """Test spreadsheet subcommands."""

    def test_get_single_range(self, sheets_client, capsys):
        sheets_client.get_range.return_value = [["a", "b"], ["c"]]

        assert cli.main(["get", "Sheet1!A1:B2", "--spreadsheet", "abc"]) == 0

        assert capsys.readouterr().out == "a\tb\nc\n"
        sheets_client.get_range.assert_called_once_with("Sheet1!A1:B2")
        sheets_client.from_oauth.assert_called_once_with(spreadsheet_id="abc")

    def test_get_multiple_ranges(self, sheets_client, capsys):
        sheets_client.get_ranges.return_value = {"A!A1": [["1"]], "B!B2": [["2"]]}

        assert cli.main(["get", "A!A1", "B!B2"]) == 0

        assert capsys.readouterr().out == "# A!A1\n1\n# B!B2\n2\n"

    def test_service_account_flag(self, sheets_client):
        sheets_client.get_cell.return_value = "x"

        assert cli.main(["cell", "Sheet1", "A1", "--service-account"]) == 0

        sheets_client.from_service_account.assert_called_once_with(spreadsheet_id=None)
        sheets_client.from_oauth.assert_not_called()

    def test_update(self, sheets_client, capsys):
        sheets_client.update_range.return_value = {"updatedCells": 2}

        assert cli.main(["update", "Sheet1!A1", '[["a", 1]]']) == 0

        sheets_client.update_range.assert_called_once_with([["a", 1]], "Sheet1!A1")
        assert "Updated 2 cells" in capsys.readouterr().out

    def test_append_rejects_non_grid(self, sheets_client, capsys):
        assert cli.main(["append", "Sheet1!A1", '{"a": 1}']) == 1
        sheets_client.append_rows.assert_not_called()
        assert "array of arrays" in capsys.readouterr().err

    def test_clear_many_uses_batch(self, sheets_client):
        assert cli.main(["clear", "A!A1", "B!B1"]) == 0
        sheets_client.clear_ranges.assert_called_once_with(["A!A1", "B!B1"])

    def test_sheets_list(self, sheets_client, capsys):
        sheets_client.list_sheets.return_value = {"Sheet1": 0, "Data": 7}

        assert cli.main(["sheets", "list"]) == 0

        assert capsys.readouterr().out == "0\tSheet1\n7\tData\n"

    def test_sheets_delete_missing(self, sheets_client, capsys):
        sheets_client.delete_sheet_by_name.side_effect = NotFoundError("Can not find sheet 'X'")

        assert cli.main(["sheets", "delete", "X"]) == 1

        assert "Can not find sheet" in capsys.readouterr().err


class TestCredentialCommands:
    """Test credential import commands."""

    @pytest.fixture
    def google_dir(self, tmp_path, monkeypatch):
        google_dir = tmp_path / "google"
        monkeypatch.setattr(config, "GOOGLE_DIR", google_dir)
        monkeypatch.setattr(config, "GOOGLE_CREDENTIALS", google_dir / "credentials.json")
        monkeypatch.setattr(
            config, "GOOGLE_SERVICE_ACCOUNT", google_dir / "service_account_key.json"
        )
        return google_dir

    def test_import_credentials(self, tmp_path, google_dir):
        source = tmp_path / "download.json"
        source.write_text(json.dumps({"installed": {"client_id": "cid", "client_secret": "s"}}))

        assert cli.main(["import", str(source)]) == 0
        assert (google_dir / "credentials.json").exists()

    def test_import_rejects_other_formats(self, tmp_path, google_dir):
        source = tmp_path / "download.json"
        source.write_text(json.dumps({"type": "service_account"}))

        assert cli.main(["import", str(source)]) == 1
        assert not (google_dir / "credentials.json").exists()

    @pytest.mark.parametrize(
        "content", [[], "installed", 3, {"installed": "x"}, {"installed": [], "web": "x"}]
    )
    def test_import_rejects_non_object(self, tmp_path, google_dir, content):
        """JSON that isn't a client descriptor object is refused cleanly."""
        source = tmp_path / "download.json"
        source.write_text(json.dumps(content))

        assert cli.main(["import", str(source)]) == 1
        assert not (google_dir / "credentials.json").exists()

    def test_import_falls_back_to_web(self, tmp_path, google_dir, capsys):
        source = tmp_path / "download.json"
        source.write_text(json.dumps({"installed": "x", "web": {"client_id": "web-cid"}}))

        assert cli.main(["import", str(source)]) == 0
        assert "web-cid" in capsys.readouterr().out

    @pytest.mark.parametrize("content", [[], "service_account", None])
    def test_import_key_rejects_non_object(self, tmp_path, google_dir, content):
        source = tmp_path / "key.json"
        source.write_text(json.dumps(content))

        assert cli.main(["import-key", str(source)]) == 1
        assert not (google_dir / "service_account_key.json").exists()

    def test_import_key(self, tmp_path, google_dir):
        source = tmp_path / "key.json"
        source.write_text(json.dumps({"type": "service_account", "client_email": "r@x"}))

        assert cli.main(["import-key", str(source)]) == 0
        assert (google_dir / "service_account_key.json").exists()

    def test_import_missing_file(self, tmp_path, google_dir):
        assert cli.main(["import-key", str(tmp_path / "missing.json")]) == 1
