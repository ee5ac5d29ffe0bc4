"""CLI for sheets-utils - credentials and spreadsheet access.

Usage:
    sheets-utils init                        # Create directories, show setup instructions
    sheets-utils status                      # Show credential status
    sheets-utils login                       # Interactive OAuth login
    sheets-utils revoke                      # Revoke OAuth token
    sheets-utils import <path>               # Import OAuth credentials
    sheets-utils import-key <path>           # Import service account key
    sheets-utils get <range>...              # Print ranges as tab-separated rows
    sheets-utils cell <sheet> <cell>         # Print one cell
    sheets-utils update <range> <json>       # Write a JSON grid to a range
    sheets-utils append <range> <json>       # Append JSON rows to a table
    sheets-utils clear <range>...            # Clear values from ranges
    sheets-utils sheets list                 # List sheet titles and IDs
    sheets-utils sheets create <title>       # Add a sheet
    sheets-utils sheets delete <title>       # Delete a sheet

Spreadsheet commands use SHEETS_SPREADSHEET_ID unless --spreadsheet is given,
and OAuth unless --service-account is given.
"""

from __future__ import annotations

import argparse
import json
import shutil
import sys
import webbrowser
from pathlib import Path


def cmd_init() -> int:
    """Initialize sheets-utils credential directory structure."""
    from sheets_utils.config import (
        ENV_FILE,
        GOOGLE_CREDENTIALS,
        GOOGLE_DIR,
        GOOGLE_SERVICE_ACCOUNT,
        GOOGLE_TOKEN,
        REPO_ROOT,
        ensure_google_dir,
    )

    print("=" * 60)
    print("SHEETS-UTILS SETUP")
    print("=" * 60)
    print()
    print(f"Repository: {REPO_ROOT}")
    print()

    ensure_google_dir()
    print(f"Created: {GOOGLE_DIR}/")
    print()

    print("Credential locations:")
    print()
    print(f"  {ENV_FILE}")
    print("    Settings: SHEETS_SPREADSHEET_ID, SHEETS_UTILS_HOME")
    print()
    print(f"  {GOOGLE_CREDENTIALS}")
    print("    OAuth client credentials from Google Cloud Console")
    print()
    print(f"  {GOOGLE_TOKEN}")
    print("    OAuth tokens (created by 'sheets-utils login')")
    print()
    print(f"  {GOOGLE_SERVICE_ACCOUNT}")
    print("    Service account key from Google Cloud Console")
    print()
    print("-" * 60)
    print()

    status = _check_status()

    if status["google"]["credentials"]:
        print("Google credentials.json exists")
    else:
        print("For Google OAuth, download credentials from:")
        print("  https://console.cloud.google.com/apis/credentials")
        print(f"  Save as: {GOOGLE_CREDENTIALS}")
        print()

    return 0


def cmd_status() -> int:
    """Show status of all configured credentials."""
    status = _check_status()

    print("=" * 60)
    print("SHEETS-UTILS CREDENTIAL STATUS")
    print("=" * 60)
    print()
    print(f"Repository: {status['repo_root']}")
    print(f"Google dir: {status['google_dir']}")
    print()

    print("Google:")
    print(f"  credentials.json:       {'[x]' if status['google']['credentials'] else '[ ]'}")
    print(f"  token.json:             {'[x]' if status['google']['token'] else '[ ]'}")
    print(f"  service_account_key:    {'[x]' if status['google']['service_account'] else '[ ]'}")
    print()
    print(f"Default spreadsheet: {status['spreadsheet_id'] or '(not set)'}")
    print()

    return 0


def _check_status() -> dict:
    """Get credential status."""
    from sheets_utils.config import get_credential_status

    return get_credential_status()


def cmd_login(no_browser: bool = False) -> int:
    """Interactive Google OAuth login."""
    from sheets_utils.google import (
        AuthExchangeError,
        ConfigurationError,
        GoogleOAuth,
        TokenError,
    )

    print("=" * 60)
    print("SHEETS-UTILS GOOGLE LOGIN")
    print("=" * 60)

    try:
        auth = GoogleOAuth(scopes=["sheets"])
    except ConfigurationError as e:
        print(f"\nError: {e}")
        print("Run 'sheets-utils init' for setup instructions")
        return 1

    if auth.is_authorized():
        print("\nAlready authorized")
        return cmd_token_status()

    print("\nA browser window will open for Google consent.")
    print("After granting access, paste the code (or the redirect URL) back here.\n")

    if not no_browser:
        webbrowser.open(auth.get_authorization_url())

    try:
        auth.authorize_interactive()
    except (AuthExchangeError, TokenError, ConfigurationError) as e:
        print(f"\nError: {e}")
        return 1

    print("\nToken saved successfully!")
    return cmd_token_status()


def cmd_token_status() -> int:
    """Show Google OAuth token status."""
    from sheets_utils.google import ConfigurationError, GoogleOAuth

    try:
        auth = GoogleOAuth(scopes=["sheets"])
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    info = auth.get_token_info()

    if info["status"] == "no_token":
        print("No token found - run 'sheets-utils login'")
        return 1

    print(f"Status     : {info['status']}")
    print(f"Scopes     : {', '.join(info.get('scopes', []))}")
    print(f"Expires in : {info.get('expires_in', 'unknown')}")
    print(f"Refresh    : {'yes' if info['has_refresh_token'] else 'no'}")
    return 0


def cmd_revoke() -> int:
    """Revoke Google OAuth token."""
    from sheets_utils.google import ConfigurationError, GoogleOAuth

    try:
        auth = GoogleOAuth(scopes=["sheets"])
    except ConfigurationError:
        print("No credentials to revoke")
        return 0

    auth.revoke_token()
    print("Token revoked and local cache cleared")
    return 0


def cmd_import(source_path: str) -> int:
    """Import OAuth credentials from a file."""
    from sheets_utils.config import GOOGLE_CREDENTIALS, ensure_google_dir

    source = Path(source_path).expanduser()

    if not source.exists():
        print(f"Error: File not found: {source}")
        return 1

    try:
        with open(source) as f:
            data = json.load(f)

        if not isinstance(data, dict) or not any(
            isinstance(data.get(key), dict) for key in ("installed", "web")
        ):
            print("Error: Invalid OAuth credentials format")
            print("Expected 'installed' or 'web' key in JSON")
            return 1

        key = "installed" if isinstance(data.get("installed"), dict) else "web"
        client_id = data[key].get("client_id", "unknown")

    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}")
        return 1

    ensure_google_dir()
    shutil.copy2(source, GOOGLE_CREDENTIALS)

    print("Imported OAuth credentials")
    print(f"  From: {source}")
    print(f"  To:   {GOOGLE_CREDENTIALS}")
    print(f"  Client ID: {client_id[:40]}...")
    print()
    print("Next: Run 'sheets-utils login' to authorize")
    return 0


def cmd_import_key(source_path: str) -> int:
    """Import service account key from a file."""
    from sheets_utils.config import GOOGLE_SERVICE_ACCOUNT, ensure_google_dir

    source = Path(source_path).expanduser()

    if not source.exists():
        print(f"Error: File not found: {source}")
        return 1

    try:
        with open(source) as f:
            data = json.load(f)

        got = data.get("type") if isinstance(data, dict) else type(data).__name__
        if got != "service_account":
            print("Error: Invalid service account key format")
            print(f"Expected type 'service_account', got '{got}'")
            return 1

        email = data.get("client_email", "unknown")

    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}")
        return 1

    ensure_google_dir()
    shutil.copy2(source, GOOGLE_SERVICE_ACCOUNT)

    print("Imported service account key")
    print(f"  From:  {source}")
    print(f"  To:    {GOOGLE_SERVICE_ACCOUNT}")
    print(f"  Email: {email}")
    print()
    print("Remember to share your spreadsheets with the service account email!")
    return 0


def _open_client(args: argparse.Namespace):
    """Build a SheetsClient from CLI flags."""
    from sheets_utils.sheets import SheetsClient

    if args.service_account:
        return SheetsClient.from_service_account(spreadsheet_id=args.spreadsheet)
    return SheetsClient.from_oauth(spreadsheet_id=args.spreadsheet)


def _parse_grid(text: str) -> list[list]:
    """Parse a JSON array of arrays given on the command line."""
    grid = json.loads(text)
    if not isinstance(grid, list) or not all(isinstance(row, list) for row in grid):
        raise ValueError("values must be a JSON array of arrays")
    return grid


def _print_grid(rows: list[list[str]]) -> None:
    for row in rows:
        print("\t".join(row))


def run_sheet_command(args: argparse.Namespace) -> int:
    """Run one spreadsheet command, reporting errors as exit code 1."""
    from sheets_utils.google import GoogleAuthError
    from sheets_utils.sheets import SheetsError

    try:
        client = _open_client(args)

        if args.command == "get":
            if len(args.ranges) == 1:
                _print_grid(client.get_range(args.ranges[0]))
            else:
                for range_spec, rows in client.get_ranges(args.ranges).items():
                    print(f"# {range_spec}")
                    _print_grid(rows)
        elif args.command == "cell":
            print(client.get_cell(args.sheet, args.cell))
        elif args.command == "update":
            result = client.update_range(_parse_grid(args.values), args.range)
            print(f"Updated {result.get('updatedCells', 0)} cells")
        elif args.command == "append":
            result = client.append_rows(_parse_grid(args.values), args.range)
            updated = result.get("updates", {}).get("updatedRows", 0)
            print(f"Appended {updated} rows")
        elif args.command == "clear":
            if len(args.ranges) == 1:
                client.clear_range(args.ranges[0])
            else:
                client.clear_ranges(args.ranges)
            print(f"Cleared {', '.join(args.ranges)}")
        elif args.command == "sheets":
            if args.sheets_command == "list":
                for title, sheet_id in client.list_sheets().items():
                    print(f"{sheet_id}\t{title}")
            elif args.sheets_command == "create":
                sheet_id = client.create_sheet(args.title)
                print(f"Created sheet {args.title!r} (id {sheet_id})")
            elif args.sheets_command == "delete":
                client.delete_sheet_by_name(args.title)
                print(f"Deleted sheet {args.title!r}")
    except (GoogleAuthError, SheetsError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def _add_sheet_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--spreadsheet",
        type=str,
        default=None,
        help="Spreadsheet ID (default: $SHEETS_SPREADSHEET_ID)",
    )
    parser.add_argument(
        "--service-account",
        action="store_true",
        help="Authenticate with the service account key instead of OAuth",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sheets-utils",
        description="Read and write Google Sheets from the command line",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("init", help="Initialize credential directories")
    subparsers.add_parser("status", help="Show credential status")

    login_parser = subparsers.add_parser("login", help="Interactive OAuth login")
    login_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open browser automatically",
    )

    subparsers.add_parser("revoke", help="Revoke OAuth token")

    import_parser = subparsers.add_parser("import", help="Import OAuth credentials")
    import_parser.add_argument("path", help="Path to credentials.json file")

    import_key_parser = subparsers.add_parser("import-key", help="Import service account key")
    import_key_parser.add_argument("path", help="Path to service account JSON key file")

    get_parser = subparsers.add_parser("get", help="Print one or more ranges")
    get_parser.add_argument("ranges", nargs="+", help="A1 ranges, e.g. Sheet1!A1:C10")
    _add_sheet_options(get_parser)

    cell_parser = subparsers.add_parser("cell", help="Print a single cell")
    cell_parser.add_argument("sheet", help="Sheet title")
    cell_parser.add_argument("cell", help="Cell address, e.g. B2")
    _add_sheet_options(cell_parser)

    update_parser = subparsers.add_parser("update", help="Write a JSON grid to a range")
    update_parser.add_argument("range", help="A1 range")
    update_parser.add_argument("values", help='JSON rows, e.g. \'[["a", 1]]\'')
    _add_sheet_options(update_parser)

    append_parser = subparsers.add_parser("append", help="Append JSON rows to a table")
    append_parser.add_argument("range", help="A1 range of the table")
    append_parser.add_argument("values", help='JSON rows, e.g. \'[["a", 1]]\'')
    _add_sheet_options(append_parser)

    clear_parser = subparsers.add_parser("clear", help="Clear values from ranges")
    clear_parser.add_argument("ranges", nargs="+", help="A1 ranges")
    _add_sheet_options(clear_parser)

    sheets_parser = subparsers.add_parser("sheets", help="Manage sheets")
    sheets_subparsers = sheets_parser.add_subparsers(dest="sheets_command", help="Command")
    _add_sheet_options(sheets_subparsers.add_parser("list", help="List sheets"))
    create_parser = sheets_subparsers.add_parser("create", help="Add a sheet")
    create_parser.add_argument("title", help="Sheet title")
    _add_sheet_options(create_parser)
    delete_parser = sheets_subparsers.add_parser("delete", help="Delete a sheet")
    delete_parser.add_argument("title", help="Sheet title")
    _add_sheet_options(delete_parser)

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "init":
        return cmd_init()
    if args.command == "status":
        return cmd_status()
    if args.command == "login":
        return cmd_login(args.no_browser)
    if args.command == "revoke":
        return cmd_revoke()
    if args.command == "import":
        return cmd_import(args.path)
    if args.command == "import-key":
        return cmd_import_key(args.path)

    if args.command == "sheets" and args.sheets_command is None:
        sheets_parser.print_help()
        return 0

    return run_sheet_command(args)


if __name__ == "__main__":
    sys.exit(main())
