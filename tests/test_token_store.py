"""Tests for the OAuth token cache."""

import json
import stat

import pytest

from sheets_utils.google import TokenStore


class TestTokenStoreLoad:
    """Test reading cached tokens."""

    def test_missing_file(self, tmp_path):
        """Should return None when no cache exists."""
        assert TokenStore(tmp_path / "token.json").load() is None

    def test_google_auth_format(self, tmp_path):
        """Should convert the google-auth format to Authlib's."""
        path = tmp_path / "token.json"
        path.write_text(
            json.dumps(
                {
                    "token": "access",
                    "refresh_token": "refresh",
                    "scopes": ["a", "b"],
                    "type": "Bearer",
                    "expiry": "2100-01-01T00:00:00Z",
                }
            )
        )
        token = TokenStore(path).load()
        assert token == {
            "access_token": "access",
            "refresh_token": "refresh",
            "token_type": "Bearer",
            "expires_at": 4102444800.0,
            "scope": "a b",
        }

    def test_oauth2_format(self, tmp_path):
        """Should accept the plain OAuth2 field names."""
        path = tmp_path / "token.json"
        path.write_text(
            json.dumps(
                {
                    "access_token": "access",
                    "token_type": "Bearer",
                    "refresh_token": "refresh",
                    "expiry": "2100-01-01T07:00:00+07:00",
                }
            )
        )
        token = TokenStore(path).load()
        assert token["access_token"] == "access"
        assert token["expires_at"] == 4102444800.0
        assert "scope" not in token

    def test_numeric_expiry(self, tmp_path):
        """Should accept an expiry stored as a timestamp."""
        path = tmp_path / "token.json"
        path.write_text(json.dumps({"token": "access", "expiry": 1700000000}))
        assert TokenStore(path).load()["expires_at"] == 1700000000.0

    def test_refresh_token_optional(self, tmp_path):
        """Should load tokens without a refresh token or expiry."""
        path = tmp_path / "token.json"
        path.write_text(json.dumps({"token": "access"}))
        token = TokenStore(path).load()
        assert token["refresh_token"] is None
        assert token["expires_at"] is None

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "{",
            "null",
            '"token"',
            "[]",
            "{}",
            '{"token": ""}',
            '{"token": 5}',
            '{"token": "a", "refresh_token": 5}',
            '{"token": "a", "scopes": "a b"}',
            '{"token": "a", "scopes": [1]}',
            '{"token": "a", "expiry": "tomorrow"}',
            '{"token": "a", "expiry": true}',
            '{"token": "a", "expiry": {}}',
            '{"token": "a", "expiry": 1e300}',
            '{"token": "a", "expiry": -1e300}',
        ],
    )
    def test_malformed_is_absent(self, tmp_path, content):
        """Should treat anything that isn't a token as no token."""
        path = tmp_path / "token.json"
        path.write_text(content)
        assert TokenStore(path).load() is None


class TestTokenStoreSave:
    """Test writing cached tokens."""

    @pytest.fixture
    def token(self):
        return {
            "access_token": "access",
            "refresh_token": "refresh",
            "token_type": "Bearer",
            "expires_at": 4102444800,
            "scope": "https://www.googleapis.com/auth/spreadsheets",
        }

    def test_save_writes_google_format(self, tmp_path, token):
        """Should write the google-auth authorized-user format."""
        path = tmp_path / "token.json"
        TokenStore(path).save(token, "cid", "secret", "https://oauth2.googleapis.com/token")

        stored = json.loads(path.read_text())
        assert stored == {
            "token": "access",
            "refresh_token": "refresh",
            "token_uri": "https://oauth2.googleapis.com/token",
            "client_id": "cid",
            "client_secret": "secret",
            "scopes": ["https://www.googleapis.com/auth/spreadsheets"],
            "type": "Bearer",
            "expiry": "2100-01-01T00:00:00Z",
        }

    def test_save_restricts_permissions(self, tmp_path, token):
        """Should leave the cache readable by the owner only."""
        path = tmp_path / "token.json"
        path.write_text("{}")
        path.chmod(0o644)

        TokenStore(path).save(token, "cid", "secret", "uri")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_save_overwrites(self, tmp_path, token):
        """Should replace an existing, longer file completely."""
        path = tmp_path / "token.json"
        path.write_text(" " * 10000 + "garbage")

        TokenStore(path).save(token, "cid", "secret", "uri")
        assert json.loads(path.read_text())["token"] == "access"

    def test_save_creates_directory(self, tmp_path, token):
        """Should create missing parent directories."""
        path = tmp_path / "nested" / "google" / "token.json"
        TokenStore(path).save(token, "cid", "secret", "uri")
        assert path.exists()

    def test_saved_token_loads_back(self, tmp_path, token):
        """A saved token is read back as the same token."""
        store = TokenStore(tmp_path / "token.json")
        store.save(token, "cid", "secret", "uri")
        assert store.load() == {**token, "expires_at": 4102444800.0}

    def test_delete(self, tmp_path, token):
        """Should remove the file and tolerate it being gone."""
        store = TokenStore(tmp_path / "token.json")
        store.save(token, "cid", "secret", "uri")
        store.delete()
        assert not store.exists()
        store.delete()
