"""Tests for Google OAuth credential handling."""

import logging
from unittest.mock import MagicMock, patch

import pytest
from google.oauth2.credentials import Credentials
from google.auth.exceptions import RefreshError
from oauthlib.oauth2.rfc6749.errors import AccessDeniedError

import google_oauth
from mcp_config import OAuthCredentials, load_oauth_credentials


class TestBuildCredentials:
    def test_configured_returns_refreshable_credentials(self, oauth_env):
        creds = google_oauth.build_credentials(load_oauth_credentials(oauth_env))

        assert isinstance(creds, Credentials)
        assert creds.refresh_token == oauth_env["GOOGLE_REFRESH_TOKEN"]
        assert creds.client_id == oauth_env["GOOGLE_CLIENT_ID"]
        assert creds.client_secret == oauth_env["GOOGLE_CLIENT_SECRET"]
        assert creds.token_uri == google_oauth.TOKEN_URI
        assert creds.token is None
        assert list(creds.scopes) == google_oauth.SCOPES

    def test_mock_mode_returns_none_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="google_oauth"):
            creds = google_oauth.build_credentials(OAuthCredentials(client_id="id", client_secret="secret"))

        assert creds is None
        assert "Using mock mode" in caplog.text


class TestClientConfig:
    def test_installed_app_shape(self, oauth_env):
        config = google_oauth.client_config(load_oauth_credentials(oauth_env))

        installed = config["installed"]
        assert installed["client_id"] == oauth_env["GOOGLE_CLIENT_ID"]
        assert installed["client_secret"] == oauth_env["GOOGLE_CLIENT_SECRET"]
        assert installed["redirect_uris"] == ["http://localhost"]

    def test_uses_configured_redirect_uri(self):
        oauth = OAuthCredentials(client_id="id", client_secret="secret", redirect_uri="http://localhost:8080/cb")

        assert google_oauth.client_config(oauth)["installed"]["redirect_uris"] == ["http://localhost:8080/cb"]

    def test_refresh_token_not_required(self):
        oauth = OAuthCredentials(client_id="id", client_secret="secret")

        assert google_oauth.client_config(oauth)["installed"]["client_id"] == "id"

    def test_missing_client_secret_raises(self):
        with pytest.raises(ValueError, match="GOOGLE_CLIENT_SECRET"):
            google_oauth.client_config(OAuthCredentials(client_id="id"))


class TestObtainRefreshToken:
    def test_runs_consent_flow(self):
        flow = MagicMock()
        flow.run_local_server.return_value = MagicMock(refresh_token="1//new-token")
        oauth = OAuthCredentials(client_id="id", client_secret="secret")

        with patch.object(google_oauth.InstalledAppFlow, "from_client_config", return_value=flow) as factory:
            token = google_oauth.obtain_refresh_token(oauth)

        assert token == "1//new-token"
        factory.assert_called_once_with(google_oauth.client_config(oauth), google_oauth.SCOPES)
        flow.run_local_server.assert_called_once_with(port=0, prompt="consent", access_type="offline")

    def test_no_refresh_token_raises(self):
        flow = MagicMock()
        flow.run_local_server.return_value = MagicMock(refresh_token=None)

        with patch.object(google_oauth.InstalledAppFlow, "from_client_config", return_value=flow):
            with pytest.raises(RuntimeError, match="refresh token"):
                google_oauth.obtain_refresh_token(OAuthCredentials(client_id="id", client_secret="secret"))


class TestMain:
    def test_missing_client_credentials_exit_2(self, monkeypatch, capsys):
        monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)
        monkeypatch.delenv("GOOGLE_CLIENT_SECRET", raising=False)

        with patch.object(google_oauth, "load_dotenv"):
            assert google_oauth.main() == 2
        assert "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required" in capsys.readouterr().out

    def test_prints_env_line(self, monkeypatch, capsys):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "secret")

        with patch.object(google_oauth, "load_dotenv"), patch.object(
            google_oauth, "obtain_refresh_token", return_value="1//abc"
        ):
            assert google_oauth.main() == 0
        assert "GOOGLE_REFRESH_TOKEN=1//abc" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "error",
        [
            RuntimeError("Google did not return a refresh token."),
            AccessDeniedError("access_denied"),
            RefreshError("invalid_grant"),
        ],
    )
    def test_consent_failure_exits_1(self, monkeypatch, capsys, error):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "secret")

        with patch.object(google_oauth, "load_dotenv"), patch.object(
            google_oauth, "obtain_refresh_token", side_effect=error
        ):
            assert google_oauth.main() == 1
        assert "Could not obtain a refresh token" in capsys.readouterr().out

    def test_configures_logging(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)

        with patch.object(google_oauth, "load_dotenv"), patch.object(google_oauth.logging, "basicConfig") as basic:
            google_oauth.main()
        basic.assert_called_once_with(level="DEBUG")
