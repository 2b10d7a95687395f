# Tests for config.py and the drivegate CLI.
# Created: 2026-10-10

import logging
from unittest.mock import patch

import pytest

from drivegate.__main__ import main
from drivegate.config import Settings


class TestSettings:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DRIVEGATE_TENANT_MODE", "session")
        monkeypatch.setenv("DRIVEGATE_DRIVE_SCOPES", "scope-a scope-b")
        monkeypatch.setenv("DRIVEGATE_PORT", "8080")

        settings = Settings(_env_file=None)

        assert settings.tenant_mode == "session"
        assert settings.scopes == ["scope-a", "scope-b"]
        assert settings.port == 8080

    def test_redirect_uri_from_base_url(self):
        settings = Settings(_env_file=None, base_url="https://gw.example.com/")
        assert settings.redirect_uri == "https://gw.example.com/auth/callback"
        assert settings.secure_cookies is True

    def test_plain_http_cookies_not_secure(self):
        assert Settings(_env_file=None).secure_cookies is False

    def test_generated_secret_differs_per_instance(self):
        assert Settings(_env_file=None).secret_key != Settings(_env_file=None).secret_key

    def test_load_warns_without_secret(self, monkeypatch, caplog, tmp_path):
        monkeypatch.delenv("DRIVEGATE_SECRET_KEY", raising=False)
        monkeypatch.chdir(tmp_path)
        with caplog.at_level(logging.WARNING, logger="drivegate.config"):
            Settings.load()
        assert "DRIVEGATE_SECRET_KEY not set" in caplog.text

    def test_load_quiet_with_secret(self, monkeypatch, caplog, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DRIVEGATE_SECRET_KEY", "configured")
        with caplog.at_level(logging.WARNING, logger="drivegate.config"):
            settings = Settings.load()
        assert settings.secret_key == "configured"
        assert "DRIVEGATE_SECRET_KEY not set" not in caplog.text

    def test_rejects_unknown_tenant_mode(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, tenant_mode="cookie-jar")


class TestCli:
    @patch("drivegate.api.serve.run_server")
    @patch("drivegate.__main__.setup_logging")
    @patch("drivegate.__main__.get_settings")
    def test_default_is_serve(self, mock_settings, mock_logging, mock_run, settings):
        mock_settings.return_value = settings
        with patch("sys.argv", ["drivegate"]):
            main()

        mock_run.assert_called_once_with(
            mode="serve", host=settings.host, port=settings.port, dev=False
        )
        mock_logging.assert_called_once_with(level="INFO")

    @patch("drivegate.api.serve.run_server")
    @patch("drivegate.__main__.setup_logging")
    @patch("drivegate.__main__.get_settings")
    def test_proxy_with_overrides(self, mock_settings, mock_logging, mock_run, settings):
        mock_settings.return_value = settings
        with patch("sys.argv", ["drivegate", "proxy", "--host", "0.0.0.0", "-p", "9000", "--dev"]):
            main()

        mock_run.assert_called_once_with(mode="proxy", host="0.0.0.0", port=9000, dev=True)
        mock_logging.assert_called_once_with(level="DEBUG")

    @patch("drivegate.api.serve.run_server", side_effect=KeyboardInterrupt)
    @patch("drivegate.__main__.setup_logging")
    @patch("drivegate.__main__.get_settings")
    def test_ctrl_c_exits_cleanly(self, mock_settings, mock_logging, mock_run, settings):
        mock_settings.return_value = settings
        with patch("sys.argv", ["drivegate"]):
            main()
        mock_run.assert_called_once()

    def test_unknown_command(self):
        with patch("sys.argv", ["drivegate", "deploy"]), pytest.raises(SystemExit):
            main()
