"""Tests for the command line entry point (oauthlogin/cli.py)."""

from unittest.mock import patch

from typer.testing import CliRunner

from conftest import make_settings
from oauthlogin.cli import app

runner = CliRunner()


def test_check_config_reports_configured():
    with patch("oauthlogin.cli.settings", make_settings()):
        result = runner.invoke(app, ["check-config"])

    assert result.exit_code == 0
    assert "is configured" in result.output


def test_check_config_fails_when_incomplete():
    with patch("oauthlogin.cli.settings", make_settings(OAUTHLOGIN_CLIENT_SECRET=None)):
        result = runner.invoke(app, ["check-config"])

    assert result.exit_code == 1
