"""Tests for the CLI entry point."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from vela_slack.__main__ import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    configure_logging,
    create_parser,
    main,
    print_banner,
    run_config_check,
    run_plugin,
    validate_config,
)
from vela_slack.errors import ConfigurationError, TransportError

WEBHOOK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove plugin variables inherited from the environment."""
    for name in (
        "PARAMETER_WEBHOOK",
        "SLACK_WEBHOOK",
        "PARAMETER_TEXT",
        "SLACK_TEXT",
        "PARAMETER_FILEPATH",
        "SLACK_FILEPATH",
        "PARAMETER_DRY_RUN",
        "SLACK_DRY_RUN",
        "PARAMETER_LOG_LEVEL",
        "SLACK_LOG_LEVEL",
        "VELA_BUILD_NUMBER",
        "BUILD_NUMBER",
    ):
        monkeypatch.delenv(name, raising=False)


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_has_version(self):
        """Parser should have version flag."""
        parser = create_parser()
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_parser_config_check(self):
        """Parser should accept --config-check flag."""
        parser = create_parser()
        args = parser.parse_args(["--config-check"])
        assert args.config_check is True

    def test_parser_log_level(self):
        """Parser should accept --log-level option."""
        parser = create_parser()
        args = parser.parse_args(["--log-level", "DEBUG"])
        assert args.log_level == "DEBUG"

    def test_parser_dry_run(self):
        """Parser should accept --dry-run flag."""
        parser = create_parser()
        args = parser.parse_args(["--dry-run"])
        assert args.dry_run is True

    def test_parser_default_values(self):
        """Parser should have correct defaults."""
        parser = create_parser()
        args = parser.parse_args([])
        assert args.config_check is False
        assert args.log_level is None
        assert args.dry_run is False


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_logging_info(self):
        """Should configure logging at INFO level."""
        configure_logging("INFO")
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_debug(self):
        """Should configure logging at DEBUG level."""
        configure_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_http_client_logs_quieted(self):
        """HTTP client libraries should only log warnings."""
        configure_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestPrintBanner:
    """Tests for banner printing."""

    def test_banner_contains_app_name(self, capsys):
        """Banner should contain application name."""
        print_banner()
        captured = capsys.readouterr()
        assert "Vela Slack Plugin" in captured.out

    def test_banner_contains_version(self, capsys):
        """Banner should contain version."""
        print_banner()
        captured = capsys.readouterr()
        assert "v0.1.0" in captured.out


class TestValidateConfig:
    """Tests for configuration validation."""

    def test_validate_config_success(self, monkeypatch):
        """Should return settings on valid config."""
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)

        settings = validate_config()
        assert settings is not None

    def test_validate_config_failure(self, monkeypatch, capsys):
        """Should return None on invalid config."""
        monkeypatch.setenv("VELA_BUILD_NUMBER", "forty-two")

        settings = validate_config()
        assert settings is None

        captured = capsys.readouterr()
        assert "Configuration validation failed" in captured.err


class TestRunConfigCheck:
    """Tests for config check mode."""

    def test_config_check_prints_summary(self, monkeypatch, capsys):
        """Config check should print configuration summary."""
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)
        monkeypatch.setenv("PARAMETER_TEXT", "hello")

        settings = validate_config()
        assert settings is not None

        result = run_config_check(settings)
        assert result == EXIT_SUCCESS

        captured = capsys.readouterr()
        assert "Configuration is valid!" in captured.out
        assert "Configuration:" in captured.out
        assert WEBHOOK_URL not in captured.out

    def test_config_check_without_webhook(self, monkeypatch, capsys):
        """Config check should fail when no webhook is set."""
        monkeypatch.setenv("PARAMETER_TEXT", "hello")

        settings = validate_config()
        assert settings is not None

        assert run_config_check(settings) == EXIT_CONFIG_ERROR
        assert "Webhook: not configured" in capsys.readouterr().err

    def test_config_check_without_message(self, monkeypatch, capsys):
        """Config check should fail without text or attachment file."""
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)

        settings = validate_config()
        assert settings is not None

        assert run_config_check(settings) == EXIT_CONFIG_ERROR
        assert "no text or attachment file" in capsys.readouterr().err


class TestRunPlugin:
    """Tests for plugin execution and exit codes."""

    @pytest.fixture
    def settings(self, monkeypatch):
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)
        monkeypatch.setenv("PARAMETER_TEXT", "hello")
        settings = validate_config()
        assert settings is not None
        return settings

    @patch("vela_slack.__main__.Plugin")
    def test_success(self, mock_plugin_class, settings):
        """A delivered message exits successfully."""
        assert run_plugin(settings, dry_run=False) == EXIT_SUCCESS
        mock_plugin_class.from_settings.return_value.execute.assert_called_once_with(
            dry_run=False
        )

    @patch("vela_slack.__main__.Plugin")
    def test_configuration_error(self, mock_plugin_class, settings):
        """Configuration errors exit with the config error code."""
        mock_plugin_class.from_settings.side_effect = ConfigurationError("no webhook provided")
        assert run_plugin(settings, dry_run=False) == EXIT_CONFIG_ERROR

    @patch("vela_slack.__main__.Plugin")
    def test_plugin_error(self, mock_plugin_class, settings):
        """Runtime failures exit with the error code."""
        mock_plugin = mock_plugin_class.from_settings.return_value
        mock_plugin.execute.side_effect = TransportError("unable to post webhook message")
        assert run_plugin(settings, dry_run=False) == EXIT_ERROR

    @patch("vela_slack.__main__.Plugin")
    def test_interrupted(self, mock_plugin_class, settings):
        """Keyboard interrupts exit with 130."""
        mock_plugin_class.from_settings.return_value.execute.side_effect = KeyboardInterrupt
        assert run_plugin(settings, dry_run=False) == EXIT_INTERRUPTED


class TestMain:
    """Tests for main entry point."""

    def test_main_with_config_check(self, monkeypatch):
        """Main should exit successfully with --config-check."""
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)
        monkeypatch.setenv("PARAMETER_TEXT", "hello")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config-check"])

        assert exc_info.value.code == EXIT_SUCCESS

    def test_main_with_invalid_config(self, monkeypatch):
        """Main should exit with config error on invalid config."""
        monkeypatch.setenv("VELA_BUILD_NUMBER", "forty-two")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_without_webhook(self, monkeypatch):
        """Main should exit with config error when no webhook is set."""
        monkeypatch.setenv("PARAMETER_TEXT", "hello")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == EXIT_CONFIG_ERROR

    @patch("vela_slack.__main__.run_plugin")
    def test_main_runs_plugin(self, mock_run_plugin, monkeypatch):
        """Main should run the plugin when not in config-check mode."""
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)
        monkeypatch.setenv("PARAMETER_TEXT", "hello")
        mock_run_plugin.return_value = EXIT_SUCCESS

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == EXIT_SUCCESS
        _, dry_run = mock_run_plugin.call_args.args
        assert dry_run is False

    @patch("vela_slack.__main__.run_plugin")
    def test_main_dry_run_from_env(self, mock_run_plugin, monkeypatch):
        """Dry run can be enabled through the environment."""
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)
        monkeypatch.setenv("PARAMETER_TEXT", "hello")
        monkeypatch.setenv("PARAMETER_DRY_RUN", "true")
        mock_run_plugin.return_value = EXIT_SUCCESS

        with pytest.raises(SystemExit):
            main([])

        _, dry_run = mock_run_plugin.call_args.args
        assert dry_run is True


class TestIntegration:
    """Integration tests for CLI invocation."""

    def test_cli_help_option(self, capsys):
        """CLI should display help with -h option."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-h"])

        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert "vela-slack" in captured.out
        assert "--config-check" in captured.out
        assert "--dry-run" in captured.out
        assert "--log-level" in captured.out

    def test_cli_version_option(self, capsys):
        """CLI should display version with --version option."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert "0.1.0" in captured.out

    def test_cli_invalid_log_level(self, capsys):
        """CLI should reject invalid log level."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--log-level", "INVALID"])

        assert exc_info.value.code != 0
        captured = capsys.readouterr()
        assert "invalid choice" in captured.err

    def test_cli_posts_message(self, monkeypatch):
        """A full run posts the rendered text to the webhook."""
        monkeypatch.setenv("PARAMETER_WEBHOOK", WEBHOOK_URL)
        monkeypatch.setenv("PARAMETER_TEXT", "Build {{ .BuildNumber }} finished")
        monkeypatch.setenv("VELA_BUILD_NUMBER", "42")

        with patch("httpx.Client") as mock_client_class:
            mock_client = mock_client_class.return_value.__enter__.return_value
            mock_client.post.return_value.is_success = True

            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == EXIT_SUCCESS
        mock_client.post.assert_called_once_with(
            WEBHOOK_URL, json={"text": "Build 42 finished"}
        )
