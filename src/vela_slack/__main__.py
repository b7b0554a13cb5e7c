"""CLI entry point for the Vela Slack plugin.

Usage:
    python -m vela_slack [options]
"""

from __future__ import annotations

import argparse
import logging
import logging.config
import sys
from typing import NoReturn

from pydantic import ValidationError

from vela_slack import __version__
from vela_slack.config import Settings, clear_settings_cache, get_settings
from vela_slack.errors import ConfigurationError, PluginError
from vela_slack.plugin import Plugin

# Application info
APP_NAME = "Vela Slack Plugin"
APP_VERSION = __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="vela-slack",
        description="Vela plugin for sending build notifications to a Slack channel.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from PARAMETER_* and VELA_* environment variables.

Examples:
  python -m vela_slack                     Compose and post the message
  python -m vela_slack --config-check      Validate config and exit
  python -m vela_slack --dry-run           Compose the message without posting
  python -m vela_slack --log-level DEBUG   Enable debug logging
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit without sending",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compose and render the message but don't post it",
    )

    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the plugin.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        # Quieter logging for noisy libraries
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
            "ldap3": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def print_banner() -> None:
    """Print the plugin startup banner."""
    print(f"{APP_NAME} v{APP_VERSION}")
    print("  docs: https://go-vela.github.io/docs/plugins/registry/slack")
    print()


def print_config_summary(settings: Settings, dry_run: bool) -> None:
    """Print a summary of the configuration.

    Args:
        settings: Plugin settings.
        dry_run: Whether dry-run mode is enabled.
    """
    summary = settings.redacted_summary()
    print("Configuration:")
    print(f"  Webhook: {summary['webhook']}")
    print(f"  Channel: {summary['channel']}")
    print(f"  Attachment File: {summary['filepath']}")
    print(f"  Remote: {summary['remote']}")
    print(f"  Registry: {settings.registry.url}")
    print(f"  Log Level: {summary['log_level']}")
    print(f"  Dry Run: {dry_run}")
    print(f"  LDAP: {'enabled' if summary['ldap_enabled'] == 'True' else 'disabled'}")
    print(f"  GitHub: {'enabled' if summary['github_enabled'] == 'True' else 'disabled'}")
    print()


def validate_config() -> Settings | None:
    """Validate and load configuration.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        # Clear cache to force reload
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            msg = error["msg"]
            print(f"  {field}: {msg}", file=sys.stderr)
        return None


def run_config_check(settings: Settings) -> int:
    """Run configuration check and exit.

    Args:
        settings: Validated settings.

    Returns:
        Exit code.
    """
    print("Configuration is valid!")
    print()
    print_config_summary(settings, dry_run=False)

    if not settings.slack.webhook:
        print("  Webhook: not configured", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if not settings.slack.text and not settings.slack.filepath:
        print("  Message: no text or attachment file configured", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print("All checks passed. Ready to run.")
    return EXIT_SUCCESS


def run_plugin(settings: Settings, dry_run: bool) -> int:
    """Build and execute the plugin.

    Args:
        settings: Plugin settings.
        dry_run: Whether to skip posting the message.

    Returns:
        Exit code.
    """
    logger = logging.getLogger("vela_slack")
    logger.info(f"{APP_NAME} starting")

    try:
        plugin = Plugin.from_settings(settings, log=logger)
        plugin.execute(dry_run=dry_run)
        return EXIT_SUCCESS
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR
    except PluginError as e:
        logger.error(f"Plugin failed: {e}")
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Validate configuration first
    settings = validate_config()
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    # Determine effective log level
    log_level = args.log_level or settings.log_level
    configure_logging(log_level)

    print_banner()

    if args.config_check:
        sys.exit(run_config_check(settings))

    dry_run = args.dry_run or settings.dry_run

    exit_code = run_plugin(settings, dry_run)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
