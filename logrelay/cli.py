"""
Logrelay CLI - Command line interface for the relay and its collaborators.

Modes:
- write: append a timestamped entry to the log file
- watch: watch the log file and broadcast its content on changes
- dashboard: receive broadcasts and print them
"""

import argparse
import faulthandler
import signal
import sys
from collections.abc import Callable
from typing import Any

import yaml

from logrelay.config import Config, load_config
from logrelay.dashboard import create_dashboard_loop
from logrelay.errors import RelayError
from logrelay.logging_config import get_logger, setup_logging
from logrelay.relay import create_relay_loop
from logrelay.writer import write_entry

logger = get_logger(__name__)


def cmd_write(config: Config) -> int:
    """Write a log entry."""
    try:
        write_entry(config.log_file)
    except OSError as e:
        print(f"Failed to write log entry: {e}", file=sys.stderr)
        return 1

    print(f"Log entry written successfully to {config.log_file}")
    return 0


def cmd_watch(config: Config) -> int:
    """Watch the log file and send D-Bus signals on changes."""
    try:
        loop = create_relay_loop(config)
    except RelayError as e:
        logger.error("Cannot start relay: %s", e)
        return 1

    _install_signal_handlers()
    try:
        published = loop.run()
    except RelayError:
        logger.critical("Relay stopped on fatal error", exc_info=True)
        return 1

    logger.info("Relay stopped after %d publish(es)", published)
    return 0


def cmd_dashboard(config: Config) -> int:
    """Receive D-Bus signals and print log messages."""
    try:
        loop = create_dashboard_loop(config)
    except RelayError as e:
        logger.error("Cannot start dashboard: %s", e)
        return 1

    _install_signal_handlers()
    try:
        received = loop.run()
    except RelayError:
        logger.critical("Dashboard stopped on fatal error", exc_info=True)
        return 1

    logger.info("Dashboard stopped after %d message(s)", received)
    return 0


MODES: dict[str, Callable[[Config], int]] = {
    "write": cmd_write,
    "watch": cmd_watch,
    "dashboard": cmd_dashboard,
}


def _install_signal_handlers() -> None:
    """Exit cleanly on SIGINT/SIGTERM; loops release their handles on the way out."""
    def signal_handler(_sig: int, _frame: Any) -> None:
        logger.info("Shutdown signal received")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def _enable_crash_traces() -> None:
    """Dump a traceback of every thread to stderr on SIGSEGV, SIGFPE, SIGABRT, SIGBUS or SIGILL."""
    if sys.__stderr__ is not None:
        faulthandler.enable(file=sys.__stderr__, all_threads=True)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="logrelay",
        description="Logrelay - relay appended log content over D-Bus",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "modes:\n"
            "  write      Write a log entry\n"
            "  watch      Watch log file and send D-Bus signals on changes\n"
            "  dashboard  Receive D-Bus signals and print log messages"
        )
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file (built-in defaults if not specified)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: from config, INFO)"
    )
    parser.add_argument(
        "--log-file",
        help="Optional log file for diagnostics (stderr only if not specified)"
    )
    parser.add_argument("mode", choices=sorted(MODES), help="Mode of operation")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    setup_logging(
        level=args.log_level or config.logging.level,
        log_file=args.log_file or config.logging.file
    )
    _enable_crash_traces()

    return MODES[args.mode](config)


if __name__ == '__main__':
    sys.exit(main())
