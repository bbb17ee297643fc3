"""Command-line entry point.

Usage:
    nightly-bugs <release_number> [--dry-run|-n]

Example:
    nightly-bugs 147
    nightly-bugs 147 --dry-run

Exit status is 0 on success (dry runs included) and 1 on any usage,
network or upstream error.
"""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from collections.abc import Sequence

from nightly_bugs.config import PipelineConfig
from nightly_bugs.console import Reporter
from nightly_bugs.errors import ConfigError, NightlyBugsError, UsageError
from nightly_bugs.logging_config import setup_logging
from nightly_bugs.pipeline import NightlyBugPipeline

USAGE = "%(prog)s <release_number> [--dry-run|-n]"


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with 2."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=prog,
        usage=USAGE,
        description="Collect Bugzilla metadata for every bug landed in a Firefox Nightly cycle.",
    )
    parser.add_argument("release_number", help="Nightly release number, e.g. 147")
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Stop after extracting bug IDs (no Bugzilla queries, no output file)",
    )
    parser.add_argument("--data-dir", help="Directory for the raw push log (default: data)")
    parser.add_argument(
        "--output-dir", help="Directory for the bug JSON (default: <data-dir>/output)"
    )
    parser.add_argument(
        "--delay", type=float, help="Seconds to wait between Bugzilla requests (default: 2)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr")
    return parser


def parse_release_number(value: str) -> int:
    """Validate the positional argument: digits only, and at least 2.

    Raises:
        UsageError: If ``value`` is not a plain non-negative integer or is < 2
    """
    if not re.fullmatch(r"[0-9]+", value):
        raise UsageError(f"Error: <release_number> must be numeric. Got '{value}'.")
    number = int(value)
    if number < 2:
        raise UsageError("Error: release_number must be >= 2 (we need the previous Nightly tag).")
    return number


def configure_logging(level: str) -> None:
    """Set up logging on stderr, rejecting unknown level names.

    Raises:
        ConfigError: If ``level`` is not a standard logging level
    """
    if level.upper() not in logging.getLevelNamesMapping():
        raise ConfigError(f"Invalid log level '{level}' (LOG_LEVEL)")
    setup_logging(log_level=level, stream=sys.stderr)


def main(argv: Sequence[str] | None = None, reporter: Reporter | None = None) -> int:
    """Run the tool and return the process exit status."""
    reporter = reporter or Reporter()
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
        release_number = parse_release_number(args.release_number)
    except UsageError as exc:
        reporter.error(str(exc))
        reporter.error("Usage: " + parser.format_usage().split(":", 1)[1].strip(), style="yellow")
        reporter.error(f"Example: {parser.prog} 147", style="yellow")
        return 1

    level = "DEBUG" if args.verbose else os.environ.get("LOG_LEVEL", "WARNING")

    try:
        configure_logging(level)
        config = PipelineConfig.from_env(
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            batch_delay=args.delay,
        )
        NightlyBugPipeline(config, reporter).run(release_number, dry_run=args.dry_run)
    except NightlyBugsError as exc:
        message = str(exc)
        if not message.startswith("Error"):
            message = "Error: " + message
        reporter.error(message)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
