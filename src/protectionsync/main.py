#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import os
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from protectionsync.app import sync_branch_protection
from protectionsync.config import (
    ConfigurationError,
    configure_logging,
    get_github_config,
    get_sync_config,
)
from protectionsync.domain.errors import FatalSyncError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_FATAL = 1
EXIT_CANCELLED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protection-sync",
        description=(
            "Apply the branch protection of a source repository to all repositories "
            "of a GitHub organization or user"
        ),
    )
    parser.add_argument("-o", "--owner", required=True, help="GitHub organization or user")
    parser.add_argument(
        "-r",
        "--repo",
        required=True,
        help="Source repository whose default-branch protection is copied",
    )
    parser.add_argument(
        "-t",
        "--token",
        default=None,
        help="GitHub token for authentication (defaults to $GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="GitHub API root, e.g. for GitHub Enterprise Server (defaults to $GITHUB_API_URL)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="NAME",
        help="Repository name to leave untouched (repeatable)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when any repository failed",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        help="Logging verbosity (default: %(default)s)",
    )
    return parser


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = _build_parser()
    args = parser.parse_args(list(argv))
    if args.token is None:
        args.token = os.getenv("GITHUB_TOKEN")
    if not args.token or not args.token.strip():
        parser.error("the following arguments are required: -t/--token")
    return args


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=parsed_args.log_level, force=True)

    try:
        report = sync_branch_protection(
            owner=parsed_args.owner,
            source_repo=parsed_args.repo,
            github=get_github_config(token=parsed_args.token, api_url=parsed_args.api_url),
            sync=get_sync_config(excluded_repositories=tuple(parsed_args.exclude)),
        )
    except (FatalSyncError, ConfigurationError) as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(EXIT_FATAL)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(EXIT_FATAL)

    if report.cancelled:
        sys.exit(EXIT_CANCELLED)
    if parsed_args.strict and report.failed:
        sys.exit(EXIT_FATAL)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) outside of the sync loop."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(EXIT_CANCELLED)


def cli() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    cli()
