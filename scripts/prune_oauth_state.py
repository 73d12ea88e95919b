"""Maintenance tool for the OAuth state table.

OAuth attempts that were started but never completed stay in the database
until they are pruned. ``create`` prunes opportunistically; this tool lets an
operator (or a cron job) do it explicitly.

Example usages::

    # Remove expired attempts from the configured database.
    python -m scripts.prune_oauth_state prune

    # Report how many attempts are currently stored in a specific database.
    python -m scripts.prune_oauth_state count --db-path /var/lib/skillsync/app.db
"""

from __future__ import annotations

import argparse
import sys
from typing import Callable

from pydantic import ValidationError

from skillsync.core.config import AppSettings
from skillsync.services.oauth_state import OAuthStateStore

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def _resolve_db_path(db_path: str | None) -> str:
    if db_path:
        return db_path
    return AppSettings().database_path  # type: ignore[call-arg]


def _prune(store: OAuthStateStore) -> int:
    removed = store.prune_expired()
    print(f"Removed {removed} expired OAuth attempt(s).")
    return EXIT_OK


def _count(store: OAuthStateStore) -> int:
    print(f"{store.count()} OAuth attempt(s) stored.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and prune stored OAuth attempts.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_arguments(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--db-path",
            default=None,
            help="SQLite database path (default: DATABASE_PATH from settings).",
        )

    add_common_arguments(
        subparsers.add_parser("prune", help="Delete expired, never-consumed attempts.")
    )
    add_common_arguments(
        subparsers.add_parser("count", help="Print the number of stored attempts.")
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        store = OAuthStateStore(_resolve_db_path(args.db_path))
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unable to open OAuth state store: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "prune": lambda: _prune(store),
        "count": lambda: _count(store),
    }
    try:
        return handlers[args.command]()
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
