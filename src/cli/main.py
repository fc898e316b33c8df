"""Sluice CLI entry points.
This module exposes import, batch, and ledger commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.config import SluiceConfig
from core.logging_config import configure_logging
from core.types import ImportStatus
from store.client_sdk import SluiceClient

_DATE_RE = re.compile(r"^\d{8}$")
_SEQUENCE_RE = re.compile(r"^\d{3}$")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="sluice", description="Sluice feed import CLI")
    parser.add_argument("--data-root", help="Override SLUICE_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    _add_batches_command(subparsers)
    _add_ledger_command(subparsers)
    _add_ledger_clear_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Sluice CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client = _build_client(args.data_root)
    if args.command == "import":
        return _run_import_command(client, args)
    if args.command == "batches":
        return _run_batches_command(client)
    if args.command == "ledger":
        return _run_ledger_command(client)
    if args.command == "ledger-clear":
        return _run_ledger_clear_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> SluiceClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = SluiceConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    configure_logging(config.log_level)
    return SluiceClient(config)


def _run_import_command(client: SluiceClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        ``1`` when any file failed, else ``0``.
    """
    outcomes = client.import_files(
        args.source,
        args.dates,
        args.sequences,
        archiving_enabled=not args.no_archive,
        archive_destination=args.archive_dir,
    )
    for outcome in outcomes:
        print(f"{outcome.filename}\t{outcome.status.value}\t{outcome.record_count}")
    if any(outcome.status is ImportStatus.FAILED for outcome in outcomes):
        return 1
    return 0


def _run_batches_command(client: SluiceClient) -> int:
    """Handle batches command."""
    for manifest in client.list_batches():
        print(
            f"{manifest.batch_id}\t"
            f"{manifest.source_filename}\t"
            f"{manifest.record_count}\t"
            f"{manifest.created_at.isoformat()}"
        )
    return 0


def _run_ledger_command(client: SluiceClient) -> int:
    """Handle ledger command."""
    for entry in client.ledger_entries():
        print(f"{entry.filename}\t{entry.imported_at.isoformat()}")
    return 0


def _run_ledger_clear_command(client: SluiceClient, args: argparse.Namespace) -> int:
    """Handle ledger-clear command.

    Returns:
        ``1`` when no entry matched, else ``0``.
    """
    if client.clear_ledger_entry(args.filename):
        print(f"cleared\t{args.filename}")
        return 0
    print(f"not_found\t{args.filename}")
    return 1


def _date_argument(value: str) -> str:
    if not _DATE_RE.match(value):
        raise argparse.ArgumentTypeError(f"expected YYYYMMDD date, got '{value}'")
    return value


def _sequence_argument(value: str) -> str:
    if not _SEQUENCE_RE.match(value):
        raise argparse.ArgumentTypeError(f"expected three-digit sequence, got '{value}'")
    return value


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import provider source files")
    parser.add_argument("source", help="Base URL, s3://bucket/prefix, or local directory")
    parser.add_argument(
        "--date",
        dest="dates",
        action="append",
        required=True,
        type=_date_argument,
        help="Export date YYYYMMDD; repeat for several dates",
    )
    parser.add_argument(
        "--sequence",
        dest="sequences",
        action="append",
        required=True,
        type=_sequence_argument,
        help="Export sequence NNN; repeat for several sequences",
    )
    archive_group = parser.add_mutually_exclusive_group()
    archive_group.add_argument(
        "--archive-dir",
        help="Retain raw archives here (directory or s3://bucket/prefix)",
    )
    archive_group.add_argument(
        "--no-archive",
        action="store_true",
        help="Do not retain raw archives after import",
    )


def _add_batches_command(subparsers: Any) -> None:
    """Register batches subcommand."""
    subparsers.add_parser("batches", help="List committed record batches")


def _add_ledger_command(subparsers: Any) -> None:
    """Register ledger subcommand."""
    subparsers.add_parser("ledger", help="List imported source files")


def _add_ledger_clear_command(subparsers: Any) -> None:
    """Register ledger-clear subcommand."""
    parser = subparsers.add_parser(
        "ledger-clear",
        help="Remove a ledger entry so the file can be imported again",
    )
    parser.add_argument("filename", help="Provider filename, e.g. ci_20210501_002.zip")
