"""Imported source file ledger.

This module keeps an append-only log of source filenames whose
records were committed, gating each file to a single import.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from core.constants import LEDGER_DIR_NAME, LEDGER_FILE_NAME
from core.errors import SluiceLedgerError
from core.logging_config import get_logger
from core.types import LedgerEntry

_LOGGER = get_logger(__name__)


class ImportLedger:
    """Filesystem-backed JSONL ledger keyed by source filename.

    Read faults are reported as "already imported" so an unreadable
    ledger never causes a duplicate load.
    """

    def __init__(self, data_root: Path) -> None:
        self._ledger_path = data_root / LEDGER_DIR_NAME / LEDGER_FILE_NAME

    def has_been_imported(self, filename: str) -> bool:
        """Return whether ``filename`` was already imported.

        Args:
            filename: Provider source filename.

        Returns:
            ``True`` when logged, and also when the ledger cannot be read.
        """
        try:
            imported = any(entry.filename == filename for entry in self.list_entries())
        except SluiceLedgerError as error:
            _LOGGER.error(
                "ledger_check_failed",
                filename=filename,
                error=str(error),
                assumed_imported=True,
            )
            return True
        if imported:
            _LOGGER.info("ledger_entry_found", filename=filename)
        return imported

    def record_imported(self, filename: str) -> bool:
        """Append ``filename`` as durably imported.

        Call only after the file's batch commit succeeded. A failed
        write is logged and leaves the committed batch in place.

        Args:
            filename: Provider source filename.

        Returns:
            Whether the entry was written.
        """
        entry = LedgerEntry(filename=filename, imported_at=datetime.now(timezone.utc))
        try:
            self._append_entry(entry)
        except SluiceLedgerError as error:
            _LOGGER.error("ledger_write_failed", filename=filename, error=str(error))
            return False
        _LOGGER.info("ledger_entry_written", filename=filename)
        return True

    def list_entries(self) -> list[LedgerEntry]:
        """Read all ledger entries in append order.

        Raises:
            SluiceLedgerError: If the ledger file is unreadable or corrupt.
        """
        try:
            if not self._ledger_path.exists():
                return []
            text = self._ledger_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as error:
            raise SluiceLedgerError(
                f"Failed to read import ledger at {self._ledger_path}: {error}."
            ) from error
        entries: list[LedgerEntry] = []
        for line_number, line in enumerate(text.splitlines(), 1):
            if not line.strip():
                continue
            entries.append(self._parse_entry(line, line_number))
        return entries

    def clear_entry(self, filename: str) -> bool:
        """Remove every entry for ``filename`` so it can be imported again.

        This is operator tooling; the import pipeline never calls it.

        Args:
            filename: Provider source filename.

        Returns:
            Whether any entry was removed.

        Raises:
            SluiceLedgerError: If the ledger cannot be read or rewritten.
        """
        entries = self.list_entries()
        kept_entries = [entry for entry in entries if entry.filename != filename]
        if len(kept_entries) == len(entries):
            return False
        lines = [_entry_line(entry) for entry in kept_entries]
        temp_path = self._ledger_path.with_name(self._ledger_path.name + ".tmp")
        try:
            temp_path.write_text("".join(lines), encoding="utf-8")
            temp_path.replace(self._ledger_path)
        except OSError as error:
            raise SluiceLedgerError(
                f"Failed to rewrite import ledger at {self._ledger_path}: {error}."
            ) from error
        _LOGGER.warning("ledger_entry_cleared", filename=filename)
        return True

    def _append_entry(self, entry: LedgerEntry) -> None:
        try:
            self._ledger_path.parent.mkdir(parents=True, exist_ok=True)
            with self._ledger_path.open("a", encoding="utf-8") as ledger_file:
                ledger_file.write(_entry_line(entry))
        except OSError as error:
            raise SluiceLedgerError(
                f"Failed to append to import ledger at {self._ledger_path}: {error}."
            ) from error

    def _parse_entry(self, line: str, line_number: int) -> LedgerEntry:
        try:
            payload = json.loads(line)
            return LedgerEntry(
                filename=str(payload["filename"]),
                imported_at=datetime.fromisoformat(str(payload["imported_at"])),
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as error:
            raise SluiceLedgerError(
                f"Invalid import ledger entry at {self._ledger_path}:{line_number}: {error}. "
                "Repair or remove the line before importing."
            ) from error


def _entry_line(entry: LedgerEntry) -> str:
    payload = {"filename": entry.filename, "imported_at": entry.imported_at.isoformat()}
    return json.dumps(payload, sort_keys=True) + "\n"
