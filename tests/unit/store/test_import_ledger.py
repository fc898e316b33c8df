"""Unit tests for the imported-file ledger."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.constants import LEDGER_DIR_NAME, LEDGER_FILE_NAME
from core.errors import SluiceLedgerError
from store.import_ledger import ImportLedger


def test_has_been_imported_is_false_for_empty_ledger(tmp_path: Path) -> None:
    """A ledger with no file should report nothing imported."""
    ledger = ImportLedger(tmp_path)

    imported = ledger.has_been_imported("ci_20210501_001.zip")

    assert imported is False


def test_record_imported_marks_file_as_imported(tmp_path: Path) -> None:
    """A recorded filename should be reported as imported."""
    ledger = ImportLedger(tmp_path)

    written = ledger.record_imported("ci_20210501_001.zip")

    assert written is True
    assert ledger.has_been_imported("ci_20210501_001.zip") is True
    assert ledger.has_been_imported("ci_20210501_002.zip") is False


def test_has_been_imported_fails_safe_for_corrupt_ledger(tmp_path: Path) -> None:
    """An unreadable entry should be treated as already imported."""
    ledger_path = tmp_path / LEDGER_DIR_NAME / LEDGER_FILE_NAME
    ledger_path.parent.mkdir(parents=True)
    ledger_path.write_text("{broken\n", encoding="utf-8")
    ledger = ImportLedger(tmp_path)

    imported = ledger.has_been_imported("ci_20210501_001.zip")

    assert imported is True


def test_has_been_imported_fails_safe_for_undecodable_ledger(tmp_path: Path) -> None:
    """Ledger bytes that are not UTF-8 should be treated as already imported."""
    ledger_path = tmp_path / LEDGER_DIR_NAME / LEDGER_FILE_NAME
    ledger_path.parent.mkdir(parents=True)
    ledger_path.write_bytes(b"\xff\xfe garbage\n")
    ledger = ImportLedger(tmp_path)

    imported = ledger.has_been_imported("ci_20210501_001.zip")

    assert imported is True


def test_list_entries_raises_ledger_error_for_undecodable_ledger(tmp_path: Path) -> None:
    """Undecodable ledger content should surface as a ledger error."""
    ledger_path = tmp_path / LEDGER_DIR_NAME / LEDGER_FILE_NAME
    ledger_path.parent.mkdir(parents=True)
    ledger_path.write_bytes(b"\xff\xfe garbage\n")

    with pytest.raises(SluiceLedgerError):
        ImportLedger(tmp_path).list_entries()

    assert ledger_path.exists()


def test_has_been_imported_fails_safe_for_unreadable_ledger(tmp_path: Path) -> None:
    """A ledger path that cannot be read as a file should fail safe."""
    (tmp_path / LEDGER_DIR_NAME / LEDGER_FILE_NAME).mkdir(parents=True)
    ledger = ImportLedger(tmp_path)

    imported = ledger.has_been_imported("ci_20210501_001.zip")

    assert imported is True


def test_record_imported_reports_write_failure(tmp_path: Path) -> None:
    """A ledger directory blocked by a file should report a failed write."""
    (tmp_path / LEDGER_DIR_NAME).write_text("occupied", encoding="utf-8")
    ledger = ImportLedger(tmp_path)

    written = ledger.record_imported("ci_20210501_001.zip")

    assert written is False


def test_list_entries_preserves_append_order(tmp_path: Path) -> None:
    """Entries should be listed in the order they were recorded."""
    ledger = ImportLedger(tmp_path)
    ledger.record_imported("ci_20210501_002.zip")
    ledger.record_imported("ci_20210501_001.zip")

    entries = ledger.list_entries()

    assert [entry.filename for entry in entries] == [
        "ci_20210501_002.zip",
        "ci_20210501_001.zip",
    ]


def test_list_entries_raises_for_corrupt_line(tmp_path: Path) -> None:
    """Direct listing should surface ledger corruption."""
    ledger_path = tmp_path / LEDGER_DIR_NAME / LEDGER_FILE_NAME
    ledger_path.parent.mkdir(parents=True)
    ledger_path.write_text('{"filename": "ci_20210501_001.zip"}\n', encoding="utf-8")

    with pytest.raises(SluiceLedgerError):
        ImportLedger(tmp_path).list_entries()

    assert ledger_path.exists()


def test_clear_entry_allows_reimport(tmp_path: Path) -> None:
    """Clearing an entry should make the file importable again."""
    ledger = ImportLedger(tmp_path)
    ledger.record_imported("ci_20210501_001.zip")
    ledger.record_imported("ci_20210501_002.zip")

    cleared = ledger.clear_entry("ci_20210501_001.zip")

    assert cleared is True
    assert [entry.filename for entry in ledger.list_entries()] == ["ci_20210501_002.zip"]


def test_clear_entry_reports_missing_filename(tmp_path: Path) -> None:
    """Clearing an unknown filename should report that nothing was removed."""
    ledger = ImportLedger(tmp_path)

    cleared = ledger.clear_entry("ci_20210501_001.zip")

    assert cleared is False
