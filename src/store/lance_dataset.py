"""Batch payload persistence helpers.

This module writes batch records to a JSONL file and, when pyarrow
and lance are installed, to an Apache Lance columnar copy.
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any

from core.constants import LANCE_DIR_NAME, RECORDS_FILE_NAME
from core.errors import SluiceStoreError
from core.types import FlatRecord
from store.record_payload import read_flat_records_jsonl, write_flat_records_jsonl


def write_batch_payload(batch_dir: Path, records: list[FlatRecord]) -> bool:
    """Persist batch records and attempt Lance conversion.

    Args:
        batch_dir: Batch directory.
        records: Records to persist.

    Returns:
        ``True`` when the Lance copy was written, else ``False``.

    Raises:
        SluiceStoreError: If any write fails.
    """
    records_path = batch_dir / RECORDS_FILE_NAME
    try:
        write_flat_records_jsonl(records_path, records)
    except OSError as error:
        raise SluiceStoreError(
            f"Failed to persist batch payload at {records_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    return _try_write_lance_dataset(batch_dir, records)


def read_batch_payload(batch_dir: Path) -> list[FlatRecord]:
    """Load batch records from the JSONL payload file.

    Args:
        batch_dir: Batch directory.

    Returns:
        Parsed records in persisted order.

    Raises:
        SluiceStoreError: If records file is missing or invalid.
    """
    records_path = batch_dir / RECORDS_FILE_NAME
    if not records_path.exists():
        raise SluiceStoreError(
            f"Failed to load batch at {batch_dir}: missing {RECORDS_FILE_NAME}."
        )
    try:
        return read_flat_records_jsonl(records_path)
    except (OSError, ValueError) as error:
        raise SluiceStoreError(
            f"Failed to load batch payload at {records_path}: {error}. "
            "Re-import the source file after clearing its ledger entry."
        ) from error


def _try_write_lance_dataset(batch_dir: Path, records: list[FlatRecord]) -> bool:
    """Attempt to write records to Apache Lance.

    Args:
        batch_dir: Batch directory.
        records: Batch records.

    Returns:
        Whether the Lance copy was written.
    """
    try:
        import lance
        import pyarrow as pa
    except ImportError:
        return False

    if not records:
        return False
    lance_uri = str(batch_dir / LANCE_DIR_NAME)
    try:
        rows = [asdict(record) for record in records]
        table = pa.Table.from_pylist(rows, schema=_schema(pa))
        lance.write_dataset(table, lance_uri, mode="create")
    except Exception as error:
        raise SluiceStoreError(
            f"Failed to write Lance dataset at {lance_uri}: {error}. "
            "Check that record values fit the column types and that lance/pyarrow "
            "versions are compatible, then retry the import."
        ) from error
    return True


def _schema(pa: Any) -> Any:
    """Build the Arrow schema for flat records."""
    timestamp = pa.timestamp("us", tz="UTC")
    return pa.schema(
        [
            ("title", pa.string()),
            ("link", pa.string()),
            ("message_id", pa.string()),
            ("published_on", timestamp),
            ("source_type", pa.string()),
            ("author_name", pa.string()),
            ("author_country", pa.string()),
            ("author_state", pa.string()),
            ("author_city", pa.string()),
            ("author_birth_year", pa.int64()),
            ("author_gender", pa.string()),
            ("klout_score", pa.int64()),
            ("followers_count", pa.int64()),
            ("file_number", pa.string()),
            ("topic_name", pa.string()),
            ("topic_id", pa.int64()),
            ("topic_rank", pa.int64()),
            ("topic_tonality", pa.float64()),
            ("snippet_id", pa.int64()),
            ("snippet_text", pa.string()),
            ("snippet_readability", pa.string()),
            ("snippet_tonality", pa.int64()),
            ("snippet_anchor", pa.string()),
            ("dimension_id", pa.int64()),
            ("dimension_name", pa.string()),
            ("created_at", timestamp),
        ]
    )
