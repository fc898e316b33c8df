"""Shared JSONL serialization for FlatRecord payloads.

This module centralizes FlatRecord JSON serialization logic.
It is reused by batch persistence and batch loading.
"""

from __future__ import annotations

import json
from dataclasses import asdict, fields
from datetime import datetime
from pathlib import Path
from typing import Any

from core.types import FlatRecord

_TIMESTAMP_FIELDS = ("published_on", "created_at")


def flat_record_to_payload(record: FlatRecord) -> dict[str, object]:
    """Serialize FlatRecord into JSON-safe payload.

    Args:
        record: Flat record instance.

    Returns:
        Dictionary payload with ISO-8601 timestamps.
    """
    payload: dict[str, object] = asdict(record)
    for field_name in _TIMESTAMP_FIELDS:
        value = payload[field_name]
        payload[field_name] = value.isoformat() if isinstance(value, datetime) else None
    return payload


def flat_record_from_payload(payload: dict[str, Any]) -> FlatRecord:
    """Deserialize JSON payload into FlatRecord.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed FlatRecord.

    Raises:
        ValueError: If a timestamp or required field is invalid.
    """
    known_fields = {item.name for item in fields(FlatRecord)}
    values = {key: value for key, value in payload.items() if key in known_fields}
    for field_name in _TIMESTAMP_FIELDS:
        raw_value = values.get(field_name)
        values[field_name] = datetime.fromisoformat(str(raw_value)) if raw_value else None
    if values.get("published_on") is None:
        raise ValueError("missing published_on timestamp")
    try:
        return FlatRecord(**values)
    except TypeError as error:
        raise ValueError(f"incomplete record payload: {error}") from error


def write_flat_records_jsonl(records_path: Path, records: list[FlatRecord]) -> None:
    """Write FlatRecord list to JSONL file.

    Args:
        records_path: Output JSONL file path.
        records: Records to serialize.
    """
    lines = [json.dumps(flat_record_to_payload(record), sort_keys=True) for record in records]
    records_path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")


def read_flat_records_jsonl(records_path: Path) -> list[FlatRecord]:
    """Read FlatRecord list from JSONL file.

    Args:
        records_path: Input JSONL file path.

    Returns:
        Parsed records.

    Raises:
        ValueError: If JSONL rows are invalid.
    """
    parsed_records: list[FlatRecord] = []
    for line_number, line in enumerate(records_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        payload = _parse_payload_line(line, line_number)
        parsed_records.append(flat_record_from_payload(payload))
    return parsed_records


def _parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Args:
        line: Raw JSONL line.
        line_number: One-based line number.

    Returns:
        Parsed payload dictionary.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at line {line_number}: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload
