"""Catalog and manifest persistence helpers.

This module isolates JSON catalog IO and batch id generation.
It keeps batch store orchestration focused on the commit flow.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

from core.constants import MANIFEST_FILE_NAME
from core.errors import SluiceStoreError
from core.types import BatchManifest, FlatRecord


def build_batch_id(source_filename: str, records: tuple[FlatRecord, ...]) -> str:
    """Build a unique batch id from the source file and records.

    Args:
        source_filename: Provider filename.
        records: Batch records.

    Returns:
        Batch id string.
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    digest_seed = "|".join(
        f"{record.message_id}:{record.topic_id}:{record.topic_name}" for record in records
    )
    digest = hashlib.sha256(digest_seed.encode("utf-8")).hexdigest()[:10]
    stem = Path(source_filename).stem
    return f"{stem}-{timestamp}-{digest}"


def manifest_to_dict(manifest: BatchManifest) -> dict[str, Any]:
    """Serialize a manifest into a JSON-safe dictionary."""
    return {
        "batch_id": manifest.batch_id,
        "source_filename": manifest.source_filename,
        "created_at": manifest.created_at.isoformat(),
        "record_count": manifest.record_count,
        "lance_written": manifest.lance_written,
    }


def manifest_from_dict(payload: dict[str, Any]) -> BatchManifest:
    """Deserialize manifest payload from dictionary.

    Args:
        payload: Manifest dictionary.

    Returns:
        Typed batch manifest.
    """
    return BatchManifest(
        batch_id=str(payload["batch_id"]),
        source_filename=str(payload["source_filename"]),
        created_at=datetime.fromisoformat(str(payload["created_at"])),
        record_count=int(payload["record_count"]),
        lance_written=bool(payload.get("lance_written", False)),
    )


def write_manifest_file(batch_dir: Path, manifest: BatchManifest) -> None:
    """Write per-batch manifest file.

    Args:
        batch_dir: Batch directory.
        manifest: Manifest payload.
    """
    manifest_path = batch_dir / MANIFEST_FILE_NAME
    manifest_path.write_text(
        json.dumps(manifest_to_dict(manifest), indent=2) + "\n", encoding="utf-8"
    )


def update_catalog(catalog_path: Path, manifest: BatchManifest) -> None:
    """Append manifest entry to the batch catalog.

    The catalog is replaced through a temporary file so a failed write
    never leaves a truncated catalog behind.

    Args:
        catalog_path: Catalog JSON path.
        manifest: Manifest to append.
    """
    if catalog_path.exists():
        catalog = read_catalog_file(catalog_path)
    else:
        catalog = {"latest_batch": None, "batches": []}
    batches = cast(list[dict[str, Any]], catalog["batches"])
    batches.append(manifest_to_dict(manifest))
    catalog["latest_batch"] = manifest.batch_id
    temp_path = catalog_path.with_name(catalog_path.name + ".tmp")
    temp_path.write_text(json.dumps(catalog, indent=2) + "\n", encoding="utf-8")
    temp_path.replace(catalog_path)


def read_catalog_file(catalog_path: Path) -> dict[str, Any]:
    """Read and validate batch catalog payload.

    Args:
        catalog_path: Catalog JSON path.

    Returns:
        Parsed catalog object.

    Raises:
        SluiceStoreError: If catalog is missing or invalid.
    """
    if not catalog_path.exists():
        raise SluiceStoreError(
            f"Batch catalog not found at {catalog_path}. "
            "Import a source file before listing batches."
        )
    try:
        payload = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as error:
        raise SluiceStoreError(
            f"Failed to read batch catalog at {catalog_path}: {error}. "
            "Rebuild the catalog from the batch manifests."
        ) from error
    except json.JSONDecodeError as error:
        raise SluiceStoreError(
            f"Failed to parse batch catalog at {catalog_path}: {error.msg}. "
            "Rebuild the catalog from the batch manifests."
        ) from error
    if not isinstance(payload, dict) or not isinstance(payload.get("batches"), list):
        raise SluiceStoreError(
            f"Failed to parse batch catalog at {catalog_path}: "
            "expected a JSON object with a 'batches' list. Rebuild the catalog."
        )
    return payload
