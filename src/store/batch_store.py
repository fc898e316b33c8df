"""Committed record batch store.

This module is the bulk loader: it persists one flattened source
file as an immutable batch and exposes catalogued batches to readers.
"""

from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

from core.config import SluiceConfig
from core.constants import BATCHES_DIR_NAME, CATALOG_FILE_NAME, STAGING_DIR_PREFIX
from core.errors import SluiceStoreError
from core.logging_config import get_logger
from core.types import BatchManifest, BatchWriteRequest, FlatRecord
from store.catalog_io import (
    build_batch_id,
    manifest_from_dict,
    read_catalog_file,
    update_catalog,
    write_manifest_file,
)
from store.lance_dataset import read_batch_payload, write_batch_payload

_LOGGER = get_logger(__name__)


class BatchStore:
    """Filesystem batch store with all-or-nothing commits.

    A batch is written into a staging directory, renamed into place,
    and only then appended to the catalog. Readers see catalogued
    batches only, so a failed commit leaves nothing visible.
    """

    def __init__(self, config: SluiceConfig) -> None:
        """Initialize batch store from config.

        Args:
            config: Runtime configuration.
        """
        self._batches_root = config.data_root / BATCHES_DIR_NAME
        self._batches_root.mkdir(parents=True, exist_ok=True)

    def commit_batch(self, request: BatchWriteRequest) -> BatchManifest | None:
        """Commit a full record batch as one logical write.

        Args:
            request: Batch write request payload.

        Returns:
            The committed manifest, or ``None`` when nothing was committed.
        """
        try:
            manifest = self._write_batch(request)
        except SluiceStoreError as error:
            _LOGGER.error(
                "batch_commit_failed",
                source_filename=request.source_filename,
                record_count=len(request.records),
                error=str(error),
            )
            return None
        _LOGGER.info(
            "batch_committed",
            source_filename=manifest.source_filename,
            batch_id=manifest.batch_id,
            record_count=manifest.record_count,
            lance_written=manifest.lance_written,
        )
        return manifest

    def list_batches(self) -> list[BatchManifest]:
        """List committed batch manifests sorted by creation time.

        Returns:
            Ordered manifest list, empty before the first commit.

        Raises:
            SluiceStoreError: If the catalog is unreadable.
        """
        catalog_path = self._catalog_path()
        if not catalog_path.exists():
            return []
        catalog = read_catalog_file(catalog_path)
        batch_payloads = cast(list[dict[str, Any]], catalog["batches"])
        manifests = [manifest_from_dict(item) for item in batch_payloads]
        return sorted(manifests, key=lambda item: item.created_at)

    def load_records(
        self,
        batch_id: str | None = None,
    ) -> tuple[BatchManifest, list[FlatRecord]]:
        """Load records for a committed batch.

        Args:
            batch_id: Optional batch id; latest when omitted.

        Returns:
            Pair of manifest and loaded records.

        Raises:
            SluiceStoreError: If no batch matches.
        """
        manifest = self._resolve_manifest(batch_id)
        batch_dir = self._batches_root / manifest.batch_id
        if not batch_dir.exists():
            raise SluiceStoreError(
                f"Missing batch directory for {manifest.batch_id} at {batch_dir}. "
                "Clear the ledger entry and re-import the source file."
            )
        return manifest, read_batch_payload(batch_dir)

    def _write_batch(self, request: BatchWriteRequest) -> BatchManifest:
        """Stage, publish, and catalog one batch, undoing partial work."""
        batch_id = build_batch_id(request.source_filename, request.records)
        staging_dir = self._batches_root / f"{STAGING_DIR_PREFIX}{batch_id}"
        batch_dir = self._batches_root / batch_id
        published = False
        try:
            staging_dir.mkdir(parents=True, exist_ok=False)
            lance_written = write_batch_payload(staging_dir, list(request.records))
            manifest = BatchManifest(
                batch_id=batch_id,
                source_filename=request.source_filename,
                created_at=datetime.now(timezone.utc),
                record_count=len(request.records),
                lance_written=lance_written,
            )
            write_manifest_file(staging_dir, manifest)
            staging_dir.rename(batch_dir)
            published = True
            update_catalog(self._catalog_path(), manifest)
        except Exception as error:
            _remove_directory(staging_dir)
            if published:
                _remove_directory(batch_dir)
            if isinstance(error, SluiceStoreError):
                raise
            raise SluiceStoreError(
                f"Failed to commit batch {batch_id} for {request.source_filename}: {error}. "
                "No records were committed; retry the import."
            ) from error
        return manifest

    def _resolve_manifest(self, batch_id: str | None) -> BatchManifest:
        manifests = self.list_batches()
        if not manifests:
            raise SluiceStoreError(
                "No batches have been committed. Import a source file first."
            )
        if batch_id is None:
            return manifests[-1]
        for manifest in manifests:
            if manifest.batch_id == batch_id:
                return manifest
        raise SluiceStoreError(
            f"Batch '{batch_id}' not found. Use list_batches to discover valid batch ids."
        )

    def _catalog_path(self) -> Path:
        return self._batches_root / CATALOG_FILE_NAME


def _remove_directory(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path, ignore_errors=True)
