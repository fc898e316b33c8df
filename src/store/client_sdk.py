"""Python SDK for import operations.

This module exposes high-level APIs for importing provider files,
inspecting committed batches, and operating on the import ledger.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Sequence

from core.config import SluiceConfig
from core.types import BatchManifest, FlatRecord, ImportOutcome, ImportRequest, LedgerEntry
from ingest.pipeline import ImportPipelineRunner, build_import_requests
from store.batch_store import BatchStore
from store.import_ledger import ImportLedger


class SluiceClient:
    """Primary SDK entry point for import workflows."""

    def __init__(self, config: SluiceConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or SluiceConfig.from_env()
        self._store = BatchStore(self._config)
        self._ledger = ImportLedger(self._config.data_root)

    @property
    def config(self) -> SluiceConfig:
        """Runtime configuration used by this client."""
        return self._config

    def import_file(self, request: ImportRequest) -> ImportOutcome:
        """Import one provider source file.

        Args:
            request: Import request.

        Returns:
            Terminal import outcome.

        Raises:
            SluiceParseError: If the feed document has malformed values.
        """
        return self._runner().import_one(request)

    def import_files(
        self,
        source_locator: str,
        dates: Sequence[str],
        sequences: Sequence[str],
        archiving_enabled: bool = True,
        archive_destination: str | None = None,
    ) -> list[ImportOutcome]:
        """Import every date and sequence combination in order.

        Args:
            source_locator: Base URL, ``s3://`` prefix, or local directory.
            dates: Export dates.
            sequences: Export sequences tried for every date.
            archiving_enabled: Whether to retain raw archives.
            archive_destination: Optional retention location.

        Returns:
            One outcome per file.
        """
        requests = build_import_requests(
            source_locator,
            dates,
            sequences,
            archiving_enabled=archiving_enabled,
            archive_destination=archive_destination,
        )
        return self._runner().import_many(requests)

    def list_batches(self) -> list[BatchManifest]:
        """List committed batches."""
        return self._store.list_batches()

    def load_records(
        self,
        batch_id: str | None = None,
    ) -> tuple[BatchManifest, list[FlatRecord]]:
        """Load records of one committed batch, latest by default."""
        return self._store.load_records(batch_id)

    def ledger_entries(self) -> list[LedgerEntry]:
        """List imported-file ledger entries."""
        return self._ledger.list_entries()

    def clear_ledger_entry(self, filename: str) -> bool:
        """Remove a ledger entry so the file is imported again.

        Args:
            filename: Provider source filename.

        Returns:
            Whether an entry was removed.
        """
        return self._ledger.clear_entry(filename)

    def with_data_root(self, data_root: str) -> "SluiceClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        return SluiceClient(replace(self._config, data_root=resolved_root))

    def _runner(self) -> ImportPipelineRunner:
        return ImportPipelineRunner(self._config, ledger=self._ledger, loader=self._store)
