"""Import orchestration for provider source files.

This module coordinates the ledger check, fetch, extraction,
flattening, batch commit, ledger write, and raw-file retention
for one source file at a time.
"""

from __future__ import annotations

from typing import Callable, Iterable, Protocol, Sequence

from core.config import SluiceConfig
from core.constants import FILENAME_FORMAT_HINT
from core.errors import (
    SluiceDependencyError,
    SluiceExtractError,
    SluiceFetchError,
    SluiceParseError,
    SluiceStoreError,
)
from core.logging_config import get_logger
from core.source_filename import build_source_filename
from core.types import (
    ArchiveEntry,
    BatchManifest,
    BatchWriteRequest,
    FlatRecord,
    ImportOutcome,
    ImportRequest,
    ImportStatus,
)
from ingest.archive_reader import read_archive_entries
from ingest.post_flattener import Clock, flatten_archive, utc_now
from ingest.source_fetcher import fetch_source_bytes
from store.archive_export import save_source_archive
from store.batch_store import BatchStore
from store.import_ledger import ImportLedger

_LOGGER = get_logger(__name__)

FetchSource = Callable[[str, str, SluiceConfig], bytes]


class Ledger(Protocol):
    """Imported-file gate used by the runner."""

    def has_been_imported(self, filename: str) -> bool: ...

    def record_imported(self, filename: str) -> bool: ...


class BulkLoader(Protocol):
    """All-or-nothing batch writer used by the runner."""

    def commit_batch(self, request: BatchWriteRequest) -> BatchManifest | None: ...


class ImportPipelineRunner:
    """Runner for at-most-once source file imports."""

    def __init__(
        self,
        config: SluiceConfig,
        ledger: Ledger | None = None,
        loader: BulkLoader | None = None,
        fetch_source: FetchSource = fetch_source_bytes,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._ledger = ledger if ledger is not None else ImportLedger(config.data_root)
        self._loader = loader if loader is not None else BatchStore(config)
        self._fetch_source = fetch_source
        self._clock = clock

    def import_one(self, request: ImportRequest) -> ImportOutcome:
        """Import one provider source file unless already imported.

        Fetch, extraction, and commit failures end the file at
        ``FAILED`` without raising. The ledger is written only after
        a successful commit.

        Args:
            request: Import request for one date and sequence.

        Returns:
            Terminal outcome for the file.

        Raises:
            SluiceParseError: If the feed document has malformed values.
        """
        filename = build_source_filename(request.date, request.sequence)
        _LOGGER.info("import_started", filename=filename, source_locator=request.source_locator)
        if self._ledger.has_been_imported(filename):
            _LOGGER.warning(
                "import_skipped",
                filename=filename,
                reason="already_imported",
                hint="Clear the ledger entry to import this file again.",
            )
            return ImportOutcome(filename=filename, status=ImportStatus.SKIPPED)
        status = ImportStatus.CHECKED
        try:
            payload = self._fetch_source(request.source_locator, filename, self._config)
            status = ImportStatus.FETCHED
            entries = read_archive_entries(payload)
            status = ImportStatus.EXTRACTED
        except (SluiceFetchError, SluiceExtractError, SluiceDependencyError) as error:
            _log_import_failure(filename, status, error)
            return ImportOutcome(filename=filename, status=ImportStatus.FAILED)
        records = self._flatten(entries, filename)
        manifest = self._loader.commit_batch(
            BatchWriteRequest(source_filename=filename, records=tuple(records))
        )
        if manifest is None:
            _LOGGER.error(
                "import_failed",
                filename=filename,
                stage=ImportStatus.TRANSFORMED.value,
                error="batch commit failed",
                hint="The file stays eligible for a later run.",
            )
            return ImportOutcome(filename=filename, status=ImportStatus.FAILED)
        if self._ledger.record_imported(filename):
            status = ImportStatus.LOGGED
        else:
            status = ImportStatus.LOADED
            _LOGGER.warning(
                "import_not_logged",
                filename=filename,
                batch_id=manifest.batch_id,
                hint="A later run may load this file again.",
            )
        archived = self._archive_if_requested(request, filename, payload)
        outcome = ImportOutcome(
            filename=filename,
            status=status,
            record_count=len(records),
            batch_id=manifest.batch_id,
            archived=archived,
        )
        _log_import_completion(outcome)
        return outcome

    def import_many(self, requests: Iterable[ImportRequest]) -> list[ImportOutcome]:
        """Import source files one after another.

        A failed file does not stop the remaining files.

        Args:
            requests: Ordered import requests.

        Returns:
            One outcome per request, in order.

        Raises:
            SluiceParseError: If a feed document has malformed values.
        """
        return [self.import_one(request) for request in requests]

    def _flatten(self, entries: list[ArchiveEntry], filename: str) -> list[FlatRecord]:
        """Materialize every record before commit so a parse error loads nothing."""
        try:
            records = list(flatten_archive(entries, filename, self._clock))
        except SluiceParseError as error:
            _log_import_failure(filename, ImportStatus.EXTRACTED, error)
            raise
        _LOGGER.info("records_flattened", filename=filename, record_count=len(records))
        return records

    def _archive_if_requested(
        self,
        request: ImportRequest,
        filename: str,
        payload: bytes,
    ) -> bool:
        if not request.archiving_enabled:
            return False
        destination = request.archive_destination or self._config.archive_dir
        if not destination:
            _LOGGER.warning("archive_skipped", filename=filename, reason="no_destination")
            return False
        try:
            location = save_source_archive(payload, filename, destination, self._config)
        except (SluiceStoreError, SluiceDependencyError) as error:
            _LOGGER.warning("archive_failed", filename=filename, error=str(error))
            return False
        _LOGGER.info("archive_saved", filename=filename, location=location)
        return True


def import_source_file(request: ImportRequest, config: SluiceConfig) -> ImportOutcome:
    """Run the import pipeline for one source file.

    Args:
        request: Import request.
        config: Runtime configuration.

    Returns:
        Terminal import outcome.

    Raises:
        SluiceParseError: If the feed document has malformed values.
    """
    return ImportPipelineRunner(config).import_one(request)


def build_import_requests(
    source_locator: str,
    dates: Sequence[str],
    sequences: Sequence[str],
    archiving_enabled: bool = True,
    archive_destination: str | None = None,
) -> list[ImportRequest]:
    """Expand dates and sequences into ordered import requests.

    Args:
        source_locator: Shared base locator.
        dates: Export dates, imported in the given order.
        sequences: Export sequences tried for every date.
        archiving_enabled: Whether to retain raw archives.
        archive_destination: Optional retention location.

    Returns:
        One request per date and sequence pair.
    """
    return [
        ImportRequest(
            source_locator=source_locator,
            date=date,
            sequence=sequence,
            archiving_enabled=archiving_enabled,
            archive_destination=archive_destination,
        )
        for date in dates
        for sequence in sequences
    ]


def _log_import_failure(filename: str, stage: ImportStatus, error: Exception) -> None:
    _LOGGER.error(
        "import_failed",
        filename=filename,
        stage=stage.value,
        error=str(error),
        expected_format=FILENAME_FORMAT_HINT,
    )


def _log_import_completion(outcome: ImportOutcome) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "import_completed",
        filename=outcome.filename,
        status=outcome.status.value,
        record_count=outcome.record_count,
        batch_id=outcome.batch_id,
        archived=outcome.archived,
    )
