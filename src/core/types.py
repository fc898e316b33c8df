"""Shared typed models.

This module defines immutable data models used by the ingest,
store, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from core.constants import DEFAULT_TOPIC_RANK, DEFAULT_TOPIC_TONALITY


@dataclass(frozen=True)
class FlatRecord:
    """One denormalized row per post and topic pair.

    Snippet and dimension fields hold the last snippet and the last
    dimension seen under the topic; earlier ones are not retained.

    Attributes:
        title: Post title.
        link: Post URL.
        message_id: Provider message identifier.
        published_on: Offset-aware publication timestamp.
        source_type: Provider source classification.
        author_name: Author display name.
        author_country: Author country.
        author_state: Author state or region.
        author_city: Author city.
        author_birth_year: Optional author birth year.
        author_gender: Author gender label.
        klout_score: Optional author influence score.
        followers_count: Optional author follower count.
        file_number: Source file date and sequence, e.g. ``20210501_002``.
        topic_name: Topic name.
        topic_id: Optional topic id.
        topic_rank: Reserved, always zero.
        topic_tonality: Reserved, always zero.
        snippet_id: Optional id of the last snippet.
        snippet_text: Text of the last snippet.
        snippet_readability: Readability label of the last snippet.
        snippet_tonality: Optional tonality of the last snippet.
        snippet_anchor: Anchor text of the last snippet.
        dimension_id: Optional id of the last dimension.
        dimension_name: Name of the last dimension.
        created_at: Wall-clock time the record was flattened.
    """

    title: str | None
    link: str | None
    message_id: str | None
    published_on: datetime
    source_type: str | None
    author_name: str | None
    author_country: str | None
    author_state: str | None
    author_city: str | None
    author_birth_year: int | None
    author_gender: str | None
    klout_score: int | None
    followers_count: int | None
    file_number: str
    topic_name: str | None = None
    topic_id: int | None = None
    topic_rank: int = DEFAULT_TOPIC_RANK
    topic_tonality: float = DEFAULT_TOPIC_TONALITY
    snippet_id: int | None = None
    snippet_text: str | None = None
    snippet_readability: str | None = None
    snippet_tonality: int | None = None
    snippet_anchor: str | None = None
    dimension_id: int | None = None
    dimension_name: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ArchiveEntry:
    """One named member extracted from a source archive.

    Attributes:
        name: Member path inside the archive.
        payload: Raw member bytes.
    """

    name: str
    payload: bytes


@dataclass(frozen=True)
class ImportRequest:
    """Import request for one provider source file.

    Attributes:
        source_locator: Base URL, ``s3://`` prefix, or local directory.
        date: Eight-digit export date, e.g. ``20210501``.
        sequence: Three-digit export sequence, e.g. ``002``.
        archiving_enabled: Whether to retain the raw archive after import.
        archive_destination: Retention directory or ``s3://`` prefix.
    """

    source_locator: str
    date: str
    sequence: str
    archiving_enabled: bool = True
    archive_destination: str | None = None


class ImportStatus(str, Enum):
    """Lifecycle states of one source file import."""

    NOT_STARTED = "not_started"
    CHECKED = "checked"
    FETCHED = "fetched"
    EXTRACTED = "extracted"
    TRANSFORMED = "transformed"
    LOADED = "loaded"
    LOGGED = "logged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ImportOutcome:
    """Terminal result of one source file import.

    Attributes:
        filename: Canonical provider filename.
        status: Final lifecycle state.
        record_count: Number of flat records committed.
        batch_id: Committed batch id when the load succeeded.
        archived: Whether the raw archive was retained.
    """

    filename: str
    status: ImportStatus
    record_count: int = 0
    batch_id: str | None = None
    archived: bool = False

    @property
    def succeeded(self) -> bool:
        """Return whether the file's records reached the store."""
        return self.status in (ImportStatus.LOADED, ImportStatus.LOGGED)


@dataclass(frozen=True)
class BatchWriteRequest:
    """Request payload for one atomic batch commit.

    Attributes:
        source_filename: Provider filename the records came from.
        records: Fully materialized flat records.
    """

    source_filename: str
    records: tuple[FlatRecord, ...]


@dataclass(frozen=True)
class BatchManifest:
    """Metadata for one committed record batch.

    Attributes:
        batch_id: Immutable batch id.
        source_filename: Provider filename the records came from.
        created_at: UTC commit timestamp.
        record_count: Number of records in the batch.
        lance_written: Whether a Lance copy was written.
    """

    batch_id: str
    source_filename: str
    created_at: datetime
    record_count: int
    lance_written: bool = False


@dataclass(frozen=True)
class LedgerEntry:
    """One imported-file ledger row."""

    filename: str
    imported_at: datetime
