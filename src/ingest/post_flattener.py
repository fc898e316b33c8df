"""Feed document flattening.

This module expands the nested post/topic/snippet/dimension feed
hierarchy into one flat record per post and topic pair.

Snippets and dimensions do not fan out further. Each topic record
keeps the last snippet and the last dimension seen while walking
the topic; earlier values are overwritten. A post without topics
produces no records.
"""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator

from lxml import etree

from core.constants import DEFAULT_TOPIC_RANK, DEFAULT_TOPIC_TONALITY, UTC_MARKER
from core.errors import SluiceParseError
from core.logging_config import get_logger
from core.source_filename import extract_file_number
from core.types import ArchiveEntry, FlatRecord
from ingest.archive_reader import is_xml_entry

_LOGGER = get_logger(__name__)

Clock = Callable[[], datetime]

# XML 1.0 forbids these bytes; feeds occasionally contain them.
_ILLEGAL_XML_BYTES_RE = re.compile(rb"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_ZONE_GAP_RE = re.compile(r"\s+(?=(?:Z|[+-]\d{2}:?\d{2})$)")


def utc_now() -> datetime:
    """Return the current offset-aware UTC time."""
    return datetime.now(timezone.utc)


def flatten_archive(
    entries: Iterable[ArchiveEntry],
    filename: str,
    clock: Clock = utc_now,
) -> Iterator[FlatRecord]:
    """Flatten every feed document in an extracted archive.

    The file number is validated here, before any document is read.

    Args:
        entries: Extracted archive members.
        filename: Provider filename of the archive.
        clock: Source of record creation timestamps.

    Returns:
        Single-pass iterator of flat records in document order.

    Raises:
        SluiceParseError: If the filename has no file number.
    """
    file_number = extract_file_number(filename)
    return _iter_archive_records(entries, file_number, clock)


def flatten_document(
    payload: bytes,
    file_number: str,
    clock: Clock = utc_now,
) -> Iterator[FlatRecord]:
    """Flatten one feed XML document.

    Args:
        payload: Raw XML bytes.
        file_number: File number stamped on every record.
        clock: Source of record creation timestamps.

    Yields:
        One record per post and topic pair.

    Raises:
        SluiceParseError: If the document or a typed field is malformed.
    """
    root = parse_feed_document(payload)
    for post in _iter_post_elements(root):
        post_record = _build_post_record(post, file_number)
        for topic in _iter_nested(post, "topics", "topic"):
            topic_record = replace(
                post_record,
                topic_name=topic.get("name"),
                topic_id=parse_optional_int(topic.get("id"), "topic id"),
                topic_rank=DEFAULT_TOPIC_RANK,
                topic_tonality=DEFAULT_TOPIC_TONALITY,
            )
            topic_record = _apply_last_snippet(topic_record, topic)
            yield replace(topic_record, created_at=clock())


def parse_feed_document(payload: bytes) -> etree._Element:
    """Parse feed bytes with relaxed character validation.

    Only characters are relaxed: bytes XML 1.0 forbids are dropped before
    parsing. Broken structure, such as a truncated document, still fails.

    Args:
        payload: Raw XML bytes.

    Returns:
        Document root element.

    Raises:
        SluiceParseError: If the document is not well-formed XML.
    """
    parser = etree.XMLParser(
        huge_tree=True,
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )
    cleaned_payload = _ILLEGAL_XML_BYTES_RE.sub(b"", payload)
    try:
        root = etree.fromstring(cleaned_payload, parser)
    except etree.XMLSyntaxError as error:
        raise SluiceParseError(f"Failed to parse feed document: {error}.") from error
    if root is None:
        raise SluiceParseError(
            "Failed to parse feed document: no root element found. "
            "The archive member is empty or not XML."
        )
    return root


def parse_published_on(raw_value: str | None) -> datetime:
    """Parse a provider publication timestamp.

    The provider marks UTC with a literal ``UTC`` suffix, which is
    rewritten to the ISO-8601 ``Z`` designator before parsing. Accepted
    shapes are ISO-8601 dates and times with a space or ``T`` separator,
    any number of fractional-second digits, and an optional ``Z`` or
    numeric offset, e.g. ``2021-05-01T10:00:00.1234 UTC``.

    Args:
        raw_value: Raw ``published_on`` text.

    Returns:
        Offset-aware timestamp; values without an offset are taken as UTC.

    Raises:
        SluiceParseError: If the value is missing or not a timestamp.
    """
    if raw_value is None:
        raise SluiceParseError("Post is missing its published_on element.")
    normalized = raw_value.strip().replace(UTC_MARKER, "Z")
    iso_value = _ZONE_GAP_RE.sub("", normalized)
    if iso_value.endswith("Z"):
        iso_value = iso_value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(iso_value)
    except ValueError as error:
        raise SluiceParseError(
            f"Invalid published_on value '{raw_value}': expected a timestamp "
            "such as '2021-05-01 10:00:00 UTC'."
        ) from error
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_optional_int(raw_value: str | None, field_name: str) -> int | None:
    """Parse a nullable integer field.

    Args:
        raw_value: Raw text, or ``None`` when the field is absent.
        field_name: Field label for error messages.

    Returns:
        Parsed integer, or ``None`` for absent or blank values.

    Raises:
        SluiceParseError: If the value is present but not an integer.
    """
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value.strip())
    except ValueError as error:
        raise SluiceParseError(
            f"Invalid {field_name} value '{raw_value}': expected an integer."
        ) from error


def _iter_archive_records(
    entries: Iterable[ArchiveEntry],
    file_number: str,
    clock: Clock,
) -> Iterator[FlatRecord]:
    for entry in entries:
        if not is_xml_entry(entry):
            _LOGGER.info("archive_entry_skipped", entry_name=entry.name)
            continue
        yield from flatten_document(entry.payload, file_number, clock)


def _iter_post_elements(root: etree._Element) -> Iterator[etree._Element]:
    """Yield ``post`` children of every ``posts`` container below the root."""
    for element in root.iter(etree.Element):
        yield from _iter_nested(element, "posts", "post")


def _iter_nested(
    parent: etree._Element,
    container_tag: str,
    item_tag: str,
) -> Iterator[etree._Element]:
    """Yield ``item_tag`` grandchildren held by ``container_tag`` children."""
    for container in parent.iterchildren(container_tag):
        yield from container.iterchildren(item_tag)


def _build_post_record(post: etree._Element, file_number: str) -> FlatRecord:
    """Build the post-level record shared by every topic of the post."""
    author = post.find("author")
    return FlatRecord(
        title=_child_text(post, "title"),
        link=_child_text(post, "link"),
        message_id=_child_text(post, "message_id"),
        published_on=parse_published_on(_child_text(post, "published_on")),
        source_type=_child_text(post, "source_type"),
        author_name=_child_text(author, "name"),
        author_country=_child_text(author, "country"),
        author_state=_child_text(author, "state"),
        author_city=_child_text(author, "city"),
        author_birth_year=_child_int(author, "birth_year"),
        author_gender=_child_text(author, "gender"),
        klout_score=_child_int(author, "klout_score"),
        followers_count=_child_int(author, "followers_count"),
        file_number=file_number,
    )


def _apply_last_snippet(record: FlatRecord, topic: etree._Element) -> FlatRecord:
    """Fold the topic's snippets and dimensions into one record.

    Every snippet overwrites the snippet fields and every dimension
    overwrites the dimension fields, so only the last of each survives.
    Dimension fields are not reset between snippets.
    """
    for snippet in _iter_nested(topic, "snippets", "snippet"):
        record = replace(
            record,
            snippet_id=_child_int(snippet, "id"),
            snippet_text=_child_text(snippet, "text"),
            snippet_readability=_child_text(snippet, "readability"),
            snippet_tonality=_child_int(snippet, "tonality"),
            snippet_anchor=_child_text(snippet, "anchor"),
        )
        for dimension in _iter_nested(snippet, "dimensions", "dimension"):
            record = replace(
                record,
                dimension_id=_child_int(dimension, "id"),
                dimension_name=_child_text(dimension, "name"),
            )
    return record


def _child_text(parent: etree._Element | None, tag: str) -> str | None:
    """Return the full text of a direct child, or ``None`` when absent."""
    if parent is None:
        return None
    child = parent.find(tag)
    if child is None:
        return None
    return "".join(child.itertext())


def _child_int(parent: etree._Element | None, tag: str) -> int | None:
    return parse_optional_int(_child_text(parent, tag), tag)
