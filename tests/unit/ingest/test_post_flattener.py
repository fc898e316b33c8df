"""Unit tests for feed document flattening."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.errors import SluiceParseError
from core.types import ArchiveEntry
from ingest.post_flattener import (
    flatten_archive,
    flatten_document,
    parse_optional_int,
    parse_published_on,
)
from tests.fixture_paths import SAMPLE_FILENAME, sample_feed_bytes

_FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

_POST_FIELDS = (
    "title",
    "link",
    "message_id",
    "published_on",
    "source_type",
    "author_name",
    "author_country",
    "author_state",
    "author_city",
    "author_birth_year",
    "author_gender",
    "klout_score",
    "followers_count",
    "file_number",
)


def _fixed_clock() -> datetime:
    return _FIXED_NOW


def _single_post_document(post_body: str) -> bytes:
    return (
        "<feed><posts><post>"
        "<published_on>2021-05-01 10:00:00 UTC</published_on>"
        f"{post_body}"
        "</post></posts></feed>"
    ).encode("utf-8")


def _sample_records() -> list:
    return list(flatten_document(sample_feed_bytes(), "20210501_002", _fixed_clock))


def test_flatten_document_emits_one_record_per_topic() -> None:
    """A post with three topics should fan out into three records."""
    records = _sample_records()

    assert [record.topic_name for record in records] == ["Brand", "Service", "Support"]


def test_flatten_document_shares_post_fields_across_topics() -> None:
    """Topic records should share every post and author field."""
    records = _sample_records()

    post_values = {tuple(getattr(record, name) for name in _POST_FIELDS) for record in records}

    assert len(post_values) == 1


def test_flatten_document_reads_post_and_author_fields() -> None:
    """Post-level scalar and integer fields should be extracted by name."""
    record = _sample_records()[0]

    assert (
        record.title,
        record.message_id,
        record.author_city,
        record.author_birth_year,
        record.klout_score,
        record.followers_count,
    ) == ("Launch day", "msg-1", "Denver", 1985, 42, 1200)


def test_flatten_document_drops_posts_without_topics() -> None:
    """A post with zero topics should contribute no records."""
    payload = _single_post_document("<title>lonely</title><author><name>Eli</name></author>")

    records = list(flatten_document(payload, "20210501_002"))

    assert records == []


def test_flatten_document_keeps_last_snippet() -> None:
    """With two snippets the record should carry the second one only."""
    brand_record = _sample_records()[0]

    assert (
        brand_record.snippet_id,
        brand_record.snippet_text,
        brand_record.snippet_readability,
        brand_record.snippet_tonality,
        brand_record.snippet_anchor,
    ) == (102, "second snippet", "hard", -1, "second")


def test_flatten_document_keeps_last_dimension_seen_under_topic() -> None:
    """Dimension fields should hold the last dimension visited in the topic."""
    brand_record = _sample_records()[0]

    assert (brand_record.dimension_id, brand_record.dimension_name) == (8, "Price")


def test_flatten_document_leaves_snippet_fields_empty_without_snippets() -> None:
    """A topic without snippets should not inherit another topic's snippet."""
    service_record = _sample_records()[1]

    assert (service_record.snippet_id, service_record.dimension_id) == (None, None)


def test_flatten_document_sets_topic_defaults_and_clock_time() -> None:
    """Topic rank and tonality are zero and creation time comes from the clock."""
    support_record = _sample_records()[2]

    assert (
        support_record.topic_id,
        support_record.topic_rank,
        support_record.topic_tonality,
        support_record.snippet_tonality,
        support_record.created_at,
    ) == (13, 0, 0.0, None, _FIXED_NOW)


def test_flatten_document_normalizes_utc_timestamp() -> None:
    """Published timestamps should be offset-aware UTC values."""
    record = _sample_records()[0]

    assert record.published_on == datetime(2021, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


def test_flatten_document_tolerates_control_characters() -> None:
    """A stray control character should not abort the document."""
    payload = _single_post_document(
        "<title>Bad\x01Title</title><topics><topic name='A' id='1'/></topics>"
    )

    records = list(flatten_document(payload, "20210501_002"))

    assert [record.title for record in records] == ["BadTitle"]


def test_flatten_document_finds_posts_at_any_depth() -> None:
    """Posts containers should be found below any level of nesting."""
    payload = (
        b"<export><a><b><posts><post>"
        b"<published_on>2021-05-01 10:00:00 UTC</published_on>"
        b"<topics><topic name='Deep' id='5'/></topics>"
        b"</post></posts></b></a></export>"
    )

    records = list(flatten_document(payload, "20210501_002"))

    assert [record.topic_name for record in records] == ["Deep"]


def test_flatten_document_raises_for_non_numeric_integer() -> None:
    """Non-numeric content in an integer field should fail parsing."""
    payload = _single_post_document(
        "<author><klout_score>high</klout_score></author>"
        "<topics><topic name='A' id='1'/></topics>"
    )

    with pytest.raises(SluiceParseError):
        list(flatten_document(payload, "20210501_002"))


def test_flatten_document_raises_for_unrecoverable_document() -> None:
    """Content without any root element should fail parsing."""
    with pytest.raises(SluiceParseError):
        list(flatten_document(b"", "20210501_002"))


def test_flatten_archive_stamps_file_number_on_every_record() -> None:
    """Every record should carry the date/sequence part of the filename."""
    entries = [ArchiveEntry(name="data.xml", payload=sample_feed_bytes())]

    records = list(flatten_archive(entries, SAMPLE_FILENAME))

    assert {record.file_number for record in records} == {"20210501_002"}


def test_flatten_archive_ignores_non_xml_entries() -> None:
    """Only members whose name mentions xml should be parsed."""
    entries = [
        ArchiveEntry(name="readme.txt", payload=b"<<< not a feed >>>"),
        ArchiveEntry(name="data.xml", payload=sample_feed_bytes()),
    ]

    records = list(flatten_archive(entries, SAMPLE_FILENAME))

    assert len(records) == 3


def test_flatten_archive_validates_filename_before_iteration() -> None:
    """A filename without a file number should fail before any record is read."""
    entries = [ArchiveEntry(name="data.xml", payload=sample_feed_bytes())]

    with pytest.raises(SluiceParseError):
        flatten_archive(entries, "ci_latest.zip")


def test_parse_published_on_replaces_utc_marker() -> None:
    """The provider UTC marker should parse as a zero offset."""
    parsed = parse_published_on("2021-05-01 10:00:00 UTC")

    assert parsed == datetime.fromisoformat("2021-05-01T10:00:00+00:00")


def test_parse_published_on_keeps_explicit_offset() -> None:
    """Explicit offsets should be preserved."""
    parsed = parse_published_on("2021-05-01T12:00:00+02:00")

    assert parsed.utcoffset() is not None and parsed.hour == 12


def test_parse_published_on_raises_for_invalid_value() -> None:
    """A value that is not a timestamp should fail parsing."""
    with pytest.raises(SluiceParseError):
        parse_published_on("yesterday UTC")


def test_parse_optional_int_maps_blank_to_none() -> None:
    """Absent and blank integer fields should become None."""
    values = (parse_optional_int(None, "x"), parse_optional_int("  ", "x"))

    assert values == (None, None)


def test_flatten_document_raises_for_truncated_document() -> None:
    """A document cut off mid-post should fail instead of yielding partial records."""
    payload = (
        b"<feed><posts>"
        b"<post><published_on>2021-05-01 10:00:00 UTC</published_on>"
        b"<topics><topic name='A' id='1'/><topic name='B' id='2'/></topics></post>"
        b"<post><published_on>2021-05-01 11:00:00 UTC</published_on><topics><topic na"
    )

    with pytest.raises(SluiceParseError):
        list(flatten_document(payload, "20210501_002"))


def test_parse_published_on_accepts_fractional_seconds() -> None:
    """Sub-second precision with any digit count should parse."""
    parsed = parse_published_on("2021-05-01T10:00:00.1234 UTC")

    assert parsed == datetime(2021, 5, 1, 10, 0, 0, 123400, tzinfo=timezone.utc)
