"""Shared fixture path and archive helpers for tests."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

SAMPLE_FILENAME = "ci_20210501_002.zip"


def fixture_path(relative_path: str) -> Path:
    """Resolve a fixture path relative to tests/fixtures.

    Args:
        relative_path: Path under fixtures root.

    Returns:
        Absolute fixture path.
    """
    tests_root = Path(__file__).resolve().parent
    return tests_root / "fixtures" / relative_path


def sample_feed_bytes() -> bytes:
    """Return the sample feed document with three topic rows."""
    return fixture_path("feed/sample_posts.xml").read_bytes()


def build_zip_bytes(members: dict[str, bytes]) -> bytes:
    """Zip named members into in-memory archive bytes.

    Args:
        members: Member name to payload mapping, in archive order.

    Returns:
        Zip archive bytes.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, payload in members.items():
            archive.writestr(name, payload)
    return buffer.getvalue()


def sample_archive_bytes() -> bytes:
    """Return a provider-style archive with a note and the sample feed."""
    return build_zip_bytes({"readme.txt": b"export notes", "data.xml": sample_feed_bytes()})


def write_sample_archive(directory: Path, filename: str = SAMPLE_FILENAME) -> Path:
    """Write a provider-named archive holding the sample feed.

    Args:
        directory: Target source directory.
        filename: Provider filename.

    Returns:
        Written archive path.
    """
    directory.mkdir(parents=True, exist_ok=True)
    archive_path = directory / filename
    archive_path.write_bytes(sample_archive_bytes())
    return archive_path
