"""Source archive extraction.

This module opens fetched zip bytes and returns their named members.
Only members whose name mentions ``xml`` carry feed documents.
"""

from __future__ import annotations

import io
import zlib
import zipfile

from core.constants import XML_ENTRY_MARKER
from core.errors import SluiceExtractError
from core.types import ArchiveEntry


def read_archive_entries(payload: bytes) -> list[ArchiveEntry]:
    """Extract all file members from zip bytes.

    Args:
        payload: Raw archive bytes.

    Returns:
        Archive members in archive order, directories excluded.

    Raises:
        SluiceExtractError: If the bytes are not a readable zip archive.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(payload)) as archive:
            return [
                ArchiveEntry(name=info.filename, payload=archive.read(info))
                for info in archive.infolist()
                if not info.is_dir()
            ]
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError) as error:
        raise SluiceExtractError(
            f"Failed to open source archive: {error}. "
            "The downloaded content is not a valid zip file."
        ) from error


def is_xml_entry(entry: ArchiveEntry) -> bool:
    """Return whether an archive member holds a feed document."""
    return XML_ENTRY_MARKER in entry.name
