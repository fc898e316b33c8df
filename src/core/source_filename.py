"""Provider source filename conventions.

This module builds canonical archive filenames and extracts the
date/sequence file number stamped on every flattened record.
"""

from __future__ import annotations

import re

from core.constants import (
    ARCHIVE_EXTENSION,
    FILE_NUMBER_PATTERN,
    FILENAME_FORMAT_HINT,
    FILENAME_PREFIX,
)
from core.errors import SluiceParseError

_FILE_NUMBER_RE = re.compile(FILE_NUMBER_PATTERN)


def build_source_filename(date: str, sequence: str) -> str:
    """Build the provider filename for one export.

    Args:
        date: Eight-digit export date.
        sequence: Three-digit export sequence.

    Returns:
        Filename such as ``ci_20210501_002.zip``.
    """
    return f"{FILENAME_PREFIX}{date}_{sequence}{ARCHIVE_EXTENSION}"


def extract_file_number(filename: str) -> str:
    """Extract the ``YYYYMMDD_NNN`` file number from a filename.

    Args:
        filename: Provider filename.

    Returns:
        First match of the file number pattern.

    Raises:
        SluiceParseError: If the filename carries no file number.
    """
    match = _FILE_NUMBER_RE.search(filename)
    if match is None:
        raise SluiceParseError(
            f"Source filename '{filename}' has no date/sequence file number. "
            f"Expected the provider format {FILENAME_FORMAT_HINT}."
        )
    return match.group(0)
