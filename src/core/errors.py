"""Sluice exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class SluiceError(Exception):
    """Base exception for all Sluice failures."""


class SluiceConfigError(SluiceError):
    """Raised for invalid runtime configuration."""


class SluiceFetchError(SluiceError):
    """Raised when a source archive cannot be downloaded or read."""


class SluiceExtractError(SluiceError):
    """Raised when fetched bytes are not a readable archive."""


class SluiceParseError(SluiceError):
    """Raised for malformed feed values or source filenames."""


class SluiceLedgerError(SluiceError):
    """Raised when the import ledger cannot be read or written."""


class SluiceStoreError(SluiceError):
    """Raised for record batch persistence failures."""


class SluiceDependencyError(SluiceError):
    """Raised when an optional runtime dependency is missing."""
