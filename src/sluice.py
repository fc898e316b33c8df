"""Public SDK surface for Sluice.

This module provides a stable import path for SDK users.
It re-exports the primary client and typed models.
"""

from __future__ import annotations

from core.config import SluiceConfig
from core.logging_config import configure_logging
from core.types import (
    BatchManifest,
    FlatRecord,
    ImportOutcome,
    ImportRequest,
    ImportStatus,
    LedgerEntry,
)
from ingest.pipeline import ImportPipelineRunner, import_source_file
from ingest.post_flattener import flatten_archive, flatten_document
from store.client_sdk import SluiceClient

__all__ = [
    "BatchManifest",
    "FlatRecord",
    "ImportOutcome",
    "ImportPipelineRunner",
    "ImportRequest",
    "ImportStatus",
    "LedgerEntry",
    "SluiceClient",
    "SluiceConfig",
    "configure_logging",
    "flatten_archive",
    "flatten_document",
    "import_source_file",
]
