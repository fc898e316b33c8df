"""Core constants used across Sluice modules.

This module centralizes feed conventions and storage layout names.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".sluice")
FILENAME_PREFIX = "ci_"
ARCHIVE_EXTENSION = ".zip"
FILE_NUMBER_PATTERN = r"\d{8}_\d{3}"
FILENAME_FORMAT_HINT = f"{FILENAME_PREFIX}YYYYMMDD_NNN{ARCHIVE_EXTENSION}"
XML_ENTRY_MARKER = "xml"
UTC_MARKER = "UTC"
DEFAULT_USER_AGENT = (
    "Mozilla/4.0 (compatible; MSIE 6.0; Windows NT 5.2; .NET CLR 1.0.3705;)"
)
DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0
DEFAULT_HTTP_MAX_RETRIES = 3
HTTP_RETRY_BACKOFF_FACTOR = 0.6
HTTP_RETRY_STATUS_CODES = (429, 500, 502, 503, 504)
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
BATCHES_DIR_NAME = "batches"
STAGING_DIR_PREFIX = ".staging-"
CATALOG_FILE_NAME = "catalog.json"
MANIFEST_FILE_NAME = "manifest.json"
RECORDS_FILE_NAME = "records.jsonl"
LANCE_DIR_NAME = "posts.lance"
LEDGER_DIR_NAME = "ledger"
LEDGER_FILE_NAME = "imported_files.jsonl"
DEFAULT_TOPIC_RANK = 0
DEFAULT_TOPIC_TONALITY = 0.0
