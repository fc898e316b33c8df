"""Runtime configuration model for Sluice.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_HTTP_MAX_RETRIES,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_USER_AGENT,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import SluiceConfigError


@dataclass(frozen=True)
class SluiceConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for the ledger and committed batches.
        feed_username: Optional feed provider account name.
        feed_password: Optional feed provider password.
        user_agent: User-agent header sent to the feed provider.
        http_timeout_seconds: Transport timeout for one HTTP request.
        http_max_retries: Retry budget for transient HTTP failures.
        archive_dir: Default raw-archive retention location.
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
        log_level: Minimum structured log level.
    """

    data_root: Path
    feed_username: str | None = None
    feed_password: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    http_max_retries: int = DEFAULT_HTTP_MAX_RETRIES
    archive_dir: str | None = None
    s3_region: str | None = None
    s3_profile: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "SluiceConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SluiceConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("SLUICE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        timeout_value = os.getenv("SLUICE_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        retries_value = os.getenv("SLUICE_HTTP_RETRIES", str(DEFAULT_HTTP_MAX_RETRIES))
        log_level_value = os.getenv("SLUICE_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            feed_username=os.getenv("SLUICE_FEED_USERNAME"),
            feed_password=os.getenv("SLUICE_FEED_PASSWORD"),
            user_agent=os.getenv("SLUICE_USER_AGENT", DEFAULT_USER_AGENT),
            http_timeout_seconds=_parse_timeout(timeout_value),
            http_max_retries=_parse_retries(retries_value),
            archive_dir=os.getenv("SLUICE_ARCHIVE_DIR"),
            s3_region=os.getenv("SLUICE_S3_REGION"),
            s3_profile=os.getenv("SLUICE_S3_PROFILE"),
            log_level=_parse_log_level(log_level_value),
        )

    @property
    def has_feed_credentials(self) -> bool:
        """Return whether both feed credential values are set."""
        return bool(self.feed_username) and self.feed_password is not None


def _parse_timeout(raw_value: str) -> float:
    """Parse the HTTP timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive timeout in seconds.

    Raises:
        SluiceConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise SluiceConfigError(
            "Invalid SLUICE_HTTP_TIMEOUT value: "
            f"expected number of seconds, got '{raw_value}'. "
            "Set SLUICE_HTTP_TIMEOUT to a positive numeric value."
        ) from error
    if timeout <= 0:
        raise SluiceConfigError(
            f"Invalid SLUICE_HTTP_TIMEOUT value: expected > 0, got '{raw_value}'. "
            "Set SLUICE_HTTP_TIMEOUT to a positive numeric value."
        )
    return timeout


def _parse_retries(raw_value: str) -> int:
    """Parse the HTTP retry budget environment value."""
    try:
        retries = int(raw_value)
    except ValueError as error:
        raise SluiceConfigError(
            "Invalid SLUICE_HTTP_RETRIES value: "
            f"expected integer, got '{raw_value}'. "
            "Set SLUICE_HTTP_RETRIES to a non-negative integer."
        ) from error
    if retries < 0:
        raise SluiceConfigError(
            f"Invalid SLUICE_HTTP_RETRIES value: expected >= 0, got '{raw_value}'. "
            "Set SLUICE_HTTP_RETRIES to a non-negative integer."
        )
    return retries


def _parse_log_level(raw_value: str) -> str:
    """Normalize and validate the log level environment value."""
    level = raw_value.strip().upper()
    if level not in SUPPORTED_LOG_LEVELS:
        raise SluiceConfigError(
            f"Invalid SLUICE_LOG_LEVEL value '{raw_value}'. "
            f"Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
        )
    return level
