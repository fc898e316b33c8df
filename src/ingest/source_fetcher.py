"""Source archive fetching.

This module downloads one provider archive from an HTTP feed, an S3
prefix, or a local directory and returns its raw bytes.
"""

from __future__ import annotations

from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.config import SluiceConfig
from core.constants import HTTP_RETRY_BACKOFF_FACTOR, HTTP_RETRY_STATUS_CODES
from core.errors import SluiceFetchError
from core.logging_config import get_logger
from core.s3_client import create_s3_client
from core.s3_uri import is_s3_uri, parse_s3_uri

_LOGGER = get_logger(__name__)


def fetch_source_bytes(source_locator: str, filename: str, config: SluiceConfig) -> bytes:
    """Fetch one provider archive.

    Args:
        source_locator: Base URL, ``s3://bucket/prefix``, or local directory.
        filename: Provider filename appended to the locator.
        config: Runtime configuration with credentials and transport limits.

    Returns:
        Raw archive bytes.

    Raises:
        SluiceFetchError: If the archive is missing or the transport fails.
    """
    if source_locator.startswith(("http://", "https://")):
        return _fetch_http(join_locator(source_locator, filename), config)
    if is_s3_uri(source_locator):
        return _fetch_s3(source_locator, filename, config)
    return _fetch_local(Path(source_locator).expanduser() / filename)


def join_locator(source_locator: str, filename: str) -> str:
    """Append a filename to a URL-style base locator."""
    return f"{source_locator.rstrip('/')}/{filename}"


def _fetch_http(url: str, config: SluiceConfig) -> bytes:
    """Download an archive over HTTP with retries.

    Args:
        url: Full archive URL.
        config: Runtime configuration.

    Returns:
        Response body bytes.

    Raises:
        SluiceFetchError: On network faults or non-200 responses.
    """
    with _build_http_session(config) as session:
        try:
            response = session.get(url, timeout=config.http_timeout_seconds)
        except requests.RequestException as error:
            raise SluiceFetchError(
                f"Failed to download {url}: {error}. "
                "Check network access and feed credentials, then retry."
            ) from error
    if response.status_code == 404:
        raise SluiceFetchError(
            f"Source archive not found at {url} (HTTP 404). "
            "Confirm the file is listed by the feed provider."
        )
    if response.status_code in (401, 403):
        raise SluiceFetchError(
            f"Feed provider rejected credentials for {url} (HTTP {response.status_code}). "
            "Set SLUICE_FEED_USERNAME and SLUICE_FEED_PASSWORD and retry."
        )
    if response.status_code != 200:
        raise SluiceFetchError(
            f"Failed to download {url}: HTTP {response.status_code}. Retry later."
        )
    _LOGGER.info("source_downloaded", url=url, size_bytes=len(response.content))
    return response.content


def _build_http_session(config: SluiceConfig) -> requests.Session:
    """Create a requests session with auth, user agent, and retry policy."""
    session = requests.Session()
    retry = Retry(
        total=config.http_max_retries,
        backoff_factor=HTTP_RETRY_BACKOFF_FACTOR,
        status_forcelist=list(HTTP_RETRY_STATUS_CODES),
        allowed_methods=["HEAD", "GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"User-Agent": config.user_agent})
    if config.has_feed_credentials:
        session.auth = (str(config.feed_username), str(config.feed_password))
    return session


def _fetch_s3(source_locator: str, filename: str, config: SluiceConfig) -> bytes:
    """Download an archive object from an S3 prefix.

    Args:
        source_locator: ``s3://bucket/prefix`` base locator.
        filename: Provider filename.
        config: Runtime configuration for region/profile.

    Returns:
        Object body bytes.

    Raises:
        SluiceFetchError: If the object is missing or unreadable.
    """
    from botocore.exceptions import BotoCoreError, ClientError

    location = parse_s3_uri(source_locator, domain="fetch")
    object_key = location.object_key(filename)
    try:
        s3_client = create_s3_client(config)
        body = s3_client.get_object(Bucket=location.bucket, Key=object_key)["Body"].read()
    except (BotoCoreError, ClientError) as error:
        raise SluiceFetchError(
            f"Failed to download s3://{location.bucket}/{object_key}: {error}. "
            "Check that the object exists and AWS credentials are valid."
        ) from error
    _LOGGER.info(
        "source_downloaded",
        url=f"s3://{location.bucket}/{object_key}",
        size_bytes=len(body),
    )
    return body


def _fetch_local(source_path: Path) -> bytes:
    """Read an archive from the local file system.

    Args:
        source_path: Archive path.

    Returns:
        File bytes.

    Raises:
        SluiceFetchError: If the path is missing or unreadable.
    """
    if not source_path.is_file():
        raise SluiceFetchError(
            f"Failed to read source at {source_path}: file does not exist. "
            "Provide an existing directory containing the archive."
        )
    try:
        return source_path.read_bytes()
    except OSError as error:
        raise SluiceFetchError(
            f"Failed to read source at {source_path}: {error}. Check file permissions."
        ) from error

