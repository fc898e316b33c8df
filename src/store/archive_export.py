"""Raw source archive retention.

This module copies a fetched archive to a local directory or an
S3 prefix after its records were imported.
"""

from __future__ import annotations

from pathlib import Path

from core.config import SluiceConfig
from core.errors import SluiceStoreError
from core.s3_client import create_s3_client
from core.s3_uri import is_s3_uri, parse_s3_uri


def save_source_archive(
    payload: bytes,
    filename: str,
    destination: str,
    config: SluiceConfig,
) -> str:
    """Persist raw archive bytes under a retention destination.

    Args:
        payload: Raw archive bytes as fetched.
        filename: Provider filename.
        destination: Local directory or ``s3://bucket/prefix``.
        config: Runtime config with optional S3 session settings.

    Returns:
        Location the archive was written to.

    Raises:
        SluiceStoreError: If the archive cannot be written.
    """
    if is_s3_uri(destination):
        return _upload_archive(payload, filename, destination, config)
    target_path = Path(destination).expanduser() / filename
    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_bytes(payload)
    except OSError as error:
        raise SluiceStoreError(
            f"Failed to archive {filename} to {target_path}: {error}. "
            "Check write permissions on the archive directory."
        ) from error
    return str(target_path)


def _upload_archive(
    payload: bytes,
    filename: str,
    destination: str,
    config: SluiceConfig,
) -> str:
    """Upload archive bytes to S3.

    Raises:
        SluiceStoreError: If upload fails.
    """
    from botocore.exceptions import BotoCoreError, ClientError

    location = parse_s3_uri(destination, domain="store")
    object_key = location.object_key(filename)
    try:
        s3_client = create_s3_client(config)
        s3_client.put_object(Bucket=location.bucket, Key=object_key, Body=payload)
    except (BotoCoreError, ClientError) as error:
        raise SluiceStoreError(
            f"Failed to archive {filename} to s3://{location.bucket}/{object_key}: {error}. "
            "Check AWS credentials and retry."
        ) from error
    return f"s3://{location.bucket}/{object_key}"
