"""Shared boto3 client construction.

This module builds S3 clients from the runtime config so fetch and
archive retention use the same session settings.
"""

from __future__ import annotations

from typing import Any

from core.config import SluiceConfig
from core.errors import SluiceDependencyError


def create_s3_client(config: SluiceConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing optional profile/region.

    Returns:
        Boto3 S3 client.

    Raises:
        SluiceDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise SluiceDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install boto3 to use s3:// locations."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")
