"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for fetch and archive layers.
It keeps URI validation behavior consistent across the codebase.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import SluiceFetchError, SluiceStoreError

S3_SCHEME = "s3://"


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str

    def object_key(self, name: str) -> str:
        """Return the object key for ``name`` under this prefix."""
        if not self.prefix:
            return name
        return f"{self.prefix.rstrip('/')}/{name}"


def is_s3_uri(uri: str) -> bool:
    """Return whether ``uri`` uses the ``s3://`` scheme."""
    return uri.startswith(S3_SCHEME)


def parse_s3_uri(uri: str, domain: str) -> S3Location:
    """Parse and validate an S3 URI.

    Args:
        uri: URI in format ``s3://bucket`` or ``s3://bucket/prefix``.
        domain: Error domain string ("fetch" or "store").

    Returns:
        Parsed bucket and prefix pair.

    Raises:
        SluiceFetchError: For fetch-domain parse failures.
        SluiceStoreError: For store-domain parse failures.
    """
    stripped_uri = uri.removeprefix(S3_SCHEME)
    bucket, _, prefix = stripped_uri.partition("/")
    if not bucket:
        _raise_uri_error(uri, domain)
    return S3Location(bucket=bucket, prefix=prefix)


def _raise_uri_error(uri: str, domain: str) -> None:
    """Raise a domain-specific invalid URI error.

    Args:
        uri: Invalid URI value.
        domain: Error domain string.

    Raises:
        SluiceFetchError: For fetch domain.
        SluiceStoreError: For store domain.
    """
    message = (
        f"Invalid S3 URI '{uri}': expected s3://bucket/prefix. "
        "Provide at least a bucket name."
    )
    if domain == "fetch":
        raise SluiceFetchError(message)
    raise SluiceStoreError(message)
