"""Structured error types for s3_repository."""

from __future__ import annotations


class S3RepositoryError(Exception):
    """Base error for all s3_repository errors."""


class BlobNotFoundError(S3RepositoryError):
    """Raised by a blob store when a specific key does not exist."""

    def __init__(self, bucket: str, key: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(f"No object at s3://{bucket}/{key}")


class MultipleObjectsFoundError(S3RepositoryError):
    """Raised when more than one physical object carries the same logical id.

    The repository cannot tell which copy is authoritative, so the data under
    the prefix must be repaired by hand.
    """

    def __init__(self, logical_id: str, keys: list[str]) -> None:
        self.logical_id = logical_id
        self.keys = list(keys)
        super().__init__(
            f"Found {len(self.keys)} objects for id '{logical_id}': {self.keys}. "
            "Repository data is inconsistent; remove the stale copies manually."
        )


class InvalidMetadataError(S3RepositoryError):
    """Raised when stored object metadata lacks a required key."""

    def __init__(self, missing_key: str) -> None:
        self.missing_key = missing_key
        super().__init__(f"Object metadata is missing required key '{missing_key}'")


class InvalidStorageUriError(S3RepositoryError):
    """Raised when a storage URI cannot be resolved to a bucket and prefix."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Invalid s3 storage URI: {uri}")
