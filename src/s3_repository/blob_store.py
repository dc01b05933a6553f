"""Blob-store client contract and the boto3-backed S3 implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol
from urllib.parse import quote, unquote

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from s3_repository.config import RepositoryConfig
from s3_repository.errors import BlobNotFoundError, InvalidMetadataError

ID_METADATA_KEY = "id"


@dataclass(frozen=True)
class ObjectMetadata:
    """Typed view of the user metadata stored alongside each document.

    S3 only accepts ASCII metadata values, so the logical id is percent-encoded
    on the way in and decoded on the way out.
    """

    id: str
    extra: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, str]:
        return {**self.extra, ID_METADATA_KEY: quote(self.id, safe="")}

    @classmethod
    def from_dict(cls, metadata: Mapping[str, str]) -> ObjectMetadata:
        if ID_METADATA_KEY not in metadata:
            raise InvalidMetadataError(ID_METADATA_KEY)
        extra = {k: v for k, v in metadata.items() if k != ID_METADATA_KEY}
        return cls(id=unquote(metadata[ID_METADATA_KEY]), extra=extra)


@dataclass
class StoredObject:
    body: bytes
    metadata: dict[str, str]


@dataclass(frozen=True)
class ListPage:
    """One page of a prefix listing and the cursor for the next one."""

    keys: list[str]
    next_token: str | None = None


class BlobStore(Protocol):
    """Client protocol consumed by the repository.

    ``get`` and ``head`` raise :class:`BlobNotFoundError` for missing keys.
    ``delete`` is idempotent. All other failures propagate unchanged.
    """

    def put(
        self,
        bucket: str,
        key: str,
        body: bytes,
        metadata: Mapping[str, str],
        *,
        content_type: str | None = None,
    ) -> None: ...

    def get(self, bucket: str, key: str) -> StoredObject: ...

    def head(self, bucket: str, key: str) -> dict[str, str]: ...

    def delete(self, bucket: str, key: str) -> None: ...

    def list_keys_by_prefix(
        self,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
    ) -> ListPage: ...


def _is_not_found(err: Exception) -> bool:
    if isinstance(err, ClientError):
        code = err.response.get("Error", {}).get("Code", "")
        return code in {"NoSuchKey", "404", "NotFound"}
    return False


def create_s3_client(config: RepositoryConfig | None = None) -> Any:
    """Create a boto3 S3 client using the ambient credential chain."""
    cfg = config or RepositoryConfig()
    session = boto3.Session(region_name=cfg.s3_region)
    return session.client(
        "s3",
        region_name=cfg.s3_region,
        endpoint_url=cfg.s3_endpoint_url,
        config=BotoConfig(
            connect_timeout=cfg.s3_request_timeout_s,
            read_timeout=cfg.s3_request_timeout_s,
            retries={"max_attempts": cfg.s3_max_attempts, "mode": "standard"},
        ),
    )


class Boto3BlobStore:
    """:class:`BlobStore` over a boto3 S3 client."""

    def __init__(self, s3: Any = None, *, config: RepositoryConfig | None = None) -> None:
        self._s3 = s3 if s3 is not None else create_s3_client(config)

    def put(
        self,
        bucket: str,
        key: str,
        body: bytes,
        metadata: Mapping[str, str],
        *,
        content_type: str | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "Metadata": dict(metadata),
        }
        if content_type is not None:
            kwargs["ContentType"] = content_type
        self._s3.put_object(**kwargs)

    def get(self, bucket: str, key: str) -> StoredObject:
        try:
            resp = self._s3.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise BlobNotFoundError(bucket, key) from e
            raise
        body = resp["Body"].read()
        return StoredObject(body=body, metadata=dict(resp.get("Metadata") or {}))

    def head(self, bucket: str, key: str) -> dict[str, str]:
        try:
            resp = self._s3.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise BlobNotFoundError(bucket, key) from e
            raise
        return dict(resp.get("Metadata") or {})

    def delete(self, bucket: str, key: str) -> None:
        try:
            self._s3.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if not _is_not_found(e):
                raise

    def list_keys_by_prefix(
        self,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
    ) -> ListPage:
        kwargs: dict[str, Any] = {"Bucket": bucket}
        if prefix:
            kwargs["Prefix"] = prefix
        if continuation_token is not None:
            kwargs["ContinuationToken"] = continuation_token
        resp = self._s3.list_objects_v2(**kwargs)
        keys: list[str] = []
        for item in resp.get("Contents", []):
            key = item.get("Key")
            if isinstance(key, str):
                keys.append(key)
        return ListPage(keys=keys, next_token=resp.get("NextContinuationToken"))


def as_blob_store(client: Any = None, *, config: RepositoryConfig | None = None) -> BlobStore:
    """Return ``client`` as a :class:`BlobStore`, wrapping raw boto3 clients."""
    if client is None:
        return Boto3BlobStore(config=config)
    if hasattr(client, "list_keys_by_prefix"):
        return client
    return Boto3BlobStore(client)
