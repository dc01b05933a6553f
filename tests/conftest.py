"""Shared test fixtures for s3_repository tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping

import pytest

from s3_repository import S3Repository
from s3_repository.blob_store import ListPage, StoredObject
from s3_repository.errors import BlobNotFoundError
from s3_repository.partitioning import date_partitions

BUCKET = "test-bucket"
FIXED_NOW = datetime(2024, 3, 7, 12, 30, tzinfo=timezone.utc)


class InMemoryBlobStore:
    """BlobStore fake with S3-like lexical listing and small pages."""

    def __init__(self, page_size: int = 1000) -> None:
        self.page_size = page_size
        self.objects: dict[tuple[str, str], StoredObject] = {}
        self.list_calls: list[tuple[str, str, str | None]] = []
        self.head_calls: list[str] = []
        self.deleted: list[str] = []

    def put(
        self,
        bucket: str,
        key: str,
        body: bytes,
        metadata: Mapping[str, str],
        *,
        content_type: str | None = None,
    ) -> None:
        self.objects[(bucket, key)] = StoredObject(body=body, metadata=dict(metadata))

    def get(self, bucket: str, key: str) -> StoredObject:
        try:
            return self.objects[(bucket, key)]
        except KeyError:
            raise BlobNotFoundError(bucket, key) from None

    def head(self, bucket: str, key: str) -> dict[str, str]:
        self.head_calls.append(key)
        try:
            return dict(self.objects[(bucket, key)].metadata)
        except KeyError:
            raise BlobNotFoundError(bucket, key) from None

    def delete(self, bucket: str, key: str) -> None:
        self.deleted.append(key)
        self.objects.pop((bucket, key), None)

    def list_keys_by_prefix(
        self,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
    ) -> ListPage:
        self.list_calls.append((bucket, prefix, continuation_token))
        keys = sorted(k for (b, k) in self.objects if b == bucket and k.startswith(prefix))
        if continuation_token is not None:
            keys = [k for k in keys if k > continuation_token]
        page = keys[: self.page_size]
        next_token = page[-1] if len(keys) > self.page_size else None
        return ListPage(keys=page, next_token=next_token)


def fixed_partitions():
    return date_partitions(FIXED_NOW)


@pytest.fixture
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore(page_size=2)


@pytest.fixture
def repo(store) -> S3Repository:
    return S3Repository(BUCKET, "orders", store, partitioner=fixed_partitions)
