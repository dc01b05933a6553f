"""Document repository over a blob store, indexed by logical id."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar
from urllib.parse import urlparse

from s3_repository.blob_store import BlobStore, ObjectMetadata, as_blob_store
from s3_repository.config import RepositoryConfig
from s3_repository.errors import (
    BlobNotFoundError,
    InvalidStorageUriError,
    MultipleObjectsFoundError,
)
from s3_repository.listing import list_object_keys
from s3_repository.locator import Locator, MetadataLocator
from s3_repository.partitioning import Partition, build_key, date_partitions

logger = logging.getLogger(__name__)

T = TypeVar("T")

Partitioner = Callable[[], list[Partition]]

_MISSING = object()


@dataclass(frozen=True)
class ObjectCoordinates:
    """Where a saved document physically lives."""

    bucket: str
    key: str


def normalize_prefix(prefix: str | None) -> str:
    """Return ``prefix`` with surrounding slashes removed and exactly one trailing ``/``."""
    if prefix is None:
        return ""
    clean = prefix.strip("/")
    return f"{clean}/" if clean else ""


class S3Repository(Generic[T]):
    """A minimal document store backed by an S3 bucket.

    Documents are JSON-serializable values addressed by a caller-supplied
    logical id. Each :meth:`save` writes a new object under a date-partitioned
    key (``[prefix]year=Y/month=M/day=D/id=<id>``) and records the logical id
    in the object's metadata. Reads and deletes find objects by scanning that
    metadata, so they cost one ``head`` request per object under the prefix.

    Known limitation: saving the same id again on a different UTC day writes
    a second object instead of replacing the first. Both carry the same id,
    and :meth:`get` and :meth:`delete` then raise
    :class:`MultipleObjectsFoundError` until the stale copy is removed.

    S3 is eventually consistent and offers no transactions, so concurrent
    writers of the same id can lose data, and :meth:`list` may miss or include
    objects that change while it runs.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str | None = None,
        client: Any = None,
        *,
        config: RepositoryConfig | None = None,
        partitioner: Partitioner | None = None,
        locator: Locator | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = normalize_prefix(prefix)
        self._config = config or RepositoryConfig()
        self._store = as_blob_store(client, config=self._config)
        self._partitioner = partitioner or date_partitions
        self._locator = locator or MetadataLocator(self._store, bucket, self.prefix)

    @classmethod
    def from_uri(
        cls,
        storage_uri: str,
        client: Any = None,
        *,
        config: RepositoryConfig | None = None,
        partitioner: Partitioner | None = None,
    ) -> S3Repository[T]:
        """Open a repository from an ``s3://bucket/prefix`` URI."""
        parsed = urlparse(storage_uri)
        if parsed.scheme != "s3" or not parsed.netloc:
            raise InvalidStorageUriError(storage_uri)
        return cls(
            parsed.netloc,
            parsed.path,
            client,
            config=config,
            partitioner=partitioner,
        )

    @property
    def store(self) -> BlobStore:
        return self._store

    # --- Helpers ---

    def _strip_prefix(self, key: str) -> str:
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix) :]
        return key

    def _locate(self, logical_id: str) -> list[str]:
        keys = self._locator.find_physical_keys(logical_id)
        if len(keys) > 1:
            logger.warning(
                "Found %d objects for id '%s' in s3://%s/%s",
                len(keys),
                logical_id,
                self.bucket,
                self.prefix,
            )
            raise MultipleObjectsFoundError(logical_id, keys)
        return keys

    def _fetch(self, key: str) -> Any:
        stored = self._store.get(self.bucket, key)
        return json.loads(stored.body.decode("utf-8"))

    def _fetch_listed(self, key: str) -> Any:
        try:
            return self._fetch(key)
        except BlobNotFoundError:
            logger.debug("Dropping s3://%s/%s: removed after listing", self.bucket, key)
        except ValueError as e:
            logger.debug("Dropping s3://%s/%s: unreadable body (%s)", self.bucket, key, e)
        return _MISSING

    # --- Public API ---

    def save(self, logical_id: str, data: T) -> ObjectCoordinates:
        """Store ``data`` under a fresh partitioned key and return its location.

        Never looks for or replaces an earlier object with the same id.
        """
        key = build_key(self._partitioner(), logical_id, self.prefix)
        body = json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")
        self._store.put(
            self.bucket,
            key,
            body,
            ObjectMetadata(id=logical_id).to_dict(),
            content_type="application/json",
        )
        logger.debug("Saved id '%s' to s3://%s/%s", logical_id, self.bucket, key)
        return ObjectCoordinates(bucket=self.bucket, key=key)

    def get(self, logical_id: str) -> T | None:
        """Return the document stored for ``logical_id``, or ``None`` if there is none.

        Raises :class:`MultipleObjectsFoundError` if more than one object
        carries the id.
        """
        keys = self._locate(logical_id)
        if not keys:
            return None
        try:
            return self._fetch(keys[0])
        except BlobNotFoundError:
            return None

    def delete(self, logical_id: str) -> None:
        """Delete the document stored for ``logical_id``; a missing id is a no-op.

        Raises :class:`MultipleObjectsFoundError` if more than one object
        carries the id, without deleting any of them.
        """
        for key in self._locate(logical_id):
            try:
                self._store.delete(self.bucket, key)
            except BlobNotFoundError:
                continue
            logger.debug("Deleted id '%s' at s3://%s/%s", logical_id, self.bucket, key)

    def list(self) -> list[T]:
        """Return every document under the prefix, in key order.

        Objects that disappear between listing and fetch (``BlobNotFoundError``)
        or whose body is not valid UTF-8 JSON (``ValueError``) are left out.
        Any other transport error fails the whole call.
        """
        keys = list(list_object_keys(self._store, self.bucket, self.prefix))
        if not keys:
            return []
        workers = max(1, min(self._config.max_concurrency, len(keys)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            fetched = pool.map(self._fetch_listed, keys)
            return [doc for doc in fetched if doc is not _MISSING]

    def list_keys(self) -> list[str]:
        """Return every physical key under the prefix, with the prefix removed."""
        return [
            self._strip_prefix(key)
            for key in list_object_keys(self._store, self.bucket, self.prefix)
        ]

    def find_keys(self, logical_id: str) -> list[str]:
        """Return all physical keys tagged with ``logical_id``, with the prefix removed.

        Unlike :meth:`get`, this does not raise when several objects match,
        so it can be used to inspect and repair duplicates.
        """
        return [self._strip_prefix(key) for key in self._locator.find_physical_keys(logical_id)]


__all__ = [
    "ObjectCoordinates",
    "Partitioner",
    "S3Repository",
    "normalize_prefix",
]
