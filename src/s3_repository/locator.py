"""Lookup of physical keys by object metadata.

The blob store has no secondary index, so every lookup lists the whole
prefix and issues one ``head`` request per key. Lookup cost therefore grows
linearly with the number of objects in the repository, not with the number
of matches.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Protocol

from s3_repository.blob_store import BlobStore, ObjectMetadata
from s3_repository.errors import BlobNotFoundError, InvalidMetadataError
from s3_repository.listing import list_object_keys

logger = logging.getLogger(__name__)


def _scan(
    store: BlobStore,
    bucket: str,
    prefix: str,
    matches: Callable[[str, Mapping[str, str]], bool],
) -> list[str]:
    results: list[str] = []
    scanned = 0
    for candidate in list_object_keys(store, bucket, prefix):
        scanned += 1
        try:
            metadata = store.head(bucket, candidate)
        except BlobNotFoundError:
            continue
        if matches(candidate, metadata):
            results.append(candidate)
    logger.debug(
        "Scanned %d object(s) under s3://%s/%s: %d match(es)",
        scanned,
        bucket,
        prefix,
        len(results),
    )
    return results


def find_objects_by_metadata(
    store: BlobStore,
    bucket: str,
    prefix: str,
    metadata_key: str,
    metadata_value: str,
) -> list[str]:
    """Return every key under ``prefix`` whose raw metadata field equals the value.

    This is an O(n) scan over all objects under the prefix. Keys deleted
    between listing and ``head`` are skipped.
    """
    return _scan(
        store,
        bucket,
        prefix,
        lambda _key, metadata: metadata.get(metadata_key) == metadata_value,
    )


class Locator(Protocol):
    """Resolves a logical id to zero or more physical keys."""

    def find_physical_keys(self, logical_id: str) -> list[str]: ...


class MetadataLocator:
    """:class:`Locator` backed by a full metadata scan of one prefix.

    Objects without an ``id`` tag are not part of the repository and are
    skipped.
    """

    def __init__(self, store: BlobStore, bucket: str, prefix: str = "") -> None:
        self.store = store
        self.bucket = bucket
        self.prefix = prefix

    def _matches(self, logical_id: str, key: str, metadata: Mapping[str, str]) -> bool:
        try:
            return ObjectMetadata.from_dict(metadata).id == logical_id
        except InvalidMetadataError:
            logger.debug("Skipping s3://%s/%s: no id metadata", self.bucket, key)
            return False

    def find_physical_keys(self, logical_id: str) -> list[str]:
        return _scan(
            self.store,
            self.bucket,
            self.prefix,
            lambda key, metadata: self._matches(logical_id, key, metadata),
        )
