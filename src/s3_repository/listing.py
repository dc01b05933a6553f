"""Prefix listing that follows continuation tokens to exhaustion."""

from __future__ import annotations

import logging
from typing import Iterator

from s3_repository.blob_store import BlobStore

logger = logging.getLogger(__name__)


def list_object_keys(store: BlobStore, bucket: str, prefix: str = "") -> Iterator[str]:
    """Yield every key under ``prefix``, one page at a time.

    Each call owns its own cursor; pages are requested lazily as the iterator
    advances. Keys created or removed between pages may or may not appear.
    Transport errors propagate without retry.
    """
    token: str | None = None
    pages = 0
    while True:
        page = store.list_keys_by_prefix(bucket, prefix, token)
        pages += 1
        yield from page.keys
        token = page.next_token
        if not token:
            break
    logger.debug("Listed s3://%s/%s in %d page(s)", bucket, prefix, pages)
