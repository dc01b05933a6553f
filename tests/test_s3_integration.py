"""S3 backend integration tests (MinIO-compatible)."""

from __future__ import annotations

import os
import uuid

import boto3
import pytest

from s3_repository import RepositoryConfig, S3Repository
from s3_repository.blob_store import Boto3BlobStore, ObjectMetadata
from s3_repository.errors import MultipleObjectsFoundError

pytestmark = pytest.mark.s3


@pytest.fixture
def s3_backend() -> dict[str, str]:
    if os.getenv("S3_REPOSITORY_S3_TEST") != "1":
        pytest.skip("S3 integration tests disabled (set S3_REPOSITORY_S3_TEST=1)")

    endpoint = os.getenv("S3_REPOSITORY_ENDPOINT_URL", "http://127.0.0.1:9000")
    bucket = os.getenv("S3_REPOSITORY_BUCKET", "s3-repository-test")
    region = os.getenv("S3_REPOSITORY_REGION", "us-east-1")

    s3 = boto3.client("s3", endpoint_url=endpoint, region_name=region)
    existing = {b["Name"] for b in s3.list_buckets().get("Buckets", [])}
    if bucket not in existing:
        s3.create_bucket(Bucket=bucket)

    return {
        "endpoint": endpoint,
        "bucket": bucket,
        "region": region,
        "prefix": f"it/{uuid.uuid4().hex}",
    }


def _repo(backend: dict[str, str], prefix: str | None = None) -> S3Repository:
    return S3Repository(
        backend["bucket"],
        prefix if prefix is not None else backend["prefix"],
        config=RepositoryConfig(
            s3_region=backend["region"],
            s3_endpoint_url=backend["endpoint"],
        ),
    )


def test_save_get_delete_round_trip(s3_backend):
    repo = _repo(s3_backend)
    doc_id = uuid.uuid4().hex

    coords = repo.save(doc_id, {"content": f"expected-test-content-{doc_id}"})
    assert coords.key.startswith(f"{s3_backend['prefix']}/year=")
    assert coords.key.endswith(f"/id={doc_id}")
    assert repo.get(doc_id) == {"content": f"expected-test-content-{doc_id}"}

    repo.delete(doc_id)
    assert repo.get(doc_id) is None
    repo.delete(doc_id)


def test_list_returns_all_saved_documents(s3_backend):
    repo = _repo(s3_backend)
    base = uuid.uuid4().hex
    for i in range(1, 4):
        repo.save(f"{base}.{i}", f"expected content {i}")

    contents = repo.list()
    assert sorted(contents) == ["expected content 1", "expected content 2", "expected content 3"]


def test_prefixes_are_isolated(s3_backend):
    left = _repo(s3_backend, f"{s3_backend['prefix']}/left")
    right = _repo(s3_backend, f"{s3_backend['prefix']}/right")
    left.save("same", {"side": "left"})
    right.save("same", {"side": "right"})

    assert left.list() == [{"side": "left"}]
    assert right.get("same") == {"side": "right"}


def test_duplicate_ids_are_detected(s3_backend):
    repo = _repo(s3_backend)
    repo.save("dup", {"v": 1})
    store = repo.store
    assert isinstance(store, Boto3BlobStore)
    store.put(
        s3_backend["bucket"],
        f"{s3_backend['prefix']}/year=2000/month=1/day=1/id=dup",
        b'{"v":0}',
        ObjectMetadata(id="dup").to_dict(),
    )

    with pytest.raises(MultipleObjectsFoundError):
        repo.get("dup")
    with pytest.raises(MultipleObjectsFoundError):
        repo.delete("dup")
