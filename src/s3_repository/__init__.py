"""s3_repository: a document repository indexed by logical id over S3."""

__version__ = "0.1.0"

from s3_repository.blob_store import (
    BlobStore,
    Boto3BlobStore,
    ListPage,
    ObjectMetadata,
    StoredObject,
    create_s3_client,
)
from s3_repository.config import RepositoryConfig
from s3_repository.errors import (
    BlobNotFoundError,
    InvalidMetadataError,
    InvalidStorageUriError,
    MultipleObjectsFoundError,
    S3RepositoryError,
)
from s3_repository.listing import list_object_keys
from s3_repository.locator import Locator, MetadataLocator, find_objects_by_metadata
from s3_repository.partitioning import (
    Partition,
    build_key,
    build_partitioned_path,
    date_partitions,
    parse_partitioned_key,
)
from s3_repository.repository import ObjectCoordinates, S3Repository

__all__ = [
    "__version__",
    "S3Repository",
    "ObjectCoordinates",
    "RepositoryConfig",
    "BlobStore",
    "Boto3BlobStore",
    "ListPage",
    "ObjectMetadata",
    "StoredObject",
    "create_s3_client",
    "list_object_keys",
    "Locator",
    "MetadataLocator",
    "find_objects_by_metadata",
    "Partition",
    "build_key",
    "build_partitioned_path",
    "date_partitions",
    "parse_partitioned_key",
    "S3RepositoryError",
    "BlobNotFoundError",
    "MultipleObjectsFoundError",
    "InvalidMetadataError",
    "InvalidStorageUriError",
]
