"""Configuration for S3-backed repositories."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class RepositoryConfig:
    """Configuration for the default S3 client and repository fan-out."""

    s3_region: str | None = None
    s3_endpoint_url: str | None = None
    s3_request_timeout_s: float = 10.0
    s3_max_attempts: int = 5
    max_concurrency: int = 8

    @classmethod
    def from_env(cls) -> RepositoryConfig:
        """Build config from ``S3_REPOSITORY_*`` environment variables."""
        concurrency = os.getenv("S3_REPOSITORY_MAX_CONCURRENCY")
        return cls(
            s3_region=os.getenv("S3_REPOSITORY_REGION"),
            s3_endpoint_url=os.getenv("S3_REPOSITORY_ENDPOINT_URL"),
            max_concurrency=int(concurrency) if concurrency else cls.max_concurrency,
        )
