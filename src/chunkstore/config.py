"""Configuration for chunkstore."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class ChunkStoreConfig:
    """Configuration for the insertion engine and storage backends."""

    max_documents_per_chunk: int = 1000
    serialize_tenant_writes: bool = True
    s3_region: str | None = None
    s3_endpoint_url: str | None = None
    s3_request_timeout_s: float = 10.0
    s3_max_attempts: int = 5

    @classmethod
    def from_env(cls) -> ChunkStoreConfig:
        """Build a config from ``CHUNKSTORE_*`` environment variables."""
        cfg = cls()
        max_per_chunk = os.getenv("CHUNKSTORE_MAX_PER_CHUNK")
        if max_per_chunk:
            cfg.max_documents_per_chunk = int(max_per_chunk)
        serialize = os.getenv("CHUNKSTORE_SERIALIZE_TENANT_WRITES")
        if serialize:
            cfg.serialize_tenant_writes = serialize.lower() not in {"0", "false", "no"}
        cfg.s3_region = os.getenv("CHUNKSTORE_S3_REGION")
        cfg.s3_endpoint_url = os.getenv("CHUNKSTORE_S3_ENDPOINT_URL")
        timeout = os.getenv("CHUNKSTORE_S3_REQUEST_TIMEOUT_S")
        if timeout:
            cfg.s3_request_timeout_s = float(timeout)
        return cfg
