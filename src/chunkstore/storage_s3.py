"""S3-backed storage: metadata records and chunks as JSON objects."""

from __future__ import annotations

import json
import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from chunkstore.config import ChunkStoreConfig
from chunkstore.errors import StorageFailureError, TenantNotFoundError
from chunkstore.types import Chunk, MetadataRecord

logger = logging.getLogger(__name__)


def _is_not_found(err: Exception) -> bool:
    if isinstance(err, ClientError):
        code = err.response.get("Error", {}).get("Code", "")
        return code in {"NoSuchKey", "404", "NotFound"}
    return False


class S3Storage:
    """S3-backed storage using the same layout as FileStorage, as object keys.

    Keys::

        <prefix>/<tenant>/meta.json
        <prefix>/<tenant>/chunks/<chunk_id>.json
    """

    def __init__(
        self,
        *,
        bucket: str,
        prefix: str,
        storage_uri: str,
        config: ChunkStoreConfig,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.storage_uri = storage_uri
        self.uri = storage_uri
        self._config = config

        if client is None:
            session = boto3.Session(region_name=config.s3_region)
            client = session.client(
                "s3",
                region_name=config.s3_region,
                endpoint_url=config.s3_endpoint_url,
                config=BotoConfig(
                    connect_timeout=config.s3_request_timeout_s,
                    read_timeout=config.s3_request_timeout_s,
                    retries={"max_attempts": config.s3_max_attempts, "mode": "standard"},
                ),
            )
        self._s3 = client

    # --- Key/object helpers ---

    def _k(self, rel_path: str) -> str:
        return f"{self.prefix}/{rel_path}" if self.prefix else rel_path

    def _meta_key(self, tenant: str) -> str:
        return self._k(f"{tenant}/meta.json")

    def _chunk_key(self, tenant: str, chunk_id: str) -> str:
        return self._k(f"{tenant}/chunks/{chunk_id}.json")

    def _get_json(self, operation: str, key: str) -> Any:
        """Fetch and decode a JSON object; ClientError for a missing key propagates."""
        try:
            resp = self._s3.get_object(Bucket=self.bucket, Key=key)
            body = resp["Body"].read()
        except ClientError as e:
            if _is_not_found(e):
                raise
            raise StorageFailureError(operation, f"s3://{self.bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StorageFailureError(operation, f"s3://{self.bucket}/{key}: {e}") from e
        try:
            return json.loads(body.decode("utf-8"))
        except ValueError as e:
            raise StorageFailureError(operation, f"s3://{self.bucket}/{key}: {e}") from e

    def _put_json(self, operation: str, key: str, obj: Any) -> None:
        try:
            body = json.dumps(obj, separators=(",", ":"), allow_nan=False).encode("utf-8")
            self._s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError, TypeError, ValueError) as e:
            raise StorageFailureError(operation, f"s3://{self.bucket}/{key}: {e}") from e

    # --- StorageProtocol ---

    def tenant_exists(self, tenant: str) -> bool:
        key = self._meta_key(tenant)
        try:
            self._s3.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise StorageFailureError("tenant_exists", f"s3://{self.bucket}/{key}: {e}") from e

    def load_meta(self, tenant: str) -> MetadataRecord:
        try:
            data = self._get_json("load_meta", self._meta_key(tenant))
        except ClientError as e:
            raise TenantNotFoundError(tenant) from e
        return MetadataRecord.from_dict(data)

    def save_meta(self, tenant: str, meta: MetadataRecord) -> None:
        self._put_json("save_meta", self._meta_key(tenant), meta.to_dict())

    def load_chunk(self, tenant: str, chunk_id: str) -> Chunk:
        try:
            data = self._get_json("load_chunk", self._chunk_key(tenant, chunk_id))
        except ClientError as e:
            raise StorageFailureError("load_chunk", f"chunk {chunk_id!r} does not exist") from e
        if not isinstance(data, dict):
            raise StorageFailureError("load_chunk", f"chunk {chunk_id!r}: expected an object")
        return data

    def save_chunk(self, tenant: str, chunk_id: str, chunk: Chunk) -> None:
        self._put_json("save_chunk", self._chunk_key(tenant, chunk_id), chunk)

    def close(self) -> None:
        close = getattr(self._s3, "close", None)
        if callable(close):
            close()

    def __repr__(self) -> str:
        return f"S3Storage({self.storage_uri!r})"
