"""Metadata and chunk storage backends."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlparse

from chunkstore.config import ChunkStoreConfig
from chunkstore.errors import StorageFailureError, TenantNotFoundError
from chunkstore.types import Chunk, MetadataRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageTarget:
    """Resolved storage target from a directory or URI."""

    backend: str
    uri: str
    directory: str | None = None
    bucket: str | None = None
    prefix: str | None = None


def parse_storage_target(
    directory: str | None = None,
    storage_uri: str | None = None,
) -> StorageTarget:
    """Resolve the backend target from a plain directory or a storage URI."""
    if storage_uri is None and directory is None:
        directory = "."

    if storage_uri is None and directory is not None:
        return StorageTarget(backend="file", uri=f"file://{os.path.abspath(directory)}", directory=directory)

    assert storage_uri is not None
    parsed = urlparse(storage_uri)

    if parsed.scheme == "file":
        path = f"{parsed.netloc}{parsed.path}"
        if not path:
            raise StorageFailureError("parse_storage_uri", f"Invalid file URI: {storage_uri}")
        if directory is not None and os.path.abspath(directory) != os.path.abspath(path):
            raise StorageFailureError(
                "parse_storage_uri",
                f"Conflicting directory '{directory}' and storage_uri '{storage_uri}'",
            )
        return StorageTarget(backend="file", uri=storage_uri, directory=path)

    if parsed.scheme == "s3":
        bucket = parsed.netloc
        prefix = parsed.path.strip("/")
        if not bucket:
            raise StorageFailureError("parse_storage_uri", f"Invalid s3 URI: {storage_uri}")
        if directory is not None:
            raise StorageFailureError(
                "parse_storage_uri",
                "directory cannot be provided for s3 storage targets",
            )
        return StorageTarget(backend="s3", uri=storage_uri, bucket=bucket, prefix=prefix)

    raise StorageFailureError(
        "parse_storage_uri",
        f"Unsupported storage URI scheme '{parsed.scheme}' for '{storage_uri}'",
    )


@runtime_checkable
class StorageProtocol(Protocol):
    """Backend contract consumed by the insertion engine and table bootstrap."""

    def tenant_exists(self, tenant: str) -> bool: ...

    def load_meta(self, tenant: str) -> MetadataRecord: ...

    def save_meta(self, tenant: str, meta: MetadataRecord) -> None: ...

    def load_chunk(self, tenant: str, chunk_id: str) -> Chunk: ...

    def save_chunk(self, tenant: str, chunk_id: str, chunk: Chunk) -> None: ...

    def close(self) -> None: ...


def _check_name(kind: str, name: str) -> None:
    if not name or name in {".", ".."} or "/" in name or "\\" in name:
        raise StorageFailureError("resolve_path", f"invalid {kind} name {name!r}")


class FileStorage:
    """Directory-backed storage: one JSON file per metadata record and per chunk.

    Layout::

        <directory>/<tenant>/meta.json
        <directory>/<tenant>/chunks/<chunk_id>.json
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)
        self.uri = f"file://{os.path.abspath(self.directory)}"

    def _tenant_dir(self, tenant: str) -> Path:
        _check_name("tenant", tenant)
        return self.directory / tenant

    def _meta_path(self, tenant: str) -> Path:
        return self._tenant_dir(tenant) / "meta.json"

    def _chunk_path(self, tenant: str, chunk_id: str) -> Path:
        _check_name("chunk", chunk_id)
        return self._tenant_dir(tenant) / "chunks" / f"{chunk_id}.json"

    def _read_json(self, operation: str, path: Path) -> Any:
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise
        except (OSError, ValueError) as e:
            raise StorageFailureError(operation, f"{path}: {e}") from e

    def _write_json(self, operation: str, path: Path, obj: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(obj, f, separators=(",", ":"), allow_nan=False)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageFailureError(operation, f"{path}: {e}") from e

    def tenant_exists(self, tenant: str) -> bool:
        return self._meta_path(tenant).exists()

    def load_meta(self, tenant: str) -> MetadataRecord:
        try:
            data = self._read_json("load_meta", self._meta_path(tenant))
        except FileNotFoundError as e:
            raise TenantNotFoundError(tenant) from e
        return MetadataRecord.from_dict(data)

    def save_meta(self, tenant: str, meta: MetadataRecord) -> None:
        self._write_json("save_meta", self._meta_path(tenant), meta.to_dict())

    def load_chunk(self, tenant: str, chunk_id: str) -> Chunk:
        path = self._chunk_path(tenant, chunk_id)
        try:
            data = self._read_json("load_chunk", path)
        except FileNotFoundError as e:
            raise StorageFailureError("load_chunk", f"chunk {chunk_id!r} does not exist") from e
        if not isinstance(data, dict):
            raise StorageFailureError("load_chunk", f"{path}: expected an object")
        return data

    def save_chunk(self, tenant: str, chunk_id: str, chunk: Chunk) -> None:
        self._write_json("save_chunk", self._chunk_path(tenant, chunk_id), chunk)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"FileStorage({str(self.directory)!r})"


def open_storage(
    directory: str | os.PathLike[str] | None = None,
    *,
    storage_uri: str | None = None,
    config: ChunkStoreConfig | None = None,
) -> StorageProtocol:
    """Open a storage backend from a directory or a storage URI."""
    target = parse_storage_target(
        directory=os.fspath(directory) if directory is not None else None,
        storage_uri=storage_uri,
    )
    logger.debug("opening %s storage at %s", target.backend, target.uri)
    if target.backend == "file":
        assert target.directory is not None
        return FileStorage(target.directory)
    if target.backend == "s3":
        from chunkstore.storage_s3 import S3Storage

        assert target.bucket is not None
        return S3Storage(
            bucket=target.bucket,
            prefix=target.prefix or "",
            storage_uri=target.uri,
            config=config or ChunkStoreConfig(),
        )
    raise StorageFailureError("open_storage", f"Unsupported backend '{target.backend}'")


__all__ = [
    "FileStorage",
    "StorageProtocol",
    "StorageTarget",
    "open_storage",
    "parse_storage_target",
]
