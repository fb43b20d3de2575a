"""Shared test fixtures for chunkstore tests."""

from __future__ import annotations

import itertools
from typing import Any

import pytest

from chunkstore.storage import FileStorage
from chunkstore.tables import create_table, create_tenant
from chunkstore.types import Chunk, MetadataRecord

TENANT = "acme"

USER_SCHEMA: dict[str, Any] = {
    "name": "string",
    "age": "number",
    "active": "boolean?",
    "address": {"city": "string", "zip": "string?"},
}


class RecordingStorage:
    """Wraps a storage backend and records every call in order."""

    def __init__(self, inner: FileStorage) -> None:
        self.inner = inner
        self.uri = inner.uri
        self.calls: list[tuple[str, ...]] = []

    def writes(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0].startswith("save_")]

    def tenant_exists(self, tenant: str) -> bool:
        return self.inner.tenant_exists(tenant)

    def load_meta(self, tenant: str) -> MetadataRecord:
        self.calls.append(("load_meta", tenant))
        return self.inner.load_meta(tenant)

    def save_meta(self, tenant: str, meta: MetadataRecord) -> None:
        self.calls.append(("save_meta", tenant))
        self.inner.save_meta(tenant, meta)

    def load_chunk(self, tenant: str, chunk_id: str) -> Chunk:
        self.calls.append(("load_chunk", tenant, chunk_id))
        return self.inner.load_chunk(tenant, chunk_id)

    def save_chunk(self, tenant: str, chunk_id: str, chunk: Chunk) -> None:
        self.calls.append(("save_chunk", tenant, chunk_id, str(len(chunk))))
        self.inner.save_chunk(tenant, chunk_id, chunk)

    def close(self) -> None:
        self.inner.close()


def sequential_ids(prefix: str = "id"):
    """Deterministic identifier factory: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


# --- Fixtures ---


@pytest.fixture
def data_dir(tmp_path):
    """Temporary data directory."""
    return tmp_path / "data"


@pytest.fixture
def file_storage(data_dir):
    """FileStorage with tenant ``acme`` holding a schema-less ``notes`` table
    and a ``users`` table constrained by USER_SCHEMA."""
    storage = FileStorage(data_dir)
    create_tenant(storage, TENANT)
    create_table(storage, TENANT, "notes")
    create_table(storage, TENANT, "users", USER_SCHEMA)
    return storage


@pytest.fixture
def storage(file_storage):
    """Recording wrapper over the seeded FileStorage."""
    return RecordingStorage(file_storage)


@pytest.fixture
def ids():
    return sequential_ids()


def chunk_sizes(storage: Any, table: str, tenant: str = TENANT) -> list[int]:
    meta = storage.load_meta(tenant)
    return [len(storage.load_chunk(tenant, c)) for c in meta.table_index[table].chunks]
