"""Insertion engine: single and bulk document insertion into chunked tables.

Consistency contract
--------------------
Each call loads the tenant's metadata record, mutates it locally, and
persists it as one value. Metadata and chunks are separate objects with no
transaction spanning them:

* ``insert`` persists the metadata record before the chunk. A failure between
  the two writes leaves a key in ``key_index`` with no document behind it.
* ``bulk_insert`` flushes a chunk each time it fills up and writes the final
  chunk and the metadata record once at the end. A failure part way through a
  batch keeps every chunk flushed before it, but the metadata record naming
  those keys is never written.
* Writers in different processes are last-writer-wins on the metadata
  record. Writers in one process are serialized per tenant when
  ``ChunkStoreConfig.serialize_tenant_writes`` is set.

No failure is retried or compensated; errors propagate unchanged.
"""

from __future__ import annotations

import logging
import os
import threading
import weakref
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from chunkstore.allocator import allocate_chunk
from chunkstore.config import ChunkStoreConfig
from chunkstore.schema import check_json, validate
from chunkstore.storage import StorageProtocol, open_storage
from chunkstore.types import Document, IdFactory, new_id

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
# Entries drop out once no writer holds the lock.
_tenant_locks: weakref.WeakValueDictionary[tuple[str, str], threading.Lock] = (
    weakref.WeakValueDictionary()
)


def _tenant_lock(storage: StorageProtocol, tenant: str) -> threading.Lock:
    namespace = getattr(storage, "uri", None) or f"id:{id(storage)}"
    with _registry_lock:
        lock = _tenant_locks.get((namespace, tenant))
        if lock is None:
            lock = threading.Lock()
            _tenant_locks[(namespace, tenant)] = lock
        return lock


class InsertionEngine:
    """Inserts documents into a tenant's tables through a storage backend."""

    def __init__(
        self,
        storage: StorageProtocol,
        *,
        config: ChunkStoreConfig | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self.storage = storage
        self.config = config or ChunkStoreConfig()
        self._new_id = id_factory or new_id

    @contextmanager
    def _writing(self, tenant: str) -> Iterator[None]:
        if not self.config.serialize_tenant_writes:
            yield
            return
        with _tenant_lock(self.storage, tenant):
            yield

    def _max_per_chunk(self, override: int | None) -> int:
        value = self.config.max_documents_per_chunk if override is None else override
        if value < 1:
            raise ValueError(f"max_documents_per_chunk must be at least 1, got {value}")
        return value

    def insert(
        self,
        tenant: str,
        table: str,
        document: Document,
        *,
        max_documents_per_chunk: int | None = None,
    ) -> str:
        """Insert one document and return its new key."""
        max_per_chunk = self._max_per_chunk(max_documents_per_chunk)
        with self._writing(tenant):
            meta = self.storage.load_meta(tenant)
            descriptor = meta.table(tenant, table)
            if descriptor.table_schema is not None:
                validate(meta, document, descriptor.table_schema)
            else:
                check_json(document)

            key = self._new_id()
            chunk_id = allocate_chunk(
                self.storage, tenant, descriptor, max_per_chunk, self._new_id
            )
            meta.key_index[key] = (table, chunk_id)

            self.storage.save_meta(tenant, meta)

            chunk = self.storage.load_chunk(tenant, chunk_id)
            chunk[key] = document
            self.storage.save_chunk(tenant, chunk_id, chunk)

        logger.debug("tenant %s: inserted %s into %s/%s", tenant, key, table, chunk_id)
        return key

    def bulk_insert(
        self,
        tenant: str,
        table: str,
        documents: Iterable[Document],
        *,
        max_documents_per_chunk: int | None = None,
    ) -> list[str]:
        """Insert documents in order and return one key per document.

        Chunk writes happen only when the working chunk fills up and once at
        the end, together with the single metadata write. ``documents`` is
        drained before the tenant lock is taken, so a generator may itself
        write to the same tenant.
        """
        max_per_chunk = self._max_per_chunk(max_documents_per_chunk)
        documents = list(documents)
        keys: list[str] = []
        flushes = 0
        with self._writing(tenant):
            meta = self.storage.load_meta(tenant)
            descriptor = meta.table(tenant, table)
            schema = descriptor.table_schema

            chunk_id = allocate_chunk(
                self.storage, tenant, descriptor, max_per_chunk, self._new_id
            )
            chunk = self.storage.load_chunk(tenant, chunk_id)

            for document in documents:
                if schema is not None:
                    validate(meta, document, schema)
                else:
                    check_json(document)

                key = self._new_id()
                meta.key_index[key] = (table, chunk_id)
                chunk[key] = document
                keys.append(key)

                if len(chunk) >= max_per_chunk:
                    self.storage.save_chunk(tenant, chunk_id, chunk)
                    flushes += 1
                    chunk_id = allocate_chunk(
                        self.storage, tenant, descriptor, max_per_chunk, self._new_id
                    )
                    chunk = self.storage.load_chunk(tenant, chunk_id)

            self.storage.save_chunk(tenant, chunk_id, chunk)
            self.storage.save_meta(tenant, meta)

        logger.debug(
            "tenant %s: bulk inserted %d documents into %s (%d rollover flushes)",
            tenant,
            len(keys),
            table,
            flushes,
        )
        return keys


def insert(
    directory: str | os.PathLike[str] | None,
    tenant: str,
    table: str,
    document: Document,
    *,
    max_documents_per_chunk: int | None = None,
    storage_uri: str | None = None,
    config: ChunkStoreConfig | None = None,
    id_factory: IdFactory | None = None,
) -> str:
    """Insert ``document`` into ``table`` of ``tenant`` stored under ``directory``."""
    storage = open_storage(directory, storage_uri=storage_uri, config=config)
    try:
        engine = InsertionEngine(storage, config=config, id_factory=id_factory)
        return engine.insert(
            tenant, table, document, max_documents_per_chunk=max_documents_per_chunk
        )
    finally:
        storage.close()


def bulk_insert(
    directory: str | os.PathLike[str] | None,
    tenant: str,
    table: str,
    documents: Iterable[Document],
    *,
    max_documents_per_chunk: int | None = None,
    storage_uri: str | None = None,
    config: ChunkStoreConfig | None = None,
    id_factory: IdFactory | None = None,
) -> list[str]:
    """Insert ``documents`` into ``table`` of ``tenant`` stored under ``directory``."""
    storage = open_storage(directory, storage_uri=storage_uri, config=config)
    try:
        engine = InsertionEngine(storage, config=config, id_factory=id_factory)
        return engine.bulk_insert(
            tenant, table, documents, max_documents_per_chunk=max_documents_per_chunk
        )
    finally:
        storage.close()


__all__ = ["InsertionEngine", "bulk_insert", "insert"]
