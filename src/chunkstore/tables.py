"""Tenant and table bootstrap, plus a read-only tenant summary."""

from __future__ import annotations

import logging
from typing import Any

from chunkstore.errors import TableExistsError, TenantExistsError
from chunkstore.schema import check_schema
from chunkstore.storage import StorageProtocol
from chunkstore.types import MetadataRecord, Schema, TableDescriptor

logger = logging.getLogger(__name__)


def create_tenant(storage: StorageProtocol, tenant: str) -> MetadataRecord:
    """Write an empty metadata record for ``tenant``."""
    if storage.tenant_exists(tenant):
        raise TenantExistsError(tenant)
    meta = MetadataRecord()
    storage.save_meta(tenant, meta)
    logger.info("created tenant %s", tenant)
    return meta


def create_table(
    storage: StorageProtocol,
    tenant: str,
    table: str,
    schema: Schema | None = None,
) -> TableDescriptor:
    """Add an empty table to ``tenant``, optionally constrained by ``schema``."""
    if not table:
        raise ValueError("table name must be non-empty")
    if schema is not None:
        check_schema(schema)
    meta = storage.load_meta(tenant)
    if table in meta.table_index:
        raise TableExistsError(tenant, table)
    descriptor = TableDescriptor(table_schema=schema)
    meta.table_index[table] = descriptor
    storage.save_meta(tenant, meta)
    logger.info("created table %s in tenant %s (schema=%s)", table, tenant, schema is not None)
    return descriptor


def describe_tenant(storage: StorageProtocol, tenant: str) -> list[dict[str, Any]]:
    """Summarize each table: chunk count, stored documents, and indexed keys."""
    meta = storage.load_meta(tenant)
    indexed: dict[str, int] = {}
    for table, _chunk_id in meta.key_index.values():
        indexed[table] = indexed.get(table, 0) + 1

    rows = []
    for name, descriptor in sorted(meta.table_index.items()):
        documents = sum(len(storage.load_chunk(tenant, c)) for c in descriptor.chunks)
        rows.append(
            {
                "table": name,
                "has_schema": descriptor.table_schema is not None,
                "chunks": len(descriptor.chunks),
                "documents": documents,
                "indexed_keys": indexed.get(name, 0),
            }
        )
    return rows
