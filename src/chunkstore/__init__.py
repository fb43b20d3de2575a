"""chunkstore: multi-tenant JSON document store with bounded-size chunks."""

__version__ = "0.1.0"

from chunkstore.allocator import allocate_chunk
from chunkstore.config import ChunkStoreConfig
from chunkstore.errors import (
    ChunkStoreError,
    InvalidSchemaError,
    SchemaViolation,
    SchemaViolationError,
    StorageFailure,
    StorageFailureError,
    TableExistsError,
    TableNotFound,
    TableNotFoundError,
    TenantExistsError,
    TenantNotFoundError,
)
from chunkstore.insert import InsertionEngine, bulk_insert, insert
from chunkstore.schema import check_schema, validate
from chunkstore.storage import FileStorage, StorageProtocol, open_storage
from chunkstore.tables import create_table, create_tenant, describe_tenant
from chunkstore.types import MetadataRecord, TableDescriptor

__all__ = [
    "__version__",
    "insert",
    "bulk_insert",
    "InsertionEngine",
    "allocate_chunk",
    "create_tenant",
    "create_table",
    "describe_tenant",
    "check_schema",
    "validate",
    "FileStorage",
    "StorageProtocol",
    "open_storage",
    "MetadataRecord",
    "TableDescriptor",
    "ChunkStoreConfig",
    "ChunkStoreError",
    "TableNotFound",
    "TableNotFoundError",
    "SchemaViolation",
    "SchemaViolationError",
    "StorageFailure",
    "StorageFailureError",
    "TenantNotFoundError",
    "TenantExistsError",
    "TableExistsError",
    "InvalidSchemaError",
]
