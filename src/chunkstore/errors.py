"""Structured error types for chunkstore."""

from __future__ import annotations


class ChunkStoreError(Exception):
    """Base error for all chunkstore errors."""


class TableNotFoundError(ChunkStoreError):
    """Raised when an insert targets a table absent from the tenant's table index."""

    def __init__(self, tenant: str, table: str) -> None:
        self.tenant = tenant
        self.table = table
        super().__init__(f'No table with name "{table}" to insert into (tenant {tenant!r})')


class SchemaViolationError(ChunkStoreError):
    """Raised when a document does not conform to its table's schema."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Document does not match table schema: {detail}")


class StorageFailureError(ChunkStoreError):
    """Raised when loading or saving metadata or a chunk fails."""

    def __init__(self, operation: str, cause: str) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Storage failure during {operation}: {cause}")


class TenantNotFoundError(StorageFailureError):
    """Raised when a tenant has no metadata record."""

    def __init__(self, tenant: str) -> None:
        self.tenant = tenant
        super().__init__("load_meta", f"tenant {tenant!r} is not initialized")


class TenantExistsError(ChunkStoreError):
    """Raised when creating a tenant that already has a metadata record."""

    def __init__(self, tenant: str) -> None:
        self.tenant = tenant
        super().__init__(f"Tenant {tenant!r} already exists")


class TableExistsError(ChunkStoreError):
    """Raised when creating a table that is already in the table index."""

    def __init__(self, tenant: str, table: str) -> None:
        self.tenant = tenant
        self.table = table
        super().__init__(f"Table {table!r} already exists in tenant {tenant!r}")


class InvalidSchemaError(ChunkStoreError):
    """Raised when a table schema uses an unknown type tag or malformed field."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid schema at '{path}': {detail}")


# Short names used by callers that branch on the three insertion failure kinds.
TableNotFound = TableNotFoundError
SchemaViolation = SchemaViolationError
StorageFailure = StorageFailureError
