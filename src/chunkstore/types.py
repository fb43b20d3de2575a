"""Document, chunk, and metadata record types for chunkstore."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from chunkstore.errors import StorageFailureError, TableNotFoundError

Document = dict[str, Any]
Chunk = dict[str, Document]
Schema = dict[str, Any]

IdFactory = Callable[[], str]


def new_id() -> str:
    """Mint a random identifier for a key or chunk."""
    return str(uuid.uuid4())


class TableDescriptor(BaseModel):
    """Per-table schema plus its chunk identifiers in creation order."""

    model_config = ConfigDict(populate_by_name=True)

    table_schema: Schema | None = Field(default=None, alias="schema")
    chunks: list[str] = Field(default_factory=list)


class MetadataRecord(BaseModel):
    """One tenant's key index and table index.

    ``key_index`` maps each document key to ``(table, chunk_id)``. Chunk lists
    only grow and table entries are never removed by insertion.
    """

    key_index: dict[str, tuple[str, str]] = Field(default_factory=dict)
    table_index: dict[str, TableDescriptor] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> MetadataRecord:
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise StorageFailureError("load_meta", f"malformed metadata record: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def table(self, tenant: str, name: str) -> TableDescriptor:
        """Return the descriptor for ``name`` or raise TableNotFoundError."""
        descriptor = self.table_index.get(name)
        if descriptor is None:
            raise TableNotFoundError(tenant, name)
        return descriptor
