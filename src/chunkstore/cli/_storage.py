"""CLI helpers for backend-aware storage and engine construction."""

from __future__ import annotations

from chunkstore.config import ChunkStoreConfig
from chunkstore.insert import InsertionEngine
from chunkstore.storage import StorageProtocol, open_storage


def resolve_storage_binding() -> tuple[str | None, str | None]:
    """Return (directory, storage_uri) from CLI state."""
    from chunkstore.cli import state

    if state.storage_uri:
        return None, state.storage_uri
    return state.directory, None


def config_from_state() -> ChunkStoreConfig:
    """Build the config from the environment, then apply CLI overrides."""
    from chunkstore.cli import state

    cfg = ChunkStoreConfig.from_env()
    if state.max_per_chunk is not None:
        cfg.max_documents_per_chunk = state.max_per_chunk
    return cfg


def open_store() -> StorageProtocol:
    """Open storage using the global CLI storage selection."""
    directory, storage_uri = resolve_storage_binding()
    return open_storage(directory, storage_uri=storage_uri, config=config_from_state())


def open_engine(storage: StorageProtocol) -> InsertionEngine:
    return InsertionEngine(storage, config=config_from_state())
