"""Chunk allocation: pick the first chunk with spare capacity, or mint a new one."""

from __future__ import annotations

import logging

from chunkstore.storage import StorageProtocol
from chunkstore.types import IdFactory, TableDescriptor, new_id

logger = logging.getLogger(__name__)


def allocate_chunk(
    storage: StorageProtocol,
    tenant: str,
    descriptor: TableDescriptor,
    max_per_chunk: int,
    id_factory: IdFactory = new_id,
) -> str:
    """Return the id of a chunk in ``descriptor`` holding fewer than ``max_per_chunk`` documents.

    Chunks are scanned oldest first and the first one with room wins, so the
    choice depends only on creation order. Every scan loads each full chunk
    ahead of the winner, which makes allocation O(chunks) for tables with many
    full chunks.

    When nothing qualifies a new empty chunk is persisted and its id appended
    to ``descriptor.chunks``. The caller owns the descriptor and is
    responsible for persisting the metadata record that contains it.
    """
    if max_per_chunk < 1:
        raise ValueError(f"max_per_chunk must be at least 1, got {max_per_chunk}")

    for chunk_id in descriptor.chunks:
        size = len(storage.load_chunk(tenant, chunk_id))
        if size < max_per_chunk:
            logger.debug("tenant %s: reusing chunk %s (%d/%d)", tenant, chunk_id, size, max_per_chunk)
            return chunk_id

    chunk_id = id_factory()
    storage.save_chunk(tenant, chunk_id, {})
    descriptor.chunks.append(chunk_id)
    logger.debug(
        "tenant %s: created chunk %s (chunk #%d)", tenant, chunk_id, len(descriptor.chunks)
    )
    return chunk_id
