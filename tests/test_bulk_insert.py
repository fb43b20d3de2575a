"""Tests for batched insertion with rollover flushing."""

from __future__ import annotations

import threading

import pytest

import chunkstore
from chunkstore import InsertionEngine
from chunkstore.config import ChunkStoreConfig
from chunkstore.errors import SchemaViolationError, TableNotFoundError
from tests.conftest import TENANT, chunk_sizes


def _engine(storage, ids, max_per_chunk):
    return InsertionEngine(
        storage, config=ChunkStoreConfig(max_documents_per_chunk=max_per_chunk), id_factory=ids
    )


def _user(i):
    return {"name": f"user{i}", "age": i, "address": {"city": "Oslo"}}


class TestBulkInsert:
    def test_three_documents_two_per_chunk(self, file_storage, ids):
        docs = [{"n": 1}, {"n": 2}, {"n": 3}]
        keys = _engine(file_storage, ids, 2).bulk_insert(TENANT, "notes", docs)

        assert len(keys) == 3
        assert len(set(keys)) == 3
        meta = file_storage.load_meta(TENANT)
        c1, c2 = meta.table_index["notes"].chunks
        assert file_storage.load_chunk(TENANT, c1) == {keys[0]: docs[0], keys[1]: docs[1]}
        assert file_storage.load_chunk(TENANT, c2) == {keys[2]: docs[2]}

    def test_keys_follow_input_order(self, file_storage, ids):
        docs = [{"n": i} for i in range(5)]
        keys = _engine(file_storage, ids, 10).bulk_insert(TENANT, "notes", docs)

        meta = file_storage.load_meta(TENANT)
        for key, doc in zip(keys, docs):
            table, chunk_id = meta.key_index[key]
            assert table == "notes"
            assert file_storage.load_chunk(TENANT, chunk_id)[key] == doc

    def test_capacity_bound(self, file_storage, ids):
        _engine(file_storage, ids, 3).bulk_insert(TENANT, "notes", [{"n": i} for i in range(7)])

        assert chunk_sizes(file_storage, "notes") == [3, 3, 1]

    def test_exact_fill_leaves_empty_working_chunk(self, file_storage, ids):
        _engine(file_storage, ids, 2).bulk_insert(TENANT, "notes", [{"n": i} for i in range(4)])

        assert chunk_sizes(file_storage, "notes") == [2, 2, 0]

    def test_continues_partially_filled_chunk(self, file_storage, ids):
        engine = _engine(file_storage, ids, 3)
        first = engine.insert(TENANT, "notes", {"n": 0})
        keys = engine.bulk_insert(TENANT, "notes", [{"n": 1}, {"n": 2}, {"n": 3}])

        meta = file_storage.load_meta(TENANT)
        c1 = meta.table_index["notes"].chunks[0]
        assert set(file_storage.load_chunk(TENANT, c1)) == {first, keys[0], keys[1]}
        assert chunk_sizes(file_storage, "notes") == [3, 1]

    def test_single_metadata_write(self, storage, ids):
        _engine(storage, ids, 10).bulk_insert(TENANT, "notes", [{"n": i} for i in range(5)])

        assert storage.writes() == [
            ("save_chunk", TENANT, "id-1", "0"),
            ("save_chunk", TENANT, "id-1", "5"),
            ("save_meta", TENANT),
        ]

    def test_flushes_on_rollover_and_at_end(self, storage, ids):
        _engine(storage, ids, 2).bulk_insert(TENANT, "notes", [{"n": i} for i in range(3)])

        # id-1 initial chunk, id-2/id-3 keys, id-4 rollover chunk, id-5 key.
        assert storage.writes() == [
            ("save_chunk", TENANT, "id-1", "0"),
            ("save_chunk", TENANT, "id-1", "2"),
            ("save_chunk", TENANT, "id-4", "0"),
            ("save_chunk", TENANT, "id-4", "1"),
            ("save_meta", TENANT),
        ]

    def test_accepts_generator(self, file_storage, ids):
        keys = _engine(file_storage, ids, 2).bulk_insert(
            TENANT, "notes", ({"n": i} for i in range(3))
        )

        assert len(keys) == 3
        assert chunk_sizes(file_storage, "notes") == [2, 1]

    def test_empty_batch_still_allocates(self, file_storage, ids):
        keys = _engine(file_storage, ids, 2).bulk_insert(TENANT, "notes", [])

        assert keys == []
        assert chunk_sizes(file_storage, "notes") == [0]

    def test_schema_table(self, file_storage, ids):
        keys = _engine(file_storage, ids, 2).bulk_insert(
            TENANT, "users", [_user(i) for i in range(3)]
        )

        assert len(file_storage.load_meta(TENANT).key_index) == len(keys) == 3

    def test_module_bulk_insert(self, file_storage, data_dir):
        keys = chunkstore.bulk_insert(
            data_dir, TENANT, "notes", [{"n": 1}, {"n": 2}], max_documents_per_chunk=1
        )

        assert len(keys) == 2
        assert chunk_sizes(file_storage, "notes") == [1, 1, 0]


class TestBulkInsertFailures:
    def test_missing_table(self, storage, ids):
        with pytest.raises(TableNotFoundError):
            _engine(storage, ids, 2).bulk_insert(TENANT, "ghosts", [{"n": 1}])
        assert storage.writes() == []

    def test_violation_before_rollover_leaves_metadata_untouched(self, file_storage, ids):
        docs = [_user(0), {"name": "broken"}, _user(2)]
        with pytest.raises(SchemaViolationError):
            _engine(file_storage, ids, 10).bulk_insert(TENANT, "users", docs)

        meta = file_storage.load_meta(TENANT)
        assert meta.key_index == {}
        assert meta.table_index["users"].chunks == []

    def test_violation_after_rollover_keeps_flushed_chunk(self, file_storage, ids):
        docs = [_user(0), _user(1), {"name": "broken"}]
        with pytest.raises(SchemaViolationError):
            _engine(file_storage, ids, 2).bulk_insert(TENANT, "users", docs)

        # The first chunk was flushed at rollover; the metadata record was not.
        assert len(file_storage.load_chunk(TENANT, "id-1")) == 2
        meta = file_storage.load_meta(TENANT)
        assert meta.key_index == {}
        assert meta.table_index["users"].chunks == []

    def test_violation_is_reported_before_key_minted(self, file_storage, ids):
        with pytest.raises(SchemaViolationError):
            _engine(file_storage, ids, 10).bulk_insert(TENANT, "users", [{"age": 1}])

        # Only the chunk id was drawn from the factory.
        assert ids() == "id-2"

    def test_schemaless_table_rejects_lossy_json(self, file_storage, ids):
        with pytest.raises(SchemaViolationError) as exc_info:
            _engine(file_storage, ids, 10).bulk_insert(
                TENANT, "notes", [{"n": 1}, {"n": float("nan")}]
            )

        assert exc_info.value.detail.startswith("$.n:")
        assert file_storage.load_meta(TENANT).key_index == {}

    def test_generator_may_insert_into_same_tenant(self, file_storage, ids):
        engine = _engine(file_storage, ids, 10)
        inner: list[str] = []
        outer: list[str] = []

        def docs():
            for i in range(2):
                inner.append(engine.insert(TENANT, "notes", {"inner": i}))
                yield {"outer": i}

        worker = threading.Thread(
            target=lambda: outer.extend(engine.bulk_insert(TENANT, "notes", docs())),
            daemon=True,
        )
        worker.start()
        worker.join(timeout=10)

        assert not worker.is_alive()
        assert len(outer) == 2
        assert set(file_storage.load_meta(TENANT).key_index) == set(inner + outer)
