"""Tests for the DuckDB persistence backend."""

import pytest

from querylog.query_history import Instance, QueryEntry, QueryHistory
from querylog.storage import DuckDBBackend, RecordExistsError, RecordNotFoundError, StorageConfig, create_backend


@pytest.fixture
async def duckdb_backend(tmp_path):
    """An initialized DuckDB backend in a temporary directory."""
    backend = DuckDBBackend(StorageConfig(type="duckdb", path=str(tmp_path / "nested" / "history.duckdb")))
    await backend.initialize()
    yield backend
    await backend.close()


class TestDuckDBBackend:
    """Tests for DuckDBBackend."""

    async def test_initialize_creates_parent_directory(self, duckdb_backend, tmp_path):
        assert (tmp_path / "nested").is_dir()
        assert duckdb_backend.get_info()["connected"] is True

    async def test_unknown_user(self, duckdb_backend):
        assert await duckdb_backend.find_user_by_name("alice") is None

    async def test_create_and_find(self, duckdb_backend):
        created = await duckdb_backend.create_user("alice")
        found = await duckdb_backend.find_user_by_name("alice")

        assert created.username == found.username == "alice"
        assert found.query_history == []

    async def test_create_twice_fails(self, duckdb_backend):
        await duckdb_backend.create_user("alice")

        with pytest.raises(RecordExistsError):
            await duckdb_backend.create_user("alice")

    async def test_save_replaces_history(self, duckdb_backend):
        record = await duckdb_backend.create_user("alice")
        record.query_history.append(QueryEntry(query_string="SELECT 1", instances=[Instance("i1", {"rows": 1}, "t1")]))

        await duckdb_backend.save(record)

        loaded = await duckdb_backend.find_user_by_name("alice")
        assert loaded == record

    async def test_save_unknown_user_fails(self, duckdb_backend):
        record = await duckdb_backend.create_user("alice")
        record.username = "bob"

        with pytest.raises(RecordNotFoundError):
            await duckdb_backend.save(record)

    async def test_metrics_insert_and_delete(self, duckdb_backend):
        metrics_id = await duckdb_backend.insert_metrics({"execution_time_ms": 5})
        assert await duckdb_backend.get_metrics(metrics_id) == {"execution_time_ms": 5}

        await duckdb_backend.delete_metrics_by_id(metrics_id)

        assert await duckdb_backend.get_metrics(metrics_id) is None
        with pytest.raises(RecordNotFoundError):
            await duckdb_backend.delete_metrics_by_id(metrics_id)

    async def test_data_survives_reopen(self, tmp_path):
        config = StorageConfig(type="duckdb", path=str(tmp_path / "history.duckdb"))
        history = QueryHistory(DuckDBBackend(config), timestamp_factory=lambda: "t")
        await history.initialize()
        await history.find_or_create_user("alice")
        await history.append_instance("alice", "SELECT 1", "m1")
        await history.close()

        reopened = QueryHistory(DuckDBBackend(config))
        await reopened.initialize()
        try:
            summaries = await reopened.list_queries("alice")
        finally:
            await reopened.close()

        assert [(s.query_string, s.counter, s.timestamp) for s in summaries] == [("SELECT 1", 1, "t")]

    async def test_use_before_initialize(self, tmp_path):
        backend = DuckDBBackend(StorageConfig(type="duckdb", path=str(tmp_path / "x.duckdb")))

        with pytest.raises(RuntimeError):
            await backend.find_user_by_name("alice")

    async def test_in_memory_database(self):
        backend = DuckDBBackend(StorageConfig(type="duckdb", path=":memory:"))
        await backend.initialize()
        try:
            await backend.create_user("alice")
            assert await backend.find_user_by_name("alice") is not None
            assert backend.get_info()["path"] == ":memory:"
        finally:
            await backend.close()


class TestCreateBackend:
    """Tests for the backend factory."""

    def test_memory(self):
        assert create_backend(StorageConfig(type="memory")).get_info()["type"] == "memory"

    def test_duckdb(self, tmp_path):
        backend = create_backend(StorageConfig(type="DuckDB", path=str(tmp_path / "h.duckdb")))
        assert isinstance(backend, DuckDBBackend)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unsupported storage type"):
            create_backend(StorageConfig(type="mongodb"))
