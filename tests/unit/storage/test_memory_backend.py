"""Tests for the in-memory persistence backend."""

import pytest

from querylog.query_history import QueryEntry
from querylog.storage import InMemoryBackend, RecordExistsError, RecordNotFoundError


async def test_loaded_records_are_private_copies():
    backend = InMemoryBackend()
    await backend.create_user("alice")

    record = await backend.find_user_by_name("alice")
    record.query_history.append(QueryEntry(query_string="SELECT 1"))

    assert (await backend.find_user_by_name("alice")).query_history == []

    await backend.save(record)
    assert len((await backend.find_user_by_name("alice")).query_history) == 1


async def test_create_twice_fails():
    backend = InMemoryBackend()
    await backend.create_user("alice")

    with pytest.raises(RecordExistsError):
        await backend.create_user("alice")


async def test_metrics_delete_unknown():
    backend = InMemoryBackend()

    with pytest.raises(RecordNotFoundError):
        await backend.delete_metrics_by_id("missing")


async def test_get_info_counts():
    backend = InMemoryBackend()
    await backend.create_user("alice")
    await backend.insert_metrics({"rows": 1})

    info = backend.get_info()

    assert info["type"] == "memory"
    assert info["users"] == 1
    assert info["metrics_records"] == 1
