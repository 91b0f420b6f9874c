"""
Autotag — Storage and registry backend tests
MemoryStore, SQLiteStore, MemoryTagRegistry, SQLiteTagRegistry.
"""

import sqlite3

import pytest

from autotag.database import get_connection, init_db
from autotag.errors import StorageError
from autotag.registry import BatchTagRegistry, MemoryTagRegistry, SQLiteTagRegistry, TagRegistry
from autotag.storage import KeyValueStore, MemoryStore, SQLiteStore


class TestMemoryStore:
    @pytest.mark.anyio
    async def test_missing_key(self):
        assert await MemoryStore().get("viewsByTopic") == {}

    @pytest.mark.anyio
    async def test_roundtrip_is_copied(self):
        store = MemoryStore()
        value = {"shoes": [1, 2]}
        await store.set("viewsByTopic", value)
        value["shoes"].append(3)
        got = await store.get("viewsByTopic")
        assert got == {"viewsByTopic": {"shoes": [1, 2]}}
        got["viewsByTopic"]["hats"] = [9]
        assert await store.get("viewsByTopic") == {"viewsByTopic": {"shoes": [1, 2]}}

    def test_protocol(self):
        assert isinstance(MemoryStore(), KeyValueStore)


class TestSQLiteStore:
    @pytest.mark.anyio
    async def test_missing_key(self, db_path):
        assert await SQLiteStore(db_path).get("viewsByTopic") == {}

    @pytest.mark.anyio
    async def test_set_and_overwrite(self, db_path):
        store = SQLiteStore(db_path)
        await store.set("viewsByTopic", {"shoes": [1]})
        await store.set("viewsByTopic", {"shoes": [1, 2], "hats": [3]})
        assert await store.get("viewsByTopic") == {"viewsByTopic": {"shoes": [1, 2], "hats": [3]}}

    @pytest.mark.anyio
    async def test_persists_across_instances(self, db_path):
        await SQLiteStore(db_path).set("viewsByTopic", {"shoes": [1]})
        assert await SQLiteStore(db_path).get("viewsByTopic") == {"viewsByTopic": {"shoes": [1]}}

    @pytest.mark.anyio
    async def test_unserializable_value(self, db_path):
        with pytest.raises(StorageError):
            await SQLiteStore(db_path).set("viewsByTopic", {"shoes": {1, 2}})

    @pytest.mark.anyio
    async def test_corrupt_value(self, db_path):
        store = SQLiteStore(db_path)
        with get_connection(db_path) as conn:
            conn.execute("INSERT INTO kv_store (key, value) VALUES (?, ?)", ("viewsByTopic", "{not json"))
        with pytest.raises(StorageError):
            await store.get("viewsByTopic")

    def test_init_db_creates_tables(self, db_path):
        init_db(db_path)
        conn = sqlite3.connect(db_path)
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()}
        conn.close()
        assert {"kv_store", "visitor_tags"} <= tables


class TestTagRegistries:
    @pytest.mark.anyio
    async def test_memory_registry(self):
        registry = MemoryTagRegistry(["a", "b"])
        await registry.add_tag("c")
        await registry.add_tag("a")
        await registry.remove_tag("b")
        await registry.remove_tag("missing")
        assert await registry.get_tags() == ["a", "c"]

    @pytest.mark.anyio
    async def test_sqlite_registry(self, db_path):
        registry = SQLiteTagRegistry(db_path)
        await registry.add_remove_tags(["topic:a", "topic:b", "vip"], [])
        await registry.add_remove_tags(["topic:c"], ["topic:a"])
        await registry.add_tag("topic:b")
        await registry.remove_tag("missing")
        assert sorted(await registry.get_tags()) == ["topic:b", "topic:c", "vip"]

    def test_protocols(self, db_path):
        for registry in (MemoryTagRegistry(), SQLiteTagRegistry(db_path)):
            assert isinstance(registry, TagRegistry)
            assert isinstance(registry, BatchTagRegistry)
