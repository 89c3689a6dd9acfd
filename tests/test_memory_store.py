from __future__ import annotations

import asyncio
import unittest

from controller.models import WorkingMemory
from db.migrate import open_database
from memory.service import InMemorySoulMemoryStore
from memory.service import SqliteSoulMemoryStore
from memory.service import last_message_key
from memory.service import record_last_message
from memory.service import remember_user
from memory.service import soul_namespace


class InMemoryStoreTests(unittest.IsolatedAsyncioTestCase):
    async def test_get_default_then_set(self):
        store = InMemorySoulMemoryStore()
        self.assertEqual(await store.get("alice", "fallback"), "fallback")
        await store.set("alice", "- Likes tea")
        self.assertEqual(await store.get("alice", "fallback"), "- Likes tea")


class SqliteStoreTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.conn = open_database(":memory:")
        self.lock = asyncio.Lock()

    def tearDown(self):
        self.conn.close()

    async def test_values_round_trip_and_overwrite(self):
        store = SqliteSoulMemoryStore(db_lock=self.lock, db_conn=self.conn, namespace="local/glandon/default")

        self.assertEqual(await store.get("alice-lastMessage"), "")
        await store.set("alice-lastMessage", "first")
        await store.set("alice-lastMessage", "second")

        self.assertEqual(await store.get("alice-lastMessage"), "second")
        rows = self.conn.execute("SELECT COUNT(*) FROM soul_memory").fetchone()[0]
        self.assertEqual(rows, 1)

    async def test_namespaces_are_isolated(self):
        one = SqliteSoulMemoryStore(db_lock=self.lock, db_conn=self.conn, namespace="org/glandon/one")
        two = SqliteSoulMemoryStore(db_lock=self.lock, db_conn=self.conn, namespace="org/glandon/two")

        await one.set("alice", "- Display name: \"Alice\"")

        self.assertEqual(await two.get("alice", "missing"), "missing")


class RememberUserTests(unittest.IsolatedAsyncioTestCase):
    async def test_profile_and_last_message_are_combined(self):
        store = InMemorySoulMemoryStore({"bob": "- Plays bass", "bob-lastMessage": "Nice riff!"})
        logs = []

        out = await remember_user(
            WorkingMemory(),
            user_name="bob",
            display_name="Bobby",
            store=store,
            host_name="Glandon",
            log=logs.append,
        )

        self.assertEqual(
            out.memories,
            (
                (
                    "system",
                    "Glandon remembers this about bob:\n- Plays bass\n\n"
                    "The last message Glandon sent to bob was:\n- Nice riff!",
                ),
            ),
        )
        self.assertTrue(logs[0].startswith("Remembered this about bob:"))

    async def test_empty_profile_and_no_last_message_adds_nothing(self):
        store = InMemorySoulMemoryStore({"bob": ""})
        logs = []
        memory = WorkingMemory()

        out = await remember_user(
            memory,
            user_name="bob",
            display_name="Bobby",
            store=store,
            host_name="Glandon",
            log=logs.append,
        )

        self.assertIs(out, memory)
        self.assertEqual(logs, ["No memory about bob"])

    async def test_record_last_message_skips_blank_text(self):
        store = InMemorySoulMemoryStore()

        await record_last_message(store, "carol", "   ")
        self.assertEqual(await store.get(last_message_key("carol"), "unset"), "unset")

        await record_last_message(store, "carol", " Welcome back! ")
        self.assertEqual(await store.get("carol-lastMessage"), "Welcome back!")


class SoulNamespaceTests(unittest.TestCase):
    def test_blank_parts_become_default(self):
        self.assertEqual(soul_namespace("acme", "glandon", "prod"), "acme/glandon/prod")
        self.assertEqual(soul_namespace("", " glandon ", None), "default/glandon/default")


if __name__ == "__main__":
    unittest.main()
