from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Protocol

from controller.models import WorkingMemory
from memory.store import get_soul_memory_sync
from memory.store import set_soul_memory_sync


class SoulMemoryStore(Protocol):
    async def get(self, key: str, default: str = "") -> str: ...

    async def set(self, key: str, value: str) -> None: ...


class InMemorySoulMemoryStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str, default: str = "") -> str:
        return self._values.get(key, default)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value


class SqliteSoulMemoryStore:
    """Keyed soul memory persisted in sqlite, one namespace per soul identity."""

    def __init__(self, *, db_lock, db_conn, namespace: str) -> None:
        self.db_lock = db_lock
        self.db_conn = db_conn
        self.namespace = namespace

    async def get(self, key: str, default: str = "") -> str:
        async with self.db_lock:
            value = await asyncio.to_thread(get_soul_memory_sync, self.db_conn, self.namespace, key)
        return default if value is None else value

    async def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with self.db_lock:
            await asyncio.to_thread(set_soul_memory_sync, self.db_conn, self.namespace, key, value, now)


def soul_namespace(organization: str, blueprint: str, soul_id: str) -> str:
    parts = [str(p or "").strip() for p in (organization, blueprint, soul_id)]
    return "/".join(p or "default" for p in parts)


def profile_key(user_name: str) -> str:
    return user_name


def last_message_key(user_name: str) -> str:
    return f"{user_name}-lastMessage"


def default_profile_note(display_name: str) -> str:
    return f'- Display name: "{display_name}"'


async def remember_user(
    memory: WorkingMemory,
    *,
    user_name: str,
    display_name: str,
    store: SoulMemoryStore,
    host_name: str,
    log: Callable[[str], None],
) -> WorkingMemory:
    profile = await store.get(profile_key(user_name), default_profile_note(display_name or user_name))
    last_message = await store.get(last_message_key(user_name), "")

    remembered = ""
    if profile:
        remembered += profile
    if last_message:
        remembered += f"\n\nThe last message {host_name} sent to {user_name} was:\n- {last_message}"
    remembered = remembered.strip()

    if not remembered:
        log(f"No memory about {user_name}")
        return memory

    log(f"Remembered this about {user_name}:\n{remembered}")
    return memory.with_memory(f"{host_name} remembers this about {user_name}:\n{remembered}")


async def record_last_message(store: SoulMemoryStore, user_name: str, text: str) -> None:
    clean = (text or "").strip()
    if not clean:
        return
    await store.set(last_message_key(user_name), clean)
