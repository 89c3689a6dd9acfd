from __future__ import annotations

import sqlite3


def get_soul_memory_sync(conn: sqlite3.Connection, namespace: str, key: str) -> str | None:
    cur = conn.cursor()
    cur.execute(
        "SELECT value FROM soul_memory WHERE namespace = ? AND key = ?",
        (namespace, key),
    )
    row = cur.fetchone()
    return str(row[0]) if row else None


def set_soul_memory_sync(
    conn: sqlite3.Connection,
    namespace: str,
    key: str,
    value: str,
    updated_at_utc: str,
) -> None:
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO soul_memory (namespace, key, value, updated_at_utc)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(namespace, key) DO UPDATE SET
            value = excluded.value,
            updated_at_utc = excluded.updated_at_utc
        """,
        (namespace, key, value, updated_at_utc),
    )
    conn.commit()
