from __future__ import annotations

import json
import sqlite3


def replace_source_chunks_sync(
    conn: sqlite3.Connection,
    source: str,
    chunks: list[tuple[str, list[float]]],
    created_at_utc: str,
) -> int:
    cur = conn.cursor()
    cur.execute("DELETE FROM knowledge_documents WHERE source = ?", (source,))
    for idx, (content, embedding) in enumerate(chunks):
        cur.execute(
            """
            INSERT INTO knowledge_documents (source, chunk_index, content, embedding_json, created_at_utc)
            VALUES (?, ?, ?, ?, ?)
            """,
            (source, idx, content, json.dumps(embedding), created_at_utc),
        )
    conn.commit()
    return len(chunks)


def fetch_knowledge_documents_sync(conn: sqlite3.Connection) -> list[tuple[str, list[float]]]:
    cur = conn.cursor()
    cur.execute("SELECT content, embedding_json FROM knowledge_documents ORDER BY source, chunk_index")
    out: list[tuple[str, list[float]]] = []
    for content, embedding_json in cur.fetchall():
        try:
            vector = [float(x) for x in json.loads(embedding_json or "[]")]
        except (TypeError, ValueError):
            continue
        if vector:
            out.append((str(content), vector))
    return out


def count_knowledge_documents_sync(conn: sqlite3.Connection) -> int:
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) FROM knowledge_documents")
    row = cur.fetchone()
    return int(row[0]) if row else 0
