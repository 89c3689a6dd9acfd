from __future__ import annotations

import asyncio
import math
from typing import Awaitable, Callable

from config.defaults import RAG_PREVIEW_CHARS
from controller.models import RetrievedDocument
from controller.models import WorkingMemory
from retrieval.store import fetch_knowledge_documents_sync

SearchFunc = Callable[[str, float], Awaitable[list[RetrievedDocument]]]


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_documents(
    documents: list[RetrievedDocument],
    *,
    min_similarity: float,
    top_k: int,
) -> list[RetrievedDocument]:
    """Drop documents under min_similarity, then keep the top_k by similarity, best first."""
    eligible = [d for d in documents if float(d.similarity) >= float(min_similarity)]
    eligible.sort(key=lambda d: float(d.similarity), reverse=True)
    return eligible[: max(0, int(top_k))]


def format_search_log(found: int, used: list[RetrievedDocument], preview_chars: int = RAG_PREVIEW_CHARS) -> str:
    lines = [f"Found {found} related documents with RAG search, using best {len(used)} results:"]
    for doc in used:
        lines.append(f"- {str(doc.content)[:preview_chars]}... (similarity: {doc.similarity})")
    return "\n".join(lines)


def format_search_memory(host_name: str, used: list[RetrievedDocument]) -> str:
    content = "\n".join(f"- {doc.content}" for doc in used)
    return f"{host_name} remembers:\n{content}"


async def with_search_results(
    memory: WorkingMemory,
    query: str,
    *,
    search: SearchFunc,
    min_similarity: float,
    top_k: int,
    host_name: str,
    log: Callable[[str], None],
) -> WorkingMemory:
    retrieved = await search(query, min_similarity)
    used = rank_documents(retrieved, min_similarity=min_similarity, top_k=top_k)
    log(format_search_log(len(retrieved), used))
    if not used:
        return memory
    return memory.with_memory(format_search_memory(host_name, used))


class KnowledgeSearch:
    """Similarity search over embedded knowledge chunks stored in sqlite."""

    def __init__(self, *, db_lock, db_conn, client, embedding_model: str) -> None:
        self.db_lock = db_lock
        self.db_conn = db_conn
        self.client = client
        self.embedding_model = embedding_model

    async def embed(self, text: str) -> list[float]:
        resp = await self.client.embeddings.create(model=self.embedding_model, input=[text])
        return [float(x) for x in resp.data[0].embedding]

    async def search(self, query: str, min_similarity: float) -> list[RetrievedDocument]:
        query = (query or "").strip()
        if not query:
            return []
        async with self.db_lock:
            rows = await asyncio.to_thread(fetch_knowledge_documents_sync, self.db_conn)
        if not rows:
            return []

        query_vector = await self.embed(query)
        out: list[RetrievedDocument] = []
        for content, vector in rows:
            score = cosine_similarity(query_vector, vector)
            if score >= min_similarity:
                out.append(RetrievedDocument(content=content, similarity=score))
        return out
