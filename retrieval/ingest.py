from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from pathlib import Path

from config.defaults import KNOWLEDGE_CHUNK_MAX_CHARS
from config.defaults import KNOWLEDGE_FILE_SUFFIXES
from retrieval.store import replace_source_chunks_sync

EMBED_BATCH_SIZE = 64


def chunk_document(text: str, max_chars: int = KNOWLEDGE_CHUNK_MAX_CHARS) -> list[str]:
    """
    Split text into paragraph-aligned chunks no longer than max_chars.

    Paragraphs longer than max_chars are split on sentence boundaries, then hard-cut.
    """
    max_chars = max(50, int(max_chars))
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text or "") if p.strip()]

    pieces: list[str] = []
    for para in paragraphs:
        para = " ".join(para.split())
        if len(para) <= max_chars:
            pieces.append(para)
            continue
        current = ""
        for sentence in re.split(r"(?<=[.!?])\s+", para):
            while len(sentence) > max_chars:
                if current:
                    pieces.append(current)
                    current = ""
                pieces.append(sentence[:max_chars])
                sentence = sentence[max_chars:]
            if current and len(current) + 1 + len(sentence) > max_chars:
                pieces.append(current)
                current = sentence
            else:
                current = f"{current} {sentence}".strip()
        if current:
            pieces.append(current)

    chunks: list[str] = []
    current = ""
    for piece in pieces:
        if current and len(current) + 2 + len(piece) > max_chars:
            chunks.append(current)
            current = piece
        else:
            current = f"{current}\n\n{piece}" if current else piece
    if current:
        chunks.append(current)
    return chunks


def iter_knowledge_files(root: str | Path) -> list[Path]:
    base = Path(root)
    if base.is_file():
        return [base] if base.suffix.lower() in KNOWLEDGE_FILE_SUFFIXES else []
    return sorted(p for p in base.rglob("*") if p.is_file() and p.suffix.lower() in KNOWLEDGE_FILE_SUFFIXES)


async def embed_texts(client, embedding_model: str, texts: list[str]) -> list[list[float]]:
    vectors: list[list[float]] = []
    for start in range(0, len(texts), EMBED_BATCH_SIZE):
        batch = texts[start : start + EMBED_BATCH_SIZE]
        resp = await client.embeddings.create(model=embedding_model, input=batch)
        ordered = sorted(resp.data, key=lambda d: d.index)
        vectors.extend([float(x) for x in d.embedding] for d in ordered)
    return vectors


async def ingest_knowledge_path(
    root: str | Path,
    *,
    db_lock,
    db_conn,
    client,
    embedding_model: str,
    max_chars: int = KNOWLEDGE_CHUNK_MAX_CHARS,
) -> dict[str, int]:
    base = Path(root)
    counts: dict[str, int] = {}
    for path in iter_knowledge_files(base):
        source = path.relative_to(base).as_posix() if base.is_dir() else path.name
        chunks = chunk_document(path.read_text(encoding="utf-8"), max_chars=max_chars)
        if not chunks:
            print(f"[Knowledge] {source}: empty, skipped")
            continue
        vectors = await embed_texts(client, embedding_model, chunks)
        created = datetime.now(timezone.utc).isoformat()
        async with db_lock:
            stored = await asyncio.to_thread(
                replace_source_chunks_sync,
                db_conn,
                source,
                list(zip(chunks, vectors)),
                created,
            )
        counts[source] = stored
        print(f"[Knowledge] {source}: stored {stored} chunks")
    return counts
