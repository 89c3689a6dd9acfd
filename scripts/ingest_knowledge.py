from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from openai import AsyncOpenAI  # noqa: E402

from config.defaults import DEFAULT_EMBEDDING_MODEL  # noqa: E402
from config.defaults import KNOWLEDGE_CHUNK_MAX_CHARS  # noqa: E402
from db.migrate import open_database  # noqa: E402
from retrieval.ingest import ingest_knowledge_path  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Embed markdown/text files into Glandon's knowledge base.")
    parser.add_argument("path", help="file or directory of .md/.txt files")
    parser.add_argument("--db", default=os.getenv("GLANDON_DB_PATH", "glandon_memory.db"))
    parser.add_argument("--model", default=os.getenv("OPENAI_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL))
    parser.add_argument("--max-chars", type=int, default=KNOWLEDGE_CHUNK_MAX_CHARS)
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("Missing OPENAI_API_KEY env var")

    conn = open_database(args.db)
    try:
        counts = await ingest_knowledge_path(
            args.path,
            db_lock=asyncio.Lock(),
            db_conn=conn,
            client=AsyncOpenAI(api_key=api_key),
            embedding_model=args.model,
            max_chars=args.max_chars,
        )
    finally:
        conn.close()

    print(f"[Knowledge] ingested {len(counts)} files, {sum(counts.values())} chunks into {args.db}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_run(_parse_args())))
