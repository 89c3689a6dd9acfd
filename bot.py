import asyncio
import os

import discord
from discord.ext import commands
from openai import AsyncOpenAI

from config.defaults import DEFAULT_EMBEDDING_MODEL
from config.defaults import DEFAULT_MAX_WORKING_MEMORIES
from config.defaults import DEFAULT_OPENAI_MODEL
from config.defaults import DEFAULT_PAINT_TIMEOUT_SECONDS
from config.defaults import DEFAULT_PAINT_URL
from config.defaults import DEFAULT_PENDING_PERCEPTION_LIMIT
from config.defaults import DEFAULT_RAG_MIN_SIMILARITY
from config.defaults import DEFAULT_RAG_TOP_K
from config.defaults import DEFAULT_RECENT_MESSAGE_CACHE
from config.defaults import DEFAULT_SOUL_BLUEPRINT
from config.defaults import DEFAULT_SOUL_ID
from config.defaults import DEFAULT_SOUL_ORGANIZATION
from controller.cognition import Cognition
from controller.persona import load_persona
from controller.turn_policy import TurnDeps
from controller.turn_policy import run_turn
from db.migrate import open_database
from memory.service import SqliteSoulMemoryStore
from memory.service import soul_namespace
from misc.discord_gates import parse_id_set
from misc.reply_relay import RecentMessageCache
from misc.runtime_wiring import wire_bot_runtime
from retrieval.service import KnowledgeSearch
from retrieval.store import count_knowledge_documents_sync
from soul.runtime import SoulRuntime

# =========================
# ENV
# =========================
DISCORD_TOKEN = os.getenv("BOT_TOKEN") or os.getenv("DISCORD_TOKEN")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

if not DISCORD_TOKEN:
    raise RuntimeError("Missing BOT_TOKEN (or DISCORD_TOKEN) env var")
if not OPENAI_API_KEY:
    raise RuntimeError("Missing OPENAI_API_KEY env var")

OPENAI_MODEL = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
OPENAI_EMBEDDING_MODEL = os.getenv("OPENAI_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL)

SOUL_ORGANIZATION = os.getenv("SOUL_ORGANIZATION", DEFAULT_SOUL_ORGANIZATION).strip()
SOUL_BLUEPRINT = os.getenv("SOUL_BLUEPRINT", DEFAULT_SOUL_BLUEPRINT).strip()
SOUL_ID = os.getenv("SOUL_ID", DEFAULT_SOUL_ID).strip()
SOUL_NAMESPACE = soul_namespace(SOUL_ORGANIZATION, SOUL_BLUEPRINT, SOUL_ID)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)).strip())
    except ValueError:
        print(f"[CFG] invalid {name}; falling back to {default}")
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)).strip())
    except ValueError:
        print(f"[CFG] invalid {name}; falling back to {default}")
        return default


# =========================
# TURN-TAKING
# =========================
PENDING_LIMIT = _env_int("GLANDON_PENDING_LIMIT", DEFAULT_PENDING_PERCEPTION_LIMIT)
RAG_MIN_SIMILARITY = _env_float("GLANDON_RAG_MIN_SIMILARITY", DEFAULT_RAG_MIN_SIMILARITY)
RAG_TOP_K = _env_int("GLANDON_RAG_TOP_K", DEFAULT_RAG_TOP_K)
MAX_WORKING_MEMORIES = _env_int("GLANDON_MAX_WORKING_MEMORIES", DEFAULT_MAX_WORKING_MEMORIES)

# =========================
# BRIDGE
# =========================
PAINT_URL = os.getenv("GLANDON_PAINT_URL", DEFAULT_PAINT_URL).strip() or DEFAULT_PAINT_URL
PAINT_ENABLED = os.getenv("GLANDON_PAINT_ENABLED", "1").strip() == "1"
PAINT_TIMEOUT_SECONDS = _env_float("GLANDON_PAINT_TIMEOUT_SECONDS", DEFAULT_PAINT_TIMEOUT_SECONDS)
GREETING_ENABLED = os.getenv("GLANDON_GREETING_ENABLED", "1").strip() == "1"
ALLOWED_CHANNEL_IDS = parse_id_set(os.getenv("GLANDON_ALLOWED_CHANNEL_IDS"))

PERSONA_PATH = os.getenv(
    "GLANDON_PERSONA_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "config", "persona.yml"),
)
PERSONA, PERSONA_WARNING = load_persona(PERSONA_PATH)

print(
    f"[CFG] soul={SOUL_NAMESPACE} persona={PERSONA.name}({PERSONA.version}) model={OPENAI_MODEL} "
    f"pending_limit={PENDING_LIMIT} rag_min_similarity={RAG_MIN_SIMILARITY} rag_top_k={RAG_TOP_K} "
    f"max_memories={MAX_WORKING_MEMORIES}"
)
print(
    f"[CFG] paint_enabled={PAINT_ENABLED} paint_url={PAINT_URL} greeting={GREETING_ENABLED} "
    f"allowed_channels={'(all)' if not ALLOWED_CHANNEL_IDS else len(ALLOWED_CHANNEL_IDS)}"
)
if PERSONA_WARNING:
    print(f"[CFG] {PERSONA_WARNING}")

# =========================
# SQLITE
# =========================
DB_PATH = os.getenv("GLANDON_DB_PATH", "glandon_memory.db")
db_conn = open_database(DB_PATH)
db_lock = asyncio.Lock()
print(f"[DB] Using DB_PATH={DB_PATH}")

# =========================
# SOUL
# =========================
client = AsyncOpenAI(api_key=OPENAI_API_KEY)

cognition = Cognition(client=client, openai_model=OPENAI_MODEL, persona=PERSONA)
memory_store = SqliteSoulMemoryStore(db_lock=db_lock, db_conn=db_conn, namespace=SOUL_NAMESPACE)
knowledge = KnowledgeSearch(
    db_lock=db_lock,
    db_conn=db_conn,
    client=client,
    embedding_model=OPENAI_EMBEDDING_MODEL,
)


async def initial_process(memory, invoking, *, pending):
    return await run_turn(memory, invoking, pending=pending, deps=turn_deps)


soul = SoulRuntime(process=initial_process, max_memories=MAX_WORKING_MEMORIES)

turn_deps = TurnDeps(
    cognition=cognition,
    memory_store=memory_store,
    search=knowledge.search,
    dispatch=soul.emit,
    pending_limit=PENDING_LIMIT,
    rag_min_similarity=RAG_MIN_SIMILARITY,
    rag_top_k=RAG_TOP_K,
)


async def knowledge_count() -> int:
    async with db_lock:
        return await asyncio.to_thread(count_knowledge_documents_sync, db_conn)


# =========================
# DISCORD BOT
# =========================
intents = discord.Intents.default()
intents.message_content = True
intents.members = True

bot = commands.Bot(command_prefix="!", intents=intents)

wire_bot_runtime(
    bot,
    soul=soul,
    message_cache=RecentMessageCache(DEFAULT_RECENT_MESSAGE_CACHE),
    allowed_channel_ids=ALLOWED_CHANNEL_IDS,
    host_name=PERSONA.name,
    greeting_enabled=GREETING_ENABLED,
    paint_url=PAINT_URL,
    paint_enabled=PAINT_ENABLED,
    paint_timeout_seconds=PAINT_TIMEOUT_SECONDS,
    knowledge_count_func=knowledge_count,
)


if __name__ == "__main__":
    bot.run(DISCORD_TOKEN)
