from __future__ import annotations

SOUL_NAME = "Glandon"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

DEFAULT_SOUL_ORGANIZATION = "local"
DEFAULT_SOUL_BLUEPRINT = "glandon"
DEFAULT_SOUL_ID = "default"

# Turn-taking
DEFAULT_PENDING_PERCEPTION_LIMIT = 10
DEFAULT_RAG_MIN_SIMILARITY = 0.6  # minimum cosine similarity, not a distance
DEFAULT_RAG_TOP_K = 3
DEFAULT_MAX_WORKING_MEMORIES = 60
RAG_PREVIEW_CHARS = 100

# Bridge
DEFAULT_PAINT_URL = "http://brain.tanaki.app/paint"
DEFAULT_PAINT_TIMEOUT_SECONDS = 120
DEFAULT_RECENT_MESSAGE_CACHE = 200
CONNECTED_GREETING = "Hello! I'm now connected and ready to chat."

# Knowledge ingestion
KNOWLEDGE_CHUNK_MAX_CHARS = 1200
KNOWLEDGE_FILE_SUFFIXES = {".md", ".txt"}
