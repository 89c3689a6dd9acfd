from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from config.defaults import DEFAULT_PENDING_PERCEPTION_LIMIT
from config.defaults import DEFAULT_RAG_MIN_SIMILARITY
from config.defaults import DEFAULT_RAG_TOP_K
from controller.models import ADMITTING_INTERLOCUTORS
from controller.models import Interlocutor
from controller.models import Perception
from controller.models import SoulAction
from controller.models import WorkingMemory
from controller.models import perception_metadata
from memory.service import SoulMemoryStore
from memory.service import record_last_message
from memory.service import remember_user
from retrieval.service import SearchFunc
from retrieval.service import with_search_results


def print_turn_log(text: str) -> None:
    print(f"[Turn] {text}")


@dataclass(frozen=True)
class TurnDeps:
    cognition: Any
    memory_store: SoulMemoryStore
    search: SearchFunc
    dispatch: Callable[[SoulAction], None]
    log: Callable[[str], None] = print_turn_log
    pending_limit: int = DEFAULT_PENDING_PERCEPTION_LIMIT
    rag_min_similarity: float = DEFAULT_RAG_MIN_SIMILARITY
    rag_top_k: int = DEFAULT_RAG_TOP_K


def has_more_messages_from_same_user(pending: Sequence[Perception], user_name: str) -> bool:
    return any(perception_metadata(p).user_name == user_name for p in list(pending))


def mentions_host(content: str, host_user_id: int | None) -> bool:
    if host_user_id is None:
        return False
    text = content or ""
    return f"<@{int(host_user_id)}>" in text or f"<@!{int(host_user_id)}>" in text


async def is_user_talking_to_host(
    memory: WorkingMemory,
    invoking: Perception,
    *,
    deps: TurnDeps,
) -> bool:
    meta = perception_metadata(invoking)
    if mentions_host(meta.content, meta.host_user_id):
        deps.log(f"User at-mentioned {deps.cognition.host_name}, will reply")
        return True

    host = deps.cognition.host_name
    interlocutor = await deps.cognition.decide(
        memory,
        (
            f"{host} is the moderator of this channel. Participants sometimes talk to {host}, "
            f"and sometimes between themselves. In this last message sent by {meta.user_name}, "
            "guess which person they are probably speaking with."
        ),
        list(Interlocutor),
    )
    deps.log(f"{host} decided that {meta.user_name} is talking to: {interlocutor.label(host)}")
    return interlocutor in ADMITTING_INTERLOCUTORS


async def run_turn(
    memory: WorkingMemory,
    invoking: Perception,
    *,
    pending: Sequence[Perception],
    deps: TurnDeps,
) -> WorkingMemory:
    """
    Decide whether the soul answers the invoking perception and, if so, generate and dispatch the reply.

    `pending` is the live queue of perceptions that arrived after this one. It is re-read after the
    classification await, so perceptions queued in the meantime are observed. Every skip or abort
    returns `memory` unchanged.
    """
    meta = perception_metadata(invoking)
    user_name = meta.user_name
    host = deps.cognition.host_name

    if len(pending) > deps.pending_limit:
        deps.log("Pending perceptions limit reached. Skipping perception.")
        return memory

    if has_more_messages_from_same_user(pending, user_name):
        deps.log(f"Skipping perception from {user_name} because it's part of a message burst")
        return memory

    display_name = meta.chat_event.user_display_name if meta.chat_event else user_name
    step = await remember_user(
        memory,
        user_name=user_name,
        display_name=display_name,
        store=deps.memory_store,
        host_name=host,
        log=deps.log,
    )

    if not await is_user_talking_to_host(step, invoking, deps=deps):
        deps.log(f"Ignoring message from {user_name} because they're not talking to {host}")
        return memory

    if has_more_messages_from_same_user(pending, user_name):
        deps.log(f"Aborting response to {user_name} because they've sent more messages in the meantime")
        return memory

    step = await with_search_results(
        step,
        meta.content,
        search=deps.search,
        min_similarity=deps.rag_min_similarity,
        top_k=deps.rag_top_k,
        host_name=host,
        log=deps.log,
    )

    deps.log(f"Answering message from {user_name}")
    stream = await deps.cognition.stream_dialog(step, f"{host} answers {user_name}'s message")
    deps.dispatch(
        SoulAction(
            action="says",
            content=stream,
            metadata={"discord_event": meta.chat_event},
        )
    )

    reply = await stream.text()
    await record_last_message(deps.memory_store, user_name, reply)
    return step.with_memory(reply, role="assistant") if reply else step
