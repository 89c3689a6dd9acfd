from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from config.defaults import SOUL_NAME


@dataclass(frozen=True, slots=True)
class ChatEvent:
    message_id: int
    channel_id: int
    guild_id: int | None
    user_id: int
    user_display_name: str
    at_mention_username: str
    replied_to_user_id: int | None = None
    is_host: bool = False
    type: str = "messageCreate"

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ChatEvent":
        guild_id = payload.get("guild_id")
        replied_to = payload.get("replied_to_user_id")
        return cls(
            message_id=int(payload["message_id"]),
            channel_id=int(payload["channel_id"]),
            guild_id=int(guild_id) if guild_id is not None else None,
            user_id=int(payload["user_id"]),
            user_display_name=str(payload.get("user_display_name") or ""),
            at_mention_username=str(payload.get("at_mention_username") or ""),
            replied_to_user_id=int(replied_to) if replied_to is not None else None,
            is_host=bool(payload.get("is_host", False)),
            type=str(payload.get("type") or "messageCreate"),
        )


@dataclass(frozen=True, slots=True)
class Perception:
    action: str
    content: str
    name: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PerceptionMetadata:
    user_name: str
    chat_event: ChatEvent | None
    content: str
    host_user_id: int | None


def perception_metadata(perception: Perception | None) -> PerceptionMetadata:
    if perception is None:
        return PerceptionMetadata(user_name="", chat_event=None, content="", host_user_id=None)
    meta = perception.metadata or {}
    event = meta.get("discord_event")
    if isinstance(event, dict):
        event = ChatEvent.from_dict(event)
    host_id = meta.get("discord_user_id")
    return PerceptionMetadata(
        user_name=perception.name,
        chat_event=event if isinstance(event, ChatEvent) else None,
        content=perception.content or "",
        host_user_id=int(host_id) if host_id is not None else None,
    )


@dataclass(frozen=True, slots=True)
class RetrievedDocument:
    content: str
    similarity: float


class Interlocutor(str, Enum):
    HOST_FOR_SURE = "host_for_sure"
    HOST_POSSIBLY = "host_possibly"
    SOMEONE_ELSE = "someone_else"
    NOT_SURE = "not_sure"

    def label(self, host_name: str = SOUL_NAME) -> str:
        return {
            Interlocutor.HOST_FOR_SURE: f"{host_name}, for sure",
            Interlocutor.HOST_POSSIBLY: f"{host_name}, possibly",
            Interlocutor.SOMEONE_ELSE: "someone else",
            Interlocutor.NOT_SURE: "not sure",
        }[self]

    @classmethod
    def from_label(cls, label: str, host_name: str = SOUL_NAME) -> "Interlocutor":
        text = str(label or "").strip()
        for member in cls:
            if text == member.label(host_name) or text == member.value:
                return member
        return cls.NOT_SURE


ADMITTING_INTERLOCUTORS = frozenset({Interlocutor.HOST_FOR_SURE, Interlocutor.HOST_POSSIBLY})


@dataclass(frozen=True, slots=True)
class WorkingMemory:
    memories: tuple[tuple[str, str], ...] = ()

    def with_memory(self, content: str, *, role: str = "system") -> "WorkingMemory":
        return WorkingMemory(memories=self.memories + ((role, content),))

    def window(self, max_memories: int) -> "WorkingMemory":
        if max_memories <= 0 or len(self.memories) <= max_memories:
            return self
        return WorkingMemory(memories=self.memories[-max_memories:])


@dataclass(frozen=True, slots=True)
class SoulAction:
    action: str
    content: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)
