from __future__ import annotations

from typing import Any

from controller.models import ChatEvent
from controller.models import Perception


def chat_event_from_message(message: Any) -> ChatEvent:
    author = message.author
    guild = getattr(message, "guild", None)
    mentions = list(getattr(message, "mentions", None) or [])
    display_name = getattr(author, "display_name", None) or author.name
    return ChatEvent(
        message_id=int(message.id),
        channel_id=int(message.channel.id),
        guild_id=int(guild.id) if guild is not None else None,
        user_id=int(author.id),
        user_display_name=str(display_name),
        at_mention_username=str(author.name),
        replied_to_user_id=int(mentions[0].id) if mentions else None,
        is_host=bool(getattr(author, "bot", False)),
    )


def build_chatted_perception(message: Any, *, bot_user_id: int | None) -> Perception:
    event = chat_event_from_message(message)
    return Perception(
        action="chatted",
        content=message.content or "",
        name=event.at_mention_username,
        metadata={
            "discord_event": event,
            "discord_user_id": int(bot_user_id) if bot_user_id is not None else None,
        },
    )
