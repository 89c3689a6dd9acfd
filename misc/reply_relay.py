from __future__ import annotations

from collections import OrderedDict
from typing import Any

from config.defaults import DEFAULT_RECENT_MESSAGE_CACHE
from controller.models import ChatEvent
from controller.models import SoulAction

DISCORD_MAX_MESSAGE_LEN = 1900  # keep under 2000 hard limit


def chunk_text(text: str, limit: int = DISCORD_MAX_MESSAGE_LEN) -> list[str]:
    text = text or ""
    if len(text) <= limit:
        return [text]

    chunks = []
    remaining = text

    while len(remaining) > limit:
        # Prefer splitting on paragraph, then newline, then space
        split_at = remaining.rfind("\n\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind("\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind(" ", 0, limit)
        if split_at == -1:
            split_at = limit

        chunk = remaining[:split_at].strip()
        if chunk:
            chunks.append(chunk)

        remaining = remaining[split_at:].strip()

    if remaining:
        chunks.append(remaining)

    return chunks


class RecentMessageCache:
    """Bounded message-id -> discord.Message map used to route replies without a fetch."""

    def __init__(self, max_size: int = DEFAULT_RECENT_MESSAGE_CACHE) -> None:
        self.max_size = max(1, int(max_size))
        self._messages: OrderedDict[int, Any] = OrderedDict()

    def remember(self, message: Any) -> None:
        message_id = int(message.id)
        self._messages[message_id] = message
        self._messages.move_to_end(message_id)
        while len(self._messages) > self.max_size:
            self._messages.popitem(last=False)

    def get(self, message_id: int) -> Any | None:
        return self._messages.get(int(message_id))

    def forget(self, message_id: int) -> None:
        self._messages.pop(int(message_id), None)


async def resolve_channel(bot: Any, channel_id: int) -> Any | None:
    channel = bot.get_channel(int(channel_id))
    if channel is None:
        channel = await bot.fetch_channel(int(channel_id))
    return channel


async def resolve_triggering_message(bot: Any, cache: RecentMessageCache, event: ChatEvent) -> Any | None:
    cached = cache.get(event.message_id)
    if cached is not None:
        return cached
    channel = await resolve_channel(bot, event.channel_id)
    if channel is None or not hasattr(channel, "fetch_message"):
        return None
    return await channel.fetch_message(int(event.message_id))


async def relay_says(action: SoulAction, *, bot: Any, cache: RecentMessageCache, host_name: str) -> bool:
    """Resolve a streamed reply and post it as a reply to the message that triggered it."""
    event = (action.metadata or {}).get("discord_event")
    if isinstance(event, dict):
        event = ChatEvent.from_dict(event)
    if not isinstance(event, ChatEvent):
        print("[Relay] says action has no discord_event metadata; dropping reply")
        return False

    try:
        message = await resolve_triggering_message(bot, cache, event)
    except Exception as e:
        print(f"[Relay] could not resolve message {event.message_id} in channel {event.channel_id}: {e!r}")
        return False
    if message is None:
        print(f"[Relay] message {event.message_id} not found; dropping reply")
        return False

    bot_user = getattr(bot, "user", None)
    if bot_user is not None and int(message.author.id) == int(bot_user.id):
        return False

    content = action.content
    response = await content.text() if hasattr(content, "text") else str(content or "")
    if not response.strip():
        print(f"[Relay] empty reply for {event.at_mention_username}; nothing sent")
        return False

    print(f"🤖 {host_name} is replying to {event.at_mention_username}: {response}")
    try:
        parts = chunk_text(response)
        await message.reply(parts[0])
        for part in parts[1:]:
            await message.channel.send(part)
    except Exception as e:
        print(f"[Relay] send failed: {e!r}")
        return False
    finally:
        cache.forget(event.message_id)
    return True
