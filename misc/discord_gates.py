from __future__ import annotations

import re

import discord


def parse_id_set(raw: str | None) -> set[int]:
    if not raw:
        return set()
    out: set[int] = set()
    for tok in re.split(r"[\s,;]+", raw.strip()):
        if re.fullmatch(r"\d{8,22}", tok or ""):
            out.add(int(tok))
    return out


def message_in_allowed_channels(message: discord.Message, allowed_channel_ids: set[int]) -> bool:
    # No allowlist means Glandon listens everywhere it can read.
    if not allowed_channel_ids:
        return True
    if getattr(message, "guild", None) is None:
        return True

    channel_id = int(getattr(message.channel, "id", 0) or 0)
    if channel_id in allowed_channel_ids:
        return True
    # thread: allow if parent is allowed
    if isinstance(message.channel, discord.Thread) and message.channel.parent:
        return int(message.channel.parent.id) in allowed_channel_ids
    return False


def is_self_message(message: discord.Message, bot_user) -> bool:
    return bot_user is not None and int(message.author.id) == int(bot_user.id)
