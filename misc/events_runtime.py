from __future__ import annotations

import discord
from discord.ext import commands

from config.defaults import CONNECTED_GREETING
from misc.discord_events import build_chatted_perception
from misc.discord_gates import is_self_message
from misc.discord_gates import message_in_allowed_channels
from misc.runtime_deps import RuntimeDeps


def _first_text_channel(guild):
    for channel in getattr(guild, "text_channels", None) or []:
        return channel
    return None


async def send_connected_greeting(bot) -> bool:
    guilds = list(getattr(bot, "guilds", None) or [])
    if not guilds:
        print("[Bot] Bot is not in any servers.")
        return False

    guild = guilds[0]
    channel = _first_text_channel(guild)
    if channel is None:
        print(f"[Bot] No text channels found in server {guild.name}")
        return False

    try:
        await channel.send(CONNECTED_GREETING)
    except Exception as e:
        print(f"[Bot] Error sending connection message: {e!r}")
        return False
    print(f"[Bot] Sent connection message to channel {channel.name} in server {guild.name}")
    return True


def register_runtime_events(
    bot: commands.Bot,
    *,
    deps: RuntimeDeps,
) -> None:
    @bot.event
    async def on_ready():
        print(f"{deps.host_name} is online as {bot.user}")
        if deps.greeting_enabled:
            await send_connected_greeting(bot)

        print("[Bot] Current servers:")
        for guild in bot.guilds:
            print(f"- {guild.name} (ID: {guild.id})")

    @bot.event
    async def on_message(message: discord.Message):
        emoji = "🤖" if message.author.bot else "👤"
        print(f"{emoji} {message.author.name}: {message.content}")

        if not message_in_allowed_channels(message, deps.allowed_channel_ids):
            return

        if is_self_message(message, bot.user):
            print("[Bot] Ignoring message from self")
            return

        if (message.content or "").lstrip().startswith("!"):
            await bot.process_commands(message)
            return

        deps.message_cache.remember(message)
        bot_user_id = int(bot.user.id) if bot.user else None
        deps.soul.dispatch(build_chatted_perception(message, bot_user_id=bot_user_id))
