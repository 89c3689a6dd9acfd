from __future__ import annotations

from discord.ext import commands

from controller.models import SoulAction
from misc.commands.command_deps import CommandDeps
from misc.discord_events import chat_event_from_message


def build_paint_action(message, prompt: str) -> SoulAction:
    return SoulAction(
        action="paint",
        metadata={
            "prompt": (prompt or "").strip(),
            "discord_message": chat_event_from_message(message),
        },
    )


def format_soul_status(*, host_name: str, pending: int, memories: int, knowledge_chunks: int) -> str:
    return (
        f"**{host_name} status**\n"
        f"- pending perceptions: {int(pending)}\n"
        f"- working memories: {int(memories)}\n"
        f"- knowledge chunks: {int(knowledge_chunks)}"
    )


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
) -> None:
    @bot.command(name="paint")
    async def paint_command(ctx: commands.Context, *, prompt: str | None = None):
        if not deps.paint_enabled:
            await ctx.reply("Painting is turned off right now.", mention_author=False)
            return
        if not (prompt or "").strip():
            await ctx.reply("Usage: `!paint <what to paint>`", mention_author=False)
            return
        deps.soul.emit(build_paint_action(ctx.message, prompt))

    @bot.command(name="soul_status")
    async def soul_status_command(ctx: commands.Context):
        knowledge_chunks = await deps.knowledge_count_func()
        await ctx.reply(
            format_soul_status(
                host_name=deps.host_name,
                pending=len(deps.soul.pending),
                memories=len(deps.soul.memory.memories),
                knowledge_chunks=knowledge_chunks,
            ),
            mention_author=False,
        )
