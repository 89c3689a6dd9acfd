from __future__ import annotations

from controller.models import SoulAction
from misc.commands.command_deps import CommandDeps
from misc.commands.commands_soul import register as register_soul_commands
from misc.events_runtime import register_runtime_events
from misc.paint_proxy import handle_paint
from misc.reply_relay import relay_says
from misc.runtime_deps import RuntimeDeps


def wire_soul_actions(
    bot,
    soul,
    *,
    message_cache,
    host_name: str,
    paint_url: str,
    paint_timeout_seconds: float,
) -> None:
    async def on_says(action: SoulAction) -> None:
        await relay_says(action, bot=bot, cache=message_cache, host_name=host_name)

    async def on_paint(action: SoulAction) -> None:
        await handle_paint(
            action,
            bot=bot,
            paint_url=paint_url,
            timeout_seconds=paint_timeout_seconds,
        )

    soul.on("says", on_says)
    soul.on("paint", on_paint)


def wire_bot_runtime(
    bot,
    *,
    soul,
    message_cache,
    allowed_channel_ids: set[int],
    host_name: str,
    greeting_enabled: bool,
    paint_url: str,
    paint_enabled: bool,
    paint_timeout_seconds: float,
    knowledge_count_func,
) -> None:
    wire_soul_actions(
        bot,
        soul,
        message_cache=message_cache,
        host_name=host_name,
        paint_url=paint_url,
        paint_timeout_seconds=paint_timeout_seconds,
    )

    register_soul_commands(
        bot,
        deps=CommandDeps(
            soul=soul,
            host_name=host_name,
            paint_enabled=paint_enabled,
            knowledge_count_func=knowledge_count_func,
        ),
    )

    register_runtime_events(
        bot,
        deps=RuntimeDeps(
            soul=soul,
            message_cache=message_cache,
            allowed_channel_ids=allowed_channel_ids,
            host_name=host_name,
            greeting_enabled=greeting_enabled,
        ),
    )
