from __future__ import annotations

import importlib
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


async def _zero_count() -> int:
    return 0


async def _noop_process(memory, invoking, *, pending):
    return memory


def _try_import_or_skip(module_name: str, pip_name: str | None = None) -> bool:
    try:
        importlib.import_module(module_name)
        return True
    except ModuleNotFoundError:
        install_name = pip_name or module_name
        print(
            f"Smoke wiring check skipped: missing dependency '{module_name}'. "
            f"Install the project and retry (e.g. `pip install {install_name}` or `pip install -e .`)."
        )
        return False


def _main() -> int:
    if not _try_import_or_skip("discord", "discord.py"):
        return 0
    if not _try_import_or_skip("aiohttp"):
        return 0

    import discord
    from discord.ext import commands
    from misc.reply_relay import RecentMessageCache
    from misc.runtime_wiring import wire_bot_runtime
    from soul.runtime import SoulRuntime

    bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
    soul = SoulRuntime(process=_noop_process)

    wire_bot_runtime(
        bot,
        soul=soul,
        message_cache=RecentMessageCache(10),
        allowed_channel_ids=set(),
        host_name="Glandon",
        greeting_enabled=False,
        paint_url="http://localhost:9/paint",
        paint_enabled=True,
        paint_timeout_seconds=5,
        knowledge_count_func=_zero_count,
    )

    expected_commands = {"paint", "soul_status"}
    missing = sorted(expected_commands - set(bot.all_commands.keys()))
    if missing:
        raise RuntimeError(f"Missing expected commands: {missing}")

    if getattr(bot, "on_ready", None) is None:
        raise RuntimeError("Runtime events were not registered")

    missing_actions = sorted({"says", "paint"} - set(soul._handlers))
    if missing_actions:
        raise RuntimeError(f"Missing soul action handlers: {missing_actions}")

    print("Smoke wiring check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
