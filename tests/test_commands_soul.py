from __future__ import annotations

import unittest
from collections import deque
from types import SimpleNamespace

try:
    from controller.models import WorkingMemory
    from misc.commands.command_deps import CommandDeps
    from misc.commands.commands_soul import build_paint_action
    from misc.commands.commands_soul import format_soul_status
    from misc.commands.commands_soul import register as register_soul_commands
except ModuleNotFoundError:
    register_soul_commands = None


class FakeBot:
    def __init__(self):
        self.commands = {}

    def command(self, name=None):
        def decorator(func):
            self.commands[name or func.__name__] = func
            return func

        return decorator


class FakeContext:
    def __init__(self, message=None):
        self.message = message
        self.replies = []

    async def reply(self, text, mention_author=False):
        self.replies.append(text)


class FakeSoul:
    def __init__(self):
        self.emitted = []
        self.pending = deque([object(), object()])
        self.memory = WorkingMemory().with_memory("a").with_memory("b").with_memory("c")

    def emit(self, action):
        self.emitted.append(action)


def _message():
    return SimpleNamespace(
        id=555,
        content="!paint a lighthouse",
        guild=SimpleNamespace(id=1),
        channel=SimpleNamespace(id=77),
        author=SimpleNamespace(id=11, name="alice", display_name="Alice", bot=False),
        mentions=[],
    )


@unittest.skipIf(register_soul_commands is None, "discord.py not installed")
class SoulCommandHelpersTests(unittest.TestCase):
    def test_build_paint_action(self):
        action = build_paint_action(_message(), "  a lighthouse  ")

        self.assertEqual(action.action, "paint")
        self.assertEqual(action.metadata["prompt"], "a lighthouse")
        self.assertEqual(action.metadata["discord_message"].channel_id, 77)

    def test_format_soul_status(self):
        self.assertEqual(
            format_soul_status(host_name="Glandon", pending=2, memories=3, knowledge_chunks=14),
            "**Glandon status**\n- pending perceptions: 2\n- working memories: 3\n- knowledge chunks: 14",
        )


@unittest.skipIf(register_soul_commands is None, "discord.py not installed")
class SoulCommandsTests(unittest.IsolatedAsyncioTestCase):
    def _register(self, *, paint_enabled=True):
        async def knowledge_count():
            return 14

        bot = FakeBot()
        soul = FakeSoul()
        register_soul_commands(
            bot,
            deps=CommandDeps(
                soul=soul,
                host_name="Glandon",
                paint_enabled=paint_enabled,
                knowledge_count_func=knowledge_count,
            ),
        )
        return bot, soul

    async def test_paint_emits_action(self):
        bot, soul = self._register()
        ctx = FakeContext(_message())

        await bot.commands["paint"](ctx, prompt="a lighthouse")

        self.assertEqual([a.action for a in soul.emitted], ["paint"])
        self.assertEqual(ctx.replies, [])

    async def test_paint_usage_and_disabled(self):
        bot, soul = self._register()
        ctx = FakeContext(_message())
        await bot.commands["paint"](ctx, prompt=None)
        self.assertIn("Usage", ctx.replies[0])

        bot, soul = self._register(paint_enabled=False)
        ctx = FakeContext(_message())
        await bot.commands["paint"](ctx, prompt="a lighthouse")
        self.assertEqual(soul.emitted, [])
        self.assertEqual(ctx.replies, ["Painting is turned off right now."])

    async def test_soul_status_reports_counts(self):
        bot, _ = self._register()
        ctx = FakeContext()

        await bot.commands["soul_status"](ctx)

        self.assertEqual(
            ctx.replies,
            ["**Glandon status**\n- pending perceptions: 2\n- working memories: 3\n- knowledge chunks: 14"],
        )


if __name__ == "__main__":
    unittest.main()
