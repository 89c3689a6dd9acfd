from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable

from controller.models import Perception
from controller.models import SoulAction
from controller.models import WorkingMemory

ProcessFunc = Callable[..., Awaitable[WorkingMemory]]
ActionHandler = Callable[[SoulAction], Awaitable[None]]


def format_perception_memory(perception: Perception) -> str:
    return f'{perception.name} said: "{perception.content}"'


class SoulRuntime:
    """
    Runs one mental process at a time over a queue of perceptions.

    Perceptions dispatched while a process is awaiting stay in `pending`, which the process
    receives as a live view.
    """

    def __init__(
        self,
        *,
        process: ProcessFunc,
        memory: WorkingMemory | None = None,
        max_memories: int = 0,
    ) -> None:
        self.process = process
        self.memory = memory or WorkingMemory()
        self.max_memories = int(max_memories or 0)
        self.pending: deque[Perception] = deque()
        self._handlers: dict[str, list[ActionHandler]] = {}
        self._worker: asyncio.Task | None = None
        self._action_tasks: set[asyncio.Task] = set()

    def on(self, action: str, handler: ActionHandler) -> None:
        self._handlers.setdefault(action, []).append(handler)

    def emit(self, action: SoulAction) -> None:
        handlers = self._handlers.get(action.action, [])
        if not handlers:
            print(f"[Soul] no handler for action={action.action!r}")
            return
        for handler in handlers:
            task = asyncio.create_task(handler(action))
            self._action_tasks.add(task)
            task.add_done_callback(self._action_done)

    def _action_done(self, task: asyncio.Task) -> None:
        self._action_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            print(f"[Soul] action handler error: {exc!r}")

    def dispatch(self, perception: Perception) -> None:
        self.pending.append(perception)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while self.pending:
            invoking = self.pending.popleft()
            memory = self.memory.with_memory(format_perception_memory(invoking), role="user")
            try:
                memory = await self.process(memory, invoking, pending=self.pending)
            except Exception as e:
                print(f"[Soul] process error for perception from {invoking.name}: {e!r}")
            self.memory = memory.window(self.max_memories)

    async def drain(self) -> None:
        """Wait until the queue is empty and every dispatched action handler has finished."""
        while self._worker is not None and not self._worker.done():
            await self._worker
        if self._action_tasks:
            await asyncio.gather(*list(self._action_tasks), return_exceptions=True)
