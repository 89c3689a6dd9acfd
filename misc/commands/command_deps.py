from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Awaitable
from typing import Callable

from config.defaults import SOUL_NAME


async def _zero_count() -> int:
    return 0


@dataclass(frozen=True)
class CommandDeps:
    soul: Any = None
    host_name: str = SOUL_NAME
    paint_enabled: bool = True
    knowledge_count_func: Callable[[], Awaitable[int]] = _zero_count
