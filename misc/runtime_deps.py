from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RuntimeDeps:
    soul: Any
    message_cache: Any
    allowed_channel_ids: set[int]
    host_name: str
    greeting_enabled: bool = True
