from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from config.defaults import SOUL_NAME


@dataclass(slots=True)
class SoulPersona:
    version: str = "glandon_persona_v1"
    name: str = SOUL_NAME
    system_prompt: str = ""
    seed_memories: list[str] = field(default_factory=list)

    def to_prompt_block(self) -> str:
        lines: list[str] = [self.system_prompt.strip()] if self.system_prompt.strip() else []
        if self.seed_memories:
            lines.append(f"{self.name} knows:")
            for item in self.seed_memories:
                lines.append(f"- {item}")
        return "\n".join(lines)


def default_persona() -> SoulPersona:
    return SoulPersona(
        version="glandon_persona_v1",
        name=SOUL_NAME,
        system_prompt=(
            f"You are {SOUL_NAME}, the moderator of this Discord channel.\n"
            "Keep replies short, warm, and on topic. Ask a clarifying question when a request is underspecified."
        ),
        seed_memories=[
            f"{SOUL_NAME} moderates the channel. Participants sometimes talk to {SOUL_NAME}, and sometimes between themselves.",
        ],
    )


def _as_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        text = str(item or "").strip()
        if text:
            out.append(text)
    return out


def load_persona(path: str | Path | None) -> tuple[SoulPersona, str | None]:
    """
    Returns (persona, warning_message). warning_message is None on clean load.
    """
    defaults = default_persona()
    if not path:
        return (defaults, "Persona path missing; using built-in defaults.")

    p = Path(path)
    if not p.exists():
        return (defaults, f"Persona file not found at {p}; using built-in defaults.")

    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except Exception as exc:
        return (defaults, f"Failed to read persona from {p}: {exc}; using built-in defaults.")

    if not isinstance(payload, dict):
        return (defaults, f"Invalid persona format in {p}; using built-in defaults.")

    persona = SoulPersona(
        version=str(payload.get("version") or defaults.version),
        name=str(payload.get("name") or defaults.name).strip() or defaults.name,
        system_prompt=str(payload.get("system_prompt") or "").strip() or defaults.system_prompt,
        seed_memories=_as_list(payload.get("seed_memories")) or defaults.seed_memories,
    )
    return (persona, None)
