from __future__ import annotations

import asyncio
import json
import re
from typing import AsyncIterator

from controller.models import Interlocutor
from controller.models import WorkingMemory
from controller.persona import SoulPersona
from controller.prompt_assembly import build_chat_messages
from controller.prompt_assembly import build_decision_instructions
from controller.prompt_assembly import build_dialog_instructions


def safe_extract_json_obj(text: str) -> dict | None:
    if not text:
        return None
    m = re.search(r"\{.*\}", text, flags=re.S)
    if not m:
        return None
    try:
        obj = json.loads(m.group(0))
    except Exception:
        return None
    return obj if isinstance(obj, dict) else None


class ReplyStream:
    """
    A streamed reply that can be awaited by several consumers.

    The underlying chunk iterator is drained once; every caller of text() gets the same final string.
    """

    def __init__(self, chunks: AsyncIterator[str]) -> None:
        self._chunks = chunks
        self._parts: list[str] = []
        self._task: asyncio.Task | None = None

    async def _drain(self) -> str:
        async for chunk in self._chunks:
            if chunk:
                self._parts.append(chunk)
        return "".join(self._parts).strip()

    async def text(self) -> str:
        if self._task is None:
            self._task = asyncio.ensure_future(self._drain())
        return await asyncio.shield(self._task)


def _decision_response_format(labels: list[str]) -> dict:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "decision",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {"choice": {"type": "string", "enum": labels}},
                "required": ["choice"],
                "additionalProperties": False,
            },
        },
    }


class Cognition:
    def __init__(
        self,
        *,
        client,
        openai_model: str,
        persona: SoulPersona,
        max_chars: int = 6000,
    ) -> None:
        self.client = client
        self.openai_model = openai_model
        self.persona = persona
        self.max_chars = max(200, int(max_chars))

    @property
    def host_name(self) -> str:
        return self.persona.name

    async def decide(
        self,
        memory: WorkingMemory,
        description: str,
        choices: list[Interlocutor],
    ) -> Interlocutor:
        labels = [c.label(self.host_name) for c in choices]
        msgs = build_chat_messages(
            system_prompt_base=self.persona.to_prompt_block(),
            memory=memory,
            instructions=build_decision_instructions(description, labels),
            max_chars=self.max_chars,
        )
        resp = await self.client.chat.completions.create(
            model=self.openai_model,
            messages=msgs,
            response_format=_decision_response_format(labels),
        )
        raw = (resp.choices[0].message.content or "").strip()
        obj = safe_extract_json_obj(raw)
        if not obj:
            return Interlocutor.NOT_SURE
        picked = Interlocutor.from_label(str(obj.get("choice") or ""), self.host_name)
        return picked if picked in choices else Interlocutor.NOT_SURE

    async def stream_dialog(self, memory: WorkingMemory, action: str) -> ReplyStream:
        msgs = build_chat_messages(
            system_prompt_base=self.persona.to_prompt_block(),
            memory=memory,
            instructions=build_dialog_instructions(self.host_name, action),
            max_chars=self.max_chars,
        )
        stream = await self.client.chat.completions.create(
            model=self.openai_model,
            messages=msgs,
            stream=True,
        )

        async def _chunks() -> AsyncIterator[str]:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                text = getattr(delta, "content", None)
                if text:
                    yield text

        return ReplyStream(_chunks())
