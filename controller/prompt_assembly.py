from __future__ import annotations

from controller.models import WorkingMemory


def build_chat_messages(
    *,
    system_prompt_base: str,
    memory: WorkingMemory,
    instructions: str,
    max_chars: int,
) -> list[dict]:
    msgs = [{"role": "system", "content": (system_prompt_base or "")[:max_chars]}]
    for role, content in memory.memories:
        msgs.append({"role": role, "content": (content or "")[:max_chars]})
    msgs.append({"role": "system", "content": (instructions or "")[:max_chars]})
    return msgs


def build_decision_instructions(description: str, choices: list[str]) -> str:
    options = "\n".join(f"- {choice}" for choice in choices)
    return (
        f"{description}\n\n"
        "Choose exactly one of these options:\n"
        f"{options}\n\n"
        'Return JSON only, shaped like {"choice": "<one option, verbatim>"}.'
    )


def build_dialog_instructions(host_name: str, action: str) -> str:
    return (
        f"{action}.\n"
        f"Speak as {host_name}, out loud, in the first person. "
        "Reply with the message text only: no name prefix, no quotation marks."
    )
