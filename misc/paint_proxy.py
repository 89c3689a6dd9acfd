from __future__ import annotations

import json
from typing import Any

import aiohttp

from config.defaults import DEFAULT_PAINT_TIMEOUT_SECONDS
from controller.models import ChatEvent
from controller.models import SoulAction
from misc.reply_relay import resolve_channel


class PaintRequestError(RuntimeError):
    pass


def painting_result_text(data: Any) -> str:
    if isinstance(data, dict):
        message = data.get("message")
        if message is not None and str(message):
            return str(message)
        return json.dumps(data, ensure_ascii=False)
    return str(data)


async def request_painting(session: aiohttp.ClientSession, paint_url: str, prompt: str) -> str:
    async with session.post(paint_url, json={"data": prompt}) as response:
        if not (200 <= response.status < 300):
            raise PaintRequestError(f"HTTP error! status: {response.status}")

        content_type = response.headers.get("content-type") or ""
        if "application/json" in content_type:
            data = await response.json(content_type=None)
        elif "text/plain" in content_type:
            data = await response.text()
        elif "text/html" in content_type:
            data = await response.text()
            print(f"[Paint] Received HTML response: {data}")
        else:
            raise PaintRequestError(f"Unsupported response type: {content_type or None}")

    return painting_result_text(data)


def _paint_target(metadata: dict) -> tuple[int, int] | None:
    target = metadata.get("discord_message")
    if isinstance(target, ChatEvent):
        return (target.message_id, target.channel_id)
    if isinstance(target, dict) and target.get("channel_id") is not None:
        return (int(target.get("message_id") or 0), int(target["channel_id"]))
    return None


async def handle_paint(
    action: SoulAction,
    *,
    bot: Any,
    paint_url: str,
    session: aiohttp.ClientSession | None = None,
    timeout_seconds: float = DEFAULT_PAINT_TIMEOUT_SECONDS,
) -> str | None:
    """Proxy a paint action to the image endpoint and post the result in the originating channel."""
    metadata = action.metadata or {}
    print(f"[Paint] paint interaction request detected: metadata keys={sorted(metadata)}")

    target = _paint_target(metadata)
    if target is None:
        print("[Paint] Discord message metadata is missing")
        return None
    message_id, channel_id = target

    prompt = str(metadata.get("prompt") or "").strip()
    if not prompt:
        print("[Paint] Prompt is missing")
        return None

    print(f"[Paint] making request to paint {prompt!r} for message {message_id}...")
    try:
        if session is None:
            timeout = aiohttp.ClientTimeout(total=float(timeout_seconds))
            async with aiohttp.ClientSession(timeout=timeout) as own_session:
                img_url = await request_painting(own_session, paint_url, prompt)
        else:
            img_url = await request_painting(session, paint_url, prompt)

        print(f"[Paint] painting is complete: {img_url}")
        channel = await resolve_channel(bot, channel_id)
        if channel is not None and hasattr(channel, "send"):
            await channel.send(img_url)
        return img_url
    except Exception as e:
        print(f"[Paint] Error: {e!r}")
        return None
