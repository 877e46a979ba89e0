"""Event builders and stream helpers shared by the tests."""

import asyncio
import json
from typing import Any, AsyncIterator, Iterable

PATCH_ROOT = '{"op":"replace","path":"/root","value":"c1"}\n'
PATCH_CARD = '{"op":"add","path":"/elements/c1","value":{"type":"Card","props":{}}}\n'


def delta(text: str, stream_id: str = "text1") -> dict[str, Any]:
    return {"type": "text-delta", "id": stream_id, "delta": text}


def text_start(stream_id: str = "text1") -> dict[str, Any]:
    return {"type": "text-start", "id": stream_id}


def text_end(stream_id: str = "text1") -> dict[str, Any]:
    return {"type": "text-end", "id": stream_id}


async def agen(items: Iterable[Any]) -> AsyncIterator[Any]:
    for item in items:
        yield item


async def _collect(stream: AsyncIterator[Any]) -> list[Any]:
    return [item async for item in stream]


def collect(stream: AsyncIterator[Any]) -> list[Any]:
    """Drain an async iterator from synchronous test code."""
    return asyncio.run(_collect(stream))


def parse_sse(body: str) -> list[Any]:
    """Split an SSE body into decoded payloads ("[DONE]" stays a string)."""
    payloads: list[Any] = []
    for block in body.split("\n\n"):
        block = block.strip()
        if not block:
            continue
        assert block.startswith("data: ")
        payload = block[len("data: "):]
        payloads.append(payload if payload == "[DONE]" else json.loads(payload))
    return payloads
