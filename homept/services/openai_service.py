"""OpenAI wrapper.

Structured-output completions: every call sends a strict JSON schema and
gets back one JSON document, or raises UpstreamError.
"""
from __future__ import annotations

import functools
import json
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from homept.errors import UpstreamError

ContentPart = Dict[str, Any]
# complete(system_prompt, user_content, schema_name, schema, model=...) -> JSON text
Completer = Callable[..., Awaitable[str]]


def client_ready(api_key: Optional[str]) -> Tuple[bool, str]:
    if not (api_key or "").strip():
        return False, "OPENAI_API_KEY is missing"
    return True, ""


def get_async_client(api_key: Optional[str], timeout: float = 120.0) -> AsyncOpenAI:
    ok, msg = client_ready(api_key)
    if not ok:
        raise UpstreamError(msg)
    return AsyncOpenAI(api_key=api_key.strip(), timeout=timeout)


def text_part(text: str) -> ContentPart:
    return {"type": "text", "text": text}


def image_part(data_url: str) -> ContentPart:
    return {"type": "image_url", "image_url": {"url": data_url}}


def parse_json_object(text: Optional[str]) -> Dict[str, Any]:
    if not text or not text.strip():
        raise UpstreamError("Empty model output")

    s = text.strip()
    if s.startswith("```"):
        # Remove opening fence (```json or ```) and the closing one
        parts = s.split("\n", 1)
        s = parts[1] if len(parts) > 1 else ""
        if "```" in s:
            s = s.rsplit("```", 1)[0]
        s = s.strip()

    try:
        obj = json.loads(s)
    except ValueError:
        m = re.search(r"\{.*\}", s, flags=re.DOTALL)
        if not m:
            raise UpstreamError("Model did not return valid json")
        try:
            obj = json.loads(m.group(0))
        except ValueError as e:
            raise UpstreamError("Model did not return valid json") from e
    if not isinstance(obj, dict):
        raise UpstreamError("Model did not return a JSON object")
    return obj


async def complete_json(
    system_prompt: Optional[str],
    user_content: List[ContentPart],
    schema_name: str,
    schema: Dict[str, Any],
    *,
    model: str,
    client: AsyncOpenAI,
) -> str:
    messages: List[Dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_content})

    try:
        res = await client.chat.completions.create(
            model=model,
            messages=messages,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": schema},
            },
        )
    except Exception as e:
        raise UpstreamError(f"LLM request failed: {type(e).__name__}: {e}") from e

    content = res.choices[0].message.content if res.choices else None
    if not content:
        raise UpstreamError("No response content received from OpenAI")
    return content


@asynccontextmanager
async def open_completer(
    api_key: Optional[str],
    timeout: float = 120.0,
    complete: Optional[Completer] = None,
) -> AsyncIterator[Completer]:
    """Yield `complete` if given, else a completer bound to a fresh client.

    The client belongs to the running event loop, so it is opened and closed
    inside each asyncio.run().
    """
    if complete is not None:
        yield complete
        return
    client = get_async_client(api_key, timeout)
    try:
        yield functools.partial(complete_json, client=client)
    finally:
        await client.close()
