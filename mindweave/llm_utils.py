from __future__ import annotations

import json
import re

import httpx

from mindweave.constants import (
    DEFAULT_CLUSTER_DESCRIPTION,
    DEFAULT_CLUSTER_NAME,
    LLM_API_URL,
    LLM_API_VERSION,
    LLM_HTTP_CONNECT_TIMEOUT,
    LLM_HTTP_POOL_TIMEOUT,
    LLM_HTTP_READ_TIMEOUT,
    LLM_HTTP_USER_AGENT,
    LLM_HTTP_WRITE_TIMEOUT,
    LLM_TEMPERATURE,
)
from mindweave.logging_config import get_logger

logger = get_logger(__name__)

_CODE_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CODE_FENCE_END = re.compile(r"\s*```\s*$")
_NAME_FIELD = re.compile(r'"name"\s*:\s*"([^"]+)"')


class LLMResponseError(RuntimeError):
    """Raised when the text-generation API returns an unusable response."""


def build_messages(prompt: str) -> list[dict[str, str]]:
    return [{"role": "user", "content": prompt}]


def build_payload(model: str, prompt: str, max_tokens: int) -> dict[str, object]:
    return {
        "model": model,
        "max_tokens": max_tokens,
        "messages": build_messages(prompt),
        "temperature": LLM_TEMPERATURE,
    }


def build_headers(api_key: str) -> dict[str, str]:
    return {
        "x-api-key": api_key,
        "anthropic-version": LLM_API_VERSION,
        "content-type": "application/json",
        "user-agent": LLM_HTTP_USER_AGENT,
    }


def default_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        connect=LLM_HTTP_CONNECT_TIMEOUT,
        read=LLM_HTTP_READ_TIMEOUT,
        write=LLM_HTTP_WRITE_TIMEOUT,
        pool=LLM_HTTP_POOL_TIMEOUT,
    )


def extract_text(data: object) -> str:
    """Return the first text block of a Messages API response body."""
    if not isinstance(data, dict):
        raise LLMResponseError("response body is not an object")
    blocks = data.get("content")
    if not isinstance(blocks, list) or not blocks:
        raise LLMResponseError("response has no content blocks")
    first = blocks[0]
    if not isinstance(first, dict) or first.get("type") != "text":
        raise LLMResponseError("first content block is not text")
    text = first.get("text")
    if not isinstance(text, str):
        raise LLMResponseError("text block has no text")
    return text


async def generate_text(
    prompt: str,
    model: str,
    max_tokens: int,
    api_key: str,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Single-turn call to the Messages API. Raises on any failure."""
    payload = build_payload(model=model, prompt=prompt, max_tokens=max_tokens)

    if client is None:
        async with httpx.AsyncClient(timeout=default_timeout()) as own_client:
            resp = await own_client.post(
                LLM_API_URL, headers=build_headers(api_key), json=payload
            )
    else:
        resp = await client.post(
            LLM_API_URL, headers=build_headers(api_key), json=payload
        )

    resp.raise_for_status()
    return extract_text(resp.json())


def strip_code_fence(text: str) -> str:
    cleaned = _CODE_FENCE_START.sub("", text.strip())
    return _CODE_FENCE_END.sub("", cleaned).strip()


def parse_cluster_name(text: str) -> tuple[str, str]:
    """
    Parse a {"name", "description"} reply leniently.

    Falls back to a regex scrape of the name field, then to the default pair.
    """
    try:
        parsed = json.loads(strip_code_fence(text))
    except json.JSONDecodeError:
        logger.debug("cluster name reply is not JSON", reply=text[:200])
        match = _NAME_FIELD.search(text)
        return (
            match.group(1) if match else DEFAULT_CLUSTER_NAME,
            DEFAULT_CLUSTER_DESCRIPTION,
        )

    if not isinstance(parsed, dict):
        return DEFAULT_CLUSTER_NAME, DEFAULT_CLUSTER_DESCRIPTION

    name = parsed.get("name")
    description = parsed.get("description")
    return (
        name if isinstance(name, str) and name else DEFAULT_CLUSTER_NAME,
        description
        if isinstance(description, str) and description
        else DEFAULT_CLUSTER_DESCRIPTION,
    )
