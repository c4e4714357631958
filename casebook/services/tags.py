"""
Tag generation for case studies via an OpenAI-compatible chat endpoint.
"""

from __future__ import annotations

import json
import logging

import httpx

from casebook.core.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates relevant tags for AI use cases. "
    "Return only a JSON array of 3-5 short tags in Japanese."
)

TAGS_SCHEMA = {
    "name": "tags",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Array of 3-5 relevant tags",
            },
        },
        "required": ["tags"],
        "additionalProperties": False,
    },
}


def fallback_tags(category: str, tools: list[str]) -> list[str]:
    return [category, *tools[:2]]


def _build_payload(title: str, description: str, tools: list[str], category: str) -> dict:
    return {
        "model": settings.LLM_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Generate tags for this AI use case:\n"
                    f"Title: {title}\n"
                    f"Description: {description}\n"
                    f"Tools: {', '.join(tools)}\n"
                    f"Category: {category}"
                ),
            },
        ],
        "response_format": {"type": "json_schema", "json_schema": TAGS_SCHEMA},
    }


def parse_tags(response_body: dict) -> list[str] | None:
    """Extract the tag list from a chat-completions response, or ``None``."""
    try:
        content = response_body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(content, str):
        return None
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        return None
    tags = parsed.get("tags") if isinstance(parsed, dict) else None
    if not isinstance(tags, list):
        return None
    return [str(t) for t in tags if str(t).strip()]


async def generate_tags(
    title: str,
    description: str,
    tools: list[str],
    category: str,
    client: httpx.AsyncClient | None = None,
) -> list[str]:
    """Ask the LLM for tags, falling back to ``[category, *tools[:2]]``."""
    if not settings.LLM_API_URL:
        return fallback_tags(category, tools)

    url = f"{settings.LLM_API_URL.rstrip('/')}/v1/chat/completions"
    headers = {"Content-Type": "application/json"}
    if settings.LLM_API_KEY:
        headers["Authorization"] = f"Bearer {settings.LLM_API_KEY}"
    payload = _build_payload(title, description, tools, category)

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as owned:
                r = await owned.post(url, json=payload, headers=headers)
        else:
            r = await client.post(url, json=payload, headers=headers)
        r.raise_for_status()
        tags = parse_tags(r.json())
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Failed to generate tags: %s", exc)
        tags = None

    if tags is None:
        return fallback_tags(category, tools)
    return tags
