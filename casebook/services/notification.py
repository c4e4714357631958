"""
Owner notifications — pushes an admin-authored message to the notification service.
"""

from __future__ import annotations

import logging

import httpx

from casebook.core.config import settings
from casebook.core.exceptions import ServiceUnavailable

logger = logging.getLogger(__name__)


async def notify_owner(
    title: str,
    content: str,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Send a notification. Returns ``False`` when the upstream call fails."""
    if not settings.NOTIFICATION_API_URL:
        raise ServiceUnavailable("Notification service URL is not configured")

    url = f"{settings.NOTIFICATION_API_URL.rstrip('/')}/notifications"
    headers = {"Content-Type": "application/json"}
    if settings.NOTIFICATION_API_KEY:
        headers["Authorization"] = f"Bearer {settings.NOTIFICATION_API_KEY}"
    body = {"title": title, "content": content}

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as owned:
                r = await owned.post(url, json=body, headers=headers)
        else:
            r = await client.post(url, json=body, headers=headers)
        r.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "[Notification] Failed to notify owner (%s): %s",
            exc.response.status_code,
            exc.response.text[:200],
        )
        return False
    except httpx.HTTPError as exc:
        logger.warning("[Notification] Error calling notification service: %s", exc)
        return False

    logger.info("[Notification] Owner notified: %s", title)
    return True
