from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis

from formdesk.core.config import settings
from formdesk.core.redis import get_redis

logger = logging.getLogger("formdesk.realtime")

CHANNEL_PREFIX = "events_changes"


class RealtimeUnavailable(RuntimeError):
    pass


def channel_for(user_id: int) -> str:
    return f"{CHANNEL_PREFIX}:{user_id}"


def publish_event_change(user_id: int, action: str, event_id: int) -> None:
    """Tell the owner's open dashboards that their event list changed."""
    r = get_redis()
    if r is None:
        logger.debug("Redis unavailable; event change %s/%s not published", action, event_id)
        return
    try:
        r.publish(channel_for(user_id), json.dumps({"action": action, "event_id": event_id}))
    except Exception as exc:
        logger.warning("Publishing event change failed: %s", exc)


def _client() -> aioredis.Redis:
    return aioredis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


@asynccontextmanager
async def subscribe_event_changes(user_id: int) -> AsyncIterator:
    """Subscription scoped to one dashboard view; always released on exit."""
    if not settings.REDIS_URL:
        raise RealtimeUnavailable("REDIS_URL is not configured")
    client = _client()
    pubsub = client.pubsub()
    channel = channel_for(user_id)
    try:
        await pubsub.subscribe(channel)
    except Exception as exc:
        await pubsub.aclose()
        await client.aclose()
        raise RealtimeUnavailable(str(exc)) from exc
    try:
        yield pubsub
    finally:
        try:
            await pubsub.unsubscribe(channel)
        finally:
            await pubsub.aclose()
            await client.aclose()


def decode_message(message: dict | None) -> dict | None:
    if not message or message.get("type") != "message":
        return None
    try:
        data = json.loads(message.get("data") or "{}")
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
