from __future__ import annotations

import json
import logging
from contextlib import suppress
from datetime import datetime
from typing import Any, AsyncIterator

import redis.asyncio as redis

from .config import REDIS_URL, testing

logger = logging.getLogger(__name__)

LEDGER_CHANNEL = "ledger:events"
EVENT_OUTBOX: list[dict[str, Any]] = []
_redis = None

async def get_redis():
    global _redis
    if _redis is None:
        _redis = redis.from_url(REDIS_URL)
    return _redis

def _json_default(value: Any) -> Any:
    # purpose: convert datetime objects to ISO strings for event payloads
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _serialize_event(event: dict[str, Any]) -> str:
    # purpose: normalise event dictionaries into JSON strings for redis pub/sub
    return json.dumps(event, default=_json_default)


async def publish_ledger_events(events: list[dict[str, Any]]) -> None:
    """Broadcast committed ledger events to observers."""

    if not events:
        return
    if testing():
        EVENT_OUTBOX.extend(events)
        return
    try:
        r = await get_redis()
        for event in events:
            await r.publish(LEDGER_CHANNEL, _serialize_event(event))
    except redis.RedisError as exc:
        # events stay queryable through /api/events
        logger.warning("Ledger event publication failed: %s", exc)


async def iter_ledger_events() -> AsyncIterator[str]:
    """Yield ledger pub/sub messages as a stream."""

    r = await get_redis()
    pubsub = r.pubsub()
    await pubsub.subscribe(LEDGER_CHANNEL)
    try:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            data = message.get("data")
            if isinstance(data, bytes):
                yield data.decode()
            else:
                yield str(data)
    finally:
        with suppress(Exception):
            await pubsub.unsubscribe(LEDGER_CHANNEL)
        with suppress(AttributeError):
            await pubsub.close()
