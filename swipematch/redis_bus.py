import logging
from typing import Any, Dict, Optional

import orjson
from redis.asyncio import Redis

from .config import get_settings

LOGGER = logging.getLogger("uvicorn.error")

_client: Optional[Redis] = None


def _channel(topic: str) -> str:
    prefix = (get_settings().redis_pubsub_prefix or "").strip()
    return f"{prefix}.{topic}" if prefix else topic


async def _ensure_client() -> Optional[Redis]:
    global _client
    if _client is not None:
        return _client
    settings = get_settings()
    if not settings.redis_url:
        return None
    try:
        client = Redis.from_url(settings.redis_url, decode_responses=False)
        await client.ping()
        _client = client
    except Exception as exc:
        LOGGER.warning("Redis unavailable at %s: %s", settings.redis_url, exc)
        _client = None
    return _client


async def publish(topic: str, event: Dict[str, Any]) -> bool:
    """Publish ``event`` on ``<prefix>.<topic>``. Returns False when pub/sub is off."""
    if not get_settings().redis_pubsub_enabled:
        return False
    client = await _ensure_client()
    if not client:
        return False
    payload = orjson.dumps(event)
    await client.publish(_channel(topic), payload)
    return True


async def stop() -> None:
    global _client
    if _client is not None:
        try:
            await _client.aclose()
        except Exception as exc:
            LOGGER.debug("Redis close failed: %s", exc)
        _client = None


__all__ = ["publish", "stop"]
