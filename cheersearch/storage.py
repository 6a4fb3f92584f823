import json
import logging
import time
from typing import Any, Protocol

import redis.asyncio as aioredis

logger = logging.getLogger("cheersearch.storage")

ENVELOPE_VERSION = 1


class KeyValueStore(Protocol):
    """Persistence port for history, trending and search-context data."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisStore:
    def __init__(self, redis: aioredis.Redis, prefix: str = "cheersearch"):
        self.redis = redis
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> str | None:
        raw = await self.redis.get(self._key(key))
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))


class MemoryStore:
    """In-process store for tests and single-process deployments."""

    def __init__(self):
        self.data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


async def load_payload(store: KeyValueStore, key: str, default: Any) -> Any:
    """Read the payload of a versioned envelope. Returns ``default`` on any failure."""
    try:
        raw = await store.get(key)
        if raw is None:
            return default
        envelope = json.loads(raw)
    except Exception as e:
        logger.warning("Storage read error for key=%s: %s", key, e)
        return default

    if not isinstance(envelope, dict) or envelope.get("version") != ENVELOPE_VERSION:
        logger.warning("Discarding envelope with unexpected version for key=%s", key)
        return default
    return envelope.get("payload", default)


async def save_payload(store: KeyValueStore, key: str, payload: Any) -> bool:
    """Write ``payload`` wrapped in a versioned envelope. Returns False on failure."""
    envelope = {
        "version": ENVELOPE_VERSION,
        "timestamp": int(time.time() * 1000),
        "payload": payload,
    }
    try:
        await store.set(key, json.dumps(envelope, ensure_ascii=False))
    except Exception as e:
        logger.warning("Storage write error for key=%s: %s", key, e)
        return False
    return True


async def delete_payload(store: KeyValueStore, key: str) -> None:
    try:
        await store.delete(key)
    except Exception as e:
        logger.warning("Storage delete error for key=%s: %s", key, e)
