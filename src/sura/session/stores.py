"""Session storage backends: in-process dict and Redis."""

from __future__ import annotations

import json
import time
from typing import Any, Callable

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

from sura.logging_utils import create_service_logger

logger = create_service_logger("sura.session")


class MemorySessionStore:
    """Sessions kept in process memory; suitable for a single worker and tests."""

    def __init__(
        self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0
    ) -> None:
        self._items: dict[str, tuple[float, dict[str, Any]]] = {}
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    async def load(self, session_id: str) -> dict[str, Any] | None:
        item = self._items.get(session_id)
        if item is None:
            return None
        expires_at, data = item
        if expires_at <= self._clock():
            del self._items[session_id]
            return None
        return dict(data)

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)
        self._items[session_id] = (now + ttl, dict(data))

    def _sweep(self, now: float) -> None:
        """Drop every expired session; runs at most once per sweep interval."""
        expired = [key for key, (expires_at, _) in self._items.items() if expires_at <= now]
        for key in expired:
            del self._items[key]
        self._next_sweep = now + self._sweep_interval

    async def delete(self, session_id: str) -> None:
        self._items.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._items)


class RedisSessionStore:
    """Sessions stored as JSON strings under ``<prefix><id>`` with a Redis TTL."""

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client: aioredis.Redis | None = None,
        prefix: str = "sura:session:",
    ) -> None:
        if client is None:
            if redis_url is None:
                raise ValueError("RedisSessionStore needs a redis_url or a client")
            client = aioredis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        self.client = client
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    async def start(self) -> None:
        """Verify the connection; raises when Redis is unreachable."""
        try:
            await self.client.ping()
            logger.info("Redis session store connected")
        except RedisConnectionError as e:
            logger.error(f"Redis session store failed to connect: {e}")
            raise

    async def stop(self) -> None:
        await self.client.aclose()
        logger.info("Redis session store disconnected")

    async def load(self, session_id: str) -> dict[str, Any] | None:
        raw = await self.client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable session payload", session_key=self._key(session_id))
            return None
        return data if isinstance(data, dict) else None

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        await self.client.set(self._key(session_id), json.dumps(data), ex=ttl)

    async def delete(self, session_id: str) -> None:
        await self.client.delete(self._key(session_id))
