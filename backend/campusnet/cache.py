"""Redis client for Campusnet."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, TypeVar

import redis.asyncio as redis
from pydantic import BaseModel

from .config import settings

M = TypeVar("M", bound=BaseModel)


class RedisCache:
    """Async Redis client wrapper storing pydantic models as JSON."""

    def __init__(self, url: str | None = None):
        self._url = url or settings.redis_url
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._client = redis.from_url(
            self._url,
            encoding="utf-8",
            decode_responses=True,
        )

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        if not self._client:
            raise RuntimeError("Redis client not connected")
        return self._client

    # Plain values

    async def get(self, key: str) -> str | None:
        return await self.client.get(key)

    async def claim(self, key: str, value: str) -> bool:
        """SET NX. True when this call created the key."""
        return bool(await self.client.set(key, value, nx=True))

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    # Models

    async def get_model(self, key: str, model: type[M]) -> M | None:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return model.model_validate_json(raw)

    async def set_model(self, key: str, value: BaseModel) -> None:
        await self.client.set(key, value.model_dump_json())

    async def claim_model(self, key: str, value: BaseModel) -> bool:
        return await self.claim(key, value.model_dump_json())

    # Sets and hashes

    async def add_member(self, key: str, member: str) -> None:
        await self.client.sadd(key, member)

    async def members(self, key: str) -> set[str]:
        return await self.client.smembers(key)

    async def hget_model(self, key: str, field: str, model: type[M]) -> M | None:
        raw = await self.client.hget(key, field)
        if raw is None:
            return None
        return model.model_validate_json(raw)

    async def hset_model(self, key: str, field: str, value: BaseModel) -> None:
        await self.client.hset(key, field, value.model_dump_json())

    async def hvals_models(self, key: str, model: type[M]) -> list[M]:
        return [model.model_validate_json(raw) for raw in await self.client.hvals(key)]

    @asynccontextmanager
    async def watching(self, key: str) -> AsyncIterator[redis.client.Pipeline]:
        """
        Transactional pipeline already watching `key`.

        The caller reads through the pipeline, then calls `multi()` and
        `execute()`; a concurrent write to `key` raises WatchError.
        """
        async with self.client.pipeline(transaction=True) as pipe:
            await pipe.watch(key)
            yield pipe


# Singleton instance
redis_cache = RedisCache()
