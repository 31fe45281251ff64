"""
Run locks — at most one reconciliation run at a time.

Both locks fail fast: a second run raises RunInProgressError instead of
waiting.  Use as ``async with lock: ...``; a long run calls ``renew()``
between partner calls so the lock outlives it.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import redis.asyncio as aioredis

from app.core.config import settings
from app.core.logging import get_logger
from app.pipeline.errors import RunInProgressError

logger = get_logger(__name__)


class LocalRunLock:
    """In-process lock; enough when API and job share one process."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name or settings.RECONCILIATION_JOB_NAME
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "LocalRunLock":
        if self._lock.locked():
            raise RunInProgressError(f"Run '{self.name}' is already in progress")
        await self._lock.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._lock.release()

    async def renew(self) -> None:
        pass


class RedisRunLock:
    """
    Distributed lock with SET NX EX; shared by Celery workers and the API.

    The TTL bounds how long a crashed run can block the next one.  While
    the run is alive ``renew()`` pushes the expiry out again, at most once
    per ``renew_interval`` seconds.
    """

    def __init__(
        self,
        name: str | None = None,
        redis_url: str | None = None,
        ttl_seconds: int | None = None,
        client: aioredis.Redis | None = None,
        clock=time.monotonic,
    ) -> None:
        self.key = f"lock:{name or settings.RECONCILIATION_JOB_NAME}"
        self.redis_url = redis_url or settings.REDIS_URL
        self.ttl_seconds = ttl_seconds or settings.RUN_LOCK_TIMEOUT_SECONDS
        self._client = client
        self._owns_client = client is None
        self._token: str | None = None
        self._clock = clock
        self._renewed_at = 0.0
        self.renew_interval = self.ttl_seconds / 3

    async def __aenter__(self) -> "RedisRunLock":
        if self._client is None:
            self._client = aioredis.from_url(self.redis_url, decode_responses=True)

        token = uuid.uuid4().hex
        acquired = await self._client.set(self.key, token, nx=True, ex=self.ttl_seconds)
        if not acquired:
            await self._close()
            raise RunInProgressError(f"Run lock '{self.key}' is held by another run")

        self._token = token
        self._renewed_at = self._clock()
        logger.debug("Run lock acquired", key=self.key, ttl=self.ttl_seconds)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            # Only release our own lock; it may have expired and been retaken
            if self._token is not None and await self._client.get(self.key) == self._token:
                await self._client.delete(self.key)
                logger.debug("Run lock released", key=self.key)
        finally:
            self._token = None
            await self._close()

    async def renew(self) -> None:
        """Extend the TTL if this run still holds the lock."""
        if self._token is None or self._clock() - self._renewed_at < self.renew_interval:
            return

        if await self._client.get(self.key) != self._token:
            logger.warning("Run lock lost before renewal", key=self.key)
            return

        await self._client.expire(self.key, self.ttl_seconds)
        self._renewed_at = self._clock()
        logger.debug("Run lock renewed", key=self.key, ttl=self.ttl_seconds)

    async def _close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
