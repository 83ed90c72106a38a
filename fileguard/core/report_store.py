"""
Redis-backed store for the most recent report of each root.

One string key per root, ``fileguard:report:{digest(root)}``, holding the
report JSON. Saving overwrites; there is no history.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import ValidationError
from redis.asyncio import Redis

from fileguard.core.cache import make_cache_key
from fileguard.core.config import settings
from fileguard.core.log import logger
from fileguard.core.paths import canonical_root
from fileguard.schema.report import Report

__all__ = ("ReportSink", "ReportStore", "state_redis")


def state_redis() -> Redis:
    return Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB_STATE,
        password=settings.REDIS_PASSWORD,
        decode_responses=True,
    )


class ReportSink(Protocol):
    async def save(self, report: Report) -> None: ...

    async def load(self, root: str) -> Report | None: ...


class ReportStore:
    """Persists the latest ``Report`` per root in Redis."""

    def __init__(self, redis: Redis | None = None, ttl: int | None = None):
        self._redis = redis
        self.ttl = ttl if ttl is not None else settings.REPORT_TTL_SECONDS

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = state_redis()
        return self._redis

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @staticmethod
    def _key(root: str) -> str:
        return f"fileguard:report:{make_cache_key(canonical_root(root))}"

    async def save(self, report: Report) -> None:
        await self.redis.set(self._key(report.root), report.model_dump_json(), ex=self.ttl)

    async def load(self, root: str) -> Report | None:
        raw = await self.redis.get(self._key(root))
        if raw is None:
            return None
        try:
            return Report.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Discarding unreadable stored report for {root}: {exc}")
            return None
