"""
Per-root run serialization with a Redis lock.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis.asyncio import Redis
from redis.exceptions import LockError

from fileguard.core.cache import make_cache_key
from fileguard.core.config import settings
from fileguard.core.log import logger
from fileguard.core.paths import canonical_root
from fileguard.core.report_store import state_redis

__all__ = ("root_lock",)


def _lock_name(root: str) -> str:
    return f"fileguard:lock:{make_cache_key(canonical_root(root))}"


@asynccontextmanager
async def root_lock(root: str, redis: Redis | None = None) -> AsyncIterator[bool]:
    """
    Try to take the run lock for ``root`` without waiting.

    Yields whether the lock was acquired; a caller that gets False must not run.
    The lock expires on its own after RUN_LOCK_TIMEOUT_SECONDS so a crashed
    worker cannot block the root forever.
    """
    client = redis if redis is not None else state_redis()
    lock = client.lock(_lock_name(root), timeout=settings.RUN_LOCK_TIMEOUT_SECONDS)
    acquired = await lock.acquire(blocking=False)
    try:
        yield acquired
    finally:
        if acquired:
            try:
                await lock.release()
            except LockError as exc:
                logger.warning(f"Run lock for {root} was lost before release: {exc}")
        if redis is None:
            await client.aclose()
