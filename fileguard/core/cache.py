"""
Caching
"""

# pyright: basic

from hashlib import blake2s

from aiocache import SimpleMemoryCache

from fileguard.core.config import settings

__all__ = ("make_cache_key", "manifest_cache")


def manifest_cache(ttl: int | None = None) -> SimpleMemoryCache:
    """Process-local cache for fetched manifests. Entries hold live ``Manifest`` objects."""
    return SimpleMemoryCache(
        namespace=f"{settings.PROJECT_NAME}:manifest",
        ttl=settings.MANIFEST_CACHE_TTL if ttl is None else ttl,
    )


def make_cache_key(*args: str) -> str:
    """Create a cache key by hashing the given arguments."""
    h = blake2s()
    for arg in args:
        h.update(arg.encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()
