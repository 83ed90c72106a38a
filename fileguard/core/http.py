"""
Shared HTTP client factory for manifest and content fetches.
"""

import httpx

from fileguard.core.config import settings

__all__ = ("http_client",)


def http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Every remote call goes through a client with a finite timeout."""
    return httpx.AsyncClient(
        timeout=settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout,
        follow_redirects=True,
        headers={"User-Agent": f"{settings.PROJECT_NAME}/{settings.PROJECT_VERSION}"},
    )
