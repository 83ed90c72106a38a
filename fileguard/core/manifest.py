"""
Reference manifest acquisition from the distribution's checksum API.
"""

from __future__ import annotations

import httpx
from aiocache import BaseCache
from pydantic import BaseModel, ValidationError

from fileguard.core.cache import make_cache_key, manifest_cache
from fileguard.core.config import settings
from fileguard.core.errors import ManifestUnavailable
from fileguard.core.log import logger
from fileguard.core.paths import to_relative
from fileguard.schema.records import Manifest

__all__ = ("ManifestProvider",)


class _ChecksumResponse(BaseModel):
    # the API answers {"checksums": false} for unknown version/locale pairs
    checksums: dict[str, str]


class ManifestProvider:
    """
    Fetches path → checksum manifests for an exact version/locale pair.

    A fetched manifest is served from a short-lived in-process cache; callers
    clear it at the end of a run so nothing outlives the run that fetched it.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str | None = None,
        cache: BaseCache | None = None,
    ):
        self.client = client
        self.url = url or settings.MANIFEST_URL
        self.cache = cache if cache is not None else manifest_cache()

    async def get_manifest(self, version: str, locale: str) -> Manifest:
        key = make_cache_key("manifest", version, locale)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        manifest = await self._fetch(version, locale)
        await self.cache.set(key, manifest)
        return manifest

    async def clear(self) -> None:
        await self.cache.clear()

    async def _fetch(self, version: str, locale: str) -> Manifest:
        try:
            response = await self.client.get(self.url, params={"version": version, "locale": locale})
        except httpx.HTTPError as exc:
            raise ManifestUnavailable(version, locale, f"{type(exc).__name__}: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise ManifestUnavailable(version, locale, f"HTTP {response.status_code}")

        try:
            parsed = _ChecksumResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise ManifestUnavailable(version, locale, "response is not a checksum mapping") from exc

        checksums: dict[str, str] = {}
        for path, digest in parsed.checksums.items():
            rel = to_relative(path)
            if rel:
                checksums[rel] = digest.strip().lower()

        if not checksums:
            raise ManifestUnavailable(version, locale, "manifest is empty")

        logger.info(f"Fetched manifest for {version}/{locale}: {len(checksums)} entries")
        return Manifest(version=version, locale=locale, checksums=checksums)
