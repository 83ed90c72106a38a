"""
Content checksums. Manifests carry MD5 hex digests over raw file bytes.
"""

from __future__ import annotations

import asyncio
import hashlib
import os

__all__ = (
    "CHUNK_SIZE",
    "file_checksum",
    "file_checksum_async",
)

CHUNK_SIZE = 1024 * 1024


def file_checksum(path: str | os.PathLike[str]) -> str:
    h = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


async def file_checksum_async(path: str | os.PathLike[str]) -> str:
    return await asyncio.to_thread(file_checksum, path)
