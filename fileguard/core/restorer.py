"""
Restoration of modified files from the authoritative distribution source.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path
from urllib.parse import quote

import httpx

from fileguard.core.checksum import file_checksum, file_checksum_async
from fileguard.core.config import settings
from fileguard.core.errors import FetchFailed, PathTraversalRejected, VerificationFailed
from fileguard.core.log import logger
from fileguard.core.paths import entry_within
from fileguard.schema.restoration import RestorationOutcome, RestorationStatus

__all__ = ("Restorer", "atomic_replace")


def atomic_replace(target: Path, content: bytes) -> None:
    """
    Write ``content`` next to ``target`` and rename it over the target.

    The temporary file lives in the target's directory so the final rename
    stays on one filesystem. On any failure the temporary file is removed and
    the target is left as it was.
    """
    fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".fileguard")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if target.exists():
            shutil.copymode(target, tmp_path)
        os.replace(tmp_path, target)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


class Restorer:
    """
    Replaces a locally modified file with the distribution's copy and checks
    the result against the manifest checksum.

    One attempt per call: failures are returned as outcomes and retried, if at
    all, by the next scheduled run.
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        version: str,
        client: httpx.AsyncClient,
        url_template: str | None = None,
    ):
        self.root = os.fspath(root)
        self.version = version
        self.client = client
        self.url_template = url_template or settings.RESTORE_URL_TEMPLATE

    def source_url(self, path: str) -> str:
        return self.url_template.format(version=quote(self.version, safe=""), path=quote(path, safe="/"))

    async def _fetch(self, path: str) -> bytes:
        url = self.source_url(path)
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as exc:
            raise FetchFailed(f"{type(exc).__name__}: {exc}") from exc
        if response.status_code != httpx.codes.OK:
            raise FetchFailed(f"HTTP {response.status_code} from {url}")
        return response.content

    @staticmethod
    def _verify(target: Path, expected_checksum: str) -> str:
        try:
            actual = file_checksum(target)
        except OSError as exc:
            raise VerificationFailed(f"cannot read restored file: {exc}") from exc
        if actual.lower() != expected_checksum.lower():
            raise VerificationFailed(f"restored checksum {actual} does not match manifest {expected_checksum}")
        return actual

    async def restore(self, path: str, expected_checksum: str) -> RestorationOutcome:
        try:
            target = entry_within(self.root, path)
        except PathTraversalRejected as exc:
            logger.warning(f"Restore: refusing {path}: {exc}")
            return RestorationOutcome(
                path=path,
                status=RestorationStatus.fetch_failed,
                reason=str(exc),
                expected_checksum=expected_checksum,
            )

        # a symlinked core file is replaced by a regular file, never written through
        if target.is_file() and not target.is_symlink():
            current = await file_checksum_async(target)
            if current.lower() == expected_checksum.lower():
                return RestorationOutcome(
                    path=path,
                    status=RestorationStatus.skipped_not_modified,
                    expected_checksum=expected_checksum,
                    actual_checksum=current,
                )

        try:
            content = await self._fetch(path)
        except FetchFailed as exc:
            logger.warning(f"Restore: fetch failed for {path}: {exc}")
            return RestorationOutcome(
                path=path,
                status=RestorationStatus.fetch_failed,
                reason=str(exc),
                expected_checksum=expected_checksum,
            )

        try:
            await asyncio.to_thread(atomic_replace, target, content)
        except OSError as exc:
            logger.error(f"Restore: could not write {path}: {exc}")
            return RestorationOutcome(
                path=path,
                status=RestorationStatus.write_failed,
                reason=f"{type(exc).__name__}: {exc}",
                expected_checksum=expected_checksum,
            )

        try:
            actual = await asyncio.to_thread(self._verify, target, expected_checksum)
        except VerificationFailed as exc:
            logger.error(f"Restore: {path} needs manual attention, {exc}")
            return RestorationOutcome(
                path=path,
                status=RestorationStatus.verification_failed,
                reason=str(exc),
                expected_checksum=expected_checksum,
            )

        logger.info(f"Restore: {path} restored from distribution {self.version}")
        return RestorationOutcome(
            path=path,
            status=RestorationStatus.restored,
            expected_checksum=expected_checksum,
            actual_checksum=actual,
        )
