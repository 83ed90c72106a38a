"""
File operations for the presentation layer: listing views, safe previews and
deletion of unknown files.
"""

from __future__ import annotations

import asyncio
import mimetypes
import os
from collections.abc import Iterable
from datetime import UTC, datetime

import aiofiles

from fileguard.core.config import settings
from fileguard.core.errors import DeletionFailed, PathTraversalRejected
from fileguard.core.log import logger
from fileguard.core.paths import entry_within, resolve_within, to_relative
from fileguard.schema.files import DeleteResult, FilePreview, UnknownFile
from fileguard.schema.records import FileRecord

__all__ = (
    "delete_files",
    "format_size",
    "guess_mime_type",
    "read_preview",
    "unknown_file_view",
)

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")
_BINARY_SNIFF_BYTES = 8192
_TEXT_MIME_PREFIXES = ("text/",)
_TEXT_MIME_TYPES = {
    "application/javascript",
    "application/json",
    "application/xml",
    "application/x-httpd-php",
    "application/x-php",
    "application/x-sh",
    "application/x-yaml",
    "application/yaml",
}

mimetypes.add_type("text/x-php", ".php")


def format_size(size: int) -> str:
    """Human-readable byte count: ``512 B``, ``1.5 KB``, ``3 MB``."""
    value = float(size)
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            break
        value /= 1024
    if unit == "B":
        return f"{int(value)} B"
    return f"{value:.1f}".rstrip("0").rstrip(".") + f" {unit}"


def guess_mime_type(path: str) -> str:
    mime, _ = mimetypes.guess_type(path, strict=False)
    return mime or "application/octet-stream"


def unknown_file_view(record: FileRecord) -> UnknownFile:
    return UnknownFile(
        path=record.relative_path,
        size=record.size,
        size_display=format_size(record.size),
        modified_at=record.modified_at,
        mime_type=guess_mime_type(record.relative_path),
    )


def _is_textual(mime: str) -> bool:
    return mime.startswith(_TEXT_MIME_PREFIXES) or mime in _TEXT_MIME_TYPES


async def read_preview(root: str, path: str, max_bytes: int | None = None) -> FilePreview:
    """
    Build a display-safe preview of a file under ``root``.

    Images and binaries carry no content; text over ``max_bytes`` is refused.
    Raises PathTraversalRejected for paths outside the root and
    FileNotFoundError when the file is missing.
    """
    limit = max_bytes if max_bytes is not None else settings.PREVIEW_MAX_BYTES
    target = resolve_within(root, path)
    if not target.is_file():
        raise FileNotFoundError(path)

    st = await asyncio.to_thread(os.stat, target)
    mime = guess_mime_type(target.name)
    preview = FilePreview(
        path=to_relative(path),
        size=st.st_size,
        size_display=format_size(st.st_size),
        modified_at=datetime.fromtimestamp(st.st_mtime, UTC),
        mime_type=mime,
    )

    if mime.startswith("image/"):
        preview.is_image = True
        return preview

    async with aiofiles.open(target, "rb") as f:
        head = await f.read(_BINARY_SNIFF_BYTES)
        if b"\x00" in head or (not _is_textual(mime) and mime != "application/octet-stream"):
            preview.is_binary = True
            return preview
        if st.st_size > limit:
            preview.too_large = True
            return preview
        data = head + await f.read()

    try:
        preview.content = data.decode("utf-8")
    except UnicodeDecodeError:
        preview.content = data.decode("latin-1")
    return preview


def _delete_one(root: str, path: str) -> None:
    try:
        target = entry_within(root, path)
    except PathTraversalRejected as exc:
        raise DeletionFailed(str(exc)) from exc

    # a symlink is removed as a link; its target stays
    if not (target.is_symlink() or target.is_file()):
        raise DeletionFailed("not an existing regular file")
    try:
        os.remove(target)
    except OSError as exc:
        raise DeletionFailed(f"{type(exc).__name__}: {exc.strerror or exc}") from exc


async def delete_files(root: str, paths: Iterable[str]) -> DeleteResult:
    """
    Delete each path relative to ``root``.

    Every path is checked on its own: anything that canonicalizes outside the
    root, is missing, or cannot be removed lands in ``failed``; the rest of the
    batch is still processed.
    """
    result = DeleteResult()
    for path in paths:
        try:
            await asyncio.to_thread(_delete_one, root, path)
        except DeletionFailed as exc:
            logger.warning(f"Delete: {path} not deleted: {exc}")
            result.failed.append(path)
            result.errors[path] = str(exc)
            continue
        logger.info(f"Delete: removed {path} from {root}")
        result.deleted.append(path)
    return result
