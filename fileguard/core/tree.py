"""
File tree providers. The scanner only talks to a ``FileTree``, so traversal
rules can be exercised without touching the disk.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol

from fileguard.core.checksum import file_checksum
from fileguard.core.errors import ScanIOError
from fileguard.core.paths import canonical_root, is_within, to_relative

__all__ = (
    "EntryKind",
    "FileTree",
    "LocalFileTree",
    "TreeEntry",
)


class EntryKind(StrEnum):
    directory = "directory"
    file = "file"
    other = "other"
    unreadable = "unreadable"


@dataclass(frozen=True)
class TreeEntry:
    name: str
    relative_path: str
    absolute_path: str
    kind: EntryKind
    size: int = 0
    mtime: float = 0.0
    identity: tuple[int, int] | None = None
    inside_root: bool = True
    error: str | None = None

    @property
    def modified_at(self) -> datetime:
        return datetime.fromtimestamp(self.mtime, UTC)


class FileTree(Protocol):
    @property
    def root(self) -> str: ...

    def root_identity(self) -> tuple[int, int] | None: ...

    def list_dir(self, relative_dir: str) -> list[TreeEntry]:
        """List a directory. Raises ScanIOError when the directory itself cannot be read."""
        ...

    def stat_file(self, relative_path: str) -> TreeEntry | None:
        """Describe a single path, or None when it does not exist."""
        ...

    def checksum(self, relative_path: str) -> str: ...


class LocalFileTree:
    """``FileTree`` over the local filesystem, following symlinks but never leaving ``root``."""

    def __init__(self, root: str | os.PathLike[str]):
        self._root = canonical_root(root)

    @property
    def root(self) -> str:
        return self._root

    def root_identity(self) -> tuple[int, int] | None:
        try:
            st = os.stat(self._root)
        except OSError:
            return None
        return st.st_dev, st.st_ino

    def _absolute(self, relative_path: str) -> str:
        rel = to_relative(relative_path)
        return os.path.join(self._root, *rel.split("/")) if rel else self._root

    def _entry(self, name: str, relative_path: str, absolute_path: str) -> TreeEntry:
        try:
            st = os.stat(absolute_path)
        except OSError as exc:
            return TreeEntry(
                name=name,
                relative_path=relative_path,
                absolute_path=absolute_path,
                kind=EntryKind.unreadable,
                error=f"{type(exc).__name__}: {exc.strerror or exc}",
            )

        inside = is_within(os.path.realpath(absolute_path), self._root)
        if stat.S_ISDIR(st.st_mode):
            kind = EntryKind.directory
        elif stat.S_ISREG(st.st_mode):
            kind = EntryKind.file
        else:
            kind = EntryKind.other

        return TreeEntry(
            name=name,
            relative_path=relative_path,
            absolute_path=absolute_path,
            kind=kind,
            size=st.st_size,
            mtime=st.st_mtime,
            identity=(st.st_dev, st.st_ino),
            inside_root=inside,
        )

    def list_dir(self, relative_dir: str) -> list[TreeEntry]:
        base = to_relative(relative_dir)
        entries: list[TreeEntry] = []
        try:
            with os.scandir(self._absolute(base)) as it:
                for dirent in it:
                    rel = f"{base}/{dirent.name}" if base else dirent.name
                    entries.append(self._entry(dirent.name, rel, dirent.path))
        except OSError as exc:
            raise ScanIOError(f"{base or '.'}: {exc.strerror or exc}") from exc
        return entries

    def stat_file(self, relative_path: str) -> TreeEntry | None:
        rel = to_relative(relative_path)
        absolute = self._absolute(rel)
        if not os.path.lexists(absolute):
            return None
        return self._entry(os.path.basename(absolute), rel, absolute)

    def checksum(self, relative_path: str) -> str:
        return file_checksum(self._absolute(relative_path))
