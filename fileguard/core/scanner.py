"""
Depth-first traversal of a root directory with exclusion pruning.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from fileguard.core.errors import ScanIOError
from fileguard.core.exclusions import ExclusionSet, is_excluded
from fileguard.core.log import logger
from fileguard.core.tree import EntryKind, FileTree, TreeEntry
from fileguard.schema.records import FileRecord, ScanIssue

__all__ = ("TreeScanner", "record_from_entry")


def record_from_entry(entry: TreeEntry) -> FileRecord:
    return FileRecord(
        relative_path=entry.relative_path,
        absolute_path=entry.absolute_path,
        size=entry.size,
        modified_at=entry.modified_at,
    )


class TreeScanner:
    """
    Walks a ``FileTree`` and yields a ``FileRecord`` per regular file.

    Each call to ``scan`` re-walks the tree from scratch. Unreadable entries are
    collected in ``issues`` and skipped. Symlinked directories are followed
    once; a directory already visited (same device and inode) is not entered
    again, and anything resolving outside the root is ignored.
    """

    def __init__(self, tree: FileTree, on_issue: Callable[[ScanIssue], None] | None = None):
        self.tree = tree
        self.on_issue = on_issue
        self.issues: list[ScanIssue] = []

    def _skip(self, path: str, reason: str) -> None:
        logger.warning(f"Scan: skipping unreadable entry {path}: {reason}")
        issue = ScanIssue(path=path, reason=reason)
        self.issues.append(issue)
        if self.on_issue is not None:
            self.on_issue(issue)

    def scan(self, exclusions: ExclusionSet) -> Iterator[FileRecord]:
        self.issues = []
        visited: set[tuple[int, int]] = set()
        root_identity = self.tree.root_identity()
        if root_identity is not None:
            visited.add(root_identity)

        stack: list[str] = [""]
        while stack:
            current = stack.pop()
            try:
                entries = self.tree.list_dir(current)
            except ScanIOError as exc:
                self._skip(current or ".", str(exc))
                continue

            subdirs: list[str] = []
            for entry in sorted(entries, key=lambda e: e.name):
                if is_excluded(entry.relative_path, exclusions):
                    continue

                if entry.kind is EntryKind.unreadable:
                    self._skip(entry.relative_path, entry.error or "unreadable")
                    continue

                if not entry.inside_root:
                    logger.debug(f"Scan: ignoring {entry.relative_path}, resolves outside {self.tree.root}")
                    continue

                if entry.kind is EntryKind.directory:
                    if entry.identity is not None:
                        if entry.identity in visited:
                            logger.debug(f"Scan: directory cycle at {entry.relative_path}")
                            continue
                        visited.add(entry.identity)
                    subdirs.append(entry.relative_path)
                elif entry.kind is EntryKind.file:
                    yield record_from_entry(entry)

            # reversed so the lexically first subdirectory is walked next
            stack.extend(reversed(subdirs))
