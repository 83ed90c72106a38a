"""Shared fixtures: environment, file trees, in-memory report sink."""
from __future__ import annotations

import hashlib
import os
from pathlib import Path

import pytest

# Settings are read at import time; configure before any fileguard import.
os.environ.setdefault("FG_APP_AUTH_KEY", "test-token")
os.environ["FG_MANIFEST_URL"] = "https://api.test/core/checksums/1.0/"
os.environ["FG_RESTORE_URL_TEMPLATE"] = "https://dist.test/{version}/{path}"
os.environ["FG_NOTIFY_ENABLED"] = "false"
os.environ["FG_HTTP_TIMEOUT_SECONDS"] = "5"

from fileguard.core.errors import ScanIOError  # noqa: E402
from fileguard.core.paths import to_relative  # noqa: E402
from fileguard.core.tree import EntryKind, TreeEntry  # noqa: E402
from fileguard.schema.report import Report  # noqa: E402

MANIFEST_URL = os.environ["FG_MANIFEST_URL"]
VERSION = "6.5.5"
LOCALE = "en_US"


def md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def write_tree(root: Path, files: dict[str, bytes]) -> Path:
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    return root


def dist_url(path: str, version: str = VERSION) -> str:
    return f"https://dist.test/{version}/{path}"


class MemoryFileTree:
    """In-memory FileTree: keys are root-relative file paths."""

    def __init__(
        self,
        files: dict[str, bytes],
        root: str = "/site",
        unreadable_dirs: tuple[str, ...] = (),
        unreadable_files: tuple[str, ...] = (),
        outside: tuple[str, ...] = (),
    ):
        self.files = {to_relative(k): v for k, v in files.items()}
        self._root = root
        self.unreadable_dirs = set(unreadable_dirs)
        self.unreadable_files = set(unreadable_files)
        self.outside = set(outside)
        self.listed: list[str] = []

    @property
    def root(self) -> str:
        return self._root

    def root_identity(self):
        return None

    def _entry(self, rel: str, kind: EntryKind) -> TreeEntry:
        if rel in self.unreadable_files:
            return TreeEntry(
                name=rel.rsplit("/", 1)[-1],
                relative_path=rel,
                absolute_path=f"{self._root}/{rel}",
                kind=EntryKind.unreadable,
                error="PermissionError: Permission denied",
            )
        return TreeEntry(
            name=rel.rsplit("/", 1)[-1],
            relative_path=rel,
            absolute_path=f"{self._root}/{rel}",
            kind=kind,
            size=len(self.files.get(rel, b"")),
            mtime=1_700_000_000.0,
            inside_root=rel not in self.outside,
        )

    def list_dir(self, relative_dir: str) -> list[TreeEntry]:
        base = to_relative(relative_dir)
        self.listed.append(base)
        if base in self.unreadable_dirs:
            raise ScanIOError(f"{base}: Permission denied")
        prefix = f"{base}/" if base else ""
        children: dict[str, EntryKind] = {}
        for rel in self.files:
            if not rel.startswith(prefix):
                continue
            head, _, rest = rel[len(prefix):].partition("/")
            children[prefix + head] = EntryKind.directory if rest else EntryKind.file
        return [self._entry(rel, kind) for rel, kind in children.items()]

    def stat_file(self, relative_path: str) -> TreeEntry | None:
        rel = to_relative(relative_path)
        if rel not in self.files:
            return None
        return self._entry(rel, EntryKind.file)

    def checksum(self, relative_path: str) -> str:
        return md5(self.files[to_relative(relative_path)])


class MemoryReportSink:
    def __init__(self):
        self.reports: dict[str, Report] = {}
        self.saves = 0

    async def save(self, report: Report) -> None:
        self.saves += 1
        self.reports[report.root] = report

    async def load(self, root: str) -> Report | None:
        return self.reports.get(os.path.realpath(root))


@pytest.fixture
def sink() -> MemoryReportSink:
    return MemoryReportSink()


@pytest.fixture
def site(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
async def _clear_manifest_cache():
    from fileguard.core.cache import manifest_cache

    await manifest_cache().clear()
    yield
