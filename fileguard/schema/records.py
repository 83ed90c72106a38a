"""
Scan-time models: manifest, file records, scan issues.
"""

from collections.abc import Iterator
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Manifest(BaseModel):
    """Reference checksums for one distribution version/locale, keyed by root-relative path."""

    model_config = ConfigDict(frozen=True)

    version: str
    locale: str
    checksums: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def empty(cls, version: str, locale: str) -> "Manifest":
        return cls(version=version, locale=locale)

    def expected(self, path: str) -> str | None:
        return self.checksums.get(path)

    def paths(self) -> Iterator[str]:
        return iter(self.checksums)

    def __contains__(self, path: object) -> bool:
        return path in self.checksums

    def __len__(self) -> int:
        return len(self.checksums)


class FileRecord(BaseModel):
    """A regular file found under the scanned root."""

    relative_path: str
    absolute_path: str
    size: int
    modified_at: datetime
    checksum: str | None = Field(default=None, description="Computed on first comparison")


class ScanIssue(BaseModel):
    """A directory entry that could not be read; the scan carries on without it."""

    path: str
    reason: str
