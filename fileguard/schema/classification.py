"""
Integrity classification models.
"""

from enum import StrEnum

from pydantic import BaseModel

from fileguard.schema.records import FileRecord


class Classification(StrEnum):
    intact = "intact"
    modified = "modified"
    unknown = "unknown"


class ClassificationResult(BaseModel):
    """Outcome of comparing one file against the manifest."""

    record: FileRecord
    classification: Classification
    expected_checksum: str | None = None
    actual_checksum: str | None = None

    @property
    def path(self) -> str:
        return self.record.relative_path
