"""
Classification of files against a manifest.
"""

from __future__ import annotations

from collections.abc import Callable

from fileguard.core.checksum import file_checksum
from fileguard.core.exclusions import ExclusionSet, is_excluded
from fileguard.schema.classification import Classification, ClassificationResult
from fileguard.schema.records import FileRecord, Manifest

__all__ = ("IntegrityComparator", "record_checksum")

Hasher = Callable[[FileRecord], str]


def record_checksum(record: FileRecord) -> str:
    return file_checksum(record.absolute_path)


class IntegrityComparator:
    """
    Pure classification of (path, content, manifest, exclusions).

    Manifest paths are compared by exact checksum equality; modification time
    plays no part. Paths outside the manifest are unknown unless an exclusion
    covers them.
    """

    def __init__(self, hasher: Hasher = record_checksum):
        self.hasher = hasher

    def checksum(self, record: FileRecord) -> str:
        if record.checksum is None:
            record.checksum = self.hasher(record)
        return record.checksum

    def classify(
        self,
        record: FileRecord,
        manifest: Manifest,
        exclusions: ExclusionSet,
    ) -> ClassificationResult:
        expected = manifest.expected(record.relative_path)
        if expected is not None:
            actual = self.checksum(record)
            if actual.lower() == expected.lower():
                return ClassificationResult(
                    record=record,
                    classification=Classification.intact,
                    expected_checksum=expected,
                    actual_checksum=actual,
                )
            return ClassificationResult(
                record=record,
                classification=Classification.modified,
                expected_checksum=expected,
                actual_checksum=actual,
            )

        if is_excluded(record.relative_path, exclusions):
            return ClassificationResult(record=record, classification=Classification.intact)

        return ClassificationResult(record=record, classification=Classification.unknown)
