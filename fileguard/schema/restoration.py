"""
Restoration outcome models.
"""

from enum import StrEnum

from pydantic import BaseModel


class RestorationStatus(StrEnum):
    restored = "restored"
    fetch_failed = "fetch_failed"
    write_failed = "write_failed"
    verification_failed = "verification_failed"
    skipped_not_modified = "skipped_not_modified"
    timed_out = "timed_out"


class RestorationOutcome(BaseModel):
    path: str
    status: RestorationStatus
    reason: str | None = None
    expected_checksum: str | None = None
    actual_checksum: str | None = None

    @property
    def failed(self) -> bool:
        return self.status in (
            RestorationStatus.fetch_failed,
            RestorationStatus.write_failed,
            RestorationStatus.verification_failed,
            RestorationStatus.timed_out,
        )
