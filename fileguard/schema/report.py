"""
Integrity check report models.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from fileguard.schema.records import ScanIssue
from fileguard.schema.restoration import RestorationStatus


class RestorationFailure(BaseModel):
    path: str
    status: RestorationStatus
    reason: str


class Report(BaseModel):
    """
    Result of one integrity check run. Superseded, never merged, by the next run.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str | None = Field(default=None, description="Identifier shared by the run's log lines")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    root: str
    version: str
    locale: str
    modified_files: list[str] = Field(default_factory=list)
    unknown_files: list[str] = Field(default_factory=list)
    restored_files: list[str] = Field(default_factory=list)
    restoration_failures: list[RestorationFailure] = Field(default_factory=list)
    manifest_error: str | None = None
    scan_errors: list[ScanIssue] = Field(default_factory=list)
    timed_out: bool = False
    duration_seconds: float = 0.0

    @property
    def has_findings(self) -> bool:
        return bool(
            self.modified_files or self.unknown_files or self.restored_files or self.restoration_failures
        )

    @property
    def has_errors(self) -> bool:
        return bool(self.manifest_error or self.scan_errors or self.restoration_failures or self.timed_out)
