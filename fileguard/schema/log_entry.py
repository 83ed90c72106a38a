"""
Log entry schema definition.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class LogEntry(BaseModel):
    """One JSON log line. Run context is present only for lines emitted during a check."""

    model_config = ConfigDict(from_attributes=True)

    asctime: datetime = Field(..., description="Timestamp of the log entry")
    levelname: str = Field(..., description="Log level name")
    name: str = Field(..., description="Emitting module")
    message: str = Field(..., description="Log message content")
    correlation_id: str | None = Field(default=None, description="HTTP request correlation id")
    run_id: str | None = Field(default=None, description="Integrity check run id")
    check_root: str | None = Field(default=None, description="Root being checked")
    exception: str | None = Field(default=None, description="Exception type and message")

    @field_serializer("asctime")
    def serialize_asctime(self, asctime: datetime) -> str:
        return asctime.strftime(r"%Y-%m-%d %H:%M:%S,%f")[:-3]
