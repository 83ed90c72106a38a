"""
Unknown-file listing, preview and deletion models.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class UnknownFile(BaseModel):
    path: str
    size: int
    size_display: str
    modified_at: datetime
    mime_type: str


class FilePreview(BaseModel):
    path: str
    size: int
    size_display: str
    modified_at: datetime
    mime_type: str
    is_image: bool = False
    is_binary: bool = False
    too_large: bool = False
    content: str | None = None


class DeleteRequest(BaseModel):
    paths: list[str] = Field(default_factory=list)
    all: bool = Field(default=False, description="Delete every currently unknown file")


class DeleteResult(BaseModel):
    deleted: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict, description="Failure reason per failed path")
