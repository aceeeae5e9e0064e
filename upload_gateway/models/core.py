"""Core models for upload handling and HTTP responses."""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

UPLOAD_SUCCESS_MESSAGE = "File uploaded to Gemini Files API"
UPLOAD_FAILURE_MESSAGE = "File upload failed"


class StorageMode(StrEnum):
    """Where an uploaded file is buffered while it is relayed."""

    MEMORY = "memory"
    DISK = "disk"


@dataclass(slots=True)
class BufferedFile:
    """An uploaded file held either in memory or on disk, never both."""

    original_name: str
    mime_type: str
    size: int
    storage_mode: StorageMode
    content: bytes | None = None
    path: Path | None = None

    def __post_init__(self) -> None:
        if (self.content is None) == (self.path is None):
            raise ValueError("BufferedFile needs exactly one of content or path")

    @property
    def on_disk(self) -> bool:
        return self.path is not None


@dataclass(slots=True)
class UploadResult:
    metadata: dict[str, Any]
    storage_mode: StorageMode
    file_size: int
    original_name: str = field(default="")


class UploadResponse(BaseModel):
    """Successful relay response."""

    message: str = UPLOAD_SUCCESS_MESSAGE
    metadata: dict[str, Any]


class ErrorResponse(BaseModel):
    """Client error response."""

    error: str


class UploadFailureResponse(BaseModel):
    """Server-side relay failure response."""

    error: str = UPLOAD_FAILURE_MESSAGE
    details: str
    storage_type: StorageMode = Field(serialization_alias="storageType")
