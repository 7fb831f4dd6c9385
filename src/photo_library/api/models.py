"""Pydantic request and response models for the HTTP API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from photo_library.domain.imports import ImportTask, ImportTaskStatus


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InitUploadRequest(CamelModel):
    """Upload session request."""

    file_name: str
    file_size: int
    file_hash: str
    mime_type: str | None = None


class UploadTicketResponse(CamelModel):
    """Opened upload session."""

    upload_id: UUID
    chunk_size: int
    total_chunks: int


class AlreadyExistsResponse(CamelModel):
    """Returned instead of a session when the content is already stored."""

    exists: bool = True
    photo_id: UUID
    message: str


class UploadProgressResponse(CamelModel):
    uploaded_chunks: int
    total_chunks: int


class CompleteUploadResponse(CamelModel):
    photo_id: UUID


class MessageResponse(CamelModel):
    message: str


class CreateImportRequest(CamelModel):
    """Directory import request."""

    source_path: str


class ImportTaskResponse(CamelModel):
    """Import task record."""

    id: UUID
    source_path: str
    status: ImportTaskStatus
    total_files: int
    processed_files: int
    success_count: int
    failed_count: int
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_task(cls, task: ImportTask) -> "ImportTaskResponse":
        """Build a response from the domain record."""
        return cls(
            id=task.id,
            source_path=task.source_path,
            status=task.status,
            total_files=task.total_files,
            processed_files=task.processed_files,
            success_count=task.success_count,
            failed_count=task.failed_count,
            error_message=task.error_message,
            started_at=task.started_at,
            completed_at=task.completed_at,
            created_at=task.created_at,
        )


class GenerateThumbnailsResponse(CamelModel):
    message: str
    sizes: list[str]
