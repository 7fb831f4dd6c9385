"""Domain models for directory import tasks."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class ImportTaskStatus(StrEnum):
    """Lifecycle states of an import task."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Return true for states that can no longer change."""
        return self in _TERMINAL


_TERMINAL = {
    ImportTaskStatus.SUCCEEDED,
    ImportTaskStatus.FAILED,
    ImportTaskStatus.CANCELLED,
}


@dataclass(frozen=True)
class ImportTask:
    """Represents one directory import run."""

    id: UUID
    source_path: str
    status: ImportTaskStatus
    total_files: int = 0
    processed_files: int = 0
    success_count: int = 0
    failed_count: int = 0
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ImportProgress:
    """Counters written after each processed file."""

    processed_files: int
    success_count: int
    failed_count: int
