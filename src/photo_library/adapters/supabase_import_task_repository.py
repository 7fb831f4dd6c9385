"""Supabase-backed import task repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from photo_library.domain.imports import ImportProgress, ImportTask, ImportTaskStatus
from photo_library.services.imports import ImportTaskRepository

_CANCELLABLE_STATUSES = [ImportTaskStatus.QUEUED.value, ImportTaskStatus.RUNNING.value]


@dataclass
class SupabaseImportTaskRepository(ImportTaskRepository):
    """Supabase implementation for import tasks.

    Status transitions are conditional updates so a concurrent cancellation
    is never overwritten by the worker.
    """

    client: Client

    def create_task(self, source_path: str) -> ImportTask:
        """Create a queued task row and return it."""
        response = (
            self.client.table("import_tasks")
            .insert(
                {
                    "source_path": source_path,
                    "status": ImportTaskStatus.QUEUED.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create import task")
        return _parse_task(response.data[0])

    def get_task(self, task_id: UUID) -> ImportTask | None:
        """Return a task by id, if present."""
        response = (
            self.client.table("import_tasks")
            .select("*")
            .eq("id", str(task_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_task(response.data[0])

    def list_tasks(self, limit: int, offset: int) -> list[ImportTask]:
        """Return tasks, newest first."""
        response = (
            self.client.table("import_tasks")
            .select("*")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_task(row) for row in response.data or []]

    def mark_running(self, task_id: UUID, started_at: datetime) -> ImportTask | None:
        """Start a queued task."""
        return self._transition(
            task_id,
            {"status": ImportTaskStatus.RUNNING.value, "started_at": started_at},
            expected=[ImportTaskStatus.QUEUED.value],
        )

    def update_total(self, task_id: UUID, total_files: int) -> None:
        """Record the number of files selected for import."""
        self._update(task_id, {"total_files": total_files})

    def update_progress(self, task_id: UUID, progress: ImportProgress) -> None:
        """Record counters without touching the status."""
        self._update(
            task_id,
            {
                "processed_files": progress.processed_files,
                "success_count": progress.success_count,
                "failed_count": progress.failed_count,
            },
        )

    def finish(
        self,
        task_id: UUID,
        status: ImportTaskStatus,
        completed_at: datetime,
        error_message: str | None = None,
    ) -> ImportTask | None:
        """Move a running task to a terminal status."""
        return self._transition(
            task_id,
            {
                "status": status.value,
                "completed_at": completed_at,
                "error_message": error_message,
            },
            expected=[ImportTaskStatus.RUNNING.value],
        )

    def cancel(self, task_id: UUID, completed_at: datetime) -> ImportTask | None:
        """Cancel a queued or running task."""
        return self._transition(
            task_id,
            {
                "status": ImportTaskStatus.CANCELLED.value,
                "completed_at": completed_at,
            },
            expected=_CANCELLABLE_STATUSES,
        )

    def _update(self, task_id: UUID, payload: dict[str, object]) -> None:
        self.client.table("import_tasks").update(
            {**payload, "updated_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(task_id)).execute()

    def _transition(
        self, task_id: UUID, payload: dict[str, object], expected: list[str]
    ) -> ImportTask | None:
        serialized = {
            key: value.isoformat() if isinstance(value, datetime) else value
            for key, value in payload.items()
        }
        response = (
            self.client.table("import_tasks")
            .update({**serialized, "updated_at": datetime.now(tz=UTC).isoformat()})
            .eq("id", str(task_id))
            .in_("status", expected)
            .execute()
        )
        if not response.data:
            return None
        return _parse_task(response.data[0])


def _parse_datetime(value: object) -> datetime | None:
    return datetime.fromisoformat(value) if isinstance(value, str) else None


def _parse_task(row: dict[str, object]) -> ImportTask:
    return ImportTask(
        id=UUID(str(row["id"])),
        source_path=str(row["source_path"]),
        status=ImportTaskStatus(row["status"]),
        total_files=int(row.get("total_files") or 0),  # type: ignore[arg-type]
        processed_files=int(row.get("processed_files") or 0),  # type: ignore[arg-type]
        success_count=int(row.get("success_count") or 0),  # type: ignore[arg-type]
        failed_count=int(row.get("failed_count") or 0),  # type: ignore[arg-type]
        error_message=row.get("error_message"),  # type: ignore[arg-type]
        started_at=_parse_datetime(row.get("started_at")),
        completed_at=_parse_datetime(row.get("completed_at")),
        created_at=_parse_datetime(row.get("created_at")),
    )
