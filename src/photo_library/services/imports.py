"""Directory import tasks."""

import logging
import os
import stat
import threading
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol
from uuid import UUID

from photo_library.domain.errors import (
    ImportTaskNotFoundError,
    InvalidInputError,
    TaskStateError,
)
from photo_library.domain.imports import ImportProgress, ImportTask, ImportTaskStatus
from photo_library.services.ingestion import MIME_TYPES, IngestionService
from photo_library.services.jobs import JobRunner
from photo_library.services.thumbnails import ThumbnailService

SUPPORTED_EXTENSIONS = frozenset(MIME_TYPES)
BLACKLISTED_NAMES = frozenset({"Thumbs.db", ".DS_Store", "desktop.ini"})
DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024
DEFAULT_PAGE_SIZE = 50

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class ImportTaskRepository(Protocol):
    """Persistence interface for import tasks."""

    def create_task(self, source_path: str) -> ImportTask:
        """Persist a new queued task."""

    def get_task(self, task_id: UUID) -> ImportTask | None:
        """Return a task by id."""

    def list_tasks(self, limit: int, offset: int) -> list[ImportTask]:
        """Return tasks, newest first."""

    def mark_running(self, task_id: UUID, started_at: datetime) -> ImportTask | None:
        """Move a queued task to running; None if it was not queued."""

    def update_total(self, task_id: UUID, total_files: int) -> None:
        """Record the number of files selected for import."""

    def update_progress(self, task_id: UUID, progress: ImportProgress) -> None:
        """Record counters without touching the status."""

    def finish(
        self,
        task_id: UUID,
        status: ImportTaskStatus,
        completed_at: datetime,
        error_message: str | None = None,
    ) -> ImportTask | None:
        """Move a running task to a terminal status; None if it was not running."""

    def cancel(self, task_id: UUID, completed_at: datetime) -> ImportTask | None:
        """Cancel a queued or running task; None if it was already terminal."""


@dataclass
class _ImportRun:
    task_id: UUID
    files: Iterator[Path]
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    created: list[UUID] = field(default_factory=list)
    cancelled: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock)


@dataclass
class ImportService:
    """Imports every supported image under a directory as a tracked task."""

    tasks: ImportTaskRepository
    ingestion: IngestionService
    thumbnails: ThumbnailService
    jobs: JobRunner
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    workers: int = 1
    clock: Callable[[], datetime] = field(default=_utc_now)

    def create_task(self, source_path: str) -> ImportTask:
        """Validate the directory and persist a queued task."""
        if not source_path or not source_path.strip():
            raise InvalidInputError("sourcePath is required")
        directory = Path(source_path).expanduser()
        if not directory.is_dir():
            raise InvalidInputError(f"Not a directory: {source_path}")
        task = self.tasks.create_task(str(directory))
        _logger.info("Created import task %s for %s", task.id, directory)
        return task

    def submit(self, source_path: str) -> ImportTask:
        """Create a task and run it in the background."""
        task = self.create_task(source_path)
        self.jobs.submit(f"import[{task.id}]", lambda: self.run(task.id))
        return task

    def run(self, task_id: UUID) -> ImportTask:
        """Execute a queued task to completion and return its final record."""
        task = self.get_task(task_id)
        if task.status is ImportTaskStatus.CANCELLED:
            _logger.info("Import task %s was cancelled before it started", task_id)
            return task
        if task.status is not ImportTaskStatus.QUEUED:
            raise TaskStateError(f"Import task {task_id} is {task.status}")
        if self.tasks.mark_running(task_id, self.clock()) is None:
            current = self.get_task(task_id)
            if current.status is ImportTaskStatus.CANCELLED:
                _logger.info("Import task %s was cancelled before it started", task_id)
                return current
            raise TaskStateError(f"Import task {task_id} is no longer queued")

        try:
            files = self.scan(Path(task.source_path))
            self.tasks.update_total(task_id, len(files))
            _logger.info("Import task %s found %d files", task_id, len(files))
            run = _ImportRun(task_id=task_id, files=iter(files))
            self._process(run)
        except Exception as exc:
            _logger.exception(
                "Import task failed", extra={"task_id": str(task_id)}
            )
            self.tasks.finish(
                task_id, ImportTaskStatus.FAILED, self.clock(), error_message=str(exc)
            )
            raise

        if run.cancelled:
            _logger.info(
                "Import task %s cancelled after %d files", task_id, run.processed
            )
            return self.get_task(task_id)

        finished = self.tasks.finish(task_id, ImportTaskStatus.SUCCEEDED, self.clock())
        if finished is None:
            return self.get_task(task_id)
        _logger.info(
            "Import task %s finished: %d succeeded, %d failed",
            task_id,
            run.succeeded,
            run.failed,
        )
        self.thumbnails.schedule(run.created)
        return finished

    def cancel(self, task_id: UUID) -> ImportTask:
        """Request cancellation; terminal tasks are returned unchanged."""
        task = self.get_task(task_id)
        if task.status.is_terminal:
            return task
        cancelled = self.tasks.cancel(task_id, self.clock())
        if cancelled is None:
            return self.get_task(task_id)
        _logger.info("Cancelled import task %s", task_id)
        return cancelled

    def get_task(self, task_id: UUID) -> ImportTask:
        task = self.tasks.get_task(task_id)
        if task is None:
            raise ImportTaskNotFoundError(task_id)
        return task

    def list_tasks(
        self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> list[ImportTask]:
        """Return a page of tasks, newest first."""
        if limit <= 0 or offset < 0:
            raise InvalidInputError("limit must be positive and offset non-negative")
        return self.tasks.list_tasks(limit, offset)

    def scan(self, directory: Path) -> list[Path]:
        """Return importable files under ``directory`` in a stable order."""
        selected: list[Path] = []
        for root, dirnames, filenames in os.walk(directory, onerror=_log_walk_error):
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(root) / name
                if self._accepts(path):
                    selected.append(path)
        return selected

    def _accepts(self, path: Path) -> bool:
        if path.name in BLACKLISTED_NAMES:
            return False
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            return False
        try:
            info = path.stat()
        except OSError as exc:
            _logger.warning("Skipping %s: %s", path, exc)
            return False
        if not stat.S_ISREG(info.st_mode):
            return False
        if info.st_size > self.max_file_size:
            _logger.info("Skipping %s: %d bytes exceeds limit", path, info.st_size)
            return False
        return True

    def _process(self, run: _ImportRun) -> None:
        if self.workers <= 1:
            self._drain(run)
            return
        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="photo-library-import"
        ) as pool:
            futures = [pool.submit(self._drain, run) for _ in range(self.workers)]
        for future in futures:
            future.result()

    def _drain(self, run: _ImportRun) -> None:
        while True:
            if self._is_cancelled(run.task_id):
                with run.lock:
                    run.cancelled = True
                return
            with run.lock:
                if run.cancelled:
                    return
                path = next(run.files, None)
            if path is None:
                return
            try:
                self._import_one(run, path)
            except Exception:
                # Stop the other workers; the task is marked failed by run().
                with run.lock:
                    run.cancelled = True
                raise

    def _import_one(self, run: _ImportRun, path: Path) -> None:
        try:
            result = self.ingestion.ingest(path, path.name)
        except Exception as exc:
            _logger.warning(
                "Failed to import %s: %s",
                path,
                exc,
                extra={"task_id": str(run.task_id)},
            )
            result = None

        with run.lock:
            run.processed += 1
            if result is None:
                run.failed += 1
            else:
                run.succeeded += 1
                if result.created:
                    run.created.append(result.photo_id)
            self.tasks.update_progress(
                run.task_id,
                ImportProgress(
                    processed_files=run.processed,
                    success_count=run.succeeded,
                    failed_count=run.failed,
                ),
            )

    def _is_cancelled(self, task_id: UUID) -> bool:
        task = self.tasks.get_task(task_id)
        return task is not None and task.status is ImportTaskStatus.CANCELLED


def _log_walk_error(error: OSError) -> None:
    _logger.warning("Skipping unreadable directory %s: %s", error.filename, error)
