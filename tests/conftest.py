"""Shared test fixtures."""

import random
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from PIL import Image

from photo_library.adapters.pillow_metadata import PillowMetadataExtractor
from photo_library.adapters.pillow_thumbnailer import PillowThumbnailer
from photo_library.config import Settings
from photo_library.containers import AppContainer
from photo_library.domain.errors import ConflictError
from photo_library.domain.imports import ImportProgress, ImportTask, ImportTaskStatus
from photo_library.domain.photos import Photo, PhotoCreate
from photo_library.services.catalog import PhotoCatalog
from photo_library.services.imports import ImportService, ImportTaskRepository
from photo_library.services.ingestion import IngestionService
from photo_library.services.jobs import JobRunner
from photo_library.services.storage import ContentStore
from photo_library.services.thumbnails import ThumbnailService
from photo_library.services.uploads import UploadService

FIXED_NOW = datetime(2024, 5, 17, 9, 30, tzinfo=UTC)


def write_image(
    path: Path,
    size: tuple[int, int] = (64, 48),
    seed: int = 0,
    image_format: str = "JPEG",
) -> bytes:
    """Write a noisy test image and return its bytes."""
    width, height = size
    pixels = random.Random(seed).randbytes(width * height * 3)
    image = Image.frombytes("RGB", size, pixels)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format=image_format)
    return path.read_bytes()


@dataclass
class InMemoryPhotoCatalog(PhotoCatalog):
    """In-memory catalog enforcing one live record per hash."""

    photos: dict[UUID, Photo] = field(default_factory=dict)
    create_calls: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)

    def find_by_hash(self, file_hash: str) -> Photo | None:
        with self.lock:
            for photo in self.photos.values():
                if photo.file_hash == file_hash and photo.deleted_at is None:
                    return photo
        return None

    def get_photo(self, photo_id: UUID) -> Photo | None:
        photo = self.photos.get(photo_id)
        if photo is None or photo.deleted_at is not None:
            return None
        return photo

    def create(self, attributes: PhotoCreate) -> Photo:
        with self.lock:
            self.create_calls += 1
            for existing in self.photos.values():
                if (
                    existing.file_hash == attributes.file_hash
                    and existing.deleted_at is None
                ):
                    raise ConflictError(attributes.file_hash)
            metadata = attributes.metadata
            photo = Photo(
                id=uuid4(),
                file_name=attributes.file_name,
                original_file_name=attributes.original_file_name,
                file_path=attributes.file_path,
                file_size=attributes.file_size,
                file_hash=attributes.file_hash,
                mime_type=attributes.mime_type,
                width=metadata.width,
                height=metadata.height,
                capture_time=metadata.capture_time,
                camera_make=metadata.camera_make,
                camera_model=metadata.camera_model,
                created_at=datetime.now(tz=UTC),
            )
            self.photos[photo.id] = photo
            return photo

    def update_thumbnail_path(self, photo_id: UUID, thumbnail_path: str) -> None:
        with self.lock:
            photo = self.photos[photo_id]
            self.photos[photo_id] = replace(photo, thumbnail_path=thumbnail_path)

    def soft_delete(self, photo_id: UUID) -> None:
        photo = self.photos[photo_id]
        self.photos[photo_id] = replace(photo, deleted_at=datetime.now(tz=UTC))


@dataclass
class InMemoryImportTaskRepository(ImportTaskRepository):
    """In-memory import task repository with conditional transitions."""

    tasks: dict[UUID, ImportTask] = field(default_factory=dict)
    progress_updates: list[ImportProgress] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def create_task(self, source_path: str) -> ImportTask:
        with self.lock:
            task = ImportTask(
                id=uuid4(),
                source_path=source_path,
                status=ImportTaskStatus.QUEUED,
                created_at=datetime.now(tz=UTC) + timedelta(microseconds=len(self.tasks)),
            )
            self.tasks[task.id] = task
            return task

    def get_task(self, task_id: UUID) -> ImportTask | None:
        return self.tasks.get(task_id)

    def list_tasks(self, limit: int, offset: int) -> list[ImportTask]:
        ordered = sorted(
            self.tasks.values(), key=lambda task: task.created_at, reverse=True
        )
        return ordered[offset : offset + limit]

    def mark_running(self, task_id: UUID, started_at: datetime) -> ImportTask | None:
        return self._transition(
            task_id,
            {ImportTaskStatus.QUEUED},
            status=ImportTaskStatus.RUNNING,
            started_at=started_at,
        )

    def update_total(self, task_id: UUID, total_files: int) -> None:
        with self.lock:
            self.tasks[task_id] = replace(self.tasks[task_id], total_files=total_files)

    def update_progress(self, task_id: UUID, progress: ImportProgress) -> None:
        with self.lock:
            self.progress_updates.append(progress)
            self.tasks[task_id] = replace(
                self.tasks[task_id],
                processed_files=progress.processed_files,
                success_count=progress.success_count,
                failed_count=progress.failed_count,
            )

    def finish(
        self,
        task_id: UUID,
        status: ImportTaskStatus,
        completed_at: datetime,
        error_message: str | None = None,
    ) -> ImportTask | None:
        return self._transition(
            task_id,
            {ImportTaskStatus.RUNNING},
            status=status,
            completed_at=completed_at,
            error_message=error_message,
        )

    def cancel(self, task_id: UUID, completed_at: datetime) -> ImportTask | None:
        return self._transition(
            task_id,
            {ImportTaskStatus.QUEUED, ImportTaskStatus.RUNNING},
            status=ImportTaskStatus.CANCELLED,
            completed_at=completed_at,
        )

    def _transition(
        self, task_id: UUID, expected: set[ImportTaskStatus], **changes: object
    ) -> ImportTask | None:
        with self.lock:
            task = self.tasks.get(task_id)
            if task is None or task.status not in expected:
                return None
            updated = replace(task, **changes)  # type: ignore[arg-type]
            self.tasks[task_id] = updated
            return updated


@dataclass
class InlineJobRunner(JobRunner):
    """Job runner that records job names and runs them immediately."""

    execute: bool = True
    submitted: list[str] = field(default_factory=list)
    pending: list[Callable[[], object]] = field(default_factory=list)
    shut_down: bool = False

    def submit(self, name: str, job: Callable[[], object]) -> None:
        self.submitted.append(name)
        if self.execute:
            job()
        else:
            self.pending.append(job)

    def shutdown(self, wait: bool = True) -> None:
        self.shut_down = True

    def run_pending(self) -> None:
        while self.pending:
            self.pending.pop(0)()


@dataclass
class CountingThumbnailer:
    """Wraps the Pillow thumbnailer and counts renders."""

    renders: int = 0
    inner: PillowThumbnailer = field(default_factory=PillowThumbnailer)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def render(self, source: Path, max_side: int, quality: int) -> bytes:
        with self.lock:
            self.renders += 1
        return self.inner.render(source, max_side, quality)


@pytest.fixture
def library_root(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    root.mkdir()
    return root


@pytest.fixture
def settings(library_root: Path) -> Settings:
    return Settings(
        library_root=library_root,
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        upload_chunk_size=1024,
        import_max_file_size=64 * 1024,
    )


@pytest.fixture
def catalog() -> InMemoryPhotoCatalog:
    return InMemoryPhotoCatalog()


@pytest.fixture
def task_repository() -> InMemoryImportTaskRepository:
    return InMemoryImportTaskRepository()


@pytest.fixture
def jobs() -> InlineJobRunner:
    return InlineJobRunner()


@pytest.fixture
def store(library_root: Path) -> ContentStore:
    return ContentStore(root=library_root, clock=lambda: FIXED_NOW)


@pytest.fixture
def thumbnailer() -> CountingThumbnailer:
    return CountingThumbnailer()


@pytest.fixture
def ingestion_service(
    catalog: InMemoryPhotoCatalog, store: ContentStore
) -> IngestionService:
    return IngestionService(
        catalog=catalog, store=store, extractor=PillowMetadataExtractor()
    )


@pytest.fixture
def thumbnail_service(
    catalog: InMemoryPhotoCatalog,
    store: ContentStore,
    thumbnailer: CountingThumbnailer,
    jobs: InlineJobRunner,
) -> ThumbnailService:
    return ThumbnailService(
        catalog=catalog, store=store, thumbnailer=thumbnailer, jobs=jobs
    )


@pytest.fixture
def upload_service(
    settings: Settings,
    catalog: InMemoryPhotoCatalog,
    store: ContentStore,
    ingestion_service: IngestionService,
    thumbnail_service: ThumbnailService,
) -> UploadService:
    return UploadService(
        catalog=catalog,
        store=store,
        ingestion=ingestion_service,
        thumbnails=thumbnail_service,
        chunk_size=settings.upload_chunk_size,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def import_service(
    settings: Settings,
    task_repository: InMemoryImportTaskRepository,
    ingestion_service: IngestionService,
    thumbnail_service: ThumbnailService,
    jobs: InlineJobRunner,
) -> ImportService:
    return ImportService(
        tasks=task_repository,
        ingestion=ingestion_service,
        thumbnails=thumbnail_service,
        jobs=jobs,
        max_file_size=settings.import_max_file_size,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    store: ContentStore,
    jobs: InlineJobRunner,
    ingestion_service: IngestionService,
    upload_service: UploadService,
    import_service: ImportService,
    thumbnail_service: ThumbnailService,
) -> AppContainer:
    async def close_resources() -> None:
        jobs.shutdown()

    return AppContainer(
        settings=settings,
        store=store,
        jobs=jobs,
        ingestion_service=ingestion_service,
        upload_service=upload_service,
        import_service=import_service,
        thumbnail_service=thumbnail_service,
        close_resources=close_resources,
    )
