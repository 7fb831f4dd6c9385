"""Dependency container wiring for the application."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from photo_library.adapters.pillow_metadata import PillowMetadataExtractor
from photo_library.adapters.pillow_thumbnailer import PillowThumbnailer
from photo_library.adapters.supabase_import_task_repository import (
    SupabaseImportTaskRepository,
)
from photo_library.adapters.supabase_photo_catalog import SupabasePhotoCatalog
from photo_library.config import Settings
from photo_library.services.imports import ImportService
from photo_library.services.ingestion import IngestionService
from photo_library.services.jobs import JobRunner, ThreadPoolJobRunner
from photo_library.services.storage import ContentStore
from photo_library.services.thumbnails import ThumbnailService
from photo_library.services.uploads import UploadService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: ContentStore
    jobs: JobRunner
    ingestion_service: IngestionService
    upload_service: UploadService
    import_service: ImportService
    thumbnail_service: ThumbnailService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog = SupabasePhotoCatalog(supabase_client)
    task_repository = SupabaseImportTaskRepository(supabase_client)
    store = ContentStore(root=resolved_settings.library_root)
    jobs = ThreadPoolJobRunner.create(resolved_settings.job_workers)
    ingestion_service = IngestionService(
        catalog=catalog,
        store=store,
        extractor=PillowMetadataExtractor(),
    )
    thumbnail_service = ThumbnailService(
        catalog=catalog,
        store=store,
        thumbnailer=PillowThumbnailer(),
        jobs=jobs,
        quality=resolved_settings.thumbnail_quality,
    )
    upload_service = UploadService(
        catalog=catalog,
        store=store,
        ingestion=ingestion_service,
        thumbnails=thumbnail_service,
        chunk_size=resolved_settings.upload_chunk_size,
        session_ttl=timedelta(seconds=resolved_settings.upload_session_ttl_seconds),
    )
    import_service = ImportService(
        tasks=task_repository,
        ingestion=ingestion_service,
        thumbnails=thumbnail_service,
        jobs=jobs,
        max_file_size=resolved_settings.import_max_file_size,
        workers=resolved_settings.import_workers,
    )

    async def close_resources() -> None:
        await asyncio.to_thread(jobs.shutdown)

    return AppContainer(
        settings=resolved_settings,
        store=store,
        jobs=jobs,
        ingestion_service=ingestion_service,
        upload_service=upload_service,
        import_service=import_service,
        thumbnail_service=thumbnail_service,
        close_resources=close_resources,
    )
