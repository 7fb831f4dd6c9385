"""Tests for container wiring."""

import asyncio

from photo_library.adapters.supabase_import_task_repository import (
    SupabaseImportTaskRepository,
)
from photo_library.adapters.supabase_photo_catalog import SupabasePhotoCatalog
from photo_library.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.upload_service.chunk_size == settings.upload_chunk_size
    assert container.import_service.max_file_size == settings.import_max_file_size
    assert isinstance(container.upload_service.catalog, SupabasePhotoCatalog)
    assert isinstance(container.import_service.tasks, SupabaseImportTaskRepository)
    assert container.store.root == settings.library_root
    assert container.upload_service.thumbnails is container.thumbnail_service
    asyncio.run(container.close_resources())
