"""Lazy, idempotent thumbnail generation."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol
from uuid import UUID

from photo_library.domain.errors import (
    InvalidInputError,
    PhotoNotFoundError,
    StorageError,
)
from photo_library.services.catalog import PhotoCatalog
from photo_library.services.jobs import JobRunner
from photo_library.services.storage import ContentStore

_logger = logging.getLogger(__name__)


class ThumbnailSize(Enum):
    """Supported thumbnail sizes, valued by their longest side in pixels."""

    SMALL = 256
    MEDIUM = 1024

    @property
    def pixels(self) -> int:
        return self.value

    @property
    def tag(self) -> str:
        """Directory name used on disk."""
        return str(self.value)

    @property
    def route_name(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, name: str) -> "ThumbnailSize":
        """Parse a route name such as ``small``."""
        try:
            return cls[name.upper()]
        except KeyError as exc:
            raise InvalidInputError(f"Invalid thumbnail size: {name}") from exc


class Thumbnailer(Protocol):
    """Renders a bounded JPEG rendition of an image file."""

    def render(self, source: Path, max_side: int, quality: int) -> bytes:
        """Return JPEG bytes fitting within ``max_side`` on both axes."""


@dataclass
class ThumbnailService:
    """Creates thumbnails on demand and in background batches."""

    catalog: PhotoCatalog
    store: ContentStore
    thumbnailer: Thumbnailer
    jobs: JobRunner
    quality: int = 85

    def ensure(self, photo_id: UUID, size: ThumbnailSize) -> Path:
        """Return the thumbnail path, rendering it if it does not exist yet."""
        return self._generate(photo_id, size, force=False)

    def regenerate(self, photo_id: UUID) -> dict[ThumbnailSize, Path]:
        """Re-render every size for a photo."""
        return {
            size: self._generate(photo_id, size, force=True) for size in ThumbnailSize
        }

    def ensure_batch(self, photo_ids: Iterable[UUID]) -> None:
        """Ensure every size for every photo, logging individual failures."""
        for photo_id in photo_ids:
            for size in ThumbnailSize:
                try:
                    self.ensure(photo_id, size)
                except Exception:
                    _logger.exception(
                        "Thumbnail generation failed",
                        extra={"photo_id": str(photo_id), "size": size.route_name},
                    )

    def schedule(self, photo_ids: Iterable[UUID]) -> None:
        """Hand thumbnail generation for ``photo_ids`` to the job runner."""
        pending = list(photo_ids)
        if not pending:
            return
        self.jobs.submit(
            f"thumbnails[{len(pending)}]", lambda: self.ensure_batch(pending)
        )

    def _generate(self, photo_id: UUID, size: ThumbnailSize, force: bool) -> Path:
        photo = self.catalog.get_photo(photo_id)
        if photo is None:
            raise PhotoNotFoundError(photo_id)

        relative_path = self.store.thumbnail_path(size.tag, photo.id)
        destination = self.store.resolve(relative_path)
        if destination.exists() and not force:
            return destination

        original = self.store.resolve(photo.file_path)
        if not original.is_file():
            raise StorageError(f"Original file missing for photo {photo.id}")
        try:
            data = self.thumbnailer.render(original, size.pixels, self.quality)
        except OSError as exc:
            raise StorageError(f"Cannot render {photo.file_path}: {exc}") from exc
        self.store.replace_bytes(relative_path, data)

        if photo.thumbnail_path is None:
            self.catalog.update_thumbnail_path(photo.id, relative_path)
        _logger.debug("Rendered %s thumbnail for photo %s", size.route_name, photo.id)
        return destination
