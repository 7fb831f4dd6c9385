"""Common ingestion step shared by uploads and directory imports."""

import logging
from dataclasses import dataclass
from pathlib import Path, PurePath

from photo_library.domain.errors import ConflictError, StorageError
from photo_library.domain.photos import IngestResult, PhotoCreate
from photo_library.services.catalog import PhotoCatalog
from photo_library.services.metadata import MetadataExtractor
from photo_library.services.storage import ContentStore, sha256_file

DEFAULT_MIME_TYPE = "image/jpeg"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}

_logger = logging.getLogger(__name__)


def mime_type_for(file_name: str) -> str:
    """Return the MIME type for a file name's extension."""
    return MIME_TYPES.get(PurePath(file_name).suffix.lower(), DEFAULT_MIME_TYPE)


@dataclass
class IngestionService:
    """Hashes, deduplicates, stores and catalogs a single file."""

    catalog: PhotoCatalog
    store: ContentStore
    extractor: MetadataExtractor

    def ingest(
        self,
        source: Path,
        original_file_name: str,
        file_hash: str | None = None,
        mime_type: str | None = None,
    ) -> IngestResult:
        """Ingest ``source`` into the library and return the photo id.

        The source file is copied, never moved. A known hash short-circuits
        to the existing record.
        """
        try:
            digest = file_hash or sha256_file(source)
            file_size = source.stat().st_size
        except OSError as exc:
            raise StorageError(f"Cannot read {source}: {exc}") from exc

        existing = self.catalog.find_by_hash(digest)
        if existing is not None:
            _logger.debug("Skipping duplicate %s (photo %s)", source, existing.id)
            return IngestResult(photo_id=existing.id, created=False)

        ext = PurePath(original_file_name).suffix.lower()
        metadata = self.extractor.extract(source)
        relative_path = self.store.path_for(digest, ext, metadata.capture_time)
        self.store.store_file(relative_path, source)

        attributes = PhotoCreate(
            file_name=PurePath(relative_path).name,
            original_file_name=original_file_name,
            file_path=relative_path,
            file_size=file_size,
            file_hash=digest,
            mime_type=mime_type or mime_type_for(original_file_name),
            metadata=metadata,
        )
        try:
            photo = self.catalog.create(attributes)
        except ConflictError:
            winner = self.catalog.find_by_hash(digest)
            if winner is None:
                raise
            _logger.info(
                "Concurrent ingest won the race for %s (photo %s)", digest, winner.id
            )
            return IngestResult(photo_id=winner.id, created=False)
        _logger.info("Ingested %s as photo %s", original_file_name, photo.id)
        return IngestResult(photo_id=photo.id, created=True)
