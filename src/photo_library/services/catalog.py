"""Photo catalog contract backing both ingestion paths."""

from typing import Protocol
from uuid import UUID

from photo_library.domain.photos import Photo, PhotoCreate


class PhotoCatalog(Protocol):
    """Persistence interface for photo records."""

    def find_by_hash(self, file_hash: str) -> Photo | None:
        """Return the non-deleted photo with this content hash, if any."""

    def get_photo(self, photo_id: UUID) -> Photo | None:
        """Return a non-deleted photo by id, if present."""

    def create(self, attributes: PhotoCreate) -> Photo:
        """Create a photo record.

        Raises ConflictError when a non-deleted photo with the same hash was
        inserted first.
        """

    def update_thumbnail_path(self, photo_id: UUID, thumbnail_path: str) -> None:
        """Record the default thumbnail of a photo."""
