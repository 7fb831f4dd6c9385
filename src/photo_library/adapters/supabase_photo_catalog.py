"""Supabase-backed photo catalog."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from photo_library.domain.errors import ConflictError
from photo_library.domain.photos import Photo, PhotoCreate
from photo_library.services.catalog import PhotoCatalog

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabasePhotoCatalog(PhotoCatalog):
    """Supabase implementation for photo records."""

    client: Client

    def find_by_hash(self, file_hash: str) -> Photo | None:
        """Return the live photo with this hash, if any."""
        response = (
            self.client.table("photos")
            .select("*")
            .eq("file_hash", file_hash)
            .is_("deleted_at", "null")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_photo(response.data[0])

    def get_photo(self, photo_id: UUID) -> Photo | None:
        """Return a live photo by id, if present."""
        response = (
            self.client.table("photos")
            .select("*")
            .eq("id", str(photo_id))
            .is_("deleted_at", "null")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_photo(response.data[0])

    def create(self, attributes: PhotoCreate) -> Photo:
        """Insert a photo row; a live duplicate hash raises ConflictError."""
        metadata = attributes.metadata
        payload = {
            "file_name": attributes.file_name,
            "original_file_name": attributes.original_file_name,
            "file_path": attributes.file_path,
            "file_size": attributes.file_size,
            "file_hash": attributes.file_hash,
            "mime_type": attributes.mime_type,
            "width": metadata.width,
            "height": metadata.height,
            "capture_time": (
                metadata.capture_time.isoformat() if metadata.capture_time else None
            ),
            "latitude": metadata.latitude,
            "longitude": metadata.longitude,
            "altitude": metadata.altitude,
            "camera_make": metadata.camera_make,
            "camera_model": metadata.camera_model,
            "iso": metadata.iso,
            "focal_length": metadata.focal_length,
            "aperture": metadata.aperture,
            "shutter_speed": metadata.shutter_speed,
        }
        try:
            response = self.client.table("photos").insert(payload).execute()
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise ConflictError(attributes.file_hash) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create photo")
        return _parse_photo(response.data[0])

    def update_thumbnail_path(self, photo_id: UUID, thumbnail_path: str) -> None:
        """Set the default thumbnail path."""
        self.client.table("photos").update(
            {
                "thumbnail_path": thumbnail_path,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("id", str(photo_id)).execute()


def _parse_datetime(value: object) -> datetime | None:
    return datetime.fromisoformat(value) if isinstance(value, str) else None


def _parse_photo(row: dict[str, object]) -> Photo:
    return Photo(
        id=UUID(str(row["id"])),
        file_name=str(row["file_name"]),
        original_file_name=str(row["original_file_name"]),
        file_path=str(row["file_path"]),
        file_size=int(row["file_size"]),  # type: ignore[arg-type]
        file_hash=str(row["file_hash"]),
        mime_type=str(row["mime_type"]),
        width=row.get("width"),  # type: ignore[arg-type]
        height=row.get("height"),  # type: ignore[arg-type]
        capture_time=_parse_datetime(row.get("capture_time")),
        latitude=row.get("latitude"),  # type: ignore[arg-type]
        longitude=row.get("longitude"),  # type: ignore[arg-type]
        altitude=row.get("altitude"),  # type: ignore[arg-type]
        camera_make=row.get("camera_make"),  # type: ignore[arg-type]
        camera_model=row.get("camera_model"),  # type: ignore[arg-type]
        iso=row.get("iso"),  # type: ignore[arg-type]
        focal_length=row.get("focal_length"),  # type: ignore[arg-type]
        aperture=row.get("aperture"),  # type: ignore[arg-type]
        shutter_speed=row.get("shutter_speed"),  # type: ignore[arg-type]
        thumbnail_path=row.get("thumbnail_path"),  # type: ignore[arg-type]
        deleted_at=_parse_datetime(row.get("deleted_at")),
        created_at=_parse_datetime(row.get("created_at")),
    )
