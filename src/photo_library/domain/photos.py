"""Domain models for catalogued photos."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class PhotoMetadata:
    """Best-effort metadata pulled from an image file."""

    capture_time: datetime | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    camera_make: str | None = None
    camera_model: str | None = None
    iso: int | None = None
    focal_length: float | None = None
    aperture: float | None = None
    shutter_speed: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class PhotoCreate:
    """Attributes for a new catalog record."""

    file_name: str
    original_file_name: str
    file_path: str
    file_size: int
    file_hash: str
    mime_type: str
    metadata: PhotoMetadata


@dataclass(frozen=True)
class Photo:
    """Represents a photo stored in the library."""

    id: UUID
    file_name: str
    original_file_name: str
    file_path: str
    file_size: int
    file_hash: str
    mime_type: str
    width: int | None = None
    height: int | None = None
    capture_time: datetime | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    camera_make: str | None = None
    camera_model: str | None = None
    iso: int | None = None
    focal_length: float | None = None
    aperture: float | None = None
    shutter_speed: str | None = None
    thumbnail_path: str | None = None
    deleted_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting one file."""

    photo_id: UUID
    created: bool
