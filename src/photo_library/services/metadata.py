"""Metadata extraction contract."""

from pathlib import Path
from typing import Protocol

from photo_library.domain.photos import PhotoMetadata


class MetadataExtractor(Protocol):
    """Interface for pulling capture/GPS/camera fields from an image."""

    def extract(self, path: Path) -> PhotoMetadata:
        """Return best-effort metadata; never raises for unreadable files."""


def format_shutter_speed(exposure_seconds: float | None) -> str | None:
    """Render an exposure time as ``1/<n>``, rounding half up like a camera UI."""
    if exposure_seconds is None or exposure_seconds <= 0:
        return None
    return f"1/{int(1 / exposure_seconds + 0.5)}"
