"""EXIF metadata extraction with Pillow."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from PIL import ExifTags, Image
from pillow_heif import register_heif_opener

from photo_library.domain.photos import PhotoMetadata
from photo_library.services.metadata import MetadataExtractor, format_shutter_speed

register_heif_opener()

_logger = logging.getLogger(__name__)

_EXIF_DATE_FORMATS = (
    "%Y:%m:%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y:%m:%d",
)


@dataclass
class PillowMetadataExtractor(MetadataExtractor):
    """Reads capture time, GPS and camera fields from EXIF blocks."""

    def extract(self, path: Path) -> PhotoMetadata:
        """Return whatever metadata Pillow can decode; empty on failure."""
        try:
            with Image.open(path) as image:
                width, height = image.size
                exif = image.getexif()
                return _build_metadata(exif, width, height)
        except Exception as exc:
            _logger.warning("Metadata extraction failed for %s: %s", path, exc)
            return PhotoMetadata()


def _build_metadata(exif: Image.Exif, width: int, height: int) -> PhotoMetadata:
    details = exif.get_ifd(ExifTags.IFD.Exif)
    gps = exif.get_ifd(ExifTags.IFD.GPSInfo)

    capture_time = (
        _parse_exif_datetime(details.get(ExifTags.Base.DateTimeOriginal))
        or _parse_exif_datetime(details.get(ExifTags.Base.DateTimeDigitized))
        or _parse_exif_datetime(exif.get(ExifTags.Base.DateTime))
    )
    latitude = _dms_to_degrees(
        gps.get(ExifTags.GPS.GPSLatitude), gps.get(ExifTags.GPS.GPSLatitudeRef)
    )
    longitude = _dms_to_degrees(
        gps.get(ExifTags.GPS.GPSLongitude), gps.get(ExifTags.GPS.GPSLongitudeRef)
    )
    if latitude is None or longitude is None:
        latitude = longitude = None

    iso = details.get(ExifTags.Base.ISOSpeedRatings)
    if isinstance(iso, tuple):
        iso = iso[0] if iso else None

    return PhotoMetadata(
        capture_time=capture_time,
        latitude=latitude,
        longitude=longitude,
        altitude=_altitude(
            gps.get(ExifTags.GPS.GPSAltitude), gps.get(ExifTags.GPS.GPSAltitudeRef)
        ),
        camera_make=_text(exif.get(ExifTags.Base.Make)),
        camera_model=_text(exif.get(ExifTags.Base.Model)),
        iso=int(iso) if isinstance(iso, int | float) else None,
        focal_length=_rational(details.get(ExifTags.Base.FocalLength)),
        aperture=_rational(details.get(ExifTags.Base.FNumber)),
        shutter_speed=format_shutter_speed(
            _rational(details.get(ExifTags.Base.ExposureTime))
        ),
        width=width or None,
        height=height or None,
    )


def _rational(value: object) -> float | None:
    """Convert an EXIF rational (or number) to float."""
    if value is None:
        return None
    try:
        result = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if result != result:  # NaN from a 0/0 rational
        return None
    return result


def _text(value: object) -> str | None:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if not isinstance(value, str):
        return None
    cleaned = value.strip("\x00 ").strip()
    return cleaned or None


def _parse_exif_datetime(value: object) -> datetime | None:
    text = _text(value)
    if not text:
        return None
    text = text.split(".")[0]
    for fmt in _EXIF_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _dms_to_degrees(value: object, ref: object) -> float | None:
    """Convert a (degrees, minutes, seconds) triple to signed decimal degrees."""
    if not isinstance(value, tuple) or len(value) != 3:  # noqa: PLR2004
        return None
    parts = [_rational(part) for part in value]
    if any(part is None for part in parts):
        return None
    degrees, minutes, seconds = parts
    result = degrees + minutes / 60 + seconds / 3600  # type: ignore[operator]
    if _text(ref) in {"S", "W"}:
        result = -result
    return result


def _altitude(value: object, ref: object) -> float | None:
    altitude = _rational(value)
    if altitude is None:
        return None
    if isinstance(ref, bytes):
        ref = ref[0] if ref else 0
    return -altitude if ref == 1 else altitude
