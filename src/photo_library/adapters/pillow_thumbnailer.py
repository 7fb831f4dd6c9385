"""Thumbnail rendering with Pillow."""

import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps
from pillow_heif import register_heif_opener

from photo_library.services.thumbnails import Thumbnailer

register_heif_opener()

# Containers Pillow cannot resize directly; decoded to JPEG first.
_TRANSCODE_EXTENSIONS = {".heic", ".heif"}


@dataclass
class PillowThumbnailer(Thumbnailer):
    """Fits an image inside a square without upscaling and re-encodes as JPEG."""

    transcode_quality: int = 90

    def render(self, source: Path, max_side: int, quality: int) -> bytes:
        """Return JPEG bytes of ``source`` bounded by ``max_side`` pixels."""
        with Image.open(source) as image:
            if source.suffix.lower() in _TRANSCODE_EXTENSIONS:
                image = _transcode_to_jpeg(image, self.transcode_quality)
            rgb = ImageOps.exif_transpose(image).convert("RGB")
        rgb.thumbnail((max_side, max_side), resample=Image.Resampling.LANCZOS)
        buffer = io.BytesIO()
        rgb.save(buffer, format="JPEG", quality=quality, optimize=True)
        return buffer.getvalue()


def _transcode_to_jpeg(image: Image.Image, quality: int) -> Image.Image:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    buffer.seek(0)
    return Image.open(buffer)
