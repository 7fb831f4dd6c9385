"""Content-addressed file placement under the library root."""

import hashlib
import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO
from uuid import UUID

from photo_library.domain.errors import StorageError

ORIGINALS_DIR = "originals"
THUMBNAILS_DIR = "thumbnails"
SCRATCH_DIR = "tmp/uploads"

_READ_CHUNK_SIZE = 1 << 20

_logger = logging.getLogger(__name__)


def sha256_file(path: Path, chunk_size: int = _READ_CHUNK_SIZE) -> str:
    """Return the hex SHA-256 digest of a file, read in fixed-size chunks."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ContentStore:
    """Maps content hashes to canonical paths and writes files atomically.

    Paths handed to the catalog are POSIX strings relative to ``root`` so the
    library can be moved without rewriting records.
    """

    root: Path
    clock: Callable[[], datetime] = field(default=_utc_now)

    def path_for(
        self, file_hash: str, ext: str, capture_time: datetime | None
    ) -> str:
        """Return ``originals/<year>/<month>/<hash><ext>`` for the content."""
        moment = capture_time or self.clock()
        return (
            f"{ORIGINALS_DIR}/{moment.year:04d}/{moment.month:02d}/"
            f"{file_hash}{ext.lower()}"
        )

    def thumbnail_path(self, size_tag: str, photo_id: UUID) -> str:
        """Return the relative path of a derived thumbnail."""
        return f"{THUMBNAILS_DIR}/{size_tag}/{photo_id}.jpg"

    def resolve(self, relative_path: str) -> Path:
        """Return the absolute location of a library-relative path."""
        return self.root / relative_path

    def scratch_path(self, name: str) -> Path:
        """Return a path in the upload scratch area, creating the directory."""
        directory = self.root / SCRATCH_DIR
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create scratch area: {exc}") from exc
        return directory / name

    def store_file(self, relative_path: str, source: Path) -> Path:
        """Copy ``source`` into place unless the content is already stored."""
        destination = self.resolve(relative_path)
        if destination.exists():
            _logger.debug("Content already stored at %s", relative_path)
            return destination

        def copy(handle: BinaryIO) -> None:
            with source.open("rb") as reader:
                shutil.copyfileobj(reader, handle, _READ_CHUNK_SIZE)

        self._write_atomically(destination, copy)
        return destination

    def store_bytes(self, relative_path: str, data: bytes) -> Path:
        """Write ``data`` into place unless the content is already stored."""
        destination = self.resolve(relative_path)
        if destination.exists():
            return destination
        self._write_atomically(destination, lambda handle: handle.write(data))
        return destination

    def replace_bytes(self, relative_path: str, data: bytes) -> Path:
        """Write ``data`` to ``relative_path``, replacing any existing file."""
        destination = self.resolve(relative_path)
        self._write_atomically(destination, lambda handle: handle.write(data))
        return destination

    def discard(self, path: Path) -> None:
        """Remove a file if it exists."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot remove {path}: {exc}") from exc

    @staticmethod
    def _write_atomically(
        destination: Path, write: Callable[[BinaryIO], object]
    ) -> None:
        """Write through a sibling temp file and rename it over ``destination``."""
        temp_path: Path | None = None
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=destination.parent,
                prefix=f".{destination.name}.",
                suffix=".part",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                write(handle)
            os.replace(temp_path, destination)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write {destination}: {exc}") from exc
