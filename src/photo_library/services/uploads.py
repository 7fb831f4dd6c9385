"""Chunked upload sessions."""

import hashlib
import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from photo_library.domain.errors import (
    AlreadyExistsError,
    HashMismatchError,
    InvalidChunkIndexError,
    InvalidInputError,
    StorageError,
    UploadSessionNotFoundError,
)
from photo_library.domain.uploads import UploadProgress, UploadSession, UploadTicket
from photo_library.services.catalog import PhotoCatalog
from photo_library.services.ingestion import IngestionService, mime_type_for
from photo_library.services.storage import ContentStore
from photo_library.services.thumbnails import ThumbnailService

DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024
DEFAULT_SESSION_TTL = timedelta(hours=24)

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class UploadService:
    """Owns in-flight upload sessions and turns finished ones into photos.

    Chunks are buffered in memory until every index has arrived, then written
    to a scratch file and verified against the declared SHA-256 exactly once.
    """

    catalog: PhotoCatalog
    store: ContentStore
    ingestion: IngestionService
    thumbnails: ThumbnailService
    chunk_size: int = DEFAULT_CHUNK_SIZE
    session_ttl: timedelta = DEFAULT_SESSION_TTL
    clock: Callable[[], datetime] = field(default=_utc_now)
    _sessions: dict[UUID, UploadSession] = field(
        default_factory=dict, init=False, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def init_upload(
        self, file_name: str, file_size: int, file_hash: str, mime_type: str | None
    ) -> UploadTicket:
        """Open an upload session unless the content is already catalogued."""
        if not file_name or not file_hash:
            raise InvalidInputError("fileName and fileHash are required")
        if file_size <= 0:
            raise InvalidInputError("fileSize must be positive")
        file_hash = file_hash.lower()

        existing = self.catalog.find_by_hash(file_hash)
        if existing is not None:
            raise AlreadyExistsError(existing.id)

        upload_id = uuid4()
        session = UploadSession(
            id=upload_id,
            file_name=file_name,
            file_size=file_size,
            file_hash=file_hash,
            mime_type=mime_type or mime_type_for(file_name),
            chunk_size=self.chunk_size,
            total_chunks=math.ceil(file_size / self.chunk_size),
            temp_path=self.store.scratch_path(f"{upload_id}.tmp"),
            last_activity=self.clock(),
        )
        with self._lock:
            self._sessions[upload_id] = session
        _logger.info(
            "Opened upload %s for %s (%d chunks)",
            upload_id,
            file_name,
            session.total_chunks,
        )
        return UploadTicket(
            upload_id=upload_id,
            chunk_size=session.chunk_size,
            total_chunks=session.total_chunks,
        )

    def upload_chunk(
        self, upload_id: UUID, chunk_index: int, data: bytes
    ) -> UploadProgress:
        """Store one chunk; assembles the file once the last chunk arrives."""
        session = self._require(upload_id)
        if not 0 <= chunk_index < session.total_chunks:
            raise InvalidChunkIndexError(chunk_index, session.total_chunks)

        with session.lock:
            self._ensure_live(session)
            session.last_activity = self.clock()
            if session.is_assembled:
                return session.progress()
            session.chunks[chunk_index] = data
            if session.is_complete:
                self._assemble(session)
            return session.progress()

    def complete_upload(self, upload_id: UUID) -> UUID:
        """Ingest the assembled file and return the resulting photo id."""
        session = self._require(upload_id)
        with session.lock:
            self._ensure_live(session)
            session.last_activity = self.clock()
            if not session.is_assembled:
                if not session.is_complete:
                    raise InvalidInputError(
                        f"Upload not complete: {session.uploaded_chunks}"
                        f"/{session.total_chunks} chunks received"
                    )
                self._assemble(session)

            existing = self.catalog.find_by_hash(session.file_hash)
            if existing is not None:
                self._drop(session)
                _logger.info(
                    "Upload %s matched existing photo %s", upload_id, existing.id
                )
                return existing.id

            result = self.ingestion.ingest(
                session.temp_path,
                session.file_name,
                file_hash=session.file_hash,
                mime_type=session.mime_type,
            )
            self._drop(session)

        if result.created:
            self.thumbnails.schedule([result.photo_id])
        return result.photo_id

    def cancel_upload(self, upload_id: UUID) -> None:
        """Drop a session and its scratch file; unknown ids are ignored."""
        with self._lock:
            session = self._sessions.pop(upload_id, None)
        if session is None:
            return
        with session.lock:
            self.store.discard(session.temp_path)
        _logger.info("Cancelled upload %s", upload_id)

    def get_progress(self, upload_id: UUID) -> UploadProgress | None:
        """Return progress for a live session."""
        with self._lock:
            session = self._sessions.get(upload_id)
        if session is None:
            return None
        return session.progress()

    def expire_idle_sessions(self, now: datetime | None = None) -> int:
        """Remove sessions idle for longer than the TTL; return how many."""
        cutoff = (now or self.clock()) - self.session_ttl
        with self._lock:
            candidates = [
                session
                for session in self._sessions.values()
                if session.last_activity < cutoff
            ]

        expired = 0
        for session in candidates:
            # Waits for any chunk or completion still holding the session.
            with session.lock:
                with self._lock:
                    if self._sessions.get(session.id) is not session:
                        continue
                    if session.last_activity >= cutoff:
                        continue
                    del self._sessions[session.id]
                try:
                    self.store.discard(session.temp_path)
                except StorageError as exc:
                    _logger.warning("Could not remove %s: %s", session.temp_path, exc)
            expired += 1
        if expired:
            _logger.info("Expired %d idle upload sessions", expired)
        return expired

    def _require(self, upload_id: UUID) -> UploadSession:
        with self._lock:
            session = self._sessions.get(upload_id)
        if session is None:
            raise UploadSessionNotFoundError(upload_id)
        return session

    def _ensure_live(self, session: UploadSession) -> None:
        """Reject work on a session removed while waiting for its lock."""
        with self._lock:
            live = self._sessions.get(session.id) is session
        if not live:
            raise UploadSessionNotFoundError(session.id)

    def _drop(self, session: UploadSession) -> None:
        with self._lock:
            self._sessions.pop(session.id, None)
        self.store.discard(session.temp_path)

    def _assemble(self, session: UploadSession) -> None:
        # Caller holds session.lock.
        digest = hashlib.sha256()
        try:
            with session.temp_path.open("wb") as handle:
                for index in range(session.total_chunks):
                    chunk = session.chunks[index]
                    handle.write(chunk)
                    digest.update(chunk)
        except OSError as exc:
            self.store.discard(session.temp_path)
            raise StorageError(f"Cannot assemble upload {session.id}: {exc}") from exc

        actual = digest.hexdigest()
        if actual != session.file_hash:
            self.store.discard(session.temp_path)
            session.chunks.clear()
            _logger.warning(
                "Hash mismatch for upload %s",
                session.id,
                extra={"expected": session.file_hash, "actual": actual},
            )
            raise HashMismatchError(session.file_hash, actual)

        session.assembled_hash = actual
        session.chunks.clear()
        _logger.info("Assembled upload %s", session.id)
