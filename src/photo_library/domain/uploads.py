"""Domain models for chunked uploads."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from uuid import UUID


@dataclass(frozen=True)
class UploadTicket:
    """Returned to the client when an upload session is opened."""

    upload_id: UUID
    chunk_size: int
    total_chunks: int


@dataclass(frozen=True)
class UploadProgress:
    """Chunk-granular progress of an upload session."""

    uploaded_chunks: int
    total_chunks: int


@dataclass
class UploadSession:
    """In-flight upload state, owned by the upload service."""

    id: UUID
    file_name: str
    file_size: int
    file_hash: str
    mime_type: str
    chunk_size: int
    total_chunks: int
    temp_path: Path
    last_activity: datetime
    chunks: dict[int, bytes] = field(default_factory=dict)
    assembled_hash: str | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def uploaded_chunks(self) -> int:
        """Number of distinct chunk indices received."""
        if self.is_assembled:
            return self.total_chunks
        return len(self.chunks)

    @property
    def is_complete(self) -> bool:
        """Return true once every chunk index has been received."""
        return self.uploaded_chunks == self.total_chunks

    @property
    def is_assembled(self) -> bool:
        """Return true once the verified file exists on disk."""
        return self.assembled_hash is not None

    def progress(self) -> UploadProgress:
        """Return the current progress snapshot."""
        return UploadProgress(
            uploaded_chunks=self.uploaded_chunks, total_chunks=self.total_chunks
        )
