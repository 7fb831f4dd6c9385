"""Domain errors for the photo library."""

from uuid import UUID


class PhotoLibraryError(Exception):
    """Base class for expected photo library failures."""


class NotFoundError(PhotoLibraryError):
    """Raised when a session, task or photo id is unknown."""


class UploadSessionNotFoundError(NotFoundError):
    """Raised when an upload session does not exist."""

    def __init__(self, upload_id: UUID) -> None:
        super().__init__(f"Upload session not found: {upload_id}")
        self.upload_id = upload_id


class ImportTaskNotFoundError(NotFoundError):
    """Raised when an import task does not exist."""

    def __init__(self, task_id: UUID) -> None:
        super().__init__(f"Import task not found: {task_id}")
        self.task_id = task_id


class PhotoNotFoundError(NotFoundError):
    """Raised when a photo does not exist or was deleted."""

    def __init__(self, photo_id: UUID) -> None:
        super().__init__(f"Photo not found: {photo_id}")
        self.photo_id = photo_id


class ConflictError(PhotoLibraryError):
    """Raised when another writer already created a photo for the same hash."""

    def __init__(self, file_hash: str) -> None:
        super().__init__(f"Photo already exists for hash {file_hash}")
        self.file_hash = file_hash


class AlreadyExistsError(PhotoLibraryError):
    """Raised when an upload is not needed because the content is known."""

    def __init__(self, photo_id: UUID) -> None:
        super().__init__("File already exists")
        self.photo_id = photo_id


class InvalidInputError(PhotoLibraryError):
    """Raised for malformed requests."""


class InvalidChunkIndexError(InvalidInputError):
    """Raised when a chunk index is outside the session's range."""

    def __init__(self, chunk_index: int, total_chunks: int) -> None:
        super().__init__(
            f"Invalid chunk index {chunk_index}; expected 0..{total_chunks - 1}"
        )
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks


class TaskStateError(InvalidInputError):
    """Raised when an import task is not in a state that allows the action."""


class HashMismatchError(PhotoLibraryError):
    """Raised when assembled upload bytes do not match the declared hash."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__("File hash mismatch")
        self.expected = expected
        self.actual = actual


class StorageError(PhotoLibraryError):
    """Raised when the library filesystem cannot be read or written."""
