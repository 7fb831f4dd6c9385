"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from photo_library.api.imports import router as imports_router
from photo_library.api.thumbnails import router as thumbnails_router
from photo_library.api.uploads import router as uploads_router
from photo_library.app_logging import configure_logging
from photo_library.containers import AppContainer
from photo_library.domain.errors import (
    AlreadyExistsError,
    ConflictError,
    HashMismatchError,
    InvalidInputError,
    NotFoundError,
    PhotoLibraryError,
    StorageError,
)

_STATUS_CODES: list[tuple[type[PhotoLibraryError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (HashMismatchError, 422),
    (ConflictError, status.HTTP_409_CONFLICT),
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(error: PhotoLibraryError) -> int:
    """Map a domain error to an HTTP status code."""
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    async def sweep_upload_sessions(app: FastAPI) -> None:
        state_container: AppContainer = app.state.container
        interval = state_container.settings.upload_sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                await asyncio.to_thread(
                    state_container.upload_service.expire_idle_sessions
                )
            except Exception:
                logger.exception("Upload session sweep failed")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(sweep_upload_sessions(app))
        yield
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        await app.state.container.close_resources()

    app = FastAPI(title="Photo Library", lifespan=lifespan)
    app.state.container = container

    app.include_router(uploads_router)
    app.include_router(imports_router)
    app.include_router(thumbnails_router)

    @app.exception_handler(PhotoLibraryError)
    async def handle_domain_error(
        request: Request, exc: PhotoLibraryError
    ) -> JSONResponse:
        status_code = status_code_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Request failed",
                exc_info=exc,
                extra={"path": request.url.path},
            )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
