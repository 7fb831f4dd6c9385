"""Thumbnail endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse

from photo_library.api.models import GenerateThumbnailsResponse
from photo_library.services.thumbnails import ThumbnailSize

if TYPE_CHECKING:
    from photo_library.containers import AppContainer

router = APIRouter(prefix="/thumbnails", tags=["thumbnails"])


@router.get("/{photo_id}/{size}", response_class=FileResponse)
def get_thumbnail(photo_id: UUID, size: str, request: Request) -> FileResponse:
    """Return a thumbnail, generating it on first request."""
    container: AppContainer = request.app.state.container
    path = container.thumbnail_service.ensure(photo_id, ThumbnailSize.parse(size))
    return FileResponse(path, media_type="image/jpeg")


@router.post("/{photo_id}/generate")
def generate_thumbnails(photo_id: UUID, request: Request) -> GenerateThumbnailsResponse:
    """Regenerate every thumbnail size for a photo."""
    container: AppContainer = request.app.state.container
    generated = container.thumbnail_service.regenerate(photo_id)
    return GenerateThumbnailsResponse(
        message="Thumbnails generated",
        sizes=[size.route_name for size in generated],
    )
