"""Chunked upload endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool

from photo_library.api.models import (
    AlreadyExistsResponse,
    CompleteUploadResponse,
    InitUploadRequest,
    MessageResponse,
    UploadProgressResponse,
    UploadTicketResponse,
)
from photo_library.domain.errors import AlreadyExistsError

if TYPE_CHECKING:
    from photo_library.containers import AppContainer

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/init")
def init_upload(
    payload: InitUploadRequest, request: Request
) -> UploadTicketResponse | AlreadyExistsResponse:
    """Open an upload session, or report that the content already exists."""
    container: AppContainer = request.app.state.container
    try:
        ticket = container.upload_service.init_upload(
            file_name=payload.file_name,
            file_size=payload.file_size,
            file_hash=payload.file_hash,
            mime_type=payload.mime_type,
        )
    except AlreadyExistsError as exc:
        return AlreadyExistsResponse(photo_id=exc.photo_id, message=str(exc))
    return UploadTicketResponse(
        upload_id=ticket.upload_id,
        chunk_size=ticket.chunk_size,
        total_chunks=ticket.total_chunks,
    )


@router.put("/{upload_id}/part")
async def upload_part(
    upload_id: UUID,
    request: Request,
    chunk_index: int = Query(alias="chunkIndex"),
) -> UploadProgressResponse:
    """Store one chunk of an upload from the raw request body."""
    container: AppContainer = request.app.state.container
    data = await request.body()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file data provided",
        )
    progress = await run_in_threadpool(
        container.upload_service.upload_chunk, upload_id, chunk_index, data
    )
    return UploadProgressResponse(
        uploaded_chunks=progress.uploaded_chunks, total_chunks=progress.total_chunks
    )


@router.post("/{upload_id}/complete")
def complete_upload(upload_id: UUID, request: Request) -> CompleteUploadResponse:
    """Finish an upload and return the photo id."""
    container: AppContainer = request.app.state.container
    photo_id = container.upload_service.complete_upload(upload_id)
    return CompleteUploadResponse(photo_id=photo_id)


@router.delete("/{upload_id}")
def cancel_upload(upload_id: UUID, request: Request) -> MessageResponse:
    """Cancel an upload session."""
    container: AppContainer = request.app.state.container
    container.upload_service.cancel_upload(upload_id)
    return MessageResponse(message="Upload cancelled")


@router.get("/{upload_id}/progress")
def upload_progress(upload_id: UUID, request: Request) -> UploadProgressResponse:
    """Return chunk progress for a live session."""
    container: AppContainer = request.app.state.container
    progress = container.upload_service.get_progress(upload_id)
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Upload session not found",
        )
    return UploadProgressResponse(
        uploaded_chunks=progress.uploaded_chunks, total_chunks=progress.total_chunks
    )
