"""Directory import endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Query, Request, status

from photo_library.api.models import (
    CreateImportRequest,
    ImportTaskResponse,
    MessageResponse,
)
from photo_library.services.imports import DEFAULT_PAGE_SIZE

if TYPE_CHECKING:
    from photo_library.containers import AppContainer

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_import(payload: CreateImportRequest, request: Request) -> ImportTaskResponse:
    """Queue an import of a server-side directory."""
    container: AppContainer = request.app.state.container
    task = container.import_service.submit(payload.source_path)
    return ImportTaskResponse.from_task(task)


@router.get("")
def list_imports(
    request: Request,
    limit: int = Query(default=DEFAULT_PAGE_SIZE),
    offset: int = Query(default=0),
) -> list[ImportTaskResponse]:
    """Return import tasks, newest first."""
    container: AppContainer = request.app.state.container
    tasks = container.import_service.list_tasks(limit=limit, offset=offset)
    return [ImportTaskResponse.from_task(task) for task in tasks]


@router.get("/{task_id}")
def get_import(task_id: UUID, request: Request) -> ImportTaskResponse:
    """Return one import task."""
    container: AppContainer = request.app.state.container
    return ImportTaskResponse.from_task(container.import_service.get_task(task_id))


@router.delete("/{task_id}")
def cancel_import(task_id: UUID, request: Request) -> MessageResponse:
    """Request cancellation of an import task."""
    container: AppContainer = request.app.state.container
    task = container.import_service.cancel(task_id)
    return MessageResponse(message=f"Import task {task.status}")
