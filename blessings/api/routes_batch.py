"""FastAPI routes for batch video generation."""

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import FileResponse

from blessings.core.exceptions import BatchStateError, InvalidTransitionError, JobNotFoundError, NoFinishedVideosError
from blessings.models.schemas import BatchAccepted, BatchPreviewResult, BatchRequest, BatchStatus, ConfirmRequest
from blessings.services.batch_service import BatchService, create_batch_service
from blessings.utils.io_utils import remove_file

router = APIRouter(prefix="/batches", tags=["batches"])


@lru_cache
def get_batch_service() -> BatchService:
    """Process-wide batch service (one in-memory job store per process)."""
    from blessings.core.config import settings
    from blessings.core.logging_config import get_logger

    return create_batch_service(settings, get_logger("blessings.batches"))


@router.post("/preview", response_model=BatchPreviewResult)
def create_preview(request: BatchRequest, service: BatchService = Depends(get_batch_service)) -> BatchPreviewResult:
    """Write narration for every recipient; rendering waits for confirmation."""
    return service.create_preview(request)


@router.post("/render", response_model=BatchAccepted)
def create_render(request: BatchRequest, service: BatchService = Depends(get_batch_service)) -> BatchAccepted:
    """Create a batch and render immediately, without a preview step."""
    return service.create_render(request)


@router.post("/{batch_id}/confirm", response_model=BatchAccepted)
def confirm_batch(
    batch_id: str,
    request: Optional[ConfirmRequest] = None,
    service: BatchService = Depends(get_batch_service),
) -> BatchAccepted:
    """Apply narration edits and start rendering a previewed batch."""
    try:
        return service.confirm_and_render(batch_id, request.narrations if request else None)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (BatchStateError, InvalidTransitionError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{batch_id}", response_model=BatchStatus)
def get_batch_status(batch_id: str, service: BatchService = Depends(get_batch_service)) -> BatchStatus:
    """Report per-item progress of a batch."""
    try:
        return service.get_status(batch_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{batch_id}/download")
def download_batch(
    batch_id: str, background_tasks: BackgroundTasks, service: BatchService = Depends(get_batch_service)
) -> FileResponse:
    """Download the finished videos of a batch as a zip archive."""
    try:
        archive_path = service.build_archive(batch_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NoFinishedVideosError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(remove_file, archive_path)
    return FileResponse(archive_path, media_type="application/zip", filename=archive_path.name)


@router.delete("/{batch_id}", status_code=204)
def discard_batch(batch_id: str, service: BatchService = Depends(get_batch_service)) -> None:
    """Evict a batch and release its resources."""
    try:
        service.discard(batch_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BatchStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
