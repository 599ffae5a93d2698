"""
Router for result artifact downloads.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from ..config import Settings, get_settings
from ..models import ErrorResponse
from ..services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["download"])


@router.get(
    "/download/{filename:path}",
    response_class=FileResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def download_result(
    filename: str,
    settings: Settings = Depends(get_settings),
    storage: StorageService = Depends(get_storage_service),
) -> FileResponse:
    """
    Download a previously persisted result artifact.

    Args:
        filename: Artifact name as returned in ``download_url``.
    """
    if not settings.enable_downloads:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    path = storage.resolve_artifact(filename)
    if not path.is_file():
        logger.info("Artifact %s not found", filename)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    return FileResponse(path, media_type="application/json", filename=filename)
