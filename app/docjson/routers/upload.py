"""
Router for the document upload endpoint.

Handles:
- Spooling the uploaded file
- Text extraction (PDF text layer or OCR)
- Optional AI structuring and result artifact persistence
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile

from ..config import Settings, get_settings
from ..exceptions import DocJSONError
from ..models import ErrorResponse, UploadResponse
from ..services.ai import StructuringService, get_structuring_service
from ..services.extraction_service import ExtractionService, get_extraction_service
from ..services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_document(
    file: Annotated[UploadFile | None, File(description="PDF or image to convert")] = None,
    settings: Settings = Depends(get_settings),
    storage: StorageService = Depends(get_storage_service),
    extraction_service: ExtractionService = Depends(get_extraction_service),
    structuring_service: StructuringService = Depends(get_structuring_service),
) -> UploadResponse:
    """
    Upload a PDF or image and convert its text to JSON.

    Extracts the text, asks the language model to structure it when
    structuring is enabled, and persists the response as a downloadable
    artifact when downloads are enabled.
    """
    upload = await storage.save_upload(file)

    try:
        text = await extraction_service.extract_text(upload.path, upload.mime_type)
        data = text.strip()

        structured_data = None
        if settings.enable_structuring:
            structured_data = await structuring_service.structure(text)

        response = UploadResponse(
            filename=upload.filename,
            filetype=upload.mime_type,
            filesize=upload.size,
            data=data,
            text_preview=data[: settings.preview_chars],
            structured_data=structured_data,
        )

        if settings.enable_downloads:
            artifact_name = f"{upload.upload_id}.json"
            response.download_url = f"/api/download/{artifact_name}"
            await asyncio.to_thread(
                storage.write_artifact,
                upload.upload_id,
                response.model_dump(mode="json"),
            )

        logger.info(
            "Processed %s (%d bytes, %d characters, structured=%s)",
            upload.filename,
            upload.size,
            len(data),
            structured_data is not None,
        )
        return response

    except DocJSONError:
        raise
    except Exception as e:
        logger.exception("Unexpected error processing %s", upload.filename)
        raise DocJSONError("Internal server error") from e
    finally:
        await asyncio.to_thread(storage.discard_upload, upload)
