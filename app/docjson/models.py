"""
Pydantic models for the document-to-JSON API.

Defines the single versioned response schema returned by the upload
endpoint plus the error and health payloads.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

RESPONSE_SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class StoredUpload:
    """
    An uploaded file spooled to the uploads directory for one request.

    Attributes:
        upload_id: Generated hex identifier, also the stored file's name.
        path: Location of the spooled bytes.
        filename: Original client-side filename.
        mime_type: MIME type declared by the client.
        size: Number of bytes written.
    """

    upload_id: str
    path: Path
    filename: str
    mime_type: str | None
    size: int


class UploadResponse(BaseModel):
    """
    Response model for the upload endpoint.

    The shape is identical whether or not structuring and artifact
    persistence are enabled; disabled parts are returned as null.
    """

    schema_version: str = Field(
        default=RESPONSE_SCHEMA_VERSION,
        description="Version of this response schema",
    )
    success: bool = Field(default=True)
    filename: str = Field(..., description="Original filename of the upload")
    filetype: str | None = Field(
        default=None,
        description="Declared MIME type of the upload",
        examples=["application/pdf", "image/png"],
    )
    filesize: int = Field(..., ge=0, description="Upload size in bytes")
    data: str = Field(..., description="Extracted text, whitespace-trimmed")
    text_preview: str = Field(
        ...,
        description="Leading excerpt of the extracted text",
    )
    structured_data: dict[str, Any] | None = Field(
        default=None,
        description="JSON object produced by the language model, or the fallback payload",
    )
    download_url: str | None = Field(
        default=None,
        description="Path of the persisted result artifact",
    )


class ErrorResponse(BaseModel):
    """Error payload returned for every failed request."""

    error: str


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    message: str
    version: str = "1.0.0"
