"""
FastAPI application for the document-to-JSON service.

Provides endpoints for:
- Uploading a PDF or image and converting its text to JSON
- Downloading persisted result artifacts
- Liveness and health checks
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .exceptions import DocJSONError, MissingFile
from .models import HealthResponse
from .routers import download, upload
from .services.ai import get_structuring_service
from .services.storage_service import StorageService, get_storage_service

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def sweep_uploads_periodically(
    storage: StorageService, max_age_seconds: float, interval_seconds: float
) -> None:
    """Delete stale uploads every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(storage.sweep_uploads, max_age_seconds)
        except OSError as e:
            logger.error("Upload sweep failed: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Document to JSON Converter...")
    settings = get_settings()

    # A missing credential must stop the deployment, not degrade every request
    if settings.enable_structuring:
        get_structuring_service().ensure_configured()

    storage = get_storage_service()
    storage.sweep_uploads(settings.upload_max_age_seconds)
    sweeper = asyncio.create_task(
        sweep_uploads_periodically(
            storage,
            settings.upload_max_age_seconds,
            settings.sweep_interval_seconds,
        )
    )
    logger.info(
        "Services initialized (structuring=%s, downloads=%s)",
        settings.enable_structuring,
        settings.enable_downloads,
    )
    try:
        yield
    finally:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        logger.info("Shutting down Document to JSON Converter...")


# Create FastAPI application
app = FastAPI(
    title="Document to JSON Converter API",
    description="Extract text from PDFs and images and structure it as JSON",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Root endpoint - liveness string."""
    return "Document to JSON Converter API running"


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy", message="Service is healthy", version=__version__
    )


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(upload.router)
app.include_router(download.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(DocJSONError)
async def docjson_error_handler(request: Request, exc: DocJSONError):
    """Handle pipeline errors with their client-safe message."""
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.client_message}
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as client errors in the pipeline error shape."""
    errors = exc.errors()
    logger.error("%s %s rejected: %s", request.method, request.url.path, errors)
    if any("file" in error.get("loc", ()) for error in errors):
        message = MissingFile().client_message
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors with the same body shape as pipeline errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Handle anything else without leaking internals."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def run() -> None:
    """Run the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
