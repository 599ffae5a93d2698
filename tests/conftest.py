"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock

# Settings are read when the application module is imported
_runtime_dir = Path(tempfile.mkdtemp(prefix="docjson-tests-"))
os.environ.setdefault("HF_TOKEN", "test-token")
os.environ["UPLOAD_DIR"] = str(_runtime_dir / "uploads")
os.environ["RESULT_DIR"] = str(_runtime_dir / "results")

import pytest
from fastapi.testclient import TestClient

from app.docjson.config import Settings, get_settings
from app.docjson.main import app
from app.docjson.services.ai import StructuringService, get_structuring_service
from app.docjson.services.extraction_service import (
    ExtractionService,
    get_extraction_service,
)
from app.docjson.services.storage_service import StorageService, get_storage_service


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing storage at a per-test directory."""
    return Settings(
        _env_file=None,
        hf_token="test-token",
        upload_dir=tmp_path / "uploads",
        result_dir=tmp_path / "results",
    )


@pytest.fixture
def storage(settings: Settings) -> StorageService:
    """Storage service rooted in the per-test directory."""
    return StorageService(settings.upload_dir, settings.result_dir)


@pytest.fixture
def extraction_service() -> ExtractionService:
    """Real extraction dispatch; individual extractors are patched per test."""
    return ExtractionService(timeout=5.0)


@pytest.fixture
def structuring_service() -> StructuringService:
    """Structuring service whose model call is replaced by a canned answer."""
    service = StructuringService(api_key="test-token")
    service.structure = AsyncMock(
        return_value={"document_type": "invoice", "invoice_number": "42"}
    )
    return service


@pytest.fixture
def client(
    settings: Settings,
    storage: StorageService,
    extraction_service: ExtractionService,
    structuring_service: StructuringService,
) -> Generator[TestClient, None, None]:
    """Create a test client with services bound to per-test fixtures."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_extraction_service] = lambda: extraction_service
    app.dependency_overrides[get_structuring_service] = lambda: structuring_service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal valid PDF for testing.

    This is a minimal PDF structure that should be recognized as a valid PDF.
    """
    # Minimal valid PDF structure
    pdf_content = b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R >>
endobj
4 0 obj
<< /Length 44 >>
stream
BT
/F1 12 Tf
100 700 Td
(Test) Tj
ET
endstream
endobj
xref
0 5
0000000000 65535 f
0000000009 00000 n
0000000058 00000 n
0000000115 00000 n
0000000214 00000 n
trailer
<< /Size 5 /Root 1 0 R >>
startxref
306
%%EOF"""
    return pdf_content


@pytest.fixture
def sample_png_path(tmp_path: Path) -> Path:
    """Write a small PNG image to disk."""
    from PIL import Image

    path = tmp_path / "scan.png"
    Image.new("RGB", (64, 32), color="white").save(path, format="PNG")
    return path


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"
