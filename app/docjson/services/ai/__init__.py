"""
AI service package for turning extracted text into JSON.

This package provides:
- structuring: Prompting the model and the StructuringService wrapper
- json_scan: Locating the first JSON object in model output
- exceptions: Errors recovered into the fallback payload
"""

from .exceptions import AIServiceError, EmptyResponse, MalformedJSON, NoJSONFound
from .json_scan import find_json_object
from .structuring import (
    FALLBACK_KEY,
    StructuringService,
    build_fallback,
    build_structuring_prompt,
    get_structuring_service,
    structure_text,
)

__all__ = [
    "AIServiceError",
    "EmptyResponse",
    "MalformedJSON",
    "NoJSONFound",
    "FALLBACK_KEY",
    "StructuringService",
    "build_fallback",
    "build_structuring_prompt",
    "find_json_object",
    "get_structuring_service",
    "structure_text",
]
