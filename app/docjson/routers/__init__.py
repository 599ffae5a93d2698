"""
Routers package for FastAPI endpoints.

Organized by domain:
- upload: Document upload, extraction and structuring
- download: Result artifact downloads
"""

from . import download, upload

__all__ = ["download", "upload"]
