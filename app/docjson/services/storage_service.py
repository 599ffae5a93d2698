"""
Filesystem storage for spooled uploads and result artifacts.

Uploads are named by a generated hex id and removed after each request;
a periodic sweep deletes anything the request path left behind. Result
artifacts are written once as ``<upload-id>.json`` and never modified.
"""

import asyncio
import json
import logging
import re
import time
import uuid
from pathlib import Path
from typing import Any

from fastapi import UploadFile

from ..exceptions import InvalidFilename, MissingFile
from ..models import StoredUpload

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".json"
ARTIFACT_NAME_PATTERN = re.compile(r"^[0-9a-f]{32}\.json$")

_CHUNK_SIZE = 1024 * 1024


class StorageService:
    """Service managing the uploads and results directories."""

    def __init__(self, upload_dir: str | Path, result_dir: str | Path):
        """
        Initialize the storage service and create its directories.

        Args:
            upload_dir: Directory for spooled uploads.
            result_dir: Directory for result artifacts.
        """
        self.upload_dir = Path(upload_dir)
        self.result_dir = Path(result_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.result_dir.mkdir(parents=True, exist_ok=True)

    async def save_upload(self, file: UploadFile | None) -> StoredUpload:
        """
        Spool a multipart upload to disk under a generated id.

        Args:
            file: The uploaded file, or None when the field was absent.

        Returns:
            StoredUpload describing the written file.

        Raises:
            MissingFile: If no file was attached.
        """
        if file is None or not file.filename:
            raise MissingFile()

        upload_id = uuid.uuid4().hex
        path = self.upload_dir / upload_id
        size = 0
        try:
            with path.open("wb") as out:
                while chunk := await file.read(_CHUNK_SIZE):
                    await asyncio.to_thread(out.write, chunk)
                    size += len(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        finally:
            await file.close()

        logger.info(
            "Stored upload %s as %s (%d bytes, %s)",
            file.filename,
            upload_id,
            size,
            file.content_type,
        )
        return StoredUpload(
            upload_id=upload_id,
            path=path,
            filename=file.filename,
            mime_type=file.content_type,
            size=size,
        )

    def discard_upload(self, upload: StoredUpload) -> None:
        """Delete a spooled upload; a missing file is not an error."""
        try:
            upload.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete upload %s: %s", upload.path, e)

    def write_artifact(self, upload_id: str, payload: dict[str, Any]) -> str:
        """
        Persist a response payload as a result artifact.

        Args:
            upload_id: Id of the upload the payload belongs to.
            payload: JSON-compatible response body.

        Returns:
            The artifact's filename.
        """
        name = f"{upload_id}{ARTIFACT_SUFFIX}"
        path = self.resolve_artifact(name)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Wrote result artifact %s", path)
        return name

    def resolve_artifact(self, filename: str) -> Path:
        """
        Map an artifact filename to its path inside the result directory.

        Only generated names (32 hex characters plus ".json") are accepted.

        Raises:
            InvalidFilename: If the name could address anything else.
        """
        if not ARTIFACT_NAME_PATTERN.fullmatch(filename):
            logger.warning("Rejected artifact name %r", filename)
            raise InvalidFilename()

        root = self.result_dir.resolve()
        path = (root / filename).resolve()
        if path.parent != root:
            raise InvalidFilename()
        return path

    def sweep_uploads(self, max_age_seconds: float, now: float | None = None) -> int:
        """
        Delete spooled uploads older than ``max_age_seconds``.

        Args:
            max_age_seconds: Age threshold based on modification time.
            now: Reference timestamp (defaults to the current time).

        Returns:
            Number of files deleted.
        """
        cutoff = (time.time() if now is None else now) - max_age_seconds
        removed = 0
        for path in self.upload_dir.iterdir():
            try:
                if path.is_file() and path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Could not sweep %s: %s", path, e)

        if removed:
            logger.info("Swept %d stale upload(s) from %s", removed, self.upload_dir)
        return removed


# Singleton instance for convenience
_storage_service: StorageService | None = None


def get_storage_service() -> StorageService:
    """Get or create the storage service singleton."""
    global _storage_service
    if _storage_service is None:
        from ..config import get_settings

        settings = get_settings()
        _storage_service = StorageService(settings.upload_dir, settings.result_dir)
    return _storage_service
