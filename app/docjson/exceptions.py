"""
Exceptions raised by the upload and download pipeline.

Client errors map to HTTP 400, everything else to HTTP 500.
"""


class DocJSONError(Exception):
    """Base class for pipeline errors with a client-safe message."""

    status_code: int = 500

    @property
    def client_message(self) -> str:
        """Message returned in the response body."""
        return str(self)


class ClientError(DocJSONError):
    """Raised when the request itself is unusable."""

    status_code = 400


class MissingFile(ClientError):
    """Raised when no file was attached to an upload."""

    def __init__(self, message: str = "File required"):
        super().__init__(message)


class UnsupportedFileType(ClientError):
    """Raised when no extractor handles the declared MIME type."""

    def __init__(self, mime_type: str | None):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type or 'unknown'}")


class InvalidFilename(ClientError):
    """Raised when a download name is not a generated artifact name."""

    def __init__(self, message: str = "Invalid filename"):
        super().__init__(message)


class ExtractionError(DocJSONError):
    """Raised when the PDF parser or OCR engine fails."""

    pass


class ConfigurationError(DocJSONError):
    """
    Raised when the deployment is missing required configuration.

    The message names server-side settings and is only logged.
    """

    @property
    def client_message(self) -> str:
        return "Internal server error"
