"""
Shared exceptions for AI service modules.

None of these escape the structuring service; they are recovered into
the fallback payload.
"""


class AIServiceError(Exception):
    """Raised when AI service operations fail."""

    pass


class EmptyResponse(AIServiceError):
    """Raised when the model returns no message content."""

    pass


class NoJSONFound(AIServiceError):
    """Raised when the model output contains no JSON object at all."""

    pass


class MalformedJSON(AIServiceError):
    """Raised when the model output has braces but no decodable object."""

    pass
