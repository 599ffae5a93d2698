"""
Text structuring using an OpenAI-compatible chat completions API.

Turns extracted document text into a JSON object. Failures of the remote
call or of the model output are recovered into a fallback payload.
"""

import logging
from typing import Any

from openai import AsyncOpenAI

from ...exceptions import ConfigurationError
from .exceptions import EmptyResponse
from .json_scan import find_json_object

logger = logging.getLogger(__name__)


# =============================================================================
# Structuring Prompt
# =============================================================================

STRUCTURING_PROMPT = """
Convert the following document text into clean JSON.
Return ONLY valid JSON. No explanation.

TEXT:
{text}
"""

FALLBACK_KEY = "fallback_text"


def build_structuring_prompt(text: str, max_chars: int) -> str:
    """Embed the first ``max_chars`` characters of ``text`` in the prompt."""
    return STRUCTURING_PROMPT.format(text=text[:max_chars])


def build_fallback(text: str, max_chars: int = 500) -> dict[str, Any]:
    """Return the payload used when no JSON could be obtained."""
    return {FALLBACK_KEY: text[:max_chars]}


async def structure_text(
    text: str,
    client: Any,  # AsyncOpenAI client
    model: str,
    max_input_chars: int = 6000,
) -> dict[str, Any]:
    """
    Ask the model to restructure ``text`` and decode its answer.

    Args:
        text: Extracted document text.
        client: AsyncOpenAI client instance.
        model: Model identifier.
        max_input_chars: Prefix length of ``text`` sent to the model.

    Returns:
        The first JSON object found in the model's reply.

    Raises:
        EmptyResponse: If the reply has no content.
        NoJSONFound: If the reply contains no JSON object.
        MalformedJSON: If the reply's JSON cannot be decoded.
    """
    prompt = build_structuring_prompt(text, max_input_chars)

    logger.info(
        "Calling structuring model %s (%d of %d characters)",
        model,
        min(len(text), max_input_chars),
        len(text),
    )

    response = await client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt}],
        temperature=0,
    )

    content = None
    if response is not None and response.choices:
        content = response.choices[0].message.content
    if not content:
        raise EmptyResponse("Empty AI response")

    return find_json_object(content)


class StructuringService:
    """
    Service for converting document text to JSON with a language model.

    ``structure`` never fails because of the model: any error is logged and
    replaced by the fallback payload. A missing API key is a deployment
    defect and raises ConfigurationError instead.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "deepseek-ai/DeepSeek-V3.2:novita",
        base_url: str | None = "https://router.huggingface.co/v1",
        timeout: float = 60.0,
        max_input_chars: int = 6000,
        fallback_chars: int = 500,
    ):
        """
        Initialize the structuring service.

        Args:
            api_key: Provider API key (HF_TOKEN for the Hugging Face router).
            model: Chat model identifier.
            base_url: OpenAI-compatible endpoint.
            timeout: Request timeout in seconds.
            max_input_chars: Maximum characters of text sent to the model.
            fallback_chars: Maximum characters kept in the fallback payload.
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.max_input_chars = max_input_chars
        self.fallback_chars = fallback_chars
        self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            self.ensure_configured()
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if no API key is set."""
        if not self.api_key:
            raise ConfigurationError("HF_TOKEN missing in environment variables")

    async def structure(self, text: str) -> dict[str, Any]:
        """
        Convert document text into a JSON object.

        Args:
            text: Extracted document text.

        Returns:
            The model's JSON object, or ``{"fallback_text": <prefix>}``.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        self.ensure_configured()

        try:
            return await structure_text(
                text,
                client=self.client,
                model=self.model,
                max_input_chars=self.max_input_chars,
            )
        except Exception as e:
            logger.error("AI Error: %s: %s", type(e).__name__, e)
            return build_fallback(text, self.fallback_chars)


# =============================================================================
# Singleton Factory
# =============================================================================

_structuring_service: StructuringService | None = None


def get_structuring_service() -> StructuringService:
    """Get or create the structuring service singleton."""
    global _structuring_service
    if _structuring_service is None:
        from ...config import get_settings

        settings = get_settings()
        _structuring_service = StructuringService(
            api_key=settings.hf_token,
            model=settings.llm_model,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout_seconds,
            max_input_chars=settings.llm_max_input_chars,
            fallback_chars=settings.fallback_text_chars,
        )
    return _structuring_service
