"""Tests for AI structuring and JSON scanning."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from app.docjson.exceptions import ConfigurationError
from app.docjson.services.ai import (
    MalformedJSON,
    NoJSONFound,
    StructuringService,
    build_structuring_prompt,
    find_json_object,
)


def make_client(content=None, *, choices=True, side_effect=None) -> MagicMock:
    """Build a fake AsyncOpenAI client returning ``content``."""
    client = MagicMock()
    if side_effect is not None:
        client.chat.completions.create = AsyncMock(side_effect=side_effect)
        return client
    message = SimpleNamespace(content=content)
    response = SimpleNamespace(
        choices=[SimpleNamespace(message=message)] if choices else []
    )
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


def make_service(client: MagicMock, **kwargs) -> StructuringService:
    """Build a configured service bound to a fake client."""
    service = StructuringService(api_key="test-token", **kwargs)
    service._client = client
    return service


class TestFindJSONObject:
    """Tests for locating JSON in model output."""

    def test_exact_object(self):
        """Test that a bare object is decoded."""
        assert find_json_object('{"a":1}') == {"a": 1}

    def test_object_wrapped_in_prose(self):
        """Test that leading and trailing prose is ignored."""
        text = 'Here is the JSON you asked for:\n{"name": "ACME", "total": 12.5}\nHope it helps!'
        assert find_json_object(text) == {"name": "ACME", "total": 12.5}

    def test_object_in_markdown_fence(self):
        """Test that markdown code fences are ignored."""
        text = '```json\n{"items": [1, 2, 3]}\n```'
        assert find_json_object(text) == {"items": [1, 2, 3]}

    def test_braces_in_prose_are_skipped(self):
        """Test that stray braces around the object do not corrupt it."""
        text = 'Use {placeholders} carefully. {"a": {"b": 1}} and a closing } here.'
        assert find_json_object(text) == {"a": {"b": 1}}

    def test_first_complete_object_wins(self):
        """Test that only the first complete object is returned."""
        assert find_json_object('{"first": 1} {"second": 2}') == {"first": 1}

    def test_no_braces_raises(self):
        """Test that text without braces raises NoJSONFound."""
        with pytest.raises(NoJSONFound):
            find_json_object("I could not convert this document.")

    def test_unterminated_object_raises(self):
        """Test that braces without a decodable object raise MalformedJSON."""
        with pytest.raises(MalformedJSON):
            find_json_object('{"a": 1, "b": ')

    def test_truncated_object_does_not_yield_nested_fragment(self):
        """Test that an object cut off mid-way is malformed, not its inner object."""
        with pytest.raises(MalformedJSON):
            find_json_object('{"document": {"title": "Invoice"}, "items": [1, 2')

    def test_broken_object_is_skipped_whole(self):
        """Test that a closed but invalid object is skipped including its children."""
        text = '{"a": {"b": 1},, } then {"c": 2}'
        assert find_json_object(text) == {"c": 2}

    def test_braces_inside_strings_do_not_end_span(self):
        """Test that quoted braces do not shorten a broken candidate."""
        with pytest.raises(MalformedJSON):
            find_json_object('{"note": "}", "inner": {"x": 1}, "rest": ')

    @pytest.mark.asyncio
    async def test_truncated_reply_returns_fallback(self):
        """Test that a truncated model reply yields the fallback payload."""
        client = make_client('{"document": {"title": "Invoice"}, "items": [1, 2')
        result = await make_service(client).structure("hello")
        assert result == {"fallback_text": "hello"}

    def test_single_quoted_object_raises(self):
        """Test that non-JSON object syntax raises MalformedJSON."""
        with pytest.raises(MalformedJSON):
            find_json_object("{'a': 1}")


class TestBuildPrompt:
    """Tests for the structuring prompt."""

    def test_prompt_contains_instructions_and_text(self):
        """Test that the prompt asks for JSON only and embeds the text."""
        prompt = build_structuring_prompt("Invoice 42", max_chars=6000)
        assert "clean JSON" in prompt
        assert "Return ONLY valid JSON" in prompt
        assert "Invoice 42" in prompt

    def test_prompt_truncates_text(self):
        """Test that only the leading characters are embedded."""
        prompt = build_structuring_prompt("a" * 10 + "b" * 10, max_chars=10)
        assert "a" * 10 in prompt
        assert "b" not in prompt.split("TEXT:")[1]


class TestStructuringService:
    """Tests for StructuringService.structure."""

    @pytest.mark.asyncio
    async def test_returns_parsed_object(self):
        """Test that a JSON reply is returned as a dict."""
        client = make_client('{"a":1}')
        result = await make_service(client).structure("some text")
        assert result == {"a": 1}

    @pytest.mark.asyncio
    async def test_request_parameters(self):
        """Test model, temperature and message shape of the request."""
        client = make_client('{"a":1}')
        service = make_service(client, model="test-model", max_input_chars=100)
        await service.structure("x" * 500)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0
        assert len(kwargs["messages"]) == 1
        assert kwargs["messages"][0]["role"] == "user"
        assert "x" * 100 in kwargs["messages"][0]["content"]
        assert "x" * 101 not in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_empty_content_returns_fallback(self):
        """Test that an empty reply yields the fallback payload."""
        result = await make_service(make_client("")).structure("hello")
        assert result == {"fallback_text": "hello"}

    @pytest.mark.asyncio
    async def test_missing_choices_returns_fallback(self):
        """Test that a reply without choices yields the fallback payload."""
        result = await make_service(make_client(choices=False)).structure("hello")
        assert result == {"fallback_text": "hello"}

    @pytest.mark.asyncio
    async def test_no_json_returns_fallback(self):
        """Test that a reply without braces yields the fallback payload."""
        client = make_client("Sorry, I cannot help with that.")
        result = await make_service(client).structure("hello")
        assert result == {"fallback_text": "hello"}

    @pytest.mark.asyncio
    async def test_malformed_json_returns_fallback(self):
        """Test that undecodable JSON yields the fallback payload."""
        client = make_client('{"a": 1,,}')
        result = await make_service(client).structure("hello")
        assert result == {"fallback_text": "hello"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            asyncio.TimeoutError(),
            ConnectionResetError("connection reset by peer"),
            openai.APITimeoutError(
                request=httpx.Request("POST", "https://router.huggingface.co/v1")
            ),
        ],
    )
    async def test_remote_failure_returns_fallback(self, error):
        """Test that transport failures never escape the service."""
        client = make_client(side_effect=error)
        result = await make_service(client).structure("hello")
        assert result == {"fallback_text": "hello"}

    @pytest.mark.asyncio
    async def test_fallback_is_bounded(self):
        """Test that the fallback keeps at most 500 leading characters."""
        text = "".join(str(i % 10) for i in range(2000))
        client = make_client("no json here")
        result = await make_service(client).structure(text)
        assert len(result["fallback_text"]) == 500
        assert text.startswith(result["fallback_text"])

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self):
        """Test that a missing credential is raised instead of falling back."""
        client = make_client('{"a":1}')
        service = StructuringService(api_key=None)
        service._client = client
        with pytest.raises(ConfigurationError):
            await service.structure("hello")
        client.chat.completions.create.assert_not_called()

    def test_client_uses_configured_endpoint(self):
        """Test that the lazily created client targets the configured base URL."""
        service = StructuringService(
            api_key="test-token", base_url="https://router.huggingface.co/v1"
        )
        assert str(service.client.base_url).startswith("https://router.huggingface.co/v1")
        assert service.client is service.client

    def test_client_requires_api_key(self):
        """Test that creating a client without a key fails."""
        with pytest.raises(ConfigurationError):
            StructuringService(api_key="").client
