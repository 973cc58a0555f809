"""Tests for storysmith.generation: OpenAIClient and the offline doubles."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from storysmith.generation import (
    MISSING_KEY_MESSAGE,
    EchoText,
    GenerationError,
    OpenAIClient,
    PlaceholderImages,
    resolve_api_key,
)


def _mock_response(body: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.raise_for_status = MagicMock(
        side_effect=None if status < 400 else httpx.HTTPStatusError(
            "", request=MagicMock(), response=resp
        )
    )
    return resp


# ---------------------------------------------------------------------------
# Offline doubles
# ---------------------------------------------------------------------------

class TestDoubles:
    async def test_echo_returns_prompt(self) -> None:
        assert await EchoText()("blueprint", "system", "hello") == "hello"

    async def test_placeholder_images(self) -> None:
        assert await PlaceholderImages()("a cat") == "/books/sample/page-1.svg"
        assert await PlaceholderImages("/x.png")("a cat") == "/x.png"


# ---------------------------------------------------------------------------
# API key resolution
# ---------------------------------------------------------------------------

class TestResolveApiKey:
    def test_explicit_wins(self, monkeypatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "env")
        assert resolve_api_key("req", {"api_keys": {"openai": "stored"}}) == "req"

    def test_stored_then_env(self, monkeypatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "env")
        assert resolve_api_key(None, {"api_keys": {"openai": "stored"}}) == "stored"
        assert resolve_api_key(None, {"api_keys": {"openai": ""}}) == "env"

    def test_nothing(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert resolve_api_key(None, None) == ""


# ---------------------------------------------------------------------------
# OpenAIClient
# ---------------------------------------------------------------------------

class TestOpenAIClient:
    @pytest.fixture
    def client(self) -> OpenAIClient:
        return OpenAIClient(api_key="sk-test", base_url="https://llm.example.com/")

    async def test_chat_happy_path(self, client: OpenAIClient) -> None:
        body = {"choices": [{"message": {"content": "Once upon a time"}}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await client.chat("scene_weaver", "You are The Architect of Arcs.", "go")
        assert result == "Once upon a time"

        url = mock_post.call_args.args[0]
        assert url == "https://llm.example.com/v1/chat/completions"
        sent = mock_post.call_args.kwargs["json"]
        assert sent["model"] == "gpt-4o"
        assert sent["messages"][0] == {"role": "system", "content": "You are The Architect of Arcs."}
        assert sent["messages"][1] == {"role": "user", "content": "go"}
        headers = mock_post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer sk-test"

    async def test_image_happy_path(self, client: OpenAIClient) -> None:
        body = {"data": [{"url": "https://img.example.com/1.png"}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            url = await client.image("a fox with a lantern")
        assert url == "https://img.example.com/1.png"
        sent = mock_post.call_args.kwargs["json"]
        assert sent["model"] == "dall-e-3"
        assert sent["n"] == 1
        assert sent["size"] == "1024x1024"

    async def test_missing_key(self) -> None:
        client = OpenAIClient(api_key="")
        mock_post = AsyncMock()
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="Missing OPENAI_API_KEY"):
                await client.chat("x", "", "y")
        mock_post.assert_not_called()
        assert "Settings" in MISSING_KEY_MESSAGE

    async def test_http_error(self, client: OpenAIClient) -> None:
        mock_post = AsyncMock(return_value=_mock_response({}, status=429))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="HTTP 429"):
                await client.image("x")

    async def test_connect_error(self, client: OpenAIClient) -> None:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="Cannot connect"):
                await client.chat("x", "", "y")

    async def test_timeout(self, client: OpenAIClient) -> None:
        mock_post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="timed out"):
                await client.chat("x", "", "y")

    async def test_transport_error(self, client: OpenAIClient) -> None:
        mock_post = AsyncMock(side_effect=httpx.ReadError("connection reset"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="request failed"):
                await client.image("x")

    async def test_non_json_body(self, client: OpenAIClient) -> None:
        resp = _mock_response({})
        resp.json.side_effect = ValueError("Expecting value")
        with patch("httpx.AsyncClient.post", AsyncMock(return_value=resp)):
            with pytest.raises(GenerationError, match="non-JSON"):
                await client.chat("x", "", "y")

    async def test_list_body(self, client: OpenAIClient) -> None:
        mock_post = AsyncMock(return_value=_mock_response([{"url": "x"}]))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="Unexpected response format"):
                await client.image("x")

    async def test_bad_chat_shape(self, client: OpenAIClient) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"choices": []}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="Unexpected response format"):
                await client.chat("x", "", "y")

    async def test_bad_image_shape(self, client: OpenAIClient) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"data": [{}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(GenerationError, match="Unexpected response format"):
                await client.image("x")

    def test_from_config(self) -> None:
        client = OpenAIClient.from_config(
            {"api_keys": {"openai": "sk-stored"}, "provider_url": "http://local:8080",
             "chat_model": "m1", "image_model": "m2"},
        )
        assert client._api_key == "sk-stored"
        assert client._base_url == "http://local:8080"
        assert client._chat_model == "m1"
        assert client._image_model == "m2"
