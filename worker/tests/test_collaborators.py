from __future__ import annotations

import json

import httpx
import pytest

from stylesmith_worker.app.models import TitleSource
from stylesmith_worker.app.settings import Settings
from stylesmith_worker.services.collaborators import (
    LLMClient,
    TitleService,
    build_llm_client,
    clean_json_response,
)
from stylesmith_worker.services.exceptions import CollaboratorError
from stylesmith_worker.services.rng import create_rng


def _reply(content: str) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler) -> LLMClient:
    return LLMClient(
        "http://llm.test/v1/",
        "test-model",
        api_key="secret",
        timeout_seconds=1.0,
        transport=httpx.MockTransport(handler),
    )


def test_clean_json_response_strips_fences() -> None:
    assert clean_json_response('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert clean_json_response('  {"a": 1}  ') == '{"a": 1}'


@pytest.mark.asyncio
async def test_complete_posts_chat_request() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("hello"))

    assert await _client(handler).complete("system", "user") == "hello"
    assert seen["url"] == "http://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["model"] == "test-model"
    assert [message["role"] for message in body["messages"]] == ["system", "user"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json=_reply("   ")),
    ],
)
async def test_complete_maps_failures(response: httpx.Response) -> None:
    with pytest.raises(CollaboratorError):
        await _client(lambda request: response).complete("system", "user")


@pytest.mark.asyncio
async def test_complete_maps_timeouts() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(CollaboratorError, match="timed out"):
        await _client(handler).complete("system", "user")


@pytest.mark.asyncio
async def test_title_service_uses_llm_reply() -> None:
    payload = '```json\n{"title": "Neon Harbor", "lyrics": "lights on the water"}\n```'
    prompts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        prompts.append(json.loads(request.content)["messages"][1]["content"])
        return httpx.Response(200, json=_reply(payload))

    service = TitleService(_client(handler))
    result = await service.generate("synthwave", "dreamy", create_rng(1), with_lyrics=True)
    assert result.source == TitleSource.LLM
    assert result.titles == ["Neon Harbor"]
    assert result.lyrics == "lights on the water"
    assert prompts[-1].endswith("Include lyrics.")

    titled = await service.generate("synthwave", "dreamy", create_rng(1), use_llm=True)
    assert titled.titles == ["Neon Harbor"]
    assert titled.lyrics is None
    assert prompts[-1].endswith('Leave "lyrics" empty.')


@pytest.mark.asyncio
async def test_title_service_skips_llm_without_either_flag() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=_reply('{"title": "Unused"}'))

    result = await TitleService(_client(handler)).generate("folk", "warm", create_rng(2))
    assert result.source == TitleSource.DETERMINISTIC
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, json=_reply("Neon Harbor")),
        httpx.Response(200, json=_reply('{"lyrics": "no title"}')),
    ],
)
async def test_title_service_falls_back(response: httpx.Response) -> None:
    service = TitleService(_client(lambda request: response))
    result = await service.generate("jazz", "calm", create_rng(5), count=2, use_llm=True)
    assert result.source == TitleSource.DETERMINISTIC
    assert result.titles
    assert result.lyrics is None


@pytest.mark.asyncio
async def test_title_service_without_llm_is_deterministic() -> None:
    service = TitleService()
    assert not service.llm_available
    first = await service.generate("rock", "energetic", create_rng(3), count=3, use_llm=True)
    second = await service.generate("rock", "energetic", create_rng(3), count=3)
    assert first == second
    assert first.source == TitleSource.DETERMINISTIC


def test_build_llm_client_requires_enabled_url(tmp_path) -> None:
    assert build_llm_client(Settings(config_dir=tmp_path)) is None
    disabled = Settings(config_dir=tmp_path, llm_enabled=True)
    assert not disabled.llm_enabled
    assert build_llm_client(disabled) is None
    client = build_llm_client(
        Settings(config_dir=tmp_path, llm_enabled=True, llm_base_url="http://localhost:11434/v1")
    )
    assert client is not None
    assert client.base_url == "http://localhost:11434/v1"
