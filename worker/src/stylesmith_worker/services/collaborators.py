"""LLM-backed collaborators: an OpenAI-compatible chat client and the title service.

Every call is bounded by the client timeout. Callers catch
:class:`CollaboratorError` and substitute deterministic content, so a missing or
misbehaving model never blocks prompt generation.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

import httpx
from loguru import logger

from ..app.models import TitleResult, TitleSource
from ..app.settings import Settings
from .exceptions import CollaboratorError
from .rng import Rng
from .titles import generate_title_options

DEFAULT_TEMPERATURE = 0.7

_CODE_FENCE = re.compile(r"```(?:json)?\n?|\n?```")

TITLE_SYSTEM_PROMPT = """You are a songwriting assistant. Given a genre, a mood and an optional description, \
write one evocative song title of two to five words. When asked for lyrics, also write a short verse and chorus.

OUTPUT FORMAT (JSON only, no markdown):
{"title": "...", "lyrics": "..."}"""


def clean_json_response(text: str) -> str:
    """Strip markdown code fences that models wrap around JSON payloads."""
    return _CODE_FENCE.sub("", text.strip()).strip()


class LLMClient:
    """Minimal async client for a ``/chat/completions`` endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        api_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "temperature": DEFAULT_TEMPERATURE,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=self._headers(),
                )
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as exc:
            raise CollaboratorError(f"LLM request timed out after {self._timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise CollaboratorError(
                f"LLM request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CollaboratorError(f"LLM request failed: {exc}") from exc
        except ValueError as exc:
            raise CollaboratorError("LLM response was not valid JSON") from exc

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise CollaboratorError("LLM response had no message content") from exc
        if not isinstance(content, str) or not content.strip():
            raise CollaboratorError("LLM returned empty content")
        return content


def build_llm_client(settings: Settings) -> Optional[LLMClient]:
    if not settings.llm_enabled or not settings.llm_base_url:
        return None
    return LLMClient(
        settings.llm_base_url,
        settings.llm_model,
        api_key=settings.llm_api_key,
        timeout_seconds=settings.llm_timeout_seconds,
    )


def _title_user_prompt(genre: str, mood: str, description: str, with_lyrics: bool) -> str:
    parts = [f"Genre: {genre}", f"Mood: {mood}"]
    if description:
        parts.append(f"Description: {description}")
    parts.append("Include lyrics." if with_lyrics else 'Leave "lyrics" empty.')
    return "\n".join(parts)


class TitleService:
    """Titles from the LLM when enabled, otherwise from the word pools."""

    def __init__(self, llm: Optional[LLMClient] = None):
        self._llm = llm

    @property
    def llm_available(self) -> bool:
        return self._llm is not None

    async def _llm_title(
        self, genre: str, mood: str, description: str, with_lyrics: bool
    ) -> TitleResult:
        if self._llm is None:
            raise CollaboratorError("no LLM configured")
        text = await self._llm.complete(
            TITLE_SYSTEM_PROMPT, _title_user_prompt(genre, mood, description, with_lyrics)
        )
        try:
            parsed = json.loads(clean_json_response(text))
        except ValueError as exc:
            raise CollaboratorError("title response was not JSON") from exc
        if not isinstance(parsed, dict):
            raise CollaboratorError("title response was not a JSON object")
        title = str(parsed.get("title") or "").strip()
        if not title:
            raise CollaboratorError("title response had no title")
        lyrics = (str(parsed.get("lyrics") or "").strip() or None) if with_lyrics else None
        return TitleResult(titles=[title], source=TitleSource.LLM, lyrics=lyrics)

    async def generate(
        self,
        genre: str,
        mood: str,
        rng: Rng,
        *,
        description: str = "",
        count: int = 1,
        use_llm: bool = False,
        with_lyrics: bool = False,
    ) -> TitleResult:
        """Ask the LLM when ``use_llm`` or ``with_lyrics`` is set and a client exists."""
        if (use_llm or with_lyrics) and self._llm is not None:
            try:
                return await self._llm_title(genre, mood, description, with_lyrics)
            except CollaboratorError as exc:
                logger.warning("LLM title failed, using word pools: {error}", error=str(exc))
        return TitleResult(
            titles=generate_title_options(genre, mood, count, rng),
            source=TitleSource.DETERMINISTIC,
        )
