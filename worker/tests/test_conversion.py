from __future__ import annotations

import httpx
import pytest

from stylesmith_worker.services.collaborators import LLMClient
from stylesmith_worker.services.conversion import (
    DEFAULT_ENHANCEMENT,
    EMPTY_FIELD_ENHANCEMENT,
    MaxConversionService,
    extract_sections,
    parse_enhancement,
    parse_non_max_prompt,
    resolve_conversion_genre,
)
from stylesmith_worker.services.formats import field_value, is_max_format
from stylesmith_worker.services.rng import create_rng

STANDARD_PROMPT = """[Smoky, Jazz, Key: D dorian]

Genre: Jazz
Mood: smoky, warm
Instruments: piano, upright bass

A late night set in a small club
[INTRO] Sparse piano setting a smoky scene
[OUTRO] Upright bass fades out"""


def _llm(handler) -> LLMClient:
    return LLMClient("http://llm.test/v1", "test-model", transport=httpx.MockTransport(handler))


def _reply(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def test_parse_non_max_prompt() -> None:
    parsed = parse_non_max_prompt(STANDARD_PROMPT)
    assert parsed.genre == "jazz"
    assert parsed.moods == ["smoky", "warm"]
    assert parsed.instruments == ["piano", "upright bass"]
    assert parsed.description == "A late night set in a small club"
    assert [section.tag for section in parsed.sections] == ["INTRO", "OUTRO"]


def test_extract_sections_skips_empty_blocks() -> None:
    sections = extract_sections("[INTRO]\n[VERSE] warm keys\n[CHORUS]   ")
    assert [(section.tag, section.content) for section in sections] == [("VERSE", "warm keys")]


def test_extract_sections_ignores_non_section_brackets() -> None:
    text = "[Calm, Jazz, Key: D dorian]\n\nGenre: Jazz\nMood: calm\n[VERSE 2] brushed snare\n[PRE-CHORUS] lift"
    sections = extract_sections(text)
    assert [(section.tag, section.content) for section in sections] == [
        ("VERSE 2", "brushed snare"),
        ("PRE-CHORUS", "lift"),
    ]


def test_parse_enhancement() -> None:
    enhancement, fallback = parse_enhancement('{"styleTags": "tape hiss", "recording": "garage take"}')
    assert not fallback
    assert enhancement.style_tags == "tape hiss"
    assert enhancement.recording == "garage take"
    partial, fallback = parse_enhancement('{"styleTags": ""}')
    assert not fallback
    assert partial == EMPTY_FIELD_ENHANCEMENT
    assert parse_enhancement("not json") == (DEFAULT_ENHANCEMENT, True)
    assert parse_enhancement("[1, 2]") == (DEFAULT_ENHANCEMENT, True)


def test_seed_genres_win_over_parsed_genre() -> None:
    resolved = resolve_conversion_genre("jazz", ["rock", "jazz rock"])
    assert resolved.components == ("rock", "jazz")
    assert resolved.display == "Rock, Jazz"
    assert resolved.lookup == "rock"
    fallback = resolve_conversion_genre(None)
    assert fallback.components == ("pop",)


@pytest.mark.asyncio
async def test_max_prompt_passes_through() -> None:
    text = 'genre: "jazz"\nbpm: "between 80 and 160"\ninstruments: "piano"'
    result = await MaxConversionService().convert(text, create_rng(1))
    assert result.text == text
    assert not result.was_converted


@pytest.mark.asyncio
async def test_convert_without_llm_uses_default_enhancement() -> None:
    result = await MaxConversionService(articulation_chance=0.0).convert(
        STANDARD_PROMPT, create_rng(2)
    )
    assert result.was_converted
    assert result.used_fallback
    assert is_max_format(result.text)
    assert field_value(result.text, "genre") == "jazz"
    assert field_value(result.text, "bpm") == "between 80 and 160"
    assert field_value(result.text, "instruments") == "piano, upright bass"
    assert field_value(result.text, "style tags") == DEFAULT_ENHANCEMENT.style_tags
    assert field_value(result.text, "recording") == DEFAULT_ENHANCEMENT.recording


@pytest.mark.asyncio
async def test_convert_injects_progression_and_vocals() -> None:
    result = await MaxConversionService(articulation_chance=0.0).convert(
        STANDARD_PROMPT,
        create_rng(3),
        seed_genres=["soul"],
        bpm_range="between 70 and 90",
        chord_progression="The Soul Vamp (I-IV)",
        vocal_style="Alto, Soulful Delivery, Ad Libs",
    )
    instruments = field_value(result.text, "instruments")
    assert instruments == (
        "piano, upright bass, The Soul Vamp (I-IV) harmony, alto vocals, soulful delivery, ad libs"
    )
    assert field_value(result.text, "genre") == "Soul"
    assert result.bpm_range == "between 70 and 90"


@pytest.mark.asyncio
async def test_convert_fills_missing_instruments_from_genre() -> None:
    result = await MaxConversionService(articulation_chance=0.0).convert(
        "Genre: house\nA warm sunset groove", create_rng(4)
    )
    instruments = field_value(result.text, "instruments")
    assert instruments
    assert 1 <= len(instruments.split(", ")) <= 3


@pytest.mark.asyncio
async def test_convert_uses_llm_enhancement() -> None:
    reply = '```json\n{"styleTags": "cassette warmth, narrow mono", "recording": "basement take"}\n```'
    service = MaxConversionService(_llm(lambda request: _reply(reply)))
    result = await service.convert(STANDARD_PROMPT, create_rng(5))
    assert not result.used_fallback
    assert field_value(result.text, "style tags") == "cassette warmth, narrow mono"
    assert field_value(result.text, "recording") == "basement take"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500, text="boom"),
        lambda request: _reply("sorry, I cannot help"),
    ],
)
async def test_convert_survives_collaborator_failures(handler) -> None:
    result = await MaxConversionService(_llm(handler)).convert(STANDARD_PROMPT, create_rng(6))
    assert result.was_converted
    assert result.used_fallback
    assert result.enhancement == DEFAULT_ENHANCEMENT


@pytest.mark.asyncio
async def test_convert_survives_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("unreachable", request=request)

    result = await MaxConversionService(_llm(handler)).convert(STANDARD_PROMPT, create_rng(7))
    assert result.used_fallback
    assert is_max_format(result.text)


@pytest.mark.asyncio
async def test_convert_keeps_an_existing_harmony_tag() -> None:
    text = "Genre: jazz\nInstruments: piano, The Standard (I-V-vi-IV) harmony\nLate night"
    result = await MaxConversionService(articulation_chance=0.0).convert(
        text, create_rng(8), chord_progression="The Blues (I-IV-V)"
    )
    instruments = field_value(result.text, "instruments")
    assert instruments == "piano, The Standard (I-V-vi-IV) harmony"
