"""Conversion of free-form or standard prompts into the MAX encoding."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from loguru import logger

from ..app.models import ConversionResult, Enhancement, SchemaSectionType
from .classifier import parse_genre_components
from .collaborators import LLMClient, clean_json_response
from .exceptions import CollaboratorError
from .formats import (
    MaxFields,
    build_max_prompt,
    inject_chord_progression,
    inject_instrument_tags,
    is_max_format,
    split_csv,
)
from .registry import DEFAULT_GENRE, genre_display_name, get_genre
from .rng import Rng
from .selector import ARTICULATION_CHANCE, articulate_selection, select_instruments_for_genre
from .tempo import bpm_range_text
from .vocals import vocal_style_tags

DEFAULT_INSTRUMENTS_FALLBACK = "ambient pad, subtle textures"
FALLBACK_INSTRUMENT_COUNT = 3

EMPTY_FIELD_ENHANCEMENT = Enhancement(
    style_tags="natural dynamics, room tone, organic feel",
    recording="studio session with warm analog character",
)
DEFAULT_ENHANCEMENT = Enhancement(
    style_tags="natural dynamics, room tone, organic feel, subtle imperfections",
    recording="intimate studio session with warm analog character",
)

ENHANCE_SYSTEM_PROMPT = """You are a music prompt conversion assistant. Given a parsed music prompt, \
generate ONLY two fields for the MAX prompt format:

1. style tags: Recording character descriptors that describe the sonic texture (NOT genre/style). Examples:
   - "tape recorder, close-up, raw performance texture, narrow mono image"
   - "studio polish, wide stereo, pristine digital, high fidelity"
   - "lo-fi warmth, cassette saturation, room ambience, vintage character"

2. recording: A performance/capture context description. Examples:
   - "live capture in stone chapel with vintage ribbon microphone, analog console"
   - "intimate bedroom recording session, single condenser mic, natural acoustics"
   - "professional studio session, multitrack recording, isolated booth"

RULES:
- Style tags should reflect RECORDING CHARACTER, not musical genre
- Recording should describe a realistic capture scenario
- Both should complement the mood and genre
- Keep each field concise (1 line)

OUTPUT FORMAT (JSON only, no markdown):
{"styleTags": "...", "recording": "..."}"""

_GENRE_LINE = re.compile(r"^Genre:\s*(.+)", re.IGNORECASE)
_MOOD_LINE = re.compile(r"^Moods?:\s*(.+)", re.IGNORECASE)
_INSTRUMENT_LINE = re.compile(r"^Instruments?:\s*(.+)", re.IGNORECASE)
_SECTION_ONLY_LINE = re.compile(r"^\[[^\]]+\]$")
_SECTION_PREFIX = re.compile(r"^\[[^\]]+\]")
_SECTION_BLOCK = re.compile(r"\[([^\]]+)\]\s*\n?([\s\S]*?)(?=\[[^\]]+\]|$)")
_NUMBERED_TAG = re.compile(r"^(.+?)(?:\s+\d+)?$")

SECTION_TAGS = frozenset(section.value.upper() for section in SchemaSectionType)


@dataclass(frozen=True)
class SectionContent:
    tag: str
    content: str


@dataclass
class ParsedPrompt:
    description: str = ""
    genre: Optional[str] = None
    moods: list[str] = field(default_factory=list)
    instruments: list[str] = field(default_factory=list)
    sections: list[SectionContent] = field(default_factory=list)


def extract_sections(text: str) -> list[SectionContent]:
    sections: list[SectionContent] = []
    for match in _SECTION_BLOCK.finditer(text):
        tag = match.group(1).strip().upper()
        content = match.group(2).strip()
        if _NUMBERED_TAG.sub(r"\1", tag) not in SECTION_TAGS:
            continue
        if content:
            sections.append(SectionContent(tag=tag, content=content))
    return sections


def parse_non_max_prompt(text: str) -> ParsedPrompt:
    """Pull genre, moods, instruments, sections and a description line out of a prompt."""
    parsed = ParsedPrompt(sections=extract_sections(text))
    lines = [line.strip() for line in text.split("\n")]
    consumed: set[int] = set()
    for index, line in enumerate(lines):
        if not line:
            continue
        genre_match = _GENRE_LINE.match(line)
        if genre_match:
            parsed.genre = genre_match.group(1).strip().lower()
            consumed.add(index)
            continue
        mood_match = _MOOD_LINE.match(line)
        if mood_match:
            parsed.moods.extend(split_csv(mood_match.group(1)))
            consumed.add(index)
            continue
        instrument_match = _INSTRUMENT_LINE.match(line)
        if instrument_match:
            parsed.instruments.extend(split_csv(instrument_match.group(1)))
            consumed.add(index)
            continue
        if _SECTION_ONLY_LINE.match(line):
            consumed.add(index)

    for index, line in enumerate(lines):
        if line and index not in consumed and not _SECTION_PREFIX.match(line):
            parsed.description = line
            break
    return parsed


def _enhance_user_prompt(parsed: ParsedPrompt) -> str:
    parts: list[str] = []
    if parsed.description:
        parts.append(f"Description: {parsed.description}")
    if parsed.genre:
        parts.append(f"Genre: {parsed.genre}")
    if parsed.moods:
        parts.append(f"Mood: {', '.join(parsed.moods)}")
    if parsed.instruments:
        parts.append(f"Instruments: {', '.join(parsed.instruments)}")
    if parsed.sections:
        parts.append("\nSection content summary:")
        parts.extend(f"[{section.tag}] {section.content}" for section in parsed.sections)
    return "\n".join(parts)


def parse_enhancement(text: str) -> tuple[Enhancement, bool]:
    """Parse the collaborator's JSON reply; the flag is True when the default pair was used."""
    try:
        payload = json.loads(clean_json_response(text))
    except ValueError:
        return DEFAULT_ENHANCEMENT, True
    if not isinstance(payload, dict):
        return DEFAULT_ENHANCEMENT, True
    style_tags = str(payload.get("styleTags") or "").strip()
    recording = str(payload.get("recording") or "").strip()
    return (
        Enhancement(
            style_tags=style_tags or EMPTY_FIELD_ENHANCEMENT.style_tags,
            recording=recording or EMPTY_FIELD_ENHANCEMENT.recording,
        ),
        False,
    )


@dataclass(frozen=True)
class ResolvedGenre:
    display: str
    lookup: str
    components: tuple[str, ...]


def resolve_conversion_genre(detected: Optional[str], seed_genres: Sequence[str] = ()) -> ResolvedGenre:
    """Seed genres win over the genre parsed from the prompt; both fall back to the default."""
    seeds = [key for genre in seed_genres for key in parse_genre_components(genre)]
    if seeds:
        unique = tuple(dict.fromkeys(seeds))
        return ResolvedGenre(
            display=", ".join(genre_display_name(key) for key in unique),
            lookup=unique[0],
            components=unique,
        )
    if detected:
        components = tuple(parse_genre_components(detected))
        return ResolvedGenre(
            display=detected,
            lookup=components[0] if components else DEFAULT_GENRE,
            components=components or (DEFAULT_GENRE,),
        )
    return ResolvedGenre(display=DEFAULT_GENRE, lookup=DEFAULT_GENRE, components=(DEFAULT_GENRE,))


class MaxConversionService:
    """Rewrites non-MAX prompts into the MAX encoding.

    Style tags and recording come from the enhance collaborator; any failure
    there (no client, timeout, provider error, malformed reply) yields
    :data:`DEFAULT_ENHANCEMENT` instead of an error.
    """

    def __init__(self, llm: Optional[LLMClient] = None, articulation_chance: float = ARTICULATION_CHANCE):
        self._llm = llm
        self._articulation_chance = articulation_chance

    async def enhance(self, parsed: ParsedPrompt) -> tuple[Enhancement, bool]:
        if self._llm is None:
            return DEFAULT_ENHANCEMENT, True
        try:
            text = await self._llm.complete(ENHANCE_SYSTEM_PROMPT, _enhance_user_prompt(parsed))
        except CollaboratorError as exc:
            logger.warning("enhancement failed, using default descriptors: {error}", error=str(exc))
            return DEFAULT_ENHANCEMENT, True
        enhancement, used_fallback = parse_enhancement(text)
        if used_fallback:
            logger.warning("enhancement reply was not JSON, using default descriptors")
        return enhancement, used_fallback

    def _instruments(self, parsed: ParsedPrompt, genre: ResolvedGenre, rng: Rng) -> str:
        instruments = parsed.instruments
        if not instruments:
            instruments = select_instruments_for_genre(
                genre.lookup, rng, max_tags=FALLBACK_INSTRUMENT_COUNT
            )
        if not instruments:
            return DEFAULT_INSTRUMENTS_FALLBACK
        rules = get_genre(genre.lookup).exclusion_rules
        return ", ".join(articulate_selection(instruments, rng, self._articulation_chance, rules))

    async def convert(
        self,
        text: str,
        rng: Rng,
        *,
        seed_genres: Sequence[str] = (),
        bpm_range: Optional[str] = None,
        chord_progression: Optional[str] = None,
        vocal_style: Optional[str] = None,
    ) -> ConversionResult:
        if is_max_format(text):
            return ConversionResult(text=text, was_converted=False)

        parsed = parse_non_max_prompt(text)
        genre = resolve_conversion_genre(parsed.genre, seed_genres)
        bpm = bpm_range or bpm_range_text(genre.components)
        enhancement, used_fallback = await self.enhance(parsed)

        converted = build_max_prompt(
            MaxFields(
                genre=genre.display,
                bpm=bpm,
                instruments=self._instruments(parsed, genre, rng),
                style_tags=enhancement.style_tags,
                recording=enhancement.recording,
            )
        )
        if chord_progression:
            converted = inject_chord_progression(converted, f"{chord_progression} harmony")
        if vocal_style and vocal_style.strip():
            converted = inject_instrument_tags(converted, vocal_style_tags(vocal_style))
        return ConversionResult(
            text=converted,
            was_converted=True,
            genre=genre.display,
            bpm_range=bpm,
            enhancement=enhancement,
            used_fallback=used_fallback,
        )
