"""Deterministic prompt assembly in the MAX and standard encodings."""

from __future__ import annotations

from typing import Optional

from loguru import logger

from ..app.models import ComposedSection, PromptRequest, PromptResult
from .classifier import Classifier, display_genre_for
from .formats import (
    MAX_CHARS,
    MaxFields,
    build_max_prompt,
    build_standard_prompt,
    truncate_prompt,
)
from .genre_count import adjust_genre_components
from .production import assemble_style_tags
from .progressions import select_progression
from .recording import select_recording_context, select_recording_descriptors
from .registry import get_genre
from .rng import Rng, select_one
from .sections import SectionComposer, infer_dynamics_from_arc
from .selector import (
    ARTICULATION_CHANCE,
    DEFAULT_MULTI_GENRE_INSTRUMENTS,
    articulate_selection,
    combined_exclusion_rules,
    drop_conflicts,
    select_instruments_for_genre,
    select_instruments_for_multi_genre,
)
from .tempo import bpm_range_text
from .vocals import vocal_style_for_genre

MUSICAL_KEYS: tuple[str, ...] = ("C", "C#", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B")
MUSICAL_MODES: tuple[str, ...] = (
    "major",
    "minor",
    "dorian",
    "mixolydian",
    "lydian",
    "phrygian",
    "aeolian",
)

HEADER_MOOD_COUNT = 3
DEFAULT_HEADER_MOOD = "Energetic"
RECORDING_DESCRIPTOR_COUNT = 2


def select_key_and_mode(rng: Rng) -> str:
    return f"{select_one(MUSICAL_KEYS, rng)} {select_one(MUSICAL_MODES, rng)}"


class PromptAssembler:
    """Builds a complete prompt from a request and a seeded random source.

    Genre resolution is always the first draw from ``rng`` and the BPM range
    depends only on the resolved components, so both encodings built from the
    same seed and description agree on genre and tempo.
    """

    def __init__(
        self,
        classifier: Classifier,
        *,
        composer: Optional[SectionComposer] = None,
        max_chars: int = MAX_CHARS,
        articulation_chance: float = ARTICULATION_CHANCE,
    ):
        self._classifier = classifier
        self._composer = composer or SectionComposer(articulation_chance)
        self._max_chars = max_chars
        self._articulation_chance = articulation_chance

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    def _select_instruments(self, request: PromptRequest, components: list[str], rng: Rng) -> list[str]:
        if len(components) > 1:
            user = [item.strip() for item in request.user_instruments if item.strip()]
            blended = select_instruments_for_multi_genre(
                components,
                rng,
                max_instruments=DEFAULT_MULTI_GENRE_INSTRUMENTS,
                articulation_chance=self._articulation_chance,
            )
            merged = drop_conflicts([*user, *blended], combined_exclusion_rules(components))
            return merged[:DEFAULT_MULTI_GENRE_INSTRUMENTS]
        selected = select_instruments_for_genre(
            components[0], rng, user_instruments=request.user_instruments, inject=True
        )
        return articulate_selection(
            selected, rng, self._articulation_chance, get_genre(components[0]).exclusion_rules
        )

    def build(self, request: PromptRequest, rng: Rng) -> PromptResult:
        resolution = self._classifier.resolve_genre(
            request.description, request.genre_override, rng
        )
        components = list(resolution.components)
        display_genre = resolution.display_genre
        if request.genre_count is not None and request.genre_count != len(components):
            components = adjust_genre_components(components, request.genre_count, rng)
            display_genre = display_genre_for(components)
        primary = components[0]

        bpm = bpm_range_text(components)
        modes = self._classifier.select_modes(request.description, request.genre_override)
        instruments = self._select_instruments(request, components, rng)
        descriptors = select_recording_descriptors(primary, RECORDING_DESCRIPTOR_COUNT, rng)
        style_tags = assemble_style_tags(components, rng, recording_phrases=descriptors.phrases)
        recording = select_recording_context(primary, rng, request.scene)
        progression = select_progression(primary, rng, request.description)
        vocal_style = vocal_style_for_genre(primary, rng)

        arc_dynamics = infer_dynamics_from_arc(request.narrative_arc) if request.narrative_arc else None
        key: Optional[str] = None
        sections: list[ComposedSection] = []
        if request.max_mode:
            instrument_line = ", ".join([*instruments, progression.harmony_tag, vocal_style.tag])
            text = build_max_prompt(
                MaxFields(
                    genre=display_genre,
                    bpm=bpm,
                    instruments=instrument_line,
                    style_tags=", ".join(style_tags),
                    recording=recording,
                )
            )
        else:
            key = select_key_and_mode(rng)
            composed = self._composer.compose(
                primary, rng, contrast=request.contrast, narrative_arc=request.narrative_arc
            )
            sections = composed.sections
            moods = style_tags[:HEADER_MOOD_COUNT]
            text = build_standard_prompt(
                mood=moods[0] if moods else DEFAULT_HEADER_MOOD,
                display_genre=display_genre,
                key=key,
                bpm=bpm,
                moods=moods,
                instruments=instruments,
                style_tags=style_tags,
                recording=recording,
                sections_text=composed.text,
            )

        truncated = truncate_prompt(text, self._max_chars)
        if len(truncated) < len(text):
            logger.debug(
                "prompt truncated from {before} to {after} characters",
                before=len(text),
                after=len(truncated),
            )
        return PromptResult(
            text=truncated,
            max_mode=request.max_mode,
            genre=resolution.detected or primary,
            display_genre=display_genre,
            components=components,
            bpm_range=bpm,
            instruments=instruments,
            style_tags=style_tags,
            recording=[recording, *descriptors.phrases],
            sections=sections,
            modes=modes,
            key=key,
            chord_progression=progression.short,
            vocal_style=vocal_style.descriptor,
            arc_dynamics=arc_dynamics,
        )
