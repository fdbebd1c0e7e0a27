"""Section composition for the standard prompt encoding.

Each of the five sections picks a template, a few instruments from the genre
pools, a mood and a descriptor. A rolling window of recently used instruments
keeps consecutive sections from repeating the same lead. Narrative arcs and
contrast entries override the mood and dynamics of individual sections.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from ..app.models import (
    ArcDynamics,
    ComposedSection,
    ContrastSection,
    Dynamics,
    SchemaSectionType,
    SectionEnergy,
    SectionOverride,
    SectionType,
)
from .registry import GENRE_REGISTRY
from .rng import Rng, select_one, select_random
from .selector import ARTICULATION_CHANCE, articulate_instrument, select_instruments_for_genre

RECENT_INSTRUMENT_WINDOW = 4
MOODS_PER_SECTION = 2


@dataclass(frozen=True)
class SectionTemplate:
    type: SectionType
    templates: tuple[str, ...]
    instrument_count: int
    energy: SectionEnergy


SECTION_TEMPLATES: dict[SectionType, SectionTemplate] = {
    SectionType.INTRO: SectionTemplate(
        type=SectionType.INTRO,
        templates=(
            "Sparse {instrument1} setting a {mood} scene",
            "{descriptor} {instrument1} introduces the {mood} atmosphere",
            "Ambient {instrument1} fades in with {mood} undertones",
            "{mood} {instrument1} opens with {descriptor} tones",
            "Gentle {instrument1} establishes {mood} mood",
            "{instrument1} sets the stage with {descriptor} textures",
        ),
        instrument_count=1,
        energy=SectionEnergy.LOW,
    ),
    SectionType.VERSE: SectionTemplate(
        type=SectionType.VERSE,
        templates=(
            "{instrument1} enters as {instrument2} weaves {mood} melodic lines",
            "{descriptor} {instrument1} drives the narrative with {instrument2} support",
            "{mood} groove builds with {instrument1} and {instrument2}",
            "{instrument1} lays the foundation while {instrument2} adds {descriptor} color",
            "Storytelling {instrument1} leads with {mood} {instrument2} phrases",
            "{descriptor} interplay between {instrument1} and {instrument2}",
        ),
        instrument_count=2,
        energy=SectionEnergy.MEDIUM,
    ),
    SectionType.CHORUS: SectionTemplate(
        type=SectionType.CHORUS,
        templates=(
            "Full arrangement peaks with {descriptor} {instrument1} and {instrument2}",
            "{mood} energy surges as {instrument1} and {instrument2} unite",
            "Layered {instrument1} drives the {mood} hook with {instrument2}",
            "Anthemic {instrument1} soars over {descriptor} {instrument2}",
            "{mood} climax with powerful {instrument1} and {instrument2}",
            "{descriptor} full ensemble featuring {instrument1} and {instrument2}",
        ),
        instrument_count=2,
        energy=SectionEnergy.HIGH,
    ),
    SectionType.BRIDGE: SectionTemplate(
        type=SectionType.BRIDGE,
        templates=(
            "Stripped down {instrument1} creates {mood} contrast",
            "{descriptor} {instrument1} solo offers introspection",
            "{mood} breakdown featuring intimate {instrument1}",
            "Contrasting {instrument1} provides {descriptor} texture",
            "Reflective {instrument1} moment with {mood} undertones",
            "{instrument1} break shifts to {descriptor} territory",
        ),
        instrument_count=1,
        energy=SectionEnergy.LOW,
    ),
    SectionType.OUTRO: SectionTemplate(
        type=SectionType.OUTRO,
        templates=(
            "Gentle fade with {mood} {instrument1} and {instrument2} swells",
            "{instrument1} resolves as {instrument2} provides {descriptor} closure",
            "{mood} resolution with lingering {instrument1}",
            "{descriptor} {instrument1} fades into {instrument2} echoes",
            "Peaceful {instrument1} brings {mood} conclusion",
            "{instrument1} and {instrument2} create {descriptor} final moments",
        ),
        instrument_count=2,
        energy=SectionEnergy.LOW,
    ),
}

SECTION_ORDER: tuple[SectionType, ...] = tuple(SECTION_TEMPLATES)

GENERIC_MOODS: tuple[str, ...] = (
    "expressive",
    "dynamic",
    "emotional",
    "compelling",
    "atmospheric",
    "evocative",
)

GENERIC_DESCRIPTORS: tuple[str, ...] = (
    "rich",
    "warm",
    "bright",
    "smooth",
    "textured",
    "resonant",
    "subtle",
    "bold",
    "delicate",
    "expansive",
)

DYNAMICS_DESCRIPTORS: dict[Dynamics, tuple[str, ...]] = {
    Dynamics.SOFT: ("delicate", "hushed", "subtle", "gentle", "tender"),
    Dynamics.BUILDING: ("swelling", "rising", "gathering", "mounting", "growing"),
    Dynamics.POWERFUL: ("bold", "commanding", "driving", "forceful", "full-bodied"),
    Dynamics.EXPLOSIVE: ("soaring", "thunderous", "blazing", "towering", "euphoric"),
}

SCHEMA_TO_SECTION: dict[SchemaSectionType, SectionType] = {
    SchemaSectionType.INTRO: SectionType.INTRO,
    SchemaSectionType.VERSE: SectionType.VERSE,
    SchemaSectionType.PRE_CHORUS: SectionType.VERSE,
    SchemaSectionType.CHORUS: SectionType.CHORUS,
    SchemaSectionType.BRIDGE: SectionType.BRIDGE,
    SchemaSectionType.BREAKDOWN: SectionType.BRIDGE,
    SchemaSectionType.OUTRO: SectionType.OUTRO,
}

ARC_START_DYNAMICS = Dynamics.BUILDING
ARC_MIDDLE_DYNAMICS = Dynamics.POWERFUL
ARC_END_DYNAMICS = Dynamics.EXPLOSIVE

_PLACEHOLDER = re.compile(r"\{(instrument1|instrument2|mood|descriptor)\}")


def interpolate_template(template: str, values: Mapping[str, str]) -> str:
    """Fill placeholders in one pass; substituted values are never re-scanned."""

    def _replace(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(_replace, template)


def moods_for_genre(genre: str) -> tuple[str, ...]:
    definition = GENRE_REGISTRY.get(genre)
    if definition is not None and definition.moods:
        return tuple(mood.lower() for mood in definition.moods)
    return GENERIC_MOODS


def descriptor_for(dynamics: Optional[Dynamics], rng: Rng) -> str:
    if dynamics is not None:
        return select_one(DYNAMICS_DESCRIPTORS[dynamics], rng)
    return select_one(GENERIC_DESCRIPTORS, rng)


def select_section_instruments(
    genre: str,
    count: int,
    recent: Sequence[str],
    rng: Rng,
) -> list[str]:
    """Pick ``count`` base instruments, avoiding ``recent`` while the pool allows it."""
    pool = select_instruments_for_genre(genre, rng, max_tags=max(count * 3, 6))
    recent_folded = {item.casefold() for item in recent}
    available = [item for item in pool if item.casefold() not in recent_folded]
    candidates = available if len(available) >= count else pool
    return select_random(candidates, count, rng)


def narrative_arc_to_overrides(arc: Sequence[str]) -> dict[SectionType, SectionOverride]:
    """Project an arc onto sections: start to intro/verse, middle to chorus/bridge, end to outro."""
    moods = [mood.strip() for mood in arc if mood and mood.strip()]
    if not moods:
        return {}
    start = moods[0]
    middle = moods[len(moods) // 2] if len(moods) >= 3 else moods[0]
    end = moods[-1]
    return {
        SectionType.INTRO: SectionOverride(mood=start, dynamics=ARC_START_DYNAMICS),
        SectionType.VERSE: SectionOverride(mood=start, dynamics=ARC_START_DYNAMICS),
        SectionType.CHORUS: SectionOverride(mood=middle, dynamics=ARC_MIDDLE_DYNAMICS),
        SectionType.BRIDGE: SectionOverride(mood=middle, dynamics=ARC_MIDDLE_DYNAMICS),
        SectionType.OUTRO: SectionOverride(mood=end, dynamics=ARC_END_DYNAMICS),
    }


def contrast_to_overrides(contrast: Iterable[ContrastSection]) -> dict[SectionType, SectionOverride]:
    overrides: dict[SectionType, SectionOverride] = {}
    for entry in contrast:
        overrides[SCHEMA_TO_SECTION[entry.section]] = SectionOverride(
            mood=entry.mood, dynamics=entry.dynamics
        )
    return overrides


def merge_overrides(
    contrast: Optional[Iterable[ContrastSection]],
    arc: Optional[Sequence[str]],
) -> dict[SectionType, SectionOverride]:
    merged = narrative_arc_to_overrides(arc or ())
    merged.update(contrast_to_overrides(contrast or ()))
    return merged


def infer_dynamics_from_arc(arc: Sequence[str]) -> ArcDynamics:
    if len(arc) <= 2:
        return ArcDynamics.STEADY
    if len(arc) <= 4:
        return ArcDynamics.BUILDING
    return ArcDynamics.DRAMATIC


@dataclass
class ComposedSections:
    text: str
    sections: list[ComposedSection] = field(default_factory=list)
    instruments: list[str] = field(default_factory=list)


class SectionComposer:
    """Builds the INTRO..OUTRO section blocks for one genre."""

    def __init__(self, articulation_chance: float = ARTICULATION_CHANCE):
        self._articulation_chance = articulation_chance

    def build_section(
        self,
        section_type: SectionType,
        genre: str,
        rng: Rng,
        recent: Sequence[str] = (),
        override: Optional[SectionOverride] = None,
    ) -> tuple[ComposedSection, list[str]]:
        """Return the composed section and the base instruments it used."""
        template = SECTION_TEMPLATES[section_type]
        template_text = select_one(template.templates, rng)
        bases = select_section_instruments(genre, template.instrument_count, recent, rng)
        instruments = [
            articulate_instrument(item, rng, self._articulation_chance) for item in bases
        ]

        genre_moods = moods_for_genre(genre)
        if override is not None and override.mood:
            mood = override.mood
            select_random(genre_moods, 1, rng)
        else:
            picked = select_random(genre_moods, MOODS_PER_SECTION, rng)
            mood = picked[0] if picked else "expressive"

        dynamics = override.dynamics if override is not None else None
        values = {
            "instrument1": instruments[0] if instruments else "instrumentation",
            "instrument2": instruments[1]
            if len(instruments) > 1
            else (instruments[0] if instruments else "accompaniment"),
            "mood": mood,
            "descriptor": descriptor_for(dynamics, rng),
        }
        text = f"[{section_type.name}] {interpolate_template(template_text, values)}"
        section = ComposedSection(
            type=section_type,
            text=text,
            instruments=instruments,
            mood=mood,
            energy=template.energy,
            dynamics=dynamics,
        )
        return section, bases

    def compose(
        self,
        genre: str,
        rng: Rng,
        contrast: Optional[Iterable[ContrastSection]] = None,
        narrative_arc: Optional[Sequence[str]] = None,
    ) -> ComposedSections:
        overrides = merge_overrides(contrast, narrative_arc)
        recent: list[str] = []
        result = ComposedSections(text="")
        for section_type in SECTION_ORDER:
            section, bases = self.build_section(
                section_type, genre, rng, recent, overrides.get(section_type)
            )
            result.sections.append(section)
            result.instruments.extend(section.instruments)
            recent = [*recent, *bases][-RECENT_INSTRUMENT_WINDOW:]
        result.text = "\n".join(section.text for section in result.sections)
        return result
