"""Vocal performance tags and per-genre vocal styles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .rng import Rng, roll_chance, select_one, select_random

VOCAL_PERFORMANCE_TAGS: dict[str, tuple[str, ...]] = {
    "breath_texture": ("breathy delivery", "airy vocals", "whispered tones", "smooth vocals", "raspy edge"),
    "vocal_power": ("belt technique", "powerful vocals", "soft delivery", "intimate whisper", "vocal restraint"),
    "techniques": (
        "falsetto sections",
        "chest voice dominance",
        "head voice clarity",
        "vibrato",
        "straight-tone delivery",
    ),
    "character": (
        "crooner style",
        "operatic delivery",
        "conversational vocals",
        "theatrical performance",
        "raw emotion",
    ),
    "layering": ("choir stacking", "vocal doubles", "harmony layers", "octave vocal layers", "unison vocal tracking"),
    "articulation": ("clear diction", "slurred phrasing", "staccato delivery", "legato phrasing"),
    "mic_technique": ("close-mic intimacy", "distant mic character", "proximity effect", "off-axis vocal warmth"),
    "genre_styles": ("soul vocal runs", "jazz scat vocalization", "gospel shouts", "country twang", "blues grit"),
}

DEFAULT_VOCAL_PROBABILITY = 0.5

# Chance that a genre's style tags carry vocal performance descriptors at all.
GENRE_VOCAL_PROBABILITY: dict[str, float] = {
    "pop": 0.95,
    "rnb": 0.95,
    "soul": 0.9,
    "trap": 0.95,
    "drill": 0.9,
    "country": 0.9,
    "jazz": 0.7,
    "blues": 0.8,
    "rock": 0.75,
    "indie": 0.8,
    "folk": 0.85,
    "punk": 0.8,
    "metal": 0.6,
    "classical": 0.3,
    "electronic": 0.4,
    "house": 0.5,
    "reggae": 0.75,
    "latin": 0.8,
    "funk": 0.7,
    "disco": 0.8,
    "hyperpop": 0.9,
    "ambient": 0.05,
    "newage": 0.05,
    "cinematic": 0.1,
    "symphonic": 0.2,
    "videogame": 0.1,
}

_ALL_VOCAL_TAGS: tuple[str, ...] = tuple(
    tag for tags in VOCAL_PERFORMANCE_TAGS.values() for tag in tags
)


def vocal_probability(genre: Optional[str]) -> float:
    return GENRE_VOCAL_PROBABILITY.get((genre or "").casefold().strip(), DEFAULT_VOCAL_PROBABILITY)


def select_vocal_tags(genre: Optional[str], count: int, rng: Rng) -> list[str]:
    if not roll_chance(vocal_probability(genre), rng):
        return []
    return select_random(_ALL_VOCAL_TAGS, count, rng)


@dataclass(frozen=True)
class VocalStyleTable:
    ranges: tuple[str, ...]
    deliveries: tuple[str, ...]
    techniques: tuple[str, ...]


@dataclass(frozen=True)
class VocalStyle:
    range: str
    delivery: str
    technique: str

    @property
    def tag(self) -> str:
        return f"{self.range} vocals, {self.delivery} delivery"

    @property
    def descriptor(self) -> str:
        return f"{self.range}, {self.delivery} Delivery, {self.technique}"


def _table(ranges: tuple[str, ...], deliveries: tuple[str, ...], techniques: tuple[str, ...]) -> VocalStyleTable:
    return VocalStyleTable(ranges=ranges, deliveries=deliveries, techniques=techniques)


GENRE_VOCAL_STYLES: dict[str, VocalStyleTable] = {
    "jazz": _table(
        ("Tenor", "Baritone", "Alto", "Mezzo Soprano"),
        ("Smooth", "Crooner Style", "Laid Back", "Intimate", "Melismatic"),
        ("Scat Fills", "Stacked Harmonies", "Ad Libs"),
    ),
    "pop": _table(
        ("Tenor", "Mezzo Soprano", "Alto"),
        ("Belting", "Powerful", "Confident", "Emotional", "Breathy"),
        ("Stacked Harmonies", "Singalong Chorus", "Ad Libs", "Layered Ooh Harmonies"),
    ),
    "rock": _table(
        ("Tenor", "Baritone"),
        ("Raspy", "Powerful", "Belting", "Urgent", "Emotional"),
        ("Gang Vocals", "Shouted Hooks", "Call And Response"),
    ),
    "electronic": _table(
        ("Soprano", "Mezzo Soprano", "Alto"),
        ("Airy", "Breathy", "Smooth", "Intimate"),
        ("Layered Ooh Harmonies", "Wordless Vocalise", "Ad Libs"),
    ),
    "rnb": _table(
        ("Tenor", "Alto", "Mezzo Soprano"),
        ("Smooth", "Melismatic", "Soulful", "Intimate", "Falsetto"),
        ("Stacked Harmonies", "Ad Libs", "Call And Response", "Occasional Falsetto"),
    ),
    "soul": _table(
        ("Tenor", "Baritone", "Alto", "Mezzo Soprano"),
        ("Soulful", "Powerful", "Belting", "Emotional", "Melismatic"),
        ("Gospel Style Backing", "Call And Response", "Ad Libs", "Stacked Harmonies"),
    ),
    "country": _table(
        ("Tenor", "Baritone", "Mezzo Soprano"),
        ("Storytelling", "Warm", "Honest", "Emotional", "Gentle"),
        ("Tight Three Part Harmonies", "Singalong Chorus", "Call And Response"),
    ),
    "folk": _table(
        ("Tenor", "Alto", "Baritone"),
        ("Intimate", "Storytelling", "Warm", "Gentle", "Close Mic"),
        ("Tight Three Part Harmonies", "Singalong Chorus", "Group Backing Vocals"),
    ),
    "metal": _table(
        ("Tenor", "Baritone", "Bass"),
        ("Powerful", "Aggressive", "Raspy", "Theatrical"),
        ("Shouted Hooks", "Gang Vocals", "Wordless Vocalise"),
    ),
    "punk": _table(
        ("Tenor", "Alto"),
        ("Raspy", "Urgent", "Raw", "Shouting", "Melodic"),
        ("Gang Vocals", "Shouted Hooks", "Singalong Chorus"),
    ),
    "classical": _table(
        ("Soprano", "Tenor", "Baritone", "Bass"),
        ("Theatrical", "Powerful", "Dramatic", "Operatic"),
        ("Wordless Vocalise", "Stacked Harmonies"),
    ),
    "ambient": _table(
        ("Soprano", "Alto"),
        ("Airy", "Breathy", "Ethereal", "Soft", "Intimate"),
        ("Wordless Vocalise", "Layered Ooh Harmonies"),
    ),
    "lofi": _table(
        ("Tenor", "Alto"),
        ("Intimate", "Breathy", "Soft", "Laid Back", "Close Mic"),
        ("Layered Ooh Harmonies", "Ad Libs"),
    ),
    "blues": _table(
        ("Tenor", "Baritone", "Alto"),
        ("Soulful", "Raspy", "Emotional", "Melismatic", "Storytelling"),
        ("Call And Response", "Ad Libs", "Shouted Hooks"),
    ),
    "latin": _table(
        ("Tenor", "Baritone", "Alto", "Mezzo Soprano"),
        ("Smooth", "Passionate", "Romantic", "Warm"),
        ("Call And Response", "Stacked Harmonies", "Ad Libs"),
    ),
    "retro": _table(
        ("Tenor", "Baritone", "Mezzo Soprano"),
        ("Crooner Style", "Smooth", "Warm", "Theatrical"),
        ("Doo Wop Backing", "Tight Three Part Harmonies", "Singalong Chorus"),
    ),
    "synthwave": _table(
        ("Tenor", "Baritone", "Alto"),
        ("Smooth", "Breathy", "Dramatic", "Airy"),
        ("Layered Ooh Harmonies", "Double Tracked Lead"),
    ),
    "cinematic": _table(
        ("Soprano", "Tenor", "Baritone"),
        ("Theatrical", "Powerful", "Dramatic", "Ethereal"),
        ("Wordless Vocalise", "Stacked Harmonies", "Gospel Style Backing"),
    ),
    "trap": _table(
        ("Tenor", "Baritone"),
        ("Laid Back", "Melismatic", "Emotional", "Smooth"),
        ("Ad Libs", "Layered Ooh Harmonies", "Double Tracked Lead"),
    ),
    "videogame": _table(
        ("Soprano", "Tenor", "Alto"),
        ("Theatrical", "Dramatic", "Ethereal", "Powerful"),
        ("Wordless Vocalise", "Stacked Harmonies"),
    ),
    "symphonic": _table(
        ("Soprano", "Tenor", "Baritone"),
        ("Theatrical", "Powerful", "Dramatic", "Operatic"),
        ("Wordless Vocalise", "Stacked Harmonies", "Gospel Style Backing"),
    ),
}

DEFAULT_VOCAL_STYLE = _table(
    ("Tenor", "Alto", "Mezzo Soprano"),
    ("Smooth", "Emotional", "Warm"),
    ("Stacked Harmonies", "Ad Libs"),
)


def vocal_style_for_genre(genre: Optional[str], rng: Rng) -> VocalStyle:
    table = GENRE_VOCAL_STYLES.get((genre or "").casefold().strip(), DEFAULT_VOCAL_STYLE)
    return VocalStyle(
        range=select_one(table.ranges, rng),
        delivery=select_one(table.deliveries, rng),
        technique=select_one(table.techniques, rng),
    )


def vocal_style_tags(descriptor: str) -> list[str]:
    """Split a ``"Range, Delivery Delivery, Technique"`` descriptor into instrument-line tags."""
    items = [item.strip() for item in descriptor.split(",") if item.strip()]
    if not items:
        return []
    head, *rest = items
    tags = [head.lower() if "vocal" in head.lower() else f"{head.lower()} vocals"]
    tags.extend(item.lower() for item in rest)
    return tags
