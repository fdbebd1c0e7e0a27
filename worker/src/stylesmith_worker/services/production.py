"""Production descriptors, realism tags and weighted style-tag assembly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .registry import get_genre
from .rng import Rng, roll_chance, select_one, select_random, shuffle
from .vocals import select_vocal_tags

MAX_STYLE_TAGS = 10
MOODS_PER_COMPONENT = 2
TEXTURE_TAG_COUNT = 2
CLARITY_TAG_COUNT = 2

REVERB_TYPES: tuple[str, ...] = (
    "Long Hall Reverb",
    "Short Room Reverb",
    "Cathedral Reverb",
    "Plate Reverb",
    "Spring Reverb",
    "Chamber Reverb",
    "Studio Reverb",
    "Concert Hall Reverb",
    "Lounge Club Reverb",
    "Wide Stereo Reverb",
    "Distant Room Reverb",
    "Tight Dry Room",
    "Vintage Echo Chamber",
    "Natural Space Reverb",
)

RECORDING_TEXTURES: tuple[str, ...] = (
    "Polished Production",
    "Raw Performance Texture",
    "Vintage Warmth",
    "Lo-Fi Dusty",
    "Crystal Clear",
    "Analog Warmth",
    "Tape Saturation",
    "Digital Precision",
    "Organic Feel",
    "Intimate Recording",
    "Live Room Sound",
    "Layered Depth",
    "Atmospheric Space",
    "Cinematic Width",
    "Rich Saturation",
)

STEREO_IMAGING: tuple[str, ...] = (
    "Wide Stereo",
    "Narrow Mono",
    "Centered Focus",
    "Panned Elements",
    "Spacious Mix",
    "Tight Centered Mix",
    "Immersive Surround Feel",
    "Binaural Width",
    "Mid-Side Enhanced",
)

DYNAMIC_DESCRIPTORS: tuple[str, ...] = (
    "Dynamic Range",
    "Compressed Punch",
    "Natural Dynamics",
    "Soft to Powerful Build",
    "Consistent Energy",
    "Breathing Room",
    "Vintage Compression Warmth",
    "Transparent Limiting",
    "Uncompressed Raw Dynamics",
)


@dataclass(frozen=True)
class ProductionStyle:
    reverbs: tuple[str, ...]
    textures: tuple[str, ...]
    dynamics: tuple[str, ...]


def _style(reverbs: Sequence[str], textures: Sequence[str], dynamics: Sequence[str]) -> ProductionStyle:
    return ProductionStyle(tuple(reverbs), tuple(textures), tuple(dynamics))


GENRE_PRODUCTION_STYLES: dict[str, ProductionStyle] = {
    "jazz": _style(
        ("Long Hall Reverb", "Lounge Club Reverb", "Studio Reverb", "Chamber Reverb"),
        ("Analog Warmth", "Intimate Recording", "Live Room Sound", "Organic Feel"),
        ("Natural Dynamics", "Breathing Room", "Dynamic Range"),
    ),
    "pop": _style(
        ("Plate Reverb", "Short Room Reverb", "Studio Reverb"),
        ("Polished Production", "Crystal Clear", "Digital Precision"),
        ("Compressed Punch", "Consistent Energy", "Transparent Limiting"),
    ),
    "rock": _style(
        ("Short Room Reverb", "Plate Reverb", "Tight Dry Room"),
        ("Raw Performance Texture", "Analog Warmth", "Live Room Sound"),
        ("Dynamic Range", "Compressed Punch", "Natural Dynamics"),
    ),
    "electronic": _style(
        ("Wide Stereo Reverb", "Plate Reverb", "Long Hall Reverb"),
        ("Digital Precision", "Crystal Clear", "Polished Production"),
        ("Compressed Punch", "Consistent Energy", "Transparent Limiting"),
    ),
    "ambient": _style(
        ("Long Hall Reverb", "Cathedral Reverb", "Wide Stereo Reverb"),
        ("Organic Feel", "Atmospheric Space", "Analog Warmth"),
        ("Natural Dynamics", "Breathing Room", "Soft to Powerful Build"),
    ),
    "classical": _style(
        ("Concert Hall Reverb", "Cathedral Reverb", "Chamber Reverb"),
        ("Organic Feel", "Live Room Sound", "Crystal Clear"),
        ("Dynamic Range", "Natural Dynamics", "Soft to Powerful Build"),
    ),
    "lofi": _style(
        ("Short Room Reverb", "Distant Room Reverb", "Spring Reverb"),
        ("Lo-Fi Dusty", "Vintage Warmth", "Tape Saturation", "Analog Warmth"),
        ("Natural Dynamics", "Breathing Room"),
    ),
    "blues": _style(
        ("Spring Reverb", "Lounge Club Reverb", "Short Room Reverb"),
        ("Analog Warmth", "Vintage Warmth", "Raw Performance Texture"),
        ("Natural Dynamics", "Dynamic Range"),
    ),
    "rnb": _style(
        ("Plate Reverb", "Studio Reverb", "Short Room Reverb"),
        ("Polished Production", "Analog Warmth", "Intimate Recording"),
        ("Compressed Punch", "Natural Dynamics"),
    ),
    "soul": _style(
        ("Plate Reverb", "Chamber Reverb", "Studio Reverb"),
        ("Analog Warmth", "Vintage Warmth", "Live Room Sound"),
        ("Dynamic Range", "Natural Dynamics"),
    ),
    "country": _style(
        ("Short Room Reverb", "Spring Reverb", "Studio Reverb"),
        ("Organic Feel", "Analog Warmth", "Live Room Sound"),
        ("Natural Dynamics", "Dynamic Range"),
    ),
    "folk": _style(
        ("Short Room Reverb", "Chamber Reverb", "Natural Space Reverb"),
        ("Organic Feel", "Intimate Recording", "Analog Warmth"),
        ("Natural Dynamics", "Breathing Room"),
    ),
    "metal": _style(
        ("Tight Dry Room", "Short Room Reverb", "Plate Reverb"),
        ("Raw Performance Texture", "Digital Precision", "Polished Production"),
        ("Compressed Punch", "Consistent Energy"),
    ),
    "punk": _style(
        ("Tight Dry Room", "Short Room Reverb", "Spring Reverb"),
        ("Raw Performance Texture", "Live Room Sound", "Analog Warmth"),
        ("Compressed Punch", "Consistent Energy"),
    ),
    "synthwave": _style(
        ("Long Hall Reverb", "Plate Reverb", "Wide Stereo Reverb"),
        ("Analog Warmth", "Vintage Warmth", "Digital Precision"),
        ("Compressed Punch", "Consistent Energy"),
    ),
    "cinematic": _style(
        ("Concert Hall Reverb", "Cathedral Reverb", "Long Hall Reverb"),
        ("Polished Production", "Cinematic Width", "Organic Feel"),
        ("Dynamic Range", "Soft to Powerful Build"),
    ),
    "trap": _style(
        ("Short Room Reverb", "Plate Reverb", "Wide Stereo Reverb"),
        ("Digital Precision", "Polished Production", "Lo-Fi Dusty"),
        ("Compressed Punch", "Transparent Limiting"),
    ),
    "latin": _style(
        ("Plate Reverb", "Short Room Reverb", "Studio Reverb"),
        ("Live Room Sound", "Analog Warmth", "Organic Feel"),
        ("Natural Dynamics", "Dynamic Range"),
    ),
    "retro": _style(
        ("Spring Reverb", "Plate Reverb", "Vintage Echo Chamber"),
        ("Vintage Warmth", "Analog Warmth", "Tape Saturation"),
        ("Natural Dynamics", "Vintage Compression Warmth"),
    ),
    "videogame": _style(
        ("Long Hall Reverb", "Wide Stereo Reverb", "Concert Hall Reverb"),
        ("Digital Precision", "Crystal Clear", "Polished Production"),
        ("Dynamic Range", "Soft to Powerful Build"),
    ),
    "symphonic": _style(
        ("Concert Hall Reverb", "Cathedral Reverb", "Long Hall Reverb"),
        ("Polished Production", "Live Room Sound", "Crystal Clear"),
        ("Dynamic Range", "Soft to Powerful Build"),
    ),
}

# Genres without a curated style draw from the full catalogs.
DEFAULT_PRODUCTION_STYLE = _style(REVERB_TYPES, RECORDING_TEXTURES, DYNAMIC_DESCRIPTORS)


@dataclass(frozen=True)
class ProductionDescriptor:
    reverb: str
    texture: str
    stereo: str
    dynamic: str

    def tags(self) -> list[str]:
        return [self.reverb, self.texture, self.stereo, self.dynamic]

    def __str__(self) -> str:
        return ", ".join(self.tags())


def production_style_for(genre: Optional[str]) -> ProductionStyle:
    return GENRE_PRODUCTION_STYLES.get((genre or "").casefold(), DEFAULT_PRODUCTION_STYLE)


def build_production_descriptor(genre: Optional[str], rng: Rng) -> ProductionDescriptor:
    style = production_style_for(genre)
    return ProductionDescriptor(
        reverb=select_one(style.reverbs, rng).lower(),
        texture=select_one(style.textures, rng).lower(),
        stereo=select_one(STEREO_IMAGING, rng).lower(),
        dynamic=select_one(style.dynamics, rng).lower(),
    )


def _merged(values: Sequence[Sequence[str]]) -> tuple[str, ...]:
    merged: list[str] = []
    for group in values:
        for value in group:
            if value not in merged:
                merged.append(value)
    return tuple(merged)


def build_blended_production_descriptor(genres: Sequence[str], rng: Rng) -> ProductionDescriptor:
    """Pick each production dimension from the union of the component genres' styles."""
    if len(genres) <= 1:
        return build_production_descriptor(genres[0] if genres else None, rng)
    styles = [production_style_for(genre) for genre in genres]
    return ProductionDescriptor(
        reverb=select_one(_merged([style.reverbs for style in styles]), rng).lower(),
        texture=select_one(_merged([style.textures for style in styles]), rng).lower(),
        stereo=select_one(STEREO_IMAGING, rng).lower(),
        dynamic=select_one(_merged([style.dynamics for style in styles]), rng).lower(),
    )


REALISM_TAGS: dict[str, tuple[str, ...]] = {
    "room_acoustics": ("small room acoustics", "room tone", "natural reverb", "early reflections emphasized"),
    "mic_character": ("close mic presence", "off-axis mic placement", "proximity effect", "single-mic capture"),
    "performance": ("one-take performance", "natural timing drift", "human micro-rubato", "natural dynamics"),
    "human_sounds": ("breath detail", "audible inhales", "subtle lip noise"),
    "instrument_noises": ("pick noise", "fret squeak", "string slides", "finger movement noise"),
    "analog_character": ("tape saturation", "analog warmth", "harmonic grit", "gentle preamp drive"),
    "mix_character": ("limited stereo", "mono-compatible", "imperfections kept"),
}

GENRE_REALISM_CATEGORIES: dict[str, tuple[str, ...]] = {
    "country": ("room_acoustics", "mic_character", "performance", "human_sounds", "instrument_noises"),
    "folk": ("room_acoustics", "mic_character", "performance", "human_sounds", "instrument_noises"),
    "blues": ("room_acoustics", "performance", "human_sounds", "instrument_noises", "analog_character"),
    "jazz": ("room_acoustics", "mic_character", "performance", "human_sounds", "analog_character"),
    "soul": ("room_acoustics", "performance", "human_sounds", "analog_character"),
    "rock": ("performance", "instrument_noises", "analog_character"),
    "metal": ("performance", "instrument_noises"),
    "punk": ("performance", "instrument_noises", "analog_character"),
    "classical": ("room_acoustics", "performance"),
    "symphonic": ("room_acoustics", "performance"),
    "cinematic": ("room_acoustics", "performance"),
    "lofi": ("analog_character",),
    "retro": ("analog_character", "mix_character"),
}

ELECTRONIC_CLARITY_TAGS: dict[str, tuple[str, ...]] = {
    "bass_control": ("tight sub bass", "controlled low end", "mono-compatible sub"),
    "transients": ("sharp transients", "fast attack", "clean punch"),
    "spatial": ("focused stereo image", "minimal spatial smear", "center-focused mix"),
    "distortion": ("controlled saturation", "clean high end"),
    "arrangement": ("minimal layer stacking", "intentional drops", "clear drop structure"),
}

ELECTRONIC_GENRES: frozenset[str] = frozenset(
    {"electronic", "house", "trance", "melodictechno", "synthwave", "trap", "drill", "hyperpop"}
)


def is_electronic_genre(genre: str) -> bool:
    folded = genre.casefold().strip()
    return folded in ELECTRONIC_GENRES or "electronic" in folded or "synth" in folded


def select_realism_tags(genre: str, count: int, rng: Rng) -> list[str]:
    categories = GENRE_REALISM_CATEGORIES.get(genre.casefold().strip(), ())
    pool = [tag for category in categories for tag in REALISM_TAGS[category]]
    return select_random(pool, count, rng)


def select_electronic_tags(count: int, rng: Rng) -> list[str]:
    pool = [tag for tags in ELECTRONIC_CLARITY_TAGS.values() for tag in tags]
    return select_random(pool, count, rng)


SPATIAL_TAGS: tuple[str, ...] = (
    "wide stereo field",
    "intimate close space",
    "deep reverb tail",
    "airy top end",
    "layered depth",
    "distant ambience",
)

HARMONIC_TAGS: tuple[str, ...] = (
    "lush extended chords",
    "modal colour",
    "suspended harmonies",
    "rich voicings",
    "chromatic movement",
    "open fifths",
)

DYNAMIC_TAGS: tuple[str, ...] = (
    "slow-building crescendo",
    "punchy transients",
    "gentle swells",
    "explosive release",
    "quiet-loud contrast",
    "steady dynamics",
)

TEMPORAL_TAGS: tuple[str, ...] = (
    "laid-back groove",
    "driving pulse",
    "swung rhythm",
    "rubato phrasing",
    "syncopated feel",
    "half-time feel",
)


@dataclass(frozen=True)
class TagCategory:
    name: str
    probability: float
    max_count: int


STYLE_TAG_CATEGORIES: tuple[TagCategory, ...] = (
    TagCategory("vocal", 0.6, 2),
    TagCategory("spatial", 0.5, 1),
    TagCategory("harmonic", 0.4, 1),
    TagCategory("dynamic", 0.4, 1),
    TagCategory("temporal", 0.3, 1),
)

_CATEGORY_POOLS: dict[str, tuple[str, ...]] = {
    "spatial": SPATIAL_TAGS,
    "harmonic": HARMONIC_TAGS,
    "dynamic": DYNAMIC_TAGS,
    "temporal": TEMPORAL_TAGS,
}


class _UniqueTags:
    def __init__(self, limit: int):
        self.limit = limit
        self.items: list[str] = []
        self._seen: set[str] = set()

    def add(self, tag: str) -> None:
        cleaned = tag.strip()
        folded = cleaned.casefold()
        if not cleaned or folded in self._seen or len(self.items) >= self.limit:
            return
        self._seen.add(folded)
        self.items.append(cleaned)

    def extend(self, tags: Sequence[str]) -> None:
        for tag in tags:
            self.add(tag)


def _category_selector(category: TagCategory, primary_genre: str, rng: Rng) -> Callable[[], list[str]]:
    if category.name == "vocal":
        return lambda: select_vocal_tags(primary_genre, category.max_count, rng)
    pool = _CATEGORY_POOLS[category.name]
    return lambda: select_random(pool, category.max_count, rng)


def assemble_style_tags(
    components: Sequence[str],
    rng: Rng,
    recording_phrases: Sequence[str] = (),
    max_tags: int = MAX_STYLE_TAGS,
) -> list[str]:
    """Collect style tags for the genre components, deduplicated case-insensitively."""
    collected = _UniqueTags(max_tags)
    primary = components[0] if components else ""

    for genre in components:
        moods = get_genre(genre).moods
        collected.extend([mood.lower() for mood in select_random(moods, MOODS_PER_COMPONENT, rng)])

    for category in STYLE_TAG_CATEGORIES:
        if roll_chance(category.probability, rng):
            collected.extend(_category_selector(category, primary, rng)())

    collected.extend([texture.lower() for texture in shuffle(RECORDING_TEXTURES, rng)[:TEXTURE_TAG_COUNT]])

    if primary and is_electronic_genre(primary):
        collected.extend(select_electronic_tags(CLARITY_TAG_COUNT, rng))
    elif primary:
        collected.extend(select_realism_tags(primary, CLARITY_TAG_COUNT, rng))

    collected.extend(build_blended_production_descriptor(list(components), rng).tags())
    collected.extend(recording_phrases)
    return collected.items
