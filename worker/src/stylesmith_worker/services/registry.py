"""Static genre registry loaded from the packaged genre payload."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_GENRES_PATH = Path(__file__).resolve().parents[1] / "data" / "genres.json"


@dataclass(frozen=True)
class InstrumentPool:
    name: str
    pick_min: int
    pick_max: int
    instruments: tuple[str, ...]
    chance_to_include: Optional[float] = None


@dataclass(frozen=True)
class BpmRange:
    min: int
    max: int
    typical: int


@dataclass(frozen=True)
class GenreDefinition:
    key: str
    name: str
    keywords: tuple[str, ...]
    description: str
    pools: dict[str, InstrumentPool]
    pool_order: tuple[str, ...]
    max_tags: int
    exclusion_rules: tuple[tuple[str, str], ...]
    bpm: BpmRange
    moods: tuple[str, ...]

    @property
    def match_terms(self) -> tuple[str, ...]:
        return (self.name.casefold(), *(keyword.casefold() for keyword in self.keywords))

    def all_instruments(self) -> list[str]:
        seen: set[str] = set()
        ordered: list[str] = []
        for pool_name in self.pool_order:
            for instrument in self.pools[pool_name].instruments:
                if instrument.casefold() not in seen:
                    seen.add(instrument.casefold())
                    ordered.append(instrument)
        return ordered


def _build_pool(name: str, entry: dict) -> InstrumentPool:
    pick_min, pick_max = entry["pick"]
    return InstrumentPool(
        name=name,
        pick_min=int(pick_min),
        pick_max=int(pick_max),
        instruments=tuple(entry["instruments"]),
        chance_to_include=entry.get("chance"),
    )


def _validate(definition: GenreDefinition) -> None:
    known = {
        instrument.casefold()
        for pool in definition.pools.values()
        for instrument in pool.instruments
    }
    for pool_name in definition.pool_order:
        if pool_name not in definition.pools:
            raise ValueError(
                f"genre '{definition.key}' orders unknown pool '{pool_name}'"
            )
    for pool in definition.pools.values():
        if not pool.instruments or pool.pick_min > pool.pick_max:
            raise ValueError(f"genre '{definition.key}' has invalid pool '{pool.name}'")
    for pair in definition.exclusion_rules:
        for instrument in pair:
            if instrument.casefold() not in known:
                raise ValueError(
                    f"genre '{definition.key}' excludes '{instrument}' which no pool offers"
                )
    minimum = sum(pool.pick_min for pool in definition.pools.values())
    if definition.max_tags < minimum:
        raise ValueError(
            f"genre '{definition.key}' max_tags {definition.max_tags} below pool minimum {minimum}"
        )
    bpm = definition.bpm
    if not bpm.min <= bpm.typical <= bpm.max:
        raise ValueError(f"genre '{definition.key}' has inconsistent bpm range")


def _build_genre(key: str, entry: dict) -> GenreDefinition:
    pools = {name: _build_pool(name, pool) for name, pool in entry["pools"].items()}
    definition = GenreDefinition(
        key=key,
        name=entry["name"],
        keywords=tuple(entry["keywords"]),
        description=entry["description"],
        pools=pools,
        pool_order=tuple(entry["pool_order"]),
        max_tags=int(entry["max_tags"]),
        exclusion_rules=tuple((a, b) for a, b in entry["exclusion_rules"]),
        bpm=BpmRange(**entry["bpm"]),
        moods=tuple(entry["moods"]),
    )
    _validate(definition)
    return definition


def _load_registry() -> tuple[str, dict[str, GenreDefinition]]:
    try:
        raw = json.loads(_GENRES_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:  # pragma: no cover - configuration error
        raise RuntimeError(f"genre registry file missing at {_GENRES_PATH}") from exc

    genres = {key: _build_genre(key, entry) for key, entry in raw["genres"].items()}
    default_genre = raw["default_genre"]
    if default_genre not in genres:  # pragma: no cover - configuration error
        raise RuntimeError(f"default genre '{default_genre}' missing from registry")
    return default_genre, genres


DEFAULT_GENRE, GENRE_REGISTRY = _load_registry()

ALL_GENRE_KEYS: tuple[str, ...] = tuple(GENRE_REGISTRY)

# Specific genres precede the umbrella genres whose keywords they contain.
GENRE_PRIORITY: tuple[str, ...] = (
    "melodictechno",
    "synthwave",
    "chillwave",
    "dreampop",
    "hyperpop",
    "drill",
    "trap",
    "lofi",
    "downtempo",
    "newage",
    "videogame",
    "symphonic",
    "cinematic",
    "classical",
    "jazz",
    "rnb",
    "soul",
    "blues",
    "funk",
    "disco",
    "house",
    "trance",
    "electronic",
    "metal",
    "punk",
    "indie",
    "rock",
    "folk",
    "country",
    "reggae",
    "afrobeat",
    "latin",
    "retro",
    "ambient",
    "pop",
)

GENRE_ALIASES: dict[str, str] = {
    "hip hop": "trap",
    "hip-hop": "trap",
    "hiphop": "trap",
    "r&b": "rnb",
    "r and b": "rnb",
    "deep house": "house",
    "lo-fi": "lofi",
    "edm": "electronic",
    "heavy metal": "metal",
    "smooth jazz": "jazz",
    "trip hop": "downtempo",
    "neo soul": "soul",
    "orchestral": "classical",
    "atmospheric": "ambient",
    "world music": "afrobeat",
    "k-pop": "pop",
    "gospel": "soul",
    "bossa": "latin",
    "vaporwave": "chillwave",
    "game soundtrack": "videogame",
    "grime": "drill",
    "shoegaze": "dreampop",
}

_ALIASES_LONGEST_FIRST: tuple[tuple[str, str], ...] = tuple(
    sorted(GENRE_ALIASES.items(), key=lambda item: len(item[0]), reverse=True)
)

MOOD_TO_GENRE: dict[str, tuple[str, ...]] = {
    "chill": ("lofi", "ambient", "chillwave", "downtempo"),
    "energetic": ("electronic", "house", "rock", "punk"),
    "dark": ("metal", "ambient", "drill", "cinematic"),
    "dreamy": ("dreampop", "ambient", "chillwave"),
    "groovy": ("funk", "disco", "house", "soul"),
    "epic": ("cinematic", "symphonic", "metal", "classical"),
    "upbeat": ("pop", "disco", "funk", "house"),
    "melancholy": ("folk", "blues", "indie", "lofi"),
    "melancholic": ("folk", "blues", "indie", "lofi"),
    "nostalgic": ("synthwave", "retro", "lofi", "soul"),
    "romantic": ("rnb", "soul", "jazz", "latin"),
    "peaceful": ("newage", "ambient", "classical"),
    "relaxing": ("newage", "lofi", "ambient", "downtempo"),
    "aggressive": ("metal", "punk", "drill", "trap"),
    "happy": ("pop", "reggae", "afrobeat", "disco"),
    "sad": ("blues", "folk", "indie", "classical"),
    "mysterious": ("downtempo", "ambient", "cinematic"),
    "euphoric": ("trance", "house", "hyperpop", "melodictechno"),
    "hypnotic": ("melodictechno", "trance", "ambient", "afrobeat"),
    "playful": ("videogame", "hyperpop", "pop", "funk"),
    "sunny": ("reggae", "latin", "afrobeat", "chillwave"),
    "intense": ("metal", "drill", "cinematic", "trance"),
    "rebellious": ("punk", "rock", "metal"),
    "heartfelt": ("country", "folk", "soul", "indie"),
    "futuristic": ("electronic", "synthwave", "melodictechno", "hyperpop"),
    "sophisticated": ("jazz", "classical", "soul"),
}

FOUNDATIONAL_INSTRUMENTS: tuple[str, ...] = (
    "drums",
    "kick drum",
    "hi-hat",
    "snare drum",
    "bass",
    "sub-bass",
    "strings",
    "synth pad",
    "synth",
    "analog synth",
    "digital synth",
    "FM synth",
    "arpeggiator",
    "percussion",
)

ORCHESTRAL_COLOR_INSTRUMENTS: tuple[str, ...] = (
    "celesta",
    "glockenspiel",
    "harp",
    "violin",
    "cello",
    "french horn",
    "timpani",
    "taiko drums",
    "choir",
    "wordless choir",
    "piccolo",
    "english horn",
    "bass clarinet",
    "contrabassoon",
    "tuba",
    "bass trombone",
    "solo soprano",
    "suspended cymbal",
    "crash cymbal",
    "tam tam",
    "mark tree",
    "orchestral bass drum",
)

MULTIGENRE_FORCE_INCLUDE: tuple[str, ...] = (
    "808",
    "Clavinet",
    "Hammond organ",
    "Rhodes",
    "Wurlitzer",
    "electric piano",
    "vibraphone",
    "bells",
    "guitar",
    "acoustic guitar",
    "muted trumpet",
    "mellotron",
    "marimba",
    "pedal steel",
    "finger snaps",
    "synth choir",
)

MULTIGENRE_FORCE_EXCLUDE: tuple[str, ...] = (
    "felt piano",
    "jazz brushes",
    "trumpet",
    "flute",
    "clarinet",
)

MULTIGENRE_THRESHOLD = 3

ORCHESTRAL_GENRES: frozenset[str] = frozenset({"classical", "symphonic", "cinematic", "videogame"})

_FOUNDATIONAL_SET = frozenset(value.casefold() for value in FOUNDATIONAL_INSTRUMENTS)
_ORCHESTRAL_COLOR_SET = frozenset(value.casefold() for value in ORCHESTRAL_COLOR_INSTRUMENTS)


def is_foundational_instrument(instrument: str) -> bool:
    return instrument.casefold() in _FOUNDATIONAL_SET


def is_orchestral_color_instrument(instrument: str) -> bool:
    return instrument.casefold() in _ORCHESTRAL_COLOR_SET


def _compute_multigenre_instruments(threshold: int) -> tuple[str, ...]:
    genres_by_instrument: dict[str, set[str]] = {}
    canonical: dict[str, str] = {}
    for definition in GENRE_REGISTRY.values():
        for instrument in definition.all_instruments():
            folded = instrument.casefold()
            canonical.setdefault(folded, instrument)
            genres_by_instrument.setdefault(folded, set()).add(definition.key)

    combined = {
        folded: canonical[folded]
        for folded, genres in genres_by_instrument.items()
        if len(genres) >= threshold
    }
    for instrument in MULTIGENRE_FORCE_INCLUDE:
        combined[instrument.casefold()] = instrument

    excluded = {value.casefold() for value in MULTIGENRE_FORCE_EXCLUDE}
    return tuple(
        sorted(
            (
                value
                for folded, value in combined.items()
                if folded not in excluded
                and folded not in _FOUNDATIONAL_SET
                and folded not in _ORCHESTRAL_COLOR_SET
            ),
            key=str.casefold,
        )
    )


MULTIGENRE_INSTRUMENTS = _compute_multigenre_instruments(MULTIGENRE_THRESHOLD)
_MULTIGENRE_SET = frozenset(value.casefold() for value in MULTIGENRE_INSTRUMENTS)


def is_multigenre_instrument(instrument: str) -> bool:
    return instrument.casefold() in _MULTIGENRE_SET


def _validate_tables() -> None:
    missing = set(GENRE_REGISTRY) ^ set(GENRE_PRIORITY)
    if missing or len(GENRE_PRIORITY) != len(set(GENRE_PRIORITY)):  # pragma: no cover
        raise RuntimeError(f"genre priority list out of sync with registry: {sorted(missing)}")
    for alias, target in GENRE_ALIASES.items():
        if target not in GENRE_REGISTRY:  # pragma: no cover - configuration error
            raise RuntimeError(f"alias '{alias}' targets unknown genre '{target}'")
    for mood, candidates in MOOD_TO_GENRE.items():
        unknown = [key for key in candidates if key not in GENRE_REGISTRY]
        if unknown:  # pragma: no cover - configuration error
            raise RuntimeError(f"mood '{mood}' maps to unknown genres {unknown}")


_validate_tables()


def get_genre(key: Optional[str]) -> GenreDefinition:
    """Return the definition for ``key``, falling back to the default genre."""
    if key is not None:
        definition = GENRE_REGISTRY.get(key.casefold().strip())
        if definition is not None:
            return definition
    return GENRE_REGISTRY[DEFAULT_GENRE]


def genre_display_name(key: str) -> str:
    definition = GENRE_REGISTRY.get(key)
    return definition.name if definition is not None else key


def aliases_longest_first() -> tuple[tuple[str, str], ...]:
    return _ALIASES_LONGEST_FIRST
