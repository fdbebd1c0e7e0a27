"""Word-pool song titles, used directly or as the fallback for LLM titles."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .rng import Rng, select_one

PREFERRED_MOOD_PROBABILITY = 0.7

TIME_WORDS: tuple[str, ...] = (
    "Midnight", "Dawn", "Twilight", "Sunset", "Morning",
    "Evening", "Night", "Daybreak", "Dusk", "Starlight",
)
NATURE_WORDS: tuple[str, ...] = (
    "Ocean", "River", "Mountain", "Forest", "Rain", "Storm", "Wind", "Sky",
    "Moon", "Sun", "Stars", "Waves", "Thunder", "Snow", "Fire",
)
EMOTION_WORDS: tuple[str, ...] = (
    "Dream", "Memory", "Echo", "Shadow", "Light", "Hope", "Heart", "Soul",
    "Spirit", "Silence", "Whisper", "Cry", "Love", "Lost", "Found",
)
ACTION_WORDS: tuple[str, ...] = (
    "Rising", "Falling", "Burning", "Fading", "Running",
    "Dancing", "Flying", "Drifting", "Breaking", "Chasing",
)
ABSTRACT_WORDS: tuple[str, ...] = (
    "Infinity", "Eternity", "Destiny", "Freedom", "Solitude",
    "Serenity", "Chaos", "Harmony", "Balance", "Truth",
)

WORD_POOLS: dict[str, tuple[str, ...]] = {
    "time": TIME_WORDS,
    "nature": NATURE_WORDS,
    "emotion": EMOTION_WORDS,
    "action": ACTION_WORDS,
    "abstract": ABSTRACT_WORDS,
}

_HIPHOP_PATTERNS = (
    "{action} Hard",
    "{emotion} Streets",
    "{time} Grind",
    "Real {emotion}",
    "{abstract} Flow",
    "City {nature}",
)

GENRE_TITLE_PATTERNS: dict[str, tuple[str, ...]] = {
    "jazz": ("{time} {emotion}", "Blue {nature}", "{emotion} in {time}", "Smooth {nature}", "{time} Session", "Cool {emotion}"),
    "blues": ("{emotion} Blues", "{time} Blues", "Down by the {nature}", "{action} Away", "Lonesome {nature}", "{emotion} Road"),
    "rock": ("{action} {nature}", "{emotion} Anthem", "{nature} of {emotion}", "Rise of {abstract}", "{action} Free", "{time} Rebel"),
    "metal": ("{nature} of {abstract}", "{action} in {emotion}", "Dark {nature}", "{abstract} Rising", "Through the {nature}", "March of {emotion}"),
    "pop": ("{emotion} Tonight", "{action} Hearts", "{time} Love", "Feel the {nature}", "{emotion} Vibes", "Sweet {emotion}"),
    "electronic": ("{abstract} State", "Digital {nature}", "{action} Signal", "Neon {emotion}", "Synthetic {nature}", "{time} Pulse"),
    "ambient": ("{nature} Drift", "{time} Meditation", "Floating {emotion}", "Ethereal {nature}", "{abstract} Space", "Gentle {nature}"),
    "classical": ("{nature} Sonata", "{emotion} Nocturne", "{time} Prelude", "Opus of {abstract}", "{nature} Symphony", "{emotion} Waltz"),
    "folk": ("{nature} Song", "Old {time} Tale", "Wandering {emotion}", "Country {nature}", "{emotion} Ballad", "Homespun {emotion}"),
    "country": ("{time} on the {nature}", "Dusty {nature}", "{emotion} Highway", "Back Road {emotion}", "{nature} Nights", "Heartland {emotion}"),
    "trap": _HIPHOP_PATTERNS,
    "drill": _HIPHOP_PATTERNS,
    "rnb": ("{emotion} Touch", "{time} Romance", "Velvet {nature}", "Slow {emotion}", "{action} Closer", "Silk {emotion}"),
    "soul": ("{emotion} Soul", "Deep {nature}", "{time} Feeling", "Soulful {emotion}", "{nature} of Love", "Gospel {emotion}"),
    "reggae": ("{nature} Vibes", "Island {emotion}", "{time} Riddim", "One {abstract}", "{emotion} Sunshine", "Roots {nature}"),
    "latin": ("{nature} Fuego", "{emotion} Corazón", "{time} Caliente", "Tropical {nature}", "{action} Ritmo", "Passion {emotion}"),
    "funk": ("Get {action}", "{emotion} Groove", "Funky {nature}", "{time} Jam", "Super {emotion}", "{action} Machine"),
    "disco": ("{time} Fever", "{action} Floor", "Disco {nature}", "Glitter {emotion}", "{emotion} Night", "Mirror {nature}"),
    "punk": ("{action} System", "No {abstract}", "{emotion} Riot", "Raw {nature}", "{action} Rules", "Anarchy {emotion}"),
    "indie": ("Little {nature}", "{emotion} Days", "Quiet {time}", "{nature} Theory", "Paper {emotion}", "{time} Wonder"),
    "lofi": ("{time} Study", "Chill {nature}", "Lo-Fi {emotion}", "Lazy {time}", "Soft {nature}", "Cozy {emotion}"),
}

DEFAULT_PATTERNS: tuple[str, ...] = (
    "{emotion} {nature}",
    "{time} {emotion}",
    "{action} {nature}",
    "{nature} of {abstract}",
    "{emotion} Journey",
    "{time} Tale",
)


@dataclass(frozen=True)
class MoodWords:
    preferred: frozenset[str]
    avoid: frozenset[str]


def _mood(preferred: tuple[str, ...], avoid: tuple[str, ...]) -> MoodWords:
    return MoodWords(frozenset(preferred), frozenset(avoid))


MOOD_WORD_WEIGHTS: dict[str, MoodWords] = {
    "melancholic": _mood(
        ("Shadow", "Rain", "Memory", "Echo", "Fading", "Lost", "Silence", "Twilight"),
        ("Joy", "Bright", "Happy", "Dancing"),
    ),
    "upbeat": _mood(
        ("Sun", "Light", "Rising", "Dancing", "Hope", "Morning", "Fire", "Flying"),
        ("Shadow", "Lost", "Falling", "Cry"),
    ),
    "aggressive": _mood(
        ("Thunder", "Storm", "Fire", "Breaking", "Burning", "Chaos", "Rising"),
        ("Gentle", "Soft", "Whisper", "Floating"),
    ),
    "calm": _mood(
        ("Ocean", "Moon", "Silence", "Drifting", "Serenity", "Gentle", "Stars"),
        ("Thunder", "Breaking", "Burning", "Chaos"),
    ),
    "romantic": _mood(
        ("Heart", "Love", "Moon", "Stars", "Dream", "Whisper", "Evening"),
        ("Chaos", "Breaking", "Thunder", "Lost"),
    ),
    "dark": _mood(
        ("Shadow", "Night", "Midnight", "Storm", "Thunder", "Chaos", "Silence"),
        ("Sun", "Morning", "Light", "Hope"),
    ),
    "energetic": _mood(
        ("Fire", "Rising", "Running", "Dancing", "Thunder", "Burning", "Flying"),
        ("Silence", "Drifting", "Fading", "Floating"),
    ),
    "dreamy": _mood(
        ("Dream", "Stars", "Moon", "Floating", "Drifting", "Ethereal", "Twilight"),
        ("Thunder", "Breaking", "Burning", "Chaos"),
    ),
}

_SLOT = re.compile(r"\{(time|nature|emotion|action|abstract)\}")


def _filter_by_mood(words: tuple[str, ...], mood: str, rng: Rng) -> tuple[str, ...]:
    weights = MOOD_WORD_WEIGHTS.get(mood.casefold())
    if weights is None:
        return words
    preferred = tuple(word for word in words if word in weights.preferred)
    neutral = tuple(word for word in words if word not in weights.avoid and word not in weights.preferred)
    if preferred and rng() < PREFERRED_MOOD_PROBABILITY:
        return preferred
    return neutral or words


def _word(slot: str, mood: str, rng: Rng) -> str:
    return select_one(_filter_by_mood(WORD_POOLS[slot], mood, rng), rng)


def patterns_for_genre(genre: str) -> tuple[str, ...]:
    head = genre.casefold().split(" ")[0] if genre.strip() else "pop"
    return GENRE_TITLE_PATTERNS.get(head, DEFAULT_PATTERNS)


def generate_deterministic_title(genre: str, mood: str, rng: Rng) -> str:
    pattern = select_one(patterns_for_genre(genre), rng)
    return _SLOT.sub(lambda match: _word(match.group(1), mood, rng), pattern)


def generate_title_options(genre: str, mood: str, count: int, rng: Rng) -> list[str]:
    """Up to ``count`` distinct titles, giving up after ``count * 3`` draws."""
    titles: list[str] = []
    seen: set[str] = set()
    for _ in range(count * 3):
        if len(titles) >= count:
            break
        title = generate_deterministic_title(genre, mood, rng)
        if title.casefold() not in seen:
            seen.add(title.casefold())
            titles.append(title)
    return titles
