"""Keyword classifier resolving genre, mood fallback and style axes from free text."""

from __future__ import annotations

import re
import threading
from typing import Callable, Optional, Sequence, TypeVar

from loguru import logger

from ..app.models import Classification, GenreResolution, ModeSelection
from .registry import (
    ALL_GENRE_KEYS,
    GENRE_ALIASES,
    GENRE_PRIORITY,
    GENRE_REGISTRY,
    MOOD_TO_GENRE,
    aliases_longest_first,
    genre_display_name,
)
from .rng import Rng, select_one
from .styles import AXES, StyleAxis

T = TypeVar("T")

DEFAULT_CACHE_SIZE = 100
MAX_GENRE_COMPONENTS = 4

_COMPONENT_SPLIT = re.compile(r"\s+and\s+|\s*&\s*|[\s\-/,]+")
_PHRASE_SPAN = 3
_PHRASE_JOINERS = (" ", "", "-", "&")
_DISPLAY_NAME_KEYS: dict[str, str] = {
    definition.name.casefold(): key for key, definition in GENRE_REGISTRY.items()
}
_MISSING = object()


def _normalize(text: str) -> str:
    return " ".join(text.casefold().split())


class ClassificationCache:
    """Bounded, lock-guarded memo for classifier lookups.

    Entries are kept in insertion order. When a new key would exceed the cap,
    the oldest half is dropped in one pass; reads do not refresh an entry.
    """

    def __init__(self, max_entries: int = DEFAULT_CACHE_SIZE):
        if max_entries < 2:
            raise ValueError("classification cache needs room for at least two entries")
        self._max_entries = max_entries
        self._entries: dict[str, object] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get_or_compute(self, key: str, factory: Callable[[], T]) -> T:
        with self._lock:
            value = self._entries.get(key, _MISSING)
            if value is not _MISSING:
                self.hits += 1
                return value  # type: ignore[return-value]
            self.misses += 1
            computed = factory()
            if len(self._entries) >= self._max_entries:
                self._evict_oldest_half()
            self._entries[key] = computed
            return computed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self._max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }

    def _evict_oldest_half(self) -> None:
        drop = max(1, len(self._entries) // 2)
        for key in list(self._entries)[:drop]:
            del self._entries[key]
        logger.debug("classifier cache evicted {count} entries", count=drop)


def _match_direct(folded: str) -> Optional[str]:
    for key in GENRE_PRIORITY:
        if any(term in folded for term in GENRE_REGISTRY[key].match_terms):
            return key
    return None


def _match_alias(folded: str) -> Optional[str]:
    for alias, target in aliases_longest_first():
        if alias in folded:
            return target
    return None


def _match_keywords_or_alias(folded: str) -> Optional[str]:
    return _match_direct(folded) or _match_alias(folded)


def _match_all(folded: str, limit: int) -> tuple[str, ...]:
    found: list[str] = []
    for key in GENRE_PRIORITY:
        if any(term in folded for term in GENRE_REGISTRY[key].match_terms):
            found.append(key)
    for alias, target in aliases_longest_first():
        if alias in folded and target not in found:
            found.append(target)
    return tuple(found[:limit])


def _mood_candidates(folded: str) -> Optional[tuple[str, ...]]:
    for mood, candidates in MOOD_TO_GENRE.items():
        if mood in folded:
            return candidates
    return None


def display_genre_for(components: Sequence[str]) -> str:
    return " ".join(genre_display_name(key) for key in components)


def _lookup_phrase(words: Sequence[str]) -> Optional[str]:
    for joiner in _PHRASE_JOINERS:
        phrase = joiner.join(words)
        if phrase in GENRE_REGISTRY:
            return phrase
        key = _DISPLAY_NAME_KEYS.get(phrase) or GENRE_ALIASES.get(phrase)
        if key is not None:
            return key
    return None


def parse_genre_components(text: str) -> list[str]:
    """Split a compound genre string such as ``"jazz rock"`` into registry keys."""
    normalized = _normalize(text)
    if not normalized:
        return []
    if normalized in GENRE_REGISTRY:
        return [normalized]
    if normalized in GENRE_ALIASES:
        return [GENRE_ALIASES[normalized]]

    words = [part for part in _COMPONENT_SPLIT.split(normalized) if part]
    components: list[str] = []
    index = 0
    while index < len(words):
        for span in range(min(_PHRASE_SPAN, len(words) - index), 0, -1):
            key = _lookup_phrase(words[index : index + span])
            if key is not None:
                if key not in components:
                    components.append(key)
                index += span
                break
        else:
            index += 1
    return components[:MAX_GENRE_COMPONENTS]


class Classifier:
    """Resolves genre and style axes for a description, memoizing keyword stages."""

    def __init__(self, cache: Optional[ClassificationCache] = None):
        self._cache = cache if cache is not None else ClassificationCache()

    @property
    def cache(self) -> ClassificationCache:
        return self._cache

    def detect_genre(self, text: str, rng: Optional[Rng] = None) -> Optional[str]:
        folded = _normalize(text)
        if not folded:
            return None
        matched = self._cache.get_or_compute(
            f"genre:{folded}", lambda: _match_keywords_or_alias(folded)
        )
        if matched is not None or rng is None:
            return matched
        candidates = self._cache.get_or_compute(
            f"mood:{folded}", lambda: _mood_candidates(folded)
        )
        if not candidates:
            return None
        choice = select_one(candidates, rng)
        logger.debug("genre resolved from mood fallback: {genre}", genre=choice)
        return choice

    def detect_all_genres(self, text: str, limit: int = MAX_GENRE_COMPONENTS) -> list[str]:
        folded = _normalize(text)
        if not folded:
            return []
        found = self._cache.get_or_compute(
            f"all_genres:{limit}:{folded}", lambda: _match_all(folded, limit)
        )
        return list(found)

    def detect_axis(self, axis: StyleAxis, text: str) -> Optional[str]:
        folded = _normalize(text)
        if not folded:
            return None
        table = AXES[axis]
        return self._cache.get_or_compute(f"{axis.value}:{folded}", lambda: table.match(folded))

    def classify(self, text: str, rng: Optional[Rng] = None) -> Classification:
        return Classification(
            genre=self.detect_genre(text, rng),
            harmonic_style=self.detect_axis(StyleAxis.HARMONIC, text),
            rhythmic_style=self.detect_axis(StyleAxis.RHYTHMIC, text),
            combination=self.detect_axis(StyleAxis.COMBINATION, text),
            polyrhythm_combination=self.detect_axis(StyleAxis.POLYRHYTHM_COMBINATION, text),
            time_signature=self.detect_axis(StyleAxis.TIME_SIGNATURE, text),
            time_signature_journey=self.detect_axis(StyleAxis.TIME_SIGNATURE_JOURNEY, text),
        )

    def resolve_genre(
        self,
        description: str,
        genre_override: Optional[str],
        rng: Rng,
    ) -> GenreResolution:
        """Resolve genre components: explicit override, then detection, then a random pick."""
        detected = self.detect_genre(description)
        components: list[str] = []
        if genre_override:
            components = parse_genre_components(genre_override)
            if not components:
                logger.debug("ignoring unrecognised genre override {value!r}", value=genre_override)
        if not components:
            components = self.detect_all_genres(description)
        if not components:
            fallback = self.detect_genre(description, rng)
            if fallback is None:
                fallback = select_one(ALL_GENRE_KEYS, rng)
            components = [fallback]

        return GenreResolution(
            detected=detected,
            primary_genre=components[0],
            components=components,
            display_genre=display_genre_for(components),
        )

    def select_modes(self, description: str, genre_override: Optional[str] = None) -> ModeSelection:
        genre: Optional[str] = None
        if genre_override:
            override = _normalize(genre_override)
            if override in GENRE_REGISTRY:
                genre = override
            else:
                head = override.split(" ")[0] if override else ""
                genre = head if head in GENRE_REGISTRY else None
        reasons: list[str] = []
        if genre is not None:
            reasons.append(f"genre override '{genre}'")
        else:
            genre = self.detect_genre(description)
            if genre is not None:
                reasons.append(f"genre '{genre}' detected from keywords")

        combination = self.detect_axis(StyleAxis.COMBINATION, description)
        single_mode = None
        if combination is not None:
            reasons.append(f"mode combination '{combination}'")
        else:
            single_mode = self.detect_axis(StyleAxis.HARMONIC, description)
            if single_mode is not None:
                reasons.append(f"harmonic style '{single_mode}'")

        selection = ModeSelection(
            genre=genre,
            combination=combination,
            single_mode=single_mode,
            polyrhythm_combination=self.detect_axis(StyleAxis.POLYRHYTHM_COMBINATION, description),
            time_signature=self.detect_axis(StyleAxis.TIME_SIGNATURE, description),
            time_signature_journey=self.detect_axis(StyleAxis.TIME_SIGNATURE_JOURNEY, description),
            reasoning="",
        )
        if selection.polyrhythm_combination is not None:
            reasons.append(f"polyrhythm '{selection.polyrhythm_combination}'")
        if selection.time_signature is not None:
            reasons.append(f"time signature '{selection.time_signature}'")
        if selection.time_signature_journey is not None:
            reasons.append(f"meter journey '{selection.time_signature_journey}'")
        selection.reasoning = "; ".join(reasons) if reasons else "no keywords matched"
        return selection
