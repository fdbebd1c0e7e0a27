"""Post-processing that forces a prompt's genre field to a target number of genres."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from loguru import logger

from .classifier import parse_genre_components
from .formats import replace_field_line, split_csv
from .registry import ALL_GENRE_KEYS, DEFAULT_GENRE, genre_display_name
from .rng import Rng, select_random
from .tempo import inject_bpm_range

MIN_GENRE_COUNT = 1
MAX_GENRE_COUNT = 4

_GENRE_FIELD = re.compile(r'^genre:\s*"?([^"\n]+?)(?:"|$)', re.IGNORECASE | re.MULTILINE)
_HAS_GENRE_FIELD = re.compile(r"^genre:", re.IGNORECASE | re.MULTILINE)


def clamp_genre_count(target: int) -> int:
    return max(MIN_GENRE_COUNT, min(MAX_GENRE_COUNT, target))


def extract_genres_from_prompt(prompt: str) -> list[str]:
    """Registry keys named on the genre line, in order; the default genre when none are."""
    match = _GENRE_FIELD.search(prompt)
    if match is None:
        return [DEFAULT_GENRE]
    genres: list[str] = []
    for item in match.group(1).split(","):
        for key in parse_genre_components(item):
            if key not in genres:
                genres.append(key)
    return genres or [DEFAULT_GENRE]


def adjust_genre_components(genres: Sequence[str], target: int, rng: Rng) -> list[str]:
    """Trim to the first ``target`` genres or top up with distinct random registry genres."""
    clamped = clamp_genre_count(target)
    current = list(genres)
    if len(current) == clamped:
        return current
    if len(current) > clamped:
        kept = current[:clamped]
        logger.info(
            "genre count trimmed from {before} to {after}: {kept}",
            before=len(current),
            after=clamped,
            kept=kept,
        )
        return kept

    excluded = {genre.casefold() for genre in current}
    available = [key for key in ALL_GENRE_KEYS if key.casefold() not in excluded]
    added = select_random(available, clamped - len(current), rng)
    logger.info(
        "genre count raised from {before} to {after}: added {added}",
        before=len(current),
        after=clamped,
        added=added,
    )
    return [*current, *added]


def _genre_field_values(prompt: str) -> Optional[list[str]]:
    match = _GENRE_FIELD.search(prompt)
    if match is None:
        return None
    return split_csv(match.group(1))


def _names_genre(value: str, key: str) -> bool:
    folded = value.casefold()
    return folded == key or folded == genre_display_name(key).casefold()


def enforce_genre_count(prompt: str, target: int, rng: Rng) -> str:
    """Rewrite the genre field to exactly ``clamp(target)`` comma-separated registry genres.

    Unrecognised values are dropped and compound values are split. When the set
    of genres changes, the BPM line is re-blended for the new components.
    """
    current = extract_genres_from_prompt(prompt)
    genres = adjust_genre_components(current, target, rng)
    raw = _genre_field_values(prompt)
    if raw is not None and len(raw) == len(genres) and all(
        _names_genre(value, key) for value, key in zip(raw, genres)
    ):
        return prompt

    value = ", ".join(genres)
    if not _HAS_GENRE_FIELD.search(prompt):
        logger.info("prompt had no genre field, inserting {genres}", genres=genres)
        enforced = f'genre: "{value}"\n{prompt}'
    else:
        enforced = replace_field_line(prompt, "genre", value)
    if genres != current:
        enforced = inject_bpm_range(enforced, genres)
    return enforced
