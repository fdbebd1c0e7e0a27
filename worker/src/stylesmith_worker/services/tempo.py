"""BPM ranges blended across genre components."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .registry import GENRE_REGISTRY

DEFAULT_BPM_RANGE = "between 90 and 120"
NARROW_RANGE_SPREAD = 60

_MAX_BPM_LINE = re.compile(r'^bpm:\s*"[^"]*"', re.IGNORECASE | re.MULTILINE)
_STANDARD_BPM_LINE = re.compile(r"^BPM:.*$", re.MULTILINE)


@dataclass(frozen=True)
class BlendedBpmRange:
    min: int
    max: int
    is_intersection: bool

    def __str__(self) -> str:
        return format_bpm_range(self)


def get_blended_bpm_range(components: Sequence[str]) -> Optional[BlendedBpmRange]:
    """Intersect the components' ranges; disjoint ranges narrow the union around its midpoint."""
    ranges = [GENRE_REGISTRY[key].bpm for key in components if key in GENRE_REGISTRY]
    if not ranges:
        return None
    if len(ranges) == 1:
        return BlendedBpmRange(ranges[0].min, ranges[0].max, True)

    low = max(item.min for item in ranges)
    high = min(item.max for item in ranges)
    if low <= high:
        return BlendedBpmRange(low, high, True)

    union_min = min(item.min for item in ranges)
    union_max = max(item.max for item in ranges)
    midpoint = (union_min + union_max) / 2
    return BlendedBpmRange(
        max(union_min, math.floor(midpoint - NARROW_RANGE_SPREAD / 2)),
        min(union_max, math.ceil(midpoint + NARROW_RANGE_SPREAD / 2)),
        False,
    )


def format_bpm_range(value: BlendedBpmRange) -> str:
    return f"between {value.min} and {value.max}"


def bpm_range_text(components: Sequence[str]) -> str:
    blended = get_blended_bpm_range(components)
    return format_bpm_range(blended) if blended is not None else DEFAULT_BPM_RANGE


def inject_bpm_range(prompt: str, components: Sequence[str]) -> str:
    """Rewrite the BPM line of either encoding; prompts without one are returned as-is."""
    blended = get_blended_bpm_range(components)
    if blended is None:
        return prompt
    text = format_bpm_range(blended)
    if _MAX_BPM_LINE.search(prompt):
        return _MAX_BPM_LINE.sub(lambda _: f'bpm: "{text}"', prompt, count=1)
    if _STANDARD_BPM_LINE.search(prompt):
        return _STANDARD_BPM_LINE.sub(lambda _: f"BPM: {text}", prompt, count=1)
    return prompt
