"""Text encodings of a prompt: the quoted MAX layout and the bracketed standard layout.

Both layouts are line oriented. MAX prompts start with a four line header and
carry lowercase, double-quoted fields (``genre: "jazz"``); standard prompts use
capitalised ``Field: value`` lines followed by ``[SECTION]`` blocks. The helpers
here read and rewrite individual field lines without reparsing the whole prompt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

MAX_MODE_HEADER = "\n".join(
    (
        "[Is_MAX_MODE: MAX](MAX)",
        "[QUALITY: MAX](MAX)",
        "[REALISM: MAX](MAX)",
        "[REAL_INSTRUMENTS: MAX](MAX)",
    )
)

MAX_CHARS = 1000
TRUNCATE_BREAK_RATIO = 0.8
MAX_INSTRUMENT_ITEMS = 6

_MAX_HEADER_MARKER = re.compile(r"^\[Is_MAX_MODE:", re.IGNORECASE | re.MULTILINE)
_QUOTED_GENRE = re.compile(r'^genre:\s*"', re.IGNORECASE | re.MULTILINE)
_QUOTED_INSTRUMENTS = re.compile(r'^(instruments:\s*")([^"]*)"', re.IGNORECASE | re.MULTILINE)
_STANDARD_INSTRUMENTS = re.compile(r"^(Instruments:[^\S\n]*)([^\n]*)$", re.MULTILINE)
_HARMONY_TAG = re.compile(r"\([IViv\d\-#maj]+\)\s*harmony", re.IGNORECASE)
_VOCAL_ITEM = re.compile(r"\b(vocals?|voice|singer|singing|delivery)\b", re.IGNORECASE)


@dataclass(frozen=True)
class MaxFields:
    genre: str
    bpm: str
    instruments: str
    style_tags: str
    recording: str


def is_max_format(text: str) -> bool:
    """True for prompts carrying the MAX header or quoted lowercase fields."""
    if _MAX_HEADER_MARKER.search(text):
        return True
    return bool(_QUOTED_GENRE.search(text) and _QUOTED_INSTRUMENTS.search(text))


def truncate_prompt(prompt: str, max_length: int = MAX_CHARS) -> str:
    """Cut to ``max_length``, backing up to the last quote or newline when it is near the end."""
    if len(prompt) <= max_length:
        return prompt
    truncated = prompt[:max_length]
    break_point = max(truncated.rfind('"'), truncated.rfind("\n"))
    if break_point > max_length * TRUNCATE_BREAK_RATIO:
        truncated = truncated[: break_point + 1]
    return truncated


def build_max_prompt(fields: MaxFields) -> str:
    return "\n".join(
        (
            MAX_MODE_HEADER,
            f'genre: "{fields.genre}"',
            f'bpm: "{fields.bpm}"',
            f'instruments: "{fields.instruments}"',
            f'style tags: "{fields.style_tags}"',
            f'recording: "{fields.recording}"',
        )
    )


def build_standard_prompt(
    *,
    mood: str,
    display_genre: str,
    key: str,
    bpm: str,
    moods: Sequence[str],
    instruments: Sequence[str],
    style_tags: Sequence[str],
    recording: str,
    sections_text: str,
) -> str:
    lines = [
        f"[{mood[:1].upper()}{mood[1:]}, {display_genre}, Key: {key}]",
        "",
        f"Genre: {display_genre}",
        f"BPM: {bpm}",
        f"Mood: {', '.join(moods)}",
        f"Instruments: {', '.join(instruments)}",
        f"Style Tags: {', '.join(style_tags)}",
        f"Recording: {recording}",
        "",
        sections_text,
    ]
    return "\n".join(lines)


def _field_pattern(field_name: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(field_name)}:[^\n]*$", re.IGNORECASE | re.MULTILINE)


def field_value(prompt: str, field_name: str) -> Optional[str]:
    """Value of the first ``field_name:`` line in either encoding, unquoted."""
    match = re.search(
        rf'^{re.escape(field_name)}:[^\S\n]*"?([^"\n]*)"?[^\S\n]*$',
        prompt,
        re.IGNORECASE | re.MULTILINE,
    )
    if match is None:
        return None
    return match.group(1).strip()


def replace_field_line(prompt: str, field_name: str, value: str) -> str:
    """Replace the first ``field_name:`` line, keeping the line's quoted or bare style."""
    pattern = _field_pattern(field_name)
    match = pattern.search(prompt)
    if match is None:
        return prompt
    line = match.group(0)
    label = line.split(":", 1)[0]
    quoted = line[len(label) + 1 :].lstrip().startswith('"')
    replacement = f'{label}: "{value}"' if quoted else f"{label}: {value}"
    return prompt[: match.start()] + replacement + prompt[match.end() :]


def split_csv(csv: str) -> list[str]:
    return [item.strip() for item in csv.split(",") if item.strip()]


def is_vocal_style_item(item: str) -> bool:
    return bool(_VOCAL_ITEM.search(item))


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        folded = item.casefold()
        if folded in seen:
            continue
        seen.add(folded)
        unique.append(item)
    return unique


def merge_instrument_tags(csv: str, tags: Sequence[str], max_items: int = MAX_INSTRUMENT_ITEMS) -> str:
    """Append ``tags`` to an instruments list, replacing earlier vocal items.

    When the merged list is over ``max_items``, vocal items are kept and the
    trailing instruments are dropped.
    """
    base = [item for item in split_csv(csv) if not is_vocal_style_item(item)]
    merged = _dedupe([*base, *tags])
    if len(merged) <= max_items:
        return ", ".join(merged)
    vocal = [item for item in merged if is_vocal_style_item(item)]
    other = [item for item in merged if not is_vocal_style_item(item)]
    if len(vocal) >= max_items:
        return ", ".join(vocal[:max_items])
    return ", ".join([*other[: max_items - len(vocal)], *vocal])


def inject_instrument_tags(prompt: str, tags: Sequence[str], max_items: int = MAX_INSTRUMENT_ITEMS) -> str:
    if not tags:
        return prompt
    match = _QUOTED_INSTRUMENTS.search(prompt)
    if match is not None:
        merged = merge_instrument_tags(match.group(2), tags, max_items)
        return prompt[: match.start()] + f'{match.group(1)}{merged}"' + prompt[match.end() :]
    match = _STANDARD_INSTRUMENTS.search(prompt)
    if match is not None:
        merged = merge_instrument_tags(match.group(2), tags, max_items)
        return prompt[: match.start()] + f"{match.group(1)}{merged}" + prompt[match.end() :]
    return prompt


def has_chord_progression(prompt: str) -> bool:
    return bool(_HARMONY_TAG.search(prompt))


def inject_chord_progression(prompt: str, harmony_tag: str) -> str:
    """Append a harmony tag to a quoted instruments line that does not carry one yet."""
    if has_chord_progression(prompt):
        return prompt
    match = _QUOTED_INSTRUMENTS.search(prompt)
    if match is None:
        return prompt
    existing = match.group(2).strip()
    value = f"{existing}, {harmony_tag}" if existing else harmony_tag
    return prompt[: match.start()] + f'{match.group(1)}{value}"' + prompt[match.end() :]
