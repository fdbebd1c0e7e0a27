"""Constrained instrument selection over genre pools."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional, Sequence

from loguru import logger

from .registry import (
    FOUNDATIONAL_INSTRUMENTS,
    MULTIGENRE_INSTRUMENTS,
    ORCHESTRAL_COLOR_INSTRUMENTS,
    ORCHESTRAL_GENRES,
    GenreDefinition,
    InstrumentPool,
    get_genre,
    is_foundational_instrument,
    is_multigenre_instrument,
    is_orchestral_color_instrument,
)
from .rng import Rng, random_int_inclusive, roll_chance, select_one, shuffle

ExclusionRules = Sequence[tuple[str, str]]

MAX_REDRAW_ATTEMPTS = 8
MAX_MULTIGENRE_INJECTIONS = 2
PER_COMPONENT_PICKS = 2
DEFAULT_MULTI_GENRE_INSTRUMENTS = 6
ARTICULATION_CHANCE = 0.4

ARTICULATIONS: dict[str, tuple[str, ...]] = {
    "guitar": (
        "Arpeggiated",
        "Strummed",
        "Picked",
        "Palm Muted",
        "Fingerpicked",
        "Jangly",
        "Clean",
        "Overdriven",
        "Crunchy",
        "Chorus Drenched",
        "Reverb Soaked",
        "Tremolo",
        "Slide",
        "Wah",
    ),
    "piano": ("Comping", "Arpeggiated", "Block Chords", "Stride Style", "Sparse", "Rolling", "Gentle", "Dramatic"),
    "bass": ("Walking", "Slapped", "Picked", "Round", "Deep", "Punchy", "Subby", "Groovy", "Syncopated", "Root Note"),
    "drums": ("Brushed", "Tight", "Punchy", "Laid Back", "Driving", "Snappy", "Tom Heavy", "Minimal", "Busy", "Loose"),
    "strings": ("Legato", "Staccato", "Pizzicato", "Tremolo", "Swelling", "Lush", "Warm", "Soaring", "Mournful"),
    "brass": ("Muted", "Bold", "Fanfare", "Stabs", "Swells", "Punchy", "Warm", "Bright"),
    "woodwind": ("Legato", "Staccato", "Soft", "Bright", "Warm", "Solo", "Ornamented", "Runs"),
    "synth": ("Sidechained", "Evolving", "Plucky", "Warm", "Bright", "Detuned", "Filtered", "Pulsing", "Shimmering"),
    "organ": ("Swelling", "Comping", "Warm", "Bright", "Full", "Sparse", "Churchy"),
    "percussion": ("Tight", "Loose", "Syncopated", "Soft", "Driving", "Minimal", "Busy", "Latin"),
}

INSTRUMENT_CATEGORIES: dict[str, str] = {
    "guitar": "guitar",
    "acoustic guitar": "guitar",
    "electric guitar": "guitar",
    "nylon string guitar": "guitar",
    "hollowbody guitar": "guitar",
    "fender stratocaster": "guitar",
    "telecaster": "guitar",
    "distorted guitar": "guitar",
    "clean guitar": "guitar",
    "piano": "piano",
    "grand piano": "piano",
    "felt piano": "piano",
    "prepared piano": "piano",
    "rhodes": "piano",
    "wurlitzer": "piano",
    "electric piano": "piano",
    "bass": "bass",
    "upright bass": "bass",
    "walking bass": "bass",
    "electric bass": "bass",
    "synth bass": "bass",
    "808": "bass",
    "drums": "drums",
    "jazz brushes": "drums",
    "kick drum": "drums",
    "snare": "drums",
    "hi-hat": "drums",
    "ride cymbal": "drums",
    "toms": "drums",
    "strings": "strings",
    "violin": "strings",
    "viola": "strings",
    "cello": "strings",
    "string ensemble": "strings",
    "trumpet": "brass",
    "muted trumpet": "brass",
    "trombone": "brass",
    "french horn": "brass",
    "tuba": "brass",
    "brass section": "brass",
    "saxophone": "woodwind",
    "tenor sax": "woodwind",
    "alto sax": "woodwind",
    "clarinet": "woodwind",
    "flute": "woodwind",
    "oboe": "woodwind",
    "synth": "synth",
    "synth pad": "synth",
    "analog synth": "synth",
    "fm synth": "synth",
    "moog synth": "synth",
    "arpeggiator": "synth",
    "supersaw": "synth",
    "organ": "organ",
    "hammond organ": "organ",
    "pipe organ": "organ",
    "congas": "percussion",
    "bongos": "percussion",
    "shaker": "percussion",
    "tambourine": "percussion",
    "handclaps": "percussion",
    "timpani": "percussion",
}

_CATEGORY_TERMS_LONGEST_FIRST: tuple[tuple[str, str], ...] = tuple(
    sorted(INSTRUMENT_CATEGORIES.items(), key=lambda item: len(item[0]), reverse=True)
)


def has_exclusion(selected: Iterable[str], candidate: str, rules: ExclusionRules) -> bool:
    """True when ``candidate`` conflicts with any selected item under ``rules``."""
    if not rules:
        return False
    folded_candidate = candidate.casefold()
    for existing in selected:
        folded_existing = existing.casefold()
        for first, second in rules:
            a = first.casefold()
            b = second.casefold()
            if (a in folded_existing and b in folded_candidate) or (
                b in folded_existing and a in folded_candidate
            ):
                return True
    return False


def combined_exclusion_rules(genres: Sequence[str]) -> list[tuple[str, str]]:
    """Union of the exclusion rules of every genre in ``genres``, first occurrence kept."""
    rules: list[tuple[str, str]] = []
    for genre in genres:
        for rule in get_genre(genre).exclusion_rules:
            if rule not in rules:
                rules.append(rule)
    return rules


def drop_conflicts(items: Sequence[str], rules: ExclusionRules) -> list[str]:
    """Keep items in order, skipping duplicates and any item that conflicts with one already kept."""
    kept: list[str] = []
    seen: set[str] = set()
    for item in items:
        if item.casefold() in seen or has_exclusion(kept, item, rules):
            continue
        kept.append(item)
        seen.add(item.casefold())
    return kept


def _draw_from_pool(
    pool: InstrumentPool,
    selected: Sequence[str],
    remaining: int,
    rules: ExclusionRules,
    rng: Rng,
) -> list[str]:
    if remaining <= 0 or not roll_chance(pool.chance_to_include, rng):
        return []
    count = min(random_int_inclusive(pool.pick_min, pool.pick_max, rng), remaining)
    if count <= 0:
        return []

    seen = {item.casefold() for item in selected}
    candidates = [item for item in pool.instruments if not has_exclusion(selected, item, rules)]
    picks: list[str] = []
    rejected = 0
    for candidate in shuffle(candidates, rng):
        if len(picks) >= count:
            break
        if candidate.casefold() in seen:
            continue
        if has_exclusion([*selected, *picks], candidate, rules):
            rejected += 1
            if rejected >= MAX_REDRAW_ATTEMPTS:
                break
            continue
        picks.append(candidate)
        seen.add(candidate.casefold())
    if len(picks) < count:
        logger.debug(
            "pool {pool} yielded {got}/{wanted} instruments",
            pool=pool.name,
            got=len(picks),
            wanted=count,
        )
    return picks


def select_from_pools(
    pools: Mapping[str, InstrumentPool],
    order: Sequence[str],
    max_count: int,
    exclusion_rules: ExclusionRules,
    rng: Rng,
    preselected: Sequence[str] = (),
) -> list[str]:
    """Draw from ``pools`` in ``order`` until ``max_count`` items are selected.

    ``preselected`` items count toward the cap and take part in exclusion checks.
    A pool that cannot satisfy its pick range after exclusions yields fewer items.
    """
    selected = list(preselected[:max_count])
    for pool_name in order:
        if len(selected) >= max_count:
            break
        pool = pools.get(pool_name)
        if pool is None:
            continue
        picks = _draw_from_pool(pool, selected, max_count - len(selected), exclusion_rules, rng)
        selected = [*selected, *picks][:max_count]
    return selected


def _inject_one_class(
    selected: list[str],
    candidates: Sequence[str],
    limit: int,
    max_tags: int,
    rules: ExclusionRules,
    rng: Rng,
) -> list[str]:
    slots = min(limit, max_tags - len(selected))
    if slots <= 0:
        return selected
    present = {item.casefold() for item in selected}
    added: list[str] = []
    for candidate in shuffle(candidates, rng):
        if len(added) >= slots:
            break
        if candidate.casefold() in present:
            continue
        if has_exclusion([*selected, *added], candidate, rules):
            continue
        added.append(candidate)
        present.add(candidate.casefold())
    return [*selected, *added]


def _genre_candidates(
    definition: GenreDefinition,
    predicate: Callable[[str], bool],
    fallback: Sequence[str],
) -> list[str]:
    own = [item for item in definition.all_instruments() if predicate(item)]
    return own if own else list(fallback)


def _apply_injections(
    selected: list[str],
    definition: GenreDefinition,
    user_instruments: Sequence[str],
    max_tags: int,
    rng: Rng,
) -> list[str]:
    rules = definition.exclusion_rules
    if not any(is_multigenre_instrument(item) for item in selected):
        candidates = _genre_candidates(definition, is_multigenre_instrument, MULTIGENRE_INSTRUMENTS)
        selected = _inject_one_class(
            selected, candidates, MAX_MULTIGENRE_INJECTIONS, max_tags, rules, rng
        )
    if not any(is_foundational_instrument(item) for item in selected):
        candidates = _genre_candidates(definition, is_foundational_instrument, FOUNDATIONAL_INSTRUMENTS)
        selected = _inject_one_class(selected, candidates, 1, max_tags, rules, rng)

    wants_orchestral = definition.key in ORCHESTRAL_GENRES or any(
        is_orchestral_color_instrument(item) for item in user_instruments
    )
    if wants_orchestral and not any(is_orchestral_color_instrument(item) for item in selected):
        candidates = _genre_candidates(
            definition, is_orchestral_color_instrument, ORCHESTRAL_COLOR_INSTRUMENTS
        )
        selected = _inject_one_class(selected, candidates, 1, max_tags, rules, rng)
    return selected


def select_instruments_for_genre(
    genre: Optional[str],
    rng: Rng,
    user_instruments: Sequence[str] = (),
    max_tags: Optional[int] = None,
    inject: bool = False,
) -> list[str]:
    """Select instruments for ``genre``; unknown keys use the default genre's pools."""
    definition = get_genre(genre)
    cap = max_tags if max_tags is not None else definition.max_tags
    user_selected = drop_conflicts(
        [item.strip() for item in user_instruments if item.strip()], definition.exclusion_rules
    )[:cap]
    selected = select_from_pools(
        definition.pools,
        definition.pool_order,
        cap,
        definition.exclusion_rules,
        rng,
        preselected=user_selected,
    )
    if inject:
        selected = _apply_injections(selected, definition, user_selected, cap, rng)
    return selected


def _category_for(instrument: str) -> Optional[str]:
    folded = instrument.casefold()
    category = INSTRUMENT_CATEGORIES.get(folded)
    if category is not None:
        return category
    for term, candidate in _CATEGORY_TERMS_LONGEST_FIRST:
        if term in folded:
            return candidate
    return None


def articulate_instrument(instrument: str, rng: Rng, chance: float = ARTICULATION_CHANCE) -> str:
    if not roll_chance(chance, rng):
        return instrument
    category = _category_for(instrument)
    if category is None:
        return instrument
    return f"{select_one(ARTICULATIONS[category], rng)} {instrument}"


def articulate_selection(
    items: Sequence[str],
    rng: Rng,
    chance: float = ARTICULATION_CHANCE,
    rules: ExclusionRules = (),
) -> list[str]:
    """Articulate each item, keeping the bare name when the articulated form would conflict."""
    result: list[str] = []
    for index, item in enumerate(items):
        articulated = articulate_instrument(item, rng, chance)
        if articulated != item and has_exclusion([*result, *items[index + 1 :]], articulated, rules):
            articulated = item
        result.append(articulated)
    return result


def select_instruments_for_multi_genre(
    genres: Sequence[str],
    rng: Rng,
    max_instruments: int = DEFAULT_MULTI_GENRE_INSTRUMENTS,
    articulation_chance: float = ARTICULATION_CHANCE,
) -> list[str]:
    """Blend up to two instruments per component genre, then articulate them.

    Every pick is checked against the exclusion rules of all components, so an
    instrument from one genre never clashes with a rule of another.
    """
    rules = combined_exclusion_rules(genres)
    combined: list[str] = []
    for genre in genres:
        taken = 0
        for instrument in select_instruments_for_genre(genre, rng):
            if taken >= PER_COMPONENT_PICKS:
                break
            if instrument.casefold() in {item.casefold() for item in combined}:
                continue
            if has_exclusion(combined, instrument, rules):
                continue
            combined.append(instrument)
            taken += 1
    blended = shuffle(combined, rng)[:max_instruments]
    return articulate_selection(blended, rng, articulation_chance, rules)
