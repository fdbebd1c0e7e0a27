from itertools import permutations

import pytest

from stylesmith_worker.services.registry import ALL_GENRE_KEYS, InstrumentPool, get_genre
from stylesmith_worker.services.rng import create_rng
from stylesmith_worker.services.selector import (
    ARTICULATIONS,
    DEFAULT_MULTI_GENRE_INSTRUMENTS,
    articulate_instrument,
    articulate_selection,
    combined_exclusion_rules,
    drop_conflicts,
    has_exclusion,
    select_from_pools,
    select_instruments_for_genre,
    select_instruments_for_multi_genre,
)


def test_has_exclusion_is_symmetric_and_case_insensitive() -> None:
    rules = (("Rhodes", "Hammond organ"),)
    assert has_exclusion(["rhodes"], "Hammond Organ", rules)
    assert has_exclusion(["Hammond organ"], "Rhodes", rules)
    assert not has_exclusion(["piano"], "Rhodes", rules)
    assert not has_exclusion(["Rhodes"], "Hammond organ", ())


def test_genre_selection_respects_cap_and_exclusions() -> None:
    definition = get_genre("jazz")
    for seed in range(100):
        selected = select_instruments_for_genre("jazz", create_rng(seed))
        assert 0 < len(selected) <= definition.max_tags
        assert len({item.casefold() for item in selected}) == len(selected)
        for index, item in enumerate(selected):
            others = selected[:index] + selected[index + 1 :]
            assert not has_exclusion(others, item, definition.exclusion_rules)


def test_genre_selection_is_deterministic() -> None:
    first = select_instruments_for_genre("ambient", create_rng(17), inject=True)
    second = select_instruments_for_genre("ambient", create_rng(17), inject=True)
    assert first == second


def test_user_instruments_lead_and_count_toward_cap() -> None:
    selected = select_instruments_for_genre(
        "rock", create_rng(2), user_instruments=["theremin", " ", "banjo"], max_tags=3
    )
    assert selected[:2] == ["theremin", "banjo"]
    assert len(selected) <= 3


def test_unknown_genre_uses_default_pools() -> None:
    pool_items = {item.casefold() for item in get_genre("pop").all_instruments()}
    selected = select_instruments_for_genre("no-such-genre", create_rng(8))
    assert selected
    assert all(item.casefold() in pool_items for item in selected)


def test_conflicting_pool_degrades_to_fewer_items() -> None:
    pools = {"pair": InstrumentPool(name="pair", pick_min=2, pick_max=2, instruments=("x", "y"))}
    rules = (("x", "y"),)
    for seed in range(20):
        selected = select_from_pools(pools, ("pair",), 4, rules, create_rng(seed))
        assert len(selected) == 1
    assert select_from_pools(pools, ("pair",), 4, rules, create_rng(1), preselected=["x"]) == ["x"]


def test_pool_chance_zero_is_skipped() -> None:
    pools = {
        "never": InstrumentPool(
            name="never", pick_min=1, pick_max=1, instruments=("z",), chance_to_include=0.0
        )
    }
    assert select_from_pools(pools, ("never", "missing"), 3, (), create_rng(1)) == []


def test_articulation_prefixes_known_categories() -> None:
    assert articulate_instrument("piano", create_rng(1), chance=0.0) == "piano"
    articulated = articulate_instrument("piano", create_rng(1), chance=1.0)
    prefix = articulated[: -len(" piano")]
    assert articulated.endswith(" piano")
    assert prefix in ARTICULATIONS["piano"]
    assert articulate_instrument("theremin", create_rng(1), chance=1.0) == "theremin"


def test_multi_genre_blend_is_capped_and_distinct() -> None:
    for seed in range(30):
        blended = select_instruments_for_multi_genre(
            ["jazz", "rock", "electronic", "ambient"], create_rng(seed), articulation_chance=0.0
        )
        assert 0 < len(blended) <= DEFAULT_MULTI_GENRE_INSTRUMENTS
        assert len({item.casefold() for item in blended}) == len(blended)


def _assert_conflict_free(items: list[str], rules) -> None:
    for index, item in enumerate(items):
        others = items[:index] + items[index + 1 :]
        assert not has_exclusion(others, item, rules), (item, others)


@pytest.mark.parametrize("inject", [False, True])
@pytest.mark.parametrize("genre", ALL_GENRE_KEYS)
def test_every_genre_respects_cap_and_exclusions(genre: str, inject: bool) -> None:
    definition = get_genre(genre)
    for seed in range(20):
        selected = select_instruments_for_genre(genre, create_rng(seed), inject=inject)
        assert len(selected) <= definition.max_tags
        assert len({item.casefold() for item in selected}) == len(selected)
        _assert_conflict_free(selected, definition.exclusion_rules)


def test_multi_genre_blend_respects_every_component_rule() -> None:
    for first, second in permutations(ALL_GENRE_KEYS, 2):
        rules = combined_exclusion_rules([first, second])
        for seed in range(3):
            blended = select_instruments_for_multi_genre([first, second], create_rng(seed))
            _assert_conflict_free(blended, rules)


def test_combined_rules_merge_components() -> None:
    rules = combined_exclusion_rules(["ambient", "jazz", "ambient"])
    assert ("Rhodes", "Hammond organ") in rules
    assert ("Rhodes", "Wurlitzer") in rules
    assert len(rules) == len(set(rules))


def test_conflicting_user_instruments_keep_the_first() -> None:
    assert drop_conflicts(["Rhodes", "rhodes", "Hammond organ", "tenor sax"], (("Rhodes", "Hammond organ"),)) == [
        "Rhodes",
        "tenor sax",
    ]
    selected = select_instruments_for_genre(
        "jazz", create_rng(4), user_instruments=["Rhodes", "Hammond organ"], max_tags=2
    )
    assert selected[0] == "Rhodes"
    assert "Hammond organ" not in selected


def test_articulation_never_introduces_a_conflict() -> None:
    rules = (("fingerpicked guitar", "banjo"),)
    for seed in range(50):
        articulated = articulate_selection(["guitar", "banjo"], create_rng(seed), chance=1.0, rules=rules)
        assert articulated[1] == "banjo"
        assert articulated[0] != "Fingerpicked guitar"
