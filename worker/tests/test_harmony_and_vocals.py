from stylesmith_worker.services.progressions import (
    DEFAULT_PROGRESSION,
    GENRE_PROGRESSIONS,
    PROGRESSIONS,
    detect_progression,
    progressions_for_genre,
    select_progression,
)
from stylesmith_worker.services.rng import create_rng
from stylesmith_worker.services.vocals import vocal_style_for_genre, vocal_style_tags


def test_genre_tables_reference_catalog() -> None:
    for keys in GENRE_PROGRESSIONS.values():
        assert all(key in PROGRESSIONS for key in keys)
    assert DEFAULT_PROGRESSION.short == "The Standard (I-V-vi-IV)"
    assert DEFAULT_PROGRESSION.harmony_tag == "The Standard (I-V-vi-IV) harmony"


def test_unknown_genre_uses_pop_progressions() -> None:
    assert progressions_for_genre("no-such-genre") == progressions_for_genre("pop")


def test_named_progression_in_description_wins() -> None:
    assert detect_progression("a flamenco guitar piece") == PROGRESSIONS["the_andalusian"]
    picked = select_progression("pop", create_rng(1), description="classic 12 bar shuffle")
    assert picked == PROGRESSIONS["the_blues"]


def test_genre_progression_is_seeded() -> None:
    first = select_progression("jazz", create_rng(3))
    assert first == select_progression("jazz", create_rng(3))
    assert first.key in GENRE_PROGRESSIONS["jazz"]


def test_vocal_style_descriptor_and_tags() -> None:
    style = vocal_style_for_genre("soul", create_rng(2))
    assert style.descriptor.startswith(style.range)
    assert style.tag == f"{style.range} vocals, {style.delivery} delivery"
    tags = vocal_style_tags(style.descriptor)
    assert tags[0] == f"{style.range.lower()} vocals"
    assert tags[1] == f"{style.delivery.lower()} delivery"


def test_vocal_style_tags_edge_cases() -> None:
    assert vocal_style_tags("") == []
    assert vocal_style_tags("Male Vocals, Raspy") == ["male vocals", "raspy"]
