import pytest

from stylesmith_worker.app.models import ArcDynamics, PromptRequest, SectionType
from stylesmith_worker.services.assembler import MUSICAL_KEYS, MUSICAL_MODES, PromptAssembler
from stylesmith_worker.services.classifier import ClassificationCache, Classifier
from stylesmith_worker.services.formats import MAX_MODE_HEADER, is_max_format
from stylesmith_worker.services.rng import create_rng
from stylesmith_worker.services.selector import combined_exclusion_rules, has_exclusion

DESCRIPTIONS = [
    "smooth late night jazz with a walking bass",
    "jazz and rock fusion jam",
    "a chill evening by the sea",
    "something unusual",
    "hip hop beat with heavy bass",
]


def _assembler(max_chars: int = 10_000) -> PromptAssembler:
    return PromptAssembler(Classifier(ClassificationCache(64)), max_chars=max_chars)


def test_build_is_deterministic_per_seed() -> None:
    request = PromptRequest(description="dreamy synthwave drive", seed=7)
    first = _assembler().build(request, create_rng(7))
    second = _assembler().build(request, create_rng(7))
    assert first == second
    third = _assembler().build(request, create_rng(8))
    assert third.text != first.text


@pytest.mark.parametrize("description", DESCRIPTIONS)
def test_modes_agree_on_genre_and_tempo(description: str) -> None:
    for seed in range(10):
        standard = _assembler().build(PromptRequest(description=description), create_rng(seed))
        compact = _assembler().build(
            PromptRequest(description=description, max_mode=True), create_rng(seed)
        )
        assert standard.components == compact.components
        assert standard.display_genre == compact.display_genre
        assert standard.bpm_range == compact.bpm_range
        assert standard.genre == compact.genre


def test_max_mode_layout() -> None:
    result = _assembler().build(
        PromptRequest(description="smooth jazz", max_mode=True), create_rng(3)
    )
    assert result.text.startswith(MAX_MODE_HEADER + "\n")
    assert is_max_format(result.text)
    body = result.text[len(MAX_MODE_HEADER) + 1 :].split("\n")
    assert [line.split(":", 1)[0] for line in body] == [
        "genre",
        "bpm",
        "instruments",
        "style tags",
        "recording",
    ]
    assert body[0] == 'genre: "Jazz"'
    assert body[1] == 'bpm: "between 80 and 160"'
    assert f"{result.chord_progression} harmony" in body[2]
    assert "vocals" in body[2]
    assert result.sections == []
    assert result.key is None


def test_standard_mode_layout() -> None:
    result = _assembler().build(
        PromptRequest(description="anthemic rock", narrative_arc=["isolation", "hope", "triumph"]),
        create_rng(11),
    )
    lines = result.text.split("\n")
    assert lines[0].startswith("[") and "Key: " in lines[0]
    key, mode = lines[0].rsplit("Key: ", 1)[1].rstrip("]").split(" ", 1)
    assert key in MUSICAL_KEYS
    assert mode in MUSICAL_MODES
    assert [line.split(":", 1)[0] for line in lines[2:8]] == [
        "Genre",
        "BPM",
        "Mood",
        "Instruments",
        "Style Tags",
        "Recording",
    ]
    assert lines[2] == "Genre: Rock"
    assert lines[3] == "BPM: between 100 and 150"
    assert [section.type for section in result.sections] == list(SectionType)
    assert result.sections[-1].mood == "triumph"
    assert lines[-1].startswith("[OUTRO]")


def test_override_and_genre_count() -> None:
    result = _assembler().build(
        PromptRequest(description="anything", genre_override="jazz rock", genre_count=3),
        create_rng(2),
    )
    assert result.components[:2] == ["jazz", "rock"]
    assert len(result.components) == 3
    trimmed = _assembler().build(
        PromptRequest(description="anything", genre_override="jazz rock funk", genre_count=1),
        create_rng(2),
    )
    assert trimmed.components == ["jazz"]
    assert trimmed.display_genre == "Jazz"
    assert trimmed.bpm_range == "between 80 and 160"


def test_multi_genre_keeps_user_instruments() -> None:
    result = _assembler().build(
        PromptRequest(
            description="anything",
            genre_override="jazz rock",
            user_instruments=["theremin"],
            max_mode=True,
        ),
        create_rng(4),
    )
    assert result.instruments[0] == "theremin"
    assert len(result.instruments) <= 6


def test_prompt_is_truncated_to_limit() -> None:
    result = _assembler(max_chars=200).build(
        PromptRequest(description="epic cinematic trailer"), create_rng(5)
    )
    assert len(result.text) <= 200


def test_scene_sets_recording_context() -> None:
    result = _assembler().build(
        PromptRequest(description="folk song", scene="recorded outside in a forest", max_mode=True),
        create_rng(6),
    )
    assert result.recording[0] in {
        "outdoor field recording ambience",
        "open-air recording",
        "natural environment capture",
    }


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("smooth jazz night session", "jazz"),
        ("deep house vibes", "house"),
        ("jazz rock fusion", "jazz"),
        ("hip hop beats with 808s", "trap"),
    ],
)
def test_primary_genre_follows_priority(description: str, expected: str) -> None:
    for seed in range(5):
        result = _assembler().build(PromptRequest(description=description), create_rng(seed))
        assert result.genre == expected


@pytest.mark.parametrize("override", ["ambient jazz", "jazz ambient", "lofi jazz", "rock country"])
def test_multi_genre_instruments_never_conflict(override: str) -> None:
    for seed in range(10):
        result = _assembler().build(
            PromptRequest(
                description="anything",
                genre_override=override,
                user_instruments=["Rhodes", "Hammond organ", "Wurlitzer"],
                max_mode=True,
            ),
            create_rng(seed),
        )
        rules = combined_exclusion_rules(result.components)
        assert result.instruments[0] == "Rhodes"
        for index, item in enumerate(result.instruments):
            others = result.instruments[:index] + result.instruments[index + 1 :]
            assert not has_exclusion(others, item, rules), (item, others)


def test_narrative_arc_sets_dynamics() -> None:
    plain = _assembler().build(PromptRequest(description="indie rock"), create_rng(1))
    assert plain.arc_dynamics is None
    arced = _assembler().build(
        PromptRequest(description="indie rock", narrative_arc=["calm", "tense", "release"]),
        create_rng(1),
    )
    assert arced.arc_dynamics is ArcDynamics.BUILDING
