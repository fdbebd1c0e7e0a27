import pytest

from stylesmith_worker.app.models import (
    ArcDynamics,
    ContrastSection,
    Dynamics,
    SchemaSectionType,
    SectionEnergy,
    SectionType,
)
from stylesmith_worker.services import sections
from stylesmith_worker.services.rng import create_rng
from stylesmith_worker.services.sections import (
    DYNAMICS_DESCRIPTORS,
    SECTION_ORDER,
    SectionComposer,
    infer_dynamics_from_arc,
    interpolate_template,
    merge_overrides,
    narrative_arc_to_overrides,
    select_section_instruments,
)


def test_narrative_arc_projects_onto_sections() -> None:
    overrides = narrative_arc_to_overrides(["isolation", "hope", "triumph"])
    assert overrides[SectionType.INTRO].mood == "isolation"
    assert overrides[SectionType.VERSE].mood == "isolation"
    assert overrides[SectionType.CHORUS].mood == "hope"
    assert overrides[SectionType.BRIDGE].mood == "hope"
    assert overrides[SectionType.OUTRO].mood == "triumph"
    assert overrides[SectionType.CHORUS].dynamics == Dynamics.POWERFUL


def test_short_arc_reuses_first_mood_for_middle() -> None:
    overrides = narrative_arc_to_overrides(["calm", "rage"])
    assert overrides[SectionType.CHORUS].mood == "calm"
    assert overrides[SectionType.OUTRO].mood == "rage"
    assert narrative_arc_to_overrides([" ", ""]) == {}


def test_contrast_wins_over_arc() -> None:
    contrast = [
        ContrastSection(section=SchemaSectionType.CHORUS, mood="fury", dynamics=Dynamics.EXPLOSIVE),
        ContrastSection(section=SchemaSectionType.BREAKDOWN, mood="stillness"),
    ]
    merged = merge_overrides(contrast, ["isolation", "hope", "triumph"])
    assert merged[SectionType.CHORUS].mood == "fury"
    assert merged[SectionType.BRIDGE].mood == "stillness"
    assert merged[SectionType.INTRO].mood == "isolation"
    assert merged[SectionType.OUTRO].mood == "triumph"


def test_composed_sections_follow_arc() -> None:
    composed = SectionComposer().compose(
        "jazz", create_rng(21), narrative_arc=["isolation", "hope", "triumph"]
    )
    moods = {section.type: section.mood for section in composed.sections}
    assert moods == {
        SectionType.INTRO: "isolation",
        SectionType.VERSE: "isolation",
        SectionType.CHORUS: "hope",
        SectionType.BRIDGE: "hope",
        SectionType.OUTRO: "triumph",
    }
    assert [section.type for section in composed.sections] == list(SECTION_ORDER)
    lines = composed.text.split("\n")
    assert [line.split("]")[0] + "]" for line in lines] == [
        "[INTRO]",
        "[VERSE]",
        "[CHORUS]",
        "[BRIDGE]",
        "[OUTRO]",
    ]


def test_section_energy_and_instrument_counts() -> None:
    composed = SectionComposer(articulation_chance=0.0).compose("rock", create_rng(5))
    by_type = {section.type: section for section in composed.sections}
    assert by_type[SectionType.INTRO].energy == SectionEnergy.LOW
    assert by_type[SectionType.CHORUS].energy == SectionEnergy.HIGH
    assert len(by_type[SectionType.INTRO].instruments) == 1
    assert len(by_type[SectionType.VERSE].instruments) == 2
    assert composed.instruments == [item for section in composed.sections for item in section.instruments]


def test_dynamics_override_picks_matching_descriptor() -> None:
    composer = SectionComposer(articulation_chance=0.0)
    contrast = [ContrastSection(section=SchemaSectionType.INTRO, mood="hushed", dynamics=Dynamics.SOFT)]
    composed = composer.compose("ambient", create_rng(2), contrast=contrast)
    intro = composed.sections[0]
    assert intro.dynamics == Dynamics.SOFT
    assert intro.mood == "hushed"
    assert intro.text.startswith("[INTRO] ")


def test_compose_is_deterministic() -> None:
    first = SectionComposer().compose("electronic", create_rng(77), narrative_arc=["dark", "light"])
    second = SectionComposer().compose("electronic", create_rng(77), narrative_arc=["dark", "light"])
    assert first.text == second.text
    assert first.sections == second.sections


def test_section_instruments_avoid_recent(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sections,
        "select_instruments_for_genre",
        lambda genre, rng, max_tags=None: ["a", "b", "c", "d"],
    )
    for seed in range(10):
        picked = select_section_instruments("jazz", 2, ["A", "b"], create_rng(seed))
        assert sorted(picked) == ["c", "d"]


def test_section_instruments_fall_back_to_full_pool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sections,
        "select_instruments_for_genre",
        lambda genre, rng, max_tags=None: ["a", "b", "c"],
    )
    picked = select_section_instruments("jazz", 2, ["a", "b"], create_rng(1))
    assert len(picked) == 2
    assert set(picked) <= {"a", "b", "c"}


def test_interpolation_is_single_pass() -> None:
    text = interpolate_template(
        "{mood} {instrument1} with {descriptor} {unknown}",
        {"mood": "{instrument1}", "instrument1": "piano", "descriptor": "warm"},
    )
    assert text == "{instrument1} piano with warm {unknown}"


@pytest.mark.parametrize(
    ("arc", "expected"),
    [
        ([], ArcDynamics.STEADY),
        (["a", "b"], ArcDynamics.STEADY),
        (["a", "b", "c"], ArcDynamics.BUILDING),
        (["a", "b", "c", "d", "e"], ArcDynamics.DRAMATIC),
    ],
)
def test_infer_dynamics_from_arc(arc: list[str], expected: ArcDynamics) -> None:
    assert infer_dynamics_from_arc(arc) == expected


def test_dynamics_descriptor_tables_cover_every_level() -> None:
    assert set(DYNAMICS_DESCRIPTORS) == set(Dynamics)
