from stylesmith_worker.services.recording import (
    GENERIC_RECORDING_CONTEXTS,
    MAX_RECORDING_DESCRIPTORS,
    RECORDING_TECHNIQUE,
    SCENE_RECORDING_CONTEXTS,
    select_recording_context,
    select_recording_descriptors,
)
from stylesmith_worker.services.rng import create_rng


def test_descriptors_never_mix_analog_and_digital() -> None:
    analog = set(RECORDING_TECHNIQUE["analog"])
    digital = set(RECORDING_TECHNIQUE["digital"])
    for genre in (None, "folk", "electronic", "rock", "ambient"):
        for seed in range(100):
            selection = select_recording_descriptors(genre, 4, create_rng(seed))
            phrases = set(selection.phrases)
            assert not (phrases & analog and phrases & digital)
            assert len(selection.phrases) == len(selection.keys)


def test_descriptor_count_is_clamped() -> None:
    assert len(select_recording_descriptors("pop", 0, create_rng(1)).phrases) == 1
    assert len(select_recording_descriptors("pop", 9, create_rng(1)).phrases) == MAX_RECORDING_DESCRIPTORS
    assert set(select_recording_descriptors("pop", 2, create_rng(1)).keys) == {"quality", "environment"}


def test_genre_biases_environment_and_technique() -> None:
    for seed in range(20):
        jazz = select_recording_descriptors("jazz", 3, create_rng(seed))
        assert jazz.keys["environment"] == "live"
        assert jazz.keys["technique"] == "analog"
        lofi = select_recording_descriptors("lofi", 2, create_rng(seed))
        assert lofi.keys["environment"] == "home"
        electronic = select_recording_descriptors("electronic", 3, create_rng(seed))
        assert electronic.keys["technique"] == "digital"


def test_scene_overrides_genre_context() -> None:
    context = select_recording_context("jazz", create_rng(3), scene="a sweaty warehouse rave")
    assert context in SCENE_RECORDING_CONTEXTS["club"]


def test_unknown_genre_uses_generic_context() -> None:
    context = select_recording_context("not-a-genre", create_rng(3), scene="somewhere vague")
    assert context in GENERIC_RECORDING_CONTEXTS
