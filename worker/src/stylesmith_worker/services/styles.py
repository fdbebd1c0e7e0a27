"""Keyword tables for the harmonic, rhythmic and meter style axes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StyleAxis(str, Enum):
    HARMONIC = "harmonic"
    RHYTHMIC = "rhythmic"
    COMBINATION = "combination"
    POLYRHYTHM_COMBINATION = "polyrhythm_combination"
    TIME_SIGNATURE = "time_signature"
    TIME_SIGNATURE_JOURNEY = "time_signature_journey"


@dataclass(frozen=True)
class StyleEntry:
    key: str
    name: str
    keywords: tuple[str, ...]
    description: str


@dataclass(frozen=True)
class KeywordAxis:
    """Ordered keyword table; the first entry in ``priority`` with a keyword hit wins."""

    axis: StyleAxis
    entries: dict[str, StyleEntry]
    priority: tuple[str, ...]

    def match(self, folded_text: str) -> Optional[str]:
        for key in self.priority:
            entry = self.entries[key]
            if any(keyword in folded_text for keyword in entry.keywords):
                return key
        return None

    def get(self, key: Optional[str]) -> Optional[StyleEntry]:
        if key is None:
            return None
        return self.entries.get(key)


def _axis(axis: StyleAxis, rows: list[tuple[str, str, tuple[str, ...], str]]) -> KeywordAxis:
    entries = {
        key: StyleEntry(key=key, name=name, keywords=keywords, description=description)
        for key, name, keywords, description in rows
    }
    return KeywordAxis(axis=axis, entries=entries, priority=tuple(key for key, *_ in rows))


HARMONIC_AXIS = _axis(
    StyleAxis.HARMONIC,
    [
        (
            "lydian_dominant",
            "Lydian Dominant",
            ("dominant", "7#11", "jazzy", "fusion", "funk"),
            "Bright #11 over a flat seventh; playful jazz-funk tension",
        ),
        (
            "lydian_augmented",
            "Lydian Augmented",
            ("augmented", "#5", "mysterious", "alien", "space"),
            "Raised fourth and fifth; floating, otherworldly suspension",
        ),
        (
            "lydian_sharp_two",
            "Lydian #2",
            ("#2", "sharp 2", "exotic", "enchanted", "magic"),
            "Augmented second colour; enchanted, exotic brightness",
        ),
        (
            "lydian",
            "Lydian",
            ("lydian", "#11", "sharp 11", "maj7#11"),
            "Major scale with a raised fourth; dreamy, weightless wonder",
        ),
    ],
)

RHYTHMIC_AXIS = _axis(
    StyleAxis.RHYTHMIC,
    [
        (
            "polyrhythm",
            "Polyrhythm",
            (
                "polyrhythm",
                "poly rhythm",
                "poly-rhythm",
                "cross rhythm",
                "cross-rhythm",
                "2:3",
                "3:4",
                "4:3",
                "5:4",
                "7:4",
                "interlocking rhythm",
            ),
            "Interlocking, hypnotic rhythmic complexity",
        ),
    ],
)

COMBINATION_AXIS = _axis(
    StyleAxis.COMBINATION,
    [
        (
            "major_minor",
            "Major-Minor (Bittersweet)",
            ("bittersweet", "major minor", "borrowed chords", "emotional major", "happy sad"),
            "Major verses borrowing minor colour for bittersweet lift",
        ),
        (
            "lydian_minor",
            "Lydian-Minor (Dreamlike Darkness)",
            ("lydian minor", "dream dark", "floating dark", "cinematic tension", "ethereal dark"),
            "Floating lydian brightness shadowed by minor darkness",
        ),
        (
            "lydian_major",
            "Lydian-Major (Floating Resolution)",
            ("lydian major", "floating happy", "bright uplifting", "dreamy resolution"),
            "Lydian suspension resolving into plain major",
        ),
        (
            "dorian_lydian",
            "Dorian-Lydian (Jazz Fusion)",
            ("jazz fusion", "dorian lydian", "sophisticated groove"),
            "Dorian groove opening into lydian brightness",
        ),
        (
            "harmonic_major",
            "Harmonic Minor-Major (Classical Drama)",
            ("classical drama", "dramatic resolution", "gothic triumph", "picardy"),
            "Harmonic minor tension resolving to a major triumph",
        ),
        (
            "phrygian_major",
            "Phrygian-Major (Spanish Triumph)",
            ("spanish triumph", "flamenco resolution", "exotic bright"),
            "Phrygian heat turning into major celebration",
        ),
        (
            "minor_journey",
            "Minor Scale Journey",
            ("minor journey", "minor exploration", "evolving minor", "minor scales"),
            "Moves through natural, harmonic and melodic minor",
        ),
        (
            "lydian_exploration",
            "Lydian Exploration",
            ("lydian exploration", "lydian journey", "all lydian", "lydian modes"),
            "Tours the lydian family from pure to augmented",
        ),
        (
            "major_modes",
            "Major Mode Spectrum",
            ("major modes", "bright to bluesy", "major exploration", "major journey"),
            "Ionian to mixolydian, bright to bluesy",
        ),
        (
            "dark_modes",
            "Dark Mode Descent",
            ("dark modes", "descending darkness", "dark journey", "darker and darker"),
            "Aeolian through phrygian to locrian, ever darker",
        ),
    ],
)

POLYRHYTHM_COMBINATION_AXIS = _axis(
    StyleAxis.POLYRHYTHM_COMBINATION,
    [
        (
            "groove_to_drive",
            "Groove to Drive",
            ("building rhythm", "energy build", "groove to drive", "dance build"),
            "Hemiola swing building into driving 4:3",
        ),
        (
            "tension_release",
            "Tension Release",
            ("tension release", "drop", "build and release", "satisfying rhythm"),
            "Limping 3:4 tension released into straight time",
        ),
        (
            "afrobeat_journey",
            "Afrobeat Journey",
            ("afrobeat journey", "world rhythm", "african fusion", "organic build"),
            "Layered African cross-rhythms building organically",
        ),
        (
            "complex_simple",
            "Complex to Simple",
            ("complex to simple", "prog resolution", "math to groove", "settle down"),
            "Shifting 5:4 settling into a simple groove",
        ),
        (
            "complexity_build",
            "Complexity Build",
            ("complexity build", "building polyrhythm", "evolving rhythm", "progressive build"),
            "Simple pulse layering into dense polyrhythm",
        ),
        (
            "triplet_exploration",
            "Triplet Exploration",
            ("triplet exploration", "jazzy rhythm", "fusion rhythm", "triplet journey"),
            "Triplet feels moving between swing and straight",
        ),
        (
            "odd_journey",
            "Odd Time Journey",
            ("odd journey", "prog rhythm", "math rock", "complex throughout", "odd time"),
            "Odd groupings from start to finish",
        ),
        (
            "tension_arc",
            "Full Tension Arc",
            ("tension arc", "full journey", "build and resolve", "complete rhythm arc"),
            "Complete build, peak and resolution of rhythmic tension",
        ),
    ],
)

TIME_SIGNATURE_AXIS = _axis(
    StyleAxis.TIME_SIGNATURE,
    [
        ("time_15_8", "15/8 Time", ("15/8", "fifteen eight", "extreme odd"), "Long cycling odd meter"),
        (
            "time_13_8",
            "13/8 Time",
            ("13/8", "thirteen eight", "king crimson", "extreme prog"),
            "Asymmetric prog meter",
        ),
        ("time_11_8", "11/8 Time", ("11/8", "eleven eight", "tool time", "prog eleven"), "Restless prog pulse"),
        (
            "time_9_8",
            "9/8 Time",
            ("9/8", "nine eight", "slip jig", "compound triple"),
            "Three groups of three, lilting",
        ),
        (
            "time_7_8",
            "7/8 Time",
            ("7/8", "seven eight", "balkan", "aksak", "limping"),
            "Limping Balkan pulse",
        ),
        ("time_7_4", "7/4 Time", ("7/4", "seven four", "expansive odd", "prog seven"), "Expansive odd meter"),
        ("time_5_8", "5/8 Time", ("5/8", "five eight", "quick five", "balkan five"), "Quick asymmetric five"),
        (
            "time_5_4",
            "5/4 Time",
            ("5/4", "five four", "take five", "quintuple", "five time"),
            "Cool jazz five",
        ),
        (
            "time_6_8",
            "Compound Duple",
            ("6/8", "six eight", "compound", "jig", "shuffle"),
            "Rolling two-beat feel in triplets",
        ),
        ("time_3_4", "Waltz Time", ("3/4", "waltz", "three four", "triple meter"), "Waltz lilt"),
        ("time_4_4", "Common Time", ("4/4", "common time", "four four", "standard"), "Steady common time"),
    ],
)

TIME_SIGNATURE_JOURNEY_AXIS = _axis(
    StyleAxis.TIME_SIGNATURE_JOURNEY,
    [
        (
            "prog_odyssey",
            "Prog Odyssey",
            ("prog odyssey", "meter journey", "time signature journey", "prog exploration"),
            "4/4 to 7/8 to 5/4 and home again",
        ),
        (
            "balkan_fusion",
            "Balkan Fusion",
            ("balkan fusion", "eastern meters", "aksak journey", "odd meter fusion"),
            "7/8 into 9/8 into 11/8",
        ),
        (
            "jazz_exploration",
            "Jazz Time Exploration",
            ("jazz exploration", "brubeck style", "cool jazz meters", "jazz odd time"),
            "4/4 swing through 5/4 and 3/4",
        ),
        (
            "math_rock_descent",
            "Math Rock Descent",
            ("math rock", "math descent", "increasing complexity", "odd descent"),
            "Ever more fractured meters",
        ),
        (
            "celtic_journey",
            "Celtic Journey",
            ("celtic journey", "irish meters", "jig to waltz", "celtic fusion"),
            "6/8 jig into 9/8 slip jig into 3/4 waltz",
        ),
        (
            "metal_complexity",
            "Metal Complexity",
            ("metal complexity", "djent journey", "prog metal meters", "heavy odd time"),
            "Heavy 4/4 fracturing into 7/8 and 13/8",
        ),
        (
            "gentle_odd",
            "Gentle Odd",
            ("gentle odd", "soft odd time", "accessible odd", "subtle complexity"),
            "Soft 5/4 and 7/4 that never feel jarring",
        ),
    ],
)

AXES: dict[StyleAxis, KeywordAxis] = {
    HARMONIC_AXIS.axis: HARMONIC_AXIS,
    RHYTHMIC_AXIS.axis: RHYTHMIC_AXIS,
    COMBINATION_AXIS.axis: COMBINATION_AXIS,
    POLYRHYTHM_COMBINATION_AXIS.axis: POLYRHYTHM_COMBINATION_AXIS,
    TIME_SIGNATURE_AXIS.axis: TIME_SIGNATURE_AXIS,
    TIME_SIGNATURE_JOURNEY_AXIS.axis: TIME_SIGNATURE_JOURNEY_AXIS,
}
