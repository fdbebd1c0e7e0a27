"""Recording descriptor and recording-context selection.

Descriptors are drawn as at most one key per category (quality, environment,
technique, character) so that contradictory phrases such as an analog and a
digital technique can never appear together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .rng import Rng, select_one

MAX_RECORDING_DESCRIPTORS = 4

RECORDING_QUALITY: dict[str, tuple[str, ...]] = {
    "professional": (
        "professional mastering polish",
        "studio-grade production",
        "commercial studio sound",
    ),
    "demo": ("demo tape roughness", "rough mix aesthetic", "unpolished demo vibe"),
    "raw": ("bootleg live recording character", "raw performance energy", "unedited authenticity"),
}

RECORDING_ENVIRONMENT: dict[str, tuple[str, ...]] = {
    "studio": ("studio session warmth", "recording studio precision", "controlled studio environment"),
    "live": ("live venue capture", "concert hall natural acoustics", "live performance energy"),
    "home": ("intimate bedroom recording", "home studio intimacy", "DIY home production"),
    "rehearsal": ("rehearsal room authenticity", "jam session energy", "practice space vibe"),
    "outdoor": ("outdoor field recording ambience", "natural environment capture", "open-air recording"),
}

RECORDING_TECHNIQUE: dict[str, tuple[str, ...]] = {
    "analog": (
        "warm analog console",
        "tape recorder warmth",
        "analog four-track character",
        "cassette tape saturation",
        "vintage vinyl warmth",
        "direct-to-disc recording",
    ),
    "digital": ("digital production clarity", "modern DAW precision", "digital multitrack recording"),
    "hybrid": ("hybrid analog-digital chain", "mixed recording techniques"),
}

RECORDING_CHARACTER: dict[str, tuple[str, ...]] = {
    "intimate": ("intimate close-micd sound", "close-up performance texture", "single microphone capture"),
    "spacious": ("atmospheric miking", "room ambience capture", "spacious reverb character"),
    "vintage": ("vintage recording aesthetic", "retro production character", "classic recording vibe"),
    "modern": ("contemporary production sound", "modern recording techniques"),
    "compressed": ("radio broadcast compression", "tight dynamic control"),
}

_ELECTRONIC_TERMS = ("electronic", "edm", "house", "techno", "trap", "dubstep", "trance", "drill")
_ACOUSTIC_VINTAGE_TERMS = ("folk", "blues", "jazz", "soul", "vintage", "retro", "country")
_MODERN_POP_ROCK_TERMS = ("pop", "rock", "indie")
_CLASSICAL_TERMS = ("classical", "orchestral", "symphonic")
_JAZZ_BLUES_TERMS = ("jazz", "blues")
_BEDROOM_TERMS = ("lofi", "lo-fi", "bedroom")
_REHEARSAL_TERMS = ("punk", "garage")

GENRE_RECORDING_CONTEXTS: dict[str, tuple[str, ...]] = {
    "pop": (
        "modern pop studio",
        "professional vocal booth",
        "digital pop production",
        "radio-ready mix",
        "contemporary pop sound",
        "polished pop production",
    ),
    "rock": (
        "live room tracking",
        "vintage rock studio",
        "analog rock recording",
        "garage band setup",
        "rehearsal room energy",
        "basement rock session",
    ),
    "jazz": (
        "intimate jazz club",
        "small jazz ensemble",
        "live jazz session",
        "blue note studio vibe",
        "jazz quartet intimacy",
        "smoky club atmosphere",
    ),
    "blues": (
        "delta blues porch recording",
        "chicago blues club",
        "juke joint atmosphere",
        "roadhouse blues session",
        "one-mic blues capture",
    ),
    "soul": (
        "memphis soul studio",
        "motown recording booth",
        "vintage soul session",
        "church recording vibe",
        "southern soul studio",
    ),
    "rnb": (
        "contemporary r&b studio",
        "smooth r&b production",
        "neo-soul recording",
        "bedroom r&b session",
        "alternative r&b sound",
    ),
    "country": (
        "nashville studio warmth",
        "honky-tonk recording",
        "country barn session",
        "bluegrass porch recording",
        "americana recording",
    ),
    "folk": (
        "coffeehouse recording",
        "cabin acoustic session",
        "living room intimacy",
        "campfire recording",
        "singer-songwriter booth",
    ),
    "classical": (
        "concert hall recording",
        "chamber music space",
        "recital hall acoustics",
        "cathedral recording",
        "conservatory hall",
    ),
    "symphonic": (
        "symphonic hall capture",
        "large ensemble recording",
        "epic orchestral space",
        "studio orchestra sound",
    ),
    "ambient": (
        "atmospheric field recording",
        "cathedral reverb space",
        "nature soundscape",
        "drone recording space",
        "immersive soundscape",
    ),
    "cinematic": (
        "film scoring stage",
        "epic trailer production",
        "hollywood scoring studio",
        "soundtrack recording",
        "theatrical sound stage",
    ),
    "electronic": (
        "digital production studio",
        "synthesizer laboratory",
        "modular synth setup",
        "laptop production",
        "hybrid analog-digital rig",
    ),
    "house": (
        "chicago house studio",
        "underground club sound",
        "warehouse party vibe",
        "ibiza club recording",
        "classic house studio",
    ),
    "melodictechno": (
        "berlin warehouse techno",
        "minimal techno studio",
        "detroit techno sound",
        "modular techno setup",
    ),
    "metal": (
        "heavy metal studio",
        "brutal tracking room",
        "high-gain production",
        "progressive metal studio",
    ),
    "punk": (
        "punk basement recording",
        "raw punk session",
        "diy punk studio",
        "garage punk sound",
    ),
}

GENERIC_RECORDING_CONTEXTS: tuple[str, ...] = (
    "studio session, warm analog console",
    "late night studio session vibe",
    "home studio intimacy",
    "professional mastering polish",
    "concert hall natural acoustics",
    "basement jam session energy",
    "single microphone capture",
)

SCENE_RECORDING_CONTEXTS: dict[str, tuple[str, ...]] = {
    "studio": ("controlled studio environment", "recording studio precision", "studio session warmth"),
    "live": ("live venue capture", "live performance energy", "concert hall natural acoustics"),
    "bedroom": ("intimate bedroom recording", "home studio intimacy", "DIY home production"),
    "outdoor": ("outdoor field recording ambience", "open-air recording", "natural environment capture"),
    "club": ("underground club sound", "club sound system", "warehouse party vibe"),
}

_SCENE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("studio", ("studio", "booth", "session")),
    ("live", ("live", "concert", "stage", "venue", "gig")),
    ("bedroom", ("bedroom", "home", "apartment", "living room")),
    ("outdoor", ("outdoor", "outside", "forest", "beach", "field", "open air")),
    ("club", ("club", "warehouse", "rave", "dance floor")),
)


@dataclass
class RecordingSelection:
    """Category keys chosen for a recording descriptor draw and their phrases."""

    keys: dict[str, str] = field(default_factory=dict)
    phrases: list[str] = field(default_factory=list)


def _contains_any(folded: str, terms: tuple[str, ...]) -> bool:
    return any(term in folded for term in terms)


def preferred_environment(genre: Optional[str]) -> Optional[str]:
    if not genre:
        return None
    folded = genre.casefold()
    if _contains_any(folded, _CLASSICAL_TERMS) or _contains_any(folded, _JAZZ_BLUES_TERMS):
        return "live"
    if _contains_any(folded, _BEDROOM_TERMS):
        return "home"
    if _contains_any(folded, _REHEARSAL_TERMS):
        return "rehearsal"
    return None


def preferred_technique(genre: Optional[str]) -> Optional[str]:
    if not genre:
        return None
    folded = genre.casefold()
    if _contains_any(folded, _ELECTRONIC_TERMS):
        return "digital"
    if _contains_any(folded, _ACOUSTIC_VINTAGE_TERMS):
        return "analog"
    if _contains_any(folded, _MODERN_POP_ROCK_TERMS):
        return "hybrid"
    return None


def _draw(category: dict[str, tuple[str, ...]], key: Optional[str], rng: Rng) -> tuple[str, str]:
    chosen = key if key is not None else select_one(tuple(category), rng)
    return chosen, select_one(category[chosen], rng)


def select_recording_descriptors(genre: Optional[str], count: int, rng: Rng) -> RecordingSelection:
    clamped = max(1, min(MAX_RECORDING_DESCRIPTORS, count))
    selection = RecordingSelection()

    key, phrase = _draw(RECORDING_QUALITY, None, rng)
    selection.keys["quality"] = key
    selection.phrases.append(phrase)

    if clamped >= 2:
        key, phrase = _draw(RECORDING_ENVIRONMENT, preferred_environment(genre), rng)
        selection.keys["environment"] = key
        selection.phrases.append(phrase)
    if clamped >= 3:
        key, phrase = _draw(RECORDING_TECHNIQUE, preferred_technique(genre), rng)
        selection.keys["technique"] = key
        selection.phrases.append(phrase)
    if clamped >= 4:
        key, phrase = _draw(RECORDING_CHARACTER, None, rng)
        selection.keys["character"] = key
        selection.phrases.append(phrase)
    return selection


def _scene_key(scene: str) -> Optional[str]:
    folded = scene.casefold()
    for key, keywords in _SCENE_KEYWORDS:
        if _contains_any(folded, keywords):
            return key
    return None


def select_recording_context(genre: Optional[str], rng: Rng, scene: Optional[str] = None) -> str:
    """Pick one recording-context phrase; a recognised scene overrides the genre."""
    if scene:
        key = _scene_key(scene)
        if key is not None:
            return select_one(SCENE_RECORDING_CONTEXTS[key], rng)
    contexts = GENRE_RECORDING_CONTEXTS.get((genre or "").strip().casefold())
    if contexts:
        return select_one(contexts, rng)
    return select_one(GENERIC_RECORDING_CONTEXTS, rng)
