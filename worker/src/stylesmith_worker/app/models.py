from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SectionType(str, Enum):
    INTRO = "intro"
    VERSE = "verse"
    CHORUS = "chorus"
    BRIDGE = "bridge"
    OUTRO = "outro"


class SchemaSectionType(str, Enum):
    INTRO = "intro"
    VERSE = "verse"
    PRE_CHORUS = "pre-chorus"
    CHORUS = "chorus"
    BRIDGE = "bridge"
    BREAKDOWN = "breakdown"
    OUTRO = "outro"


class SectionEnergy(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Dynamics(str, Enum):
    SOFT = "soft"
    BUILDING = "building"
    POWERFUL = "powerful"
    EXPLOSIVE = "explosive"


class ArcDynamics(str, Enum):
    STEADY = "steady"
    BUILDING = "building"
    DRAMATIC = "dramatic"


class TitleSource(str, Enum):
    LLM = "llm"
    DETERMINISTIC = "deterministic"


class Classification(BaseModel):
    genre: Optional[str] = None
    harmonic_style: Optional[str] = None
    rhythmic_style: Optional[str] = None
    combination: Optional[str] = None
    polyrhythm_combination: Optional[str] = None
    time_signature: Optional[str] = None
    time_signature_journey: Optional[str] = None


class GenreResolution(BaseModel):
    detected: Optional[str] = None
    primary_genre: str
    components: list[str] = Field(..., min_length=1, max_length=4)
    display_genre: str


class ModeSelection(BaseModel):
    genre: Optional[str] = None
    combination: Optional[str] = None
    single_mode: Optional[str] = None
    polyrhythm_combination: Optional[str] = None
    time_signature: Optional[str] = None
    time_signature_journey: Optional[str] = None
    reasoning: str = ""


class SectionOverride(BaseModel):
    mood: Optional[str] = Field(default=None, max_length=64)
    dynamics: Optional[Dynamics] = None


class ContrastSection(BaseModel):
    section: SchemaSectionType
    mood: Optional[str] = Field(default=None, max_length=64)
    dynamics: Optional[Dynamics] = None


class ComposedSection(BaseModel):
    type: SectionType
    text: str
    instruments: list[str] = Field(default_factory=list)
    mood: str
    energy: SectionEnergy
    dynamics: Optional[Dynamics] = None


class PromptRequest(BaseModel):
    description: str = Field(default="", max_length=2000)
    seed: Optional[int] = Field(default=None, ge=0, le=0xFFFFFFFF)
    max_mode: bool = False
    genre_override: Optional[str] = Field(default=None, max_length=128)
    user_instruments: list[str] = Field(default_factory=list, max_length=16)
    narrative_arc: list[str] = Field(default_factory=list, max_length=8)
    contrast: list[ContrastSection] = Field(default_factory=list, max_length=8)
    genre_count: Optional[int] = Field(default=None, ge=1, le=4)
    scene: Optional[str] = Field(default=None, max_length=256)


class PromptResult(BaseModel):
    text: str
    max_mode: bool
    genre: str
    display_genre: str
    components: list[str]
    bpm_range: str
    instruments: list[str] = Field(default_factory=list)
    style_tags: list[str] = Field(default_factory=list)
    recording: list[str] = Field(default_factory=list)
    sections: list[ComposedSection] = Field(default_factory=list)
    modes: ModeSelection
    key: Optional[str] = None
    chord_progression: Optional[str] = None
    vocal_style: Optional[str] = None
    arc_dynamics: Optional[ArcDynamics] = None


class PromptResponse(PromptResult):
    seed: int


class ClassifyRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
    genre_override: Optional[str] = Field(default=None, max_length=128)


class ClassifyResponse(BaseModel):
    classification: Classification
    modes: ModeSelection


class ConvertRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=4000)
    seed: Optional[int] = Field(default=None, ge=0, le=0xFFFFFFFF)
    seed_genres: list[str] = Field(default_factory=list, max_length=4)
    bpm_range: Optional[str] = Field(default=None, max_length=64)
    chord_progression: Optional[str] = Field(default=None, max_length=128)
    vocal_style: Optional[str] = Field(default=None, max_length=128)


class Enhancement(BaseModel):
    style_tags: str
    recording: str


class ConversionResult(BaseModel):
    text: str
    was_converted: bool
    genre: Optional[str] = None
    bpm_range: Optional[str] = None
    enhancement: Optional[Enhancement] = None
    used_fallback: bool = False


class ConvertResponse(ConversionResult):
    seed: int


class EnforceGenresRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000)
    target_count: int
    seed: Optional[int] = Field(default=None, ge=0, le=0xFFFFFFFF)


class EnforceGenresResponse(BaseModel):
    prompt: str
    genres: list[str]
    seed: int


class TitleRequest(BaseModel):
    genre: str = Field(..., min_length=1, max_length=64)
    mood: Optional[str] = Field(default=None, max_length=64)
    description: str = Field(default="", max_length=2000)
    count: int = Field(default=1, ge=1, le=10)
    use_llm: bool = False
    with_lyrics: bool = False
    seed: Optional[int] = Field(default=None, ge=0, le=0xFFFFFFFF)


class TitleResult(BaseModel):
    titles: list[str]
    source: TitleSource
    lyrics: Optional[str] = None


class TitleResponse(TitleResult):
    seed: int


class GenreSummary(BaseModel):
    key: str
    name: str
    description: str
    bpm_min: int
    bpm_max: int
    bpm_typical: int
    moods: list[str] = Field(default_factory=list)
