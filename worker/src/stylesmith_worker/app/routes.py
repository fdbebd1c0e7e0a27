from __future__ import annotations

from typing import Optional, cast

from fastapi import APIRouter, HTTPException, Request
from loguru import logger

from ..services.assembler import PromptAssembler
from ..services.classifier import Classifier
from ..services.collaborators import TitleService
from ..services.conversion import MaxConversionService
from ..services.exceptions import InvariantError
from ..services.genre_count import enforce_genre_count, extract_genres_from_prompt
from ..services.registry import GENRE_REGISTRY, get_genre
from ..services.rng import create_rng, seed_from_text
from .models import (
    ClassifyRequest,
    ClassifyResponse,
    ConvertRequest,
    ConvertResponse,
    EnforceGenresRequest,
    EnforceGenresResponse,
    GenreSummary,
    PromptRequest,
    PromptResponse,
    TitleRequest,
    TitleResponse,
)
from .settings import Settings

router = APIRouter()


def get_assembler(request: Request) -> PromptAssembler:
    return cast(PromptAssembler, request.app.state.assembler)


def get_classifier(request: Request) -> Classifier:
    return cast(Classifier, request.app.state.classifier)


def get_converter(request: Request) -> MaxConversionService:
    return cast(MaxConversionService, request.app.state.converter)


def get_title_service(request: Request) -> TitleService:
    return cast(TitleService, request.app.state.title_service)


def _resolve_seed(seed: Optional[int], text: str) -> int:
    return seed if seed is not None else seed_from_text(text)


@router.get("/health")
async def health(request: Request) -> dict[str, object]:
    settings = cast(Settings, request.app.state.settings)
    classifier = get_classifier(request)
    return {
        "status": "ok",
        "version": request.app.version,
        "genre_count": len(GENRE_REGISTRY),
        "classifier_cache": classifier.cache.stats(),
        "max_prompt_chars": settings.max_prompt_chars,
        "llm_enabled": get_title_service(request).llm_available,
    }


@router.get("/genres", response_model=list[GenreSummary])
async def genres() -> list[GenreSummary]:
    return [
        GenreSummary(
            key=definition.key,
            name=definition.name,
            description=definition.description,
            bpm_min=definition.bpm.min,
            bpm_max=definition.bpm.max,
            bpm_typical=definition.bpm.typical,
            moods=list(definition.moods),
        )
        for definition in GENRE_REGISTRY.values()
    ]


@router.post("/prompt", response_model=PromptResponse)
async def prompt(payload: PromptRequest, request: Request) -> PromptResponse:
    settings = cast(Settings, request.app.state.settings)
    if payload.genre_count is None and settings.default_genre_count is not None:
        payload = payload.model_copy(update={"genre_count": settings.default_genre_count})
    seed = _resolve_seed(payload.seed, payload.description)
    try:
        result = get_assembler(request).build(payload, create_rng(seed))
    except InvariantError as exc:
        logger.exception("Prompt assembly failed for seed {seed}", seed=seed)
        raise HTTPException(status_code=500, detail="internal invariant violated") from exc
    return PromptResponse(**result.model_dump(), seed=seed)


@router.post("/classify", response_model=ClassifyResponse)
async def classify(payload: ClassifyRequest, request: Request) -> ClassifyResponse:
    classifier = get_classifier(request)
    return ClassifyResponse(
        classification=classifier.classify(payload.text),
        modes=classifier.select_modes(payload.text, payload.genre_override),
    )


@router.post("/convert", response_model=ConvertResponse)
async def convert(payload: ConvertRequest, request: Request) -> ConvertResponse:
    seed = _resolve_seed(payload.seed, payload.text)
    try:
        result = await get_converter(request).convert(
            payload.text,
            create_rng(seed),
            seed_genres=payload.seed_genres,
            bpm_range=payload.bpm_range,
            chord_progression=payload.chord_progression,
            vocal_style=payload.vocal_style,
        )
    except InvariantError as exc:
        logger.exception("Prompt conversion failed for seed {seed}", seed=seed)
        raise HTTPException(status_code=500, detail="internal invariant violated") from exc
    return ConvertResponse(**result.model_dump(), seed=seed)


@router.post("/genres/enforce", response_model=EnforceGenresResponse)
async def enforce_genres(payload: EnforceGenresRequest) -> EnforceGenresResponse:
    seed = _resolve_seed(payload.seed, payload.prompt)
    enforced = enforce_genre_count(payload.prompt, payload.target_count, create_rng(seed))
    return EnforceGenresResponse(
        prompt=enforced,
        genres=extract_genres_from_prompt(enforced),
        seed=seed,
    )


@router.post("/title", response_model=TitleResponse)
async def title(payload: TitleRequest, request: Request) -> TitleResponse:
    seed = _resolve_seed(payload.seed, f"{payload.genre}:{payload.mood or ''}:{payload.description}")
    genre_moods = get_genre(payload.genre).moods
    mood = payload.mood or (genre_moods[0].lower() if genre_moods else "")
    result = await get_title_service(request).generate(
        payload.genre,
        mood,
        create_rng(seed),
        description=payload.description,
        count=payload.count,
        use_llm=payload.use_llm,
        with_lyrics=payload.with_lyrics,
    )
    return TitleResponse(**result.model_dump(), seed=seed)
