from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from loguru import logger

from ..services.assembler import PromptAssembler
from ..services.classifier import ClassificationCache, Classifier
from ..services.collaborators import LLMClient, TitleService, build_llm_client
from ..services.conversion import MaxConversionService
from ..services.registry import GENRE_REGISTRY
from .routes import router
from .settings import Settings, get_settings

VERSION = "0.1.0"


def create_app(settings: Optional[Settings] = None, llm: Optional[LLMClient] = None) -> FastAPI:
    """Create and configure FastAPI instance."""
    settings = settings or get_settings()
    cache = ClassificationCache(settings.classifier_cache_size)
    classifier = Classifier(cache)
    assembler = PromptAssembler(
        classifier,
        max_chars=settings.max_prompt_chars,
        articulation_chance=settings.articulation_chance,
    )
    llm = llm or build_llm_client(settings)
    app = FastAPI(title="Stylesmith Worker", version=VERSION)
    app.state.settings = settings
    app.state.classifier = classifier
    app.state.assembler = assembler
    app.state.converter = MaxConversionService(llm, settings.articulation_chance)
    app.state.title_service = TitleService(llm)
    app.include_router(router)
    logger.info(
        "Stylesmith worker ready: {genres} genres, llm={llm}",
        genres=len(GENRE_REGISTRY),
        llm=llm is not None,
    )
    return app


app = create_app()
