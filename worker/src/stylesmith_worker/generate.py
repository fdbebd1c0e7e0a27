"""
CLI entry point to assemble a single prompt without starting the HTTP worker.

Example:
    python -m stylesmith_worker.generate --description "moody jazz for a rainy night" --seed 42
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Optional

from .app.models import PromptRequest
from .app.settings import Settings
from .services.assembler import PromptAssembler
from .services.classifier import ClassificationCache, Classifier
from .services.collaborators import TitleService, build_llm_client
from .services.rng import create_rng, seed_from_text


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Assemble a music-generation prompt.")
    parser.add_argument("--description", required=True, help="Free-text description of the song.")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Optional RNG seed (defaults to a hash of the description).",
    )
    parser.add_argument(
        "--max-mode",
        action="store_true",
        help="Emit the compact MAX encoding instead of the sectioned format.",
    )
    parser.add_argument("--genre", default=None, help="Genre override, e.g. 'jazz rock'.")
    parser.add_argument(
        "--genre-count",
        type=int,
        default=None,
        help="Force the number of blended genres (1-4).",
    )
    parser.add_argument(
        "--arc",
        nargs="*",
        default=None,
        help="Narrative arc moods applied to intro, verse, chorus, bridge and outro.",
    )
    parser.add_argument(
        "--title",
        action="store_true",
        help="Also generate a song title.",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Override config directory (defaults to worker settings).",
    )
    return parser.parse_args()


async def _run(
    description: str,
    *,
    seed: Optional[int],
    max_mode: bool,
    genre: Optional[str],
    genre_count: Optional[int],
    arc: Optional[list[str]],
    title: bool,
    config_dir: Optional[Path],
) -> None:
    settings_kwargs: dict[str, object] = {}
    if config_dir is not None:
        settings_kwargs["config_dir"] = config_dir

    settings = Settings(**settings_kwargs)
    settings.ensure_directories()

    classifier = Classifier(ClassificationCache(settings.classifier_cache_size))
    assembler = PromptAssembler(
        classifier,
        max_chars=settings.max_prompt_chars,
        articulation_chance=settings.articulation_chance,
    )

    resolved_seed = seed if seed is not None else seed_from_text(description)
    if genre_count is not None:
        genre_count = max(1, min(4, genre_count))
    elif settings.default_genre_count is not None:
        genre_count = settings.default_genre_count

    request = PromptRequest(
        description=description,
        seed=resolved_seed,
        max_mode=max_mode,
        genre_override=genre,
        genre_count=genre_count,
        narrative_arc=arc or [],
    )
    result = assembler.build(request, create_rng(resolved_seed))

    print(result.text)
    print()
    print(f"seed          : {resolved_seed}")
    print(f"genre         : {result.genre}")
    print(f"display_genre : {result.display_genre}")
    print(f"components    : {', '.join(result.components)}")
    print(f"bpm_range     : {result.bpm_range}")
    print(f"progression   : {result.chord_progression or 'none'}")
    if result.key:
        print(f"key           : {result.key}")
    if result.arc_dynamics:
        print(f"arc_dynamics  : {result.arc_dynamics.value}")

    if title:
        service = TitleService(build_llm_client(settings))
        mood = result.style_tags[0] if result.style_tags else ""
        titles = await service.generate(
            result.genre,
            mood,
            create_rng(resolved_seed),
            description=description,
            use_llm=service.llm_available,
        )
        print(f"title         : {titles.titles[0]}")
        print(f"title_source  : {titles.source.value}")


def main() -> None:
    args = _parse_args()
    asyncio.run(
        _run(
            args.description,
            seed=args.seed,
            max_mode=args.max_mode,
            genre=args.genre,
            genre_count=args.genre_count,
            arc=args.arc,
            title=args.title,
            config_dir=args.config_dir,
        )
    )


if __name__ == "__main__":
    main()
