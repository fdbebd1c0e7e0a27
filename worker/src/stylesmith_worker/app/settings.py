from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_config_dir() -> Path:
    return Path.home() / ".config" / "stylesmith"


class Settings(BaseSettings):
    """Runtime configuration for the Stylesmith worker process."""

    model_config = SettingsConfigDict(
        env_prefix="STYLESMITH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    config_dir: Path = Field(default_factory=_default_config_dir)
    classifier_cache_size: int = Field(
        default=100,
        ge=2,
        le=100_000,
        description="Maximum entries kept by the keyword classifier cache.",
    )
    max_prompt_chars: int = Field(
        default=1000,
        ge=100,
        le=10_000,
        description="Character limit applied to assembled prompts.",
    )
    default_genre_count: int | None = Field(
        default=None,
        description="Genre count enforced on prompts when a request does not set one (1-4).",
    )
    articulation_chance: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Probability of prefixing an instrument with a playing articulation.",
    )
    llm_enabled: bool = Field(
        default=False,
        description="Use the LLM collaborator for conversion enhancement and titles.",
    )
    llm_base_url: str | None = Field(
        default=None,
        max_length=512,
        description="Base URL of an OpenAI-compatible API, e.g. http://localhost:11434/v1.",
    )
    llm_model: str = Field(default="llama3.1", max_length=128)
    llm_api_key: str | None = Field(default=None, max_length=512)
    llm_timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        le=300.0,
        description="Upper bound on a single LLM request.",
    )

    @model_validator(mode="after")
    def _align_collaborator_defaults(self) -> "Settings":
        if self.default_genre_count is not None:
            self.default_genre_count = max(1, min(4, self.default_genre_count))
        if self.llm_enabled and not self.llm_base_url:
            self.llm_enabled = False
        return self

    def ensure_directories(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.ensure_directories()
    return settings
