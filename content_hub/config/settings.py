"""
Settings module for environment-aware configuration.

Manages provider credentials, model selection, retry/network policy,
content targets and orchestration limits.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROXY_TEMPLATES = [
    "https://corsproxy.io/?{url}",
    "https://api.allorigins.win/raw?url={encoded_url}",
    "https://thingproxy.freeboard.io/fetch/{url}",
    "https://api.codetabs.com/v1/proxy?quest={encoded_url}",
    "https://cors-proxy.fringe.zone/{url}",
]

DEFAULT_OPENROUTER_MODELS = [
    "google/gemini-2.5-flash",
    "anthropic/claude-3-haiku",
    "microsoft/wizardlm-2-8x22b",
    "openrouter/auto",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider credentials
    google_api_key: str = ""
    openai_api_key: str = ""
    openrouter_api_key: str = ""
    groq_api_key: str = ""
    serper_api_key: str = ""

    # Provider selection
    llm_provider: Literal["gemini", "openai", "openrouter", "groq"] = "gemini"
    gemini_model: str = "gemini-2.5-flash"
    openai_model: str = "gpt-4o"
    openrouter_models: list[str] = Field(default_factory=lambda: list(DEFAULT_OPENROUTER_MODELS))
    groq_model: str = "llama-3.3-70b-versatile"
    gemini_image_model: str = "imagen-4.0-generate-001"
    openai_image_model: str = "dall-e-3"
    llm_temperature: float = 0.7

    # Rate Limiting & Retries
    max_retries: int = 5
    retry_base_delay: float = 5.0
    retry_after_buffer: float = 0.5

    # Network
    request_timeout: float = 20.0
    api_request_timeout: float = 30.0
    proxy_templates: list[str] = Field(default_factory=lambda: list(DEFAULT_PROXY_TEMPLATES))

    # Content targets
    target_min_words: int = 2200
    target_max_words: int = 2800
    target_min_words_pillar: int = 3500
    target_max_words_pillar: int = 4500
    youtube_embed_count: int = 2
    min_internal_links: int = 8
    max_internal_links: int = 15

    # Internal link tracking
    utm_source: str = "wp-content-optimizer"
    utm_medium: str = "internal-link"
    utm_campaign: str = "content-hub-automation"

    # Orchestration
    concurrency: int = 3
    analysis_concurrency: int = 3
    cache_ttl_seconds: float = 3600.0
    stale_after_days: int = 365

    # Environment Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    output_dir: Path = Path("outputs")

    def word_targets(self, is_pillar: bool) -> tuple[int, int]:
        """Return the (min, max) word targets for an article variant."""
        if is_pillar:
            return self.target_min_words_pillar, self.target_max_words_pillar
        return self.target_min_words, self.target_max_words


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
