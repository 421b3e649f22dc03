"""Application settings and configuration."""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    db_url: str = Field(default="sqlite+aiosqlite:///./newsroom.db")
    db_echo: bool = Field(default=False)

    # Generative AI (Gemini)
    gemini_api_key: str = Field(default="")
    default_model: str = Field(default="gemini-2.0-flash")
    default_temperature: float = Field(default=0.1)
    default_max_tokens: int = Field(default=2800)
    default_top_p: float = Field(default=0.8)
    default_top_k: int = Field(default=20)
    image_model: str = Field(default="gemini-2.0-flash-exp-image-generation")

    # Web search (Perplexity) and RSS fallback
    perplexity_api_key: str = Field(default="")
    perplexity_url: str = Field(default="https://api.perplexity.ai/chat/completions")
    perplexity_model: str = Field(default="sonar")
    google_news_rss_url: str = Field(
        default="https://news.google.com/rss/search?q={query}&hl=en-US&gl=US&ceid=US:en"
    )

    # Stock photos
    pexels_api_key: str = Field(default="")

    # Platform integration
    platform_secret: str = Field(default="")
    credits_base_url: str = Field(default="http://localhost:3000/api")
    http_timeout: float = Field(default=30.0)

    # Logging
    log_level: str = Field(default="INFO")

    # Service configuration
    service_host: str = Field(default="0.0.0.0")
    service_port: Optional[int] = Field(default=None)
    debug: bool = Field(default=False)

    app_name: str = "Newsroom"
    environment: str = Field(default="development")


@lru_cache()
def get_settings() -> Settings:
    """Get settings singleton."""
    return Settings()
