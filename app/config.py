# app/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load and validate all environment variables at startup.
Pipeline knobs (chunk size, batch sizes, similarity thresholds) are heuristic
values and can be overridden per deployment.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Authentication
    APP_PASSWORD: str | None = Field(
        default=None,
        description="Shared password expected in the X-API-Key header for /api routes",
    )

    # LLM Providers
    LLM_PROVIDER: str = Field(
        default="anthropic",
        description="Active language-model provider: anthropic, openai",
    )
    ANTHROPIC_API_KEY: str | None = Field(
        default=None,
        description="Anthropic API key",
    )
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model used for every editorial task",
    )
    OPENAI_API_KEY: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used when LLM_PROVIDER=openai",
    )
    LLM_TIMEOUT_SECONDS: float = Field(
        default=120.0,
        description="Per-call timeout for language-model requests",
    )

    # Web search
    BRAVE_API_KEY: str | None = Field(
        default=None,
        description="Brave Search API key. Without it fact-check runs model-only.",
    )
    SEARCH_RESULTS_PER_QUERY: int = Field(
        default=5,
        description="Number of web results requested per claim",
    )
    SEARCH_TIMEOUT_SECONDS: float = Field(
        default=15.0,
        description="HTTP timeout for a single search request",
    )

    # Long-document pipeline
    CHUNK_MAX_CHARS: int = Field(
        default=4000,
        description="Maximum characters per chunk (a single longer paragraph is kept whole)",
    )
    CLAIM_CONFIRM_THRESHOLD: int = Field(
        default=25,
        description="Unique-claim count above which fact-check asks for confirmation",
    )
    CLAIM_SIMILARITY_THRESHOLD: float = Field(
        default=0.6,
        description="Word-overlap ratio above which two claims are treated as duplicates",
    )
    EDIT_BATCH_SIZE: int = Field(
        default=3,
        description="Concurrent per-chunk editing/verification calls",
    )
    SEARCH_BATCH_SIZE: int = Field(
        default=10,
        description="Concurrent web-search calls",
    )
    RELEVANCE_MIN_WORD_MATCHES: int = Field(
        default=2,
        description="Significant claim words that must appear in a chunk for evidence to be relevant",
    )
    RELEVANCE_PREFIX_CHARS: int = Field(
        default=30,
        description="Leading claim characters matched verbatim against a chunk",
    )
    RELEVANCE_MIN_MATCHES: int = Field(
        default=3,
        description="Below this many relevant evidence entries a chunk receives all evidence",
    )
    RELEVANCE_FALLBACK_CAP: int = Field(
        default=40,
        description="Maximum evidence entries supplied when falling back to all evidence",
    )

    # Style guides
    STYLE_GUIDES_DIR: str = Field(
        default="./style-guides",
        description="Directory holding <name>.txt style guide files",
    )

    # Analytics store
    DATABASE_URL: str = Field(
        default="sqlite:///./data/articles.db",
        description="SQLAlchemy URL for the article analytics database",
    )

    # Logging
    LOG_JSON: bool = Field(
        default=True,
        description="Emit single-line JSON logs (False for human-readable output)",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("LLM_PROVIDER")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("CLAIM_SIMILARITY_THRESHOLD")
    @classmethod
    def check_ratio(cls, v: float) -> float:
        """Overlap ratios live in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("CLAIM_SIMILARITY_THRESHOLD must be between 0 and 1")
        return v

    @field_validator("DATABASE_URL")
    @classmethod
    def fix_database_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but SQLAlchemy needs postgresql+psycopg2://"""
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg2://", 1)
        return v

    @property
    def search_enabled(self) -> bool:
        return bool(self.BRAVE_API_KEY)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings. Call at startup to validate config."""
    return Settings()
