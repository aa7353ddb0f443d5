"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Literal
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "Aabarnam Pricing Engine"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./data/aabarnam.db"

    # LLM Provider Selection (the external arbiter talks to this provider)
    LLM_PROVIDER: Literal["lm_studio", "openrouter"] = "openrouter"

    # LM Studio Configuration
    LM_STUDIO_BASE_URL: str = "http://localhost:1234/v1"
    LM_STUDIO_DEFAULT_MODEL: str = "qwen/qwen3-8b"
    LM_STUDIO_TIMEOUT: int = 20  # seconds

    # LLM Request Configuration
    LLM_MAX_RETRIES: int = 2
    LLM_RETRY_DELAY: float = 0.5  # seconds, base for exponential backoff
    LLM_DEFAULT_TEMPERATURE: float = 0.3
    LLM_DEFAULT_MAX_TOKENS: int = 512

    # OpenRouter Configuration
    LLM_ENABLE_OPENROUTER: bool = False
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_DEFAULT_MODEL: str = "google/gemini-2.5-flash"

    # Pricing policy
    GST_PCT: float = 3.0
    FLOOR_MARGIN_PCT: float = 5.0  # minimum margin over wholesale cost
    DEFAULT_TOUCH_PCT: float = 91.6

    # Negotiation
    ARBITER_TIMEOUT_SECONDS: float = 8.0
    FALLBACK_COUNTER_STEP: int = 1000  # rupees conceded per counter-offer
    FALLBACK_NUDGE_STEP: int = 500  # rupees dropped on hesitation / leaving
    COURTESY_DISCOUNT_PCT: float = 3.0
    NEGOTIATION_IDLE_SECONDS: float = 45.0  # 0 disables the idle nudge
    NEGOTIATION_HISTORY_LIMIT: int = 20

    # Market rate sync
    RATE_SYNC_INTERVAL_HOURS: float = 1.0  # 0 disables periodic sync
    RATE_SYNC_PREMIUM_PCT: float = 3.0
    RATE_SYNC_ON_STARTUP: bool = False
    SPOT_PRICE_URL: str = "https://api.gold-api.com/price"
    FX_RATE_URL: str = "https://open.er-api.com/v6/latest/USD"
    SPOT_FEED_TIMEOUT: float = 5.0  # seconds
    # Last-known approximations used when the spot feed is unreachable
    FALLBACK_GOLD_USD_PER_OZ: float = 2650.0
    FALLBACK_SILVER_USD_PER_OZ: float = 31.0
    FALLBACK_USD_INR: float = 84.0
    RATE_TICKER_INTERVAL: int = 15  # seconds between SSE rate ticker polls

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:5174"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/app.log"

    class Config:
        # Look for .env in project root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
