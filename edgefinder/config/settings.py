"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_BASELINE_BOOK,
    DEFAULT_DEVIG_METHOD,
    DEFAULT_EV_THRESHOLD_PERCENT,
    DEFAULT_KELLY_MULTIPLIER,
    DEFAULT_MAX_STAKE_PERCENT,
    DEFAULT_MIN_ARB_PROFIT_PERCENT,
    SPORTSBOOKS,
)

PACKAGE_ROOT = Path(__file__).parent.parent


class EngineSettings(BaseSettings):
    """Settings for EV and arbitrage evaluation."""

    model_config = SettingsConfigDict(env_prefix="EDGE_")

    baseline_book: str = Field(
        default=DEFAULT_BASELINE_BOOK,
        description="Bookmaker whose de-vigged prices are treated as fair",
    )
    devig_method: str = Field(
        default=DEFAULT_DEVIG_METHOD,
        description="proportional, shin, shin_iterative, power or additive",
    )
    ev_threshold_percent: float = Field(
        default=DEFAULT_EV_THRESHOLD_PERCENT,
        description="Minimum EV% to surface a value bet (2.0 = 2%)",
    )
    min_arb_profit_percent: float = Field(
        default=DEFAULT_MIN_ARB_PROFIT_PERCENT,
        description="Minimum guaranteed profit % to surface an arbitrage",
    )
    hidden_bookmakers: list[str] = Field(
        default_factory=list,
        description="Bookmakers removed from results after detection",
    )
    kelly_multiplier: float = Field(
        default=DEFAULT_KELLY_MULTIPLIER,
        description="Fraction of Kelly Criterion to use (0.25 = quarter Kelly)",
    )
    max_stake_percent: float = Field(
        default=DEFAULT_MAX_STAKE_PERCENT,
        description="Maximum stake as fraction of bankroll",
    )
    require_distinct_books: bool = Field(
        default=False,
        description="Only report N-way arbs whose legs use different bookmakers",
    )

    @field_validator("devig_method")
    @classmethod
    def validate_devig_method(cls, v: str) -> str:
        allowed = ["proportional", "shin", "shin_iterative", "power", "additive"]
        v = v.strip().lower()
        if v not in allowed:
            raise ValueError(f"devig_method must be one of {allowed}")
        return v

    @field_validator("ev_threshold_percent", "min_arb_profit_percent")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("thresholds cannot be negative")
        return v

    @field_validator("kelly_multiplier", "max_stake_percent")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("must be between 0 and 1")
        return v


class FeedSettings(BaseSettings):
    """Settings for the in-memory odds feed."""

    model_config = SettingsConfigDict(env_prefix="FEED_")

    load_fixtures: bool = Field(
        default=True,
        description="Seed the feed with the bundled sample events on startup",
    )
    fixtures_path: Path = Field(
        default=PACKAGE_ROOT / "data" / "fixtures" / "sample_odds.json",
        description="Odds-API-shaped JSON file used to seed the feed",
    )
    supported_bookmakers: list[str] = Field(
        default_factory=lambda: list(SPORTSBOOKS),
        description="Bookmakers accepted from the feed (empty = all)",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Bankroll used for stake suggestions when a request doesn't pass one
    bankroll: Optional[float] = Field(default=None)

    # Logging
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)

    # API
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed by the CORS middleware",
    )

    # Sub-settings
    engine: EngineSettings = Field(default_factory=EngineSettings)
    feed: FeedSettings = Field(default_factory=FeedSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
