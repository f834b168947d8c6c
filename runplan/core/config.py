"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
Business rules (progression rates, adaptation patterns, substitution maps)
live in YAML and are read by ConfigService; this module only covers
process-level settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Environment
    ENVIRONMENT: str = Field(default="development")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")  # json or text

    # Rule files (plan_rules.yaml, adaptation_rules.yaml).
    # None means the copies shipped inside the package.
    RULES_CONFIG_DIR: Optional[str] = Field(default=None)

    # Training load
    THRESHOLD_PACE_MIN_PER_KM: float = Field(default=5.0, gt=0)

    # Plan generation
    DEFAULT_PLAN_WEEKS: int = Field(default=16, ge=1)

    # Methodology cache (seconds, None = until evicted)
    METHODOLOGY_CACHE_TTL: Optional[int] = Field(default=None)


settings = Settings()
