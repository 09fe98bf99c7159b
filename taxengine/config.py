"""
config.py — taxengine application settings.

Usage:
    from taxengine.config import settings
    print(settings.default_assessment_year)

The calculator package never reads settings; only the HTTP layer does, to pick
request defaults. Rule tables live in taxengine.calculator.rules, not here.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Tax rules ---
    # Must be a key of taxengine.calculator.rules.RULE_SETS
    default_assessment_year: str = "2025-26"

    # --- CORS ---
    # Comma-separated list of allowed frontend origins
    cors_origins: str = "http://localhost:3000,http://localhost:9002"

    # --- Application ---
    debug: bool = False
    app_version: str = "0.1.0"

    @property
    def cors_origins_list(self) -> List[str]:
        """Split comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Module-level singleton: import this throughout the codebase
settings = Settings()
