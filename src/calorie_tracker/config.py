"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from calorie_tracker.domain.activity import ExerciseMode
from calorie_tracker.services.scaling import GramInference

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.3
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org"
    openfoodfacts_user_agent: str = "calorie-tracker/0.1"
    lookup_cache_ttl_seconds: int = 86400
    sugar_bonus_factor: float = 0.05
    sodium_bonus_factor: float = 1.0
    gram_inference: GramInference = GramInference.CALORIE_RATIO
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_exercise_mode(raw: str | None) -> ExerciseMode | None:
    """Parse an exercise mode setting; blank or unknown disables bonuses."""
    if raw is None:
        return None
    cleaned = raw.strip().lower().replace("_", "-")
    if cleaned in {"", "off", "none"}:
        return None
    try:
        return ExerciseMode(cleaned)
    except ValueError:
        return None
