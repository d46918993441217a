"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

KNOWN_PROVIDERS = ("fdc", "off", "fatsecret")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    fdc_api_key: str
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    off_base_url: str = "https://world.openfoodfacts.org"
    fatsecret_client_id: str | None = None
    fatsecret_client_secret: str | None = None
    search_providers: str | None = None
    search_min_external_results: int = 10
    search_default_limit: int = 20
    search_debounce_seconds: float = 0.3
    profile_save_debounce_seconds: float = 0.5
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str = "medium"
    openai_store: bool = False
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def fatsecret_enabled(self) -> bool:
        """Return True when FatSecret credentials are configured."""
        return bool(self.fatsecret_client_id and self.fatsecret_client_secret)


def parse_search_sources(raw: str | None) -> set[str] | None:
    """Parse enabled search provider names from env.

    Returns None, meaning every configured provider, for an empty value or ``*``.
    """
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    names: set[str] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip().lower()
        if not value:
            continue
        if value in KNOWN_PROVIDERS:
            names.add(value)
    return names or None
