"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

STORAGE_BACKENDS = {"json", "supabase", "memory"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_token: str
    storage_backend: str = "json"
    data_dir: str = "data"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    app_name: str = "Recipe Database"
    app_version: str = "0.2.0"
    import_rename_suffix: str = " (imported)"
    recipe_copy_suffix: str = " (copy)"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_storage_backend(raw: str | None) -> str:
    """Normalise the configured storage backend name."""
    cleaned = (raw or "json").strip().lower()
    if cleaned not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown storage backend {raw!r}; expected one of "
            f"{', '.join(sorted(STORAGE_BACKENDS))}"
        )
    return cleaned
