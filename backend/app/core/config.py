"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Pokrok Assistant Backend"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://pokrok@localhost:5432/pokrok"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "pokrok-assistant"
    openai_api_key: str | None = None
    # Tried in order; the first model that answers wins.
    assistant_models: List[str] = Field(
        default_factory=lambda: ["gpt-4o-mini", "gpt-4o", "gpt-4.1-mini"],
    )
    assistant_locale: str = "cs"
    assistant_temperature: float = 0.2
    assistant_debug_preview_chars: int = 200

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
