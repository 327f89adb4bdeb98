"""Configuração centralizada da aplicação usando pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configurações da aplicação carregadas de variáveis de ambiente.

    ``database_url`` e ``secret_key`` não têm valor padrão: sem elas a
    aplicação não sobe.
    """

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (obrigatório)
    database_url: str

    # Security (obrigatório)
    secret_key: str
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 30

    # Redis / tempo real
    redis_url: str = "redis://localhost:6379/0"
    realtime_enabled: bool = True

    # App
    app_name: str = "GRUPO LET - Estoque"
    env: str = "development"
    log_level: str = "INFO"
    debug: bool = False
    demo_mode: bool = False

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    # Rate limiting
    rate_limit_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Retorna instância cacheada das configurações."""
    return Settings()


settings = get_settings()
