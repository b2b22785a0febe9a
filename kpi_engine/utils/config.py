"""
Настройки конфигурации с использованием Pydantic v2.
"""
from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Настройки приложения, загружаемые из переменных окружения."""

    # Which RecordStore backs the engine: direct Postgres or Supabase REST (PostgREST)
    STORE_BACKEND: Literal["postgres", "postgrest"] = Field(default="postgres")
    POSTGRES_URI: Optional[str] = Field(default=None, validation_alias="POSTGRES_URI")
    DB_SCHEMA: str = Field(default="public")
    # Connection pool sizing for asyncpg (small defaults to avoid exhausting hosted DB limits)
    DB_POOL_MIN: int = Field(default=1, validation_alias="DB_POOL_MIN")
    DB_POOL_MAX: int = Field(default=4, validation_alias="DB_POOL_MAX")
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_KEY: Optional[str] = None
    HTTP_TIMEOUT: float = Field(default=30.0)
    # Supabase caps a single select at 1000 rows
    SCAN_PAGE_SIZE: int = Field(default=1000, validation_alias="SCAN_PAGE_SIZE")
    LOG_LEVEL: str = Field(default="INFO")
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


settings = Settings()
