import logging

from ..utils.config import Settings, settings as default_settings
from .base import RecordStore
from .postgres import PostgresStore
from .postgrest import PostgrestStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings = default_settings) -> RecordStore:
    """Создает хранилище по STORE_BACKEND."""
    if settings.STORE_BACKEND == "postgrest":
        logger.info("🔌 Хранилище: Supabase REST (PostgREST)")
        return PostgrestStore(
            settings.SUPABASE_URL or "",
            settings.SUPABASE_SERVICE_KEY or "",
            timeout=settings.HTTP_TIMEOUT,
        )
    logger.info(f"🔌 Хранилище: Postgres (schema={settings.DB_SCHEMA})")
    return PostgresStore(schema=settings.DB_SCHEMA)
