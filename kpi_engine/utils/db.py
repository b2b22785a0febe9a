import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, Iterable

import asyncpg

from .config import settings

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


async def init_db_pool(min_size: int | None = None, max_size: int | None = None) -> asyncpg.Pool:
    """Инициализирует глобальный пул соединений asyncpg, если он еще не создан.

    Использует значения по умолчанию из settings.DB_POOL_MIN / DB_POOL_MAX, чтобы избежать
    исчерпания соединений на хостинговых планах Postgres (Supabase).
    """
    global _pool
    if _pool is None:
        if not settings.POSTGRES_URI:
            raise RuntimeError("POSTGRES_URI не задан")
        min_size = max(1, min_size if min_size is not None else settings.DB_POOL_MIN)
        max_size = max(min_size, max_size if max_size is not None else settings.DB_POOL_MAX)
        try:
            _pool = await asyncio.wait_for(
                asyncpg.create_pool(
                    dsn=str(settings.POSTGRES_URI), min_size=min_size, max_size=max_size
                ),
                timeout=30.0
            )
        except Exception as e:
            # Mask password in DSN for logging
            masked_dsn = re.sub(r':([^@/]+)@', ':***@', str(settings.POSTGRES_URI))
            logger.error(f"❌ Не удалось подключиться к БД. DSN: {masked_dsn} | Ошибка: {e}")
            raise
    return _pool


async def close_db_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def acquire():
    pool = await init_db_pool()
    async with pool.acquire() as conn:
        yield conn


async def execute(sql: str, *args: Any) -> str:
    async with acquire() as conn:
        return await conn.execute(sql, *args)


async def executemany(sql: str, args_iter: Iterable[Iterable[Any]]) -> None:
    async with acquire() as conn:
        async with conn.transaction():
            await conn.executemany(sql, args_iter)


async def fetch(sql: str, *args: Any):
    async with acquire() as conn:
        return await conn.fetch(sql, *args)


async def fetchval(sql: str, *args: Any):
    async with acquire() as conn:
        return await conn.fetchval(sql, *args)
