"""RecordStore поверх asyncpg (прямое подключение к Postgres/Supabase)."""
import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence

import asyncpg

from ..utils import db
from .base import MAX_ROWS, Filters, Record, RecordStore, StoreError, check_identifier, is_multi

logger = logging.getLogger(__name__)

# Server errors, closed or broken connections, pool timeouts
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, asyncio.TimeoutError, OSError)


def _quote(name: str) -> str:
    # Prisma-style schema: mixed-case table and column names need quoting
    return f'"{check_identifier(name)}"'


def build_where(filters: Optional[Filters], start: int = 1) -> tuple[str, list[Any]]:
    """Собирает WHERE и список аргументов ($1, $2, ...) из словаря фильтров."""
    if not filters:
        return "", []
    clauses = []
    args: list[Any] = []
    for column, value in filters.items():
        col = _quote(column)
        if value is None:
            clauses.append(f"{col} IS NULL")
        elif is_multi(value):
            args.append(list(value))
            clauses.append(f"{col} = ANY(${start + len(args) - 1})")
        else:
            args.append(value)
            clauses.append(f"{col} = ${start + len(args) - 1}")
    return " WHERE " + " AND ".join(clauses), args


class PostgresStore(RecordStore):
    def __init__(self, schema: str = "public"):
        self.schema = check_identifier(schema)

    def _table(self, table: str) -> str:
        return f"{_quote(self.schema)}.{_quote(table)}"

    async def query(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        columns: Optional[Sequence[str]] = None,
        order_by: Sequence[str] = ("id",),
        offset: int = 0,
        limit: int = MAX_ROWS,
    ) -> list[Record]:
        offset, limit = self._window(offset, limit)
        select = ", ".join(_quote(c) for c in columns) if columns else "*"
        where, args = build_where(filters)
        order = ", ".join(f"{_quote(c)} ASC" for c in order_by)
        sql = (
            f"SELECT {select} FROM {self._table(table)}{where} "
            f"ORDER BY {order} LIMIT ${len(args) + 1} OFFSET ${len(args) + 2}"
        )
        try:
            rows = await db.fetch(sql, *args, limit, offset)
        except DRIVER_ERRORS as exc:
            raise StoreError(f"Запрос к {table} не удался: {exc}") from exc
        return [dict(r) for r in rows]

    async def count(self, table: str, filters: Optional[Filters] = None) -> int:
        where, args = build_where(filters)
        try:
            value = await db.fetchval(f"SELECT COUNT(*) FROM {self._table(table)}{where}", *args)
        except DRIVER_ERRORS as exc:
            raise StoreError(f"Подсчет {table} не удался: {exc}") from exc
        return int(value or 0)

    async def update(self, table: str, ids: Sequence[str], patch: Mapping[str, Any]) -> None:
        if not ids or not patch:
            return
        columns = list(patch)
        assignments = ", ".join(f"{_quote(c)} = ${i + 1}" for i, c in enumerate(columns))
        sql = (
            f"UPDATE {self._table(table)} SET {assignments} "
            f'WHERE "id" = ANY(${len(columns) + 1})'
        )
        try:
            await db.execute(sql, *[patch[c] for c in columns], list(ids))
        except DRIVER_ERRORS as exc:
            raise StoreError(f"Обновление {table} не удалось: {exc}") from exc

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        if not rows:
            return
        columns = list(rows[0])
        placeholders = ", ".join(f"${i + 1}" for i in range(len(columns)))
        sql = (
            f"INSERT INTO {self._table(table)} ({', '.join(_quote(c) for c in columns)}) "
            f"VALUES ({placeholders})"
        )
        try:
            # executemany runs inside one transaction: all rows or none
            await db.executemany(sql, [tuple(r.get(c) for c in columns) for r in rows])
        except DRIVER_ERRORS as exc:
            raise StoreError(f"Вставка в {table} не удалась: {exc}") from exc

    async def close(self) -> None:
        await db.close_db_pool()
