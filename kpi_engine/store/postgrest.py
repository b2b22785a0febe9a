"""RecordStore поверх Supabase REST API (PostgREST).

Supabase отдает не больше 1000 строк на запрос, поэтому полные выборки
идут постранично через scanner. Запросы выполняются с сервисным ключом
(минуя RLS), как и в серверной части дашборда.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

import aiohttp

from .base import MAX_ROWS, Filters, Record, RecordStore, StoreError, check_identifier, is_multi

logger = logging.getLogger(__name__)

_RESERVED = set(',()"')


def _literal(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, Enum):
        value = value.value
    text = str(value)
    if any(ch in _RESERVED for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def encode_filters(filters: Optional[Filters]) -> list[tuple[str, str]]:
    """Переводит словарь фильтров в параметры PostgREST: eq. / is.null / in.(...)"""
    params: list[tuple[str, str]] = []
    for column, value in (filters or {}).items():
        check_identifier(column)
        if value is None:
            params.append((column, "is.null"))
        elif is_multi(value):
            params.append((column, "in.(" + ",".join(_literal(v) for v in value) + ")"))
        else:
            params.append((column, f"eq.{_literal(value)}"))
    return params


def parse_content_range(header: Optional[str]) -> int:
    # "0-0/123" or "*/0"
    if not header or "/" not in header:
        raise StoreError(f"Нет общего количества в Content-Range: {header!r}")
    total = header.rsplit("/", 1)[1]
    if total == "*":
        raise StoreError("PostgREST не вернул точное количество (count=exact)")
    return int(total)


class PostgrestStore(RecordStore):
    def __init__(self, base_url: str, service_key: str, timeout: float = 30.0):
        if not base_url or not service_key:
            raise RuntimeError("Supabase REST не настроен: нужны SUPABASE_URL и SUPABASE_SERVICE_KEY")
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{check_identifier(table)}"

    async def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]],
        headers: dict[str, str],
        payload: Any = None,
    ) -> tuple[Any, Mapping[str, str]]:
        logger.debug(f"PostgREST {method} {table} {params}")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, self._url(table), params=params, headers=headers, json=payload
                ) as resp:
                    if resp.status >= 400:
                        text = await resp.text()
                        raise StoreError(f"PostgREST {method} {table}: HTTP {resp.status}: {text}")
                    body = await resp.json() if resp.status != 204 and method == "GET" else None
                    return body, resp.headers
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise StoreError(f"PostgREST {method} {table} не удался: {exc!r}") from exc

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
        params = [("select", ",".join(check_identifier(c) for c in columns) if columns else "*")]
        params += encode_filters(filters)
        params.append(("order", ",".join(f"{check_identifier(c)}.asc" for c in order_by)))
        params += [("offset", str(offset)), ("limit", str(limit))]
        body, _ = await self._request("GET", table, params, self._headers())
        return list(body or [])

    async def count(self, table: str, filters: Optional[Filters] = None) -> int:
        params = [("select", "id")] + encode_filters(filters)
        _, headers = await self._request(
            "HEAD", table, params, self._headers(Prefer="count=exact", Range="0-0")
        )
        return parse_content_range(headers.get("Content-Range"))

    async def update(self, table: str, ids: Sequence[str], patch: Mapping[str, Any]) -> None:
        if not ids or not patch:
            return
        params = encode_filters({"id": list(ids)})
        await self._request(
            "PATCH", table, params, self._headers(Prefer="return=minimal"), payload=dict(patch)
        )

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        if not rows:
            return
        await self._request(
            "POST", table, [], self._headers(Prefer="return=minimal"), payload=[dict(r) for r in rows]
        )
