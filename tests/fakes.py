"""Хранилище в памяти и фабрики записей для тестов движка KPI."""
import itertools
from typing import Any, Mapping, Optional, Sequence

from kpi_engine.models import ACCOUNT_TABLE, CAMPAIGN_TABLE, KPI_TABLE, LINK_TABLE, POST_TABLE
from kpi_engine.store.base import MAX_ROWS, Filters, Record, RecordStore, is_multi


def _sort_key(value: Any):
    # None sorts first, like NULLS FIRST
    return (value is not None, value)


class FakeStore(RecordStore):
    """Хранилище в памяти с тем же лимитом страницы, что и у Supabase.

    Запоминает все вызовы query/update/insert, чтобы тесты могли проверять
    количество обращений.
    """

    def __init__(self, tables: Optional[dict[str, list[Record]]] = None, max_rows: int = MAX_ROWS):
        self.max_rows = max_rows
        self.tables: dict[str, list[Record]] = {
            name: [] for name in (CAMPAIGN_TABLE, ACCOUNT_TABLE, POST_TABLE, KPI_TABLE, LINK_TABLE)
        }
        for name, rows in (tables or {}).items():
            self.tables[name] = [dict(r) for r in rows]
        self.queries: list[dict[str, Any]] = []
        self.updates: list[tuple[str, list[str], dict[str, Any]]] = []
        self.inserts: list[tuple[str, list[Record]]] = []
        self.closed = False
        self._ids = itertools.count(1)

    @staticmethod
    def _matches(row: Record, filters: Optional[Filters]) -> bool:
        for column, value in (filters or {}).items():
            actual = row.get(column)
            if value is None:
                if actual is not None:
                    return False
            elif is_multi(value):
                if actual not in value:
                    return False
            elif actual != value:
                return False
        return True

    def _select(self, table: str, filters: Optional[Filters]) -> list[Record]:
        return [r for r in self.tables.setdefault(table, []) if self._matches(r, filters)]

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
        self.queries.append({"table": table, "filters": filters, "offset": offset, "limit": limit})
        rows = sorted(self._select(table, filters), key=lambda r: tuple(_sort_key(r.get(c)) for c in order_by))
        page = rows[offset:offset + limit]
        if columns:
            return [{c: r.get(c) for c in columns} for r in page]
        return [dict(r) for r in page]

    async def count(self, table: str, filters: Optional[Filters] = None) -> int:
        return len(self._select(table, filters))

    async def update(self, table: str, ids: Sequence[str], patch: Mapping[str, Any]) -> None:
        self.updates.append((table, list(ids), dict(patch)))
        wanted = set(ids)
        for row in self.tables.setdefault(table, []):
            if row.get("id") in wanted:
                row.update(patch)

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        created = []
        for row in rows:
            record = dict(row)
            record.setdefault("id", f"gen-{next(self._ids):04d}")
            created.append(record)
        self.inserts.append((table, created))
        self.tables.setdefault(table, []).extend(created)

    async def close(self) -> None:
        self.closed = True

    def kpis(self, campaign_id: str, account_id: Optional[str] = None, category: Optional[str] = None):
        return [
            r
            for r in self.tables[KPI_TABLE]
            if r["campaignId"] == campaign_id
            and r.get("accountId") == account_id
            and (category is None or r["category"] == category)
        ]

    def actual(self, campaign_id: str, account_id: Optional[str], category: str) -> int:
        rows = self.kpis(campaign_id, account_id, category)
        assert len(rows) == 1, f"ожидалась одна строка {category}, найдено {len(rows)}"
        return rows[0]["actual"]


def make_post(post_id: str, campaign_id: str, account_id: str, **fields) -> Record:
    post = {
        "id": post_id,
        "campaignId": campaign_id,
        "accountId": account_id,
        "totalView": 0,
        "totalLike": 0,
        "totalComment": 0,
        "totalShare": 0,
        "totalSaved": 0,
        "contentType": "Photo",
        "yellowCart": False,
        "campaignCategory": None,
    }
    post.update(fields)
    return post


def make_kpi(kpi_id: str, campaign_id: str, account_id: Optional[str], category: str, target=0, actual=0) -> Record:
    return {
        "id": kpi_id,
        "campaignId": campaign_id,
        "accountId": account_id,
        "category": category,
        "target": target,
        "actual": actual,
    }
