"""Чтение и пакетная запись строк KPI.

Записи группируются по категории: для N строк KPI в C категориях делается
O(C) вызовов записи, а не O(N).
"""
import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from ..models import KPI_TABLE, KpiCategory, category_value
from ..store.base import MAX_ROWS, Record, RecordStore
from .scanner import scan

logger = logging.getLogger(__name__)


def group_ids_by_category(kpis: Iterable[Record]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = defaultdict(list)
    for kpi in kpis:
        grouped[category_value(kpi["category"])].append(kpi["id"])
    return dict(grouped)


class KpiStore:
    def __init__(self, store: RecordStore, page_size: int = MAX_ROWS):
        self.store = store
        self.page_size = page_size

    async def find_kpis(
        self,
        campaign_id: str,
        account_id: Optional[str],
        category: Optional[KpiCategory] = None,
    ) -> list[Record]:
        """Строки KPI одной области. account_id=None - только уровень кампании (IS NULL)."""
        filters = {"campaignId": campaign_id, "accountId": account_id}
        if category is not None:
            filters["category"] = category.value
        return await scan(self.store, KPI_TABLE, filters, page_size=self.page_size)

    async def find_campaign_rows(
        self, campaign_id: str, category: Optional[KpiCategory] = None
    ) -> list[Record]:
        """Все строки кампании, и уровня кампании, и уровня аккаунтов."""
        filters = {"campaignId": campaign_id}
        if category is not None:
            filters["category"] = category.value
        return await scan(self.store, KPI_TABLE, filters, page_size=self.page_size)

    async def batch_set_actual(self, kpi_ids: Sequence[str], value: int) -> None:
        if not kpi_ids:
            return
        await self.store.update(KPI_TABLE, list(kpi_ids), {"actual": value})

    async def reset_existing(self, kpi_ids: Sequence[str]) -> None:
        if not kpi_ids:
            return
        await self.store.update(KPI_TABLE, list(kpi_ids), {"target": 0, "actual": 0})

    async def create_missing(
        self,
        campaign_id: str,
        account_id: Optional[str],
        categories: Sequence[KpiCategory],
        existing: Optional[Sequence[Record]] = None,
    ) -> list[KpiCategory]:
        """
        Вставляет одним пакетом строки (target=0, actual=0) для категорий,
        которых еще нет в области. Дубликаты не создаются.

        Returns:
            Список категорий, для которых строки были созданы
        """
        if existing is None:
            existing = await self.find_kpis(campaign_id, account_id)
        present = {category_value(k["category"]) for k in existing}
        missing: list[KpiCategory] = []
        for category in categories:
            if category.value not in present and category not in missing:
                missing.append(category)
        if not missing:
            return []
        await self.store.insert(
            KPI_TABLE,
            [
                {
                    "campaignId": campaign_id,
                    "accountId": account_id,
                    "category": category.value,
                    "target": 0,
                    "actual": 0,
                }
                for category in missing
            ],
        )
        logger.debug(
            f"➕ KPI созданы: campaign={campaign_id} account={account_id} "
            f"{[c.value for c in missing]}"
        )
        return missing
