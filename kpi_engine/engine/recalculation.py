"""
Пересчет KPI из текущего состояния постов.

Каждый пересчет - полная идемпотентная перестройка области (аккаунт в
кампании или вся кампания): читаем все посты, считаем итоги и перезаписываем
actual целиком. Ничего не инкрементируется, поэтому повторный или
параллельный пересчет одной области безопасен.

GMV_IDR сюда не входит: на уровне аккаунта он вводится вручную, а на уровне
кампании это сумма по аккаунтам (recalculate_campaign_gmv).
"""
import logging
from typing import Any, Optional

from ..models import CAMPAIGN_TABLE, KPI_TABLE, POST_TABLE, KpiCategory
from ..store.base import MAX_ROWS, Record, RecordStore
from .kpi_store import KpiStore, group_ids_by_category
from .scanner import scan
from .totals import POST_TOTALS_COLUMNS, compute_totals, sum_field

logger = logging.getLogger(__name__)

ALL_CATEGORIES = tuple(KpiCategory)


class KpiRecalculator:
    def __init__(self, store: RecordStore, page_size: int = MAX_ROWS):
        self.store = store
        self.page_size = page_size
        self.kpis = KpiStore(store, page_size=page_size)

    async def fyp_threshold(self, campaign_id: str) -> Optional[Any]:
        """targetViewsForFYP кампании; нет кампании - нет порога."""
        rows = await self.store.query(
            CAMPAIGN_TABLE, {"id": campaign_id}, columns=("id", "targetViewsForFYP"), limit=1
        )
        if not rows:
            logger.warning(f"⚠️ Кампания {campaign_id} не найдена, FYP не считается")
            return None
        return rows[0].get("targetViewsForFYP")

    async def recalculate_account_kpis(
        self, campaign_id: str, account_id: str
    ) -> Optional[dict[KpiCategory, int]]:
        """Пересчитывает KPI аккаунта в кампании. Нет строк KPI - ничего не делает."""
        return await self._recalculate_scope(
            campaign_id, account_id, {"campaignId": campaign_id, "accountId": account_id}
        )

    async def recalculate_campaign_kpis(self, campaign_id: str) -> Optional[dict[KpiCategory, int]]:
        """Пересчитывает KPI уровня кампании (accountId IS NULL) по всем постам кампании."""
        return await self._recalculate_scope(campaign_id, None, {"campaignId": campaign_id})

    async def _recalculate_scope(
        self, campaign_id: str, account_id: Optional[str], post_filters: dict[str, Any]
    ) -> Optional[dict[KpiCategory, int]]:
        kpis = await self.kpis.find_kpis(campaign_id, account_id)
        if not kpis:
            # Scope must be initialized first (initialize_account_kpis / explicit KPI)
            logger.debug(f"💤 Нет KPI для campaign={campaign_id} account={account_id}, пропуск")
            return None

        posts = await scan(
            self.store, POST_TABLE, post_filters, page_size=self.page_size, columns=POST_TOTALS_COLUMNS
        )
        threshold = await self.fyp_threshold(campaign_id)
        totals = compute_totals(posts, threshold)
        await self._apply_totals(kpis, totals)
        logger.info(
            f"✅ KPI пересчитаны: campaign={campaign_id} account={account_id or '-'} "
            f"постов={totals[KpiCategory.QTY_POST]} просмотров={totals[KpiCategory.VIEWS]}"
        )
        return totals

    async def _apply_totals(self, kpis: list[Record], totals: dict[KpiCategory, int]) -> None:
        grouped = group_ids_by_category(kpis)
        for category, value in totals.items():
            ids = grouped.get(category.value)
            # Categories without a KPI row in this scope are simply not written
            if ids:
                await self.kpis.batch_set_actual(ids, value)

    async def initialize_account_kpis(self, campaign_id: str, account_id: str) -> list[KpiCategory]:
        """
        Готовит область аккаунта после привязки к кампании: существующие строки
        сбрасываются в target=0/actual=0, недостающие категории создаются.
        Итог - ровно одна строка на категорию.

        Returns:
            Категории, для которых были созданы новые строки
        """
        existing = await self.kpis.find_kpis(campaign_id, account_id)
        await self.kpis.reset_existing([k["id"] for k in existing])
        created = await self.kpis.create_missing(
            campaign_id, account_id, ALL_CATEGORIES, existing=existing
        )
        logger.info(
            f"🆕 KPI инициализированы: campaign={campaign_id} account={account_id} "
            f"(сброшено {len(existing)}, создано {len(created)})"
        )
        return created

    async def recalculate_campaign_gmv(self, campaign_id: str) -> int:
        """GMV_IDR кампании = сумма actual GMV_IDR по всем аккаунтам кампании."""
        rows = await self.kpis.find_campaign_rows(campaign_id, KpiCategory.GMV_IDR)
        account_rows = [r for r in rows if r.get("accountId") is not None]
        campaign_rows = [r for r in rows if r.get("accountId") is None]
        total = sum_field(account_rows, "actual")

        if campaign_rows:
            await self.kpis.batch_set_actual([r["id"] for r in campaign_rows], total)
        else:
            await self.store.insert(
                KPI_TABLE,
                [
                    {
                        "campaignId": campaign_id,
                        "accountId": None,
                        "category": KpiCategory.GMV_IDR.value,
                        "target": 0,
                        "actual": total,
                    }
                ],
            )
        logger.info(f"💰 GMV кампании {campaign_id}: {total} ({len(account_rows)} аккаунтов)")
        return total
