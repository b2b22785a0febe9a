"""Пересчеты, которые слой CRUD вызывает после успешной записи.

Вызов идет после коммита самой мутации и в той же обработке запроса. Если
пересчет падает, мутация не откатывается: значения KPI остаются устаревшими
до следующего успешного пересчета этой области.
"""
import logging
from typing import Iterable, Optional

from ..models import KpiCategory
from .recalculation import KpiRecalculator

logger = logging.getLogger(__name__)


class RecalculationHooks:
    def __init__(self, recalculator: KpiRecalculator):
        self.recalculator = recalculator

    async def _refresh(self, campaign_id: str, account_id: str) -> None:
        await self.recalculator.recalculate_account_kpis(campaign_id, account_id)
        await self.recalculator.recalculate_campaign_kpis(campaign_id)

    async def after_post_changed(
        self,
        campaign_id: str,
        account_id: str,
        previous: Optional[tuple[str, str]] = None,
    ) -> None:
        """
        Пост создан, изменен или удален.

        Args:
            campaign_id: Кампания поста после изменения
            account_id: Аккаунт поста после изменения
            previous: (campaign_id, account_id) до изменения, если пост переехал
        """
        await self._refresh(campaign_id, account_id)
        if previous is not None and tuple(previous) != (campaign_id, account_id):
            await self._refresh(*previous)

    async def after_accounts_linked(self, campaign_id: str, account_ids: Iterable[str]) -> None:
        linked = list(dict.fromkeys(account_ids))
        logger.info(f"🔗 Кампания {campaign_id}: привязано аккаунтов {len(linked)}")
        for account_id in linked:
            await self.recalculator.initialize_account_kpis(campaign_id, account_id)
            await self.recalculator.recalculate_account_kpis(campaign_id, account_id)
        if linked:
            await self.recalculator.recalculate_campaign_kpis(campaign_id)

    async def after_account_unlinked(self, campaign_id: str, account_id: str) -> None:
        await self._refresh(campaign_id, account_id)

    async def after_kpi_created(
        self, campaign_id: str, account_id: Optional[str], category: KpiCategory
    ) -> None:
        if category is KpiCategory.GMV_IDR:
            # GMV is never derived from posts
            await self.recalculator.recalculate_campaign_gmv(campaign_id)
        elif account_id is None:
            await self.recalculator.recalculate_campaign_kpis(campaign_id)
        else:
            await self.recalculator.recalculate_account_kpis(campaign_id, account_id)

    async def after_account_gmv_changed(self, campaign_id: str) -> int:
        return await self.recalculator.recalculate_campaign_gmv(campaign_id)
