"""Массовый пересчет KPI: одна область, кампания, аккаунт или вообще все."""
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..models import CAMPAIGN_TABLE, LINK_TABLE
from .crossbrand import LINK_ACCOUNT, LINK_CAMPAIGN, load_campaign_accounts
from .recalculation import KpiRecalculator
from .scanner import scan

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    campaigns: list[str] = field(default_factory=list)
    account_scopes: list[tuple[str, str]] = field(default_factory=list)


class KpiSweep:
    def __init__(self, recalculator: KpiRecalculator):
        self.recalculator = recalculator
        self.store = recalculator.store
        self.page_size = recalculator.page_size

    async def run(self, campaign_id: Optional[str] = None, account_id: Optional[str] = None) -> SweepReport:
        """
        Пересчитывает KPI в зависимости от аргументов:

        - кампания и аккаунт: область аккаунта и уровень кампании
        - только кампания: уровень кампании и все привязанные аккаунты
        - только аккаунт: все кампании аккаунта
        - ничего: все кампании со всеми аккаунтами

        GMV кампании сворачивается для каждой затронутой кампании.
        """
        report = SweepReport()
        if campaign_id and account_id:
            await self._campaign(campaign_id, [account_id], report)
        elif campaign_id:
            accounts = await load_campaign_accounts(self.store, campaign_id, page_size=self.page_size)
            await self._campaign(campaign_id, accounts, report)
        elif account_id:
            links = await scan(
                self.store,
                LINK_TABLE,
                {LINK_ACCOUNT: account_id},
                page_size=self.page_size,
                order_by=(LINK_CAMPAIGN, LINK_ACCOUNT),
            )
            for linked_campaign in dict.fromkeys(link[LINK_CAMPAIGN] for link in links):
                await self._campaign(linked_campaign, [account_id], report)
        else:
            campaigns = await scan(self.store, CAMPAIGN_TABLE, None, page_size=self.page_size, columns=("id",))
            if not campaigns:
                logger.info("💤 Кампаний не найдено")
            for campaign in campaigns:
                accounts = await load_campaign_accounts(self.store, campaign["id"], page_size=self.page_size)
                await self._campaign(campaign["id"], accounts, report)

        logger.info(
            f"🏁 Пересчет завершен: кампаний {len(report.campaigns)}, "
            f"областей аккаунтов {len(report.account_scopes)}"
        )
        return report

    async def _campaign(self, campaign_id: str, account_ids: list[str], report: SweepReport) -> None:
        for account_id in account_ids:
            await self.recalculator.recalculate_account_kpis(campaign_id, account_id)
            report.account_scopes.append((campaign_id, account_id))
        await self.recalculator.recalculate_campaign_kpis(campaign_id)
        await self.recalculator.recalculate_campaign_gmv(campaign_id)
        report.campaigns.append(campaign_id)
