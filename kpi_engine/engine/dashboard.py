"""Агрегаты для дашборда: вовлеченность, разбивка по категориям, списки KPI и аккаунтов.

Все агрегаты строятся полным постраничным чтением постов и не зависят от
сохраненных значений KPI.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..models import (
    ACCOUNT_TABLE,
    CAMPAIGN_TABLE,
    KPI_TABLE,
    POST_TABLE,
    UNCATEGORIZED,
    AccountView,
    AllCampaignsEngagement,
    CategoryBreakdownItem,
    EngagementTotals,
    KpiCategory,
    KpiRow,
)
from ..store.base import MAX_ROWS, RecordStore
from ..utils.coerce import to_count
from .crossbrand import load_account_campaigns, is_crossbrand, matches_crossbrand
from .scanner import scan

logger = logging.getLogger(__name__)

ENGAGEMENT_COLUMNS = ("id", "campaignId", "totalView", "totalLike", "totalComment", "totalShare", "totalSaved")

# Post counter column -> engagement field
_COUNTERS = {
    "totalView": "views",
    "totalLike": "likes",
    "totalComment": "comments",
    "totalShare": "shares",
    "totalSaved": "saves",
}

_RATE_QUANT = Decimal("0.0001")


def engagement_rate(views: int, likes: int, comments: int, shares: int, saves: int) -> float:
    """(likes + comments + shares + saves) / views, 4 знака; 0 при нуле просмотров."""
    if views == 0:
        return 0.0
    rate = Decimal(likes + comments + shares + saves) / Decimal(views)
    return float(rate.quantize(_RATE_QUANT, rounding=ROUND_HALF_UP))


def _zero_sums() -> dict[str, int]:
    return {field: 0 for field in _COUNTERS.values()}


def _accumulate(sums: dict[str, int], post: Mapping[str, Any]) -> None:
    for column, field in _COUNTERS.items():
        sums[field] += to_count(post.get(column))


def _to_totals(sums: Mapping[str, int]) -> EngagementTotals:
    return EngagementTotals(**sums, engagement_rate=engagement_rate(**sums))


def sum_engagement(posts: Iterable[Mapping[str, Any]]) -> EngagementTotals:
    sums = _zero_sums()
    for post in posts:
        _accumulate(sums, post)
    return _to_totals(sums)


class DashboardAggregator:
    def __init__(self, store: RecordStore, page_size: int = MAX_ROWS):
        self.store = store
        self.page_size = page_size

    async def _posts(self, filters: Optional[Mapping[str, Any]], columns: Sequence[str]):
        return await scan(self.store, POST_TABLE, filters, page_size=self.page_size, columns=columns)

    async def campaign_engagement(self, campaign_id: str) -> EngagementTotals:
        posts = await self._posts({"campaignId": campaign_id}, ENGAGEMENT_COLUMNS)
        return sum_engagement(posts)

    async def batch_engagement(self, campaign_ids: Sequence[str]) -> dict[str, EngagementTotals]:
        """Вовлеченность по нескольким кампаниям; кампании без постов тоже в ответе."""
        ids = list(dict.fromkeys(campaign_ids))
        if not ids:
            return {}
        # Seeded up front so a requested id is never missing from the result
        sums = {campaign_id: _zero_sums() for campaign_id in ids}
        posts = await self._posts({"campaignId": ids}, ENGAGEMENT_COLUMNS)
        for post in posts:
            campaign_sums = sums.get(post.get("campaignId"))
            if campaign_sums is not None:
                _accumulate(campaign_sums, post)
        return {campaign_id: _to_totals(s) for campaign_id, s in sums.items()}

    async def category_breakdown(self, campaign_id: str) -> list[CategoryBreakdownItem]:
        """
        Посты кампании по campaignCategory: количество и сумма просмотров.

        Пустая категория считается "Uncategorized". Порядок: больше постов,
        затем больше просмотров, затем название по алфавиту.
        """
        posts = await self._posts({"campaignId": campaign_id}, ("id", "campaignCategory", "totalView"))
        groups: dict[str, list[int]] = {}
        for post in posts:
            label = post.get("campaignCategory")
            if not isinstance(label, str) or not label.strip():
                label = UNCATEGORIZED
            bucket = groups.setdefault(label, [0, 0])
            bucket[0] += 1
            bucket[1] += to_count(post.get("totalView"))

        items = [
            CategoryBreakdownItem(category=label, posts=count, views=views)
            for label, (count, views) in groups.items()
        ]
        items.sort(key=lambda item: (-item.posts, -item.views, item.category))
        return items

    async def all_campaigns_engagement(self) -> AllCampaignsEngagement:
        posts = await self._posts(None, ENGAGEMENT_COLUMNS)
        totals = sum_engagement(posts)
        campaign_count = await self.store.count(CAMPAIGN_TABLE)
        return AllCampaignsEngagement(**totals.model_dump(), campaign_count=campaign_count)

    async def list_kpis(
        self,
        campaign_id: Optional[str] = None,
        account_id: Optional[str] = None,
        category: Optional[KpiCategory] = None,
        crossbrand: Optional[bool] = None,
    ) -> list[KpiRow]:
        """
        Строки KPI с остатком remaining = target - actual.

        С фильтром crossbrand остаются только строки уровня аккаунта, чей
        аккаунт подходит под фильтр; строки уровня кампании отбрасываются.
        """
        filters: dict[str, Any] = {}
        if campaign_id:
            filters["campaignId"] = campaign_id
        if account_id:
            filters["accountId"] = account_id
        if category is not None:
            filters["category"] = category.value
        rows = await scan(self.store, KPI_TABLE, filters or None, page_size=self.page_size)
        kpis = [KpiRow.model_validate(r) for r in rows]

        if crossbrand is not None:
            campaigns = await load_account_campaigns(self.store, page_size=self.page_size)
            kpis = [
                k
                for k in kpis
                if k.account_id is not None
                and matches_crossbrand(len(campaigns.get(k.account_id, [])), crossbrand)
            ]
        return kpis

    async def list_accounts(
        self, account_type: Optional[str] = None, crossbrand: Optional[bool] = None
    ) -> list[AccountView]:
        """Аккаунты с кампаниями, признаком crossbrand и количеством постов/KPI."""
        filters = {"accountType": account_type} if account_type else None
        accounts = await scan(
            self.store, ACCOUNT_TABLE, filters, page_size=self.page_size, columns=("id", "name", "accountType")
        )
        campaigns = await load_account_campaigns(self.store, page_size=self.page_size)
        post_counts = await self._count_by_account(POST_TABLE)
        kpi_counts = await self._count_by_account(KPI_TABLE)

        result = []
        for account in accounts:
            campaign_ids = campaigns.get(account["id"], [])
            if not matches_crossbrand(len(campaign_ids), crossbrand):
                continue
            result.append(
                AccountView(
                    id=account["id"],
                    name=account.get("name"),
                    account_type=account.get("accountType"),
                    campaign_ids=campaign_ids,
                    is_crossbrand=is_crossbrand(len(campaign_ids)),
                    post_count=post_counts.get(account["id"], 0),
                    kpi_count=kpi_counts.get(account["id"], 0),
                )
            )
        return result

    async def _count_by_account(self, table: str) -> dict[str, int]:
        rows = await scan(self.store, table, None, page_size=self.page_size, columns=("id", "accountId"))
        counts: dict[str, int] = {}
        for row in rows:
            account_id = row.get("accountId")
            if account_id is not None:
                counts[account_id] = counts.get(account_id, 0) + 1
        return counts
