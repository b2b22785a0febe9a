"""Признак crossbrand: аккаунт привязан к двум и более кампаниям.

Признак нигде не хранится и считается из текущей таблицы связей при
каждом чтении.
"""
from collections import defaultdict
from typing import Iterable, Optional

from ..models import LINK_TABLE
from ..store.base import MAX_ROWS, RecordStore
from .scanner import scan

CROSSBRAND_MIN_CAMPAIGNS = 2

# _CampaignToAccount: A = campaign id, B = account id
LINK_CAMPAIGN = "A"
LINK_ACCOUNT = "B"


def is_crossbrand(campaign_count: int) -> bool:
    return campaign_count >= CROSSBRAND_MIN_CAMPAIGNS


async def load_account_campaigns(
    store: RecordStore,
    account_ids: Optional[Iterable[str]] = None,
    page_size: int = MAX_ROWS,
) -> dict[str, list[str]]:
    """Кампании каждого аккаунта (без повторов, в порядке таблицы связей)."""
    filters = None
    if account_ids is not None:
        ids = list(dict.fromkeys(account_ids))
        if not ids:
            return {}
        filters = {LINK_ACCOUNT: ids}
    links = await scan(
        store, LINK_TABLE, filters, page_size=page_size, order_by=(LINK_CAMPAIGN, LINK_ACCOUNT)
    )
    campaigns: dict[str, list[str]] = defaultdict(list)
    for link in links:
        account_campaigns = campaigns[link[LINK_ACCOUNT]]
        if link[LINK_CAMPAIGN] not in account_campaigns:
            account_campaigns.append(link[LINK_CAMPAIGN])
    return dict(campaigns)


async def load_campaign_accounts(
    store: RecordStore, campaign_id: str, page_size: int = MAX_ROWS
) -> list[str]:
    """Аккаунты, привязанные к кампании."""
    links = await scan(
        store,
        LINK_TABLE,
        {LINK_CAMPAIGN: campaign_id},
        page_size=page_size,
        order_by=(LINK_CAMPAIGN, LINK_ACCOUNT),
    )
    return list(dict.fromkeys(link[LINK_ACCOUNT] for link in links))


def matches_crossbrand(campaign_count: int, crossbrand: Optional[bool]) -> bool:
    """Фильтр crossbrand=true|false; None - фильтра нет."""
    if crossbrand is None:
        return True
    return is_crossbrand(campaign_count) == crossbrand
