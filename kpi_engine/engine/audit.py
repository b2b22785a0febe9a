"""Сверка сохраненных actual с пересчитанными значениями без записи в БД."""
import logging
from collections import defaultdict
from typing import Any, Optional

from ..models import POST_TABLE, KpiCategory, KpiDrift, category_value
from ..utils.coerce import to_count
from .recalculation import KpiRecalculator
from .scanner import scan
from .totals import POST_TOTALS_COLUMNS, compute_totals, sum_field

logger = logging.getLogger(__name__)


class KpiAuditor:
    def __init__(self, recalculator: KpiRecalculator):
        self.recalculator = recalculator
        self.store = recalculator.store

    async def audit_campaign(self, campaign_id: str) -> list[KpiDrift]:
        """
        Возвращает строки KPI кампании, у которых actual расходится с пересчетом.

        Посты кампании читаются один раз и делятся по аккаунтам. GMV_IDR уровня
        кампании сверяется с суммой по аккаунтам; GMV_IDR аккаунтов вводится
        вручную и не сверяется.
        """
        rows = await self.recalculator.kpis.find_campaign_rows(campaign_id)
        if not rows:
            return []
        posts = await scan(
            self.store,
            POST_TABLE,
            {"campaignId": campaign_id},
            page_size=self.recalculator.page_size,
            columns=POST_TOTALS_COLUMNS + ("accountId",),
        )
        threshold = await self.recalculator.fyp_threshold(campaign_id)

        posts_by_account: dict[Any, list] = defaultdict(list)
        for post in posts:
            posts_by_account[post.get("accountId")].append(post)
        scope_totals: dict[Optional[str], dict[KpiCategory, int]] = {None: compute_totals(posts, threshold)}
        gmv_sum = sum_field(
            [
                r
                for r in rows
                if r.get("accountId") is not None and category_value(r["category"]) == KpiCategory.GMV_IDR.value
            ],
            "actual",
        )

        drifts = []
        for row in rows:
            category = KpiCategory(category_value(row["category"]))
            account_id = row.get("accountId")
            if category is KpiCategory.GMV_IDR:
                if account_id is not None:
                    continue
                expected = gmv_sum
            else:
                if account_id not in scope_totals:
                    scope_totals[account_id] = compute_totals(posts_by_account.get(account_id, []), threshold)
                expected = scope_totals[account_id][category]
            stored = to_count(row.get("actual"))
            if stored != expected:
                drifts.append(
                    KpiDrift(
                        kpi_id=row["id"],
                        account_id=account_id,
                        category=category,
                        stored=stored,
                        expected=expected,
                    )
                )
        logger.info(f"🔍 Аудит кампании {campaign_id}: строк {len(rows)}, расхождений {len(drifts)}")
        return drifts
