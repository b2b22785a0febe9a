"""Подсчет итогов по категориям KPI из набора постов."""
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..models import KpiCategory
from ..utils.coerce import is_loose_true, to_count, to_decimal

# GMV_IDR is entered per account and rolled up separately, never derived from posts
POST_DERIVED_CATEGORIES = (
    KpiCategory.VIEWS,
    KpiCategory.QTY_POST,
    KpiCategory.FYP_COUNT,
    KpiCategory.VIDEO_COUNT,
    KpiCategory.YELLOW_CART,
)

VIDEO_CONTENT_TYPE = "Video"

# Columns the calculator reads; scans request only these
POST_TOTALS_COLUMNS = ("id", "totalView", "contentType", "yellowCart")


def compute_totals(posts: Sequence[Mapping[str, Any]], fyp_threshold: Optional[Any]) -> dict[KpiCategory, int]:
    """
    Сводит посты в итоги VIEWS, QTY_POST, FYP_COUNT, VIDEO_COUNT, YELLOW_CART.

    - VIEWS: сумма totalView (нечисловое/отсутствующее = 0)
    - QTY_POST: количество постов
    - FYP_COUNT: посты с totalView >= порога (порог None - не считаем)
    - VIDEO_COUNT: contentType ровно "Video"
    - YELLOW_CART: yellowCart равен True, 1 или "true"
    """
    threshold = to_decimal(fyp_threshold)
    totals = {category: 0 for category in POST_DERIVED_CATEGORIES}
    totals[KpiCategory.QTY_POST] = len(posts)

    for post in posts:
        views = to_count(post.get("totalView"))
        totals[KpiCategory.VIEWS] += views
        if post.get("contentType") == VIDEO_CONTENT_TYPE:
            totals[KpiCategory.VIDEO_COUNT] += 1
        if threshold is not None and views >= threshold:
            totals[KpiCategory.FYP_COUNT] += 1
        if is_loose_true(post.get("yellowCart")):
            totals[KpiCategory.YELLOW_CART] += 1
    return totals


def sum_field(records: Iterable[Mapping[str, Any]], field: str) -> int:
    return sum(to_count(r.get(field)) for r in records)
