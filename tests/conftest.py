import pytest

from kpi_engine.models import ACCOUNT_TABLE, CAMPAIGN_TABLE, KPI_TABLE, LINK_TABLE, POST_TABLE

from fakes import FakeStore, make_kpi, make_post


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def campaign_store():
    """Кампания C1 (порог FYP 1000) с аккаунтами A1, A2 и строками KPI обоих уровней."""
    categories = ("VIEWS", "QTY_POST", "FYP_COUNT", "VIDEO_COUNT", "YELLOW_CART")
    kpis = []
    for scope in (None, "A1", "A2"):
        for category in categories:
            kpis.append(make_kpi(f"k-{scope or 'C'}-{category}", "C1", scope, category, target=10))
    return FakeStore(
        {
            CAMPAIGN_TABLE: [{"id": "C1", "name": "Spring", "targetViewsForFYP": 1000}],
            ACCOUNT_TABLE: [
                {"id": "A1", "name": "Alpha", "accountType": "BRAND_SPECIFIC"},
                {"id": "A2", "name": "Beta", "accountType": "CROSSBRAND"},
            ],
            LINK_TABLE: [{"A": "C1", "B": "A1"}, {"A": "C1", "B": "A2"}],
            POST_TABLE: [
                make_post("p1", "C1", "A1", totalView=1000, contentType="Video", yellowCart=True),
                make_post("p2", "C1", "A1", totalView=999, yellowCart="true"),
                make_post("p3", "C1", "A2", totalView="2 500", contentType="Video", yellowCart=1),
                make_post("p4", "C1", "A2", totalView=None, contentType="video"),
            ],
            KPI_TABLE: kpis,
        }
    )
