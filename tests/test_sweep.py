import pytest

from kpi_engine.engine.recalculation import KpiRecalculator
from kpi_engine.engine.sweep import KpiSweep
from kpi_engine.models import CAMPAIGN_TABLE, KPI_TABLE, LINK_TABLE, POST_TABLE

from fakes import FakeStore, make_kpi, make_post


@pytest.fixture
def two_campaigns(campaign_store):
    campaign_store.tables[CAMPAIGN_TABLE].append({"id": "C2", "targetViewsForFYP": 10})
    campaign_store.tables[LINK_TABLE].append({"A": "C2", "B": "A1"})
    campaign_store.tables[POST_TABLE].append(make_post("q1", "C2", "A1", totalView=20))
    campaign_store.tables[KPI_TABLE] += [
        make_kpi("c2-views", "C2", None, "VIEWS"),
        make_kpi("c2-a1-fyp", "C2", "A1", "FYP_COUNT"),
        make_kpi("c2-a1-gmv", "C2", "A1", "GMV_IDR", actual=75),
    ]
    return campaign_store


@pytest.mark.asyncio
async def test_sweep_everything(two_campaigns):
    report = await KpiSweep(KpiRecalculator(two_campaigns)).run()

    assert report.campaigns == ["C1", "C2"]
    assert set(report.account_scopes) == {("C1", "A1"), ("C1", "A2"), ("C2", "A1")}
    assert two_campaigns.actual("C1", None, "VIEWS") == 4499
    assert two_campaigns.actual("C1", "A2", "VIEWS") == 2500
    assert two_campaigns.actual("C2", None, "VIEWS") == 20
    assert two_campaigns.actual("C2", "A1", "FYP_COUNT") == 1
    assert two_campaigns.actual("C2", None, "GMV_IDR") == 75
    assert two_campaigns.actual("C1", None, "GMV_IDR") == 0


@pytest.mark.asyncio
async def test_sweep_single_campaign(two_campaigns):
    report = await KpiSweep(KpiRecalculator(two_campaigns)).run(campaign_id="C1")

    assert report.campaigns == ["C1"]
    assert report.account_scopes == [("C1", "A1"), ("C1", "A2")]
    assert two_campaigns.actual("C2", None, "VIEWS") == 0


@pytest.mark.asyncio
async def test_sweep_single_account(two_campaigns):
    report = await KpiSweep(KpiRecalculator(two_campaigns)).run(account_id="A1")

    assert report.campaigns == ["C1", "C2"]
    assert report.account_scopes == [("C1", "A1"), ("C2", "A1")]
    assert two_campaigns.actual("C1", "A1", "VIEWS") == 1999
    assert two_campaigns.actual("C1", "A2", "VIEWS") == 0


@pytest.mark.asyncio
async def test_sweep_campaign_and_account(two_campaigns):
    report = await KpiSweep(KpiRecalculator(two_campaigns)).run(campaign_id="C1", account_id="A2")

    assert report.account_scopes == [("C1", "A2")]
    assert two_campaigns.actual("C1", "A2", "QTY_POST") == 2
    assert two_campaigns.actual("C1", "A1", "QTY_POST") == 0
    assert two_campaigns.actual("C1", None, "QTY_POST") == 4


@pytest.mark.asyncio
async def test_sweep_empty_store():
    report = await KpiSweep(KpiRecalculator(FakeStore())).run()
    assert report.campaigns == []
    assert report.account_scopes == []
