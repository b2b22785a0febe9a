import pytest

from kpi_engine.engine.audit import KpiAuditor
from kpi_engine.engine.recalculation import KpiRecalculator
from kpi_engine.models import KPI_TABLE, KpiCategory

from fakes import FakeStore, make_kpi


@pytest.mark.asyncio
async def test_audit_reports_stale_rows(campaign_store):
    drifts = await KpiAuditor(KpiRecalculator(campaign_store)).audit_campaign("C1")

    by_id = {d.kpi_id: d for d in drifts}
    assert by_id["k-C-VIEWS"].expected == 4499
    assert by_id["k-C-VIEWS"].stored == 0
    assert by_id["k-C-VIEWS"].delta == 4499
    assert by_id["k-A1-YELLOW_CART"].expected == 2
    assert by_id["k-A2-FYP_COUNT"].account_id == "A2"
    assert by_id["k-A2-FYP_COUNT"].category is KpiCategory.FYP_COUNT


@pytest.mark.asyncio
async def test_audit_is_read_only_and_clean_after_recalculation(campaign_store):
    recalculator = KpiRecalculator(campaign_store)
    for account_id in ("A1", "A2"):
        await recalculator.recalculate_account_kpis("C1", account_id)
    await recalculator.recalculate_campaign_kpis("C1")
    writes = len(campaign_store.updates)

    drifts = await KpiAuditor(recalculator).audit_campaign("C1")

    assert drifts == []
    assert len(campaign_store.updates) == writes
    assert campaign_store.inserts == []


@pytest.mark.asyncio
async def test_audit_checks_campaign_gmv_against_rollup():
    store = FakeStore(
        {
            KPI_TABLE: [
                make_kpi("g1", "C1", "A1", "GMV_IDR", actual=100),
                make_kpi("g2", "C1", "A2", "GMV_IDR", actual=250),
                make_kpi("g0", "C1", None, "GMV_IDR", actual=300),
            ]
        }
    )

    drifts = await KpiAuditor(KpiRecalculator(store)).audit_campaign("C1")

    assert [(d.kpi_id, d.stored, d.expected) for d in drifts] == [("g0", 300, 350)]


@pytest.mark.asyncio
async def test_audit_without_kpis(store):
    assert await KpiAuditor(KpiRecalculator(store)).audit_campaign("C1") == []


@pytest.mark.asyncio
async def test_audit_agrees_with_gmv_rollup():
    store = FakeStore(
        {
            KPI_TABLE: [
                make_kpi("g1", "C1", "A1", "GMV_IDR", actual="Rp 1 250"),
                make_kpi("g2", "C1", "A2", "GMV_IDR", actual=None),
                make_kpi("g0", "C1", None, "GMV_IDR", actual=0),
            ]
        }
    )
    recalculator = KpiRecalculator(store)
    assert [d.expected for d in await KpiAuditor(recalculator).audit_campaign("C1")] == [1250]

    await recalculator.recalculate_campaign_gmv("C1")
    assert await KpiAuditor(recalculator).audit_campaign("C1") == []
