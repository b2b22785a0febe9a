"""
HTTP API движка KPI на FastAPI.

Чтение дашбордов и явные пересчеты. Все ответы в camelCase; ошибки
хранилища отдаются как 502, некорректные аргументы вызова как 400.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .engine.dashboard import DashboardAggregator
from .engine.recalculation import KpiRecalculator
from .models import (
    AccountView,
    AllCampaignsEngagement,
    CategoryBreakdownItem,
    EngagementTotals,
    KpiCategory,
    KpiRow,
)
from .store.base import InvalidArgumentError, RecordStore, StoreError
from .store.factory import create_store
from .utils.config import settings

logger = logging.getLogger(__name__)


def parse_flag(value: Optional[str]) -> Optional[bool]:
    """Фильтр вида ?crossbrand=true|false; любое другое значение - без фильтра."""
    if value is None:
        return None
    value = value.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def parse_id_list(value: Optional[str]) -> list[str]:
    """'a,b,,c' -> ['a', 'b', 'c']"""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_dashboard(store: RecordStore = Depends(get_store)) -> DashboardAggregator:
    return DashboardAggregator(store, page_size=settings.SCAN_PAGE_SIZE)


def get_recalculator(store: RecordStore = Depends(get_store)) -> KpiRecalculator:
    return KpiRecalculator(store, page_size=settings.SCAN_PAGE_SIZE)


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    """Собирает приложение. Без явного store он создается по настройкам при старте."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "store", None) is None:
            app.state.store = create_store()
        logger.info("🚀 API запущен")
        try:
            yield
        finally:
            await app.state.store.close()
            logger.info("🛑 API остановлен")

    app = FastAPI(title="Campaign KPI Engine", version="1.0.0", lifespan=lifespan)
    app.state.store = store

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"❌ Ошибка хранилища на {request.url.path}: {exc}")
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    # --- Dashboards ---

    @app.get("/campaigns/{campaign_id}/dashboard/engagement", response_model=EngagementTotals)
    async def campaign_engagement(campaign_id: str, dashboard: DashboardAggregator = Depends(get_dashboard)):
        return await dashboard.campaign_engagement(campaign_id)

    @app.get("/dashboard/engagement", response_model=dict[str, EngagementTotals])
    async def batch_engagement(
        campaign_ids: Optional[str] = Query(None, alias="campaignIds"),
        dashboard: DashboardAggregator = Depends(get_dashboard),
    ):
        return await dashboard.batch_engagement(parse_id_list(campaign_ids))

    @app.get("/dashboard/engagement/all", response_model=AllCampaignsEngagement)
    async def all_campaigns_engagement(dashboard: DashboardAggregator = Depends(get_dashboard)):
        return await dashboard.all_campaigns_engagement()

    @app.get("/campaigns/{campaign_id}/dashboard/categories", response_model=list[CategoryBreakdownItem])
    async def category_breakdown(campaign_id: str, dashboard: DashboardAggregator = Depends(get_dashboard)):
        return await dashboard.category_breakdown(campaign_id)

    @app.get("/campaigns/{campaign_id}/dashboard/kpi", response_model=list[KpiRow])
    async def campaign_kpis(
        campaign_id: str,
        category: Optional[KpiCategory] = None,
        account_id: Optional[str] = Query(None, alias="accountId"),
        crossbrand: Optional[str] = None,
        dashboard: DashboardAggregator = Depends(get_dashboard),
    ):
        return await dashboard.list_kpis(campaign_id, account_id, category, parse_flag(crossbrand))

    @app.get("/kpis", response_model=list[KpiRow])
    async def list_kpis(
        campaign_id: Optional[str] = Query(None, alias="campaignId"),
        account_id: Optional[str] = Query(None, alias="accountId"),
        crossbrand: Optional[str] = None,
        dashboard: DashboardAggregator = Depends(get_dashboard),
    ):
        return await dashboard.list_kpis(campaign_id, account_id, None, parse_flag(crossbrand))

    @app.get("/accounts", response_model=list[AccountView])
    async def list_accounts(
        account_type: Optional[str] = Query(None, alias="accountType"),
        crossbrand: Optional[str] = None,
        dashboard: DashboardAggregator = Depends(get_dashboard),
    ):
        return await dashboard.list_accounts(account_type, parse_flag(crossbrand))

    # --- Recalculation ---

    @app.post("/campaigns/{campaign_id}/recalculate-kpis")
    async def recalculate_campaign(campaign_id: str, recalculator: KpiRecalculator = Depends(get_recalculator)):
        totals = await recalculator.recalculate_campaign_kpis(campaign_id)
        return {"campaignId": campaign_id, "totals": _totals_payload(totals)}

    @app.post("/campaigns/{campaign_id}/accounts/{account_id}/recalculate-kpis")
    async def recalculate_account(
        campaign_id: str, account_id: str, recalculator: KpiRecalculator = Depends(get_recalculator)
    ):
        totals = await recalculator.recalculate_account_kpis(campaign_id, account_id)
        return {"campaignId": campaign_id, "accountId": account_id, "totals": _totals_payload(totals)}

    @app.post("/campaigns/{campaign_id}/accounts/{account_id}/initialize-kpis")
    async def initialize_account(
        campaign_id: str, account_id: str, recalculator: KpiRecalculator = Depends(get_recalculator)
    ):
        created = await recalculator.initialize_account_kpis(campaign_id, account_id)
        return {"campaignId": campaign_id, "accountId": account_id, "created": [c.value for c in created]}

    @app.post("/campaigns/{campaign_id}/recalculate-gmv")
    async def recalculate_gmv(campaign_id: str, recalculator: KpiRecalculator = Depends(get_recalculator)):
        total = await recalculator.recalculate_campaign_gmv(campaign_id)
        return {"campaignId": campaign_id, "gmv": total}

    return app


def _totals_payload(totals: Optional[dict[KpiCategory, int]]) -> Optional[dict[str, int]]:
    # None: the scope had no KPI rows, nothing was written
    if totals is None:
        return None
    return {category.value: value for category, value in totals.items()}
