"""
CLI движка KPI.

Использование:
    kpi-engine recalculate                      # Все кампании и все аккаунты
    kpi-engine recalculate --campaign C1        # Кампания и ее аккаунты
    kpi-engine recalculate --account A1         # Все кампании аккаунта
    kpi-engine init-kpis --campaign C1 --account A1
    kpi-engine rollup-gmv --campaign C1
    kpi-engine audit --campaign C1 [--csv drift.csv]
    kpi-engine serve [--host 0.0.0.0] [--port 8000]
    kpi-engine check                            # Проверить окружение и хранилище
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional

import pandas as pd

from .engine.audit import KpiAuditor
from .engine.recalculation import KpiRecalculator
from .engine.sweep import KpiSweep
from .logger import log_duration, setup_logging
from .models import CAMPAIGN_TABLE
from .store.base import RecordStore
from .store.factory import create_store
from .utils.config import settings

logger = logging.getLogger(__name__)


def _recalculator(store: RecordStore) -> KpiRecalculator:
    return KpiRecalculator(store, page_size=settings.SCAN_PAGE_SIZE)


# --- Command: RECALCULATE ---

async def run_recalculate(campaign_id: Optional[str] = None, account_id: Optional[str] = None):
    store = create_store()
    try:
        logger.info(f"🚀 === ПЕРЕСЧЕТ KPI (campaign={campaign_id or 'все'}, account={account_id or 'все'}) ===")
        with log_duration(logger, "Пересчет завершен"):
            report = await KpiSweep(_recalculator(store)).run(campaign_id, account_id)
        return report
    finally:
        await store.close()


async def run_init_kpis(campaign_id: str, account_id: str):
    store = create_store()
    try:
        recalculator = _recalculator(store)
        created = await recalculator.initialize_account_kpis(campaign_id, account_id)
        await recalculator.recalculate_account_kpis(campaign_id, account_id)
        logger.info(f"✅ Создано категорий: {', '.join(c.value for c in created) or 'нет'}")
        return created
    finally:
        await store.close()


async def run_rollup_gmv(campaign_id: str) -> int:
    store = create_store()
    try:
        return await _recalculator(store).recalculate_campaign_gmv(campaign_id)
    finally:
        await store.close()


# --- Command: AUDIT ---

def drift_frame(drifts) -> pd.DataFrame:
    """Расхождения в виде таблицы (колонки в camelCase, как в API)."""
    columns = ["kpiId", "accountId", "category", "stored", "expected", "delta"]
    rows = [d.model_dump(by_alias=True, mode="json") for d in drifts]
    return pd.DataFrame(rows, columns=columns)


async def run_audit(campaign_id: str, csv_path: Optional[str] = None) -> pd.DataFrame:
    store = create_store()
    try:
        drifts = await KpiAuditor(_recalculator(store)).audit_campaign(campaign_id)
    finally:
        await store.close()

    df = drift_frame(drifts)
    if df.empty:
        logger.info("✅ Расхождений не найдено")
    else:
        logger.warning(f"⚠️ Найдено расхождений: {len(df)}")
        print(df.to_string(index=False))
    if csv_path:
        df.to_csv(csv_path, index=False)
        logger.info(f"💾 Отчет сохранен: {csv_path}")
    return df


# --- Command: CHECK ---

async def run_check_env() -> bool:
    """Проверяет настройки и доступность хранилища."""
    logger.info("Проверка окружения...")
    ok = True
    if settings.STORE_BACKEND == "postgres" and not settings.POSTGRES_URI:
        logger.error("❌ POSTGRES_URI not set")
        ok = False
    if settings.STORE_BACKEND == "postgrest" and not (settings.SUPABASE_URL and settings.SUPABASE_SERVICE_KEY):
        logger.error("❌ SUPABASE_URL / SUPABASE_SERVICE_KEY not set")
        ok = False
    if not ok:
        return False

    store = create_store()
    try:
        campaigns = await store.count(CAMPAIGN_TABLE)
        logger.info(f"✅ Хранилище доступно ({settings.STORE_BACKEND}), кампаний: {campaigns}")
    except Exception as e:
        logger.error(f"❌ Хранилище недоступно: {e}")
        ok = False
    finally:
        await store.close()
    return ok


def run_serve(host: str, port: int) -> None:
    import uvicorn

    from .api import create_app

    uvicorn.run(create_app(), host=host, port=port, log_config=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Campaign KPI Engine: пересчет KPI и агрегаты дашбордов")
    parser.add_argument("--debug", action="store_true", help="Set log level to DEBUG")
    parser.add_argument("--json-logs", action="store_true", help="Enable JSON logging format")

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_recalc = subparsers.add_parser("recalculate", help="Recalculate KPIs (all, per campaign or per account)")
    p_recalc.add_argument("--campaign", help="Campaign id")
    p_recalc.add_argument("--account", help="Account id")

    p_init = subparsers.add_parser("init-kpis", help="Initialize account KPIs after linking to a campaign")
    p_init.add_argument("--campaign", required=True, help="Campaign id")
    p_init.add_argument("--account", required=True, help="Account id")

    p_gmv = subparsers.add_parser("rollup-gmv", help="Roll account GMV up to the campaign")
    p_gmv.add_argument("--campaign", required=True, help="Campaign id")

    p_audit = subparsers.add_parser("audit", help="Report KPI rows whose actual drifted from posts")
    p_audit.add_argument("--campaign", required=True, help="Campaign id")
    p_audit.add_argument("--csv", help="Write the drift report to this CSV file")

    p_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=settings.API_HOST)
    p_serve.add_argument("--port", type=int, default=settings.API_PORT)

    subparsers.add_parser("check", help="Check environment")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Точка входа CLI."""
    args = build_parser().parse_args(argv)

    log_level = "DEBUG" if args.debug else settings.LOG_LEVEL
    setup_logging(level=log_level, json_format=args.json_logs)

    try:
        if args.command == "recalculate":
            asyncio.run(run_recalculate(args.campaign, args.account))
        elif args.command == "init-kpis":
            asyncio.run(run_init_kpis(args.campaign, args.account))
        elif args.command == "rollup-gmv":
            asyncio.run(run_rollup_gmv(args.campaign))
        elif args.command == "audit":
            asyncio.run(run_audit(args.campaign, csv_path=args.csv))
        elif args.command == "serve":
            run_serve(args.host, args.port)
        elif args.command == "check":
            if not asyncio.run(run_check_env()):
                sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
