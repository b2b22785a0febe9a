import asyncio
from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from kpi_engine.store.base import StoreError
from kpi_engine.store.postgres import PostgresStore, build_where


def test_build_where():
    where, args = build_where({"campaignId": "C1", "accountId": None, "category": ["VIEWS", "QTY_POST"]})
    assert where == ' WHERE "campaignId" = $1 AND "accountId" IS NULL AND "category" = ANY($2)'
    assert args == ["C1", ["VIEWS", "QTY_POST"]]


def test_build_where_empty():
    assert build_where(None) == ("", [])


def test_build_where_rejects_injection():
    with pytest.raises(ValueError):
        build_where({'id" OR 1=1 --': 1})


@pytest.mark.asyncio
async def test_query_sql_and_window():
    store = PostgresStore()
    with patch("kpi_engine.store.postgres.db.fetch", new=AsyncMock(return_value=[{"id": "p1"}])) as mock_fetch:
        rows = await store.query(
            "Post", {"campaignId": "C1"}, columns=("id", "totalView"), order_by=("id",), offset=2000, limit=5000
        )

    assert rows == [{"id": "p1"}]
    sql, *args = mock_fetch.await_args.args
    assert sql == (
        'SELECT "id", "totalView" FROM "public"."Post" WHERE "campaignId" = $1 '
        'ORDER BY "id" ASC LIMIT $2 OFFSET $3'
    )
    assert args == ["C1", 1000, 2000]


@pytest.mark.asyncio
async def test_query_rejects_negative_offset():
    with pytest.raises(ValueError):
        await PostgresStore().query("Post", offset=-1)


@pytest.mark.asyncio
async def test_count():
    with patch("kpi_engine.store.postgres.db.fetchval", new=AsyncMock(return_value=3)) as mock_fetchval:
        assert await PostgresStore(schema="crm").count("Campaign") == 3
    assert mock_fetchval.await_args.args == ('SELECT COUNT(*) FROM "crm"."Campaign"',)


@pytest.mark.asyncio
async def test_update_one_statement_for_all_ids():
    with patch("kpi_engine.store.postgres.db.execute", new=AsyncMock()) as mock_execute:
        await PostgresStore().update("KPI", ["k1", "k2"], {"target": 0, "actual": 0})

    mock_execute.assert_awaited_once_with(
        'UPDATE "public"."KPI" SET "target" = $1, "actual" = $2 WHERE "id" = ANY($3)', 0, 0, ["k1", "k2"]
    )


@pytest.mark.asyncio
async def test_insert_uses_executemany():
    rows = [
        {"campaignId": "C1", "accountId": None, "category": "VIEWS"},
        {"campaignId": "C1", "accountId": None, "category": "QTY_POST"},
    ]
    with patch("kpi_engine.store.postgres.db.executemany", new=AsyncMock()) as mock_executemany:
        await PostgresStore().insert("KPI", rows)

    sql, args = mock_executemany.await_args.args
    assert sql == 'INSERT INTO "public"."KPI" ("campaignId", "accountId", "category") VALUES ($1, $2, $3)'
    assert args == [("C1", None, "VIEWS"), ("C1", None, "QTY_POST")]


@pytest.mark.asyncio
async def test_driver_error_becomes_store_error():
    failure = AsyncMock(side_effect=asyncpg.PostgresError("relation does not exist"))
    with patch("kpi_engine.store.postgres.db.fetch", new=failure):
        with pytest.raises(StoreError) as excinfo:
            await PostgresStore().query("Nope")
    assert isinstance(excinfo.value.__cause__, asyncpg.PostgresError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        asyncpg.InterfaceError("connection is closed"),
        asyncio.TimeoutError(),
        ConnectionResetError("reset by peer"),
    ],
)
async def test_connection_failures_become_store_error(error):
    with patch("kpi_engine.store.postgres.db.fetchval", new=AsyncMock(side_effect=error)):
        with pytest.raises(StoreError) as excinfo:
            await PostgresStore().count("KPI")
    assert excinfo.value.__cause__ is error
