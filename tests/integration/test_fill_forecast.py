"""Integration tests for forecast fill against an in-memory database."""

from __future__ import annotations

import pytest

from pnlplan.exceptions import EmptySourceError, VersionLockedError, VersionNotFoundError
from pnlplan.models import MONTHS, FillForecastRequest
from pnlplan.statements.reconciler import ALL_ACTUAL_MESSAGE, ForecastReconciler
from tests.factories import (
    build_statement,
    detail,
    example_source,
    example_target,
    section,
    to_line_items,
    total,
)


async def _seed(store, scope, rows, version_id=None):
    await store.insert_rows(scope, to_line_items(rows, scope, version_id))


async def _saved_source(store, scope, rows=None, name="Budget"):
    version = await store.create_version(scope, name, actual_months=0)
    await _seed(store, scope, rows if rows is not None else example_source(), version.id)
    return version


def _request(scope, source_id, target_id=None):
    return FillForecastRequest(
        branch_id=scope.branch_id,
        department=scope.department,
        year=scope.year,
        source_version_id=source_id,
        target_version_id=target_id,
    )


@pytest.mark.asyncio
async def test_example_scenario_on_draft(store, scope):
    """Rent is matched by code, Parking inserted before its total, total recomputed."""
    await _seed(store, scope, example_target())
    await store.upsert_import_record(scope, "actuals.xlsx", ["jan"])
    source = await _saved_source(store, scope)

    result = await ForecastReconciler(store).fill_forecast(_request(scope, source.id))

    assert result.updated_count == 2
    assert result.inserted_count == 1
    assert result.forecast_months == list(MONTHS[1:])

    rows = await store.list_rows(scope)
    assert [r.account_name for r in rows] == ["Income", "Rent", "Parking", "Total Income"]
    assert [r.row_order for r in rows] == [1, 2, 3, 4]

    income, rent, parking, total_income = rows
    assert rent.jan == 100 and rent.feb == 150
    assert parking.feb == 50 and parking.jan == 0
    assert parking.version_id is None
    assert total_income.jan == 100 and total_income.feb == 200


@pytest.mark.asyncio
async def test_second_run_changes_nothing(store, scope):
    await _seed(store, scope, example_target())
    await store.upsert_import_record(scope, "actuals.xlsx", ["jan"])
    source = await _saved_source(store, scope)
    reconciler = ForecastReconciler(store)

    await reconciler.fill_forecast(_request(scope, source.id))
    second = await reconciler.fill_forecast(_request(scope, source.id))

    assert second.updated_count == 0
    assert second.inserted_count == 0
    assert len(await store.list_rows(scope)) == 4


@pytest.mark.asyncio
async def test_fill_saved_version_uses_its_actual_months(store, scope):
    target = await store.create_version(scope, "Forecast Q1", actual_months=11)
    await _seed(store, scope, example_target(), target.id)
    source_rows = build_statement(
        section("Income"),
        detail("Rent", "R1", nov=1, dec=300),
        total("Total Income", dec=300),
    )
    source = await _saved_source(store, scope, source_rows)

    result = await ForecastReconciler(store).fill_forecast(
        _request(scope, source.id, target.id)
    )

    assert result.forecast_months == ["dec"]
    rows = await store.list_rows(scope, target.id)
    rent = next(r for r in rows if r.account_code == "R1")
    assert rent.nov == 0
    assert rent.dec == 300
    # Draft untouched
    assert await store.list_rows(scope) == []


@pytest.mark.asyncio
async def test_many_updates_span_several_batches(store, scope):
    names = [f"Account {i}" for i in range(7)]
    target_rows = build_statement(
        section("Expenses"), *(detail(n, f"A{i}") for i, n in enumerate(names)), total("Total Expenses")
    )
    source_rows = build_statement(
        section("Expenses"),
        *(detail(n, f"A{i}", jul=i + 1) for i, n in enumerate(names)),
        total("Total Expenses"),
    )
    await _seed(store, scope, target_rows)
    source = await _saved_source(store, scope, source_rows)

    result = await ForecastReconciler(store).fill_forecast(_request(scope, source.id))

    # Seven details plus the total
    assert result.updated_count == 8
    rows = await store.list_rows(scope)
    assert rows[-1].jul == sum(range(1, 8))


@pytest.mark.asyncio
async def test_locked_target_is_refused(store, scope):
    target = await store.create_version(scope, "Locked", actual_months=0)
    await store.update_version(target.id, is_locked=True)
    await _seed(store, scope, example_target(), target.id)
    source = await _saved_source(store, scope)

    with pytest.raises(VersionLockedError, match="locked"):
        await ForecastReconciler(store).fill_forecast(_request(scope, source.id, target.id))

    rows = await store.list_rows(scope, target.id)
    assert [r.feb for r in rows] == [0, 0, 0]


@pytest.mark.asyncio
async def test_missing_target_version(store, scope):
    source = await _saved_source(store, scope)

    with pytest.raises(VersionNotFoundError):
        await ForecastReconciler(store).fill_forecast(_request(scope, source.id, 9999))


@pytest.mark.asyncio
async def test_empty_source_is_refused(store, scope):
    await _seed(store, scope, example_target())
    empty = await store.create_version(scope, "Empty")

    with pytest.raises(EmptySourceError) as exc_info:
        await ForecastReconciler(store).fill_forecast(_request(scope, empty.id))

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_all_actual_months_is_a_no_op(store, scope):
    await _seed(store, scope, example_target())
    await store.upsert_import_record(scope, "actuals.xlsx", list(MONTHS))
    source = await _saved_source(store, scope)

    result = await ForecastReconciler(store).fill_forecast(_request(scope, source.id))

    assert result.updated_count == 0
    assert result.message == ALL_ACTUAL_MESSAGE
    assert len(await store.list_rows(scope)) == 3
