"""Integration tests for the persisted statement tables."""

from __future__ import annotations

import pytest

from pnlplan.db.statements import chunked
from pnlplan.models import RowType
from pnlplan.statements.models import OrderPatch, RowPatch
from tests.factories import example_source, example_target, to_line_items


def test_chunked():
    assert [list(c) for c in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]
    assert list(chunked([], 3)) == []


@pytest.mark.asyncio
async def test_draft_and_versions_are_separate_statements(store, scope):
    version = await store.create_version(scope, "Budget", actual_months=2)
    await store.insert_rows(scope, to_line_items(example_target(), scope))
    await store.insert_rows(scope, to_line_items(example_source(), scope, version.id))

    assert await store.count_rows(scope) == 3
    assert await store.count_rows(scope, version.id) == 4
    details = await store.list_rows(scope, version.id, row_types=[RowType.DETAIL])
    assert [r.account_code for r in details] == ["R1", "R2"]


@pytest.mark.asyncio
async def test_patches_and_order_updates(store, scope):
    await store.insert_rows(scope, to_line_items(example_target(), scope))
    income, rent, total_income = await store.list_rows(scope)

    updated = await store.apply_patches(
        [
            RowPatch(rent.id, {"feb": 150.0, "pct_of_total": 0.5, "pct_source": "income"}),
            RowPatch(total_income.id, {"feb": 150.0}),
            RowPatch(income.id, {"dec": 1.0}),
        ]
    )
    await store.apply_order_patches([OrderPatch(total_income.id, 9)])

    assert updated == 3
    rent = await store.get_line_item(rent.id)
    assert rent.feb == 150
    assert rent.pct_of_total == 0.5
    assert (await store.get_line_item(total_income.id)).row_order == 9


@pytest.mark.asyncio
async def test_delete_rows_only_touches_one_statement(store, scope):
    version = await store.create_version(scope, "Budget")
    await store.insert_rows(scope, to_line_items(example_target(), scope))
    await store.insert_rows(scope, to_line_items(example_target(), scope, version.id))

    removed = await store.delete_rows(scope)

    assert removed == 3
    assert await store.count_rows(scope, version.id) == 3


@pytest.mark.asyncio
async def test_import_record_upsert_replaces(store, scope):
    assert await store.get_import_record(scope) is None

    await store.upsert_import_record(scope, "a.xlsx", ["jan"])
    await store.upsert_import_record(scope, "b.xlsx", ["jan", "feb"])

    record = await store.get_import_record(scope)
    assert record.file_name == "b.xlsx"
    assert record.months_included == ["jan", "feb"]


@pytest.mark.asyncio
async def test_find_version_by_name(store, scope):
    created = await store.create_version(scope, "Reforecast")

    assert (await store.find_version(scope, "Reforecast")).id == created.id
    assert await store.find_version(scope, "Missing") is None
    assert [v.version_name for v in await store.list_versions(scope)] == ["Reforecast"]
