"""Integration tests for statement import with preservation of hand-entered data."""

from __future__ import annotations

import pytest

from pnlplan.exceptions import InvalidRequestError, VersionLockedError
from pnlplan.models import ImportedLine
from pnlplan.statements.importer import import_statement
from tests.factories import build_statement, detail, section, to_line_items, total


def _lines(**rent_months):
    return [
        ImportedLine(row_order=1, account_name="Income", row_type="section_header"),
        ImportedLine(row_order=2, account_code="R1", account_name="Rent", jan=110, **rent_months),
        ImportedLine(row_order=3, account_code="R9", account_name="New Lease", jan=5),
        ImportedLine(row_order=4, account_name="Total Income", row_type="total", jan=115),
    ]


async def _seed_existing_draft(store, scope):
    rows = build_statement(
        section("Income"),
        {
            **detail("Rent", "R1", jan=100, feb=120, mar=0),
            "extras": {
                "admin_only": True,
                "pct_of_total": 0.4,
                "pct_source": "income",
                "cell_notes": {"feb": "escalation"},
            },
        },
        total("Total Income", jan=100, feb=120),
    )
    await store.insert_rows(scope, to_line_items(rows, scope))


@pytest.mark.asyncio
async def test_actuals_import_keeps_hand_entered_forecast(store, scope):
    await _seed_existing_draft(store, scope)

    result = await import_statement(store, scope, "jan-actuals.xlsx", ["jan"], _lines())

    assert result.row_count == 4
    assert result.forecast_preserved == 1
    rows = await store.list_rows(scope)
    rent = next(r for r in rows if r.account_code == "R1")
    assert rent.jan == 110
    assert rent.feb == 120
    assert rent.admin_only is True
    assert rent.pct_of_total == 0.4
    assert rent.pct_source == "income"
    assert rent.cell_notes == {"feb": "escalation"}

    record = await store.get_import_record(scope)
    assert record.months_included == ["jan"]
    assert record.file_name == "jan-actuals.xlsx"


@pytest.mark.asyncio
async def test_budget_import_replaces_forecast_values(store, scope):
    await _seed_existing_draft(store, scope)

    await import_statement(store, scope, "budget.xlsx", [], _lines(feb=90))

    rows = await store.list_rows(scope)
    rent = next(r for r in rows if r.account_code == "R1")
    assert rent.feb == 90
    # Settings survive any import
    assert rent.admin_only is True
    assert (await store.get_import_record(scope)).months_included == []


@pytest.mark.asyncio
async def test_new_accounts_start_clean(store, scope):
    await _seed_existing_draft(store, scope)

    await import_statement(store, scope, "jan-actuals.xlsx", ["jan"], _lines())

    new = next(r for r in await store.list_rows(scope) if r.account_code == "R9")
    assert new.admin_only is False
    assert new.pct_of_total is None
    assert new.cell_notes == {}


@pytest.mark.asyncio
async def test_import_into_locked_version_refused(store, scope):
    version = await store.create_version(scope, "Budget")
    await store.update_version(version.id, is_locked=True)

    with pytest.raises(VersionLockedError):
        await import_statement(store, scope, "x.xlsx", [], _lines(), version_id=version.id)


@pytest.mark.asyncio
async def test_import_into_version_leaves_import_record_alone(store, scope):
    version = await store.create_version(scope, "Budget")

    await import_statement(store, scope, "x.xlsx", ["jan"], _lines(), version_id=version.id)

    assert await store.get_import_record(scope) is None
    assert len(await store.list_rows(scope, version.id)) == 4


@pytest.mark.asyncio
async def test_rejects_unknown_months_and_empty_payload(store, scope):
    with pytest.raises(InvalidRequestError, match="Unknown month"):
        await import_statement(store, scope, "x.xlsx", ["janvier"], _lines())
    with pytest.raises(InvalidRequestError):
        await import_statement(store, scope, "x.xlsx", [], [])
