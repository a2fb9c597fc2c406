"""Replace a statement with freshly imported rows.

Re-importing a spreadsheet must not lose what users entered by hand. Before
the old rows are deleted, per-account settings and hand-entered forecast
values are remembered by account code and re-applied to the new rows.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from pnlplan.db.statements import StatementStore
from pnlplan.exceptions import InvalidRequestError, VersionLockedError, VersionNotFoundError
from pnlplan.models import MONTHS, ImportedLine, LineItem, RowType, StatementScope

logger = structlog.get_logger()


@dataclass
class PreservedAccounts:
    """Hand-maintained values of the statement being replaced, by account code."""

    admin_only: set[str] = field(default_factory=set)
    pct_mode: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    cell_notes: dict[str, dict[str, str]] = field(default_factory=dict)
    forecast: dict[str, dict[str, float]] = field(default_factory=dict)

    @classmethod
    def collect(
        cls, rows: Sequence[LineItem], forecast_months: Sequence[str]
    ) -> PreservedAccounts:
        preserved = cls()
        for row in rows:
            code = row.account_code
            if not code:
                continue
            if row.admin_only:
                preserved.admin_only.add(code)
            if row.pct_of_total is not None:
                preserved.pct_mode[code] = (row.pct_of_total, row.pct_source)
            if row.cell_notes:
                preserved.cell_notes[code] = dict(row.cell_notes)
            values = {m: getattr(row, m) for m in forecast_months if getattr(row, m)}
            if values:
                preserved.forecast[code] = values
        return preserved

    def apply(self, item: LineItem, restore_forecast: bool) -> LineItem:
        code = item.account_code
        if not code:
            return item

        updates: dict[str, Any] = {}
        if restore_forecast and code in self.forecast:
            updates.update(self.forecast[code])
        if code in self.admin_only:
            updates["admin_only"] = True
        if code in self.pct_mode:
            updates["pct_of_total"], updates["pct_source"] = self.pct_mode[code]
        if code in self.cell_notes:
            updates["cell_notes"] = self.cell_notes[code]
        return item.model_copy(update=updates) if updates else item


@dataclass
class ImportResult:
    row_count: int
    months: list[str]
    forecast_preserved: int

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "rowCount": self.row_count,
            "months": self.months,
            "forecastPreserved": self.forecast_preserved,
        }


async def import_statement(
    store: StatementStore,
    scope: StatementScope,
    file_name: str | None,
    months: Sequence[str],
    line_items: Sequence[ImportedLine],
    version_id: int | None = None,
) -> ImportResult:
    """Replace one statement with ``line_items``.

    Args:
        store: Statement store
        scope: Branch, department and year
        file_name: Name of the imported file, recorded on the draft
        months: Months the import carries actuals for (empty for a budget)
        line_items: Parsed rows in statement order
        version_id: Saved version to replace, None for the draft

    Returns:
        ImportResult with the row count and number of accounts whose
        forecast values were carried over

    Raises:
        InvalidRequestError: No rows or an unknown month key
        VersionNotFoundError: ``version_id`` does not exist
        VersionLockedError: ``version_id`` is locked
    """
    if not line_items:
        raise InvalidRequestError(
            "Missing required fields: branchId, department, year, lineItems"
        )
    unknown = [m for m in months if m not in MONTHS]
    if unknown:
        raise InvalidRequestError(f"Unknown month keys: {', '.join(unknown)}")

    if version_id is not None:
        version = await store.get_version(version_id)
        if version is None:
            raise VersionNotFoundError("Version not found")
        if version.is_locked:
            raise VersionLockedError("Cannot modify a locked version")

    forecast_months = [m for m in MONTHS if m not in months]
    existing = await store.list_rows(scope, version_id, row_types=[RowType.DETAIL])
    preserved = PreservedAccounts.collect(existing, forecast_months)

    await store.delete_rows(scope, version_id)
    if version_id is None:
        await store.upsert_import_record(scope, file_name, list(months))

    # Budget imports (no actual months) bring all-new figures
    restore_forecast = bool(months)
    rows = [
        preserved.apply(
            LineItem(
                branch_id=scope.branch_id,
                department=scope.department,
                year=scope.year,
                version_id=version_id,
                row_order=line.row_order,
                account_code=line.account_code or None,
                account_name=line.account_name,
                full_label=line.full_label,
                row_type=line.row_type,
                indent_level=line.indent_level or 0,
                **line.month_values(),
            ),
            restore_forecast,
        )
        for line in line_items
    ]
    await store.insert_rows(scope, rows)

    logger.info(
        "statement_imported",
        branch_id=scope.branch_id,
        department=scope.department,
        year=scope.year,
        version_id=version_id,
        rows=len(rows),
        actual_months=len(months),
        forecast_preserved=len(preserved.forecast),
    )
    return ImportResult(
        row_count=len(rows), months=list(months), forecast_preserved=len(preserved.forecast)
    )
