"""Fill a target statement's forecast months from a saved source version.

Pipeline (single pass, nothing persisted between stages)::

    LOAD -> MATCH -> APPLY -> MERGE (planned) -> RECALCULATE -> DIFF
         -> PERSIST patches -> PERSIST order patches + inserts

The pure stages live in ``plan_reconciliation`` so they can be exercised
without a database; ``ForecastReconciler`` adds preconditions and writes.
The merge is planned before totals are recalculated so a total covers the
detail rows about to be inserted under it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from pnlplan.db.statements import StatementStore
from pnlplan.exceptions import EmptySourceError, VersionLockedError, VersionNotFoundError
from pnlplan.models import FillForecastRequest, FillForecastResult, StatementScope, forecast_months
from pnlplan.statements.diff import build_patches
from pnlplan.statements.matcher import apply_forecast, match_rows
from pnlplan.statements.merger import plan_structural_merge
from pnlplan.statements.models import MergePlan, RowPatch, StatementRow
from pnlplan.statements.sections import SectionIndex, sort_by_order
from pnlplan.statements.totals import recalculate_totals

logger = structlog.get_logger()

ALL_ACTUAL_MESSAGE = "All 12 months are actuals; nothing to fill"


@dataclass
class ReconciliationPlan:
    """Every write needed to bring a target statement in line with a source."""

    patches: list[RowPatch] = field(default_factory=list)
    merge: MergePlan = field(default_factory=MergePlan)
    working_rows: list[StatementRow] = field(default_factory=list)
    matched_count: int = 0
    unresolved_totals: list[str | None] = field(default_factory=list)


def plan_reconciliation(
    source_rows: Sequence[StatementRow],
    target_rows: Sequence[StatementRow],
    months: Sequence[str],
    version_id: int | None = None,
) -> ReconciliationPlan:
    """Run MATCH through MERGE in memory. ``target_rows`` is not mutated."""
    originals = {row.id: row for row in target_rows if row.id is not None}
    working = sort_by_order([row.copy() for row in target_rows])

    match = match_rows(source_rows, working)
    matched = apply_forecast(working, match, months)

    merge = plan_structural_merge(source_rows, working, match.consumed, months, version_id)

    # Totals are summed over the merged statement so inserted rows count
    merged = merge.merged_rows() or working
    index = SectionIndex.build(merged)
    unresolved = recalculate_totals(merged, months, index)

    patches = build_patches(originals, working, months)

    return ReconciliationPlan(
        patches=patches,
        merge=merge,
        working_rows=merged,
        matched_count=matched,
        unresolved_totals=[merged[pos].account_name for pos in unresolved],
    )


class ForecastReconciler:
    """Checks preconditions, plans the reconciliation and persists it."""

    def __init__(self, store: StatementStore):
        self.store = store

    async def resolve_forecast_months(self, request: FillForecastRequest) -> list[str]:
        """Forecast months of the target statement.

        Raises:
            VersionNotFoundError: Target version id does not exist
            VersionLockedError: Target version is locked
        """
        if request.target_version_id is not None:
            version = await self.store.get_version(request.target_version_id)
            if version is None:
                raise VersionNotFoundError("Target version not found")
            if version.is_locked:
                raise VersionLockedError("Cannot modify a locked version")
            return forecast_months(version.actual_months)

        record = await self.store.get_import_record(request.scope)
        return forecast_months(len(record.months_included) if record else 0)

    async def load_rows(
        self, scope: StatementScope, version_id: int | None
    ) -> list[StatementRow]:
        items = await self.store.list_rows(scope, version_id)
        return [StatementRow.from_line_item(item) for item in items]

    async def fill_forecast(self, request: FillForecastRequest) -> FillForecastResult:
        scope = request.scope
        log = logger.bind(
            branch_id=scope.branch_id,
            department=scope.department,
            year=scope.year,
            source_version_id=request.source_version_id,
            target_version_id=request.target_version_id,
        )

        months = await self.resolve_forecast_months(request)
        if not months:
            log.info("fill_forecast_skipped", reason="all_actual")
            return FillForecastResult(updated_count=0, message=ALL_ACTUAL_MESSAGE)

        target_rows = await self.load_rows(scope, request.target_version_id)
        source_rows = await self.load_rows(scope, request.source_version_id)
        if not source_rows:
            raise EmptySourceError("Source version has no line items")

        plan = plan_reconciliation(
            source_rows, target_rows, months, request.target_version_id
        )
        for name in plan.unresolved_totals:
            log.warning("total_header_missing", total=name)

        updated = await self.store.apply_patches(plan.patches)

        inserted = 0
        if not plan.merge.is_empty:
            await self.store.apply_order_patches(plan.merge.order_patches)
            inserted = await self.store.insert_rows(
                scope, [row.to_line_item(scope) for row in plan.merge.new_rows]
            )

        log.info(
            "fill_forecast_completed",
            forecast_months=len(months),
            matched=plan.matched_count,
            updated=updated,
            inserted=inserted,
            reordered=len(plan.merge.order_patches),
        )
        return FillForecastResult(
            updated_count=updated, inserted_count=inserted, forecast_months=months
        )
