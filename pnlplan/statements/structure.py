"""Statement structure across departments.

``copy_structure`` seeds one department's draft with another's row layout;
``cross_department_revenue`` reads revenue and direct labor for the
departments whose figures feed each other.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from pnlplan.config import ReconcileConfig
from pnlplan.db.statements import StatementStore
from pnlplan.exceptions import EmptySourceError, InvalidRequestError
from pnlplan.models import LineItem, StatementScope
from pnlplan.statements.models import StatementRow
from pnlplan.statements.totals import section_totals, total_row_values

logger = structlog.get_logger()


@dataclass
class DepartmentTotals:
    revenue: dict[str, float]
    direct_labor: dict[str, float]

    def to_response(self) -> dict:
        return {"revenue": self.revenue, "directLabor": self.direct_labor}


async def copy_structure(
    store: StatementStore,
    branch_id: int,
    source_department: str,
    target_department: str,
    year: int,
) -> int:
    """Replace the target department's draft with the source's layout.

    Codes, names, types, indentation and order are copied; every month is
    zero. The target's import record is reset to no actual months.

    Returns:
        Number of rows written

    Raises:
        InvalidRequestError: Source and target departments are the same
        EmptySourceError: Source department has no draft rows
    """
    if source_department == target_department:
        raise InvalidRequestError("Source and target departments must be different")

    source_scope = StatementScope(branch_id=branch_id, department=source_department, year=year)
    target_scope = StatementScope(branch_id=branch_id, department=target_department, year=year)

    source_rows = await store.list_rows(source_scope)
    if not source_rows:
        raise EmptySourceError(
            f'No draft line items found in source department "{source_department}"'
        )

    await store.delete_rows(target_scope)
    rows = [
        LineItem(
            branch_id=branch_id,
            department=target_department,
            year=year,
            row_order=item.row_order,
            account_code=item.account_code or None,
            account_name=item.account_name,
            full_label=item.full_label,
            row_type=item.row_type,
            indent_level=item.indent_level or 0,
        )
        for item in source_rows
    ]
    await store.insert_rows(target_scope, rows)
    await store.upsert_import_record(
        target_scope, file_name=f"Copied from {source_department}", months_included=[]
    )

    logger.info(
        "structure_copied",
        branch_id=branch_id,
        source=source_department,
        target=target_department,
        year=year,
        rows=len(rows),
    )
    return len(rows)


async def cross_department_revenue(
    store: StatementStore,
    branch_id: int,
    year: int,
    version_name: str | None = None,
    config: ReconcileConfig | None = None,
) -> dict[str, DepartmentTotals]:
    """Revenue and direct labor per aggregate department.

    Each department reads the version called ``version_name`` when it has
    one, and its draft otherwise.
    """
    config = config or store.config
    result: dict[str, DepartmentTotals] = {}

    for department in config.aggregate_departments:
        scope = StatementScope(branch_id=branch_id, department=department, year=year)
        version_id = None
        if version_name:
            version = await store.find_version(scope, version_name)
            if version is not None:
                version_id = version.id

        rows = [StatementRow.from_line_item(i) for i in await store.list_rows(scope, version_id)]
        logger.debug(
            "cross_department_rows",
            department=department,
            version=version_name or "draft",
            rows=len(rows),
        )
        result[department] = DepartmentTotals(
            revenue=section_totals(rows, config.income_section),
            direct_labor=total_row_values(rows, config.direct_labor_total),
        )

    return result
