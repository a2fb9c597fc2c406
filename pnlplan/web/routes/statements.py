"""Statement-level P&L routes.

Routes:
- POST /api/pnl/fill-forecast       - Fill forecast months from a saved version
- POST /api/pnl/copy-structure      - Copy a department's row layout
- GET  /api/pnl/cross-dept-revenue  - Revenue and direct labor per department
- POST /api/pnl/import              - Replace a statement with imported rows
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from pnlplan.db.connection import get_session
from pnlplan.models import FillForecastRequest
from pnlplan.statements.importer import import_statement
from pnlplan.statements.reconciler import ForecastReconciler
from pnlplan.statements.structure import copy_structure, cross_department_revenue
from pnlplan.web.dependencies import make_store
from pnlplan.web.models import CopyStructureRequest, ImportRequest

router = APIRouter(prefix="/api/pnl", tags=["statements"])


@router.post("/fill-forecast")
async def fill_forecast(payload: FillForecastRequest):
    """Copy forecast months from a saved version into the draft or another version.

    Matched rows take the source's forecast values, totals are recomputed
    and source rows missing from the target are inserted in place.
    """
    async with get_session() as session:
        reconciler = ForecastReconciler(make_store(session))
        result = await reconciler.fill_forecast(payload)
    return result.to_response()


@router.post("/copy-structure")
async def copy_structure_route(payload: CopyStructureRequest):
    async with get_session() as session:
        row_count = await copy_structure(
            make_store(session),
            payload.branch_id,
            payload.source_department,
            payload.target_department,
            payload.year,
        )
    return {"success": True, "rowCount": row_count}


@router.get("/cross-dept-revenue")
async def cross_dept_revenue(
    branch_id: int = Query(alias="branchId"),
    year: int = Query(),
    version_name: str | None = Query(default=None, alias="versionName"),
):
    async with get_session() as session:
        totals = await cross_department_revenue(
            make_store(session), branch_id, year, version_name
        )
    return {
        "success": True,
        "departments": {dept: t.to_response() for dept, t in totals.items()},
    }


@router.post("/import")
async def import_route(payload: ImportRequest):
    async with get_session() as session:
        result = await import_statement(
            make_store(session),
            payload.scope,
            payload.file_name,
            payload.months,
            payload.line_items,
            payload.version_id,
        )
    return result.to_response()
