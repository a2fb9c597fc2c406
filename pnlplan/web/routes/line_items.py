"""Line-item edit routes.

Routes:
- POST /api/pnl/add-line-item     - Insert a zero-valued row
- POST /api/pnl/delete-line-item  - Delete a row
- POST /api/pnl/reorder-row       - Apply a new row order
- POST /api/pnl/update-cells      - Overwrite month values on a row
"""

from __future__ import annotations

from fastapi import APIRouter

from pnlplan.db.connection import get_session
from pnlplan.statements.line_items import (
    add_line_item,
    delete_line_item,
    reorder_rows,
    update_cells,
)
from pnlplan.web.dependencies import make_store
from pnlplan.web.models import (
    AddLineItemRequest,
    LineItemIdRequest,
    ReorderRowRequest,
    UpdateCellsRequest,
)

router = APIRouter(prefix="/api/pnl", tags=["line-items"])


@router.post("/add-line-item")
async def add_line_item_route(payload: AddLineItemRequest):
    async with get_session() as session:
        item = await add_line_item(
            make_store(session),
            payload.scope,
            payload.account_name,
            version_id=payload.version_id,
            account_code=payload.account_code,
            full_label=payload.full_label,
            row_type=payload.row_type,
            indent_level=payload.indent_level,
            insert_before_id=payload.insert_before_id,
        )
    return {"success": True, "lineItem": item.model_dump(mode="json")}


@router.post("/delete-line-item")
async def delete_line_item_route(payload: LineItemIdRequest):
    async with get_session() as session:
        await delete_line_item(make_store(session), payload.line_item_id)
    return {"success": True}


@router.post("/reorder-row")
async def reorder_row_route(payload: ReorderRowRequest):
    async with get_session() as session:
        await reorder_rows(make_store(session), payload.line_item_id, payload.new_order)
    return {"success": True}


@router.post("/update-cells")
async def update_cells_route(payload: UpdateCellsRequest):
    async with get_session() as session:
        item = await update_cells(make_store(session), payload.line_item_id, payload.updates)
    return {"success": True, "lineItem": item.model_dump(mode="json")}
