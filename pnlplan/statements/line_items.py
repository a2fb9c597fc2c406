"""Single-row edits to a statement's structure and values.

Every edit refuses rows that belong to a locked version, and every
structural edit leaves ``row_order`` dense (1..N).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from pnlplan.db.statements import StatementStore
from pnlplan.exceptions import (
    InvalidRequestError,
    LineItemNotFoundError,
    VersionLockedError,
    VersionNotFoundError,
)
from pnlplan.models import MONTHS, LineItem, RowType, StatementScope, round_money
from pnlplan.statements.models import OrderPatch

logger = structlog.get_logger()


async def _ensure_unlocked(store: StatementStore, version_id: int | None, message: str) -> None:
    if version_id is None:
        return
    version = await store.get_version(version_id)
    if version is None:
        raise VersionNotFoundError("Version not found")
    if version.is_locked:
        raise VersionLockedError(message)


async def _require_line_item(store: StatementStore, line_item_id: int) -> LineItem:
    item = await store.get_line_item(line_item_id)
    if item is None:
        raise LineItemNotFoundError("Line item not found")
    return item


def _scope_of(item: LineItem) -> StatementScope:
    return StatementScope(branch_id=item.branch_id, department=item.department, year=item.year)


def renumber(ids: Sequence[int], current: Mapping[int, int]) -> list[OrderPatch]:
    """Order patches assigning 1..N to ``ids``, skipping rows already in place."""
    return [
        OrderPatch(row_id=row_id, row_order=order)
        for order, row_id in enumerate(ids, start=1)
        if current.get(row_id) != order
    ]


async def add_line_item(
    store: StatementStore,
    scope: StatementScope,
    account_name: str,
    version_id: int | None = None,
    account_code: str | None = None,
    full_label: str | None = None,
    row_type: RowType | str = RowType.DETAIL,
    indent_level: int | None = 0,
    insert_before_id: int | None = None,
) -> LineItem:
    """Insert a zero-valued row before ``insert_before_id``, or at the end.

    An ``insert_before_id`` that is not part of the statement appends.
    """
    if not account_name:
        raise InvalidRequestError("Missing required fields")
    await _ensure_unlocked(store, version_id, "Cannot add rows to a locked version")

    existing = await store.list_rows(scope, version_id)
    ids = [row.id for row in existing]
    position = ids.index(insert_before_id) if insert_before_id in ids else len(ids)

    # Later rows move down one slot
    shifted = ids[:position] + [None] + ids[position:]
    current = {row.id: row.row_order for row in existing}
    patches = [
        OrderPatch(row_id=row_id, row_order=order)
        for order, row_id in enumerate(shifted, start=1)
        if row_id is not None and current.get(row_id) != order
    ]
    await store.apply_order_patches(patches)

    item = await store.insert_row(
        LineItem(
            branch_id=scope.branch_id,
            department=scope.department,
            year=scope.year,
            version_id=version_id,
            row_order=position + 1,
            account_code=account_code or None,
            account_name=account_name,
            full_label=full_label or account_name,
            row_type=row_type or RowType.DETAIL,
            indent_level=indent_level or 0,
        )
    )
    logger.info("line_item_added", line_item_id=item.id, row_order=item.row_order)
    return item


async def delete_line_item(store: StatementStore, line_item_id: int) -> None:
    """Delete a row and close the gap it leaves in ``row_order``."""
    item = await _require_line_item(store, line_item_id)
    await _ensure_unlocked(store, item.version_id, "Cannot delete rows from a locked version")

    await store.delete_line_item(line_item_id)
    remaining = await store.list_rows(_scope_of(item), item.version_id)
    await store.apply_order_patches(
        renumber([row.id for row in remaining], {row.id: row.row_order for row in remaining})
    )
    logger.info("line_item_deleted", line_item_id=line_item_id)


async def reorder_rows(
    store: StatementStore, line_item_id: int, new_order: Sequence[int]
) -> int:
    """Assign ``row_order`` 1..N following ``new_order``.

    ``line_item_id`` is the moved row; its statement's lock is checked.
    ``new_order`` must list every row of that statement exactly once.
    Returns the number of rows whose order changed.
    """
    if not new_order:
        raise InvalidRequestError("Missing lineItemId or newOrder array")
    item = await _require_line_item(store, line_item_id)
    await _ensure_unlocked(store, item.version_id, "Cannot reorder rows in a locked version")

    rows = await store.list_rows(_scope_of(item), item.version_id)
    if len(set(new_order)) != len(new_order) or set(new_order) != {row.id for row in rows}:
        raise InvalidRequestError("newOrder must list every row of the statement exactly once")
    patches = renumber(list(new_order), {row.id: row.row_order for row in rows})
    return await store.apply_order_patches(patches)


def clean_cell_updates(updates: Mapping[str, Any]) -> dict[str, float]:
    """Validate month keys and coerce values to cents."""
    if not updates:
        raise InvalidRequestError("Missing lineItemId or updates")
    cleaned: dict[str, float] = {}
    for key, value in updates.items():
        if key not in MONTHS:
            raise InvalidRequestError(f"Invalid month key: {key}")
        cleaned[key] = round_money(value)
    return cleaned


async def update_cells(
    store: StatementStore, line_item_id: int, updates: Mapping[str, Any]
) -> LineItem:
    """Overwrite month values on one row and return the updated row."""
    cleaned = clean_cell_updates(updates)
    item = await _require_line_item(store, line_item_id)
    await _ensure_unlocked(store, item.version_id, "Cannot edit a locked version")

    await store.update_row_fields(line_item_id, cleaned)
    return await _require_line_item(store, line_item_id)
