"""Persisted statement tables: line items, versions and import records.

All reads and writes of the P&L tables go through ``StatementStore``.
Multi-row writes are issued in batches; each batch is committed on its own,
so a failure partway through leaves earlier batches in place.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pnlplan.config import ReconcileConfig
from pnlplan.db.models import PnlImportModel, PnlLineItemModel, PnlVersionModel
from pnlplan.models import ImportRecord, LineItem, RowType, StatementScope, Version
from pnlplan.statements.models import OrderPatch, RowPatch

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterable[Sequence[T]]:
    """Split ``items`` into consecutive slices of at most ``size``."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _scope_filter(model, scope: StatementScope) -> Any:
    return and_(
        model.branch_id == scope.branch_id,
        model.department == scope.department,
        model.year == scope.year,
    )


def _version_filter(version_id: int | None) -> Any:
    if version_id is None:
        return PnlLineItemModel.version_id.is_(None)
    return PnlLineItemModel.version_id == version_id


def _line_item_from_model(model: PnlLineItemModel) -> LineItem:
    return LineItem.model_validate(model, from_attributes=True)


def _version_from_model(model: PnlVersionModel) -> Version:
    return Version.model_validate(model, from_attributes=True)


def _line_item_values(item: LineItem) -> dict[str, Any]:
    values = item.model_dump(exclude={"id"})
    values["row_type"] = RowType(item.row_type).value
    return values


class StatementStore:
    """Async access to the P&L tables for one session."""

    def __init__(self, session: AsyncSession, config: ReconcileConfig | None = None):
        """Initialize the store.

        Args:
            session: SQLAlchemy async session
            config: Write batching settings (defaults when omitted)
        """
        self.session = session
        self.config = config or ReconcileConfig()

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    async def list_rows(
        self,
        scope: StatementScope,
        version_id: int | None = None,
        row_types: Iterable[RowType | str] | None = None,
    ) -> list[LineItem]:
        """Rows of one statement ordered by ``row_order``.

        Args:
            scope: Branch, department and year
            version_id: Saved version id, None for the draft
            row_types: Restrict to these row types

        Returns:
            List of line items (empty when the statement has no rows)
        """
        stmt = select(PnlLineItemModel).where(
            _scope_filter(PnlLineItemModel, scope), _version_filter(version_id)
        )
        if row_types is not None:
            stmt = stmt.where(
                PnlLineItemModel.row_type.in_([RowType(t).value for t in row_types])
            )
        stmt = stmt.order_by(PnlLineItemModel.row_order, PnlLineItemModel.id)

        result = await self.session.execute(stmt)
        return [_line_item_from_model(model) for model in result.scalars().all()]

    async def get_line_item(self, line_item_id: int) -> LineItem | None:
        model = await self.session.get(PnlLineItemModel, line_item_id)
        return _line_item_from_model(model) if model else None

    async def count_rows(self, scope: StatementScope, version_id: int | None = None) -> int:
        stmt = select(func.count(PnlLineItemModel.id)).where(
            _scope_filter(PnlLineItemModel, scope), _version_filter(version_id)
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def update_row_fields(self, row_id: int, fields: dict[str, Any]) -> None:
        """Overwrite ``fields`` on a single row."""
        if not fields:
            return
        await self.session.execute(
            update(PnlLineItemModel).where(PnlLineItemModel.id == row_id).values(**fields)
        )

    async def update_row_order(self, row_id: int, row_order: int) -> None:
        await self.update_row_fields(row_id, {"row_order": row_order})

    async def apply_patches(self, patches: Sequence[RowPatch]) -> int:
        """Write value patches in batches of ``update_concurrency``.

        Returns:
            Number of rows patched
        """
        size = self.config.update_concurrency
        for batch in chunked(patches, size):
            for patch in batch:
                await self.update_row_fields(patch.row_id, patch.changes)
            await self.session.commit()
        return len(patches)

    async def apply_order_patches(self, patches: Sequence[OrderPatch]) -> int:
        size = self.config.update_concurrency
        for batch in chunked(patches, size):
            for patch in batch:
                await self.update_row_order(patch.row_id, patch.row_order)
            await self.session.commit()
        return len(patches)

    async def insert_rows(self, scope: StatementScope, rows: Sequence[LineItem]) -> int:
        """Insert rows into the statement identified by ``scope``.

        Scope fields on the rows are replaced by ``scope``; ``version_id`` is
        taken from each row. Inserts are committed per ``insert_batch_size``.

        Returns:
            Number of rows inserted
        """
        size = self.config.insert_batch_size
        for batch in chunked(rows, size):
            for item in batch:
                values = _line_item_values(item)
                values.update(
                    branch_id=scope.branch_id,
                    department=scope.department,
                    year=scope.year,
                )
                self.session.add(PnlLineItemModel(**values))
            await self.session.flush()
            await self.session.commit()
        return len(rows)

    async def insert_row(self, item: LineItem) -> LineItem:
        """Insert one row and return it with its new id."""
        model = PnlLineItemModel(**_line_item_values(item))
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return _line_item_from_model(model)

    async def delete_rows(self, scope: StatementScope, version_id: int | None = None) -> int:
        """Delete every row of one statement. Returns the number of rows removed."""
        result = await self.session.execute(
            delete(PnlLineItemModel).where(
                _scope_filter(PnlLineItemModel, scope), _version_filter(version_id)
            )
        )
        return result.rowcount or 0

    async def delete_line_item(self, line_item_id: int) -> None:
        await self.session.execute(
            delete(PnlLineItemModel).where(PnlLineItemModel.id == line_item_id)
        )

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def list_versions(self, scope: StatementScope) -> list[Version]:
        """Saved versions of a statement, newest first."""
        stmt = (
            select(PnlVersionModel)
            .where(_scope_filter(PnlVersionModel, scope))
            .order_by(PnlVersionModel.created_at.desc(), PnlVersionModel.id.desc())
        )
        result = await self.session.execute(stmt)
        return [_version_from_model(model) for model in result.scalars().all()]

    async def get_version(self, version_id: int) -> Version | None:
        model = await self.session.get(PnlVersionModel, version_id)
        return _version_from_model(model) if model else None

    async def find_version(self, scope: StatementScope, version_name: str) -> Version | None:
        stmt = select(PnlVersionModel).where(
            _scope_filter(PnlVersionModel, scope),
            PnlVersionModel.version_name == version_name,
        )
        model = (await self.session.execute(stmt)).scalar_one_or_none()
        return _version_from_model(model) if model else None

    async def create_version(
        self, scope: StatementScope, version_name: str, actual_months: int = 0
    ) -> Version:
        model = PnlVersionModel(
            branch_id=scope.branch_id,
            department=scope.department,
            year=scope.year,
            version_name=version_name,
            actual_months=actual_months,
            is_locked=False,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return _version_from_model(model)

    async def update_version(self, version_id: int, **fields: Any) -> None:
        await self.session.execute(
            update(PnlVersionModel).where(PnlVersionModel.id == version_id).values(**fields)
        )

    async def delete_version(self, version_id: int) -> None:
        """Delete a version's rows, then the version record."""
        await self.session.execute(
            delete(PnlLineItemModel).where(PnlLineItemModel.version_id == version_id)
        )
        await self.session.execute(
            delete(PnlVersionModel).where(PnlVersionModel.id == version_id)
        )

    # ------------------------------------------------------------------
    # Import records
    # ------------------------------------------------------------------

    async def get_import_record(self, scope: StatementScope) -> ImportRecord | None:
        stmt = select(PnlImportModel).where(_scope_filter(PnlImportModel, scope))
        model = (await self.session.execute(stmt)).scalar_one_or_none()
        if model is None:
            return None
        return ImportRecord.model_validate(model, from_attributes=True)

    async def upsert_import_record(
        self,
        scope: StatementScope,
        file_name: str | None,
        months_included: Sequence[str],
        imported_at: datetime | None = None,
    ) -> None:
        """Create or replace the draft's import record."""
        stmt = select(PnlImportModel).where(_scope_filter(PnlImportModel, scope))
        model = (await self.session.execute(stmt)).scalar_one_or_none()

        if model is None:
            model = PnlImportModel(
                branch_id=scope.branch_id,
                department=scope.department,
                year=scope.year,
            )
            self.session.add(model)

        model.file_name = file_name
        model.months_included = list(months_included)
        model.imported_at = imported_at or datetime.now(timezone.utc)
        await self.session.flush()
        logger.debug(
            "Import record for %s/%s/%s: %d months",
            scope.branch_id,
            scope.department,
            scope.year,
            len(months_included),
        )
