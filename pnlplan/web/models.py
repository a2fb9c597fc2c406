"""Request bodies for the P&L web API.

Clients send camelCase keys (``branchId``, ``versionId``); handlers read
snake_case attributes.

Usage:
    from pnlplan.web.models import SaveVersionRequest

    @router.post("/save-version")
    async def save_version(payload: SaveVersionRequest):
        ...
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from pnlplan.models import CamelModel, ImportedLine, RowType, StatementScope


class ScopedRequest(CamelModel):
    branch_id: int = Field(alias="branchId")
    department: str = Field(min_length=1)
    year: int

    @property
    def scope(self) -> StatementScope:
        return StatementScope(
            branch_id=self.branch_id, department=self.department, year=self.year
        )


# ============================================================================
# Statement Models
# ============================================================================


class CopyStructureRequest(CamelModel):
    """Used by: POST /api/pnl/copy-structure"""

    branch_id: int = Field(alias="branchId")
    source_department: str = Field(alias="sourceDepartment", min_length=1)
    target_department: str = Field(alias="targetDepartment", min_length=1)
    year: int


class ImportRequest(ScopedRequest):
    """Used by: POST /api/pnl/import"""

    file_name: str | None = Field(default=None, alias="fileName")
    months: list[str] = Field(default_factory=list)
    line_items: list[ImportedLine] = Field(alias="lineItems", min_length=1)
    version_id: int | None = Field(default=None, alias="versionId")


# ============================================================================
# Version Models
# ============================================================================


class SaveVersionRequest(ScopedRequest):
    """Used by: POST /api/pnl/save-version"""

    version_name: str = Field(alias="versionName", min_length=1)
    actual_months: int = Field(default=0, alias="actualMonths", ge=0, le=12)


class LockVersionRequest(CamelModel):
    """Used by: POST /api/pnl/lock-version"""

    version_id: int = Field(alias="versionId")
    is_locked: bool = Field(alias="isLocked")


class VersionIdRequest(CamelModel):
    """Used by: POST /api/pnl/delete-version"""

    version_id: int = Field(alias="versionId")


class UpdateVersionNoteRequest(CamelModel):
    """Used by: POST /api/pnl/update-version-note"""

    version_id: int = Field(alias="versionId")
    note_text: str | None = Field(default=None, alias="noteText")


# ============================================================================
# Line Item Models
# ============================================================================


class AddLineItemRequest(ScopedRequest):
    """Used by: POST /api/pnl/add-line-item"""

    version_id: int | None = Field(default=None, alias="versionId")
    account_code: str | None = Field(default=None, alias="accountCode")
    account_name: str = Field(alias="accountName", min_length=1)
    full_label: str | None = Field(default=None, alias="fullLabel")
    row_type: RowType = Field(default=RowType.DETAIL, alias="rowType")
    indent_level: int | None = Field(default=0, alias="indentLevel")
    insert_before_id: int | None = Field(default=None, alias="insertBeforeId")


class LineItemIdRequest(CamelModel):
    """Used by: POST /api/pnl/delete-line-item"""

    line_item_id: int = Field(alias="lineItemId")


class ReorderRowRequest(CamelModel):
    """Used by: POST /api/pnl/reorder-row"""

    line_item_id: int = Field(alias="lineItemId")
    new_order: list[int] = Field(alias="newOrder", min_length=1)


class UpdateCellsRequest(CamelModel):
    """Used by: POST /api/pnl/update-cells"""

    line_item_id: int = Field(alias="lineItemId")
    updates: dict[str, Any] = Field(min_length=1)
