"""Saved-version routes.

Routes:
- GET  /api/pnl/versions             - Versions of a statement
- POST /api/pnl/save-version         - Snapshot the draft
- POST /api/pnl/lock-version         - Lock or unlock
- POST /api/pnl/delete-version       - Delete an unlocked version
- POST /api/pnl/update-version-note  - Set or clear the note
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from pnlplan.db.connection import get_session
from pnlplan.models import StatementScope
from pnlplan.versions.service import VersionService
from pnlplan.web.dependencies import make_store
from pnlplan.web.models import (
    LockVersionRequest,
    SaveVersionRequest,
    UpdateVersionNoteRequest,
    VersionIdRequest,
)

router = APIRouter(prefix="/api/pnl", tags=["versions"])


@router.get("/versions")
async def list_versions(
    branch_id: int = Query(alias="branchId"),
    department: str = Query(),
    year: int = Query(),
):
    scope = StatementScope(branch_id=branch_id, department=department, year=year)
    async with get_session() as session:
        versions = await VersionService(make_store(session)).list_versions(scope)
    return {"success": True, "versions": [v.model_dump(mode="json") for v in versions]}


@router.post("/save-version")
async def save_version(payload: SaveVersionRequest):
    async with get_session() as session:
        version = await VersionService(make_store(session)).save_version(
            payload.scope, payload.version_name, payload.actual_months
        )
    return {"success": True, "version": version.model_dump(mode="json")}


@router.post("/lock-version")
async def lock_version(payload: LockVersionRequest):
    async with get_session() as session:
        version = await VersionService(make_store(session)).set_version_lock(
            payload.version_id, payload.is_locked
        )
    return {"success": True, "version": version.model_dump(mode="json")}


@router.post("/delete-version")
async def delete_version(payload: VersionIdRequest):
    async with get_session() as session:
        name = await VersionService(make_store(session)).delete_version(payload.version_id)
    return {"success": True, "deletedVersionName": name}


@router.post("/update-version-note")
async def update_version_note(payload: UpdateVersionNoteRequest):
    async with get_session() as session:
        notes = await VersionService(make_store(session)).update_version_note(
            payload.version_id, payload.note_text
        )
    return {"success": True, "notes": notes}
