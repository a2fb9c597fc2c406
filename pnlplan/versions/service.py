"""Saved-version lifecycle: snapshot, lock, annotate and delete."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from pnlplan.db.statements import StatementStore
from pnlplan.exceptions import InvalidRequestError, VersionLockedError, VersionNotFoundError
from pnlplan.models import StatementScope, Version

logger = structlog.get_logger()


class VersionService:
    """Operations on ``pnl_versions`` and the rows each version owns."""

    def __init__(self, store: StatementStore):
        self.store = store

    async def _require(self, version_id: int) -> Version:
        version = await self.store.get_version(version_id)
        if version is None:
            raise VersionNotFoundError("Version not found")
        return version

    async def list_versions(self, scope: StatementScope) -> list[Version]:
        return await self.store.list_versions(scope)

    async def save_version(
        self, scope: StatementScope, version_name: str, actual_months: int = 0
    ) -> Version:
        """Snapshot the draft statement as a named version.

        An unlocked version with the same name is replaced; a locked one is
        refused. Every draft row is deep-copied under the new version id.

        Raises:
            InvalidRequestError: Name missing, bad month count or empty draft
            VersionLockedError: Existing version with this name is locked
        """
        version_name = (version_name or "").strip()
        if not version_name:
            raise InvalidRequestError("Missing required fields")
        if not 0 <= actual_months <= 12:
            raise InvalidRequestError("actualMonths must be between 0 and 12")

        existing = await self.store.find_version(scope, version_name)
        if existing is not None and existing.is_locked:
            raise VersionLockedError(
                f'Version "{version_name}" is locked and cannot be overwritten'
            )

        draft_rows = await self.store.list_rows(scope, version_id=None)
        if not draft_rows:
            raise InvalidRequestError("No draft data to save")

        if existing is not None:
            await self.store.delete_version(existing.id)
            logger.info("version_overwritten", version_id=existing.id, version_name=version_name)

        version = await self.store.create_version(scope, version_name, actual_months)
        copies = [
            row.model_copy(update={"id": None, "version_id": version.id}, deep=True)
            for row in draft_rows
        ]
        await self.store.insert_rows(scope, copies)

        logger.info(
            "version_saved",
            version_id=version.id,
            version_name=version_name,
            rows=len(copies),
            actual_months=actual_months,
        )
        return version

    async def set_version_lock(self, version_id: int, is_locked: bool) -> Version:
        """Lock or unlock a version; ``locked_at`` tracks the lock time."""
        await self._require(version_id)
        now = datetime.now(timezone.utc)
        await self.store.update_version(
            version_id,
            is_locked=is_locked,
            locked_at=now if is_locked else None,
            updated_at=now,
        )
        logger.info("version_lock_changed", version_id=version_id, is_locked=is_locked)
        return await self._require(version_id)

    async def delete_version(self, version_id: int) -> str:
        """Delete an unlocked version and its rows. Returns the deleted name."""
        version = await self._require(version_id)
        if version.is_locked:
            raise VersionLockedError(
                f'Version "{version.version_name}" is locked and cannot be deleted'
            )
        await self.store.delete_version(version_id)
        logger.info("version_deleted", version_id=version_id, version_name=version.version_name)
        return version.version_name

    async def update_version_note(self, version_id: int, note: str | None) -> str | None:
        """Set the version's note; blank text clears it. Returns the stored note."""
        version = await self._require(version_id)
        if version.is_locked:
            raise VersionLockedError("Cannot edit a locked version")
        notes = note.strip() if note and note.strip() else None
        await self.store.update_version(version_id, notes=notes)
        return notes
