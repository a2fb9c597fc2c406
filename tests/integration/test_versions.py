"""Integration tests for the saved-version lifecycle."""

from __future__ import annotations

import pytest

from pnlplan.exceptions import InvalidRequestError, VersionLockedError, VersionNotFoundError
from pnlplan.versions.service import VersionService
from tests.factories import example_target, to_line_items


@pytest.fixture
def service(store) -> VersionService:
    return VersionService(store)


async def _seed_draft(store, scope):
    rows = example_target()
    rows[1].extras.update(pct_of_total=0.3, pct_source="income", cell_notes={"jan": "lease"})
    await store.insert_rows(scope, to_line_items(rows, scope))


@pytest.mark.asyncio
async def test_save_version_deep_copies_draft(service, store, scope):
    await _seed_draft(store, scope)

    version = await service.save_version(scope, "Budget 2025", actual_months=3)

    assert version.actual_months == 3
    assert not version.is_locked
    copies = await store.list_rows(scope, version.id)
    draft = await store.list_rows(scope)
    assert [c.account_name for c in copies] == [d.account_name for d in draft]
    assert {c.id for c in copies}.isdisjoint({d.id for d in draft})
    rent = copies[1]
    assert rent.jan == 100
    assert rent.pct_of_total == 0.3
    assert rent.cell_notes == {"jan": "lease"}


@pytest.mark.asyncio
async def test_save_version_overwrites_unlocked_name(service, store, scope):
    await _seed_draft(store, scope)
    first = await service.save_version(scope, "Budget")

    second = await service.save_version(scope, "Budget", actual_months=2)

    # Ids of deleted versions are never handed out again
    assert second.id != first.id
    versions = await service.list_versions(scope)
    assert [(v.id, v.actual_months) for v in versions] == [(second.id, 2)]
    assert await store.list_rows(scope, first.id) == []
    assert len(await store.list_rows(scope, second.id)) == 3


@pytest.mark.asyncio
async def test_save_version_refuses_locked_name(service, store, scope):
    await _seed_draft(store, scope)
    version = await service.save_version(scope, "Budget")
    await service.set_version_lock(version.id, True)

    with pytest.raises(VersionLockedError, match="cannot be overwritten"):
        await service.save_version(scope, "Budget")


@pytest.mark.asyncio
async def test_save_version_requires_draft(service, scope):
    with pytest.raises(InvalidRequestError, match="No draft data"):
        await service.save_version(scope, "Budget")


@pytest.mark.asyncio
async def test_lock_and_unlock(service, store, scope):
    await _seed_draft(store, scope)
    version = await service.save_version(scope, "Budget")

    locked = await service.set_version_lock(version.id, True)
    assert locked.is_locked
    assert locked.locked_at is not None

    unlocked = await service.set_version_lock(version.id, False)
    assert not unlocked.is_locked
    assert unlocked.locked_at is None


@pytest.mark.asyncio
async def test_lock_missing_version(service):
    with pytest.raises(VersionNotFoundError):
        await service.set_version_lock(404, True)


@pytest.mark.asyncio
async def test_delete_version_removes_rows(service, store, scope):
    await _seed_draft(store, scope)
    version = await service.save_version(scope, "Budget")

    name = await service.delete_version(version.id)

    assert name == "Budget"
    assert await store.get_version(version.id) is None
    assert await store.list_rows(scope, version.id) == []
    assert len(await store.list_rows(scope)) == 3


@pytest.mark.asyncio
async def test_delete_locked_version_refused(service, store, scope):
    await _seed_draft(store, scope)
    version = await service.save_version(scope, "Budget")
    await service.set_version_lock(version.id, True)

    with pytest.raises(VersionLockedError, match="cannot be deleted"):
        await service.delete_version(version.id)


@pytest.mark.asyncio
async def test_update_note_trims_and_clears(service, store, scope):
    await _seed_draft(store, scope)
    version = await service.save_version(scope, "Budget")

    assert await service.update_version_note(version.id, "  reviewed  ") == "reviewed"
    assert (await store.get_version(version.id)).notes == "reviewed"

    assert await service.update_version_note(version.id, "   ") is None
    assert (await store.get_version(version.id)).notes is None


@pytest.mark.asyncio
async def test_update_note_on_locked_version_refused(service, store, scope):
    await _seed_draft(store, scope)
    version = await service.save_version(scope, "Budget")
    await service.set_version_lock(version.id, True)

    with pytest.raises(VersionLockedError):
        await service.update_version_note(version.id, "late change")
