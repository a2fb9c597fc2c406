"""Shared helpers for pnlplan web routes.

Usage:
    from pnlplan.web.dependencies import make_store

    async with get_session() as session:
        store = make_store(session)
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from pnlplan.config import get_config
from pnlplan.db.statements import StatementStore


def make_store(session: AsyncSession) -> StatementStore:
    """StatementStore bound to ``session`` with the configured write batching."""
    return StatementStore(session, get_config().reconcile)
