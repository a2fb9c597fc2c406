"""Database layer for pnlplan with async SQLAlchemy."""

from pnlplan.db.connection import get_session, init_db
from pnlplan.db.models import Base, PnlImportModel, PnlLineItemModel, PnlVersionModel
from pnlplan.db.statements import StatementStore

__all__ = [
    "Base",
    "PnlImportModel",
    "PnlLineItemModel",
    "PnlVersionModel",
    "StatementStore",
    "get_session",
    "init_db",
]
