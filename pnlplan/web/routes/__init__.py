"""pnlplan web route modules.

Each module exports a ``router`` (APIRouter); ``pnlplan.web.app`` includes
them. Request bodies are defined in ``pnlplan.web.models``.

Usage:
    from pnlplan.web.routes import statements
    app.include_router(statements.router)
"""

from pnlplan.web.routes import health, line_items, statements, versions

__all__ = ["health", "line_items", "statements", "versions"]
