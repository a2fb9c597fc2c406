"""pnlplan: P&L planning back office with forecast reconciliation."""

__version__ = "1.0.0"
