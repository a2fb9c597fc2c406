"""SQLAlchemy async database models for pnlplan.

A statement is the set of ``pnl_line_items`` sharing
(branch_id, department, year, version_id); version_id NULL is the draft.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class PnlVersionModel(Base):
    """Saved statement snapshot metadata."""

    __tablename__ = "pnl_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    department: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    version_name: Mapped[str] = mapped_column(Text, nullable=False)

    # Leading calendar months treated as actuals
    actual_months: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "actual_months >= 0 AND actual_months <= 12", name="check_actual_months_range"
        ),
        UniqueConstraint(
            "branch_id", "department", "year", "version_name", name="uq_version_name"
        ),
        {"sqlite_autoincrement": True},
    )


class PnlLineItemModel(Base):
    """One row of a P&L statement (draft or saved version)."""

    __tablename__ = "pnl_line_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(Integer, nullable=False)
    department: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    version_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("pnl_versions.id", ondelete="CASCADE"), index=True
    )

    row_order: Mapped[int] = mapped_column(Integer, nullable=False)
    account_code: Mapped[str | None] = mapped_column(Text, index=True)
    account_name: Mapped[str | None] = mapped_column(Text)
    full_label: Mapped[str | None] = mapped_column(Text)
    row_type: Mapped[str] = mapped_column(Text, nullable=False, default="detail")
    indent_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    jan: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    feb: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    mar: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    apr: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    may: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    jun: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    jul: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    aug: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    sep: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    oct: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    nov: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    dec: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Opaque to the reconciler
    pct_of_total: Mapped[float | None] = mapped_column(Float)
    pct_source: Mapped[str | None] = mapped_column(Text)
    cell_notes: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    admin_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index(
            "idx_line_items_scope_order",
            "branch_id",
            "department",
            "year",
            "version_id",
            "row_order",
        ),
        CheckConstraint(
            "row_type IN ('detail', 'total', 'section_header', 'account_header', 'calculated')",
            name="check_row_type",
        ),
        {"sqlite_autoincrement": True},
    )


class PnlImportModel(Base):
    """Most recent external import for a draft statement."""

    __tablename__ = "pnl_imports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(Integer, nullable=False)
    department: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    file_name: Mapped[str | None] = mapped_column(Text)
    months_included: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("branch_id", "department", "year", name="uq_import_scope"),
    )
