"""Data models for the statement reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pnlplan.models import HEADER_TYPES, MONTHS, LineItem, RowType, StatementScope

# Side-car keys carried through reconciliation without interpretation
PASSTHROUGH_FIELDS = ("pct_of_total", "pct_source", "cell_notes", "admin_only")


@dataclass
class StatementRow:
    """A line item as seen by the reconciler.

    ``months`` always holds all twelve month keys. Business fields the
    reconciler does not own live in ``extras``.
    """

    id: int | None
    row_order: int
    row_type: str
    account_name: str | None = None
    account_code: str | None = None
    full_label: str | None = None
    indent_level: int = 0
    months: dict[str, float] = field(default_factory=lambda: dict.fromkeys(MONTHS, 0.0))
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def is_detail(self) -> bool:
        return self.row_type == RowType.DETAIL.value

    @property
    def is_total(self) -> bool:
        return self.row_type == RowType.TOTAL.value

    @property
    def is_header(self) -> bool:
        return self.row_type in HEADER_TYPES

    @property
    def is_section_header(self) -> bool:
        return self.row_type == RowType.SECTION_HEADER.value

    def month(self, key: str) -> float:
        value = self.months.get(key)
        return 0.0 if value is None else value

    @classmethod
    def from_line_item(cls, item: LineItem) -> StatementRow:
        return cls(
            id=item.id,
            row_order=item.row_order,
            row_type=RowType(item.row_type).value,
            account_name=item.account_name,
            account_code=item.account_code,
            full_label=item.full_label,
            indent_level=item.indent_level,
            months=item.month_values(),
            extras={key: getattr(item, key) for key in PASSTHROUGH_FIELDS},
        )

    def copy(self) -> StatementRow:
        return StatementRow(
            id=self.id,
            row_order=self.row_order,
            row_type=self.row_type,
            account_name=self.account_name,
            account_code=self.account_code,
            full_label=self.full_label,
            indent_level=self.indent_level,
            months=dict(self.months),
            extras=dict(self.extras),
        )


@dataclass(frozen=True)
class RowMatch:
    """Correspondence from target rows to source rows.

    ``pairs`` maps target row id to its source row; ``consumed`` holds the id
    of every source row matched by at least one target row.
    """

    pairs: dict[int, StatementRow]
    consumed: frozenset[int]

    def source_for(self, target: StatementRow) -> StatementRow | None:
        if target.id is None:
            return None
        return self.pairs.get(target.id)


@dataclass
class RowPatch:
    """Changed fields for one persisted row."""

    row_id: int
    changes: dict[str, Any]


@dataclass
class OrderPatch:
    row_id: int
    row_order: int


@dataclass
class NewRow:
    """A source row materialized for insertion into the target statement."""

    row_order: int
    row_type: str
    account_name: str | None
    account_code: str | None
    full_label: str | None
    indent_level: int
    version_id: int | None
    months: dict[str, float]
    extras: dict[str, Any] = field(default_factory=dict)

    def as_row(self) -> StatementRow:
        return StatementRow(
            id=None,
            row_order=self.row_order,
            row_type=self.row_type,
            account_name=self.account_name,
            account_code=self.account_code,
            full_label=self.full_label,
            indent_level=self.indent_level,
            months=dict(self.months),
            extras=dict(self.extras),
        )

    def to_line_item(self, scope: StatementScope) -> LineItem:
        return LineItem(
            branch_id=scope.branch_id,
            department=scope.department,
            year=scope.year,
            version_id=self.version_id,
            row_order=self.row_order,
            account_code=self.account_code,
            account_name=self.account_name,
            full_label=self.full_label,
            row_type=self.row_type,
            indent_level=self.indent_level,
            pct_of_total=self.extras.get("pct_of_total"),
            pct_source=self.extras.get("pct_source"),
            cell_notes=self.extras.get("cell_notes") or {},
            **self.months,
        )


@dataclass
class MergePlan:
    """Writes needed to splice unmatched source rows into the target."""

    order_patches: list[OrderPatch] = field(default_factory=list)
    new_rows: list[NewRow] = field(default_factory=list)
    # Final statement, existing rows and new rows interleaved
    sequence: list[StatementRow | NewRow] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.order_patches and not self.new_rows

    def merged_rows(self) -> list[StatementRow]:
        """The final statement as rows; new rows have no id yet.

        Existing rows are the same objects the plan was built from.
        """
        return [e.as_row() if isinstance(e, NewRow) else e for e in self.sequence]
