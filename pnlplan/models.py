"""pnlplan Pydantic models for type-safe data validation.

Line items, versions and import records mirror the persisted tables; the
request/response models define the JSON surface of the P&L API.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MONTHS: tuple[str, ...] = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)


class RowType(str, Enum):
    """Role of a row in a financial statement."""

    DETAIL = "detail"
    TOTAL = "total"
    SECTION_HEADER = "section_header"
    ACCOUNT_HEADER = "account_header"
    CALCULATED = "calculated"


HEADER_TYPES = frozenset({RowType.SECTION_HEADER.value, RowType.ACCOUNT_HEADER.value})


def round_money(value: Any) -> float:
    """Coerce a cell value to float rounded to 2 decimals (None/garbage -> 0)."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return round(number, 2)


def forecast_months(actual_month_count: int) -> list[str]:
    """Months after the leading ``actual_month_count`` calendar months."""
    count = max(0, min(int(actual_month_count or 0), len(MONTHS)))
    return list(MONTHS[count:])


class StatementScope(BaseModel):
    """Identifies one statement family: a branch, department and year."""

    model_config = ConfigDict(frozen=True)

    branch_id: int
    department: str
    year: int


class MonthValues(BaseModel):
    """Twelve month columns, each rounded to cents on input."""

    jan: float = 0.0
    feb: float = 0.0
    mar: float = 0.0
    apr: float = 0.0
    may: float = 0.0
    jun: float = 0.0
    jul: float = 0.0
    aug: float = 0.0
    sep: float = 0.0
    oct: float = 0.0
    nov: float = 0.0
    dec: float = 0.0

    @field_validator(*MONTHS, mode="before")
    @classmethod
    def round_month(cls, v: Any) -> float:
        return round_money(v)

    def month_values(self) -> dict[str, float]:
        return {m: getattr(self, m) for m in MONTHS}


class LineItem(MonthValues):
    """One row of a financial statement."""

    id: int | None = None
    branch_id: int
    department: str
    year: int
    version_id: int | None = None  # None = draft

    row_order: int
    account_code: str | None = None
    account_name: str | None = None
    full_label: str | None = None
    row_type: RowType = RowType.DETAIL
    indent_level: int = 0

    pct_of_total: float | None = None
    pct_source: str | None = None
    cell_notes: dict[str, str] = Field(default_factory=dict)
    admin_only: bool = False


class ImportedLine(MonthValues):
    """A parsed spreadsheet row submitted for import."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    row_order: int
    account_code: str | None = None
    account_name: str | None = None
    full_label: str | None = None
    row_type: RowType = RowType.DETAIL
    indent_level: int | None = 0


class Version(BaseModel):
    """Metadata for a saved statement snapshot."""

    id: int
    branch_id: int
    department: str
    year: int
    version_name: str
    actual_months: int = 0
    is_locked: bool = False
    locked_at: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None

    @field_validator("actual_months")
    @classmethod
    def validate_actual_months(cls, v: int) -> int:
        if not 0 <= v <= 12:
            raise ValueError("actual_months must be between 0 and 12")
        return v


class ImportRecord(BaseModel):
    """Latest external import for a draft statement."""

    branch_id: int
    department: str
    year: int
    file_name: str | None = None
    months_included: list[str] = Field(default_factory=list)
    imported_at: datetime | None = None


# ============================================================================
# Request / response models
# ============================================================================


class CamelModel(BaseModel):
    """Accepts camelCase keys on input while exposing snake_case attributes."""

    model_config = ConfigDict(populate_by_name=True)


class FillForecastRequest(CamelModel):
    branch_id: int = Field(alias="branchId")
    department: str
    year: int
    source_version_id: int = Field(alias="sourceVersionId")
    target_version_id: int | None = Field(default=None, alias="targetVersionId")

    @property
    def scope(self) -> StatementScope:
        return StatementScope(
            branch_id=self.branch_id, department=self.department, year=self.year
        )


class FillForecastResult(BaseModel):
    updated_count: int
    inserted_count: int = 0
    forecast_months: list[str] = Field(default_factory=list)
    message: str | None = None

    def to_response(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "updatedCount": self.updated_count,
            "insertedCount": self.inserted_count,
            "forecastMonths": self.forecast_months,
        }
        if self.message:
            payload["message"] = self.message
        return payload
