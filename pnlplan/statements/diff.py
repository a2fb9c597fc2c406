"""Minimal per-row patches between persisted rows and a mutated working copy."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from pnlplan.statements.models import RowPatch, StatementRow

PCT_FIELDS = ("pct_of_total", "pct_source")


def _month_or_zero(row: StatementRow, month: str) -> float:
    value = row.months.get(month)
    return 0 if value is None else value


def diff_row(original: StatementRow, working: StatementRow, months: Sequence[str]) -> dict:
    """Fields of ``working`` that differ from ``original``.

    Only forecast months and the ``pct_of_total``/``pct_source`` pair are
    tracked; the pair is emitted together whenever either half differs.
    """
    changes: dict = {}
    for month in months:
        new_value = _month_or_zero(working, month)
        if new_value != _month_or_zero(original, month):
            changes[month] = new_value

    if any(working.extras.get(key) != original.extras.get(key) for key in PCT_FIELDS):
        changes["pct_of_total"] = working.extras.get("pct_of_total")
        changes["pct_source"] = working.extras.get("pct_source")

    return changes


def build_patches(
    originals: Mapping[int, StatementRow],
    working: Iterable[StatementRow],
    months: Sequence[str],
) -> list[RowPatch]:
    """Patches for working rows with at least one tracked change.

    Working rows with no original (unsaved rows) are ignored.
    """
    patches: list[RowPatch] = []
    for row in working:
        if row.id is None:
            continue
        original = originals.get(row.id)
        if original is None:
            continue
        changes = diff_row(original, row, months)
        if changes:
            patches.append(RowPatch(row_id=row.id, changes=changes))
    return patches
