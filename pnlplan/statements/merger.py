"""Structural merge of unmatched source rows into a target statement.

Detail rows that exist in the source but matched nothing in the target are
inserted just before the target total row that closes the same section. Rows
whose section cannot be resolved go to the end of the statement. The target
is then renumbered 1..N.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Collection, Sequence

from pnlplan.models import MONTHS
from pnlplan.statements.models import MergePlan, NewRow, OrderPatch, StatementRow
from pnlplan.statements.normalize import section_name_of_total
from pnlplan.statements.sections import SectionIndex, sort_by_order

logger = logging.getLogger(__name__)

# Extras copied onto inserted rows; admin_only starts fresh
INSERT_EXTRAS = ("pct_of_total", "pct_source", "cell_notes")


def unmatched_details(
    source_rows: Sequence[StatementRow], consumed: Collection[int]
) -> list[StatementRow]:
    """Source detail rows no target row matched, in source order."""
    return [
        row
        for row in sort_by_order(source_rows)
        if row.is_detail and not (row.id is not None and row.id in consumed)
    ]


def section_anchors(target_rows: Sequence[StatementRow]) -> dict[str, int]:
    """Section name -> id of the first target total row closing that section."""
    anchors: dict[str, int] = {}
    for row in target_rows:
        if not row.is_total or row.id is None:
            continue
        section = section_name_of_total(row.account_name)
        if section:
            anchors.setdefault(section, row.id)
    return anchors


def _materialize(
    source: StatementRow, months: Collection[str], version_id: int | None
) -> NewRow:
    extras = {key: source.extras[key] for key in INSERT_EXTRAS if key in source.extras}
    extras.setdefault("cell_notes", {})
    return NewRow(
        row_order=0,
        row_type=source.row_type,
        account_name=source.account_name,
        account_code=source.account_code or None,
        full_label=source.full_label,
        indent_level=source.indent_level or 0,
        version_id=version_id,
        # A freshly inserted row has no actual-month history
        months={m: source.month(m) if m in months else 0.0 for m in MONTHS},
        extras=extras,
    )


def plan_structural_merge(
    source_rows: Sequence[StatementRow],
    target_rows: Sequence[StatementRow],
    consumed: Collection[int],
    months: Sequence[str],
    version_id: int | None = None,
) -> MergePlan:
    """Plan inserts and row-order updates for unmatched source detail rows.

    Args:
        source_rows: Source statement rows (any order)
        target_rows: Target statement rows (any order)
        consumed: Ids of source rows matched by at least one target row
        months: Forecast months carried over from the source
        version_id: Version the inserted rows belong to (None = draft)

    Returns:
        MergePlan; empty when every source detail row was matched
    """
    pending = unmatched_details(source_rows, consumed)
    if not pending:
        return MergePlan()

    ordered_source = sort_by_order(source_rows)
    source_index = SectionIndex.build(ordered_source)
    position_of = {id(row): pos for pos, row in enumerate(ordered_source)}

    ordered_target = sort_by_order(target_rows)
    anchors = section_anchors(ordered_target)
    month_set = set(months)

    # anchor total id -> rows to emit before it; None -> append at end
    groups: dict[int | None, list[NewRow]] = defaultdict(list)
    for source in pending:
        section = source_index.section_before(position_of[id(source)])
        anchor = anchors.get(section) if section else None
        if anchor is None:
            logger.info(
                "No section anchor for %r (section %r); appending at end",
                source.account_name,
                section,
            )
        groups[anchor].append(_materialize(source, month_set, version_id))

    sequence: list[StatementRow | NewRow] = []
    for row in ordered_target:
        if row.id is not None:
            sequence.extend(groups.get(row.id, ()))
        sequence.append(row)
    sequence.extend(groups.get(None, ()))

    plan = MergePlan(sequence=sequence)
    for new_order, entry in enumerate(sequence, start=1):
        if isinstance(entry, NewRow):
            entry.row_order = new_order
            plan.new_rows.append(entry)
            continue
        if entry.id is not None and entry.row_order != new_order:
            plan.order_patches.append(OrderPatch(row_id=entry.id, row_order=new_order))

    return plan
