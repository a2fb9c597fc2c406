"""Total-row recalculation.

A ``total`` row equals the sum of the ``detail`` rows between its matching
header and itself. Totals are recomputed bottom-to-top so each one reads
detail values that are already current.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pnlplan.models import MONTHS, round_money
from pnlplan.statements.models import StatementRow
from pnlplan.statements.normalize import normalize_header, normalize_name
from pnlplan.statements.sections import SectionIndex, sort_by_order

logger = logging.getLogger(__name__)


def recalculate_totals(
    rows: Sequence[StatementRow],
    months: Sequence[str],
    index: SectionIndex | None = None,
) -> list[int]:
    """Recompute every resolvable total row's ``months`` values in place.

    Args:
        rows: Statement rows already sorted by ``row_order``
        months: Months to recompute (forecast months only)
        index: Prebuilt section index over ``rows``

    Returns:
        Positions of total rows left unchanged because no header was found
    """
    index = index or SectionIndex.build(rows)
    unresolved: list[int] = []

    for total_pos in reversed(index.total_positions()):
        span = index.span(total_pos)
        total_row = rows[total_pos]
        if span is None:
            logger.debug("No header found for total row %r", total_row.account_name)
            unresolved.append(total_pos)
            continue

        details = [rows[i] for i in span if rows[i].is_detail]
        for month in months:
            total_row.months[month] = round_money(sum(r.month(month) for r in details))

    return unresolved


def section_totals(
    rows: Sequence[StatementRow],
    section: str,
    total_name: str | None = None,
) -> dict[str, float]:
    """Sum detail rows of one named section for all twelve months.

    The section starts at the first ``section_header`` named ``section`` and
    ends at the total row named ``total_name`` (default ``"Total <section>"``)
    or the next ``section_header``, whichever comes first. A missing header
    yields all zeros.
    """
    ordered = sort_by_order(rows)
    wanted_header = normalize_header(section)
    wanted_total = normalize_name(total_name or f"Total {section}")

    header_pos = next(
        (
            i
            for i, row in enumerate(ordered)
            if row.is_section_header and normalize_header(row.account_name) == wanted_header
        ),
        None,
    )
    if header_pos is None:
        return dict.fromkeys(MONTHS, 0.0)

    end = len(ordered)
    for i in range(header_pos + 1, len(ordered)):
        row = ordered[i]
        if row.is_total and normalize_name(row.account_name) == wanted_total:
            end = i
            break
        if row.is_section_header:
            end = i
            break

    details = [row for row in ordered[header_pos + 1 : end] if row.is_detail]
    return {m: round_money(sum(r.month(m) for r in details)) for m in MONTHS}


def total_row_values(rows: Sequence[StatementRow], total_name: str) -> dict[str, float]:
    """Month values of the first total row named ``total_name`` (zeros if absent)."""
    wanted = normalize_name(total_name)
    row = next((r for r in rows if r.is_total and normalize_name(r.account_name) == wanted), None)
    return {m: round_money(row.month(m)) if row else 0.0 for m in MONTHS}
