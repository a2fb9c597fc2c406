"""Section span index for a flat, ordered statement.

A statement is a flat list of rows; sections are implied by header rows and
the total rows that close them. The index is computed in one forward pass
and answers the two structural questions the reconciler asks:

- which header opens the section a given total row closes, and
- which ``section_header`` a given row sits under.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from pnlplan.statements.models import StatementRow
from pnlplan.statements.normalize import normalize_header, section_name_of_total


@dataclass
class SectionIndex:
    """Position-based lookups over rows sorted by ``row_order``."""

    rows: Sequence[StatementRow]
    header_for_total: dict[int, int | None] = field(default_factory=dict)
    section_of_row: list[str | None] = field(default_factory=list)

    @classmethod
    def build(cls, rows: Sequence[StatementRow]) -> SectionIndex:
        index = cls(rows=rows)
        # Most recent header position seen so far, keyed by normalized name
        last_header: dict[str, int] = {}
        current_section: str | None = None

        for pos, row in enumerate(rows):
            # A row's section is the nearest section_header strictly before it
            index.section_of_row.append(current_section)

            if row.is_total:
                section = section_name_of_total(row.account_name)
                index.header_for_total[pos] = last_header.get(section) if section else None

            if row.is_header:
                name = normalize_header(row.account_name)
                if name:
                    last_header[name] = pos
            if row.is_section_header:
                current_section = normalize_header(row.account_name) or None

        return index

    def total_positions(self) -> list[int]:
        return sorted(self.header_for_total)

    def header_position(self, total_pos: int) -> int | None:
        """Header opening the section closed by the total at ``total_pos``."""
        return self.header_for_total.get(total_pos)

    def section_before(self, pos: int) -> str | None:
        """Normalized name of the nearest ``section_header`` preceding ``pos``."""
        return self.section_of_row[pos]

    def span(self, total_pos: int) -> range | None:
        """Positions strictly between a total's header and the total itself."""
        header_pos = self.header_position(total_pos)
        if header_pos is None:
            return None
        return range(header_pos + 1, total_pos)


def sort_by_order(rows: Sequence[StatementRow]) -> list[StatementRow]:
    """Stable sort by ``row_order`` (missing order sorts first)."""
    return sorted(rows, key=lambda r: r.row_order or 0)
