"""Row matching between two versions of a statement.

Rows are matched by business identity, never by position:

1. Account code (exact)
2. Account name (case-insensitive)
3. Normalized name, so "Total - Income" matches "Total Income"

Each target row is resolved independently, first tier hit wins. Several
target rows may resolve to the same source row.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pnlplan.statements.models import RowMatch, StatementRow
from pnlplan.statements.normalize import normalize_name
from pnlplan.statements.sections import sort_by_order

logger = logging.getLogger(__name__)


class RowMatcher:
    """Lookup tables over a source statement."""

    def __init__(self, source_rows: Sequence[StatementRow]):
        self.by_code: dict[str, StatementRow] = {}
        self.by_name: dict[str, StatementRow] = {}
        self.by_normalized: dict[str, StatementRow] = {}

        for row in sort_by_order(source_rows):
            if row.account_code:
                self.by_code[row.account_code] = row
            if row.account_name:
                self.by_name[row.account_name.lower()] = row
                # First occurrence wins for normalized names
                self.by_normalized.setdefault(normalize_name(row.account_name), row)

    def find(self, target: StatementRow) -> StatementRow | None:
        if target.account_code and target.account_code in self.by_code:
            return self.by_code[target.account_code]
        if target.account_name:
            exact = self.by_name.get(target.account_name.lower())
            if exact is not None:
                return exact
            return self.by_normalized.get(normalize_name(target.account_name))
        return None

    def match(self, target_rows: Iterable[StatementRow]) -> RowMatch:
        pairs: dict[int, StatementRow] = {}
        consumed: set[int] = set()

        for target in target_rows:
            source = self.find(target)
            if source is None or target.id is None:
                continue
            pairs[target.id] = source
            if source.id is not None:
                consumed.add(source.id)

        logger.debug("Matched %d target rows to %d source rows", len(pairs), len(consumed))
        return RowMatch(pairs=pairs, consumed=frozenset(consumed))


def match_rows(
    source_rows: Sequence[StatementRow], target_rows: Iterable[StatementRow]
) -> RowMatch:
    """Resolve target rows to source rows using the three identity tiers."""
    return RowMatcher(source_rows).match(target_rows)


def apply_forecast(
    working_rows: Iterable[StatementRow], match: RowMatch, months: Sequence[str]
) -> int:
    """Copy forecast-month values from matched source rows, in place.

    A source row's percentage mode is carried over only when the target row
    has none of its own. Returns the number of rows that received values.
    """
    filled = 0
    for row in working_rows:
        source = match.source_for(row)
        if source is None:
            continue

        for month in months:
            row.months[month] = source.month(month)

        if source.extras.get("pct_of_total") is not None and row.extras.get("pct_of_total") is None:
            row.extras["pct_of_total"] = source.extras.get("pct_of_total")
            row.extras["pct_source"] = source.extras.get("pct_source")

        filled += 1
    return filled
