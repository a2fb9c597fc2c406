"""Name normalization for matching statement rows across versions."""

from __future__ import annotations

import re

# "Total - Income", "total-income", "TOTAL  -  Income" all collapse to "total "
_TOTAL_DASH_PREFIX = re.compile(r"^total\s*-\s*")
_TOTAL_PREFIX = re.compile(r"^total\s*")


def normalize_name(name: str | None) -> str:
    """Lowercase and trim, canonicalizing a leading ``total -`` to ``total ``.

    >>> normalize_name("Total - Cost of Goods Sold")
    'total cost of goods sold'
    >>> normalize_name("  Total Cost of Goods Sold ")
    'total cost of goods sold'
    """
    if not name:
        return ""
    return _TOTAL_DASH_PREFIX.sub("total ", name.lower().strip()).strip()


def normalize_header(name: str | None) -> str:
    if not name:
        return ""
    return name.lower().strip()


def section_name_of_total(name: str | None) -> str:
    """Section a total row closes: its normalized name minus the ``total`` prefix."""
    return _TOTAL_PREFIX.sub("", normalize_name(name), count=1).strip()
