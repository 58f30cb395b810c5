"""Archive of processed order files, searchable by customer or order.

When a picker searches for an order that is not in the current batch,
the archive is consulted: lines from earlier files stay findable by
customer name, order number, SKU or buyer postcode.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

from orders.models import ArchivedOrder, Order


def normalize_postcode(postcode: str) -> str:
    """Uppercase with all whitespace removed, e.g. "ab1 2cd" -> "AB12CD"."""
    return "".join(postcode.split()).upper()


class ArchiveSearchResult(BaseModel):
    orders: list[ArchivedOrder]
    found_in_archive: bool
    search_term: str
    match_count: int


class ArchiveStats(BaseModel):
    total_orders: int
    total_files: int
    oldest_file_date: Optional[str] = None
    newest_file_date: Optional[str] = None
    last_updated: Optional[datetime] = None


class OrderArchive:
    """In-memory archive of order lines, grouped by source file.

    Re-archiving a file name replaces that file's lines.
    """

    def __init__(self) -> None:
        self._files: dict[str, list[ArchivedOrder]] = {}
        self._last_updated: Optional[datetime] = None

    def archive_file(
        self,
        orders: Iterable[Order],
        file_name: str,
        file_date: str,
        archived_at: Optional[datetime] = None,
    ) -> int:
        """Archive the lines of one processed file. Returns the line count."""
        archived_at = archived_at or datetime.now(timezone.utc)
        lines = [
            ArchivedOrder.model_validate({
                **order.model_dump(),
                "file_name": file_name,
                "file_date": file_date,
                "archived_at": archived_at,
            })
            for order in orders
        ]
        self._files[file_name] = lines
        self._last_updated = archived_at
        return len(lines)

    def remove_file(self, file_name: str) -> bool:
        return self._files.pop(file_name, None) is not None

    def _all_orders(self) -> list[ArchivedOrder]:
        # Newest files first so a repeated order number finds the latest copy.
        files = sorted(
            self._files.values(),
            key=lambda lines: lines[0].file_date if lines else "",
            reverse=True,
        )
        return [line for lines in files for line in lines]

    def search(self, term: str) -> ArchiveSearchResult:
        """Find lines whose customer, order number or SKU contains ``term``,
        or whose postcode contains it once both are normalized."""
        term = term.strip()
        needle = term.lower()
        postcode_needle = normalize_postcode(term)

        matches: list[ArchivedOrder] = []
        if needle:
            for line in self._all_orders():
                if (
                    needle in line.customer_name.lower()
                    or needle in line.order_number.lower()
                    or needle in line.sku.lower()
                    or (
                        line.buyer_postcode
                        and postcode_needle in normalize_postcode(line.buyer_postcode)
                    )
                ):
                    matches.append(line)

        return ArchiveSearchResult(
            orders=matches,
            found_in_archive=bool(matches),
            search_term=term,
            match_count=len(matches),
        )

    def stats(self) -> ArchiveStats:
        dates = sorted(
            lines[0].file_date for lines in self._files.values() if lines
        )
        return ArchiveStats(
            total_orders=sum(len(lines) for lines in self._files.values()),
            total_files=len(self._files),
            oldest_file_date=dates[0] if dates else None,
            newest_file_date=dates[-1] if dates else None,
            last_updated=self._last_updated,
        )
