"""
Spreadsheet sync bridge.

Three operations against the remote sheets, none of which merge or diff:

- pull: read one sheet into field mappings; failures degrade to ``[]``.
- push: append records as new rows; failures propagate.
- sync_all: pull every synced category concurrently and replace the local
  categories wholesale in one persisted write.

sync_all is a destructive replace: local records that never reached the
sheet are dropped. The number of dropped records is logged as a warning.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from farmbook.domain.models import Category, Record, SyncReport, canonical_field
from farmbook.errors import TransportFailure, UnsyncedCategory
from farmbook.infrastructure.sheets_client import Row, SheetsClient
from farmbook.store import RecordStore
from farmbook.utils.logging import get_logger

log = get_logger(__name__)

SHEET_NAMES: Mapping[Category, str] = {
    Category.EXPENSES: "Expenses",
    Category.FEED_CONSUMPTION: "FeedConsumption",
    Category.ATTENDANCE: "Attendance",
    Category.EMPLOYEES: "Employees",
    Category.EGG_RECORDS: "EggRecords",
    Category.MEDICINE: "Medicine",
    Category.MORTALITY: "Mortality",
    Category.FEED_ORDERS: "FeedOrders",
}


def rows_to_mappings(values: Sequence[Row]) -> List[Dict[str, str]]:
    """
    Turn a 2-D sheet into field mappings.

    Row 0 holds the headers, stripped and case-folded. Cells map by position;
    short rows are padded with ``""``.
    """
    if not values:
        return []
    headers = [str(header).strip().lower() for header in values[0]]
    mappings = []
    for row in values[1:]:
        mappings.append(
            {
                header: ("" if index >= len(row) or row[index] is None else str(row[index]))
                for index, header in enumerate(headers)
            }
        )
    return mappings


def records_to_rows(records: Sequence[Record]) -> List[Row]:
    """Each record's field values in declaration order; ``None`` becomes ``""``."""
    return [["" if value is None else value for value in record.data.values()] for record in records]


def _parse_created_at(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def mappings_to_records(mappings: Sequence[Mapping[str, Any]]) -> List[Record]:
    """
    Build records from pulled rows.

    An ``id`` column is reused as the identifier when present and not yet
    taken; a ``createdat`` column is used as the creation timestamp when it
    parses. Both columns are removed from the record fields. Headers in the
    browser app's spelling (``employeeId``) are renamed to the store's field
    names so indexed queries find pulled rows.
    """
    records: List[Record] = []
    taken: set[str] = set()
    for mapping in mappings:
        data = {canonical_field(key): value for key, value in mapping.items()}
        record_id = str(data.pop("id", "") or "").strip() or None
        created_at = _parse_created_at(str(data.pop("createdat", "") or ""))
        if record_id in taken:
            record_id = None
        record = Record.new(data, record_id=record_id, created_at=created_at)
        while record.id in taken:
            record = Record.new(data, created_at=created_at)
        taken.add(record.id)
        records.append(record)
    return records


class SheetsSync:
    """
    Mirror record categories against a spreadsheet.

    Parameters
    ----------
    client : SheetsClient | None
        Spreadsheet client; None means sync is disabled and the store stays
        local-only.
    sheet_names : Mapping[Category, str]
        Category to sheet name. Categories absent here are never synced.
    """

    def __init__(
        self,
        client: Optional[SheetsClient],
        sheet_names: Mapping[Category, str] = SHEET_NAMES,
    ) -> None:
        self.client = client
        self.sheet_names = dict(sheet_names)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _sheet_name(self, category: Category) -> str:
        category = Category(category)
        try:
            return self.sheet_names[category]
        except KeyError:
            raise UnsyncedCategory(f"Category '{category.value}' is not synced") from None

    async def _fetch(self, category: Category) -> List[Dict[str, str]]:
        if self.client is None:
            raise TransportFailure("Spreadsheet sync is not configured")
        values = await asyncio.to_thread(self.client.read_values, self._sheet_name(category))
        return rows_to_mappings(values)

    async def pull(self, category: Category) -> List[Dict[str, str]]:
        """Remote rows of ``category``; ``[]`` and a warning on any failure."""
        category = Category(category)
        try:
            return await self._fetch(category)
        except TransportFailure as exc:
            log.warning(
                "Pull failed, returning no rows",
                extra={"category": category.value, "error": str(exc)},
            )
            return []

    async def push(self, category: Category, records: Sequence[Record]) -> int:
        """
        Append ``records`` to the category's sheet in a single call.

        Returns the number of rows appended.

        Raises
        ------
        TransportFailure
            If sync is disabled or the append call fails.
        """
        category = Category(category)
        sheet_name = self._sheet_name(category)
        if self.client is None:
            raise TransportFailure("Spreadsheet sync is not configured")
        if not records:
            return 0
        rows = records_to_rows(records)
        await asyncio.to_thread(self.client.append_values, sheet_name, rows)
        log.info("Rows appended", extra={"category": category.value, "rows": len(rows)})
        return len(rows)

    async def sync_all(self, store: RecordStore, isolate_failures: bool = False) -> SyncReport:
        """
        Pull every synced category and replace the local copies.

        By default the sync is all-or-nothing: if any category fails, the
        store is left untouched and TransportFailure is raised. With
        ``isolate_failures`` the failed categories are kept as they are and
        reported, the others are replaced.
        """
        if self.client is None:
            log.warning("Spreadsheet sync is not configured, skipping sync")
            return SyncReport(skipped=True)

        categories = list(self.sheet_names)
        results = await asyncio.gather(
            *(self._fetch(category) for category in categories),
            return_exceptions=True,
        )

        pulled: Dict[Category, List[Record]] = {}
        failed: Dict[Category, str] = {}
        for category, result in zip(categories, results):
            if isinstance(result, TransportFailure):
                failed[category] = str(result)
                log.warning(
                    "Category pull failed",
                    extra={"category": category.value, "error": str(result)},
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                pulled[category] = mappings_to_records(result)

        if failed and not isolate_failures:
            names = ", ".join(c.value for c in failed)
            raise TransportFailure(f"Sync aborted, local store unchanged. Failed: {names}")

        discarded = 0
        for category, records in pulled.items():
            remote_ids = {record.id for record in records}
            discarded += sum(1 for r in await store.get_all(category) if r.id not in remote_ids)
        if discarded:
            log.warning(
                "Sync replaces local data; local-only records are discarded",
                extra={"discarded": discarded},
            )

        await store.replace_all(pulled)
        report = SyncReport(
            replaced={category: len(records) for category, records in pulled.items()},
            failed=failed,
            discarded_local=discarded,
        )
        log.info(
            "Sync complete",
            extra={"replaced": sum(report.replaced.values()), "failed": len(failed)},
        )
        return report


__all__ = [
    "SHEET_NAMES",
    "SheetsSync",
    "rows_to_mappings",
    "records_to_rows",
    "mappings_to_records",
]
