"""
Dashboard aggregation over the record store.

Counters are recomputed from a full scan of each category on every call.
Missing or non-numeric ``amount``/``quantity`` values count as zero.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from farmbook.domain.models import Category, DashboardSummary, Record, Report, ReportSummary
from farmbook.store import RecordStore


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _as_int(value: Any) -> int:
    return int(_as_float(value))


def _on_day(records: Iterable[Record], day: str) -> list[Record]:
    return [r for r in records if r.get("date") == day]


def summarize(
    day: str,
    expenses: Sequence[Record] = (),
    eggs: Sequence[Record] = (),
    mortality: Sequence[Record] = (),
    attendance: Sequence[Record] = (),
    employees: Sequence[Record] = (),
) -> DashboardSummary:
    """Build the dashboard counters for ``day`` (ISO ``YYYY-MM-DD``)."""
    return DashboardSummary(
        day=day,
        todays_expenses=sum(_as_float(r.get("amount")) for r in _on_day(expenses, day)),
        todays_eggs=sum(_as_int(r.get("quantity")) for r in _on_day(eggs, day)),
        todays_mortality=sum(_as_int(r.get("quantity")) for r in _on_day(mortality, day)),
        staff_present=sum(1 for r in _on_day(attendance, day) if r.get("status") == "present"),
        total_employees=len(employees),
    )


async def dashboard_stats(store: RecordStore, on: Optional[date] = None) -> DashboardSummary:
    """Counters for ``on``, defaulting to the local current date."""
    day = (on or date.today()).isoformat()
    return summarize(
        day,
        expenses=await store.get_all(Category.EXPENSES),
        eggs=await store.get_all(Category.EGG_RECORDS),
        mortality=await store.get_all(Category.MORTALITY),
        attendance=await store.get_all(Category.ATTENDANCE),
        employees=await store.get_all(Category.EMPLOYEES),
    )


def _record_date(record: Record) -> Optional[date]:
    value = record.get("date")
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def generate_report(category: Category, records: Iterable[Record], start: date, end: date) -> Report:
    """Records dated within ``[start, end]`` and their count and ``amount`` total."""
    selected = []
    for record in records:
        when = _record_date(record)
        if when is not None and start <= when <= end:
            selected.append(record)
    return Report(
        category=category,
        start=start.isoformat(),
        end=end.isoformat(),
        records=selected,
        summary=ReportSummary(
            total=len(selected),
            amount=sum(_as_float(r.get("amount")) for r in selected),
        ),
    )


__all__ = ["summarize", "dashboard_stats", "generate_report"]
