"""
Domain models for farmbook.

Defines the record categories, the record shape shared by every category,
the secondary index table, and the result types handed to presentation.
"""
from __future__ import annotations

import math
import secrets
import time
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

_SCALAR_TYPES = (str, int, float, bool, type(None))


class Category(str, Enum):
    """Fixed partitions of the record store."""

    EXPENSES = "expenses"
    FEED_CONSUMPTION = "feed_consumption"
    ATTENDANCE = "attendance"
    EMPLOYEES = "employees"
    EGG_RECORDS = "egg_records"
    MEDICINE = "medicine"
    MORTALITY = "mortality"
    FEED_ORDERS = "feed_orders"
    TASKS = "tasks"
    SETTINGS = "settings"

    @property
    def legacy_key(self) -> str:
        """Key used for this category by the browser-era ``farmData`` blob."""
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest)

    @classmethod
    def from_legacy_key(cls, key: str) -> Optional["Category"]:
        for category in cls:
            if category.legacy_key == key:
                return category
        return None


# (category -> fields with a secondary index)
INDEXED_FIELDS: Mapping[Category, FrozenSet[str]] = {
    Category.EXPENSES: frozenset({"date", "category"}),
    Category.ATTENDANCE: frozenset({"date", "employee_id"}),
    Category.EGG_RECORDS: frozenset({"date", "shed"}),
}


def is_indexed(category: Category, field: str) -> bool:
    return field in INDEXED_FIELDS.get(category, frozenset())


# Spellings used by the browser app and its sheets, case-folded.
FIELD_ALIASES: Mapping[str, str] = {
    "employeeid": "employee_id",
}


def canonical_field(name: str) -> str:
    """Store field name for ``name``; unknown names pass through unchanged."""
    return FIELD_ALIASES.get(name.lower(), name)


def new_record_id() -> str:
    """Millisecond clock plus a random suffix, e.g. ``18c0f9a2b41-5e3a9c1d``."""
    return f"{time.time_ns() // 1_000_000:x}-{secrets.token_hex(4)}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    """
    One persisted entry of a category.

    ``data`` holds the free-form fields submitted through a form; values are
    finite scalars only and the mapping is read-only. The identifier and
    creation timestamp are owned by the store.
    """

    id: str = Field(..., min_length=1, description="Identifier, unique within its category.")
    created_at: datetime = Field(..., description="Creation timestamp (UTC).")
    data: Mapping[str, Any] = Field(default_factory=dict, description="Field name to scalar value.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    @field_validator("data")
    @classmethod
    def check_scalars(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"field names must be strings, got {key!r}")
            if not isinstance(item, _SCALAR_TYPES):
                raise ValueError(f"field '{key}' must be a scalar, got {type(item).__name__}")
            if isinstance(item, float) and not math.isfinite(item):
                raise ValueError(f"field '{key}' must be a finite number, got {item!r}")
        return MappingProxyType(dict(value))

    @field_serializer("data")
    def dump_data(self, value: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(value)

    @classmethod
    def new(
        cls,
        data: Mapping[str, Any],
        record_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> "Record":
        return cls(
            id=record_id or new_record_id(),
            created_at=created_at or utcnow(),
            data=dict(data),
        )

    def get(self, field: str, default: Any = None) -> Any:
        return self.data.get(field, default)

    def with_data(self, data: Mapping[str, Any]) -> "Record":
        """Copy with ``data`` replaced wholesale; id and timestamp are kept."""
        return Record(id=self.id, created_at=self.created_at, data=dict(data))


class DashboardSummary(BaseModel):
    """Same-day counters shown on the dashboard."""

    day: str
    todays_expenses: float = 0.0
    todays_eggs: int = 0
    todays_mortality: int = 0
    staff_present: int = 0
    total_employees: int = 0

    @property
    def attendance_rate(self) -> str:
        return f"{self.staff_present}/{self.total_employees}"


class ReportSummary(BaseModel):
    total: int = 0
    amount: float = 0.0


class Report(BaseModel):
    """Records of one category within a date range, plus totals."""

    category: Category
    start: str
    end: str
    records: List[Record] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)


class SyncReport(BaseModel):
    """Outcome of a full spreadsheet pull."""

    skipped: bool = False
    replaced: Dict[Category, int] = Field(default_factory=dict)
    failed: Dict[Category, str] = Field(default_factory=dict)
    discarded_local: int = 0

    @property
    def ok(self) -> bool:
        return not self.skipped and not self.failed


__all__ = [
    "Category",
    "INDEXED_FIELDS",
    "is_indexed",
    "FIELD_ALIASES",
    "canonical_field",
    "new_record_id",
    "utcnow",
    "Record",
    "DashboardSummary",
    "ReportSummary",
    "Report",
    "SyncReport",
]
