"""
Domain package for farmbook.

Exports the core domain models used by the store, the sync bridge and the
dashboard. Keep this package focused on data definitions and validation.
"""

from farmbook.domain.models import (
    INDEXED_FIELDS,
    Category,
    DashboardSummary,
    Record,
    Report,
    ReportSummary,
    SyncReport,
    canonical_field,
    is_indexed,
    new_record_id,
)

__all__ = [
    "Category",
    "INDEXED_FIELDS",
    "DashboardSummary",
    "Record",
    "Report",
    "ReportSummary",
    "SyncReport",
    "canonical_field",
    "is_indexed",
    "new_record_id",
]
