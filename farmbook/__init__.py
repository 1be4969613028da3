"""
farmbook - record keeping for a poultry farm.

This package provides the local record store and the tools around it:

- A durable, category-scoped record store with secondary indexes
- Form intake with an explicit form-to-category table
- Same-day dashboard counters and date-range reports
- One-way pull/push sync against a Google Sheets spreadsheet
- CSV export and import of browser-era data exports
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from farmbook.config import Settings, get_settings
from farmbook.dashboard import dashboard_stats, generate_report, summarize
from farmbook.domain.models import Category, DashboardSummary, Record, SyncReport
from farmbook.errors import (
    FarmbookError,
    NotFound,
    StoreUnavailable,
    TransportFailure,
    UnindexedField,
    UnknownForm,
    UnsyncedCategory,
)
from farmbook.forms import submit_form, validate_form_map
from farmbook.store import RecordStore
from farmbook.sync import SheetsSync
from farmbook.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Store and domain
    "Category",
    "Record",
    "RecordStore",
    # Forms
    "submit_form",
    "validate_form_map",
    # Dashboard
    "DashboardSummary",
    "dashboard_stats",
    "generate_report",
    "summarize",
    # Sync
    "SheetsSync",
    "SyncReport",
    # Errors
    "FarmbookError",
    "NotFound",
    "StoreUnavailable",
    "TransportFailure",
    "UnindexedField",
    "UnknownForm",
    "UnsyncedCategory",
    # Logging
    "configure_logging",
    "get_logger",
]
