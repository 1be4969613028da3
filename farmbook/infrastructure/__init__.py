"""
Infrastructure package for farmbook.

Centralizes I/O concerns: the on-disk snapshot of the record store and the
HTTP adapter for the spreadsheet service. Keep this layer focused on I/O,
decoupled from store and sync logic.
"""

from farmbook.infrastructure.sheets_client import SheetsClient
from farmbook.infrastructure.snapshot import (
    from_legacy,
    load_snapshot,
    read_legacy_file,
    save_snapshot,
)

__all__ = [
    "SheetsClient",
    "from_legacy",
    "load_snapshot",
    "read_legacy_file",
    "save_snapshot",
]
