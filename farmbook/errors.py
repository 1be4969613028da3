"""Exception types raised by the record store, the sync bridge and form intake."""
from __future__ import annotations


class FarmbookError(Exception):
    """Base class for every error farmbook raises on purpose."""


class StoreUnavailable(FarmbookError):
    """The local snapshot could not be opened, parsed or written."""


class NotFound(FarmbookError, KeyError):
    """No record with the given identifier exists in the category."""

    def __init__(self, category: str, record_id: str) -> None:
        self.category = category
        self.record_id = record_id
        super().__init__(f"No record '{record_id}' in '{category}'")

    def __str__(self) -> str:
        return self.args[0]


class TransportFailure(FarmbookError):
    """The spreadsheet service was unreachable or answered with unusable data."""


class UnindexedField(FarmbookError, ValueError):
    """A query named a (category, field) pair that has no secondary index."""


class UnsyncedCategory(FarmbookError, ValueError):
    """The category has no remote sheet."""


class UnknownForm(FarmbookError, KeyError):
    """A form identifier is not present in the form table."""

    def __str__(self) -> str:
        return self.args[0] if self.args else ""


__all__ = [
    "FarmbookError",
    "StoreUnavailable",
    "NotFound",
    "TransportFailure",
    "UnindexedField",
    "UnsyncedCategory",
    "UnknownForm",
]
