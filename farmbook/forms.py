"""
Form intake: map a submitted form to its category and store it.

Every form identifier is listed explicitly in FORM_CATEGORIES; there is no
guessing from parts of the identifier. The table is checked once at startup
with validate_form_map().
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, Mapping

from farmbook.domain.models import Category
from farmbook.errors import UnknownForm
from farmbook.store import RecordStore
from farmbook.utils.logging import get_logger

log = get_logger(__name__)

FORM_CATEGORIES: Mapping[str, Category] = {
    "expense-form": Category.EXPENSES,
    "feed-form": Category.FEED_CONSUMPTION,
    "attendance-form": Category.ATTENDANCE,
    "employee-form": Category.EMPLOYEES,
    "egg-form": Category.EGG_RECORDS,
    "medicine-form": Category.MEDICINE,
    "mortality-form": Category.MORTALITY,
    "feed-order-form": Category.FEED_ORDERS,
    "task-form": Category.TASKS,
    "settings-form": Category.SETTINGS,
}

NUMERIC_FIELDS = ("amount", "quantity", "price")

_FORM_ID = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def validate_form_map(mapping: Mapping[str, Category] = FORM_CATEGORIES) -> None:
    """
    Check that every form id is a lower-case slug and every category is reachable.

    Raises
    ------
    ValueError
        On the first problem found.
    """
    for form_id, category in mapping.items():
        if not _FORM_ID.match(form_id):
            raise ValueError(f"Form id '{form_id}' is not a lower-case slug")
        if not isinstance(category, Category):
            raise ValueError(f"Form '{form_id}' maps to unknown category {category!r}")
    missing = set(Category) - set(mapping.values())
    if missing:
        names = ", ".join(sorted(c.value for c in missing))
        raise ValueError(f"No form submits into: {names}")


def category_for_form(form_id: str, mapping: Mapping[str, Category] = FORM_CATEGORIES) -> Category:
    try:
        return mapping[form_id.strip().lower()]
    except KeyError:
        raise UnknownForm(f"Unknown form '{form_id}'. Known: {', '.join(sorted(mapping))}") from None


def coerce_form_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Parse the numeric fields of a submission.

    Unparseable values, and values such as ``nan`` or ``1e999`` that do not
    parse to a finite number, are kept as given.
    """
    coerced = dict(data)
    for field in NUMERIC_FIELDS:
        value = coerced.get(field)
        if isinstance(value, str) and value.strip():
            try:
                number = float(value)
            except ValueError:
                number = math.nan
            if math.isfinite(number):
                coerced[field] = number
            else:
                log.debug("Keeping non-numeric value", extra={"field": field, "value": value})
    return coerced


async def submit_form(store: RecordStore, form_id: str, data: Mapping[str, Any]) -> str:
    """Store a form submission in the category its form id maps to."""
    category = category_for_form(form_id)
    return await store.add(category, coerce_form_fields(data))


__all__ = [
    "FORM_CATEGORIES",
    "NUMERIC_FIELDS",
    "validate_form_map",
    "category_for_form",
    "coerce_form_fields",
    "submit_form",
]
