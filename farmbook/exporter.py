"""CSV export of one category."""

from __future__ import annotations

import csv
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from farmbook.domain.models import Category, Record
from farmbook.utils.logging import get_logger

log = get_logger(__name__)


def export_csv(
    category: Category,
    records: Sequence[Record],
    out_dir: Path | str = ".",
    today: Optional[date] = None,
) -> Optional[Path]:
    """
    Write ``records`` to ``<out_dir>/<category>_<YYYY-MM-DD>.csv``.

    Columns come from the first record: ``id``, ``created_at``, then its
    fields. Returns None without writing anything when there are no records.
    """
    category = Category(category)
    if not records:
        log.info("Nothing to export", extra={"category": category.value})
        return None

    headers = ["id", "created_at", *(k for k in records[0].data if k not in ("id", "created_at"))]
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{category.value}_{(today or date.today()).isoformat()}.csv"

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        for record in records:
            row = {**record.data, "id": record.id, "created_at": record.created_at.isoformat()}
            writer.writerow(["" if row.get(h) is None else row.get(h) for h in headers])

    log.info("Exported CSV", extra={"category": category.value, "rows": len(records), "path": str(path)})
    return path


__all__ = ["export_csv"]
