"""
Snapshot persistence for the local record store.

The whole store lives in one JSON document:

    {"version": 1, "categories": {"expenses": [record, ...], ...}}

Reads are retried with tenacity for transient filesystem errors. Writes go to
a temporary sibling file which then replaces the snapshot, so a crash never
leaves a half-written document behind.

Also converts the browser-era ``farmData`` blob (camelCase category keys,
``createdAt`` timestamps) into records for a one-shot import.
"""

from __future__ import annotations

import json
import math
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from pydantic import BaseModel, Field, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from farmbook.domain.models import Category, Record, canonical_field, utcnow
from farmbook.errors import StoreUnavailable
from farmbook.utils.logging import get_logger

log = get_logger(__name__)

SNAPSHOT_VERSION = 1

Collections = Dict[Category, List[Record]]


class Snapshot(BaseModel):
    """On-disk layout of the record store."""

    version: int = Field(SNAPSHOT_VERSION)
    categories: Dict[Category, List[Record]] = Field(default_factory=dict)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    retry=retry_if_exception_type(OSError),
    reraise=True,
)
def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_snapshot(path: Path) -> Collections:
    """
    Load every category from ``path``.

    A missing file is an empty store. Any other failure to read or parse the
    document raises StoreUnavailable.

    Raises
    ------
    StoreUnavailable
        If the file cannot be read after retries, or its content is not a
        valid snapshot.
    """
    if not path.exists():
        log.info("No snapshot found, starting empty", extra={"path": str(path)})
        return {category: [] for category in Category}

    try:
        raw = _read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise StoreUnavailable(f"Cannot read snapshot {path}: {exc}") from exc

    try:
        snapshot = Snapshot.model_validate_json(raw)
    except ValidationError as exc:
        raise StoreUnavailable(f"Snapshot {path} is corrupt: {exc}") from exc

    if snapshot.version != SNAPSHOT_VERSION:
        raise StoreUnavailable(
            f"Snapshot {path} has version {snapshot.version}, expected {SNAPSHOT_VERSION}"
        )

    collections: Collections = {category: [] for category in Category}
    collections.update(snapshot.categories)
    log.debug(
        "Snapshot loaded",
        extra={"path": str(path), "records": sum(len(v) for v in collections.values())},
    )
    return collections


def save_snapshot(path: Path, collections: Mapping[Category, Sequence[Record]]) -> None:
    """
    Atomically write ``collections`` to ``path``.

    Raises
    ------
    StoreUnavailable
        If the snapshot cannot be written.
    """
    snapshot = Snapshot(categories={c: list(records) for c, records in collections.items()})
    payload = snapshot.model_dump_json(indent=2)

    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StoreUnavailable(f"Cannot write snapshot {path}: {exc}") from exc


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return utcnow()


def _is_storable(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    return value is None or isinstance(value, (str, int, bool))


def from_legacy(payload: Mapping[str, Any]) -> Collections:
    """
    Convert a browser-era ``farmData`` blob into per-category records.

    Keys are the camelCase category names (``feedConsumption``,
    ``eggRecords``...). Each entry keeps its ``id`` when present and unique,
    ``createdAt`` becomes ``created_at``, known field spellings such as
    ``employeeId`` are renamed, nested and non-finite values are dropped.
    """
    collections: Collections = {}
    for key, entries in payload.items():
        category = Category.from_legacy_key(key)
        if category is None:
            log.warning("Skipping unknown legacy category", extra={"key": key})
            continue
        if not isinstance(entries, list):
            log.warning("Skipping malformed legacy category", extra={"key": key})
            continue

        records: List[Record] = []
        seen: set[str] = set()
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            data = {
                canonical_field(k): v
                for k, v in entry.items()
                if k not in ("id", "createdAt") and _is_storable(v)
            }
            record_id = str(entry.get("id") or "") or None
            if record_id in seen:
                record_id = None
            record = Record.new(data, record_id=record_id, created_at=_parse_timestamp(entry.get("createdAt")))
            seen.add(record.id)
            records.append(record)
        collections[category] = records
    return collections


def read_legacy_file(path: Path) -> Collections:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise StoreUnavailable(f"Cannot read legacy export {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise StoreUnavailable(f"Legacy export {path} is not a JSON object")
    return from_legacy(payload)


__all__ = [
    "SNAPSHOT_VERSION",
    "Snapshot",
    "load_snapshot",
    "save_snapshot",
    "from_legacy",
    "read_legacy_file",
]
