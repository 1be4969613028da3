"""
Local record store for farmbook.

Category-scoped CRUD over records, held in memory and persisted to a single
snapshot file after every mutation. The in-memory state only changes once the
snapshot write has succeeded, so a call that returns has been made durable
and a call that raises has changed nothing.

Usage:
    store = await RecordStore.open(Path("farm_data.json"))
    record_id = await store.add(Category.EXPENSES, {"date": "2024-01-01", "amount": 100})
    today = await store.query(Category.EXPENSES, "date", "2024-01-01")

Mutations are serialized on an asyncio.Lock. Nothing coordinates two
processes writing the same snapshot file.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from farmbook.domain.models import INDEXED_FIELDS, Category, Record, is_indexed, new_record_id
from farmbook.errors import NotFound, UnindexedField
from farmbook.infrastructure.snapshot import load_snapshot, save_snapshot
from farmbook.utils.logging import get_logger

log = get_logger(__name__)

# category -> record id -> record; dicts keep insertion order
Tables = Dict[Category, Dict[str, Record]]
# (category, field) -> field value -> record ids
Indexes = Dict[Tuple[Category, str], Dict[Any, List[str]]]


def _index_value(value: Any) -> Any:
    return value if isinstance(value, (str, int, float, bool)) or value is None else str(value)


def _build_indexes(tables: Tables) -> Indexes:
    indexes: Indexes = {}
    for category, fields in INDEXED_FIELDS.items():
        for field in fields:
            by_value: Dict[Any, List[str]] = defaultdict(list)
            for record_id, record in tables.get(category, {}).items():
                if field in record.data:
                    by_value[_index_value(record.data[field])].append(record_id)
            indexes[(category, field)] = by_value
    return indexes


class RecordStore:
    """
    Durable category-scoped record store.

    Prefer ``await RecordStore.open(path)``; the constructor takes already
    loaded tables and is mainly useful in tests.
    """

    def __init__(self, path: Path, tables: Mapping[Category, Sequence[Record]] | None = None) -> None:
        self.path = Path(path)
        self._tables: Tables = {category: {} for category in Category}
        for category, records in (tables or {}).items():
            self._tables[Category(category)] = {record.id: record for record in records}
        self._indexes = _build_indexes(self._tables)
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, path: Path | str) -> "RecordStore":
        """
        Load the snapshot at ``path`` and return a ready store.

        Raises
        ------
        StoreUnavailable
            If the snapshot exists but cannot be read or parsed.
        """
        path = Path(path)
        collections = await asyncio.to_thread(load_snapshot, path)
        store = cls(path, collections)
        log.info(
            "Record store opened",
            extra={"path": str(path), "records": sum(len(t) for t in store._tables.values())},
        )
        return store

    # -------------------------- reads --------------------------
    async def get_all(self, category: Category) -> List[Record]:
        return list(self._tables[Category(category)].values())

    async def get(self, category: Category, record_id: str) -> Record:
        category = Category(category)
        try:
            return self._tables[category][record_id]
        except KeyError:
            raise NotFound(category.value, record_id) from None

    async def query(self, category: Category, field: str, value: Any) -> List[Record]:
        """
        Return records of ``category`` whose indexed ``field`` equals ``value``.

        Raises
        ------
        UnindexedField
            If ``field`` has no secondary index for ``category``.
        """
        category = Category(category)
        if not is_indexed(category, field):
            raise UnindexedField(f"'{field}' is not indexed for '{category.value}'")
        table = self._tables[category]
        ids = self._indexes[(category, field)].get(_index_value(value), [])
        return [table[record_id] for record_id in ids]

    async def snapshot(self) -> Dict[Category, List[Record]]:
        return {category: list(table.values()) for category, table in self._tables.items()}

    async def count(self, category: Category) -> int:
        return len(self._tables[Category(category)])

    # -------------------------- writes --------------------------
    async def _commit(self, tables: Tables) -> None:
        await asyncio.to_thread(
            save_snapshot, self.path, {c: list(t.values()) for c, t in tables.items()}
        )
        self._tables = tables
        self._indexes = _build_indexes(tables)

    async def add(self, category: Category, fields: Mapping[str, Any]) -> str:
        """
        Persist a new record and return its identifier.

        Raises
        ------
        StoreUnavailable
            If the snapshot cannot be written.
        """
        category = Category(category)
        async with self._lock:
            table = self._tables[category]
            record_id = new_record_id()
            while record_id in table:
                record_id = new_record_id()
            record = Record.new(fields, record_id=record_id)

            updated = dict(table)
            updated[record.id] = record
            await self._commit({**self._tables, category: updated})

        log.info("Record added", extra={"category": category.value, "record_id": record.id})
        return record.id

    async def update(self, category: Category, record_id: str, fields: Mapping[str, Any]) -> Record:
        """
        Replace the fields of ``record_id``; identifier and creation time are kept.

        Raises
        ------
        NotFound
            If the category holds no record with that identifier.
        """
        category = Category(category)
        async with self._lock:
            table = self._tables[category]
            if record_id not in table:
                raise NotFound(category.value, record_id)
            record = table[record_id].with_data(fields)

            updated = dict(table)
            updated[record_id] = record
            await self._commit({**self._tables, category: updated})

        log.info("Record updated", extra={"category": category.value, "record_id": record_id})
        return record

    async def delete(self, category: Category, record_id: str) -> None:
        """
        Remove ``record_id``. Deleting an identifier twice raises NotFound.
        """
        category = Category(category)
        async with self._lock:
            table = self._tables[category]
            if record_id not in table:
                raise NotFound(category.value, record_id)

            updated = {k: v for k, v in table.items() if k != record_id}
            await self._commit({**self._tables, category: updated})

        log.info("Record deleted", extra={"category": category.value, "record_id": record_id})

    async def replace_all(self, collections: Mapping[Category, Sequence[Record]]) -> None:
        """
        Replace the listed categories wholesale in one persisted write.

        Categories not listed are left as they are.

        Raises
        ------
        ValueError
            If a replacement collection repeats an identifier.
        """
        replacement: Tables = {}
        for category, records in collections.items():
            category = Category(category)
            table = {record.id: record for record in records}
            if len(table) != len(records):
                raise ValueError(f"Duplicate record identifiers in '{category.value}'")
            replacement[category] = table

        async with self._lock:
            await self._commit({**self._tables, **replacement})

        log.info(
            "Categories replaced",
            extra={"categories": {c.value: len(t) for c, t in replacement.items()}},
        )


__all__ = ["RecordStore"]
