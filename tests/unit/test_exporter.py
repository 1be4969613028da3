from __future__ import annotations

import csv
from datetime import date
from pathlib import Path

from farmbook.domain.models import Category, Record
from farmbook.exporter import export_csv

DAY = date(2024, 1, 1)


def test_export_writes_header_and_one_row_per_record(tmp_path: Path) -> None:
    records = [
        Record.new({"date": "2024-01-01", "notes": "bought feed, grit", "amount": 100.0}),
        Record.new({"date": "2024-01-02", "notes": 'said "ok"', "amount": None}),
    ]

    path = export_csv(Category.EXPENSES, records, tmp_path / "out", today=DAY)

    assert path == tmp_path / "out" / "expenses_2024-01-01.csv"
    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["id", "created_at", "date", "notes", "amount"]
    assert rows[1][0] == records[0].id
    assert rows[1][2:] == ["2024-01-01", "bought feed, grit", "100.0"]
    assert rows[2][2:] == ["2024-01-02", 'said "ok"', ""]
    assert len(rows) == 3


def test_columns_follow_the_first_record(tmp_path: Path) -> None:
    records = [
        Record.new({"name": "vaccine"}),
        Record.new({"name": "vitamins", "dose": "2ml"}),
    ]

    path = export_csv(Category.MEDICINE, records, tmp_path, today=DAY)

    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["id", "created_at", "name"]
    assert rows[2][2:] == ["vitamins"]


def test_export_of_empty_category_writes_nothing(tmp_path: Path) -> None:
    assert export_csv(Category.TASKS, [], tmp_path, today=DAY) is None
    assert list(tmp_path.iterdir()) == []
