"""
Pytest configuration for farmbook.

Provides fixtures for:
- A record store backed by a temporary snapshot file
- Settings isolated from the developer's environment and .env
- A fake requests session standing in for the spreadsheet API
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Generator, List, Optional
from urllib.parse import unquote

import pytest
import requests

from farmbook import config
from farmbook.config import Settings
from farmbook.infrastructure.sheets_client import SheetsClient
from farmbook.store import RecordStore

_ENV_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "FARM_DATA_FILE",
    "SHEET_ID",
    "SHEETS_API_KEY",
    "SHEETS_BASE_URL",
    "SHEETS_TIMEOUT_SECONDS",
    "SYNC_ISOLATE_FAILURES",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path: Path) -> Generator[None, None, None]:
    """
    Strip farmbook variables from the environment and clear the settings cache.

    Tests run from a temporary working directory so no stray .env is read.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "farm_data.json"


@pytest.fixture()
def store(data_file: Path) -> RecordStore:
    """Empty store writing to a temporary snapshot."""
    return RecordStore(data_file)


@pytest.fixture()
def test_settings(data_file: Path) -> Settings:
    return Settings(
        data_file=data_file,
        sheet_id="sheet-123",
        sheets_api_key="key-abc",
        sheets_base_url="https://sheets.test/v4/spreadsheets",
        log_level="DEBUG",
    )


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, invalid_json: bool = False) -> None:
        self._payload = payload if payload is not None else {}
        self.status_code = status_code
        self._invalid_json = invalid_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)  # type: ignore[arg-type]

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    """
    Minimal stand-in for requests.Session.

    ``sheets`` maps sheet name to the 2-D values returned on read; a value of
    ``None`` makes reads of that sheet fail with a connection error.
    """

    def __init__(self, sheets: Optional[Dict[str, Any]] = None, fail_posts: bool = False) -> None:
        self.sheets = sheets or {}
        self.fail_posts = fail_posts
        self.gets: List[Dict[str, Any]] = []
        self.posts: List[Dict[str, Any]] = []
        self.closed = False

    @staticmethod
    def _sheet_from_url(url: str) -> str:
        name = url.rsplit("/values/", 1)[1]
        return unquote(name.split(":", 1)[0])

    def get(self, url: str, params: Any = None, timeout: Any = None) -> FakeResponse:
        sheet = self._sheet_from_url(url)
        self.gets.append({"url": url, "sheet": sheet, "params": params, "timeout": timeout})
        if sheet not in self.sheets:
            return FakeResponse({"error": "not found"}, status_code=404)
        values = self.sheets[sheet]
        if values is None:
            raise requests.ConnectionError(f"cannot reach {sheet}")
        if isinstance(values, FakeResponse):
            return values
        return FakeResponse({"range": sheet, "values": values})

    def post(self, url: str, params: Any = None, json: Any = None, timeout: Any = None) -> FakeResponse:
        sheet = self._sheet_from_url(url)
        self.posts.append({"url": url, "sheet": sheet, "params": params, "json": json, "timeout": timeout})
        if self.fail_posts:
            raise requests.Timeout("append timed out")
        return FakeResponse({"updates": {"updatedRows": len((json or {}).get("values", []))}})

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def sheets_client(fake_session: FakeSession) -> SheetsClient:
    return SheetsClient(
        sheet_id="sheet-123",
        api_key="key-abc",
        base_url="https://sheets.test/v4/spreadsheets",
        timeout=2.5,
        session=fake_session,  # type: ignore[arg-type]
    )
