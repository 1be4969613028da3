from __future__ import annotations

import pytest
from conftest import FakeResponse, FakeSession

from farmbook.config import Settings
from farmbook.errors import TransportFailure
from farmbook.infrastructure.sheets_client import SheetsClient

TABLE = [["Date", "Amount"], ["2024-01-01", "100"]]


def test_read_values_builds_url_and_passes_key_and_timeout(
    sheets_client: SheetsClient, fake_session: FakeSession
) -> None:
    fake_session.sheets["Expenses"] = TABLE

    assert sheets_client.read_values("Expenses") == TABLE

    call = fake_session.gets[0]
    assert call["url"] == "https://sheets.test/v4/spreadsheets/sheet-123/values/Expenses"
    assert call["params"] == {"key": "key-abc"}
    assert call["timeout"] == 2.5


def test_read_values_without_values_member_is_empty(
    sheets_client: SheetsClient, fake_session: FakeSession
) -> None:
    fake_session.sheets["Medicine"] = FakeResponse({"range": "Medicine!A1:Z1000"})
    assert sheets_client.read_values("Medicine") == []


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=403),
        FakeResponse(invalid_json=True),
        FakeResponse(["not", "an", "object"]),
        FakeResponse({"values": "nope"}),
        FakeResponse({"values": [["ok"], "bad row"]}),
    ],
)
def test_read_values_failures_raise_transport_failure(
    sheets_client: SheetsClient, fake_session: FakeSession, response: FakeResponse
) -> None:
    fake_session.sheets["Expenses"] = response
    with pytest.raises(TransportFailure):
        sheets_client.read_values("Expenses")


def test_read_values_network_error_raises_transport_failure(
    sheets_client: SheetsClient, fake_session: FakeSession
) -> None:
    fake_session.sheets["Expenses"] = None
    with pytest.raises(TransportFailure):
        sheets_client.read_values("Expenses")


def test_append_values_posts_rows(sheets_client: SheetsClient, fake_session: FakeSession) -> None:
    result = sheets_client.append_values("Mortality", [["2024-01-01", 2], ["2024-01-02", 1]])

    call = fake_session.posts[0]
    assert call["url"].endswith("/sheet-123/values/Mortality:append")
    assert call["params"] == {"valueInputOption": "USER_ENTERED", "key": "key-abc"}
    assert call["json"] == {"values": [["2024-01-01", 2], ["2024-01-02", 1]]}
    assert result["updates"]["updatedRows"] == 2


def test_append_values_failure_raises_transport_failure(fake_session: FakeSession) -> None:
    fake_session.fail_posts = True
    client = SheetsClient("sheet-123", "key-abc", session=fake_session)  # type: ignore[arg-type]
    with pytest.raises(TransportFailure):
        client.append_values("Expenses", [["x"]])


@pytest.mark.parametrize(
    ("sheet_id", "api_key"),
    [("", ""), ("sheet", ""), ("YOUR_GOOGLE_SHEET_ID", "real-key"), ("sheet", "YOUR_GOOGLE_API_KEY")],
)
def test_from_settings_without_credentials_is_none(sheet_id: str, api_key: str) -> None:
    settings = Settings(sheet_id=sheet_id, sheets_api_key=api_key)
    assert SheetsClient.from_settings(settings) is None


def test_from_settings_with_credentials(test_settings: Settings) -> None:
    client = SheetsClient.from_settings(test_settings)
    assert client is not None
    assert client.sheet_id == "sheet-123"
    assert client.base_url == "https://sheets.test/v4/spreadsheets"
    assert client.timeout == 10.0
