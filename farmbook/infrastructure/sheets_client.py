"""
HTTP adapter for the Google Sheets v4 values API.

Only two calls are used: read a whole sheet as a 2-D array of strings, and
append rows to the end of a sheet. Every failure (network error, non-2xx
status, body that is not the expected shape) surfaces as TransportFailure.
Nothing here retries.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence
from urllib.parse import quote

import requests

from farmbook.config import Settings
from farmbook.errors import TransportFailure
from farmbook.utils.logging import get_logger

log = get_logger(__name__)

Row = List[Any]


class SheetsClient:
    """
    Blocking client for one spreadsheet.

    Parameters
    ----------
    sheet_id : str
        Spreadsheet identifier.
    api_key : str
        API key sent as the ``key`` query parameter.
    base_url : str
        Root of the values API, without trailing slash.
    timeout : float
        Seconds before a request is abandoned.
    session : requests.Session, optional
        Session to issue requests with; one is created when omitted.
    """

    def __init__(
        self,
        sheet_id: str,
        api_key: str,
        base_url: str = "https://sheets.googleapis.com/v4/spreadsheets",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.sheet_id = sheet_id
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["SheetsClient"]:
        """Build a client, or return None when credentials are not configured."""
        if not settings.sheets_configured:
            log.warning("Spreadsheet credentials not configured, using local store only")
            return None
        return cls(
            sheet_id=settings.sheet_id,
            api_key=settings.sheets_api_key,
            base_url=settings.sheets_base_url,
            timeout=settings.sheets_timeout_seconds,
        )

    def _values_url(self, sheet_name: str, suffix: str = "") -> str:
        return f"{self.base_url}/{quote(self.sheet_id, safe='')}/values/{quote(sheet_name, safe='')}{suffix}"

    def read_values(self, sheet_name: str) -> List[Row]:
        """
        Return every row of ``sheet_name``; row 0 holds the headers.

        A sheet without a ``values`` member is an empty table.
        """
        url = self._values_url(sheet_name)
        try:
            response = self.session.get(url, params={"key": self.api_key}, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            raise TransportFailure(f"Reading sheet '{sheet_name}' failed: {exc}") from exc
        except ValueError as exc:
            raise TransportFailure(f"Sheet '{sheet_name}' returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise TransportFailure(f"Sheet '{sheet_name}' returned {type(data).__name__}, expected object")
        values = data.get("values", [])
        if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
            raise TransportFailure(f"Sheet '{sheet_name}' returned malformed values")
        return values

    def append_values(self, sheet_name: str, rows: Sequence[Row]) -> dict:
        """Append ``rows`` after the last row of ``sheet_name``."""
        url = self._values_url(sheet_name, ":append")
        try:
            response = self.session.post(
                url,
                params={"valueInputOption": "USER_ENTERED", "key": self.api_key},
                json={"values": [list(row) for row in rows]},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            raise TransportFailure(f"Appending to sheet '{sheet_name}' failed: {exc}") from exc
        except ValueError as exc:
            raise TransportFailure(f"Sheet '{sheet_name}' returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise TransportFailure(f"Sheet '{sheet_name}' returned {type(data).__name__}, expected object")
        return data

    def close(self) -> None:
        self.session.close()


__all__ = ["SheetsClient"]
