# rosterbot/integrations/gsheets.py
"""
Google Sheets store: the grid of games and the text color of each cell.

All API calls are blocking (googleapiclient), so each one runs under
asyncio.to_thread() with retry + backoff. Rows are cached for a short TTL;
every write drops the cache so the next read sees it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional, Sequence

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from rosterbot.core.errors import StoreError
from rosterbot.core.logging_utils import kv
from rosterbot.core.status_codec import ColorSample
from rosterbot.util.retry import BACKOFFS, with_retry

logger = logging.getLogger("rosterbot.gsheets")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

_COLOR_FIELDS = (
    "sheets(data(rowData(values(userEnteredFormat(textFormat("
    "foregroundColor,foregroundColorStyle))))))"
)
_COLOR_MASK = "userEnteredFormat.textFormat.foregroundColor"


def column_letter(col: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    if col < 0:
        raise ValueError(f"negative column index: {col}")
    letters = ""
    n = col + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def a1(row: int, col: int) -> str:
    """0-based grid coordinates -> A1 cell reference."""
    return f"{column_letter(col)}{row + 1}"


def sheet_range(sheet_name: str, ref: str) -> str:
    quoted = sheet_name.replace("'", "''")
    return f"'{quoted}'!{ref}"


def extract_text_color(payload: dict) -> Optional[dict]:
    """Pull the foreground color out of a spreadsheets.get(fields=...) response."""
    try:
        cell = payload["sheets"][0]["data"][0]["rowData"][0]["values"][0]
    except (KeyError, IndexError, TypeError):
        return None
    text_format = (cell.get("userEnteredFormat") or {}).get("textFormat") or {}
    color = text_format.get("foregroundColor")
    if not color:
        color = (text_format.get("foregroundColorStyle") or {}).get("rgbColor")
    return color or None


class GoogleSheetsStore:
    def __init__(
        self,
        spreadsheet_id: str,
        credentials_path: str,
        sheet_name: str,
        *,
        value_range: str = "A1:Z100",
        cache_ttl_s: float = 300,
        clock: Callable[[], float] = time.monotonic,
        retry_backoffs: Sequence[float] = BACKOFFS,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.credentials_path = credentials_path
        self.sheet_name = sheet_name
        self.value_range = value_range
        self.cache_ttl_s = cache_ttl_s
        self._clock = clock
        self.retry_backoffs = retry_backoffs

        self._creds: Optional[Credentials] = None
        self._sheet_id: Optional[int] = None
        self._rows: Optional[List[List[str]]] = None
        self._rows_at: float = 0.0

    # ---- blocking helpers (run under asyncio.to_thread) -------------------------------
    def _credentials(self) -> Credentials:
        if self._creds is None:
            self._creds = Credentials.from_service_account_file(
                self.credentials_path, scopes=SCOPES
            )
        return self._creds

    def _service(self) -> Any:
        return build("sheets", "v4", credentials=self._credentials(), cache_discovery=False)

    def _fetch_values_blocking(self) -> List[List[str]]:
        resp = (
            self._service()
            .spreadsheets()
            .values()
            .get(
                spreadsheetId=self.spreadsheet_id,
                range=sheet_range(self.sheet_name, self.value_range),
            )
            .execute()
        )
        return resp.get("values", []) or []

    def _fetch_color_blocking(self, ref: str) -> dict:
        return (
            self._service()
            .spreadsheets()
            .get(
                spreadsheetId=self.spreadsheet_id,
                ranges=[sheet_range(self.sheet_name, ref)],
                fields=_COLOR_FIELDS,
            )
            .execute()
        )

    def _fetch_sheet_id_blocking(self) -> int:
        resp = (
            self._service()
            .spreadsheets()
            .get(spreadsheetId=self.spreadsheet_id, fields="sheets(properties(sheetId,title))")
            .execute()
        )
        for sheet in resp.get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == self.sheet_name:
                return int(props.get("sheetId", 0))
        raise StoreError(f"sheet '{self.sheet_name}' not found in spreadsheet")

    def _batch_update_blocking(self, requests: list) -> dict:
        return (
            self._service()
            .spreadsheets()
            .batchUpdate(spreadsheetId=self.spreadsheet_id, body={"requests": requests})
            .execute()
        )

    def _update_value_blocking(self, ref: str, text: str) -> dict:
        return (
            self._service()
            .spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=sheet_range(self.sheet_name, ref),
                valueInputOption="RAW",
                body={"values": [[text]]},
            )
            .execute()
        )

    async def _call(self, op: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await with_retry(
                asyncio.to_thread, fn, *args, backoffs=self.retry_backoffs
            )
        except StoreError:
            raise
        except Exception as e:
            logger.error("gsheets.call.fail " + kv(op=op, err=str(e)))
            raise StoreError(f"{op} failed: {e}") from e

    # ---- store API -------------------------------------------------------------------
    async def get_rows(self) -> List[List[str]]:
        now = self._clock()
        if self._rows is not None and now - self._rows_at < self.cache_ttl_s:
            return self._rows
        logger.debug(
            "gsheets.rows.fetch "
            + kv(spreadsheet_id=self.spreadsheet_id, sheet=self.sheet_name)
        )
        rows = await self._call("get_rows", self._fetch_values_blocking)
        self._rows, self._rows_at = rows, self._clock()
        logger.debug("gsheets.rows.fetched " + kv(rows=len(rows)))
        return rows

    def invalidate_cache(self) -> None:
        self._rows = None
        self._rows_at = 0.0

    async def get_cell_color(self, row: int, col: int) -> Optional[ColorSample]:
        ref = a1(row, col)
        payload = await self._call("get_cell_color", self._fetch_color_blocking, ref)
        return ColorSample.from_api(extract_text_color(payload))

    async def _sheet_id_value(self) -> int:
        if self._sheet_id is None:
            self._sheet_id = await self._call("sheet_id", self._fetch_sheet_id_blocking)
        return self._sheet_id

    async def set_cell_color(self, row: int, col: int, color: Optional[ColorSample]) -> None:
        """Set the text color of one cell; None clears it back to default."""
        sheet_id = await self._sheet_id_value()
        text_format = {"foregroundColor": color.to_api()} if color is not None else {}
        request = {
            "repeatCell": {
                "range": {
                    "sheetId": sheet_id,
                    "startRowIndex": row,
                    "endRowIndex": row + 1,
                    "startColumnIndex": col,
                    "endColumnIndex": col + 1,
                },
                "cell": {"userEnteredFormat": {"textFormat": text_format}},
                "fields": _COLOR_MASK,
            }
        }
        try:
            await self._call("set_cell_color", self._batch_update_blocking, [request])
        finally:
            self.invalidate_cache()
        logger.info("gsheets.color.set " + kv(cell=a1(row, col), color=color))

    async def set_cell_value(self, row: int, col: int, text: str) -> None:
        ref = a1(row, col)
        try:
            await self._call("set_cell_value", self._update_value_blocking, ref, text)
        finally:
            self.invalidate_cache()
        logger.info("gsheets.value.set " + kv(cell=ref, text=text))
