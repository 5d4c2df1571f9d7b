# rosterbot/core/attendance.py
from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from rosterbot.core.errors import CellNotFoundError
from rosterbot.core.events import SheetLayout, extract_events
from rosterbot.core.logging_utils import kv
from rosterbot.core.status_codec import AttendanceStatus, StatusCodec, default_codec

log = logging.getLogger("rosterbot.attendance")


class AttendanceBook:
    """
    Reads and writes a participant's status for a game date.
    Status is never cached here: every call goes back to the store, which only
    caches the grid values (colors are fetched per cell).
    """

    def __init__(
        self, store: Any, layout: SheetLayout, codec: Optional[StatusCodec] = None
    ) -> None:
        self.store = store
        self.layout = layout
        self.codec = codec or default_codec

    async def locate(self, date_str: str, name: str) -> Tuple[int, int]:
        """(row, column) of the cell holding `name` in the row of `date_str`."""
        rows = await self.store.get_rows()
        events = extract_events(rows, [date_str], layout=self.layout)
        if not events:
            raise CellNotFoundError(f"no row for date {date_str}")
        slot = events[0].find_occupant(name)
        if slot is None:
            raise CellNotFoundError(f"'{name}' not found on {date_str}")
        return events[0].row_index, slot.column_index

    async def read_cell_status(self, row: int, col: int) -> AttendanceStatus:
        color = await self.store.get_cell_color(row, col)
        return self.codec.decode(color)

    async def read_status(self, date_str: str, name: str) -> AttendanceStatus:
        """Current status; UNKNOWN when the name is not in that game's row."""
        try:
            row, col = await self.locate(date_str, name)
        except CellNotFoundError as e:
            log.debug("attendance.read.miss " + kv(date=date_str, name=name, err=str(e)))
            return AttendanceStatus.UNKNOWN
        status = await self.read_cell_status(row, col)
        log.debug(
            "attendance.read " + kv(date=date_str, name=name, status=status.value)
        )
        return status

    async def write_status(
        self, date_str: str, name: str, status: AttendanceStatus
    ) -> Tuple[int, int]:
        """
        Re-locate the cell on fresh data, then write the color for `status`.
        Raises CellNotFoundError / StoreError; the caller reports them.
        """
        self.store.invalidate_cache()
        row, col = await self.locate(date_str, name)
        await self.store.set_cell_color(row, col, self.codec.palette_for(status))
        log.info(
            "attendance.write "
            + kv(date=date_str, name=name, status=AttendanceStatus(status).value, row=row, col=col)
        )
        return row, col
