"""
Saving contact records to a sheet.

A save reads the header row, maps fields to columns, composes the row,
updates the header row when columns were added, and appends the row.
Header update always completes before the append; if it fails nothing is
appended. If the append fails after a header update the new columns stay
on the sheet (they are logged, not removed).

Saves are not isolated from each other: two saves racing on one sheet can
both add the same column. SheetSaveService serializes saves to the same
sheet within a process; saves from other processes can still race.
"""

import logging
import threading
from typing import Dict, Tuple

from .composer import compose_row
from .errors import SheetAccessError, SheetSaveError
from .extractor import ContactRecord
from .schema import map_columns
from .sheets.base import SheetAdapter

logger = logging.getLogger(__name__)


def save_record(record: ContactRecord, sheet_id: str, adapter: SheetAdapter) -> Dict:
    """Write a contact record as a new row of a sheet.

    Args:
        record: Contact record to save
        sheet_id: Spreadsheet / workbook identifier
        adapter: Backend adapter to read and write through

    Returns:
        Dictionary with ``success`` and details of the write

    Raises:
        SheetAccessError: The header row could not be read
        SheetSaveError: The header update or the append failed
    """
    backend = getattr(adapter, "backend", "sheet")

    headers = adapter.get_header_row(sheet_id)
    mapping = map_columns(headers)
    composed = compose_row(record, mapping, headers)

    if composed.updated_headers is not None:
        try:
            adapter.update_header_row(sheet_id, composed.updated_headers)
        except SheetAccessError as e:
            logger.error(f"Header update failed for {backend}:{sheet_id}: {e.message}")
            raise SheetSaveError(
                f"Failed to save to {backend} sheet: {e.message}",
                stage="update_header",
                backend=backend,
            )
        logger.info(f"Added columns {composed.added_columns} to {backend}:{sheet_id}")

    try:
        adapter.append_row(sheet_id, composed.row)
    except SheetAccessError as e:
        if composed.added_columns:
            logger.warning(
                f"Row append failed after adding columns {composed.added_columns} "
                f"to {backend}:{sheet_id}; columns left in place"
            )
        logger.error(f"Row append failed for {backend}:{sheet_id}: {e.message}")
        raise SheetSaveError(
            f"Failed to save to {backend} sheet: {e.message}",
            stage="append_row",
            backend=backend,
        )

    logger.info(f"Saved contact to {backend}:{sheet_id}")
    return {
        "success": True,
        "message": "Data saved successfully",
        "sheet_id": sheet_id,
        "columns_added": composed.added_columns,
        "row_length": len(composed.row),
    }


class _SheetLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class SheetSaveService:
    """Runs saves with an optional per-sheet advisory lock.

    The lock only serializes saves made through this instance, keyed by
    backend and sheet id. A lock is dropped once no save holds or waits on
    it, so the map only holds sheets with a save in progress.
    """

    def __init__(self, serialize: bool = True) -> None:
        self.serialize = serialize
        self._locks: Dict[Tuple[str, str], _SheetLock] = {}
        self._locks_guard = threading.Lock()

    def _checkout(self, key: Tuple[str, str]) -> _SheetLock:
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _SheetLock()
            entry.users += 1
            return entry

    def _checkin(self, key: Tuple[str, str]) -> None:
        with self._locks_guard:
            entry = self._locks[key]
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    def save(self, record: ContactRecord, sheet_id: str, adapter: SheetAdapter) -> Dict:
        if not self.serialize:
            return save_record(record, sheet_id, adapter)

        key = (getattr(adapter, "backend", "sheet"), sheet_id)
        entry = self._checkout(key)
        try:
            with entry.lock:
                return save_record(record, sheet_id, adapter)
        finally:
            self._checkin(key)

    def active_sheets(self) -> int:
        """Number of sheets with a save in progress or waiting."""
        return len(self._locks)
