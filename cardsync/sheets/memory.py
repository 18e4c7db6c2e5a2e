"""
In-memory sheet adapter for development and tests.
"""

import logging
from typing import Dict, List, Optional

from ..errors import SheetAccessError
from .base import SheetAdapter

logger = logging.getLogger(__name__)


class InMemorySheetAdapter(SheetAdapter):
    """Keeps sheets as lists of rows; row 0 is the header row."""

    backend = "memory"

    def __init__(self, sheets: Optional[Dict[str, List[List[Optional[str]]]]] = None) -> None:
        self.sheets = sheets if sheets is not None else {}

    def create_sheet(self, sheet_id: str, headers: Optional[List[str]] = None) -> None:
        self.sheets[sheet_id] = [list(headers or [])]

    def _rows(self, sheet_id: str) -> List[List[Optional[str]]]:
        if sheet_id not in self.sheets:
            raise SheetAccessError(f"Sheet not found: {sheet_id}", {"sheet_id": sheet_id})
        return self.sheets[sheet_id]

    def get_header_row(self, sheet_id: str) -> List[str]:
        rows = self._rows(sheet_id)
        return list(rows[0]) if rows else []

    def update_header_row(self, sheet_id: str, headers: List[str]) -> None:
        rows = self._rows(sheet_id)
        if rows:
            rows[0] = list(headers)
        else:
            rows.append(list(headers))

    def append_row(self, sheet_id: str, row: List[Optional[str]]) -> None:
        rows = self._rows(sheet_id)
        if not rows:
            rows.append([])
        rows.append(list(row))
        logger.debug(f"Appended row {len(rows) - 1} to in-memory sheet {sheet_id}")

    def data_rows(self, sheet_id: str) -> List[List[Optional[str]]]:
        """Return every row after the header row."""
        return self._rows(sheet_id)[1:]
