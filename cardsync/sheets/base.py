"""
Sheet adapter interface.

An adapter is an explicit, caller-owned handle on one spreadsheet backend.
Construct it from credentials, use it for one or more saves, then close it
(or use it as a context manager).
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

logger = logging.getLogger(__name__)


class SheetAdapter(ABC):
    """Read the header row, rewrite it, and append rows on a sheet.

    Every method raises SheetAccessError when the backend call fails.
    Adapters own their timeouts and retry policy.
    """

    backend: str = "sheet"

    @abstractmethod
    def get_header_row(self, sheet_id: str) -> List[str]:
        """Return the first row of the sheet (empty list when there is none)."""

    @abstractmethod
    def update_header_row(self, sheet_id: str, headers: List[str]) -> None:
        """Overwrite the first row of the sheet with ``headers``."""

    @abstractmethod
    def append_row(self, sheet_id: str, row: List[Optional[str]]) -> None:
        """Insert ``row`` as a new row after the last used one."""

    def close(self) -> None:
        """Release any client resources held by the adapter."""

    def __enter__(self) -> "SheetAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def column_letter(index: int) -> str:
    """Convert a 0-based column index to its A1 letters (0 -> A, 26 -> AA)."""
    result = ""
    while index >= 0:
        result = chr(65 + index % 26) + result
        index = index // 26 - 1
    return result
