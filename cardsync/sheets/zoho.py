"""
Zoho Sheet adapter (REST API v2 over requests).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..errors import SheetAccessError
from .base import SheetAdapter, column_letter

logger = logging.getLogger(__name__)

ZOHO_API_BASE = "https://sheet.zoho.com/api/v2"


class ZohoSheetsAdapter(SheetAdapter):
    """Adapter writing to the first worksheet of a Zoho workbook.

    Zoho has no append call, so the next free row is located by reading the
    used rows page by page and taking one past the highest ``row_index``.
    Only the first cell and non-empty cells of a row are written.
    """

    backend = "zoho"

    # Request timeout in seconds
    TIMEOUT = 10

    # Rows read per request when looking for the last used row
    SCAN_ROWS = 1000

    # Header columns read per request, and the most read in total
    HEADER_WINDOW = 26
    MAX_COLUMNS = 702

    def __init__(
        self,
        access_token: str,
        session: Optional[requests.Session] = None,
        api_base: str = ZOHO_API_BASE,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the Zoho adapter.

        Args:
            access_token: Zoho OAuth access token
            session: Optional requests session (one is created otherwise)
            api_base: Zoho Sheet API base URL
            timeout: Request timeout in seconds
        """
        if not access_token:
            raise SheetAccessError("Zoho access token is required")
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout or self.TIMEOUT
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Zoho-oauthtoken {access_token}",
            "Content-Type": "application/json",
        })

    # ======================================================
    # HTTP
    # ======================================================

    def _request(self, method: str, path: str, action: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.api_base}/{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Zoho {action} request failed: {e}")
            raise SheetAccessError(f"Failed to {action}: {e}")

        if not response.ok:
            logger.error(f"Zoho {action} returned {response.status_code}: {response.text}")
            raise SheetAccessError(
                f"Failed to {action}: {response.text}",
                {"status": response.status_code},
            )

        try:
            return response.json()
        except ValueError:
            return {}

    def _worksheet(self, workbook_id: str) -> Tuple[Any, str]:
        data = self._request(
            "GET", "worksheets", "get sheets", params={"workbook_id": workbook_id}
        )
        sheets = data.get("data") or [{}]
        first = sheets[0] if isinstance(sheets[0], dict) else {}
        return first.get("sheet_id", 0), first.get("sheet_name", "Sheet1")

    def _write_cells(self, workbook_id: str, sheet_id: Any, cells: List[Dict], action: str) -> None:
        self._request(
            "POST",
            f"worksheets/{sheet_id}/cells",
            action,
            params={"workbook_id": workbook_id},
            json={"cells": cells},
        )

    # ======================================================
    # ADAPTER API
    # ======================================================

    def get_header_row(self, sheet_id: str) -> List[str]:
        """Read row 1 in windows of HEADER_WINDOW columns until one comes back short."""
        worksheet_id, _ = self._worksheet(sheet_id)

        headers: List[str] = []
        start = 0
        while start < self.MAX_COLUMNS:
            end = start + self.HEADER_WINDOW - 1
            data = self._request(
                "GET",
                f"worksheets/{worksheet_id}/cells",
                "get headers",
                params={
                    "workbook_id": sheet_id,
                    "range": f"{column_letter(start)}1:{column_letter(end)}1",
                },
            )
            window = parse_header_cells(data)
            # A padded window past the last header
            if start and not any(header.strip() for header in window):
                break
            headers.extend(window)
            if len(window) < self.HEADER_WINDOW:
                break
            start = end + 1

        return headers

    def update_header_row(self, sheet_id: str, headers: List[str]) -> None:
        worksheet_id, _ = self._worksheet(sheet_id)
        cells = [
            {"cell_address": f"{column_letter(i)}1", "value": header or ""}
            for i, header in enumerate(headers)
        ]
        self._write_cells(sheet_id, worksheet_id, cells, "update headers")
        logger.info(f"Updated Zoho header row of {sheet_id} ({len(headers)} columns)")

    def append_row(self, sheet_id: str, row: List[Optional[str]]) -> None:
        worksheet_id, _ = self._worksheet(sheet_id)
        next_row = self._next_row(sheet_id, worksheet_id, max(len(row), self.HEADER_WINDOW))

        cells = []
        for index, value in enumerate(row):
            text = "" if value is None else str(value).strip()
            if index == 0 or text:
                cells.append({"cell_address": f"{column_letter(index)}{next_row}", "value": text})

        self._write_cells(sheet_id, worksheet_id, cells, "insert data")
        logger.info(f"Inserted Zoho row {next_row} in {sheet_id}")

    def _next_row(self, workbook_id: str, worksheet_id: Any, width: int) -> int:
        """Scan data rows SCAN_ROWS at a time until a window holds no used row.

        A failed lookup raises instead of defaulting, so a row is never
        overwritten.
        """
        last_column = column_letter(width - 1)
        last_row = 1
        start = 2
        while True:
            end = start + self.SCAN_ROWS - 1
            data = self._request(
                "GET",
                f"worksheets/{worksheet_id}/cells",
                "find last row",
                params={"workbook_id": workbook_id, "range": f"A{start}:{last_column}{end}"},
            )
            window_last = 0
            for row in data.get("data") or []:
                if not isinstance(row, dict):
                    continue
                row_index = row.get("row_index") or row.get("row") or 1
                window_last = max(window_last, int(row_index))

            # Empty window, or a response that ignored the range
            if window_last < start:
                break
            last_row = window_last
            start = end + 1

        return last_row + 1

    def close(self) -> None:
        if self._owns_session:
            self._session.close()


def parse_header_cells(data: Dict[str, Any]) -> List[str]:
    """Read the header values from a Zoho cells response.

    Zoho returns the first row either as ``{"cells": [...]}``, as a bare
    list of cells, or as a row object carrying ``row_index``.
    """
    rows = data.get("data") or []
    if not rows:
        return []

    first = rows[0]
    if isinstance(first, dict) and isinstance(first.get("cells"), list):
        if first.get("row_index", 1) not in (0, 1):
            return []
        cells = first["cells"]
    elif isinstance(first, list):
        cells = first
    else:
        return []

    headers = []
    for cell in cells:
        if isinstance(cell, dict):
            value = cell.get("value")
        else:
            value = cell
        headers.append("" if value is None else str(value))
    return headers
