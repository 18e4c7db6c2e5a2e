"""
Google Sheets adapter (Sheets API v4, service account credentials).
"""

import logging
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import Error as GoogleApiError
from googleapiclient.errors import HttpError

from ..errors import SheetAccessError
from .base import SheetAdapter

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def _a1(sheet_name: str, cell_range: str) -> str:
    # Quote titles so names with spaces or punctuation resolve
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{cell_range}"


class GoogleSheetsAdapter(SheetAdapter):
    """Adapter writing to the first worksheet of a Google spreadsheet."""

    backend = "google"

    def __init__(self, service: Resource, num_retries: int = 0) -> None:
        """
        Initialize with an already built Sheets service.

        Args:
            service: ``googleapiclient`` Sheets v4 resource
            num_retries: Retries passed to each request's ``execute``
        """
        self._service = service
        self.num_retries = num_retries

    @classmethod
    def from_service_account_info(
        cls, info: Dict[str, Any], num_retries: int = 0
    ) -> "GoogleSheetsAdapter":
        """Build an adapter from a parsed service account JSON key."""
        try:
            creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            service = build("sheets", "v4", credentials=creds, cache_discovery=False)
        except (ValueError, KeyError, GoogleAuthError) as e:
            raise SheetAccessError(f"Failed to initialize Google Sheets client: {e}")
        logger.info("Google Sheets client initialized")
        return cls(service, num_retries=num_retries)

    @classmethod
    def from_service_account_file(cls, path: str, num_retries: int = 0) -> "GoogleSheetsAdapter":
        """Build an adapter from a service account JSON key file."""
        try:
            creds = service_account.Credentials.from_service_account_file(path, scopes=SCOPES)
            service = build("sheets", "v4", credentials=creds, cache_discovery=False)
        except (OSError, ValueError, KeyError, GoogleAuthError) as e:
            raise SheetAccessError(f"Failed to initialize Google Sheets client: {e}")
        logger.info(f"Google Sheets client initialized from {path}")
        return cls(service, num_retries=num_retries)

    def _execute(self, request, action: str, sheet_id: str) -> Dict[str, Any]:
        try:
            return request.execute(num_retries=self.num_retries) or {}
        except HttpError as e:
            logger.error(f"Google Sheets {action} failed for {sheet_id}: {e}")
            raise SheetAccessError(
                f"Failed to {action}: {e}",
                {"spreadsheet_id": sheet_id, "status": getattr(e, "status_code", None)},
            )
        except (GoogleApiError, httplib2.HttpLib2Error, GoogleAuthError, OSError) as e:
            logger.error(f"Google Sheets {action} failed for {sheet_id}: {e}")
            raise SheetAccessError(f"Failed to {action}: {e}", {"spreadsheet_id": sheet_id})

    def _sheet_name(self, sheet_id: str) -> str:
        metadata = self._execute(
            self._service.spreadsheets().get(spreadsheetId=sheet_id),
            "read spreadsheet metadata",
            sheet_id,
        )
        try:
            return metadata["sheets"][0]["properties"]["title"]
        except (KeyError, IndexError, TypeError):
            raise SheetAccessError(
                "Spreadsheet has no worksheets", {"spreadsheet_id": sheet_id}
            )

    def get_header_row(self, sheet_id: str) -> List[str]:
        sheet_name = self._sheet_name(sheet_id)
        response = self._execute(
            self._service.spreadsheets().values().get(
                spreadsheetId=sheet_id,
                range=_a1(sheet_name, "1:1"),
            ),
            "read header row",
            sheet_id,
        )
        values = response.get("values") or [[]]
        return [str(cell) for cell in values[0]]

    def update_header_row(self, sheet_id: str, headers: List[str]) -> None:
        sheet_name = self._sheet_name(sheet_id)
        self._execute(
            self._service.spreadsheets().values().update(
                spreadsheetId=sheet_id,
                range=_a1(sheet_name, "1:1"),
                valueInputOption="RAW",
                body={"values": [list(headers)]},
            ),
            "update header row",
            sheet_id,
        )
        logger.info(f"Updated header row of {sheet_id} ({len(headers)} columns)")

    def append_row(self, sheet_id: str, row: List[Optional[str]]) -> None:
        sheet_name = self._sheet_name(sheet_id)
        cells = ["" if value is None else value for value in row]
        self._execute(
            self._service.spreadsheets().values().append(
                spreadsheetId=sheet_id,
                range=_a1(sheet_name, "A1"),
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": [cells]},
            ),
            "append row",
            sheet_id,
        )
        logger.info(f"Appended row to {sheet_id}")

    def close(self) -> None:
        close = getattr(self._service, "close", None)
        if callable(close):
            close()
