"""
Sheet adapters and the factory that builds them from request/config values.
"""

import re
import logging
from typing import Any, Dict, Optional

from ..errors import SheetConfigurationError
from .base import SheetAdapter, column_letter
from .memory import InMemorySheetAdapter

logger = logging.getLogger(__name__)

PROVIDERS = ("google", "zoho", "memory")

_GOOGLE_ID = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")
_ZOHO_ID = re.compile(r"sheet\.zoho\.com/sheet/([a-zA-Z0-9_-]+)|sheet\.zoho\.com/([a-zA-Z0-9_-]+)")


def parse_sheet_id(provider: str, value: str) -> str:
    """Accept either a bare spreadsheet id or a spreadsheet URL.

    Args:
        provider: ``google`` or ``zoho``
        value: Id or URL as pasted by the user

    Returns:
        The spreadsheet / workbook id
    """
    value = (value or "").strip()
    if provider == "google":
        m = _GOOGLE_ID.search(value)
        if m:
            return m.group(1)
    elif provider == "zoho":
        m = _ZOHO_ID.search(value)
        if m:
            return m.group(1) or m.group(2)
    return value


def create_sheet_adapter(
    provider: str,
    credentials: Optional[Dict[str, Any]] = None,
    access_token: Optional[str] = None,
    service_account_file: Optional[str] = None,
    memory_sheets: Optional[Dict] = None,
    timeout: Optional[float] = None,
    num_retries: int = 0,
    zoho_api_base: Optional[str] = None,
) -> SheetAdapter:
    """Build a sheet adapter for ``provider``.

    The caller owns the returned adapter and should close it when done.

    Raises:
        SheetConfigurationError: Unknown provider or missing credentials
    """
    provider = (provider or "").lower()

    if provider == "google":
        from .google import GoogleSheetsAdapter

        if credentials is not None and not isinstance(credentials, dict):
            raise SheetConfigurationError(
                "Google credentials must be a service account JSON object",
                {"received": type(credentials).__name__},
            )
        if credentials:
            return GoogleSheetsAdapter.from_service_account_info(credentials, num_retries=num_retries)
        if service_account_file:
            return GoogleSheetsAdapter.from_service_account_file(
                service_account_file, num_retries=num_retries
            )
        raise SheetConfigurationError("Google Sheets configuration is incomplete: no credentials")

    if provider == "zoho":
        from .zoho import ZOHO_API_BASE, ZohoSheetsAdapter

        if access_token is not None and not isinstance(access_token, str):
            raise SheetConfigurationError(
                "Zoho access token must be a string",
                {"received": type(access_token).__name__},
            )
        if not access_token:
            raise SheetConfigurationError("Zoho Sheets configuration is incomplete: no access token")
        return ZohoSheetsAdapter(
            access_token,
            api_base=zoho_api_base or ZOHO_API_BASE,
            timeout=timeout,
        )

    if provider == "memory":
        return InMemorySheetAdapter(memory_sheets)

    raise SheetConfigurationError(
        f"Unknown sheet provider: {provider or '<empty>'}",
        {"allowed": list(PROVIDERS)},
    )


__all__ = [
    "PROVIDERS",
    "SheetAdapter",
    "InMemorySheetAdapter",
    "column_letter",
    "create_sheet_adapter",
    "parse_sheet_id",
]
