"""
Row composition: places contact fields at their sheet positions.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .extractor import FIELD_KEYS, ContactRecord
from .schema import ColumnMapping

logger = logging.getLogger(__name__)


@dataclass
class ComposedRow:
    """Result of composing a record against a header row.

    Attributes:
        row: Cell values by column position; None marks an untouched cell
        updated_headers: Header row including newly appended columns, or
            None when the existing header row already covers every field
    """
    row: List[Optional[str]]
    updated_headers: Optional[List[str]] = None
    added_columns: List[str] = field(default_factory=list)


def header_label(key: str) -> str:
    """Derive a column label from a semantic key (``jobTitle`` -> ``Job Title``)."""
    spaced = re.sub(r"([A-Z])", r" \1", key).strip()
    return spaced[:1].upper() + spaced[1:]


def _place(row: List[Optional[str]], index: int, value: str) -> None:
    if index >= len(row):
        row.extend([None] * (index + 1 - len(row)))
    row[index] = value


def compose_row(
    record: ContactRecord,
    mapping: ColumnMapping,
    headers: Sequence[str],
) -> ComposedRow:
    """Build the positional row for a record.

    Fields mapped to an existing column land at that column. Unassigned
    fields get new columns after the last header, in FIELD_KEYS order, and
    a derived label is appended to a copy of the header row.

    Args:
        record: Contact record to write
        mapping: Column mapping computed from ``headers``
        headers: Current header row of the sheet

    Returns:
        ComposedRow with the row and, when columns were added, the new headers
    """
    working_headers = [h if h is not None else "" for h in headers]
    original_length = len(working_headers)
    next_column = original_length - 1
    row: List[Optional[str]] = []

    for key in FIELD_KEYS:
        value = record.get(key) or ""
        index = mapping.get(key)
        if index is not None:
            _place(row, index, value)
            continue

        next_column += 1
        _place(row, next_column, value)
        working_headers.append(header_label(key))

    if len(working_headers) > original_length:
        added = working_headers[original_length:]
        logger.debug(f"Adding columns: {added}")
        return ComposedRow(row=row, updated_headers=working_headers, added_columns=added)
    return ComposedRow(row=row, updated_headers=None)
