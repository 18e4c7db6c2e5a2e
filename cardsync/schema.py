"""
Column mapping between contact fields and an existing sheet header row.
"""

import logging
from typing import Dict, List, Optional, Sequence, Set

from .extractor import FIELD_KEYS

logger = logging.getLogger(__name__)

# Header keywords per semantic key; a header matches when it contains any of them
COLUMN_KEYWORDS: Dict[str, List[str]] = {
    "name": ["name", "full name", "person", "contact name"],
    "email": ["email", "e-mail", "email address", "mail"],
    "phone": ["phone", "telephone", "mobile", "cell", "phone number"],
    "linkedin": ["linkedin", "linkedin profile", "linkedin url", "linked in"],
    "company": ["company", "organization", "org", "firm", "business"],
    "jobTitle": ["title", "job title", "position", "role", "designation"],
    "website": ["website", "url", "web", "site"],
    "address": ["address", "location", "street", "office"],
}

# key -> existing column index, or None when a new column is needed
ColumnMapping = Dict[str, Optional[int]]


def find_column(
    headers: Sequence,
    keywords: Sequence[str],
    claimed: Optional[Set[int]] = None,
) -> Optional[int]:
    """Find the first header containing any of the keywords.

    Args:
        headers: Header row cells (non-string cells are compared as text)
        keywords: Lowercase keywords to look for
        claimed: Column indexes already taken by another field

    Returns:
        Index of the first matching header, or None if nothing matches
    """
    claimed = claimed or set()
    for index, header in enumerate(headers):
        if index in claimed:
            continue
        text = str(header if header is not None else "").lower().strip()
        if any(keyword in text for keyword in keywords):
            return index
    return None


def map_columns(headers: Sequence) -> ColumnMapping:
    """Assign every contact field to an existing column or mark it unassigned.

    Fields are matched in FIELD_KEYS order and a column holds at most one
    field, so "Email Address" goes to email and not also to address.

    The mapping reflects the header row passed in and must be recomputed
    before each save, since the sheet can change between scans.
    """
    mapping: ColumnMapping = {}
    claimed: Set[int] = set()
    for key in FIELD_KEYS:
        index = find_column(headers, COLUMN_KEYWORDS[key], claimed)
        mapping[key] = index
        if index is not None:
            claimed.add(index)
    logger.debug(f"Column mapping for {len(headers)} headers: {mapping}")
    return mapping
