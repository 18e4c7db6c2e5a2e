"""
CardSync: business card text to spreadsheet rows.
"""

from .extractor import ContactRecord, FieldExtractor, FIELD_KEYS, extract_card_data
from .schema import map_columns
from .composer import ComposedRow, compose_row
from .service import SheetSaveService, save_record
from .pipeline import CardSyncPipeline
from .errors import (
    CardSyncError,
    ExtractionFailure,
    SheetAccessError,
    SheetConfigurationError,
    SheetSaveError,
)

__all__ = [
    "ContactRecord",
    "FieldExtractor",
    "FIELD_KEYS",
    "extract_card_data",
    "map_columns",
    "ComposedRow",
    "compose_row",
    "SheetSaveService",
    "save_record",
    "CardSyncPipeline",
    "CardSyncError",
    "ExtractionFailure",
    "SheetAccessError",
    "SheetConfigurationError",
    "SheetSaveError",
]
