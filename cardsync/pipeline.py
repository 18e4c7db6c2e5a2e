"""
Business Card to Sheet Pipeline
Wires recognition, field extraction and sheet saving for the API layer.

RECOGNIZER CHOICE:
1. Google Cloud Vision when an API key is configured
2. EasyOCR (offline) otherwise
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

from .errors import SheetConfigurationError
from .extractor import FIELD_KEYS, ContactRecord, FieldExtractor
from .ocr import EasyOCRRecognizer, VisionRecognizer
from .service import SheetSaveService
from .sheets import create_sheet_adapter, parse_sheet_id

logger = logging.getLogger(__name__)


class CardSyncPipeline:
    """Scan-to-sheet pipeline.

    Holds the recognizer, the extractor and the save service. Sheet
    adapters are not held here: each save builds its own adapter from the
    request credentials (or configured defaults) and closes it afterwards.
    """

    def __init__(
        self,
        recognizer=None,
        extractor: Optional[FieldExtractor] = None,
        save_service: Optional[SheetSaveService] = None,
        default_provider: str = "google",
        service_account_file: Optional[str] = None,
        zoho_access_token: Optional[str] = None,
        zoho_api_base: Optional[str] = None,
        sheets_timeout: Optional[float] = None,
        sheets_num_retries: int = 0,
    ):
        self.recognizer = recognizer or EasyOCRRecognizer()
        self.extractor = extractor or FieldExtractor()
        self.save_service = save_service or SheetSaveService()

        self.default_provider = default_provider
        self.service_account_file = service_account_file
        self.zoho_access_token = zoho_access_token
        self.zoho_api_base = zoho_api_base
        self.sheets_timeout = sheets_timeout
        self.sheets_num_retries = sheets_num_retries

        # Backing store for the "memory" provider
        self.memory_sheets: Dict[str, Any] = {}

        logger.info(
            f"CardSyncPipeline initialized with recognizer: {self.recognizer.method}, "
            f"default sheet provider: {self.default_provider}"
        )

    @classmethod
    def from_config(cls, config) -> "CardSyncPipeline":
        """Build a pipeline from a Config class."""
        engine = (config.OCR_ENGINE or "auto").lower()
        use_vision = engine == "vision" or (engine == "auto" and config.GOOGLE_VISION_API_KEY)

        if use_vision:
            recognizer = VisionRecognizer(
                api_key=config.GOOGLE_VISION_API_KEY,
                min_text_length=config.OCR_MIN_TEXT_LENGTH,
            )
        else:
            recognizer = EasyOCRRecognizer(
                languages=config.OCR_LANGUAGES,
                gpu=config.OCR_GPU,
                model_dir=config.OCR_MODEL_DIR,
                min_confidence=config.OCR_MIN_CONFIDENCE,
                min_text_length=config.OCR_MIN_TEXT_LENGTH,
            )

        return cls(
            recognizer=recognizer,
            save_service=SheetSaveService(serialize=config.SERIALIZE_SAVES),
            default_provider=config.SHEETS_PROVIDER,
            service_account_file=config.GOOGLE_SERVICE_ACCOUNT_FILE,
            zoho_access_token=config.ZOHO_ACCESS_TOKEN,
            zoho_api_base=config.ZOHO_API_BASE,
            sheets_timeout=config.SHEETS_TIMEOUT,
            sheets_num_retries=config.SHEETS_NUM_RETRIES,
        )

    # ======================================================
    # EXTRACTION
    # ======================================================

    def process_text(self, text: str, ocr_method: Optional[str] = None) -> Dict:
        """Extract a contact record from already recognized text."""
        record = self.extractor.extract(text, ocr_method=ocr_method)
        return {
            "success": True,
            "contact_data": record.to_dict(),
            "fields_found": sum(1 for key in FIELD_KEYS if record.get(key)),
        }

    def process_image(self, image_bytes: bytes) -> Dict:
        """
        Recognize a card image and extract its contact record.

        Recognizer failures (ExtractionFailure) propagate to the caller.

        Args:
            image_bytes: Encoded card image
        """
        start_time = time.time()

        ocr_result = self.recognizer.recognize(image_bytes)
        result = self.process_text(ocr_result["text"], ocr_method=ocr_result.get("method"))

        total_time = time.time() - start_time
        logger.info(f"Card processed in {total_time:.2f}s ({ocr_result.get('method')})")

        result.update({
            "ocr_confidence": ocr_result.get("confidence"),
            "ocr_method": ocr_result.get("method"),
            "processing_time_ms": int(total_time * 1000),
            "processed_at": datetime.utcnow().isoformat(),
        })
        return result

    # ======================================================
    # SAVE
    # ======================================================

    def save(
        self,
        record: ContactRecord,
        sheet_id: str,
        provider: Optional[str] = None,
        credentials: Optional[Dict] = None,
        access_token: Optional[str] = None,
    ) -> Dict:
        """
        Save a record to a sheet through a freshly built adapter.

        Args:
            record: Contact record to save
            sheet_id: Spreadsheet id or URL
            provider: ``google``, ``zoho`` or ``memory`` (defaults to config)
            credentials: Google service account JSON key
            access_token: Zoho OAuth access token

        Raises:
            SheetConfigurationError: Missing sheet id, provider or credentials
            SheetAccessError: Header row could not be read
            SheetSaveError: Header update or row append failed
        """
        provider = (provider or self.default_provider or "").lower()
        sheet_id = parse_sheet_id(provider, sheet_id)
        if not sheet_id:
            raise SheetConfigurationError("Spreadsheet id is required")

        if provider == "memory":
            self.memory_sheets.setdefault(sheet_id, [[]])

        adapter = create_sheet_adapter(
            provider,
            credentials=credentials,
            access_token=access_token or self.zoho_access_token,
            service_account_file=self.service_account_file,
            memory_sheets=self.memory_sheets,
            timeout=self.sheets_timeout,
            num_retries=self.sheets_num_retries,
            zoho_api_base=self.zoho_api_base,
        )

        with adapter:
            logger.info(f"Saving contact to {provider} sheet {sheet_id}")
            result = self.save_service.save(record, sheet_id, adapter)

        result["provider"] = provider
        return result

    # ======================================================
    # STATUS
    # ======================================================

    def get_status(self) -> Dict:
        """Get pipeline status information."""
        return {
            "recognizer": self.recognizer.get_status(),
            "default_sheet_provider": self.default_provider,
            "google_service_account_configured": self.service_account_file is not None,
            "zoho_token_configured": self.zoho_access_token is not None,
            "serialize_saves": self.save_service.serialize,
        }
