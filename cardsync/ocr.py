"""
Text recognizers for business card images.

A recognizer turns image bytes into text. EasyOCR runs locally; Google
Cloud Vision is used when an API key is configured. Both raise
ExtractionFailure when the image yields no usable text.
"""
import base64
import logging
from typing import Dict, List, Optional

import cv2
import numpy as np
import requests

from .errors import ExtractionFailure

logger = logging.getLogger(__name__)


def decode_image(image_bytes: bytes) -> np.ndarray:
    """Decode uploaded image bytes into a BGR array."""
    if not image_bytes:
        raise ExtractionFailure("Empty image")
    img = cv2.imdecode(np.frombuffer(image_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)
    if img is None:
        raise ExtractionFailure("Could not decode image")
    return img


def _check_text(text: str, min_length: int, method: str) -> str:
    text = (text or "").strip()
    if not text:
        raise ExtractionFailure("No text detected in image", {"method": method})
    if len(text) < min_length:
        raise ExtractionFailure(
            f"Detected text too short ({len(text)} characters)",
            {"method": method, "text": text},
        )
    return text


class EasyOCRRecognizer:
    """Offline recognizer backed by EasyOCR."""

    method = "easyocr"

    def __init__(
        self,
        languages: List[str] = None,
        gpu: bool = False,
        model_dir: Optional[str] = None,
        min_confidence: float = 0.15,
        min_text_length: int = 5,
    ):
        """
        Initialize the recognizer.

        The EasyOCR reader loads its models on first use.

        Args:
            languages: EasyOCR language codes
            gpu: Use GPU for OCR
            model_dir: Directory for model storage
            min_confidence: Text regions below this confidence are dropped
            min_text_length: Shorter recognized text is treated as a failure
        """
        self.languages = languages or ["en"]
        self.gpu = gpu
        self.model_dir = model_dir
        self.min_confidence = min_confidence
        self.min_text_length = min_text_length
        self._reader = None

    @property
    def reader(self):
        if self._reader is None:
            import easyocr

            logger.info(f"Initializing EasyOCR with languages: {self.languages}")
            self._reader = easyocr.Reader(
                lang_list=self.languages,
                gpu=self.gpu,
                model_storage_directory=self.model_dir,
                verbose=False,
            )
        return self._reader

    def recognize(self, image_bytes: bytes) -> Dict:
        """
        Recognize text on a card image.

        Args:
            image_bytes: Encoded image (PNG, JPEG, ...)

        Returns:
            Dictionary with ``text``, ``confidence`` and ``method``

        Raises:
            ExtractionFailure: Image unreadable, or no/too little text found
        """
        img = decode_image(image_bytes)

        results = self.reader.readtext(img, detail=1, paragraph=False)

        # Top-to-bottom by the top-left corner of each box
        results = sorted(results, key=lambda r: r[0][0][1])

        lines = []
        confidences = []
        for bbox, text, confidence in results:
            text = text.strip()
            if confidence >= self.min_confidence and text:
                lines.append(text)
                confidences.append(confidence)

        text = _check_text("\n".join(lines), self.min_text_length, self.method)

        # Longer regions weigh more in the overall confidence
        weights = [len(line) for line in lines]
        confidence = sum(c * w for c, w in zip(confidences, weights)) / sum(weights)

        logger.info(f"Recognized {len(lines)} lines with {confidence:.2%} confidence")
        return {"text": text, "confidence": confidence, "method": self.method}

    def get_status(self) -> Dict:
        return {
            "engine": self.method,
            "languages": self.languages,
            "gpu": self.gpu,
            "loaded": self._reader is not None,
        }


class VisionRecognizer:
    """Recognizer backed by the Google Cloud Vision REST API."""

    method = "google_vision"

    API_URL = "https://vision.googleapis.com/v1/images:annotate"

    # Request timeout in seconds
    TIMEOUT = 30

    def __init__(self, api_key: str, min_text_length: int = 5, timeout: Optional[float] = None):
        if not api_key:
            raise ValueError("Google Vision API key is required")
        self.api_key = api_key
        self.min_text_length = min_text_length
        self.timeout = timeout or self.TIMEOUT

    def recognize(self, image_bytes: bytes) -> Dict:
        """Recognize text with Vision ``TEXT_DETECTION``.

        Raises:
            ExtractionFailure: Request failed, or no/too little text found
        """
        if not image_bytes:
            raise ExtractionFailure("Empty image")

        payload = {
            "requests": [{
                "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
            }]
        }

        try:
            response = requests.post(
                self.API_URL,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Vision API request failed: {e}")
            raise ExtractionFailure(f"Vision API request failed: {e}", {"method": self.method})

        result = (data.get("responses") or [{}])[0]
        if "error" in result:
            message = result["error"].get("message", "unknown error")
            raise ExtractionFailure(f"Vision API error: {message}", {"method": self.method})

        text = (result.get("fullTextAnnotation") or {}).get("text")
        if not text and result.get("textAnnotations"):
            text = result["textAnnotations"][0].get("description", "")

        text = _check_text(text, self.min_text_length, self.method)
        logger.info(f"Vision API recognized {len(text.splitlines())} lines")
        return {"text": text, "confidence": None, "method": self.method}

    def get_status(self) -> Dict:
        return {"engine": self.method, "api_key_configured": True}
