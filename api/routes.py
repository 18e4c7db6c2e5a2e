"""
API routes for the CardSync API.

Flask REST API endpoints for scanning business cards and saving
contact records to spreadsheets.
"""

import logging

from flask import Blueprint, request, jsonify, current_app

from cardsync.errors import (
    CardSyncError,
    ExtractionFailure,
    SheetAccessError,
    SheetConfigurationError,
    SheetSaveError,
)
from cardsync.extractor import ContactRecord
from cardsync.pipeline import CardSyncPipeline

logger = logging.getLogger(__name__)

# Create Blueprint
api_bp = Blueprint("api", __name__, url_prefix="/api")


def get_pipeline() -> CardSyncPipeline:
    """Get the pipeline attached to the current app."""
    return current_app.extensions["cardsync"]


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed.

    Args:
        filename: Name of the file

    Returns:
        True if allowed, False otherwise
    """
    allowed = current_app.config["ALLOWED_EXTENSIONS"]
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed


def error_response(error: CardSyncError):
    """Map a CardSync error to a JSON error response."""
    if isinstance(error, SheetConfigurationError):
        status = 400
    elif isinstance(error, ExtractionFailure):
        status = 422
    elif isinstance(error, (SheetAccessError, SheetSaveError)):
        status = 502
    else:
        status = 500

    body = {"success": False, "error": error.message}
    if error.details:
        body["details"] = error.details
    return jsonify(body), status


@api_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint.

    Returns:
        JSON with health status
    """
    return jsonify({
        "success": True,
        "status": "healthy",
        "message": "CardSync API is running",
        "version": "1.0.0"
    }), 200


@api_bp.route("/status", methods=["GET"])
def get_status():
    """Get API and pipeline status.

    Returns:
        JSON with status information
    """
    config = current_app.config
    return jsonify({
        "success": True,
        "data": {
            "api_status": "running",
            "pipeline_status": get_pipeline().get_status(),
            "api_keys_configured": {
                "google_vision": bool(config.get("GOOGLE_VISION_API_KEY")),
                "google_sheets": bool(config.get("GOOGLE_SERVICE_ACCOUNT_FILE")),
                "zoho_sheets": bool(config.get("ZOHO_ACCESS_TOKEN"))
            }
        }
    }), 200


@api_bp.route("/scan", methods=["POST"])
def scan_card():
    """Scan a business card image.

    Expects:
        - multipart/form-data with 'file' field

    Returns:
        JSON with extracted contact data
    """
    if "file" not in request.files:
        return jsonify({
            "success": False,
            "error": "No file provided. Use 'file' field in form-data."
        }), 400

    file = request.files["file"]

    if file.filename == "":
        return jsonify({
            "success": False,
            "error": "No file selected"
        }), 400

    if not allowed_file(file.filename):
        allowed = ", ".join(sorted(current_app.config["ALLOWED_EXTENSIONS"]))
        return jsonify({
            "success": False,
            "error": f"File type not allowed. Allowed: {allowed}"
        }), 400

    logger.info(f"Scanning uploaded file: {file.filename}")

    try:
        result = get_pipeline().process_image(file.read())
    except ExtractionFailure as e:
        logger.warning(f"Extraction failed for {file.filename}: {e}")
        return error_response(e)

    return jsonify({
        "success": True,
        "data": result
    }), 200


@api_bp.route("/parse-text", methods=["POST"])
def parse_text():
    """Parse raw text (skip OCR).

    Expects:
        - JSON body with 'text' field

    Returns:
        JSON with parsed contact data
    """
    data = request.get_json(silent=True)

    if not isinstance(data, dict) or not isinstance(data.get("text"), str):
        return jsonify({
            "success": False,
            "error": "No text provided. Send JSON with 'text' field."
        }), 400

    result = get_pipeline().process_text(data["text"])

    return jsonify({
        "success": True,
        "data": result
    }), 200


@api_bp.route("/save", methods=["POST"])
def save_contact():
    """Save a contact record to a spreadsheet.

    Expects:
        - JSON body with 'record' and 'sheet_id' fields
        - Optional 'provider' (google, zoho, memory)
        - Optional 'credentials' (Google service account key) or
          'access_token' (Zoho OAuth token)

    Returns:
        JSON with the save result
    """
    data = request.get_json(silent=True)

    if not isinstance(data, dict) or not isinstance(data.get("record"), dict):
        return jsonify({
            "success": False,
            "error": "No record provided. Send JSON with 'record' object."
        }), 400

    if not data.get("sheet_id") or not isinstance(data["sheet_id"], str):
        return jsonify({
            "success": False,
            "error": "No sheet_id provided."
        }), 400

    if not isinstance(data.get("provider") or "", str):
        return jsonify({
            "success": False,
            "error": "provider must be a string."
        }), 400

    record = ContactRecord.from_dict(data["record"])

    try:
        result = get_pipeline().save(
            record,
            data["sheet_id"],
            provider=data.get("provider"),
            credentials=data.get("credentials"),
            access_token=data.get("access_token"),
        )
    except CardSyncError as e:
        logger.error(f"Error saving contact: {e}")
        return error_response(e)

    return jsonify(result), 200
