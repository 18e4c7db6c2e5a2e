"""
Tests for Flask API routes.

Tests the REST API endpoints.
"""

import io
import json
import pytest
from unittest.mock import Mock, patch

from app import create_app
from cardsync.errors import ExtractionFailure, SheetAccessError, SheetSaveError
from cardsync.pipeline import CardSyncPipeline


CARD_TEXT = "Jane Doe\nAcme Solutions Inc\nSenior Engineer\njane.doe@acme.com\n(555) 123-4567"


class TestAPIRoutes:
    """Test cases for API routes."""

    @pytest.fixture
    def recognizer(self):
        """Create mocked recognizer."""
        recognizer = Mock()
        recognizer.method = "mock"
        recognizer.recognize.return_value = {"text": CARD_TEXT, "confidence": 0.9, "method": "mock"}
        recognizer.get_status.return_value = {"engine": "mock"}
        return recognizer

    @pytest.fixture
    def app(self, recognizer):
        """Create test Flask app."""
        pipeline = CardSyncPipeline(recognizer=recognizer, default_provider="memory")
        app = create_app("testing", pipeline=pipeline)
        app.config["TESTING"] = True
        return app

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return app.test_client()

    def test_root_endpoint(self, client):
        """Test root endpoint returns API info."""
        response = client.get("/")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert "name" in data
        assert "version" in data
        assert "endpoints" in data

    def test_info_endpoint(self, client):
        """Test /api/info matches the root endpoint."""
        response = client.get("/api/info")

        assert response.status_code == 200
        assert json.loads(response.data)["endpoints"]["save"] == "POST /api/save"

    def test_health_check(self, client):
        """Test health check endpoint."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["status"] == "healthy"

    def test_status_endpoint(self, client):
        """Test status endpoint."""
        response = client.get("/api/status")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["data"]["pipeline_status"]["recognizer"] == {"engine": "mock"}
        assert data["data"]["api_keys_configured"]["google_vision"] is False

    def test_unknown_route(self, client):
        """Test 404 returns JSON error."""
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert json.loads(response.data)["success"] is False

    # =========================
    # SCAN
    # =========================

    def test_scan_no_file(self, client):
        """Test scan endpoint without file."""
        response = client.post("/api/scan")

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["success"] is False

    def test_scan_empty_filename(self, client):
        """Test scan endpoint with empty filename."""
        response = client.post(
            "/api/scan",
            data={"file": (io.BytesIO(b""), "")},
            content_type="multipart/form-data"
        )

        assert response.status_code == 400

    def test_scan_invalid_extension(self, client):
        """Test scan endpoint with disallowed file type."""
        response = client.post(
            "/api/scan",
            data={"file": (io.BytesIO(b"text"), "card.txt")},
            content_type="multipart/form-data"
        )

        assert response.status_code == 400
        assert "not allowed" in json.loads(response.data)["error"]

    def test_scan_success(self, client, recognizer):
        """Test scanning a card image."""
        response = client.post(
            "/api/scan",
            data={"file": (io.BytesIO(b"fake image data"), "card.jpg")},
            content_type="multipart/form-data"
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["data"]["contact_data"]["name"] == "Jane Doe"
        recognizer.recognize.assert_called_once_with(b"fake image data")

    def test_scan_extraction_failure(self, client, recognizer):
        """Test recognizer failure maps to 422."""
        recognizer.recognize.side_effect = ExtractionFailure("No text detected in image")

        response = client.post(
            "/api/scan",
            data={"file": (io.BytesIO(b"fake image data"), "card.png")},
            content_type="multipart/form-data"
        )

        assert response.status_code == 422
        data = json.loads(response.data)
        assert data["success"] is False
        assert data["error"] == "No text detected in image"

    def test_scan_too_large(self, app, client):
        """Test oversized uploads are rejected with 413."""
        app.config["MAX_CONTENT_LENGTH"] = 1024

        response = client.post(
            "/api/scan",
            data={"file": (io.BytesIO(b"x" * 4096), "card.png")},
            content_type="multipart/form-data"
        )

        assert response.status_code == 413

    # =========================
    # PARSE TEXT
    # =========================

    def test_parse_text(self, client):
        """Test parse text endpoint."""
        response = client.post("/api/parse-text", json={"text": CARD_TEXT})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["data"]["contact_data"]["company"] == "Acme Solutions Inc"
        assert data["data"]["contact_data"]["jobTitle"] == "Senior Engineer"

    def test_parse_text_missing_text(self, client):
        """Test parse text endpoint without text."""
        response = client.post("/api/parse-text", json={})

        assert response.status_code == 400

    def test_parse_text_not_json(self, client):
        """Test parse text endpoint with a non-JSON body."""
        response = client.post("/api/parse-text", data="plain", content_type="text/plain")

        assert response.status_code == 400

    def test_parse_text_list_body(self, client):
        """Test a JSON list body maps to 400."""
        response = client.post("/api/parse-text", json=["Jane Doe"])

        assert response.status_code == 400

    # =========================
    # SAVE
    # =========================

    def test_save_to_memory(self, app, client):
        """Test saving a record to the memory provider."""
        response = client.post("/api/save", json={
            "record": {"name": "Jane Doe", "email": "jane.doe@acme.com", "jobTitle": "CTO"},
            "sheet_id": "contacts",
        })

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["provider"] == "memory"
        rows = app.extensions["cardsync"].memory_sheets["contacts"]
        assert rows[1][5] == "CTO"

    def test_save_missing_record(self, client):
        """Test save without a record."""
        response = client.post("/api/save", json={"sheet_id": "contacts"})

        assert response.status_code == 400

    def test_save_missing_sheet_id(self, client):
        """Test save without a sheet id."""
        response = client.post("/api/save", json={"record": {"name": "Jane"}})

        assert response.status_code == 400

    def test_save_body_not_object(self, client):
        """Test a JSON list body maps to 400."""
        response = client.post("/api/save", json=[{"record": {"name": "Jane"}}])

        assert response.status_code == 400

    def test_save_sheet_id_not_string(self, client):
        """Test a numeric sheet id maps to 400."""
        response = client.post("/api/save", json={"record": {"name": "Jane"}, "sheet_id": 42})

        assert response.status_code == 400

    def test_save_unknown_provider(self, client):
        """Test unknown provider maps to 400."""
        response = client.post("/api/save", json={
            "record": {"name": "Jane"},
            "sheet_id": "contacts",
            "provider": "excel",
        })

        assert response.status_code == 400
        assert json.loads(response.data)["details"]["allowed"] == ["google", "zoho", "memory"]

    def test_save_missing_credentials(self, client):
        """Test Google save without credentials maps to 400."""
        response = client.post("/api/save", json={
            "record": {"name": "Jane"},
            "sheet_id": "abc",
            "provider": "google",
        })

        assert response.status_code == 400

    def test_save_credentials_not_object(self, client):
        """Test Google credentials given as a string map to 400."""
        response = client.post("/api/save", json={
            "record": {"name": "Jane"},
            "sheet_id": "abc",
            "provider": "google",
            "credentials": "not-a-dict",
        })

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["success"] is False
        assert data["details"]["received"] == "str"

    def test_save_access_error(self, app, client):
        """Test backend access failures map to 502."""
        pipeline = app.extensions["cardsync"]
        with patch.object(pipeline, "save", side_effect=SheetAccessError("Permission denied")):
            response = client.post("/api/save", json={
                "record": {"name": "Jane"},
                "sheet_id": "abc",
            })

        assert response.status_code == 502
        assert json.loads(response.data)["error"] == "Permission denied"

    def test_save_write_error(self, app, client):
        """Test failed writes map to 502 with the failed stage."""
        pipeline = app.extensions["cardsync"]
        error = SheetSaveError("Failed to save to zoho sheet: boom", stage="append_row", backend="zoho")
        with patch.object(pipeline, "save", side_effect=error):
            response = client.post("/api/save", json={
                "record": {"name": "Jane"},
                "sheet_id": "abc",
                "provider": "zoho",
                "access_token": "tok",
            })

        assert response.status_code == 502
        assert json.loads(response.data)["details"]["stage"] == "append_row"
