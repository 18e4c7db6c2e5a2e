"""
Tests for the save service.

Tests header reconciliation and row appends through the in-memory adapter
and mocked adapters.
"""

import threading
import pytest
from unittest.mock import Mock

from cardsync.errors import SheetAccessError, SheetSaveError
from cardsync.extractor import ContactRecord
from cardsync.service import SheetSaveService, save_record
from cardsync.sheets.memory import InMemorySheetAdapter


class TestSaveRecord:
    """Test cases for save_record."""

    @pytest.fixture
    def record(self):
        """Create a sample record."""
        return ContactRecord(
            name="Jane Doe",
            email="jane.doe@acme.com",
            phone="(555) 123-4567",
            linkedin="https://www.linkedin.com/in/janedoe",
            company="Acme Solutions Inc",
            job_title="Senior Engineer",
            website="https://www.acme.com",
            address="123 Main Street, Springfield, IL 62704",
        )

    @pytest.fixture
    def adapter(self):
        """Create in-memory adapter with an empty sheet."""
        adapter = InMemorySheetAdapter()
        adapter.create_sheet("sheet-1")
        return adapter

    def test_save_to_sheet_without_headers(self, record, adapter):
        """Test all 8 columns are created in key order and one row appended."""
        result = save_record(record, "sheet-1", adapter)

        assert result["success"] is True
        assert result["sheet_id"] == "sheet-1"
        assert adapter.get_header_row("sheet-1") == [
            "Name", "Email", "Phone", "Linkedin", "Company", "Job Title", "Website", "Address",
        ]
        assert adapter.data_rows("sheet-1") == [[
            "Jane Doe",
            "jane.doe@acme.com",
            "(555) 123-4567",
            "https://www.linkedin.com/in/janedoe",
            "Acme Solutions Inc",
            "Senior Engineer",
            "https://www.acme.com",
            "123 Main Street, Springfield, IL 62704",
        ]]
        assert len(result["columns_added"]) == 8

    def test_second_save_adds_no_columns(self, record, adapter):
        """Test a second save reuses the columns created by the first."""
        save_record(record, "sheet-1", adapter)
        result = save_record(ContactRecord(name="John Smith"), "sheet-1", adapter)

        assert result["columns_added"] == []
        assert len(adapter.get_header_row("sheet-1")) == 8
        assert adapter.data_rows("sheet-1")[1][0] == "John Smith"

    def test_existing_headers_are_matched(self, record):
        """Test values go to matching existing columns."""
        adapter = InMemorySheetAdapter()
        adapter.create_sheet("s", ["Email Address", "Full Name"])

        result = save_record(record, "s", adapter)

        row = adapter.data_rows("s")[0]
        assert row[0] == "jane.doe@acme.com"
        assert row[1] == "Jane Doe"
        assert "Phone" in result["columns_added"]
        assert adapter.get_header_row("s")[:2] == ["Email Address", "Full Name"]

    def test_header_read_failure_propagates(self, record):
        """Test a header read failure surfaces unchanged and nothing is written."""
        adapter = Mock()
        adapter.backend = "mock"
        adapter.get_header_row.side_effect = SheetAccessError("Permission denied")

        with pytest.raises(SheetAccessError):
            save_record(record, "s", adapter)

        adapter.update_header_row.assert_not_called()
        adapter.append_row.assert_not_called()

    def test_header_update_failure_prevents_append(self, record):
        """Test no row is appended when the header update fails."""
        adapter = Mock()
        adapter.backend = "mock"
        adapter.get_header_row.return_value = []
        adapter.update_header_row.side_effect = SheetAccessError("quota exceeded")

        with pytest.raises(SheetSaveError) as exc_info:
            save_record(record, "s", adapter)

        assert exc_info.value.stage == "update_header"
        assert "quota exceeded" in exc_info.value.message
        adapter.append_row.assert_not_called()

    def test_append_failure_after_header_update(self, record):
        """Test append failure reports its stage and leaves headers updated."""
        adapter = Mock()
        adapter.backend = "mock"
        adapter.get_header_row.return_value = ["Name"]
        adapter.append_row.side_effect = SheetAccessError("network down")

        with pytest.raises(SheetSaveError) as exc_info:
            save_record(record, "s", adapter)

        assert exc_info.value.stage == "append_row"
        assert exc_info.value.details["backend"] == "mock"
        adapter.update_header_row.assert_called_once()

    def test_no_header_update_when_all_mapped(self, record):
        """Test header row is not rewritten when every field has a column."""
        adapter = Mock()
        adapter.backend = "mock"
        adapter.get_header_row.return_value = [
            "Name", "Email", "Phone", "LinkedIn", "Company", "Title", "Website", "Address",
        ]

        save_record(record, "s", adapter)

        adapter.update_header_row.assert_not_called()
        adapter.append_row.assert_called_once()


class TestSheetSaveService:
    """Test cases for SheetSaveService."""

    def test_save_delegates(self):
        """Test a save through the service writes the row."""
        adapter = InMemorySheetAdapter()
        adapter.create_sheet("s")
        service = SheetSaveService()

        result = service.save(ContactRecord(name="Jane Doe"), "s", adapter)

        assert result["success"] is True
        assert "Jane Doe" in adapter.data_rows("s")[0]

    def test_lock_released_after_save(self):
        """Test a sheet lock is held during a save and dropped afterwards."""
        adapter = InMemorySheetAdapter()
        adapter.create_sheet("s")
        service = SheetSaveService()
        seen = []
        read_headers = adapter.get_header_row

        def get_header_row(sheet_id):
            seen.append(service.active_sheets())
            return read_headers(sheet_id)

        adapter.get_header_row = get_header_row

        for i in range(3):
            adapter.create_sheet(f"sheet-{i}")
            service.save(ContactRecord(name=f"Person {i}"), f"sheet-{i}", adapter)

        assert seen == [1, 1, 1]
        assert service.active_sheets() == 0

    def test_lock_released_after_failed_save(self):
        """Test a failed save does not leave its lock behind."""
        adapter = Mock()
        adapter.backend = "mock"
        adapter.get_header_row.side_effect = SheetAccessError("Permission denied")
        service = SheetSaveService()

        with pytest.raises(SheetAccessError):
            service.save(ContactRecord(name="Jane Doe"), "s", adapter)

        assert service.active_sheets() == 0

    def test_unserialized_save_keeps_no_locks(self):
        """Test no locks are created when serialization is off."""
        adapter = InMemorySheetAdapter()
        adapter.create_sheet("s")
        service = SheetSaveService(serialize=False)
        seen = []
        read_headers = adapter.get_header_row

        def get_header_row(sheet_id):
            seen.append(service.active_sheets())
            return read_headers(sheet_id)

        adapter.get_header_row = get_header_row

        service.save(ContactRecord(name="Jane Doe"), "s", adapter)

        assert seen == [0]
        assert service.active_sheets() == 0

    def test_concurrent_saves_add_columns_once(self):
        """Test concurrent saves to one sheet do not duplicate columns."""
        adapter = InMemorySheetAdapter()
        adapter.create_sheet("s")
        service = SheetSaveService()
        errors = []

        def worker(i):
            try:
                service.save(ContactRecord(name=f"Person {i}", email=f"p{i}@x.com"), "s", adapter)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(adapter.get_header_row("s")) == 8
        assert len(adapter.data_rows("s")) == 10
