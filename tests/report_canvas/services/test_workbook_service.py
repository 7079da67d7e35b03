from __future__ import annotations

import json

import pytest

from report_canvas.core.state import ReportState
from report_canvas.services.storage import LocalFileSystemStorage
from report_canvas.services.workbook_service import WORKBOOK_FILE, WorkbookService
from report_canvas.validation.errors import ValidationError


@pytest.fixture
def service(tmp_path) -> WorkbookService:
    return WorkbookService(LocalFileSystemStorage(tmp_path))


def test_save_generates_id_and_load_returns_state(service):
    state = ReportState().to_dict()

    doc = service.save(state, name="  Q1 review ")
    loaded = service.load(doc.workbook_id)

    assert doc.workbook_id.startswith("wb-")
    assert doc.name == "Q1 review"
    assert loaded.name == "Q1 review"
    assert loaded.state == state


def test_save_with_id_overwrites(service):
    first = service.save(ReportState().to_dict(), name="A")

    second = service.save(ReportState().to_dict(), name="B", workbook_id=first.workbook_id)

    assert second.workbook_id == first.workbook_id
    assert service.list_ids() == [first.workbook_id]
    assert service.load(first.workbook_id).name == "B"


def test_blank_name_falls_back(service):
    assert service.save(ReportState().to_dict(), name="   ").name == "Untitled report"


def test_load_missing_or_corrupt_returns_none(service, tmp_path):
    assert service.load("wb-missing") is None

    (tmp_path / "wb-broken").mkdir()
    (tmp_path / "wb-broken" / WORKBOOK_FILE).write_text("{not json")
    assert service.load("wb-broken") is None


def test_load_rejects_documents_that_are_not_workbooks(service, tmp_path):
    (tmp_path / "wb-bad").mkdir()
    (tmp_path / "wb-bad" / WORKBOOK_FILE).write_text(json.dumps({"state": {"workbook": {"sheets": "nope"}}}))

    with pytest.raises(ValidationError):
        service.load("wb-bad")


def test_invalid_ids_are_rejected(service):
    with pytest.raises(ValueError):
        service.load("../etc")
    with pytest.raises(ValueError):
        service.delete("a/b")


def test_list_workbooks_skips_unreadable_entries(service, tmp_path):
    doc = service.save(ReportState().to_dict(), name="Kept")
    (tmp_path / "wb-broken").mkdir()
    (tmp_path / "wb-broken" / WORKBOOK_FILE).write_text("{not json")

    entries = service.list_workbooks()

    assert [e["workbook_id"] for e in entries] == [doc.workbook_id]
    assert entries[0]["name"] == "Kept"
    assert entries[0]["saved_at"] == doc.saved_at


def test_delete(service):
    doc = service.save(ReportState().to_dict(), name="Gone")

    assert service.delete(doc.workbook_id) is True
    assert service.load(doc.workbook_id) is None
    assert service.delete(doc.workbook_id) is False
