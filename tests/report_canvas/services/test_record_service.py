from __future__ import annotations

import json

import pytest

from report_canvas.core.exceptions import RecordSourceError
from report_canvas.services.record_service import RecordSource, read_records


def test_read_csv_turns_missing_cells_into_none(tmp_path):
    path = tmp_path / "ads.csv"
    path.write_text("campaign,spend\nSpring,10.5\nBrand,\n")

    records = read_records(path)

    assert records == [
        {"campaign": "Spring", "spend": 10.5},
        {"campaign": "Brand", "spend": None},
    ]
    assert type(records[0]["spend"]) is float


def test_read_json_records(tmp_path):
    path = tmp_path / "ads.json"
    path.write_text(json.dumps([{"campaign": "Spring", "date": "2024-01-05", "clicks": 3}]))

    records = read_records(path)

    assert records == [{"campaign": "Spring", "date": "2024-01-05", "clicks": 3}]


def test_unsupported_extension(tmp_path):
    path = tmp_path / "ads.parquet"
    path.write_bytes(b"")

    with pytest.raises(RecordSourceError):
        read_records(path)


def test_record_source_keeps_last_good_records(tmp_path):
    path = tmp_path / "ads.csv"
    path.write_text("campaign,spend\nSpring,1\n")
    source = RecordSource(path)
    assert len(source.records) == 1

    path.unlink()
    reloaded = source.reload()

    assert len(reloaded) == 1
    assert reloaded.records[0]["campaign"] == "Spring"


def test_record_source_without_file_is_empty(tmp_path):
    assert len(RecordSource(None).records) == 0
    assert len(RecordSource(tmp_path / "missing.csv").records) == 0
