from __future__ import annotations

import pytest

from report_canvas.core.dataset import FieldCatalog, RecordSet, TableCatalog
from report_canvas.core.fields import AggregationType, DataField, DataType, FieldRole


def make_catalog() -> FieldCatalog:
    table = TableCatalog(
        id="campaigns",
        name="Campaigns",
        category_field="campaign",
        fields=(
            DataField("campaign", "Campaign", FieldRole.DIMENSION, DataType.STRING, table="campaigns"),
            DataField("platform", "Platform", FieldRole.DIMENSION, DataType.STRING, table="campaigns"),
            DataField("date", "Date", FieldRole.DIMENSION, DataType.DATE, table="campaigns"),
            DataField("spend", "Spend", FieldRole.METRIC, DataType.NUMBER, table="campaigns"),
            DataField("clicks", "Clicks", FieldRole.METRIC, DataType.NUMBER, table="campaigns"),
            DataField(
                "ctr", "CTR", FieldRole.METRIC, DataType.NUMBER, table="campaigns",
                aggregation=AggregationType.AVG,
            ),
        ),
    )
    return FieldCatalog([table], default_table="campaigns")


def make_records() -> list[dict]:
    return [
        {"campaign": "Spring", "platform": "Meta", "date": "2024-01-05", "spend": 100.0, "clicks": 10, "ctr": 1.0},
        {"campaign": "Spring", "platform": "Google", "date": "2024-01-20", "spend": 50.0, "clicks": 5, "ctr": 2.0},
        {"campaign": "Brand", "platform": "Meta", "date": "2024-02-03", "spend": 30.0, "clicks": 3, "ctr": 3.0},
        {"campaign": "retarget", "platform": "Meta", "date": "2024-03-11", "spend": 20.0, "clicks": 2, "ctr": 4.0},
    ]


@pytest.fixture
def catalog() -> FieldCatalog:
    return make_catalog()


@pytest.fixture
def records() -> RecordSet:
    return RecordSet(make_records(), source="test")
