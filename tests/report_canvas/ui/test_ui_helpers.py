from __future__ import annotations

import base64
import json
from datetime import date

import pytest
from dash import dcc

from report_canvas.core.actions import CreatePanel, CreateSlicer, CreateVisual, SetNumericRange
from report_canvas.core.composition import ChartType, LayoutType, SlicerType, VisualProperties
from report_canvas.core.predicates import DateRange, FilterValue, NumericRange
from report_canvas.core.state import ReportState
from report_canvas.ui.callbacks.callbacks_editing import property_changes
from report_canvas.ui.callbacks.callbacks_filters import clicked_category
from report_canvas.ui.callbacks.callbacks_intents import drag_payload
from report_canvas.ui.callbacks.callbacks_io import decode_upload
from report_canvas.ui.callbacks.callbacks_render import describe_filter, filter_summary
from report_canvas.ui.layout.build_canvas import build_canvas_children, build_slicer_body
from report_canvas.views import default_registry


def _upload(obj) -> str:
    return "data:application/json;base64," + base64.b64encode(json.dumps(obj).encode()).decode()


def test_decode_upload_reads_json_data_urls():
    assert decode_upload(_upload({"workbook": {}})) == {"workbook": {}}

    with pytest.raises(ValueError):
        decode_upload("data:application/json;base64,!!!")
    with pytest.raises(ValueError):
        decode_upload("data:text/plain;base64," + base64.b64encode(b"not json").decode())


def test_clicked_category_prefers_pie_label():
    assert clicked_category({"points": [{"x": "Spring", "y": 3}]}) == "Spring"
    assert clicked_category({"points": [{"label": "Brand", "value": 3}]}) == "Brand"
    assert clicked_category({"points": []}) is None
    assert clicked_category(None) is None


def test_property_changes_only_reports_differences():
    props = VisualProperties()

    unchanged = property_changes(props, props.title, ["show_title", "show_data_labels"], props.primary_color, "grouped")
    changed = property_changes(props, "Spend", ["show_legend"], "#ff0000", "stacked")

    assert unchanged == {}
    assert changed == {
        "title": "Spend",
        "show_title": False,
        "show_legend": True,
        "show_data_labels": False,
        "primary_color": "#ff0000",
        "bar_chart_mode": "stacked",
    }


def test_drag_payload_nonce_makes_repeated_drops_distinct():
    first = drag_payload("component-bar", "canvas")
    second = drag_payload("component-bar", "canvas")

    assert first["source_id"] == second["source_id"] == "component-bar"
    assert first["nonce"] != second["nonce"]


def test_describe_filter():
    assert describe_filter(FilterValue("spend", numeric_range=NumericRange(10, 50.5))) == "spend: 10 to 50.5"
    assert describe_filter(FilterValue("date", date_range=DateRange(date(2024, 1, 1), None))) == (
        "date: 2024-01-01 to ..."
    )
    assert describe_filter(FilterValue("platform", values=["a", "b", "c", "d", "e"])) == "platform: a, b, c (+2)"


def test_filter_summary_counts_records(catalog, records):
    state = ReportState(catalog=catalog, records=records)
    assert filter_summary(state) == "No filters"

    state.dispatch(CreateSlicer(SlicerType.NUMERIC_RANGE, "spend"))
    state.dispatch(SetNumericRange(state.sheet.slicers[0].id, 40, 200))

    assert filter_summary(state) == "spend: 40 to 200 (2 of 4 records)"


def test_canvas_children_for_empty_and_filled_sheets(catalog, records):
    state = ReportState(catalog=catalog, records=records)
    registry = default_registry()

    assert len(build_canvas_children(state, registry)) == 1

    state.dispatch(CreatePanel(LayoutType.TWO_COLUMNS))
    state.dispatch(CreateVisual(ChartType.BAR))
    state.dispatch(CreateSlicer(SlicerType.LIST, "platform"))

    assert len(build_canvas_children(state, registry)) == 3


def test_numeric_slicer_spans_the_record_bounds(catalog, records):
    state = ReportState(catalog=catalog, records=records)
    state.dispatch(CreateSlicer(SlicerType.NUMERIC_RANGE, "spend"))

    slider = build_slicer_body(state.sheet.slicers[0], state)

    assert isinstance(slider, dcc.RangeSlider)
    assert (slider.min, slider.max) == (20.0, 100.0)
    assert slider.value == [20.0, 100.0]
