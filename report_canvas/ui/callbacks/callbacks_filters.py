from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any, List, Optional

import dash
from dash import ALL, Input, Output, State, exceptions

from report_canvas.core.actions import (
    ApplyRelativeDate,
    ClearCrossFilter,
    ClearFilters,
    DeleteSlicer,
    SetCrossFilter,
    SetDateRange,
    SetNumericRange,
    SetSlicerSelection,
)
from report_canvas.core.cross_filter import CrossFilter
from report_canvas.ui.helpers import dispatch_to_store, load_state
from report_canvas.ui.ids import IDs

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def clicked_category(click_data: Optional[dict]) -> Optional[str]:
    """
    Category of the clicked point: bar/line/area points carry it as 'x',
    pie slices as 'label'.
    """
    if not click_data or not click_data.get("points"):
        return None
    point = click_data["points"][0]
    value = point.get("label", point.get("x"))
    return None if value is None else str(value)


def _triggered():
    trigger = dash.ctx.triggered_id
    if not trigger:
        raise exceptions.PreventUpdate
    return trigger


def register_filter_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Dropdown / list slicers
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.SLICER_VALUES, "index": ALL}, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def slicer_values_changed(_values, state_data):
        slicer_id = _triggered()["index"]
        values = _as_list(dash.ctx.triggered[0].get("value"))

        state = load_state(ctx, state_data)
        slicer = state.sheet.find_slicer(slicer_id)
        # re-rendered slicers echo the stored selection back
        if slicer is None or values == state.slicer_selection(slicer):
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, SetSlicerSelection(slicer_id, values))

    # ---------------------------------------------------------
    # Numeric range slicers
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.SLICER_RANGE, "index": ALL}, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def slicer_range_changed(_values, state_data):
        slicer_id = _triggered()["index"]
        value = dash.ctx.triggered[0].get("value")
        if not value or len(value) != 2:
            raise exceptions.PreventUpdate

        state = load_state(ctx, state_data)
        slicer = state.sheet.find_slicer(slicer_id)
        if slicer is None:
            raise exceptions.PreventUpdate

        lo, hi = float(value[0]), float(value[1])
        current = state.filters.get(slicer.field)
        if current is None and (lo, hi) == tuple(state.records.numeric_bounds(slicer.field)):
            raise exceptions.PreventUpdate
        if current is not None and current.numeric_range is not None:
            if (current.numeric_range.min, current.numeric_range.max) == (lo, hi):
                raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, SetNumericRange(slicer_id, lo, hi))

    # ---------------------------------------------------------
    # Date range slicers
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.SLICER_DATES, "index": ALL}, "start_date"),
        Input({"type": IDs.Pattern.SLICER_DATES, "index": ALL}, "end_date"),
        State({"type": IDs.Pattern.SLICER_DATES, "index": ALL}, "id"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def slicer_dates_changed(starts, ends, picker_ids, state_data):
        slicer_id = _triggered()["index"]
        by_id = {pid["index"]: (s, e) for pid, s, e in zip(picker_ids, starts, ends)}
        if slicer_id not in by_id:
            raise exceptions.PreventUpdate
        start, end = (_as_date(v) for v in by_id[slicer_id])

        state = load_state(ctx, state_data)
        slicer = state.sheet.find_slicer(slicer_id)
        if slicer is None:
            raise exceptions.PreventUpdate
        current = state.filters.get(slicer.field)
        stored = (None, None)
        if current is not None and current.date_range is not None:
            stored = (current.date_range.start, current.date_range.end)
        if (start, end) == stored:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, SetDateRange(slicer_id, start, end))

    # ---------------------------------------------------------
    # Relative date slicers
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.SLICER_PRESET, "index": ALL}, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def slicer_preset_changed(_values, state_data):
        slicer_id = _triggered()["index"]
        preset = dash.ctx.triggered[0].get("value")
        if not preset:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, ApplyRelativeDate(slicer_id, preset, date.today()))

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.SLICER_DELETE, "index": ALL}, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def delete_slicer(_clicks, state_data):
        slicer_id = _triggered()["index"]
        if not dash.ctx.triggered[0].get("value"):
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, DeleteSlicer(slicer_id))

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.CLEAR_FILTERS_BTN, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def clear_filters(n_clicks, state_data):
        if not n_clicks:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, ClearFilters())

    # ---------------------------------------------------------
    # Cross-filter: click a data point to highlight it everywhere else
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.VISUAL_GRAPH, "index": ALL}, "clickData"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def graph_clicked(_clicks, state_data):
        visual_id = _triggered()["index"]
        category = clicked_category(dash.ctx.triggered[0].get("value"))
        if category is None:
            raise exceptions.PreventUpdate

        logger.debug("cross_filter_click", extra={"visual_id": visual_id, "category": category})
        action = SetCrossFilter(CrossFilter(visual_id, "category", category))
        return dispatch_to_store(ctx, state_data, action)

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.CLEAR_CROSS_FILTER_BTN, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def clear_cross_filter(n_clicks, state_data):
        if not n_clicks:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, ClearCrossFilter())
