from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict

import dash
from dash import ALL, Input, Output, State, exceptions

from report_canvas.core.actions import (
    AddSheet,
    ChangeVisualType,
    ClearSlot,
    DeletePanel,
    DeleteSheet,
    DeleteVisual,
    DuplicateVisual,
    RemoveFieldFromWell,
    RenameSheet,
    SelectSheet,
    SelectVisual,
    SetFieldAggregation,
    SetFieldGranularity,
    UpdateVisualProperties,
)
from report_canvas.core.composition import ChartType
from report_canvas.core.fields import AggregationType, TimeGranularity
from report_canvas.ui.helpers import dispatch_to_store, load_state
from report_canvas.ui.ids import IDs

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig

logger = logging.getLogger(__name__)

OPTION_FLAGS = ("show_title", "show_legend", "show_data_labels")


def _clicked_index() -> str:
    """Index of the pattern-matched button that fired; PreventUpdate when it was only re-rendered."""
    trigger = dash.ctx.triggered_id
    if not trigger or not dash.ctx.triggered[0].get("value"):
        raise exceptions.PreventUpdate
    return trigger["index"]


def property_changes(visual_props, title, options, color, bar_mode) -> Dict[str, Any]:
    """Format-panel values that differ from the selected visual's properties."""
    changes: Dict[str, Any] = {}
    if title is not None and title != visual_props.title:
        changes["title"] = title
    if options is not None:
        for flag in OPTION_FLAGS:
            wanted = flag in options
            if wanted != getattr(visual_props, flag):
                changes[flag] = wanted
    if color and color != visual_props.primary_color:
        changes["primary_color"] = color
    if bar_mode and bar_mode != visual_props.bar_chart_mode:
        changes["bar_chart_mode"] = bar_mode
    return changes


def register_editing_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Sheets
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.ADD_SHEET_BTN, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def add_sheet(n_clicks, state_data):
        if not n_clicks:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, AddSheet())

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.SHEET_TABS, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def select_sheet(sheet_id, state_data):
        state = load_state(ctx, state_data)
        if not sheet_id or sheet_id == state.workbook.active_sheet_id:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, SelectSheet(sheet_id))

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.RENAME_SHEET_BTN, "n_clicks"),
        State(IDs.Control.RENAME_SHEET_INPUT, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def rename_sheet(n_clicks, name, state_data):
        if not n_clicks:
            raise exceptions.PreventUpdate
        state = load_state(ctx, state_data)
        return dispatch_to_store(ctx, state_data, RenameSheet(state.workbook.active_sheet_id, name or ""))

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.DELETE_SHEET_BTN, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def delete_sheet(n_clicks, state_data):
        if not n_clicks:
            raise exceptions.PreventUpdate
        state = load_state(ctx, state_data)
        return dispatch_to_store(ctx, state_data, DeleteSheet(state.workbook.active_sheet_id))

    # ---------------------------------------------------------
    # Visual / panel / slot buttons on the canvas
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.VISUAL_SELECT, "index": ALL}, "n_clicks"),
        Input({"type": IDs.Pattern.VISUAL_DUPLICATE, "index": ALL}, "n_clicks"),
        Input({"type": IDs.Pattern.VISUAL_DELETE, "index": ALL}, "n_clicks"),
        Input({"type": IDs.Pattern.PANEL_DELETE, "index": ALL}, "n_clicks"),
        Input({"type": IDs.Pattern.SLOT_CLEAR, "index": ALL}, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def canvas_button(_select, _duplicate, _delete, _panel_delete, _slot_clear, state_data):
        index = _clicked_index()
        kind = dash.ctx.triggered_id["type"]

        if kind == IDs.Pattern.VISUAL_SELECT:
            state = load_state(ctx, state_data)
            # clicking the selected visual again deselects it
            action = SelectVisual(None if state.selected_visual_id == index else index)
        elif kind == IDs.Pattern.VISUAL_DUPLICATE:
            action = DuplicateVisual(index)
        elif kind == IDs.Pattern.VISUAL_DELETE:
            action = DeleteVisual(index)
        elif kind == IDs.Pattern.PANEL_DELETE:
            action = DeletePanel(index)
        else:
            panel_id, slot_id = index.split("|", 1)
            action = ClearSlot(panel_id, slot_id)
        return dispatch_to_store(ctx, state_data, action)

    # ---------------------------------------------------------
    # Format panel
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.VISUAL_TYPE_SELECT, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def change_visual_type(chart_type, state_data):
        state = load_state(ctx, state_data)
        visual = state.selected_visual
        if visual is None or not chart_type or chart_type == visual.type.value:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, ChangeVisualType(visual.id, ChartType(chart_type)))

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.VISUAL_TITLE_INPUT, "value"),
        Input(IDs.Control.VISUAL_OPTIONS_CHECKLIST, "value"),
        Input(IDs.Control.VISUAL_COLOR_INPUT, "value"),
        Input(IDs.Control.VISUAL_BAR_MODE, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def update_visual_properties(title, options, color, bar_mode, state_data):
        state = load_state(ctx, state_data)
        visual = state.selected_visual
        if visual is None:
            raise exceptions.PreventUpdate
        changes = property_changes(visual.properties, title, options, color, bar_mode)
        if not changes:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, UpdateVisualProperties(visual.id, changes))

    # ---------------------------------------------------------
    # Bound fields of the selected visual
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.FIELD_REMOVE, "index": ALL}, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def remove_field(_clicks, state_data):
        field_id = _clicked_index()
        state = load_state(ctx, state_data)
        if state.selected_visual_id is None:
            raise exceptions.PreventUpdate
        return dispatch_to_store(ctx, state_data, RemoveFieldFromWell(state.selected_visual_id, field_id))

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.FIELD_AGGREGATION, "index": ALL}, "value"),
        Input({"type": IDs.Pattern.FIELD_GRANULARITY, "index": ALL}, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def change_field_settings(_aggregations, _granularities, state_data):
        trigger = dash.ctx.triggered_id
        value = dash.ctx.triggered[0].get("value") if dash.ctx.triggered else None
        if not trigger or not value:
            raise exceptions.PreventUpdate

        state = load_state(ctx, state_data)
        visual = state.selected_visual
        bound = visual.field_mapping.find(trigger["index"]) if visual is not None else None
        if bound is None:
            raise exceptions.PreventUpdate

        if trigger["type"] == IDs.Pattern.FIELD_AGGREGATION:
            if value == bound.effective_aggregation.value:
                raise exceptions.PreventUpdate
            action = SetFieldAggregation(visual.id, bound.id, AggregationType(value))
        else:
            if value == bound.effective_granularity.value:
                raise exceptions.PreventUpdate
            action = SetFieldGranularity(visual.id, bound.id, TimeGranularity(value))
        return dispatch_to_store(ctx, state_data, action)
