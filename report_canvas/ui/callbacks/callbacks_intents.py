from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import uuid4

import dash
from dash import ALL, Input, Output, State, exceptions

from report_canvas.core.drag import decode_drag_event
from report_canvas.ui.helpers import load_state, notice_payload
from report_canvas.ui.ids import IDs

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig

logger = logging.getLogger(__name__)


def drag_payload(
    source_id: str,
    target_id: str,
    target_payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Raw drag event as written into the drag-event store.

    The nonce makes two identical drops distinct store values.
    """
    return {
        "source_id": source_id,
        "source_payload": {},
        "target_id": target_id,
        "target_payload": target_payload or {},
        "delta": {"x": 0, "y": 0},
        "nonce": uuid4().hex,
    }


def _triggered_value() -> Any:
    triggered = dash.ctx.triggered
    return triggered[0].get("value") if triggered else None


def register_intent_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Palette click -> drop on the canvas
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.DRAG_EVENT, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.PALETTE_ITEM, "index": ALL}, "n_clicks"),
        prevent_initial_call=True,
    )
    def palette_to_canvas(_clicks):
        trigger = dash.ctx.triggered_id
        if not trigger or not _triggered_value():
            raise exceptions.PreventUpdate
        return drag_payload(trigger["index"], "canvas")

    # ---------------------------------------------------------
    # Field + well selection -> drop on a field well
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.DRAG_EVENT, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.FIELD_ADD, "index": ALL}, "n_clicks"),
        State({"type": IDs.Pattern.WELL_SELECT, "index": ALL}, "value"),
        State({"type": IDs.Pattern.WELL_SELECT, "index": ALL}, "id"),
        prevent_initial_call=True,
    )
    def field_to_well(_clicks, selected_fields, select_ids):
        trigger = dash.ctx.triggered_id
        if not trigger or not _triggered_value():
            raise exceptions.PreventUpdate

        well = trigger["index"]
        field_by_well = {sid["index"]: value for sid, value in zip(select_ids, selected_fields)}
        field_id = field_by_well.get(well)
        if not field_id:
            raise exceptions.PreventUpdate
        return drag_payload(f"field-{field_id}", f"well-{well}")

    # ---------------------------------------------------------
    # Chart picked in an empty panel slot -> drop into the slot
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.DRAG_EVENT, "data", allow_duplicate=True),
        Input({"type": IDs.Pattern.SLOT_CHART_SELECT, "index": ALL}, "value"),
        prevent_initial_call=True,
    )
    def component_to_slot(_values):
        trigger = dash.ctx.triggered_id
        chart_type = _triggered_value()
        if not trigger or not chart_type:
            raise exceptions.PreventUpdate

        panel_id, slot_id = trigger["index"].split("|", 1)
        return drag_payload(f"component-{chart_type}", f"slot-{slot_id}", {"panel_id": panel_id})

    # ---------------------------------------------------------
    # Drag event -> intent -> report state
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Store.DRAG_EVENT, "data"),
        State(IDs.Store.REPORT_STATE, "data"),
        prevent_initial_call=True,
    )
    def apply_drag_event(event_data, state_data):
        if not event_data:
            raise exceptions.PreventUpdate

        event = decode_drag_event(event_data)
        state = load_state(ctx, state_data)
        result = ctx.router.route(event, state)

        logger.info(
            "drag_routed",
            extra={
                "source": event.source.raw_id,
                "target": event.target.raw_id,
                "action": result.action,
                "applied": result.applied,
            },
        )
        if not result.applied:
            return dash.no_update, notice_payload(result)
        return state.to_dict(), None
