from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import dash
from dash import Input, Output, State, dcc, exceptions

from report_canvas.ui.helpers import load_state
from report_canvas.ui.ids import IDs
from report_canvas.validation.errors import ValidationError
from report_canvas.validation.workbook_validation import validate_workbook_import_dict

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig

logger = logging.getLogger(__name__)


def _notice(action: str, message: str) -> Dict[str, str]:
    return {"action": action, "message": message}


def _workbook_options(ctx: AppConfig) -> List[Dict[str, str]]:
    entries = sorted(ctx.workbook_service.list_workbooks(), key=lambda e: e["saved_at"], reverse=True)
    return [{"label": e["name"], "value": e["workbook_id"]} for e in entries]


def decode_upload(contents: str) -> Any:
    """
    Parse a dcc.Upload data URL ("data:<mime>;base64,<payload>") as JSON.
    :raises ValueError: if the payload is not base64-encoded JSON
    """
    try:
        _header, encoded = contents.split(",", 1)
        return json.loads(base64.b64decode(encoded).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Not a JSON workbook file: {e}") from e


def normalise_import(ctx: AppConfig, obj: Any) -> Dict[str, Any]:
    """Validate an imported document and round-trip it through ReportState so the store holds a canonical state."""
    state_dict = validate_workbook_import_dict(obj)
    return load_state(ctx, state_dict).to_dict()


def register_io_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # 1. Saved workbook dropdown
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.WORKBOOK_SELECT, "options"),
        Output(IDs.Control.WORKBOOK_SELECT, "value"),
        Input(IDs.Control.ACTIVE_WORKBOOK_ID, "data"),
    )
    def update_workbook_dropdown(active_id: Optional[str]):
        options = _workbook_options(ctx)
        ids = {o["value"] for o in options}
        return options, active_id if active_id in ids else None

    # ---------------------------------------------------------
    # 2. Save (overwrites the active workbook, if any)
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.ACTIVE_WORKBOOK_ID, "data", allow_duplicate=True),
        Output(IDs.Control.WORKBOOK_SELECT, "options", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.SAVE_WORKBOOK_BTN, "n_clicks"),
        State(IDs.Control.WORKBOOK_NAME_INPUT, "value"),
        State(IDs.Store.REPORT_STATE, "data"),
        State(IDs.Control.ACTIVE_WORKBOOK_ID, "data"),
        prevent_initial_call=True,
    )
    def save_workbook(n_clicks, name, state_data, active_id):
        if not n_clicks or not state_data:
            raise exceptions.PreventUpdate
        try:
            doc = ctx.workbook_service.save(state_data, name=name or "", workbook_id=active_id)
        except OSError:
            return dash.no_update, dash.no_update, _notice("SaveWorkbook", "Could not write the workbook to disk")
        return doc.workbook_id, _workbook_options(ctx), None

    # ---------------------------------------------------------
    # 3. Load
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Control.ACTIVE_WORKBOOK_ID, "data", allow_duplicate=True),
        Output(IDs.Control.WORKBOOK_NAME_INPUT, "value"),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.LOAD_WORKBOOK_BTN, "n_clicks"),
        State(IDs.Control.WORKBOOK_SELECT, "value"),
        prevent_initial_call=True,
    )
    def load_workbook(n_clicks, workbook_id):
        if not n_clicks or not workbook_id:
            raise exceptions.PreventUpdate
        try:
            doc = ctx.workbook_service.load(workbook_id)
        except ValidationError as e:
            logger.warning("Saved workbook failed validation", extra={"workbook_id": workbook_id, "codes": e.codes})
            return dash.no_update, dash.no_update, dash.no_update, _notice("LoadWorkbook", str(e))
        if doc is None:
            return dash.no_update, dash.no_update, dash.no_update, _notice("LoadWorkbook", "Workbook not found")
        return load_state(ctx, doc.state).to_dict(), doc.workbook_id, doc.name, None

    # ---------------------------------------------------------
    # 4. Delete
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.ACTIVE_WORKBOOK_ID, "data", allow_duplicate=True),
        Output(IDs.Control.WORKBOOK_SELECT, "options", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.DELETE_WORKBOOK_BTN, "n_clicks"),
        State(IDs.Control.WORKBOOK_SELECT, "value"),
        State(IDs.Control.ACTIVE_WORKBOOK_ID, "data"),
        prevent_initial_call=True,
    )
    def delete_workbook(n_clicks, workbook_id, active_id):
        if not n_clicks or not workbook_id:
            raise exceptions.PreventUpdate
        if not ctx.workbook_service.delete(workbook_id):
            return dash.no_update, dash.no_update, _notice("DeleteWorkbook", "Workbook not found")
        next_active = None if active_id == workbook_id else dash.no_update
        return next_active, _workbook_options(ctx), None

    # ---------------------------------------------------------
    # 5. Export / import as JSON files
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.DOWNLOAD_WORKBOOK, "data"),
        Input(IDs.Control.EXPORT_WORKBOOK_BTN, "n_clicks"),
        State(IDs.Store.REPORT_STATE, "data"),
        State(IDs.Control.WORKBOOK_NAME_INPUT, "value"),
        prevent_initial_call=True,
    )
    def export_workbook(n_clicks, state_data, name):
        if not n_clicks or not state_data:
            raise exceptions.PreventUpdate
        filename = f"{(name or 'report').strip().replace(' ', '_')}.json"
        payload = {"name": name or "report", "state": state_data}
        return dcc.send_string(json.dumps(payload, indent=2), filename)

    @app.callback(
        Output(IDs.Store.REPORT_STATE, "data", allow_duplicate=True),
        Output(IDs.Control.ACTIVE_WORKBOOK_ID, "data", allow_duplicate=True),
        Output(IDs.Store.NOTICE, "data", allow_duplicate=True),
        Input(IDs.Control.IMPORT_WORKBOOK_UPLOAD, "contents"),
        State(IDs.Control.IMPORT_WORKBOOK_UPLOAD, "filename"),
        prevent_initial_call=True,
    )
    def import_workbook(contents, filename):
        if not contents:
            raise exceptions.PreventUpdate
        try:
            state_dict = normalise_import(ctx, decode_upload(contents))
        except ValidationError as e:
            logger.warning("Rejected workbook import", extra={"upload": filename, "codes": e.codes})
            return dash.no_update, dash.no_update, _notice("ImportWorkbook", str(e))
        except ValueError as e:
            return dash.no_update, dash.no_update, _notice("ImportWorkbook", str(e))

        logger.info("Workbook imported", extra={"upload": filename})
        # an import is a new, unsaved workbook
        return state_dict, None, None
