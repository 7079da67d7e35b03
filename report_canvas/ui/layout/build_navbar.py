from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dcc, html

from report_canvas.config.model import GlobalConfig
from report_canvas.ui.ids import IDs


def build_navbar(global_config: GlobalConfig) -> dbc.Navbar:
    title = getattr(global_config, "ui_title", "Report Canvas")

    return dbc.Navbar(
        dbc.Container(
            fluid=True,
            children=[
                html.Div(
                    [
                        html.H3(title, className="mb-0"),
                        html.Small("Drag, bind and filter", className="text-muted"),
                    ],
                    className="d-flex flex-column justify-content-center",
                ),
                html.Div(
                    [
                        dbc.Input(
                            id=IDs.Control.WORKBOOK_NAME_INPUT,
                            placeholder="Report name",
                            size="sm",
                            style={"width": "180px"},
                        ),
                        dbc.Button("Save", id=IDs.Control.SAVE_WORKBOOK_BTN, size="sm", color="primary"),
                        dcc.Dropdown(
                            id=IDs.Control.WORKBOOK_SELECT,
                            options=[],
                            placeholder="Saved reports",
                            style={"width": "220px"},
                        ),
                        dbc.Button("Load", id=IDs.Control.LOAD_WORKBOOK_BTN, size="sm", color="secondary"),
                        dbc.Button("Delete", id=IDs.Control.DELETE_WORKBOOK_BTN, size="sm", color="danger", outline=True),
                        dbc.Button("Export", id=IDs.Control.EXPORT_WORKBOOK_BTN, size="sm", color="secondary", outline=True),
                        dcc.Download(id=IDs.Control.DOWNLOAD_WORKBOOK),
                        dcc.Upload(
                            id=IDs.Control.IMPORT_WORKBOOK_UPLOAD,
                            children=dbc.Button("Import", size="sm", color="secondary", outline=True),
                            accept=".json,application/json",
                        ),
                        dcc.Store(id=IDs.Control.ACTIVE_WORKBOOK_ID, storage_type="session"),
                    ],
                    className="ms-auto d-flex align-items-center gap-2",
                ),
            ],
        ),
        dark=False,
        className="shadow-sm rc-navbar",
    )
