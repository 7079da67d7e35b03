from __future__ import annotations

from typing import TYPE_CHECKING

import dash_bootstrap_components as dbc
from dash import dcc, html

from report_canvas.core.state import ReportState
from report_canvas.ui.ids import IDs
from report_canvas.ui.layout.build_navbar import build_navbar
from report_canvas.ui.layout.build_sidebar import build_fields_panel, build_format_panel, build_palette_panel

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig


def _build_toolbar() -> html.Div:
    return html.Div(
        [
            dbc.Button("+ Sheet", id=IDs.Control.ADD_SHEET_BTN, size="sm", color="primary", outline=True),
            dbc.Input(
                id=IDs.Control.RENAME_SHEET_INPUT,
                placeholder="Sheet name",
                size="sm",
                style={"width": "160px"},
            ),
            dbc.Button("Rename", id=IDs.Control.RENAME_SHEET_BTN, size="sm", color="secondary", outline=True),
            dbc.Button("Delete sheet", id=IDs.Control.DELETE_SHEET_BTN, size="sm", color="danger", outline=True),
            html.Div(className="vr mx-2"),
            dbc.Button("Clear filters", id=IDs.Control.CLEAR_FILTERS_BTN, size="sm", color="secondary"),
            dbc.Button("Clear highlight", id=IDs.Control.CLEAR_CROSS_FILTER_BTN, size="sm", color="secondary"),
            html.Small(id=IDs.Control.FILTER_SUMMARY, className="text-muted ms-2"),
        ],
        className="d-flex align-items-center gap-2 my-2",
    )


def build_layout(ctx: AppConfig):
    navbar = build_navbar(ctx.global_config)

    return dbc.Container(
        fluid=True,
        className="rc-root",
        children=[
            navbar,

            # App-level stores
            dcc.Store(id=IDs.Store.REPORT_STATE, data=ReportState().to_dict(), storage_type="session"),
            dcc.Store(id=IDs.Store.DRAG_EVENT),
            dcc.Store(id=IDs.Store.NOTICE),

            dbc.Toast(
                id=IDs.Control.NOTICE_TOAST,
                header="Report",
                is_open=False,
                dismissable=True,
                duration=3500,
                icon="warning",
                style={"position": "fixed", "top": 80, "right": 16, "width": 360, "zIndex": 2000},
            ),

            dbc.Row(
                [
                    dbc.Col(
                        [
                            build_palette_panel(),
                            build_fields_panel(ctx),
                            build_format_panel(),
                        ],
                        md=3,
                        className="mt-3",
                    ),
                    dbc.Col(
                        [
                            dcc.Tabs(id=IDs.Control.SHEET_TABS, className="mt-3"),
                            _build_toolbar(),
                            html.Div(
                                id=IDs.Control.CANVAS,
                                className="rc-canvas border rounded bg-light",
                                style={"position": "relative", "minHeight": "900px", "overflow": "auto"},
                            ),
                        ],
                        md=9,
                    ),
                ],
                className="gx-3",
            ),
        ],
    )
