from __future__ import annotations

from typing import TYPE_CHECKING, List

import dash_bootstrap_components as dbc
from dash import dcc, html

from report_canvas.core.composition import ChartType, LayoutType, SlicerType
from report_canvas.core.fields import WellKind
from report_canvas.ui.helpers import field_options
from report_canvas.ui.ids import IDs, pattern_id

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig


def _label(value: str) -> str:
    return value.replace("-", " ").replace("_", " ").title()


def _palette(title: str, source_ids: List[str], labels: List[str]) -> html.Div:
    return html.Div(
        [
            html.Label(title, className="form-label fw-semibold"),
            html.Div(
                [
                    dbc.Button(
                        label,
                        id=pattern_id(IDs.Pattern.PALETTE_ITEM, source_id),
                        size="sm",
                        color="light",
                        className="me-1 mb-1",
                    )
                    for source_id, label in zip(source_ids, labels)
                ],
                className="d-flex flex-wrap",
            ),
        ],
        className="mb-3",
    )


def build_palette_panel() -> dbc.Card:
    """Layout / visual / slicer palettes. A click behaves like dropping the item on the canvas."""
    return dbc.Card(
        [
            dbc.CardHeader("Add to canvas", className="fw-semibold"),
            dbc.CardBody(
                [
                    _palette(
                        "Layouts",
                        [f"layout-{lt.value}" for lt in LayoutType],
                        [_label(lt.value) for lt in LayoutType],
                    ),
                    _palette(
                        "Visuals",
                        [f"component-{ct.value}" for ct in ChartType],
                        [_label(ct.value) for ct in ChartType],
                    ),
                    _palette(
                        "Slicers",
                        [f"slicer-type-{st.value}" for st in SlicerType],
                        [_label(st.value) for st in SlicerType],
                    ),
                ]
            ),
        ],
        className="mb-3",
    )


def build_fields_panel(ctx: AppConfig) -> dbc.Card:
    """
    Field wells of the selected visual.

    - one 'add' row per well (pick a field, press +): emits a field -> well drag
    - WELLS_CONTAINER lists what is bound, rendered from the report state
    """
    options = field_options(ctx)
    add_rows = [
        html.Div(
            [
                html.Small(_label(well.value), className="text-muted", style={"width": "70px"}),
                dcc.Dropdown(
                    id=pattern_id(IDs.Pattern.WELL_SELECT, well.value),
                    options=options,
                    placeholder="Field",
                    style={"flex": "1"},
                ),
                dbc.Button(
                    "+",
                    id=pattern_id(IDs.Pattern.FIELD_ADD, well.value),
                    size="sm",
                    color="primary",
                    outline=True,
                ),
            ],
            className="d-flex align-items-center gap-2 mb-2",
        )
        for well in WellKind
    ]

    return dbc.Card(
        [
            dbc.CardHeader("Fields", className="fw-semibold"),
            dbc.CardBody(
                [
                    html.Div(id=IDs.Control.SELECTED_VISUAL_LABEL, className="mb-2 text-muted"),
                    *add_rows,
                    html.Hr(),
                    html.Div(id=IDs.Control.WELLS_CONTAINER),
                ]
            ),
        ],
        className="mb-3",
    )


def build_format_panel() -> dbc.Card:
    return dbc.Card(
        [
            dbc.CardHeader("Format visual", className="fw-semibold"),
            dbc.CardBody(
                [
                    html.Label("Visual type", className="form-label"),
                    dcc.Dropdown(
                        id=IDs.Control.VISUAL_TYPE_SELECT,
                        options=[{"label": _label(ct.value), "value": ct.value} for ct in ChartType],
                        clearable=False,
                        className="mb-2",
                    ),
                    html.Label("Title", className="form-label"),
                    dbc.Input(id=IDs.Control.VISUAL_TITLE_INPUT, debounce=True, size="sm", className="mb-2"),
                    dcc.Checklist(
                        id=IDs.Control.VISUAL_OPTIONS_CHECKLIST,
                        options=[
                            {"label": " Show title", "value": "show_title"},
                            {"label": " Show legend", "value": "show_legend"},
                            {"label": " Data labels", "value": "show_data_labels"},
                        ],
                        value=[],
                        className="mb-2",
                    ),
                    html.Label("Primary colour", className="form-label"),
                    dbc.Input(id=IDs.Control.VISUAL_COLOR_INPUT, type="color", size="sm", className="mb-2"),
                    dcc.RadioItems(
                        id=IDs.Control.VISUAL_BAR_MODE,
                        options=[
                            {"label": " Grouped", "value": "grouped"},
                            {"label": " Stacked", "value": "stacked"},
                        ],
                        inline=True,
                    ),
                ]
            ),
        ],
        className="mb-3",
    )
