from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import dash
import dash_bootstrap_components as dbc
import plotly.graph_objs as go
from dash import Input, Output, dcc, html

from report_canvas.core.fields import AggregationType, DataField, TimeGranularity, WellKind
from report_canvas.core.predicates import FilterValue
from report_canvas.core.state import ReportState
from report_canvas.ui.helpers import load_state
from report_canvas.ui.ids import IDs, pattern_id
from report_canvas.ui.layout.build_canvas import build_canvas_children

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Helper: Empty/Error Figures
# -----------------------------------------------------------------------------
def _message_figure(title: str, details: Optional[str] = None) -> go.Figure:
    fig = go.Figure()
    text = title if details is None else f"{title}<br><br>{details}"
    fig.add_annotation(
        text=text,
        showarrow=False,
        xref="paper",
        yref="paper",
        x=0.5,
        y=0.5,
    )
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(margin=dict(l=40, r=40, t=40, b=40))
    return fig


def _error_figure(details: str) -> go.Figure:
    return _message_figure("Something went wrong while rendering this report.", details)


def describe_filter(flt: FilterValue) -> str:
    if flt.numeric_range is not None:
        return f"{flt.field}: {flt.numeric_range.min:g} to {flt.numeric_range.max:g}"
    if flt.date_range is not None:
        start = flt.date_range.start.isoformat() if flt.date_range.start else "..."
        end = flt.date_range.end.isoformat() if flt.date_range.end else "..."
        return f"{flt.field}: {start} to {end}"
    values = ", ".join(str(v) for v in flt.values[:3])
    more = f" (+{len(flt.values) - 3})" if len(flt.values) > 3 else ""
    return f"{flt.field}: {values}{more}"


def filter_summary(state: ReportState) -> str:
    parts = [describe_filter(f) for f in state.filters]
    active = state.cross_filter.active
    if active is not None:
        parts.append(f"highlight: {active.value}")
    if not parts:
        return "No filters"
    shown = len(state.filtered_records())
    return f"{' | '.join(parts)} ({shown} of {len(state.records)} records)"


def _bound_field_row(data_field: DataField, well: WellKind) -> html.Div:
    controls: list[Any] = [html.Span(data_field.name, className="me-auto small")]
    if well == WellKind.VALUES:
        controls.append(
            dcc.Dropdown(
                id=pattern_id(IDs.Pattern.FIELD_AGGREGATION, data_field.id),
                options=[{"label": a.value.replace("_", " "), "value": a.value} for a in AggregationType],
                value=data_field.effective_aggregation.value,
                clearable=False,
                style={"width": "120px"},
            )
        )
    if well == WellKind.AXIS and data_field.is_date:
        controls.append(
            dcc.Dropdown(
                id=pattern_id(IDs.Pattern.FIELD_GRANULARITY, data_field.id),
                options=[{"label": g.value, "value": g.value} for g in TimeGranularity],
                value=data_field.effective_granularity.value,
                clearable=False,
                style={"width": "110px"},
            )
        )
    controls.append(
        dbc.Button("×", id=pattern_id(IDs.Pattern.FIELD_REMOVE, data_field.id), size="sm", color="light")
    )
    return html.Div(controls, className="d-flex align-items-center gap-1 mb-1")


def build_wells(state: ReportState) -> list:
    visual = state.selected_visual
    if visual is None:
        return [html.Small("Select a visual to see its fields.", className="text-muted")]

    children: list = []
    for well in WellKind:
        bound = visual.field_mapping.fields_in(well)
        children.append(html.Div(well.value.title(), className="form-label fw-semibold mt-2"))
        if not bound:
            children.append(html.Small("Empty", className="text-muted"))
        children.extend(_bound_field_row(f, well) for f in bound)
    return children


def register_render_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Report state -> canvas
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.CANVAS, "children"),
        Input(IDs.Store.REPORT_STATE, "data"),
    )
    def render_canvas(state_data: dict[str, Any] | None):
        try:
            state = load_state(ctx, state_data)
        except (KeyError, TypeError, ValueError):
            logger.exception("Invalid report state in canvas callback")
            return [dcc.Graph(figure=_error_figure("Internal error: invalid report state."))]

        logger.info(
            "render_canvas",
            extra={
                "sheet": state.sheet.id,
                "panels": len(state.sheet.panels),
                "visuals": len(state.sheet.all_visuals()),
                "slicers": len(state.sheet.slicers),
            },
        )
        return build_canvas_children(state, ctx.registry)

    # ---------------------------------------------------------
    # Sheet tabs + filter summary
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.SHEET_TABS, "children"),
        Output(IDs.Control.SHEET_TABS, "value"),
        Output(IDs.Control.FILTER_SUMMARY, "children"),
        Input(IDs.Store.REPORT_STATE, "data"),
    )
    def render_sheet_tabs(state_data):
        state = load_state(ctx, state_data)
        tabs = [dcc.Tab(label=s.name, value=s.id) for s in state.workbook.sheets]
        return tabs, state.workbook.active_sheet_id, filter_summary(state)

    # ---------------------------------------------------------
    # Selected visual -> field wells + format panel
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.SELECTED_VISUAL_LABEL, "children"),
        Output(IDs.Control.WELLS_CONTAINER, "children"),
        Output(IDs.Control.VISUAL_TYPE_SELECT, "value"),
        Output(IDs.Control.VISUAL_TITLE_INPUT, "value"),
        Output(IDs.Control.VISUAL_OPTIONS_CHECKLIST, "value"),
        Output(IDs.Control.VISUAL_COLOR_INPUT, "value"),
        Output(IDs.Control.VISUAL_BAR_MODE, "value"),
        Input(IDs.Store.REPORT_STATE, "data"),
    )
    def render_selected_visual(state_data):
        state = load_state(ctx, state_data)
        visual = state.selected_visual
        wells = build_wells(state)
        if visual is None:
            return "No visual selected", wells, None, "", [], None, None

        props = visual.properties
        options = [flag for flag in ("show_title", "show_legend", "show_data_labels") if getattr(props, flag)]
        label = f"{props.title} ({visual.type.value})"
        return label, wells, visual.type.value, props.title, options, props.primary_color, props.bar_chart_mode

    # ---------------------------------------------------------
    # Rejected actions -> toast
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.NOTICE_TOAST, "is_open"),
        Output(IDs.Control.NOTICE_TOAST, "children"),
        Input(IDs.Store.NOTICE, "data"),
        prevent_initial_call=True,
    )
    def show_notice(notice):
        if not notice:
            return False, dash.no_update
        return True, notice.get("message", "")
