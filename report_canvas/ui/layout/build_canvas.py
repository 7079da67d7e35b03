from __future__ import annotations

import logging
from typing import List

import dash_bootstrap_components as dbc
from dash import dcc, html

from report_canvas.core.composition import (
    RELATIVE_DATE_PRESETS,
    ChartType,
    LayoutType,
    Panel,
    SlicerData,
    SlicerType,
    Visual,
)
from report_canvas.core.predicates import FilterOperator
from report_canvas.core.state import ReportState
from report_canvas.ui.ids import IDs, pattern_id
from report_canvas.views.registry import VisualRegistry

logger = logging.getLogger(__name__)

# CSS grid templates per panel layout
GRID_STYLES = {
    LayoutType.SINGLE: {"gridTemplateColumns": "1fr"},
    LayoutType.TWO_COLUMNS: {"gridTemplateColumns": "1fr 1fr"},
    LayoutType.THREE_COLUMNS: {"gridTemplateColumns": "1fr 1fr 1fr"},
    LayoutType.TWO_ROWS: {"gridTemplateRows": "1fr 1fr"},
    LayoutType.THREE_ROWS: {"gridTemplateRows": "1fr 1fr 1fr"},
    LayoutType.LEFT_SIDEBAR: {"gridTemplateColumns": "1fr 3fr"},
    LayoutType.RIGHT_SIDEBAR: {"gridTemplateColumns": "3fr 1fr"},
    LayoutType.GRID_2X2: {"gridTemplateColumns": "1fr 1fr", "gridTemplateRows": "1fr 1fr"},
    LayoutType.HEADER_CONTENT: {"gridTemplateRows": "1fr 4fr"},
    LayoutType.CONTENT_FOOTER: {"gridTemplateRows": "4fr 1fr"},
}

PRESET_LABELS = {
    "today": "Today",
    "last7": "Last 7 days",
    "last30": "Last 30 days",
    "thisMonth": "This month",
    "lastMonth": "Last month",
    "thisYear": "This year",
}


def _placed(position, size) -> dict:
    return {
        "position": "absolute",
        "left": f"{position.x}px",
        "top": f"{position.y}px",
        "width": f"{size.width}px",
        "height": f"{size.height}px",
    }


def _icon_button(label: str, kind: str, index: str, color: str = "light") -> dbc.Button:
    return dbc.Button(label, id=pattern_id(kind, index), size="sm", color=color, className="ms-1 py-0")


# -------------------------------------------------------------------------
# Visuals
# -------------------------------------------------------------------------

def build_visual_body(visual: Visual, state: ReportState, registry: VisualRegistry) -> html.Div:
    try:
        figure = registry.create(visual).render(state.cross_filter)
    except KeyError:
        logger.exception("No renderer for visual", extra={"visual_id": visual.id, "type": visual.type.value})
        figure = None

    selected = state.selected_visual_id == visual.id
    return html.Div(
        [
            html.Div(
                [
                    html.Small(visual.type.value.title(), className="text-muted me-auto"),
                    _icon_button("Select", IDs.Pattern.VISUAL_SELECT, visual.id),
                    _icon_button("Copy", IDs.Pattern.VISUAL_DUPLICATE, visual.id),
                    _icon_button("×", IDs.Pattern.VISUAL_DELETE, visual.id, color="danger"),
                ],
                className="d-flex align-items-center px-1",
            ),
            dcc.Graph(
                id=pattern_id(IDs.Pattern.VISUAL_GRAPH, visual.id),
                figure=figure if figure is not None else {},
                config={"displayModeBar": False, "responsive": True},
                style={"height": "calc(100% - 28px)"},
            ),
        ],
        className="rc-visual h-100",
        style={
            "border": f"2px solid {'#0ea5e9' if selected else '#e2e8f0'}",
            "borderRadius": f"{visual.properties.border_radius}px",
            "background": visual.properties.background_color,
        },
    )


# -------------------------------------------------------------------------
# Panels
# -------------------------------------------------------------------------

def build_panel(panel: Panel, state: ReportState, registry: VisualRegistry) -> html.Div:
    sheet = state.sheet
    slots = []
    for slot in panel.slots:
        visual = sheet.slot_visuals.get(slot.id)
        if visual is not None:
            body = html.Div(
                [
                    build_visual_body(visual, state, registry),
                    _icon_button("Clear", IDs.Pattern.SLOT_CLEAR, f"{panel.id}|{slot.id}"),
                ],
                className="h-100",
            )
        else:
            body = dcc.Dropdown(
                id=pattern_id(IDs.Pattern.SLOT_CHART_SELECT, f"{panel.id}|{slot.id}"),
                options=[{"label": ct.value.title(), "value": ct.value} for ct in ChartType],
                placeholder="Drop a visual here",
            )
        slots.append(html.Div(body, className="rc-slot p-1", style={"border": "1px dashed #cbd5e1", "minHeight": 0}))

    return html.Div(
        [
            html.Div(
                [
                    html.Small(panel.layout_type.value, className="text-muted me-auto"),
                    _icon_button("×", IDs.Pattern.PANEL_DELETE, panel.id, color="danger"),
                ],
                className="d-flex align-items-center",
            ),
            html.Div(
                slots,
                style={"display": "grid", "gap": "6px", "height": "calc(100% - 28px)", **GRID_STYLES[panel.layout_type]},
            ),
        ],
        className="rc-panel bg-white shadow-sm p-1",
        style=_placed(panel.position, panel.size),
    )


# -------------------------------------------------------------------------
# Slicers
# -------------------------------------------------------------------------

def build_slicer_body(slicer: SlicerData, state: ReportState):
    values = state.records.distinct_values(slicer.field)
    flt = state.filters.get(slicer.field)

    if slicer.type == SlicerType.DROPDOWN:
        return dcc.Dropdown(
            id=pattern_id(IDs.Pattern.SLICER_VALUES, slicer.id),
            options=[{"label": str(v), "value": v} for v in values],
            value=state.slicer_selection(slicer),
            multi=slicer.multi_select,
            searchable=True,
            placeholder="All",
        )
    if slicer.type == SlicerType.LIST:
        return dcc.Checklist(
            id=pattern_id(IDs.Pattern.SLICER_VALUES, slicer.id),
            options=[{"label": f" {v}", "value": v} for v in values],
            value=state.slicer_selection(slicer),
            style={"overflowY": "auto", "maxHeight": "180px"},
        )
    if slicer.type == SlicerType.NUMERIC_RANGE:
        lo, hi = state.records.numeric_bounds(slicer.field)
        current = [lo, hi]
        if flt is not None and flt.operator == FilterOperator.BETWEEN and flt.numeric_range is not None:
            current = [flt.numeric_range.min, flt.numeric_range.max]
        return dcc.RangeSlider(
            id=pattern_id(IDs.Pattern.SLICER_RANGE, slicer.id),
            min=lo,
            max=hi,
            value=current,
            tooltip={"placement": "bottom"},
        )
    if slicer.type == SlicerType.DATE_RANGE:
        start = end = None
        if flt is not None and flt.date_range is not None:
            start, end = flt.date_range.start, flt.date_range.end
        first, last = state.records.date_bounds(slicer.field)
        return dcc.DatePickerRange(
            id=pattern_id(IDs.Pattern.SLICER_DATES, slicer.id),
            start_date=start.isoformat() if start else None,
            end_date=end.isoformat() if end else None,
            min_date_allowed=first.isoformat() if first else None,
            max_date_allowed=last.isoformat() if last else None,
            clearable=True,
        )
    return dcc.Dropdown(
        id=pattern_id(IDs.Pattern.SLICER_PRESET, slicer.id),
        options=[{"label": PRESET_LABELS[p], "value": p} for p in RELATIVE_DATE_PRESETS],
        placeholder="Relative period",
    )


def build_slicer(slicer: SlicerData, state: ReportState) -> html.Div:
    return html.Div(
        [
            html.Div(
                [
                    html.Strong(slicer.display_title, className="me-auto"),
                    _icon_button("×", IDs.Pattern.SLICER_DELETE, slicer.id, color="danger"),
                ],
                className="d-flex align-items-center mb-1",
            ),
            build_slicer_body(slicer, state),
        ],
        className="rc-slicer bg-white shadow-sm p-2",
        style=_placed(slicer.position, slicer.size),
    )


def build_canvas_children(state: ReportState, registry: VisualRegistry) -> List:
    """Everything placed on the active sheet, absolutely positioned."""
    sheet = state.sheet
    children: List = [build_panel(p, state, registry) for p in sheet.panels]
    children += [
        html.Div(build_visual_body(v, state, registry), style=_placed(v.position, v.size))
        for v in sheet.visuals
    ]
    children += [build_slicer(s, state) for s in sheet.slicers]
    if not children:
        children = [html.Div("Empty sheet - add a layout, visual or slicer from the palette.", className="text-muted p-4")]
    return children
