from __future__ import annotations

from typing import List

import pandas as pd
import plotly.graph_objs as go

from report_canvas.core.composition import ChartType
from report_canvas.views.base_visual import BaseVisualView, rule_color


class CartesianView(BaseVisualView):
    """
    Bar / line / area chart over the category axis.

    - one trace per value column (value, value2, ...), named after the bound value fields
    - bars are grouped or stacked per bar_chart_mode
    - points outside the active cross-filter highlight are dimmed
    """

    chart_types = (ChartType.BAR, ChartType.LINE, ChartType.AREA)
    label = "Cartesian chart"

    def _series_names(self, columns: List[str]) -> List[str]:
        fields = self.visual.field_mapping.value_fields
        return [fields[i].name if i < len(fields) else col for i, col in enumerate(columns)]

    def _colors(self, values: pd.Series, first_series: bool) -> list | None:
        if not first_series:
            return None
        rules = self.properties.conditional_formatting
        return [rule_color(float(v), rules) or self.properties.primary_color for v in values]

    def render_figure(self, data: pd.DataFrame) -> go.Figure:
        columns = self.value_columns(data)
        names = self._series_names(columns)
        show_labels = self.properties.show_data_labels
        opacity = data["opacity"].tolist()
        kind = self.visual.type

        fig = go.Figure()
        for i, (col, name) in enumerate(zip(columns, names)):
            marker = {"opacity": opacity}
            colors = self._colors(data[col], first_series=(i == 0))
            if colors is not None:
                marker["color"] = colors
            if kind == ChartType.BAR:
                fig.add_trace(go.Bar(
                    x=data["category"],
                    y=data[col],
                    name=name,
                    marker=marker,
                    text=data[col] if show_labels else None,
                    textposition="auto",
                ))
            else:
                fig.add_trace(go.Scatter(
                    x=data["category"],
                    y=data[col],
                    name=name,
                    mode="lines+markers+text" if show_labels else "lines+markers",
                    text=data[col] if show_labels else None,
                    textposition="top center",
                    marker=marker,
                    line={"color": self.properties.primary_color} if i == 0 else None,
                    fill="tozeroy" if kind == ChartType.AREA else None,
                ))

        if kind == ChartType.BAR:
            fig.update_layout(barmode="stack" if self.properties.bar_chart_mode == "stacked" else "group")
        fig.update_layout(xaxis_title=None, yaxis_title=None, clickmode="event")
        return fig
