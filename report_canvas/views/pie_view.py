from __future__ import annotations

import pandas as pd
import plotly.graph_objs as go
from plotly.colors import hex_to_rgb, qualitative

from report_canvas.core.composition import ChartType
from report_canvas.views.base_visual import BaseVisualView


class PieView(BaseVisualView):
    """Share of the first value column per category."""

    chart_types = (ChartType.PIE,)
    label = "Pie chart"

    def render_figure(self, data: pd.DataFrame) -> go.Figure:
        palette = [self.properties.primary_color] + list(qualitative.Plotly)
        colors = []
        # pie traces take one opacity for the whole trace, so dimming goes through rgba alpha
        for i, opacity in enumerate(data["opacity"]):
            r, g, b = hex_to_rgb(palette[i % len(palette)])
            colors.append(f"rgba({r},{g},{b},{opacity})")

        return go.Figure(go.Pie(
            labels=data["category"],
            values=data["value"],
            hole=0.35,
            textinfo="percent+label" if self.properties.show_data_labels else "none",
            marker={"colors": colors, "line": {"color": self.properties.background_color, "width": 1}},
            sort=False,
        ))
