from __future__ import annotations

import pandas as pd
import plotly.graph_objs as go

from report_canvas.core.composition import ChartType
from report_canvas.views.base_visual import BaseVisualView


def card_metrics(data: pd.DataFrame) -> tuple[float, float]:
    """(total of value, % change from the first to the last row)."""
    values = data["value"].astype(float)
    total = float(values.sum())
    if len(values) < 2:
        return total, 0.0
    first, last = float(values.iloc[0]), float(values.iloc[-1])
    return total, (last - first) / max(first, 1.0) * 100


class CardView(BaseVisualView):
    """Single KPI: the total with a delta arrow for the first-to-last change."""

    chart_types = (ChartType.CARD,)
    label = "Card"

    def render_figure(self, data: pd.DataFrame) -> go.Figure:
        total, change = card_metrics(data)
        arrow = "\u25b2" if change > 0 else "\u25bc" if change < 0 else "\u2013"
        return go.Figure(go.Indicator(
            mode="number",
            value=total,
            number={"font": {"color": self.properties.primary_color}, "valueformat": ",.2f"},
            title={"text": f"{arrow} {abs(change):.1f}%"},
        ))


class GaugeView(BaseVisualView):
    """The same total as a card, on a dial scaled to the largest row."""

    chart_types = (ChartType.GAUGE,)
    label = "Gauge"

    def render_figure(self, data: pd.DataFrame) -> go.Figure:
        total, _ = card_metrics(data)
        upper = max(float(data["value"].max()) * len(data), total, 1.0)
        return go.Figure(go.Indicator(
            mode="gauge+number",
            value=total,
            gauge={
                "axis": {"range": [0, upper]},
                "bar": {"color": self.properties.primary_color},
            },
        ))
