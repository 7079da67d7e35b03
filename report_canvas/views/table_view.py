from __future__ import annotations

import pandas as pd
import plotly.graph_objs as go

from report_canvas.core.composition import ChartType
from report_canvas.views.base_visual import BaseVisualView


class TableView(BaseVisualView):
    """
    Tabular visuals.

    - table: every column of the rows, headers humanised
    - matrix: category, value and each row's share of the total
    """

    chart_types = (ChartType.TABLE, ChartType.MATRIX)
    label = "Table"

    def _frame(self, data: pd.DataFrame) -> pd.DataFrame:
        if self.visual.type == ChartType.MATRIX:
            total = data["value"].sum()
            share = (data["value"] / total * 100).round(1) if total else 0.0
            return pd.DataFrame({
                "Category": data["category"],
                "Value": data["value"],
                "%": share,
            })
        shown = data.drop(columns=["opacity", "id"], errors="ignore")
        return shown.rename(columns=lambda c: str(c).replace("_", " ").capitalize())

    def render_figure(self, data: pd.DataFrame) -> go.Figure:
        frame = self._frame(data)
        # rows outside the highlight are greyed out
        fill = [
            self.properties.background_color if o >= 1.0 else "#f1f5f9"
            for o in data["opacity"]
        ]
        return go.Figure(go.Table(
            header={
                "values": list(frame.columns),
                "fill_color": self.properties.primary_color,
                "font": {"color": "white"},
                "align": "left",
            },
            cells={
                "values": [frame[c].tolist() for c in frame.columns],
                "fill_color": [fill] * len(frame.columns),
                "align": "left",
            },
        ))
