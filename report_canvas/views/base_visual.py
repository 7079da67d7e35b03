from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import pandas as pd
import plotly.graph_objs as go

from report_canvas.core.composition import ChartType, ConditionalRule, Visual
from report_canvas.core.cross_filter import CrossFilterCoordinator, HighlightValue, opacity_for


def rule_color(value: float, rules: List[ConditionalRule]) -> Optional[str]:
    """Colour of the first threshold condition value meets, or None."""
    for rule in rules:
        if rule.type != "threshold":
            continue
        for cond in rule.conditions:
            op = cond.operator
            hit = (
                (op == "gt" and value > cond.value)
                or (op == "lt" and value < cond.value)
                or (op == "gte" and value >= cond.value)
                or (op == "lte" and value <= cond.value)
                or (op == "eq" and value == cond.value)
                or (op == "between" and cond.value2 is not None and cond.value <= value <= cond.value2)
            )
            if hit and cond.color:
                return cond.color
    return None


class BaseVisualView(ABC):
    """
    Abstract base class for all visual renderers.

    Defines the contract every renderer follows
    - expose 'chart_types' - the {@link ChartType}s it draws
    - expose a 'label' - used for UI/human-readable applications
    - implement 'render_figure' - turn the prepared rows into a Plotly figure

    Rows come from Visual.data (already aggregated); the view only shapes them
    and applies {@link VisualProperties} and cross-filter highlighting.
    """

    chart_types: Tuple[ChartType, ...] = ()
    label: str = None

    def __init__(self, visual: Visual):
        self.visual = visual

    @property
    def properties(self):
        return self.visual.properties

    def compute_data(self, highlight: Optional[HighlightValue]) -> pd.DataFrame:
        """
        Chart rows as a frame plus an 'opacity' column for highlighting.
        :param highlight: active cross-filter value for this visual, None for no dimming
        """
        df = pd.DataFrame(self.visual.data)
        if df.empty:
            return df
        if "category" in df.columns:
            df["category"] = df["category"].astype(str)
            df["opacity"] = [opacity_for(c, highlight) for c in df["category"]]
        else:
            df["opacity"] = 1.0
        return df

    @abstractmethod
    def render_figure(self, data: pd.DataFrame) -> go.Figure:
        raise NotImplementedError()

    def render(self, coordinator: Optional[CrossFilterCoordinator] = None) -> go.Figure:
        highlight = None
        if coordinator is not None and coordinator.is_filtered(self.visual.id):
            highlight = coordinator.get_highlight("category")
        data = self.compute_data(highlight)
        if data.empty:
            return self.empty_figure("No data - bind fields or adjust filters")
        return self.apply_properties(self.render_figure(data))

    # ------------------------------------------------------------------
    # Common helpers for all views
    # ------------------------------------------------------------------

    @staticmethod
    def value_columns(data: pd.DataFrame) -> List[str]:
        """value, value2, value3, ... in order."""
        cols = [c for c in data.columns if c == "value" or (c.startswith("value") and c[5:].isdigit())]
        return sorted(cols, key=lambda c: int(c[5:] or 1))

    def apply_properties(self, fig: go.Figure) -> go.Figure:
        props = self.properties
        fig.update_layout(
            title=props.title if props.show_title else None,
            showlegend=props.show_legend,
            legend={"orientation": "h", "y": -0.2} if props.legend_position == "bottom" else {},
            paper_bgcolor=props.background_color,
            plot_bgcolor=props.background_color,
            font={"size": props.font_size},
            transition={"duration": props.animation_duration},
            margin=dict(l=40, r=20, t=50 if props.show_title else 20, b=40),
        )
        return fig

    @staticmethod
    def empty_figure(message: str) -> go.Figure:
        """
        Standardised 'no data' figure used by all views.
        """
        fig = go.Figure()
        fig.update_layout(
            title=message,
            xaxis={"visible": False},
            yaxis={"visible": False},
        )
        return fig
