from .base_visual import BaseVisualView
from .card_view import CardView, GaugeView
from .cartesian_view import CartesianView
from .pie_view import PieView
from .registry import VisualRegistry
from .table_view import TableView

__all__ = [
    "BaseVisualView",
    "CardView",
    "CartesianView",
    "GaugeView",
    "PieView",
    "TableView",
    "VisualRegistry",
    "default_registry",
]


def default_registry() -> VisualRegistry:
    registry = VisualRegistry()
    for view_cls in (CartesianView, PieView, TableView, CardView, GaugeView):
        registry.register(view_cls)
    return registry
