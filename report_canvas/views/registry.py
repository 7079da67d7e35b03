from __future__ import annotations

from typing import Dict, List, Type

from report_canvas.core.composition import ChartType, Visual
from report_canvas.views.base_visual import BaseVisualView


class VisualRegistry:
    """
    Registry of renderer classes keyed by chart type, so the UI never
    hardcodes which class draws which visual.

    Design Notes:
    - Stores subclasses of {@link BaseVisualView}, not instances; a view is
      built per render around the visual it draws
    - Enforces:
        * only {@link BaseVisualView} subclasses can be registered
        * each chart type is drawn by exactly one class
    """

    def __init__(self):
        self._views: Dict[ChartType, Type[BaseVisualView]] = {}

    def register(self, view_cls: Type[BaseVisualView]) -> None:
        """
        :param view_cls: the subclass of {@link BaseVisualView}

        Raises:
            TypeError: if view_cls is not a subclass of {@link BaseVisualView}
            ValueError: if one of its chart types is already registered
        """
        if not isinstance(view_cls, type) or not issubclass(view_cls, BaseVisualView):
            raise TypeError(f"{view_cls!r} must be a subclass of BaseVisualView")
        for chart_type in view_cls.chart_types:
            if chart_type in self._views:
                raise ValueError(f"Chart type '{chart_type.value}' already registered")
        for chart_type in view_cls.chart_types:
            self._views[chart_type] = view_cls

    def create(self, visual: Visual) -> BaseVisualView:
        """
        Raises:
            KeyError: if no view draws the visual's chart type
        """
        try:
            cls = self._views[visual.type]
        except KeyError:
            raise KeyError(f"No view registered for chart type '{visual.type.value}'")
        return cls(visual)

    def all_classes(self) -> List[Type[BaseVisualView]]:
        return list(dict.fromkeys(self._views.values()))

    def chart_types(self) -> List[ChartType]:
        return list(self._views)
