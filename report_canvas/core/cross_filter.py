from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

HighlightValue = Union[str, List[str]]

FULL_OPACITY = 1.0
DIMMED_OPACITY = 0.3


@dataclass(frozen=True)
class CrossFilter:
    """
    A highlight selection made by clicking a data point in one visual.

    - source_visual_id: the visual the click happened in
    - dimension: which row key was clicked (usually "category")
    - value: the clicked category, or several of them
    """
    source_visual_id: str
    dimension: str
    value: HighlightValue

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_visual_id": self.source_visual_id,
            "dimension": self.dimension,
            "value": list(self.value) if isinstance(self.value, (list, tuple)) else self.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional[CrossFilter]:
        if not data:
            return None
        value = data["value"]
        return cls(
            source_visual_id=str(data.get("source_visual_id") or data["sourceVisualId"]),
            dimension=str(data["dimension"]),
            value=list(value) if isinstance(value, (list, tuple)) else value,
        )


class CrossFilterCoordinator:
    """
    Holds at most one active {@link CrossFilter} for the whole sheet.

    Cross-filtering only changes how other visuals are drawn (dimmed vs full
    opacity). It never removes rows; row removal belongs to the FilterStore.
    """

    def __init__(self, active: Optional[CrossFilter] = None):
        self._active = active

    @property
    def active(self) -> Optional[CrossFilter]:
        return self._active

    def set_cross_filter(self, next_filter: Optional[CrossFilter]) -> Optional[CrossFilter]:
        """
        Activate next_filter. Re-selecting the active cross-filter (same source,
        dimension and value) toggles it off. Returns the resulting active filter.
        """
        if next_filter is not None and self._active is not None and _same(self._active, next_filter):
            logger.debug("cross-filter toggled off", extra={"source": next_filter.source_visual_id})
            self._active = None
        else:
            self._active = next_filter
        return self._active

    def clear(self) -> None:
        self._active = None

    def is_filtered(self, visual_id: str) -> bool:
        """True if a cross-filter is active and visual_id is not where it came from."""
        return self._active is not None and self._active.source_visual_id != visual_id

    def get_highlight(self, dimension: str) -> Optional[HighlightValue]:
        if self._active is None or self._active.dimension != dimension:
            return None
        return self._active.value

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return self._active.to_dict() if self._active is not None else None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> CrossFilterCoordinator:
        return cls(CrossFilter.from_dict(data))


def _normalise(value: HighlightValue) -> Any:
    return tuple(value) if isinstance(value, (list, tuple)) else value


def _same(a: CrossFilter, b: CrossFilter) -> bool:
    return (
        a.source_visual_id == b.source_visual_id
        and a.dimension == b.dimension
        and _normalise(a.value) == _normalise(b.value)
    )


def is_highlighted(category: str, highlight: Optional[HighlightValue]) -> bool:
    if highlight is None:
        return True
    if isinstance(highlight, (list, tuple)):
        return category in highlight
    return category == highlight


def opacity_for(category: str, highlight: Optional[HighlightValue]) -> float:
    return FULL_OPACITY if is_highlighted(category, highlight) else DIMMED_OPACITY
