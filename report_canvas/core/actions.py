from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .composition import ChartType, LayoutType, Position, SlicerType
from .cross_filter import CrossFilter
from .drag import ComponentKind
from .fields import AggregationType, TimeGranularity, WellKind
from .predicates import Scalar


@dataclass(frozen=True)
class Action:
    """Base class of every state mutation dispatched on a ReportState."""

    @property
    def action_type(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of ReportState.dispatch().

    - applied: False when the action was rejected and nothing changed
    - notice: a short user-facing message (shown as a toast); set on rejection
    """
    action: str
    applied: bool
    notice: Optional[str] = None

    @classmethod
    def ok(cls, action: Action) -> ActionResult:
        return cls(action.action_type, True)

    @classmethod
    def rejected(cls, action: Action, notice: str) -> ActionResult:
        return cls(action.action_type, False, notice)


# -------------------------------------------------------------------------
# Drag-and-drop intents
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class CreatePanel(Action):
    layout_type: LayoutType
    position: Optional[Position] = None


@dataclass(frozen=True)
class CreateVisual(Action):
    chart_type: ChartType
    position: Optional[Position] = None


@dataclass(frozen=True)
class PlaceVisualInSlot(Action):
    panel_id: str
    slot_id: str
    chart_type: ChartType


@dataclass(frozen=True)
class CreateSlicer(Action):
    slicer_type: SlicerType
    field_id: str
    position: Optional[Position] = None


@dataclass(frozen=True)
class AddFieldToWell(Action):
    visual_id: str
    well: WellKind
    field_id: str


@dataclass(frozen=True)
class QuickBindField(Action):
    visual_id: str
    field_id: str


@dataclass(frozen=True)
class MoveComponent(Action):
    kind: ComponentKind
    component_id: str
    dx: float = 0.0
    dy: float = 0.0


@dataclass(frozen=True)
class Rejected(Action):
    reason: str


# -------------------------------------------------------------------------
# Sheets
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class AddSheet(Action):
    name: Optional[str] = None


@dataclass(frozen=True)
class RenameSheet(Action):
    sheet_id: str
    name: str


@dataclass(frozen=True)
class DeleteSheet(Action):
    sheet_id: str


@dataclass(frozen=True)
class SelectSheet(Action):
    sheet_id: str


# -------------------------------------------------------------------------
# Visuals and wells
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class SelectVisual(Action):
    visual_id: Optional[str] = None


@dataclass(frozen=True)
class DeleteVisual(Action):
    visual_id: str


@dataclass(frozen=True)
class DuplicateVisual(Action):
    visual_id: str


@dataclass(frozen=True)
class ChangeVisualType(Action):
    visual_id: str
    chart_type: ChartType


@dataclass(frozen=True)
class UpdateVisualProperties(Action):
    visual_id: str
    updates: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveFieldFromWell(Action):
    visual_id: str
    field_id: str


@dataclass(frozen=True)
class SetFieldAggregation(Action):
    visual_id: str
    field_id: str
    aggregation: AggregationType


@dataclass(frozen=True)
class SetFieldGranularity(Action):
    visual_id: str
    field_id: str
    granularity: TimeGranularity


# -------------------------------------------------------------------------
# Panels
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class DeletePanel(Action):
    panel_id: str


@dataclass(frozen=True)
class ClearSlot(Action):
    panel_id: str
    slot_id: str


# -------------------------------------------------------------------------
# Slicers, filters and cross-filter
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class DeleteSlicer(Action):
    slicer_id: str


@dataclass(frozen=True)
class SetSlicerSelection(Action):
    slicer_id: str
    values: List[Scalar] = field(default_factory=list)


@dataclass(frozen=True)
class ToggleSlicerValue(Action):
    """selected=True adds value (replaces it for single-select slicers), False removes it."""
    slicer_id: str
    value: Scalar
    selected: bool = True


@dataclass(frozen=True)
class SetNumericRange(Action):
    slicer_id: str
    min: float
    max: float


@dataclass(frozen=True)
class SetDateRange(Action):
    slicer_id: str
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass(frozen=True)
class ApplyRelativeDate(Action):
    slicer_id: str
    preset: str
    today: Optional[date] = None


@dataclass(frozen=True)
class ClearFilters(Action):
    pass


@dataclass(frozen=True)
class SetCrossFilter(Action):
    cross_filter: Optional[CrossFilter] = None


@dataclass(frozen=True)
class ClearCrossFilter(Action):
    pass
