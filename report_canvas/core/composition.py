from __future__ import annotations

import calendar
import copy
import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .fields import FieldMapping
from .predicates import DateRange


def new_id() -> str:
    return str(uuid.uuid4())


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    AREA = "area"
    GAUGE = "gauge"
    MATRIX = "matrix"
    TABLE = "table"
    CARD = "card"


class LayoutType(str, Enum):
    SINGLE = "single"
    TWO_COLUMNS = "two-columns"
    THREE_COLUMNS = "three-columns"
    TWO_ROWS = "two-rows"
    THREE_ROWS = "three-rows"
    LEFT_SIDEBAR = "left-sidebar"
    RIGHT_SIDEBAR = "right-sidebar"
    GRID_2X2 = "grid-2x2"
    HEADER_CONTENT = "header-content"
    CONTENT_FOOTER = "content-footer"


SLOT_COUNTS: Dict[LayoutType, int] = {
    LayoutType.SINGLE: 1,
    LayoutType.TWO_COLUMNS: 2,
    LayoutType.THREE_COLUMNS: 3,
    LayoutType.TWO_ROWS: 2,
    LayoutType.THREE_ROWS: 3,
    LayoutType.LEFT_SIDEBAR: 2,
    LayoutType.RIGHT_SIDEBAR: 2,
    LayoutType.GRID_2X2: 4,
    LayoutType.HEADER_CONTENT: 2,
    LayoutType.CONTENT_FOOTER: 2,
}

# names used by sheets saved before the layout palette was renamed
LEGACY_LAYOUT_ALIASES: Dict[str, LayoutType] = {
    "2-column": LayoutType.TWO_COLUMNS,
    "3-column": LayoutType.THREE_COLUMNS,
    "2x2-grid": LayoutType.GRID_2X2,
    "sidebar-left": LayoutType.LEFT_SIDEBAR,
    "sidebar-right": LayoutType.RIGHT_SIDEBAR,
}


def parse_layout_type(value: str) -> LayoutType:
    if value in LEGACY_LAYOUT_ALIASES:
        return LEGACY_LAYOUT_ALIASES[value]
    return LayoutType(value)


class SlicerType(str, Enum):
    DROPDOWN = "dropdown"
    LIST = "list"
    DATE_RANGE = "date-range"
    NUMERIC_RANGE = "numeric-range"
    RELATIVE_DATE = "relative-date"


# -------------------------------------------------------------------------
# Geometry
# -------------------------------------------------------------------------

@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    def moved(self, dx: float, dy: float) -> Position:
        return Position(self.x + dx, self.y + dy)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Position:
        data = data or {}
        return cls(float(data.get("x", 0)), float(data.get("y", 0)))


@dataclass
class Size:
    width: float = 500.0
    height: float = 350.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], default: Optional[Size] = None) -> Size:
        default = default or cls()
        data = data or {}
        return cls(float(data.get("width", default.width)), float(data.get("height", default.height)))


# -------------------------------------------------------------------------
# Visual
# -------------------------------------------------------------------------

@dataclass
class RuleCondition:
    operator: str
    value: float
    value2: Optional[float] = None
    color: Optional[str] = None
    icon: Optional[str] = None


@dataclass
class ConditionalRule:
    """gradient / threshold / databar / icon rule over one value column."""
    type: str
    field: str
    conditions: List[RuleCondition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConditionalRule:
        return cls(
            type=str(data.get("type", "threshold")),
            field=str(data.get("field", "value")),
            conditions=[RuleCondition(**c) for c in data.get("conditions") or []],
        )


@dataclass
class VisualProperties:
    title: str = "Sales Performance"
    show_title: bool = True
    show_legend: bool = False
    legend_position: str = "bottom"
    show_data_labels: bool = True
    primary_color: str = "#0ea5e9"
    background_color: str = "#ffffff"
    font_size: int = 14
    border_radius: int = 8
    animation_duration: int = 500
    bar_chart_mode: str = "grouped"
    conditional_formatting: List[ConditionalRule] = field(default_factory=list)

    def updated(self, updates: Dict[str, Any]) -> VisualProperties:
        """Copy with updates applied. Unknown keys are ignored."""
        known = {f.name for f in fields(self)}
        merged = asdict(self)
        merged.update({k: v for k, v in updates.items() if k in known})
        return VisualProperties.from_dict(merged)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> VisualProperties:
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        rules = [
            r if isinstance(r, ConditionalRule) else ConditionalRule.from_dict(r)
            for r in data.pop("conditional_formatting", None) or []
        ]
        return cls(conditional_formatting=rules, **{k: v for k, v in data.items() if k in known})


def default_rows() -> List[Dict[str, Any]]:
    """Placeholder data a freshly dropped visual shows before any field is bound."""
    return [
        {"category": "Q1 Sales", "value": 85.0},
        {"category": "Q2 Sales", "value": 120.0},
        {"category": "Q3 Sales", "value": 95.0},
        {"category": "Q4 Sales", "value": 145.0},
    ]


@dataclass
class Visual:
    """
    One chart/table/card instance. data holds the chart rows it currently
    shows; they are re-derived from the field mapping whenever filters or the
    mapping change, and kept as-is while the mapping is incomplete.

    quick_bind_field_id is set by a single-field drop onto the visual; until
    the mapping takes over, rows are re-derived from that field instead.
    """
    id: str
    type: ChartType
    data: List[Dict[str, Any]] = field(default_factory=default_rows)
    properties: VisualProperties = field(default_factory=VisualProperties)
    position: Position = field(default_factory=Position)
    size: Size = field(default_factory=Size)
    field_mapping: FieldMapping = field(default_factory=FieldMapping)
    quick_bind_field_id: Optional[str] = None

    def duplicate(self, offset: float = 30.0) -> Visual:
        clone = copy.deepcopy(self)
        clone.id = new_id()
        clone.position = self.position.moved(offset, offset)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "data": copy.deepcopy(self.data),
            "properties": asdict(self.properties),
            "position": asdict(self.position),
            "size": asdict(self.size),
            "field_mapping": self.field_mapping.to_dict(),
            "quick_bind_field_id": self.quick_bind_field_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Visual:
        return cls(
            id=str(data["id"]),
            type=ChartType(data.get("type", ChartType.BAR.value)),
            data=list(data.get("data") or []),
            properties=VisualProperties.from_dict(data.get("properties")),
            position=Position.from_dict(data.get("position")),
            size=Size.from_dict(data.get("size")),
            field_mapping=FieldMapping.from_dict(data.get("field_mapping") or data.get("fieldMapping")),
            quick_bind_field_id=data.get("quick_bind_field_id"),
        )


# -------------------------------------------------------------------------
# Panels
# -------------------------------------------------------------------------

@dataclass
class Slot:
    id: str
    visual_id: Optional[str] = None


@dataclass
class Panel:
    id: str
    layout_type: LayoutType
    position: Position = field(default_factory=Position)
    size: Size = field(default_factory=lambda: Size(600.0, 400.0))
    slots: List[Slot] = field(default_factory=list)

    @classmethod
    def create(cls, layout_type: LayoutType, position: Optional[Position] = None) -> Panel:
        count = SLOT_COUNTS.get(layout_type, 1)
        return cls(
            id=new_id(),
            layout_type=layout_type,
            position=position or Position(),
            slots=[Slot(id=new_id()) for _ in range(count)],
        )

    def slot(self, slot_id: str) -> Optional[Slot]:
        return next((s for s in self.slots if s.id == slot_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "layout_type": self.layout_type.value,
            "position": asdict(self.position),
            "size": asdict(self.size),
            "slots": [{"id": s.id, "visual_id": s.visual_id} for s in self.slots],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Panel:
        return cls(
            id=str(data["id"]),
            layout_type=parse_layout_type(data.get("layout_type") or data.get("layoutType") or "single"),
            position=Position.from_dict(data.get("position")),
            size=Size.from_dict(data.get("size"), Size(600.0, 400.0)),
            slots=[
                Slot(id=str(s["id"]), visual_id=s.get("visual_id") or s.get("visualId"))
                for s in data.get("slots") or []
            ],
        )


# -------------------------------------------------------------------------
# Slicers
# -------------------------------------------------------------------------

@dataclass
class SlicerData:
    """
    A filter widget bound to one field.

    What the slicer has selected is not stored here: the filter store owns it
    and the slicer renders FilterStore.selected_values(field).
    """
    id: str
    type: SlicerType
    field: str
    field_label: str
    title: Optional[str] = None
    multi_select: bool = True
    show_search: bool = False
    position: Position = field(default_factory=Position)
    size: Size = field(default_factory=lambda: Size(220.0, 260.0))

    @property
    def display_title(self) -> str:
        return self.title or self.field_label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "field": self.field,
            "field_label": self.field_label,
            "title": self.title,
            "multi_select": self.multi_select,
            "show_search": self.show_search,
            "position": asdict(self.position),
            "size": asdict(self.size),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SlicerData:
        return cls(
            id=str(data["id"]),
            type=SlicerType(data["type"]),
            field=str(data["field"]),
            field_label=str(data.get("field_label") or data.get("fieldLabel") or data["field"]),
            title=data.get("title"),
            multi_select=bool(data.get("multi_select", data.get("multiSelect", True))),
            show_search=bool(data.get("show_search", data.get("showSearch", False))),
            position=Position.from_dict(data.get("position")),
            size=Size.from_dict(data.get("size"), Size(220.0, 260.0)),
        )


# -------------------------------------------------------------------------
# Sheets
# -------------------------------------------------------------------------

@dataclass
class Sheet:
    """
    One tab of the report.

    - visuals: standalone visuals placed directly on the canvas
    - slot_visuals: visuals living inside panel slots, keyed by slot id
    """
    id: str
    name: str
    panels: List[Panel] = field(default_factory=list)
    visuals: List[Visual] = field(default_factory=list)
    slot_visuals: Dict[str, Visual] = field(default_factory=dict)
    slicers: List[SlicerData] = field(default_factory=list)

    def all_visuals(self) -> List[Visual]:
        return list(self.visuals) + list(self.slot_visuals.values())

    def find_visual(self, visual_id: str) -> Optional[Visual]:
        return next((v for v in self.all_visuals() if v.id == visual_id), None)

    def find_panel(self, panel_id: str) -> Optional[Panel]:
        return next((p for p in self.panels if p.id == panel_id), None)

    def find_slicer(self, slicer_id: str) -> Optional[SlicerData]:
        return next((s for s in self.slicers if s.id == slicer_id), None)

    def slot_of(self, visual_id: str) -> Optional[Slot]:
        for panel in self.panels:
            for slot in panel.slots:
                if slot.visual_id == visual_id:
                    return slot
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "panels": [p.to_dict() for p in self.panels],
            "visuals": [v.to_dict() for v in self.visuals],
            # dict -> list of entries at the persistence boundary
            "slot_visuals": [
                {"slot_id": slot_id, "visual": visual.to_dict()}
                for slot_id, visual in self.slot_visuals.items()
            ],
            "slicers": [s.to_dict() for s in self.slicers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Sheet:
        raw_slots = data.get("slot_visuals")
        if raw_slots is None:
            raw_slots = data.get("slotVisuals") or {}
        if isinstance(raw_slots, dict):
            slot_visuals = {str(k): Visual.from_dict(v) for k, v in raw_slots.items()}
        else:
            slot_visuals = {str(e["slot_id"]): Visual.from_dict(e["visual"]) for e in raw_slots}
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or "Sheet"),
            panels=[Panel.from_dict(p) for p in data.get("panels") or []],
            visuals=[Visual.from_dict(v) for v in data.get("visuals") or []],
            slot_visuals=slot_visuals,
            slicers=[SlicerData.from_dict(s) for s in data.get("slicers") or []],
        )


def new_sheet(name: str = "Sheet 1") -> Sheet:
    return Sheet(id=new_id(), name=name)


@dataclass
class Workbook:
    """Ordered sheets (never fewer than one) plus which one is showing."""
    sheets: List[Sheet] = field(default_factory=lambda: [new_sheet()])
    active_sheet_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.sheets:
            self.sheets = [new_sheet()]
        if self.find_sheet(self.active_sheet_id or "") is None:
            self.active_sheet_id = self.sheets[0].id

    @property
    def active_sheet(self) -> Sheet:
        return self.find_sheet(self.active_sheet_id or "") or self.sheets[0]

    def find_sheet(self, sheet_id: str) -> Optional[Sheet]:
        return next((s for s in self.sheets if s.id == sheet_id), None)

    def all_visuals(self) -> List[Visual]:
        return [v for sheet in self.sheets for v in sheet.all_visuals()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sheets": [s.to_dict() for s in self.sheets],
            "active_sheet_id": self.active_sheet_id,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Workbook:
        data = data or {}
        return cls(
            sheets=[Sheet.from_dict(s) for s in data.get("sheets") or []],
            active_sheet_id=data.get("active_sheet_id") or data.get("activeSheetId"),
        )


# -------------------------------------------------------------------------
# Relative date presets
# -------------------------------------------------------------------------

RELATIVE_DATE_PRESETS = ("today", "last7", "last30", "thisMonth", "lastMonth", "thisYear")


def _month_end(day: date) -> date:
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def relative_date_range(preset: str, today: date) -> DateRange:
    """Resolve a relative-date preset against today. Raises ValueError for unknown presets."""
    if preset == "today":
        return DateRange(today, today)
    if preset == "last7":
        return DateRange(today - timedelta(days=7), today)
    if preset == "last30":
        return DateRange(today - timedelta(days=30), today)
    if preset == "thisMonth":
        return DateRange(today.replace(day=1), _month_end(today))
    if preset == "lastMonth":
        last = today.replace(day=1) - timedelta(days=1)
        return DateRange(last.replace(day=1), last)
    if preset == "thisYear":
        return DateRange(date(today.year, 1, 1), today)
    raise ValueError(f"Unknown relative date preset '{preset}'")
