from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .composition import Position


class DragKind(str, Enum):
    LAYOUT = "layout"
    COMPONENT_TYPE = "component_type"
    DATA_FIELD = "data_field"
    SLICER_TYPE = "slicer_type"
    PLACED_COMPONENT = "placed_component"
    UNKNOWN = "unknown"


class TargetKind(str, Enum):
    CANVAS = "canvas"
    SLOT = "slot"
    FIELD_WELL = "field_well"
    VISUAL = "visual"
    NONE = "none"
    ABORTED = "aborted"


class ComponentKind(str, Enum):
    PANEL = "panel"
    VISUAL = "visual"
    SLICER = "slicer"


@dataclass(frozen=True)
class DragSource:
    """
    What is being dragged.

    - kind: the tagged source variant
    - ref: the part of the id after its prefix (layout type, chart type,
      field id, slicer type, or the id of the placed component)
    - component: set for PLACED_COMPONENT only
    """
    kind: DragKind
    ref: str
    raw_id: str = ""
    component: Optional[ComponentKind] = None
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DropTarget:
    kind: TargetKind
    ref: str = ""
    raw_id: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def panel_id(self) -> Optional[str]:
        value = self.payload.get("panel_id") or self.payload.get("panelId")
        return str(value) if value else None


@dataclass(frozen=True)
class DragEvent:
    source: DragSource
    target: DropTarget
    delta: Position = field(default_factory=Position)

    @property
    def drop_position(self) -> Optional[Position]:
        """Canvas position carried by the target payload, if the client sent one."""
        pos = self.target.payload.get("position")
        return Position.from_dict(pos) if isinstance(pos, dict) else None


# Order matters: "slicer-type-" has to be tried before "slicer-".
_SOURCE_PREFIXES = (
    ("layout-", DragKind.LAYOUT, None),
    ("component-", DragKind.COMPONENT_TYPE, None),
    ("field-", DragKind.DATA_FIELD, None),
    ("slicer-type-", DragKind.SLICER_TYPE, None),
    ("panel-", DragKind.PLACED_COMPONENT, ComponentKind.PANEL),
    ("visual-", DragKind.PLACED_COMPONENT, ComponentKind.VISUAL),
    ("slicer-", DragKind.PLACED_COMPONENT, ComponentKind.SLICER),
)

_TARGET_PREFIXES = (
    ("slot-", TargetKind.SLOT),
    ("well-", TargetKind.FIELD_WELL),
    ("drop-", TargetKind.VISUAL),
)


def decode_source(source_id: Optional[str], payload: Optional[Dict[str, Any]] = None) -> DragSource:
    raw = str(source_id or "")
    payload = dict(payload or {})
    for prefix, kind, component in _SOURCE_PREFIXES:
        if raw.startswith(prefix) and len(raw) > len(prefix):
            return DragSource(kind, raw[len(prefix):], raw, component, payload)
    return DragSource(DragKind.UNKNOWN, raw, raw, None, payload)


def decode_target(target_id: Optional[str], payload: Optional[Dict[str, Any]] = None) -> DropTarget:
    raw = str(target_id or "")
    payload = dict(payload or {})
    if not raw:
        return DropTarget(TargetKind.ABORTED, "", raw, payload)
    if raw == "canvas":
        return DropTarget(TargetKind.CANVAS, "", raw, payload)
    for prefix, kind in _TARGET_PREFIXES:
        if raw.startswith(prefix) and len(raw) > len(prefix):
            return DropTarget(kind, raw[len(prefix):], raw, payload)
    # released over something that is not a drop zone
    return DropTarget(TargetKind.NONE, "", raw, payload)


def decode_drag_event(data: Dict[str, Any]) -> DragEvent:
    """
    Decode the raw payload the client-side drag library writes:
    {source_id, source_payload, target_id, target_payload, delta: {x, y}}.
    camelCase keys are accepted as well.
    """
    def pick(snake: str, camel: str) -> Any:
        return data.get(snake) if snake in data else data.get(camel)

    return DragEvent(
        source=decode_source(pick("source_id", "sourceId"), pick("source_payload", "sourcePayload")),
        target=decode_target(pick("target_id", "targetId"), pick("target_payload", "targetPayload")),
        delta=Position.from_dict(data.get("delta")),
    )
