from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from .actions import (
    Action,
    ActionResult,
    AddFieldToWell,
    CreatePanel,
    CreateSlicer,
    CreateVisual,
    MoveComponent,
    PlaceVisualInSlot,
    QuickBindField,
    Rejected,
)
from .composition import ChartType, Position, SlicerType, parse_layout_type
from .dataset import FieldCatalog
from .drag import DragEvent, DragKind, TargetKind, decode_source, decode_target
from .fields import DataType, FieldRole, WellKind
from .state import ReportState

logger = logging.getLogger(__name__)

Handler = Callable[[DragEvent, ReportState], Action]


class IntentRouter:
    """
    Turns a finished drag (source + drop target) into exactly one Action.

    Classification looks at the source kind first, then the target kind,
    through a handler table covering every (DragKind, TargetKind) pair.
    Pairs without a dedicated handler resolve to {@link Rejected}, so an
    unknown id, a drop outside any target or a drop on the wrong kind of
    target never mutates state.
    """

    def __init__(self, catalog: FieldCatalog):
        self.catalog = catalog
        self._handlers: Dict[Tuple[DragKind, TargetKind], Handler] = {
            (source, target): self._unsupported for source in DragKind for target in TargetKind
        }
        self._handlers.update({
            (DragKind.LAYOUT, TargetKind.CANVAS): self._layout_to_canvas,
            (DragKind.COMPONENT_TYPE, TargetKind.CANVAS): self._component_to_canvas,
            (DragKind.COMPONENT_TYPE, TargetKind.SLOT): self._component_to_slot,
            (DragKind.SLICER_TYPE, TargetKind.CANVAS): self._create_slicer,
            (DragKind.SLICER_TYPE, TargetKind.NONE): self._create_slicer,
            (DragKind.DATA_FIELD, TargetKind.FIELD_WELL): self._field_to_well,
            (DragKind.DATA_FIELD, TargetKind.VISUAL): self._field_to_visual,
            (DragKind.DATA_FIELD, TargetKind.SLOT): self._field_to_slot,
        })
        for target in TargetKind:
            self._handlers[(DragKind.PLACED_COMPONENT, target)] = self._move

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(
            self,
            source_id: Optional[str],
            source_payload: Optional[Dict[str, Any]],
            target_id: Optional[str],
            target_payload: Optional[Dict[str, Any]],
            state: ReportState,
            delta: Optional[Position] = None,
    ) -> Action:
        event = DragEvent(
            source=decode_source(source_id, source_payload),
            target=decode_target(target_id, target_payload),
            delta=delta or Position(),
        )
        return self.classify_event(event, state)

    def classify_event(self, event: DragEvent, state: ReportState) -> Action:
        handler = self._handlers[(event.source.kind, event.target.kind)]
        action = handler(event, state)
        logger.debug(
            "drag classified",
            extra={
                "source": event.source.raw_id,
                "target": event.target.raw_id,
                "action": action.action_type,
            },
        )
        return action

    def apply(self, action: Action, state: ReportState) -> ReportState:
        state.dispatch(action)
        return state

    def route(self, event: DragEvent, state: ReportState) -> ActionResult:
        """Classify a drag event and dispatch the resulting action on state."""
        return state.dispatch(self.classify_event(event, state))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _unsupported(self, event: DragEvent, state: ReportState) -> Action:
        if event.source.kind == DragKind.UNKNOWN:
            return Rejected(f"Unrecognised drag source '{event.source.raw_id}'")
        if event.target.kind in (TargetKind.NONE, TargetKind.ABORTED):
            return Rejected("Dropped outside of any drop zone")
        return Rejected(f"Cannot drop {event.source.kind.value.replace('_', ' ')} here")

    def _layout_to_canvas(self, event: DragEvent, state: ReportState) -> Action:
        try:
            layout_type = parse_layout_type(event.source.ref)
        except ValueError:
            return Rejected(f"Unknown layout '{event.source.ref}'")
        return CreatePanel(layout_type, event.drop_position)

    def _component_to_canvas(self, event: DragEvent, state: ReportState) -> Action:
        try:
            chart_type = ChartType(event.source.ref)
        except ValueError:
            return Rejected(f"Unknown chart type '{event.source.ref}'")
        return CreateVisual(chart_type, event.drop_position)

    def _component_to_slot(self, event: DragEvent, state: ReportState) -> Action:
        try:
            chart_type = ChartType(event.source.ref)
        except ValueError:
            return Rejected(f"Unknown chart type '{event.source.ref}'")
        slot_id = event.target.ref
        panel_id = event.target.panel_id
        if panel_id is None:
            panel_id = next(
                (p.id for p in state.sheet.panels if p.slot(slot_id) is not None),
                None,
            )
        if panel_id is None:
            return Rejected("That slot no longer exists")
        return PlaceVisualInSlot(panel_id, slot_id, chart_type)

    def _create_slicer(self, event: DragEvent, state: ReportState) -> Action:
        try:
            slicer_type = SlicerType(event.source.ref)
        except ValueError:
            return Rejected(f"Unknown slicer type '{event.source.ref}'")
        field_id = event.source.payload.get("field")
        if not field_id or not self.catalog.has_field(field_id):
            field_id = self._default_slicer_field(slicer_type)
        if field_id is None:
            return Rejected(f"No field available for a {slicer_type.value} slicer")
        return CreateSlicer(slicer_type, field_id, event.drop_position)

    def _field_to_well(self, event: DragEvent, state: ReportState) -> Action:
        try:
            well = WellKind(event.target.ref)
        except ValueError:
            return Rejected(f"Unknown field well '{event.target.ref}'")
        field_id = event.source.ref
        if not self.catalog.has_field(field_id):
            return Rejected(f"Unknown field '{field_id}'")
        if state.selected_visual is None:
            return Rejected("Select a visual before adding fields")
        return AddFieldToWell(state.selected_visual.id, well, field_id)

    def _field_to_visual(self, event: DragEvent, state: ReportState) -> Action:
        return self._quick_bind(event.source.ref, event.target.ref, state)

    def _field_to_slot(self, event: DragEvent, state: ReportState) -> Action:
        visual = state.sheet.slot_visuals.get(event.target.ref)
        if visual is None:
            return Rejected("Drop a chart into the slot before binding fields")
        return self._quick_bind(event.source.ref, visual.id, state)

    def _quick_bind(self, field_id: str, visual_id: str, state: ReportState) -> Action:
        if not self.catalog.has_field(field_id):
            return Rejected(f"Unknown field '{field_id}'")
        if state.sheet.find_visual(visual_id) is None:
            return Rejected("That visual no longer exists")
        return QuickBindField(visual_id, field_id)

    def _move(self, event: DragEvent, state: ReportState) -> Action:
        return MoveComponent(event.source.component, event.source.ref, event.delta.x, event.delta.y)

    def _default_slicer_field(self, slicer_type: SlicerType) -> Optional[str]:
        """
        Field a new slicer binds to when the drag does not name one:
        first string dimension for value pickers, first metric for numeric
        ranges, first date field for date pickers.
        """
        table = self.catalog.default_table
        if table is None:
            return None
        if slicer_type in (SlicerType.DROPDOWN, SlicerType.LIST):
            found = table.first(role=FieldRole.DIMENSION, data_type=DataType.STRING) or table.first(
                role=FieldRole.DIMENSION
            )
        elif slicer_type == SlicerType.NUMERIC_RANGE:
            found = table.first(role=FieldRole.METRIC)
        else:
            found = table.first(data_type=DataType.DATE)
        return found.id if found is not None else None
