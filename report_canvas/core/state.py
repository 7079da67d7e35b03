from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from .actions import (
    Action,
    ActionResult,
    AddFieldToWell,
    AddSheet,
    ApplyRelativeDate,
    ChangeVisualType,
    ClearCrossFilter,
    ClearFilters,
    ClearSlot,
    CreatePanel,
    CreateSlicer,
    CreateVisual,
    DeletePanel,
    DeleteSheet,
    DeleteSlicer,
    DeleteVisual,
    DuplicateVisual,
    MoveComponent,
    PlaceVisualInSlot,
    QuickBindField,
    Rejected,
    RemoveFieldFromWell,
    RenameSheet,
    SelectSheet,
    SelectVisual,
    SetCrossFilter,
    SetDateRange,
    SetFieldAggregation,
    SetFieldGranularity,
    SetNumericRange,
    SetSlicerSelection,
    ToggleSlicerValue,
    UpdateVisualProperties,
)
from .aggregation import derive_rows, derive_title, quick_bind_rows
from .composition import (
    Panel,
    Position,
    SlicerData,
    Sheet,
    Visual,
    Workbook,
    new_id,
    new_sheet,
    relative_date_range,
)
from .cross_filter import CrossFilterCoordinator
from .dataset import FieldCatalog, RecordSet
from .drag import ComponentKind
from .fields import AggregationType, DataField, WellKind
from .filter_store import FilterStore
from .predicates import DateRange, FilterOperator, FilterValue, NumericRange, Record, Scalar

logger = logging.getLogger(__name__)

Reducer = Callable[["ReportState", Any], ActionResult]

_REDUCERS: Dict[Type[Action], Reducer] = {}

# actions after which every complete visual is re-derived from the filtered records
_REFRESHING = (
    AddFieldToWell,
    RemoveFieldFromWell,
    SetFieldAggregation,
    SetFieldGranularity,
    DeleteSlicer,
    SetSlicerSelection,
    ToggleSlicerValue,
    SetNumericRange,
    SetDateRange,
    ApplyRelativeDate,
    ClearFilters,
)


def _reduces(action_type: Type[Action]):
    def decorator(fn: Reducer) -> Reducer:
        _REDUCERS[action_type] = fn
        return fn
    return decorator


def cascade_position(index: int) -> Position:
    """Default spot for the index-th new item on a sheet: a 3-wide staircase."""
    return Position(50.0 + (index % 3) * 50.0, 50.0 + (index // 3) * 50.0)


class ReportState:
    """
    Composition state of one report plus the filter/cross-filter context it is
    rendered under.

    Every mutation goes through {@link dispatch()}: one Action in, one
    {@link ActionResult} out. A rejected action leaves the state untouched.

    Design Notes:
    - The catalog and record set are inputs, not state. They are injected by
      whoever rebuilds the state (a Dash callback, a test) and are not
      serialised by {@link to_dict()}.
    - Filters are shared by all sheets. The cross-filter is transient and is
      serialised only so that a round-trip through a dcc.Store keeps it.
    """

    def __init__(
            self,
            workbook: Optional[Workbook] = None,
            *,
            filters: Optional[FilterStore] = None,
            cross_filter: Optional[CrossFilterCoordinator] = None,
            selected_visual_id: Optional[str] = None,
            catalog: Optional[FieldCatalog] = None,
            records: Optional[RecordSet] = None,
            legacy_min_max: bool = False,
    ):
        self.workbook = workbook or Workbook()
        self.filters = filters if filters is not None else FilterStore()
        self.cross_filter = cross_filter or CrossFilterCoordinator()
        self.selected_visual_id = selected_visual_id
        self.catalog = catalog if catalog is not None else FieldCatalog([])
        self.records = records if records is not None else RecordSet.empty()
        self.legacy_min_max = legacy_min_max

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def sheet(self) -> Sheet:
        return self.workbook.active_sheet

    @property
    def selected_visual(self) -> Optional[Visual]:
        if self.selected_visual_id is None:
            return None
        return self.sheet.find_visual(self.selected_visual_id)

    def filtered_records(self) -> Sequence[Record]:
        return self.filters.apply(self.records.records)

    def slicer_selection(self, slicer: SlicerData) -> List[Scalar]:
        return self.filters.selected_values(slicer.field)

    def _resolve_field(self, field_id: str) -> Optional[DataField]:
        return self.catalog.field(field_id) if self.catalog.has_field(field_id) else None

    def _quick_bound_rows(self, records: Sequence[Record], field_id: str) -> Optional[List[Dict[str, Any]]]:
        data_field = self._resolve_field(field_id)
        if data_field is None:
            return None
        category = self.catalog.category_field_for(data_field)
        if category is None:
            return None
        return quick_bind_rows(records, data_field, category)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> ActionResult:
        reducer = _REDUCERS.get(type(action))
        if reducer is None:
            raise TypeError(f"No reducer registered for {type(action).__name__}")

        result = reducer(self, action)
        if not result.applied:
            logger.info("action rejected", extra={"action": result.action, "notice": result.notice})
            return result

        if isinstance(action, _REFRESHING):
            self.refresh_visuals()
        logger.debug("action applied", extra={"action": result.action})
        return result

    def refresh_visuals(self) -> int:
        """
        Re-derive the data of every visual whose mapping is complete, or that
        was quick-bound to a single field. Other visuals keep the data they have.
        Returns the number of visuals updated.
        """
        records = self.filtered_records()
        updated = 0
        for visual in self.workbook.all_visuals():
            rows = derive_rows(records, visual.field_mapping, legacy_min_max=self.legacy_min_max)
            if rows is None and visual.quick_bind_field_id is not None:
                rows = self._quick_bound_rows(records, visual.quick_bind_field_id)
            if rows is None:
                continue
            visual.data = rows
            updated += 1
        return updated

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workbook": self.workbook.to_dict(),
            "filters": self.filters.to_dict(),
            "cross_filter": self.cross_filter.to_dict(),
            "selected_visual_id": self.selected_visual_id,
        }

    @classmethod
    def from_dict(
            cls,
            data: Optional[Dict[str, Any]],
            *,
            catalog: Optional[FieldCatalog] = None,
            records: Optional[RecordSet] = None,
            legacy_min_max: bool = False,
    ) -> ReportState:
        data = data or {}
        return cls(
            Workbook.from_dict(data.get("workbook")),
            filters=FilterStore.from_dict(data.get("filters")),
            cross_filter=CrossFilterCoordinator.from_dict(data.get("cross_filter")),
            selected_visual_id=data.get("selected_visual_id"),
            catalog=catalog,
            records=records,
            legacy_min_max=legacy_min_max,
        )

    # ------------------------------------------------------------------
    # Helpers shared by reducers
    # ------------------------------------------------------------------

    def _forget_visuals(self, visual_ids: Sequence[str]) -> None:
        """Drop selection and cross-filter references to visuals that are going away."""
        if self.selected_visual_id in visual_ids:
            self.selected_visual_id = None
        active = self.cross_filter.active
        if active is not None and active.source_visual_id in visual_ids:
            self.cross_filter.clear()


# -------------------------------------------------------------------------
# Drag-and-drop intents
# -------------------------------------------------------------------------

@_reduces(Rejected)
def _rejected(state: ReportState, action: Rejected) -> ActionResult:
    return ActionResult.rejected(action, action.reason)


@_reduces(CreatePanel)
def _create_panel(state: ReportState, action: CreatePanel) -> ActionResult:
    sheet = state.sheet
    position = action.position or cascade_position(len(sheet.panels))
    sheet.panels.append(Panel.create(action.layout_type, position))
    return ActionResult.ok(action)


@_reduces(CreateVisual)
def _create_visual(state: ReportState, action: CreateVisual) -> ActionResult:
    sheet = state.sheet
    visual = Visual(
        id=new_id(),
        type=action.chart_type,
        position=action.position or cascade_position(len(sheet.visuals)),
    )
    sheet.visuals.append(visual)
    state.selected_visual_id = visual.id
    return ActionResult.ok(action)


@_reduces(PlaceVisualInSlot)
def _place_visual_in_slot(state: ReportState, action: PlaceVisualInSlot) -> ActionResult:
    sheet = state.sheet
    panel = sheet.find_panel(action.panel_id)
    slot = panel.slot(action.slot_id) if panel is not None else None
    if slot is None:
        return ActionResult.rejected(action, "That slot no longer exists")

    previous = sheet.slot_visuals.pop(slot.id, None)
    if previous is not None:
        state._forget_visuals([previous.id])

    visual = Visual(id=new_id(), type=action.chart_type)
    sheet.slot_visuals[slot.id] = visual
    slot.visual_id = visual.id
    state.selected_visual_id = visual.id
    return ActionResult.ok(action)


@_reduces(CreateSlicer)
def _create_slicer(state: ReportState, action: CreateSlicer) -> ActionResult:
    data_field = state._resolve_field(action.field_id)
    if data_field is None:
        return ActionResult.rejected(action, f"Unknown field '{action.field_id}'")
    sheet = state.sheet
    sheet.slicers.append(
        SlicerData(
            id=new_id(),
            type=action.slicer_type,
            field=data_field.id,
            field_label=data_field.name,
            position=action.position or cascade_position(len(sheet.slicers)),
        )
    )
    return ActionResult.ok(action)


@_reduces(AddFieldToWell)
def _add_field_to_well(state: ReportState, action: AddFieldToWell) -> ActionResult:
    visual = state.sheet.find_visual(action.visual_id)
    if visual is None:
        return ActionResult.rejected(action, "Select a visual before adding fields")
    catalog_field = state._resolve_field(action.field_id)
    if catalog_field is None:
        return ActionResult.rejected(action, f"Unknown field '{action.field_id}'")

    mapping = visual.field_mapping
    # a field moved between wells keeps the settings it had on this visual
    entry = mapping.find(catalog_field.id) or catalog_field
    if action.well == WellKind.VALUES and entry.aggregation is None:
        entry = entry.with_settings(
            aggregation=AggregationType.SUM if entry.is_metric else AggregationType.COUNT
        )
    mapping.place(action.well, entry)
    visual.quick_bind_field_id = None

    title = derive_title(mapping)
    if title is not None:
        visual.properties = visual.properties.updated({"title": title})
    return ActionResult.ok(action)


@_reduces(QuickBindField)
def _quick_bind_field(state: ReportState, action: QuickBindField) -> ActionResult:
    visual = state.sheet.find_visual(action.visual_id)
    if visual is None:
        return ActionResult.rejected(action, "That visual no longer exists")
    data_field = state._resolve_field(action.field_id)
    if data_field is None:
        return ActionResult.rejected(action, f"Unknown field '{action.field_id}'")
    category = state.catalog.category_field_for(data_field)
    if category is None:
        return ActionResult.rejected(action, f"No category field to group '{data_field.name}' by")

    visual.quick_bind_field_id = data_field.id
    visual.data = quick_bind_rows(state.filtered_records(), data_field, category)
    visual.properties = visual.properties.updated({"title": f"{data_field.name} by {category.name}"})
    return ActionResult.ok(action)


@_reduces(MoveComponent)
def _move_component(state: ReportState, action: MoveComponent) -> ActionResult:
    sheet = state.sheet
    if action.kind == ComponentKind.PANEL:
        item = sheet.find_panel(action.component_id)
    elif action.kind == ComponentKind.SLICER:
        item = sheet.find_slicer(action.component_id)
    else:
        # slot visuals are laid out by their panel
        item = next((v for v in sheet.visuals if v.id == action.component_id), None)
    if item is None:
        return ActionResult.rejected(action, "That item can no longer be moved")
    item.position = item.position.moved(action.dx, action.dy)
    return ActionResult.ok(action)


# -------------------------------------------------------------------------
# Sheets
# -------------------------------------------------------------------------

@_reduces(AddSheet)
def _add_sheet(state: ReportState, action: AddSheet) -> ActionResult:
    sheet = new_sheet(action.name or f"Sheet {len(state.workbook.sheets) + 1}")
    state.workbook.sheets.append(sheet)
    state.workbook.active_sheet_id = sheet.id
    state.selected_visual_id = None
    return ActionResult.ok(action)


@_reduces(RenameSheet)
def _rename_sheet(state: ReportState, action: RenameSheet) -> ActionResult:
    sheet = state.workbook.find_sheet(action.sheet_id)
    if sheet is None:
        return ActionResult.rejected(action, "That sheet no longer exists")
    name = action.name.strip()
    if not name:
        return ActionResult.rejected(action, "Sheet name cannot be empty")
    sheet.name = name
    return ActionResult.ok(action)


@_reduces(DeleteSheet)
def _delete_sheet(state: ReportState, action: DeleteSheet) -> ActionResult:
    workbook = state.workbook
    sheet = workbook.find_sheet(action.sheet_id)
    if sheet is None:
        return ActionResult.rejected(action, "That sheet no longer exists")
    if len(workbook.sheets) == 1:
        return ActionResult.rejected(action, "A report needs at least one sheet")

    idx = workbook.sheets.index(sheet)
    workbook.sheets.remove(sheet)
    state._forget_visuals([v.id for v in sheet.all_visuals()])
    if workbook.active_sheet_id == sheet.id:
        workbook.active_sheet_id = workbook.sheets[max(idx - 1, 0)].id
    return ActionResult.ok(action)


@_reduces(SelectSheet)
def _select_sheet(state: ReportState, action: SelectSheet) -> ActionResult:
    if state.workbook.find_sheet(action.sheet_id) is None:
        return ActionResult.rejected(action, "That sheet no longer exists")
    if state.workbook.active_sheet_id != action.sheet_id:
        state.workbook.active_sheet_id = action.sheet_id
        state.selected_visual_id = None
    return ActionResult.ok(action)


# -------------------------------------------------------------------------
# Visuals
# -------------------------------------------------------------------------

@_reduces(SelectVisual)
def _select_visual(state: ReportState, action: SelectVisual) -> ActionResult:
    if action.visual_id is not None and state.sheet.find_visual(action.visual_id) is None:
        return ActionResult.rejected(action, "That visual no longer exists")
    state.selected_visual_id = action.visual_id
    return ActionResult.ok(action)


@_reduces(DeleteVisual)
def _delete_visual(state: ReportState, action: DeleteVisual) -> ActionResult:
    sheet = state.sheet
    standalone = [v for v in sheet.visuals if v.id != action.visual_id]
    if len(standalone) != len(sheet.visuals):
        sheet.visuals = standalone
    else:
        slot = sheet.slot_of(action.visual_id)
        if slot is None:
            return ActionResult.rejected(action, "That visual no longer exists")
        sheet.slot_visuals.pop(slot.id, None)
        slot.visual_id = None
    state._forget_visuals([action.visual_id])
    return ActionResult.ok(action)


@_reduces(DuplicateVisual)
def _duplicate_visual(state: ReportState, action: DuplicateVisual) -> ActionResult:
    sheet = state.sheet
    visual = sheet.find_visual(action.visual_id)
    if visual is None:
        return ActionResult.rejected(action, "That visual no longer exists")
    # a slot holds one visual, so the copy of a slot visual lands on the canvas
    clone = visual.duplicate()
    sheet.visuals.append(clone)
    state.selected_visual_id = clone.id
    return ActionResult.ok(action)


@_reduces(ChangeVisualType)
def _change_visual_type(state: ReportState, action: ChangeVisualType) -> ActionResult:
    visual = state.sheet.find_visual(action.visual_id)
    if visual is None:
        return ActionResult.rejected(action, "That visual no longer exists")
    visual.type = action.chart_type
    return ActionResult.ok(action)


@_reduces(UpdateVisualProperties)
def _update_visual_properties(state: ReportState, action: UpdateVisualProperties) -> ActionResult:
    visual = state.sheet.find_visual(action.visual_id)
    if visual is None:
        return ActionResult.rejected(action, "That visual no longer exists")
    visual.properties = visual.properties.updated(action.updates)
    return ActionResult.ok(action)


@_reduces(RemoveFieldFromWell)
def _remove_field_from_well(state: ReportState, action: RemoveFieldFromWell) -> ActionResult:
    visual = state.sheet.find_visual(action.visual_id)
    if visual is None or not visual.field_mapping.remove(action.field_id):
        return ActionResult.rejected(action, "That field is not bound to the visual")
    return ActionResult.ok(action)


def _update_bound_field(state: ReportState, action, **settings) -> ActionResult:
    visual = state.sheet.find_visual(action.visual_id)
    entry = visual.field_mapping.find(action.field_id) if visual is not None else None
    if entry is None:
        return ActionResult.rejected(action, "That field is not bound to the visual")
    visual.field_mapping.update_field(entry.id, entry.with_settings(**settings))
    title = derive_title(visual.field_mapping)
    if title is not None:
        visual.properties = visual.properties.updated({"title": title})
    return ActionResult.ok(action)


@_reduces(SetFieldAggregation)
def _set_field_aggregation(state: ReportState, action: SetFieldAggregation) -> ActionResult:
    return _update_bound_field(state, action, aggregation=action.aggregation)


@_reduces(SetFieldGranularity)
def _set_field_granularity(state: ReportState, action: SetFieldGranularity) -> ActionResult:
    return _update_bound_field(state, action, time_granularity=action.granularity)


# -------------------------------------------------------------------------
# Panels
# -------------------------------------------------------------------------

@_reduces(DeletePanel)
def _delete_panel(state: ReportState, action: DeletePanel) -> ActionResult:
    sheet = state.sheet
    panel = sheet.find_panel(action.panel_id)
    if panel is None:
        return ActionResult.rejected(action, "That panel no longer exists")
    dropped = [sheet.slot_visuals.pop(s.id) for s in panel.slots if s.id in sheet.slot_visuals]
    sheet.panels.remove(panel)
    state._forget_visuals([v.id for v in dropped])
    return ActionResult.ok(action)


@_reduces(ClearSlot)
def _clear_slot(state: ReportState, action: ClearSlot) -> ActionResult:
    sheet = state.sheet
    panel = sheet.find_panel(action.panel_id)
    slot = panel.slot(action.slot_id) if panel is not None else None
    if slot is None:
        return ActionResult.rejected(action, "That slot no longer exists")
    dropped = sheet.slot_visuals.pop(slot.id, None)
    slot.visual_id = None
    if dropped is not None:
        state._forget_visuals([dropped.id])
    return ActionResult.ok(action)


# -------------------------------------------------------------------------
# Slicers and filters
# -------------------------------------------------------------------------

def _find_slicer(state: ReportState, action) -> Optional[SlicerData]:
    return state.sheet.find_slicer(action.slicer_id)


@_reduces(DeleteSlicer)
def _delete_slicer(state: ReportState, action: DeleteSlicer) -> ActionResult:
    slicer = _find_slicer(state, action)
    if slicer is None:
        return ActionResult.rejected(action, "That slicer no longer exists")
    state.sheet.slicers.remove(slicer)
    state.filters.remove(slicer.field)
    return ActionResult.ok(action)


@_reduces(SetSlicerSelection)
def _set_slicer_selection(state: ReportState, action: SetSlicerSelection) -> ActionResult:
    slicer = _find_slicer(state, action)
    if slicer is None:
        return ActionResult.rejected(action, "That slicer no longer exists")
    values = list(action.values)
    if not slicer.multi_select:
        values = values[-1:]
    state.filters.update_values(slicer.field, values)
    return ActionResult.ok(action)


@_reduces(ToggleSlicerValue)
def _toggle_slicer_value(state: ReportState, action: ToggleSlicerValue) -> ActionResult:
    slicer = _find_slicer(state, action)
    if slicer is None:
        return ActionResult.rejected(action, "That slicer no longer exists")
    current = state.filters.selected_values(slicer.field)

    if action.selected:
        if not slicer.multi_select:
            values = [action.value]
        elif action.value in current:
            values = current
        else:
            values = current + [action.value]
    else:
        if action.value not in current:
            return ActionResult.rejected(action, f"'{action.value}' is not selected")
        values = [v for v in current if v != action.value]

    state.filters.update_values(slicer.field, values)
    return ActionResult.ok(action)


@_reduces(SetNumericRange)
def _set_numeric_range(state: ReportState, action: SetNumericRange) -> ActionResult:
    slicer = _find_slicer(state, action)
    if slicer is None:
        return ActionResult.rejected(action, "That slicer no longer exists")
    if action.min > action.max:
        return ActionResult.rejected(action, "Minimum must not exceed maximum")
    state.filters.add_or_replace(
        FilterValue(
            field=slicer.field,
            operator=FilterOperator.BETWEEN.value,
            numeric_range=NumericRange(float(action.min), float(action.max)),
        )
    )
    return ActionResult.ok(action)


def _apply_date_range(state: ReportState, slicer: SlicerData, start: Optional[date], end: Optional[date]) -> None:
    if start is None and end is None:
        state.filters.remove(slicer.field)
        return
    state.filters.add_or_replace(
        FilterValue(
            field=slicer.field,
            operator=FilterOperator.BETWEEN.value,
            date_range=DateRange(start, end),
        )
    )


@_reduces(SetDateRange)
def _set_date_range(state: ReportState, action: SetDateRange) -> ActionResult:
    slicer = _find_slicer(state, action)
    if slicer is None:
        return ActionResult.rejected(action, "That slicer no longer exists")
    if action.start is not None and action.end is not None and action.start > action.end:
        return ActionResult.rejected(action, "Start date must not be after end date")
    _apply_date_range(state, slicer, action.start, action.end)
    return ActionResult.ok(action)


@_reduces(ApplyRelativeDate)
def _apply_relative_date(state: ReportState, action: ApplyRelativeDate) -> ActionResult:
    slicer = _find_slicer(state, action)
    if slicer is None:
        return ActionResult.rejected(action, "That slicer no longer exists")
    try:
        date_range = relative_date_range(action.preset, action.today or date.today())
    except ValueError as e:
        return ActionResult.rejected(action, str(e))
    _apply_date_range(state, slicer, date_range.start, date_range.end)
    return ActionResult.ok(action)


@_reduces(ClearFilters)
def _clear_filters(state: ReportState, action: ClearFilters) -> ActionResult:
    state.filters.clear_all()
    return ActionResult.ok(action)


@_reduces(SetCrossFilter)
def _set_cross_filter(state: ReportState, action: SetCrossFilter) -> ActionResult:
    state.cross_filter.set_cross_filter(action.cross_filter)
    return ActionResult.ok(action)


@_reduces(ClearCrossFilter)
def _clear_cross_filter(state: ReportState, action: ClearCrossFilter) -> ActionResult:
    state.cross_filter.clear()
    return ActionResult.ok(action)
