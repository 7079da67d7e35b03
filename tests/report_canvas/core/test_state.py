from __future__ import annotations

from datetime import date

import pytest

from report_canvas.core.actions import (
    AddFieldToWell,
    AddSheet,
    ApplyRelativeDate,
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
    RemoveFieldFromWell,
    RenameSheet,
    SelectSheet,
    SelectVisual,
    SetCrossFilter,
    SetDateRange,
    SetFieldAggregation,
    SetNumericRange,
    SetSlicerSelection,
    ToggleSlicerValue,
    UpdateVisualProperties,
)
from report_canvas.core.composition import ChartType, LayoutType, Position, SlicerType
from report_canvas.core.cross_filter import CrossFilter
from report_canvas.core.drag import ComponentKind
from report_canvas.core.fields import AggregationType, WellKind
from report_canvas.core.state import ReportState, cascade_position


@pytest.fixture
def state(catalog, records) -> ReportState:
    return ReportState(catalog=catalog, records=records)


def _bar_with_campaign_spend(state: ReportState) -> str:
    state.dispatch(CreateVisual(ChartType.BAR))
    visual_id = state.selected_visual_id
    state.dispatch(AddFieldToWell(visual_id, WellKind.AXIS, "campaign"))
    state.dispatch(AddFieldToWell(visual_id, WellKind.VALUES, "spend"))
    return visual_id


def _slicer(state: ReportState, slicer_type: SlicerType, field_id: str) -> str:
    state.dispatch(CreateSlicer(slicer_type, field_id))
    return state.sheet.slicers[-1].id


# -------------------------------------------------------------------------
# Composition
# -------------------------------------------------------------------------

def test_new_items_cascade_down_the_canvas(state):
    state.dispatch(CreateVisual(ChartType.BAR))
    state.dispatch(CreateVisual(ChartType.PIE))
    state.dispatch(CreateVisual(ChartType.LINE, Position(400, 10)))

    positions = [v.position for v in state.sheet.visuals]

    assert positions[0] == cascade_position(0)
    assert positions[1] == cascade_position(1)
    assert positions[2] == Position(400, 10)
    assert cascade_position(3) == Position(50.0, 100.0)


def test_complete_mapping_derives_rows_and_title(state):
    visual_id = _bar_with_campaign_spend(state)

    visual = state.sheet.find_visual(visual_id)

    assert [r["category"] for r in visual.data] == ["Brand", "retarget", "Spring"]
    assert visual.properties.title == "Spend by Campaign"
    assert visual.field_mapping.value_fields[0].aggregation == AggregationType.SUM


def test_dimension_dropped_on_values_counts_records(state):
    state.dispatch(CreateVisual(ChartType.BAR))
    visual_id = state.selected_visual_id

    state.dispatch(AddFieldToWell(visual_id, WellKind.VALUES, "platform"))

    assert state.sheet.find_visual(visual_id).field_mapping.find("platform").aggregation == AggregationType.COUNT


def test_field_moved_between_wells_lives_in_one_well(state):
    visual_id = _bar_with_campaign_spend(state)

    state.dispatch(AddFieldToWell(visual_id, WellKind.TOOLTIPS, "spend"))

    mapping = state.sheet.find_visual(visual_id).field_mapping
    assert mapping.well_of("spend") == WellKind.TOOLTIPS
    assert mapping.value_fields == []


def test_incomplete_mapping_keeps_existing_data(state):
    visual_id = _bar_with_campaign_spend(state)
    visual = state.sheet.find_visual(visual_id)
    before = list(visual.data)

    state.dispatch(RemoveFieldFromWell(visual_id, "spend"))

    assert visual.data == before


def test_aggregation_change_rederives_rows(state):
    visual_id = _bar_with_campaign_spend(state)

    state.dispatch(SetFieldAggregation(visual_id, "spend", AggregationType.AVG))

    rows = state.sheet.find_visual(visual_id).data
    assert {"category": "Spring", "value": 75.0} in rows


def test_place_visual_in_slot_replaces_previous_visual(state):
    state.dispatch(CreatePanel(LayoutType.TWO_COLUMNS))
    panel = state.sheet.panels[0]
    slot_id = panel.slots[0].id

    state.dispatch(PlaceVisualInSlot(panel.id, slot_id, ChartType.BAR))
    first = state.sheet.slot_visuals[slot_id].id
    state.dispatch(PlaceVisualInSlot(panel.id, slot_id, ChartType.PIE))

    assert state.sheet.slot_visuals[slot_id].type == ChartType.PIE
    assert state.sheet.find_visual(first) is None
    assert panel.slot(slot_id).visual_id == state.sheet.slot_visuals[slot_id].id
    assert state.sheet.visuals == []


def test_clear_slot_and_delete_panel_forget_selection(state):
    state.dispatch(CreatePanel(LayoutType.GRID_2X2))
    panel = state.sheet.panels[0]
    state.dispatch(PlaceVisualInSlot(panel.id, panel.slots[0].id, ChartType.BAR))
    assert state.selected_visual_id is not None

    state.dispatch(ClearSlot(panel.id, panel.slots[0].id))
    assert state.selected_visual_id is None
    assert state.sheet.slot_visuals == {}

    state.dispatch(PlaceVisualInSlot(panel.id, panel.slots[1].id, ChartType.CARD))
    state.dispatch(DeletePanel(panel.id))
    assert state.sheet.panels == []
    assert state.sheet.slot_visuals == {}
    assert state.selected_visual_id is None


def test_delete_visual_clears_cross_filter_it_owns(state):
    visual_id = _bar_with_campaign_spend(state)
    state.dispatch(SetCrossFilter(CrossFilter(visual_id, "category", "Spring")))

    state.dispatch(DeleteVisual(visual_id))

    assert state.cross_filter.active is None
    assert state.selected_visual_id is None
    assert not state.dispatch(DeleteVisual(visual_id)).applied


def test_duplicate_of_slot_visual_goes_on_canvas(state):
    state.dispatch(CreatePanel(LayoutType.SINGLE))
    panel = state.sheet.panels[0]
    state.dispatch(PlaceVisualInSlot(panel.id, panel.slots[0].id, ChartType.LINE))
    original = state.selected_visual_id

    state.dispatch(DuplicateVisual(original))

    assert len(state.sheet.visuals) == 1
    assert state.sheet.visuals[0].type == ChartType.LINE
    assert state.selected_visual_id == state.sheet.visuals[0].id != original


def test_move_shifts_standalone_items_only(state):
    state.dispatch(CreateVisual(ChartType.BAR, Position(10, 10)))
    visual_id = state.selected_visual_id
    state.dispatch(CreatePanel(LayoutType.SINGLE))
    panel = state.sheet.panels[0]
    state.dispatch(PlaceVisualInSlot(panel.id, panel.slots[0].id, ChartType.PIE))
    slot_visual = state.selected_visual_id

    assert state.dispatch(MoveComponent(ComponentKind.VISUAL, visual_id, 5, -5)).applied
    assert state.sheet.find_visual(visual_id).position == Position(15, 5)
    assert not state.dispatch(MoveComponent(ComponentKind.VISUAL, slot_visual, 5, 5)).applied


def test_select_and_update_properties(state):
    visual_id = _bar_with_campaign_spend(state)

    state.dispatch(SelectVisual(None))
    assert state.selected_visual is None
    assert not state.dispatch(SelectVisual("missing")).applied

    state.dispatch(UpdateVisualProperties(visual_id, {"title": "Custom", "show_legend": True}))
    props = state.sheet.find_visual(visual_id).properties
    assert props.title == "Custom"
    assert props.show_legend is True


# -------------------------------------------------------------------------
# Sheets
# -------------------------------------------------------------------------

def test_add_sheet_names_and_selects_it(state):
    result = state.dispatch(AddSheet())

    assert result.applied
    assert result.action == "AddSheet"
    assert state.sheet.name == "Sheet 2"
    assert len(state.workbook.sheets) == 2


def test_rename_sheet_rejects_blank_name(state):
    sheet_id = state.sheet.id

    assert not state.dispatch(RenameSheet(sheet_id, "   ")).applied
    assert state.dispatch(RenameSheet(sheet_id, " Overview ")).applied
    assert state.sheet.name == "Overview"


def test_last_sheet_cannot_be_deleted(state):
    result = state.dispatch(DeleteSheet(state.sheet.id))

    assert not result.applied
    assert result.notice
    assert len(state.workbook.sheets) == 1


def test_delete_active_sheet_selects_neighbour(state):
    first = state.sheet.id
    state.dispatch(AddSheet())
    second = state.sheet.id
    _bar_with_campaign_spend(state)

    state.dispatch(DeleteSheet(second))

    assert state.workbook.active_sheet_id == first
    assert state.selected_visual_id is None


def test_switching_sheets_keeps_composition(state):
    first = state.sheet.id
    _bar_with_campaign_spend(state)
    state.dispatch(AddSheet())

    state.dispatch(SelectSheet(first))

    assert len(state.sheet.visuals) == 1
    assert state.selected_visual_id is None


# -------------------------------------------------------------------------
# Slicers and filters
# -------------------------------------------------------------------------

def test_slicer_selection_filters_visuals_and_clear_resets_it(state):
    visual_id = _bar_with_campaign_spend(state)
    slicer_id = _slicer(state, SlicerType.LIST, "platform")
    slicer = state.sheet.find_slicer(slicer_id)

    state.dispatch(SetSlicerSelection(slicer_id, ["Google"]))
    assert state.sheet.find_visual(visual_id).data == [{"category": "Spring", "value": 50.0}]
    assert state.slicer_selection(slicer) == ["Google"]

    state.dispatch(ClearFilters())
    assert state.slicer_selection(slicer) == []
    assert len(state.sheet.find_visual(visual_id).data) == 3


def test_quick_bound_visual_follows_filters(state, catalog, records):
    state.dispatch(CreateVisual(ChartType.BAR))
    visual_id = state.selected_visual_id
    state.dispatch(QuickBindField(visual_id, "spend"))
    slicer_id = _slicer(state, SlicerType.LIST, "platform")

    state.dispatch(SetSlicerSelection(slicer_id, ["Google"]))
    assert state.sheet.find_visual(visual_id).data == [{"category": "Spring", "value": 50.0}]

    rebuilt = ReportState.from_dict(state.to_dict(), catalog=catalog, records=records)
    assert rebuilt.sheet.find_visual(visual_id).quick_bind_field_id == "spend"

    state.dispatch(ClearFilters())
    assert len(state.sheet.find_visual(visual_id).data) == 3


def test_well_binding_replaces_quick_bind(state):
    state.dispatch(CreateVisual(ChartType.BAR))
    visual_id = state.selected_visual_id
    state.dispatch(QuickBindField(visual_id, "spend"))

    state.dispatch(AddFieldToWell(visual_id, WellKind.AXIS, "platform"))
    visual = state.sheet.find_visual(visual_id)
    before = list(visual.data)
    slicer_id = _slicer(state, SlicerType.LIST, "platform")
    state.dispatch(SetSlicerSelection(slicer_id, ["Google"]))

    assert visual.quick_bind_field_id is None
    assert visual.data == before


def test_single_select_slicer_keeps_last_value(state):
    slicer_id = _slicer(state, SlicerType.DROPDOWN, "campaign")
    state.sheet.find_slicer(slicer_id).multi_select = False

    state.dispatch(SetSlicerSelection(slicer_id, ["Spring", "Brand"]))
    assert state.filters.selected_values("campaign") == ["Brand"]

    state.dispatch(ToggleSlicerValue(slicer_id, "Spring"))
    assert state.filters.selected_values("campaign") == ["Spring"]


def test_toggle_slicer_value_adds_and_removes(state):
    slicer_id = _slicer(state, SlicerType.LIST, "platform")

    state.dispatch(ToggleSlicerValue(slicer_id, "Meta"))
    state.dispatch(ToggleSlicerValue(slicer_id, "Google"))
    assert state.filters.selected_values("platform") == ["Meta", "Google"]

    state.dispatch(ToggleSlicerValue(slicer_id, "Meta", selected=False))
    assert state.filters.selected_values("platform") == ["Google"]

    assert not state.dispatch(ToggleSlicerValue(slicer_id, "Bing", selected=False)).applied

    state.dispatch(ToggleSlicerValue(slicer_id, "Google", selected=False))
    assert state.filters.get("platform") is None


def test_numeric_range_filters_and_rejects_inverted_range(state):
    visual_id = _bar_with_campaign_spend(state)
    slicer_id = _slicer(state, SlicerType.NUMERIC_RANGE, "spend")

    assert not state.dispatch(SetNumericRange(slicer_id, 60, 10)).applied
    state.dispatch(SetNumericRange(slicer_id, 25, 60))

    assert state.sheet.find_visual(visual_id).data == [
        {"category": "Brand", "value": 30.0},
        {"category": "Spring", "value": 50.0},
    ]


def test_date_range_and_relative_presets(state):
    slicer_id = _slicer(state, SlicerType.DATE_RANGE, "date")

    state.dispatch(SetDateRange(slicer_id, date(2024, 1, 1), date(2024, 1, 31)))
    assert len(state.filtered_records()) == 2

    state.dispatch(SetDateRange(slicer_id, None, None))
    assert state.filters.get("date") is None

    state.dispatch(ApplyRelativeDate(slicer_id, "thisMonth", today=date(2024, 3, 20)))
    assert [r["campaign"] for r in state.filtered_records()] == ["retarget"]

    assert not state.dispatch(ApplyRelativeDate(slicer_id, "someday")).applied


def test_deleting_slicer_removes_its_filter(state):
    slicer_id = _slicer(state, SlicerType.LIST, "platform")
    state.dispatch(SetSlicerSelection(slicer_id, ["Meta"]))

    state.dispatch(DeleteSlicer(slicer_id))

    assert len(state.filters) == 0
    assert state.sheet.slicers == []


def test_create_slicer_rejects_unknown_field(state):
    result = state.dispatch(CreateSlicer(SlicerType.LIST, "nope"))

    assert not result.applied
    assert state.sheet.slicers == []


# -------------------------------------------------------------------------
# Serialisation
# -------------------------------------------------------------------------

def test_state_roundtrips_through_dict(state, catalog, records):
    visual_id = _bar_with_campaign_spend(state)
    slicer_id = _slicer(state, SlicerType.LIST, "platform")
    state.dispatch(SetSlicerSelection(slicer_id, ["Meta"]))
    state.dispatch(SetCrossFilter(CrossFilter(visual_id, "category", "Brand")))

    rebuilt = ReportState.from_dict(state.to_dict(), catalog=catalog, records=records)

    assert rebuilt.to_dict() == state.to_dict()
    assert rebuilt.selected_visual.id == visual_id
    assert rebuilt.filters.selected_values("platform") == ["Meta"]
    assert rebuilt.cross_filter.is_filtered("other")


def test_from_dict_of_nothing_is_an_empty_report():
    state = ReportState.from_dict(None)

    assert len(state.workbook.sheets) == 1
    assert len(state.filters) == 0
    assert state.cross_filter.active is None
