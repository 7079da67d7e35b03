from __future__ import annotations

from report_canvas.core.actions import (
    AddFieldToWell,
    CreatePanel,
    CreateSlicer,
    CreateVisual,
    MoveComponent,
    PlaceVisualInSlot,
    QuickBindField,
    Rejected,
)
from report_canvas.core.composition import ChartType, LayoutType, SlicerType
from report_canvas.core.drag import ComponentKind, decode_drag_event
from report_canvas.core.fields import WellKind
from report_canvas.core.intent_router import IntentRouter
from report_canvas.core.state import ReportState


def _make_state(catalog, records) -> ReportState:
    return ReportState(catalog=catalog, records=records)


def _event(source_id, target_id, target_payload=None, source_payload=None, delta=None):
    return decode_drag_event(
        {
            "source_id": source_id,
            "source_payload": source_payload or {},
            "target_id": target_id,
            "target_payload": target_payload or {},
            "delta": delta or {"x": 0, "y": 0},
        }
    )


def test_line_onto_empty_canvas_creates_one_standalone_visual(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)

    result = router.route(_event("component-line", "canvas"), state)

    assert result.applied
    assert len(state.sheet.visuals) == 1
    visual = state.sheet.visuals[0]
    assert visual.type == ChartType.LINE
    assert visual.field_mapping.axis.fields == []
    assert visual.field_mapping.values.fields == []
    assert visual.field_mapping.tooltips.fields == []
    assert state.sheet.slot_visuals == {}


def test_field_onto_well_without_selection_is_rejected(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)
    before = state.to_dict()

    result = router.route(_event("field-spend", "well-values"), state)

    assert not result.applied
    assert result.notice
    assert state.to_dict() == before


def test_classify_covers_each_intent(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)

    def classify(*args, **kwargs):
        return router.classify_event(_event(*args, **kwargs), state)

    assert classify("layout-2x2-grid", "canvas") == CreatePanel(LayoutType.GRID_2X2, None)
    assert isinstance(classify("component-bar", "canvas"), CreateVisual)
    assert classify("slicer-nope", "canvas") == MoveComponent(ComponentKind.SLICER, "nope", 0.0, 0.0)
    assert classify("visual-v1", "canvas", delta={"x": 3, "y": 4}) == MoveComponent(
        ComponentKind.VISUAL, "v1", 3.0, 4.0
    )
    assert isinstance(classify("component-bar", "well-axis"), Rejected)
    assert isinstance(classify("layout-circle", "canvas"), Rejected)
    assert isinstance(classify("unknown-thing", "canvas"), Rejected)
    assert isinstance(classify("component-bar", ""), Rejected)


def test_slicer_type_gets_a_default_field(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)

    dropdown = router.classify_event(_event("slicer-type-dropdown", "canvas"), state)
    numeric = router.classify_event(_event("slicer-type-numeric-range", "canvas"), state)
    dates = router.classify_event(_event("slicer-type-date-range", "outside"), state)
    named = router.classify_event(_event("slicer-type-list", "canvas", source_payload={"field": "platform"}), state)

    assert dropdown == CreateSlicer(SlicerType.DROPDOWN, "campaign", None)
    assert numeric.field_id == "spend"
    assert dates.field_id == "date"
    assert named.field_id == "platform"


def test_released_drag_without_target_leaves_state_untouched(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)
    before = state.to_dict()

    for source_id in ("slicer-type-list", "component-bar", "layout-2x2-grid", "field-spend"):
        result = router.route(_event(source_id, None), state)
        assert not result.applied
        assert result.notice

    assert state.sheet.slicers == []
    assert state.to_dict() == before


def test_released_placed_component_is_a_zero_move(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)

    action = router.classify_event(_event("panel-p1", None), state)

    assert action == MoveComponent(ComponentKind.PANEL, "p1", 0.0, 0.0)


def test_component_onto_slot_finds_panel(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)
    router.route(_event("layout-two-columns", "canvas"), state)
    panel = state.sheet.panels[0]
    slot_id = panel.slots[1].id

    action = router.classify_event(_event("component-pie", f"slot-{slot_id}"), state)
    assert action == PlaceVisualInSlot(panel.id, slot_id, ChartType.PIE)

    result = router.route(_event("component-pie", f"slot-{slot_id}", {"panel_id": panel.id}), state)
    assert result.applied
    assert state.sheet.slot_visuals[slot_id].type == ChartType.PIE

    missing = router.classify_event(_event("component-pie", "slot-missing"), state)
    assert isinstance(missing, Rejected)


def test_field_onto_well_targets_selected_visual(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)
    router.route(_event("component-bar", "canvas"), state)

    action = router.classify_event(_event("field-campaign", "well-axis"), state)

    assert action == AddFieldToWell(state.selected_visual_id, WellKind.AXIS, "campaign")
    assert isinstance(router.classify_event(_event("field-nope", "well-axis"), state), Rejected)
    assert isinstance(router.classify_event(_event("field-spend", "well-sideways"), state), Rejected)


def test_field_onto_visual_or_slot_quick_binds(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)
    router.route(_event("component-bar", "canvas"), state)
    visual_id = state.sheet.visuals[0].id

    action = router.classify_event(_event("field-spend", f"drop-{visual_id}"), state)
    assert action == QuickBindField(visual_id, "spend")

    router.route(_event("layout-single", "canvas"), state)
    empty_slot = state.sheet.panels[0].slots[0].id
    assert isinstance(router.classify_event(_event("field-spend", f"slot-{empty_slot}"), state), Rejected)


def test_quick_bind_replaces_placeholder_rows(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)
    router.route(_event("component-bar", "canvas"), state)
    visual = state.sheet.visuals[0]

    router.route(_event("field-spend", f"drop-{visual.id}"), state)

    assert visual.data == [
        {"category": "Brand", "value": 30.0},
        {"category": "retarget", "value": 20.0},
        {"category": "Spring", "value": 150.0},
    ]
    assert visual.properties.title == "Spend by Campaign"


def test_apply_returns_the_same_state(catalog, records):
    state = _make_state(catalog, records)
    router = IntentRouter(catalog)

    returned = router.apply(CreatePanel(LayoutType.SINGLE), state)

    assert returned is state
    assert len(state.sheet.panels) == 1
