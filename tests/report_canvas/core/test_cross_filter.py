from __future__ import annotations

from report_canvas.core.cross_filter import (
    DIMMED_OPACITY,
    FULL_OPACITY,
    CrossFilter,
    CrossFilterCoordinator,
    opacity_for,
)


def test_same_selection_twice_toggles_off():
    coord = CrossFilterCoordinator()
    cf = CrossFilter("v1", "category", "Spring")

    assert coord.set_cross_filter(cf) == cf
    assert coord.set_cross_filter(CrossFilter("v1", "category", "Spring")) is None
    assert coord.active is None


def test_different_value_replaces_active_filter():
    coord = CrossFilterCoordinator()
    coord.set_cross_filter(CrossFilter("v1", "category", "Spring"))

    coord.set_cross_filter(CrossFilter("v2", "category", "Brand"))

    assert coord.active.source_visual_id == "v2"
    assert coord.active.value == "Brand"


def test_is_filtered_excludes_the_source_visual():
    coord = CrossFilterCoordinator()
    assert not coord.is_filtered("v1")

    coord.set_cross_filter(CrossFilter("v1", "category", "Spring"))

    assert not coord.is_filtered("v1")
    assert coord.is_filtered("v2")
    assert coord.is_filtered("v3")


def test_get_highlight_only_for_matching_dimension():
    coord = CrossFilterCoordinator(CrossFilter("v1", "category", ["Spring", "Brand"]))

    assert coord.get_highlight("category") == ["Spring", "Brand"]
    assert coord.get_highlight("series") is None


def test_clear_drops_active_filter():
    coord = CrossFilterCoordinator(CrossFilter("v1", "category", "Spring"))

    coord.clear()

    assert coord.active is None
    assert coord.to_dict() is None


def test_opacity_for_dims_everything_but_the_highlight():
    assert opacity_for("Spring", None) == FULL_OPACITY
    assert opacity_for("Spring", "Spring") == FULL_OPACITY
    assert opacity_for("Brand", "Spring") == DIMMED_OPACITY
    assert opacity_for("Brand", ["Spring", "Brand"]) == FULL_OPACITY


def test_coordinator_to_from_dict_roundtrip():
    coord = CrossFilterCoordinator(CrossFilter("v1", "category", ["A", "B"]))

    rebuilt = CrossFilterCoordinator.from_dict(coord.to_dict())

    assert rebuilt.active == coord.active
