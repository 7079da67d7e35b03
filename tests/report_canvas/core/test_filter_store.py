from __future__ import annotations

from report_canvas.core.filter_store import FilterStore
from report_canvas.core.predicates import FilterValue, NumericRange


def test_apply_with_no_filters_returns_input_unchanged(records):
    rows = records.records
    store = FilterStore()

    assert store.apply(rows) is rows


def test_apply_returns_a_subset(records):
    rows = records.records
    store = FilterStore([FilterValue("platform", ["Meta"])])

    kept = store.apply(rows)

    assert len(kept) == 3
    assert all(r in rows for r in kept)


def test_add_or_replace_keeps_one_filter_per_field_in_place():
    store = FilterStore()
    store.add_or_replace(FilterValue("platform", ["Meta"]))
    store.add_or_replace(FilterValue("campaign", ["Spring"]))
    store.add_or_replace(FilterValue("platform", ["Google"]))

    assert [f.field for f in store] == ["platform", "campaign"]
    assert store.get("platform").values == ["Google"]


def test_update_values_keeps_operator_and_empty_selection_removes():
    store = FilterStore([FilterValue("campaign", ["spr"], operator="contains")])

    store.update_values("campaign", ["bra"])
    assert store.get("campaign").operator == "contains"
    assert store.selected_values("campaign") == ["bra"]

    store.update_values("campaign", [])
    assert store.get("campaign") is None
    assert len(store) == 0


def test_update_values_creates_equals_filter():
    store = FilterStore()

    store.update_values("platform", ["Meta"])

    assert store.get("platform").operator == "equals"


def test_clear_all_resets_every_selection():
    store = FilterStore()
    store.add_or_replace(FilterValue(field="platform", values=["Meta"], operator="equals"))
    store.add_or_replace(FilterValue("spend", operator="between", numeric_range=NumericRange(0, 50)))

    store.clear_all()

    assert len(store) == 0
    assert store.selected_values("platform") == []


def test_remove_reports_whether_anything_was_removed():
    store = FilterStore([FilterValue("platform", ["Meta"])])

    assert store.remove("platform") is True
    assert store.remove("platform") is False


def test_to_from_dict_roundtrip():
    store = FilterStore([
        FilterValue("platform", ["Meta"]),
        FilterValue("spend", operator="between", numeric_range=NumericRange(10, 20)),
    ])

    rebuilt = FilterStore.from_dict(store.to_dict())

    assert rebuilt.filters == store.filters
    assert FilterStore.from_dict(None).filters == []
