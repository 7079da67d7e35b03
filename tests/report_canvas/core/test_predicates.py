from __future__ import annotations

import math
from datetime import date

from report_canvas.core.predicates import (
    DateRange,
    FilterValue,
    NumericRange,
    evaluate,
    parse_date,
    passes_all,
    to_number,
)


def test_equals_matches_any_listed_value():
    flt = FilterValue(field="platform", values=["Meta", "Google"])

    assert evaluate(flt, {"platform": "Meta"})
    assert evaluate(flt, {"platform": "Google"})
    assert not evaluate(flt, {"platform": "TikTok"})
    assert not evaluate(flt, {})


def test_empty_filter_passes_everything():
    flt = FilterValue(field="platform", values=[], operator="equals")

    assert flt.is_vacuous
    assert evaluate(flt, {"platform": "anything"})
    assert evaluate(FilterValue(field="spend", operator="gt"), {"spend": -5})


def test_contains_is_case_insensitive_substring():
    flt = FilterValue(field="campaign", values=["SALE"], operator="contains")

    assert evaluate(flt, {"campaign": "Spring sale 2024"})
    assert not evaluate(flt, {"campaign": "Brand"})
    # a missing value is treated as empty text
    assert not evaluate(flt, {"campaign": None})


def test_numeric_comparisons_coerce_strings():
    assert evaluate(FilterValue("spend", ["10"], "gt"), {"spend": 11})
    assert not evaluate(FilterValue("spend", [10], "gt"), {"spend": 10})
    assert evaluate(FilterValue("spend", [10], "gte"), {"spend": "10"})
    assert evaluate(FilterValue("spend", [10], "lt"), {"spend": 9.5})
    assert evaluate(FilterValue("spend", [10], "lte"), {"spend": 10})


def test_non_numeric_values_fail_comparisons():
    assert not evaluate(FilterValue("spend", [10], "gt"), {"spend": "n/a"})
    assert not evaluate(FilterValue("spend", [10], "lte"), {"spend": "n/a"})


def test_between_numeric_range_is_inclusive():
    flt = FilterValue("spend", operator="between", numeric_range=NumericRange(10, 20))

    assert evaluate(flt, {"spend": 10})
    assert evaluate(flt, {"spend": 20})
    assert not evaluate(flt, {"spend": 20.01})


def test_between_date_range_with_open_bounds():
    closed = FilterValue("date", operator="between", date_range=DateRange(date(2024, 1, 1), date(2024, 1, 31)))
    open_end = FilterValue("date", operator="between", date_range=DateRange(date(2024, 2, 1), None))

    assert evaluate(closed, {"date": "2024-01-31T23:00:00"})
    assert not evaluate(closed, {"date": "2024-02-01"})
    assert evaluate(open_end, {"date": "2030-01-01"})
    assert not evaluate(open_end, {"date": "not a date"})


def test_unknown_operator_falls_back_to_equals():
    flt = FilterValue("platform", ["Meta"], operator="startsWith")

    assert evaluate(flt, {"platform": "Meta"})
    assert not evaluate(flt, {"platform": "Metaverse"})


def test_passes_all_is_an_and():
    filters = [
        FilterValue("platform", ["Meta"]),
        FilterValue("spend", [50], "gte"),
    ]

    assert passes_all(filters, {"platform": "Meta", "spend": 60})
    assert not passes_all(filters, {"platform": "Meta", "spend": 40})
    assert passes_all([], {"anything": 1})


def test_to_number_coercion_rules():
    assert to_number(True) == 1.0
    assert to_number("  ") == 0.0
    assert to_number("3.5") == 3.5
    assert math.isnan(to_number("abc"))
    assert math.isnan(to_number(None))


def test_to_number_rejects_strings_javascript_would_not_parse():
    assert to_number(" -1.5e2 ") == -150.0
    assert to_number(".5") == 0.5
    assert to_number("0x1A") == 26.0
    for text in ("1_000", "inf", "-Infinity", "nan", "1e999", "0x1_0", "12abc"):
        assert math.isnan(to_number(text)), text


def test_parse_date_accepts_iso_strings_and_dates():
    assert parse_date("2024-03-01") == date(2024, 3, 1)
    assert parse_date("2024-03-01T10:15:00Z") == date(2024, 3, 1)
    assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)
    assert parse_date("") is None
    assert parse_date("yesterday") is None


def test_filter_value_to_from_dict_keeps_ranges():
    flt = FilterValue(
        "date",
        operator="between",
        date_range=DateRange(date(2024, 1, 1), None),
    )

    rebuilt = FilterValue.from_dict(flt.to_dict())

    assert rebuilt == flt
