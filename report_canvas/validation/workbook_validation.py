from __future__ import annotations

from typing import Any, Dict, List, Set

from report_canvas.core.composition import ChartType, SlicerType, parse_layout_type
from report_canvas.validation.errors import ValidationError, ValidationIssue

_CHART_TYPES = {c.value for c in ChartType}
_SLICER_TYPES = {s.value for s in SlicerType}


def _check_fields(items: Any, path: str, issues: List[ValidationIssue]) -> None:
    if items is None:
        return
    if not isinstance(items, list):
        issues.append(ValidationIssue("MAPPING_WELL_TYPE", f"{path} must be a list.", path))
        return
    for i, f in enumerate(items):
        if not isinstance(f, dict) or not f.get("id"):
            issues.append(ValidationIssue("MAPPING_FIELD", f"{path}[{i}] must be an object with an id.", path))


def _check_visual(v: Any, path: str, seen: Set[str], issues: List[ValidationIssue]) -> None:
    if not isinstance(v, dict):
        issues.append(ValidationIssue("VISUAL_TYPE", f"{path} must be an object.", path))
        return
    vid = v.get("id")
    if not vid:
        issues.append(ValidationIssue("VISUAL_ID", f"{path}.id missing.", path))
    elif vid in seen:
        issues.append(ValidationIssue("VISUAL_ID_DUPLICATE", f"{path}.id '{vid}' is used twice.", path))
    else:
        seen.add(vid)
    if v.get("type") not in _CHART_TYPES:
        issues.append(ValidationIssue("VISUAL_CHART_TYPE", f"{path}.type '{v.get('type')}' is not a chart type.", path))
    if v.get("data") is not None and not isinstance(v.get("data"), list):
        issues.append(ValidationIssue("VISUAL_DATA", f"{path}.data must be a list of rows.", path))

    mapping = v.get("field_mapping") or v.get("fieldMapping")
    if mapping is None:
        return
    if not isinstance(mapping, dict):
        issues.append(ValidationIssue("MAPPING_TYPE", f"{path}.field_mapping must be an object.", path))
        return
    for well in ("axis", "values", "tooltips"):
        _check_fields(mapping.get(well), f"{path}.field_mapping.{well}", issues)
    legend = mapping.get("legend")
    if legend is not None and (not isinstance(legend, dict) or not legend.get("id")):
        issues.append(ValidationIssue("MAPPING_FIELD", f"{path}.field_mapping.legend must be a field or null.", path))


def _check_sheet(s: Any, path: str, seen_visuals: Set[str], issues: List[ValidationIssue]) -> None:
    if not isinstance(s, dict):
        issues.append(ValidationIssue("SHEET_TYPE", f"{path} must be an object.", path))
        return
    if not s.get("id"):
        issues.append(ValidationIssue("SHEET_ID", f"{path}.id missing.", path))

    for i, p in enumerate(s.get("panels") or []):
        ppath = f"{path}.panels[{i}]"
        if not isinstance(p, dict) or not p.get("id"):
            issues.append(ValidationIssue("PANEL_ID", f"{ppath}.id missing.", ppath))
            continue
        try:
            parse_layout_type(p.get("layout_type") or p.get("layoutType") or "single")
        except ValueError:
            issues.append(ValidationIssue("PANEL_LAYOUT", f"{ppath}.layout_type is not a known layout.", ppath))

    for i, v in enumerate(s.get("visuals") or []):
        _check_visual(v, f"{path}.visuals[{i}]", seen_visuals, issues)

    slot_visuals = s.get("slot_visuals", s.get("slotVisuals")) or []
    if isinstance(slot_visuals, dict):
        entries = [{"slot_id": k, "visual": v} for k, v in slot_visuals.items()]
    elif isinstance(slot_visuals, list):
        entries = slot_visuals
    else:
        issues.append(ValidationIssue("SLOT_VISUALS_TYPE", f"{path}.slot_visuals must be a list.", path))
        entries = []
    for i, e in enumerate(entries):
        epath = f"{path}.slot_visuals[{i}]"
        if not isinstance(e, dict) or not e.get("slot_id"):
            issues.append(ValidationIssue("SLOT_VISUAL_ENTRY", f"{epath} needs slot_id and visual.", epath))
            continue
        _check_visual(e.get("visual"), f"{epath}.visual", seen_visuals, issues)

    for i, sl in enumerate(s.get("slicers") or []):
        spath = f"{path}.slicers[{i}]"
        if not isinstance(sl, dict) or not sl.get("id") or not sl.get("field"):
            issues.append(ValidationIssue("SLICER_FIELDS", f"{spath} needs id and field.", spath))
        elif sl.get("type") not in _SLICER_TYPES:
            issues.append(ValidationIssue("SLICER_TYPE", f"{spath}.type is not a slicer type.", spath))


def validate_workbook_import_dict(obj: Any) -> Dict[str, Any]:
    """
    Validate a raw saved/uploaded workbook BEFORE a ReportState is built from
    it, so a half-valid import never reaches app state.

    Accepts either the saved document ({"state": {...}, ...}) or a bare
    serialised state ({"workbook": {...}, "filters": {...}}).

    :return: the serialised state part of obj
    :raises ValidationError: listing every problem found
    """
    if not isinstance(obj, dict):
        raise ValidationError([ValidationIssue("WORKBOOK_TYPE", "Uploaded workbook must be a JSON object.")])

    state = obj.get("state", obj)
    if not isinstance(state, dict):
        raise ValidationError([ValidationIssue("STATE_TYPE", "state must be an object.")])

    issues: List[ValidationIssue] = []
    workbook = state.get("workbook") or {}
    if not isinstance(workbook, dict):
        issues.append(ValidationIssue("WORKBOOK_TYPE", "workbook must be an object."))
        workbook = {}

    sheets = workbook.get("sheets") or []
    if not isinstance(sheets, list):
        issues.append(ValidationIssue("SHEETS_TYPE", "workbook.sheets must be a list."))
        sheets = []

    seen_visuals: Set[str] = set()
    for i, s in enumerate(sheets):
        _check_sheet(s, f"sheets[{i}]", seen_visuals, issues)

    raw_filters = state.get("filters") or {}
    filters = raw_filters.get("filters") or [] if isinstance(raw_filters, dict) else raw_filters
    if not isinstance(raw_filters, dict) or not isinstance(filters, list):
        issues.append(ValidationIssue("FILTERS_TYPE", "filters.filters must be a list."))
    else:
        for i, f in enumerate(filters):
            if not isinstance(f, dict) or not f.get("field"):
                issues.append(ValidationIssue("FILTER_FIELD", f"filters[{i}].field missing.", f"filters[{i}]"))

    if issues:
        raise ValidationError(issues)
    return state
