from __future__ import annotations

__all__ = ["IDs", "pattern_id"]


class IDs:
    class Store:
        REPORT_STATE = "report-state"
        DRAG_EVENT = "drag-event"
        NOTICE = "notice"

    class Control:
        # Canvas
        CANVAS = "canvas"
        SHEET_TABS = "sheet-tabs"
        ADD_SHEET_BTN = "add-sheet-btn"
        RENAME_SHEET_INPUT = "rename-sheet-input"
        RENAME_SHEET_BTN = "rename-sheet-btn"
        DELETE_SHEET_BTN = "delete-sheet-btn"

        # Filters
        CLEAR_FILTERS_BTN = "clear-filters-btn"
        CLEAR_CROSS_FILTER_BTN = "clear-cross-filter-btn"
        FILTER_SUMMARY = "filter-summary"

        # Selected visual
        SELECTED_VISUAL_LABEL = "selected-visual-label"
        VISUAL_TYPE_SELECT = "visual-type-select"
        VISUAL_TITLE_INPUT = "visual-title-input"
        VISUAL_OPTIONS_CHECKLIST = "visual-options-checklist"
        VISUAL_COLOR_INPUT = "visual-color-input"
        VISUAL_BAR_MODE = "visual-bar-mode"
        WELLS_CONTAINER = "wells-container"

        # Workbook IO
        WORKBOOK_NAME_INPUT = "workbook-name-input"
        SAVE_WORKBOOK_BTN = "save-workbook-btn"
        WORKBOOK_SELECT = "workbook-select"
        LOAD_WORKBOOK_BTN = "load-workbook-btn"
        DELETE_WORKBOOK_BTN = "delete-workbook-btn"
        EXPORT_WORKBOOK_BTN = "export-workbook-btn"
        DOWNLOAD_WORKBOOK = "download-workbook"
        IMPORT_WORKBOOK_UPLOAD = "import-workbook-upload"
        ACTIVE_WORKBOOK_ID = "active-workbook-id"

        # Toast
        NOTICE_TOAST = "notice-toast"

    class Pattern:
        # pattern-matching "type" strings; "index" carries the drag source id or the component id
        PALETTE_ITEM = "palette-item"
        FIELD_ADD = "field-add"
        FIELD_REMOVE = "field-remove"
        FIELD_AGGREGATION = "field-aggregation"
        FIELD_GRANULARITY = "field-granularity"
        WELL_SELECT = "well-select"
        SLOT_CHART_SELECT = "slot-chart-select"
        SLOT_CLEAR = "slot-clear"
        PANEL_DELETE = "panel-delete"
        VISUAL_GRAPH = "visual-graph"
        VISUAL_SELECT = "visual-select"
        VISUAL_DUPLICATE = "visual-duplicate"
        VISUAL_DELETE = "visual-delete"
        SLICER_VALUES = "slicer-values"
        SLICER_RANGE = "slicer-range"
        SLICER_DATES = "slicer-dates"
        SLICER_PRESET = "slicer-preset"
        SLICER_DELETE = "slicer-delete"


def pattern_id(kind: str, index: str) -> dict:
    return {"type": kind, "index": index}
