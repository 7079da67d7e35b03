from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import dash

from report_canvas.core.actions import Action, ActionResult
from report_canvas.core.state import ReportState

if TYPE_CHECKING:
    from report_canvas.ui.config import AppConfig


def load_state(ctx: AppConfig, data: Optional[Dict[str, Any]]) -> ReportState:
    """Rebuild the ReportState held in the report-state store, wired to the app's catalog and records."""
    return ReportState.from_dict(
        data,
        catalog=ctx.catalog,
        records=ctx.record_source.records,
        legacy_min_max=ctx.global_config.legacy_min_max,
    )


def dispatch_to_store(ctx: AppConfig, data: Optional[Dict[str, Any]], action: Action):
    """
    Apply one action to the stored state.
    :return: (new store data, notice payload or None). A rejected action leaves the store untouched.
    """
    state = load_state(ctx, data)
    result = state.dispatch(action)
    if not result.applied:
        return dash.no_update, notice_payload(result)
    return state.to_dict(), None


def notice_payload(result: ActionResult) -> Optional[Dict[str, str]]:
    if result.applied or not result.notice:
        return None
    return {"action": result.action, "message": result.notice}


def field_options(ctx: AppConfig) -> List[dict]:
    options = []
    for table in ctx.catalog.values():
        for f in table.fields:
            options.append({"label": f"{f.name} ({table.name})", "value": f.id})
    return options
