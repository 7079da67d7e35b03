from __future__ import annotations

import logging
from pathlib import Path

import dash_bootstrap_components as dbc
from dash import Dash

from .config import AppConfig
from report_canvas.config.loader import load_catalog
from report_canvas.core.intent_router import IntentRouter
from report_canvas.services.record_service import RecordSource
from report_canvas.services.storage import LocalFileSystemStorage
from report_canvas.services.workbook_service import WorkbookService
from report_canvas.ui.callbacks.callbacks_editing import register_editing_callbacks
from report_canvas.ui.callbacks.callbacks_filters import register_filter_callbacks
from report_canvas.ui.callbacks.callbacks_intents import register_intent_callbacks
from report_canvas.ui.callbacks.callbacks_io import register_io_callbacks
from report_canvas.ui.callbacks.callbacks_render import register_render_callbacks
from report_canvas.ui.layout.build_layout import build_layout
from report_canvas.views import default_registry

logger = logging.getLogger(__name__)


def create_dash_app(config_root: Path | str = Path("config")) -> Dash:
    config_root = Path(config_root)

    # 1) Load Config
    global_config, catalog = load_catalog(config_root)

    # 2) Initialize Service Layer
    record_source = RecordSource(global_config.data_file)
    # LocalFileSystemStorage creates the directory if needed
    storage_backend = LocalFileSystemStorage(global_config.storage_root)
    workbook_service = WorkbookService(storage_backend)

    # 3) App Context
    ctx = AppConfig(
        config_root=config_root,
        global_config=global_config,
        catalog=catalog,
        record_source=record_source,
        registry=default_registry(),
        router=IntentRouter(catalog),
        workbook_service=workbook_service,
    )
    ctx.validate()

    logger.info(
        "app_configured",
        extra={
            "tables": list(catalog.keys()),
            "n_records": len(record_source.records),
            "storage_root": str(global_config.storage_root),
        },
    )

    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
        suppress_callback_exceptions=True,
    )
    app.title = getattr(global_config, "ui_title", "Report Canvas")

    app.layout = build_layout(ctx)

    # Register callbacks
    register_intent_callbacks(app, ctx)
    register_filter_callbacks(app, ctx)
    register_editing_callbacks(app, ctx)
    register_io_callbacks(app, ctx)
    register_render_callbacks(app, ctx)

    return app
