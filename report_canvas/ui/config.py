from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from report_canvas.config.model import GlobalConfig
from report_canvas.core.dataset import FieldCatalog
from report_canvas.core.intent_router import IntentRouter
from report_canvas.services.record_service import RecordSource
from report_canvas.services.workbook_service import WorkbookService
from report_canvas.views.registry import VisualRegistry


@dataclass
class AppConfig:
    """
    Shared services for the Dash app, passed into layout and callback
    registration instead of module-level globals.
    """
    config_root: Path
    global_config: GlobalConfig
    catalog: FieldCatalog
    record_source: RecordSource
    registry: Optional[VisualRegistry] = None
    router: Optional[IntentRouter] = None
    workbook_service: Optional[WorkbookService] = None

    def validate(self) -> None:
        """Ensure all required services are attached before the app starts."""
        if self.registry is None:
            raise RuntimeError("AppConfig.registry must be initialized.")
        if self.router is None:
            raise RuntimeError("AppConfig.router must be initialized.")
        if self.workbook_service is None:
            raise RuntimeError("AppConfig.workbook_service must be initialized.")
