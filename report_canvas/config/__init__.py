"""
Config package for report_canvas.

Responsible for:
- config models (GlobalConfig, TableConfig)
- config I/O helpers (load_global_config / load_catalog)
"""

from .loader import load_catalog, load_global_config
from .model import GlobalConfig, TableConfig

__all__ = ["GlobalConfig", "TableConfig", "load_catalog", "load_global_config"]
