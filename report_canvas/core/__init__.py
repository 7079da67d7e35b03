"""
Core domain layer: filter predicates and store, cross-filter coordinator,
aggregation pipeline, composition model, and the drag intent router
"""

from .aggregation import derive_rows, derive_title, quick_bind_rows
from .cross_filter import CrossFilter, CrossFilterCoordinator
from .dataset import FieldCatalog, RecordSet, TableCatalog
from .fields import DataField, FieldMapping
from .filter_store import FilterStore
from .intent_router import IntentRouter
from .predicates import FilterValue, evaluate
from .state import ReportState

__all__ = [
    "CrossFilter",
    "CrossFilterCoordinator",
    "DataField",
    "FieldCatalog",
    "FieldMapping",
    "FilterStore",
    "FilterValue",
    "IntentRouter",
    "RecordSet",
    "ReportState",
    "TableCatalog",
    "derive_rows",
    "derive_title",
    "evaluate",
    "quick_bind_rows",
]
