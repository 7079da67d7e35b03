from .errors import ValidationError, ValidationIssue
from .workbook_validation import validate_workbook_import_dict

__all__ = ["ValidationError", "ValidationIssue", "validate_workbook_import_dict"]
