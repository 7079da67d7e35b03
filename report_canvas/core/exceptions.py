class ReportCanvasError(Exception):
    """Base exception for all report_canvas errors"""
    pass

class ConfigError(ReportCanvasError):
    """Invalid or inconsistent global.json / table catalog config"""
    pass

class CatalogError(ReportCanvasError):
    """
    A field or table id was looked up that the field catalog does not define
    """
    pass

class RecordSourceError(ReportCanvasError):
    """The record file could not be read or has an unusable shape"""
    pass
