"""
Report Canvas: interactive report builder with live filtering, field-well
driven aggregation and cross-visual highlighting.
"""

__version__ = "0.1.0"
