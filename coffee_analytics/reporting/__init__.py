"""
Reporting Module
"""
from .catalog import ReportCatalog, ReportDefinition, ReportResult, UnknownReportError

__all__ = [
    "ReportCatalog",
    "ReportDefinition",
    "ReportResult",
    "UnknownReportError",
]
