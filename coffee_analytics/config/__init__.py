"""
Coffee Shop Sales Analytics
Configuration Module
"""
from .settings import DatasetSettings, MonitoringSettings, ReportSettings, Settings, get_settings

__all__ = [
    "DatasetSettings",
    "MonitoringSettings",
    "ReportSettings",
    "Settings",
    "get_settings",
]
