"""
Request dependencies backed by application state.
"""

from fastapi import HTTPException, Request

from coffee_analytics.config.settings import Settings
from coffee_analytics.serving.snapshot import Snapshot


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_snapshot(request: Request) -> Snapshot:
    """The loaded snapshot, or 503 while none is available"""
    snapshot = getattr(request.app.state, "snapshot", None)
    if snapshot is None:
        raise HTTPException(status_code=503, detail="Sales snapshot is not loaded")
    return snapshot
