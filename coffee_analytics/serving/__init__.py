"""
Serving Module
"""
from .snapshot import SNAPSHOT_LOAD_ERRORS, Snapshot, load_snapshot

__all__ = [
    "SNAPSHOT_LOAD_ERRORS",
    "Snapshot",
    "load_snapshot",
]
