"""
Persistence module for record storage and snapshots.
"""

from .record_store import RecordStore, FileRecordStore, StoreFactory
from .snapshot import RecordSnapshot

__all__ = [
    "RecordStore",
    "FileRecordStore",
    "StoreFactory",
    "RecordSnapshot",
]
