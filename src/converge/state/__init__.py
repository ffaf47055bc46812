"""Recorded actual state and its persistence."""

from .models import ActualStateRecord, ResourceStatus
from .store import StateStore, InMemoryStateStore, FileStateStore

__all__ = [
    "ActualStateRecord",
    "ResourceStatus",
    "StateStore",
    "InMemoryStateStore",
    "FileStateStore",
]
