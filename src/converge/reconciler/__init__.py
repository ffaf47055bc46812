"""Reconciliation driver and its construction from settings."""

from .driver import ReconciliationDriver
from .factory import build_registry, build_store, create_driver

__all__ = [
    "ReconciliationDriver",
    "build_registry",
    "build_store",
    "create_driver",
]
