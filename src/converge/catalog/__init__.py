"""Declared resource catalog: models and YAML loading."""

from .models import Resource, RemovalPolicy
from .loader import load_catalog, parse_catalog

__all__ = [
    "Resource",
    "RemovalPolicy",
    "load_catalog",
    "parse_catalog",
]
