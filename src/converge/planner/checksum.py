"""Stable checksums of declared resource configuration."""

import hashlib
import json
from typing import Any
from ..catalog.models import Resource


def compute_checksum(resource: Resource) -> str:
    """SHA-256 of the resource kind and properties in canonical JSON form."""
    payload = _canonical_json({"kind": resource.kind, "properties": resource.properties})
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _canonical_json(value: Any) -> str:
    return json.dumps(_canonicalize(value), sort_keys=True, separators=(",", ":"), default=str)


def _canonicalize(value: Any) -> Any:
    """Replace unordered containers with sorted lists so equal values hash equally."""
    if isinstance(value, dict):
        return {str(key): _canonicalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_canonicalize(item) for item in value), key=_canonical_json)
    return value
