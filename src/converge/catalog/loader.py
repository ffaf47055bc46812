"""Load and validate declared resource catalogs from YAML."""

import os
import re
import yaml
from pathlib import Path
from typing import List, Dict, Any, Mapping, Optional
from pydantic import ValidationError as PydanticValidationError
from ..utils.errors import CatalogLoadError
from ..utils.logging import get_logger
from .models import Resource

logger = get_logger("catalog.loader")

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def load_catalog(catalog_path: str, environ: Optional[Mapping[str, str]] = None) -> List[Resource]:
    """
    Load declared resources from a YAML catalog file.
    
    Args:
        catalog_path: Path to catalog YAML file
        environ: Mapping used for ${VAR} expansion (defaults to os.environ)
        
    Returns:
        List of Resource objects, in file order
        
    Raises:
        CatalogLoadError: If the file is missing, unreadable or invalid
    """
    path = Path(catalog_path)
    
    if not path.exists():
        raise CatalogLoadError(f"Catalog file not found: {catalog_path}")
    
    if not path.is_file():
        raise CatalogLoadError(f"Path is not a file: {catalog_path}")
    
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogLoadError(f"Invalid YAML in catalog file: {e}")
    except OSError as e:
        raise CatalogLoadError(f"Error reading catalog file: {e}")
    
    resources = parse_catalog(data, environ=environ)
    logger.info(f"Loaded {len(resources)} resources from {catalog_path}")
    return resources


def parse_catalog(data: Any, environ: Optional[Mapping[str, str]] = None) -> List[Resource]:
    """
    Build Resource objects from an already-parsed catalog document.
    
    Raises:
        CatalogLoadError: If the document does not have the catalog shape
    """
    if environ is None:
        environ = os.environ
    
    if not isinstance(data, dict):
        raise CatalogLoadError("Catalog must contain a dictionary")
    
    if "resources" not in data:
        raise CatalogLoadError("Catalog must contain 'resources' key")
    
    entries = data["resources"] or []
    if not isinstance(entries, list):
        raise CatalogLoadError("'resources' must be a list")
    
    resources = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise CatalogLoadError(f"Resource at index {idx} must be a dictionary")
        entry = dict(entry)
        entry["properties"] = expand_placeholders(entry.get("properties") or {}, environ, where=f"index {idx}")
        try:
            resources.append(Resource(**entry))
        except PydanticValidationError as e:
            raise CatalogLoadError(f"Invalid resource at index {idx}: {e}")
    
    return resources


def expand_placeholders(value: Any, environ: Mapping[str, str], where: str = "catalog") -> Any:
    """Expand ${VAR} and ${VAR:-default} inside string values, recursively."""
    if isinstance(value, str):
        def _replace(match: re.Match) -> str:
            name, default = match.group(1), match.group(2)
            if name in environ:
                return environ[name]
            if default is not None:
                return default
            raise CatalogLoadError(f"Environment variable '{name}' is not set (resource at {where})")
        return _PLACEHOLDER.sub(_replace, value)
    if isinstance(value, dict):
        return {k: expand_placeholders(v, environ, where) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_placeholders(v, environ, where) for v in value]
    return value
