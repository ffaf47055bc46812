"""CLI utilities package."""

import logging
from typing import List, Optional
from ...catalog.loader import load_catalog
from ...catalog.models import Resource
from ...config import Settings, load_settings
from ...contracts.execution_report import RunStatus
from ...utils.errors import CatalogLoadError, ConfigError
from ...utils.logging import get_logger
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")

# 0 = success, 1 = runtime error (handled by exception handlers)
EXIT_CODES = {
    RunStatus.SUCCESS.value: 0,
    RunStatus.FAILED.value: 2,
    RunStatus.PARTIAL.value: 3,
    RunStatus.CANCELLED.value: 4,
}


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.
    
    Args:
        message: Error message
        suggestion: Optional suggestion or help text
        
    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


def read_catalog(catalog: str) -> List[Resource]:
    """
    Resolve and load a catalog file given on the command line.
    
    Raises:
        CatalogLoadError: If the file is missing or invalid
    """
    try:
        path = resolve_file_path(catalog)
    except FileNotFoundError as e:
        raise CatalogLoadError(str(e))
    return load_catalog(str(path))


def settings_from_options(
    config: Optional[str] = None,
    state: Optional[str] = None,
    provider: Optional[str] = None,
    endpoint: Optional[str] = None,
    max_workers: Optional[int] = None,
    max_attempts: Optional[int] = None
) -> Settings:
    """Load settings with CLI flags taking precedence over every config tier."""
    settings = load_settings(config, overrides={
        "state": {"path": state},
        "provider": {"name": provider, "endpoint": endpoint},
        "executor": {"max_workers": max_workers},
        "retry": {"max_attempts": max_attempts},
    })

    root = logging.getLogger("converge")
    if root.level != logging.DEBUG:
        try:
            root.setLevel(settings.logging.level.upper())
        except ValueError:
            raise ConfigError(f"Unknown log level: {settings.logging.level}")
    return settings


__all__ = ["resolve_file_path", "read_catalog", "format_error", "settings_from_options", "EXIT_CODES"]
