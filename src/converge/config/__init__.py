"""Configuration module: load and validate engine settings."""

import os
from typing import Dict, Any, Mapping, Optional
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from ..executor.retry import RetryPolicy
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config
from .paths import get_defaults_path, get_user_config_path, get_project_config_path

logger = get_logger("config")


class StateSettings(BaseModel):
    path: str = Field(default=".converge/state.json", description="State file location")


class ExecutorSettings(BaseModel):
    max_workers: int = Field(default=4, ge=1, description="Concurrent provider operations")


class ProviderSettings(BaseModel):
    name: str = Field(default="simulated", description="Provider adapter: simulated or http")
    endpoint: Optional[str] = Field(default=None, description="Control plane base URL for the http provider")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    token_env: str = Field(default="CONVERGE_PROVIDER_TOKEN", description="Environment variable holding the API token")
    
    def token(self, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
        environ = os.environ if environ is None else environ
        return environ.get(self.token_env) or None


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Log level name")


class Settings(BaseModel):
    """Validated engine settings."""
    state: StateSettings = Field(default_factory=StateSettings)
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """
    Load settings from the config tiers and apply explicit overrides.
    
    Args:
        config_path: Explicit config file (replaces user/project tiers)
        overrides: Section -> key -> value; None values are ignored (CLI flags)
        environ: Environment for CONVERGE_* overrides
        
    Returns:
        Settings
        
    Raises:
        ConfigError: If the merged configuration is invalid
    """
    config = load_config(config_path, environ=environ)
    
    for section, values in (overrides or {}).items():
        for key, value in values.items():
            if value is not None:
                config.setdefault(section, {})[key] = value
    
    try:
        settings = Settings(**config)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
    
    logger.debug(f"Effective settings: {settings.model_dump()}")
    return settings


__all__ = [
    "Settings",
    "load_settings",
    "load_config",
    "get_defaults_path",
    "get_user_config_path",
    "get_project_config_path",
]
