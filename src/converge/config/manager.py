"""Layered configuration manager (defaults, user, project, environment)."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Mapping, Optional
from .paths import get_defaults_path, get_user_config_path, get_project_config_path
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.manager")

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "CONVERGE_STATE_PATH": ("state", "path"),
    "CONVERGE_MAX_WORKERS": ("executor", "max_workers"),
    "CONVERGE_PROVIDER": ("provider", "name"),
    "CONVERGE_ENDPOINT": ("provider", "endpoint"),
}


def load_config(config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Load full config tree.
    
    Args:
        config_path: Explicit config file; replaces the user and project tiers
        environ: Environment used for CONVERGE_* overrides (defaults to os.environ)
        
    Returns:
        Configuration dictionary (later tiers override earlier ones)
        
    Raises:
        ConfigError: If a config file is unreadable or not a mapping
    """
    config = _read_yaml(get_defaults_path())
    
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        _deep_merge(config, _read_yaml(path))
        logger.info(f"Loaded config from {path}")
    else:
        user_config_path = get_user_config_path()
        if user_config_path.exists():
            _deep_merge(config, _read_yaml(user_config_path))
            logger.debug(f"Loaded user config from {user_config_path}")
        
        project_config_path = get_project_config_path()
        if project_config_path:
            _deep_merge(config, _read_yaml(project_config_path))
            logger.info(f"Loaded project config from {project_config_path}")
    
    _apply_env_overrides(config, os.environ if environ is None else environ)
    return config


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")
    
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a dictionary")
    return data


def _apply_env_overrides(config: Dict[str, Any], environ: Mapping[str, str]) -> None:
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            config.setdefault(section, {})[key] = value
            logger.debug(f"Config {section}.{key} overridden by {variable}")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
