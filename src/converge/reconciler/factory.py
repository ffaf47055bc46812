"""Construct drivers, stores and provider registries from settings."""

from ..config import Settings
from ..provider.registry import ProviderRegistry
from ..provider.rest import HttpProvider
from ..provider.simulated import SimulatedProvider
from ..state.store import FileStateStore, StateStore
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .driver import ReconciliationDriver

logger = get_logger("reconciler.factory")

SUPPORTED_PROVIDERS = ("simulated", "http")


def build_registry(settings: Settings) -> ProviderRegistry:
    """
    Build a registry whose default adapter is the configured provider.
    
    Raises:
        ConfigError: If the provider is unknown or misconfigured
    """
    provider = settings.provider
    if provider.name == "simulated":
        logger.warning("Using the simulated provider: resources exist only for the lifetime of this process")
        return ProviderRegistry(default=SimulatedProvider())
    if provider.name == "http":
        if not provider.endpoint:
            raise ConfigError("The http provider requires provider.endpoint (or CONVERGE_ENDPOINT)")
        return ProviderRegistry(default=HttpProvider(
            provider.endpoint,
            timeout=provider.timeout,
            token=provider.token()
        ))
    raise ConfigError(
        f"Unknown provider '{provider.name}'. Supported: {', '.join(SUPPORTED_PROVIDERS)}"
    )


def build_store(settings: Settings) -> StateStore:
    return FileStateStore(settings.state.path)


def create_driver(settings: Settings) -> ReconciliationDriver:
    """Driver wired to the configured state file and provider."""
    return ReconciliationDriver(
        build_store(settings),
        build_registry(settings),
        max_workers=settings.executor.max_workers,
        retry_policy=settings.retry
    )
