"""converge - Declarative infrastructure reconciliation engine."""

import threading
from typing import Optional
from .catalog.loader import load_catalog
from .config import load_settings
from .contracts.execution_report import ExecutionReport
from .utils.logging import setup_logging, get_logger
from .utils.errors import ConvergeError

__version__ = "0.1.0"

__all__ = ["reconcile"]

setup_logging()
logger = get_logger("converge")


def reconcile(
    catalog_path: str,
    config_path: Optional[str] = None,
    refresh: bool = False,
    cancel_event: Optional[threading.Event] = None
) -> ExecutionReport:
    """Load a catalog and converge the configured provider onto it."""
    from .reconciler.factory import create_driver

    try:
        logger.info(f"Starting reconciliation of catalog: {catalog_path}")

        settings = load_settings(config_path)
        resources = load_catalog(catalog_path)
        driver = create_driver(settings)
        report = driver.run(resources, cancel_event=cancel_event, refresh=refresh)

        logger.info(f"Reconciliation complete: {report.status}")
        return report

    except ConvergeError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during reconciliation: {e}", exc_info=True)
        raise ConvergeError(f"Reconciliation failed: {e}") from e
