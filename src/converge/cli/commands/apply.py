"""Apply command - reconcile actual state with a catalog."""

import json
import signal
import sys
import threading
from pathlib import Path
import click
from ...presentation.human_formatter import format_plan, format_report
from ...reconciler.factory import create_driver
from ...report.artifact import generate_artifacts
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import read_catalog, format_error, settings_from_options, EXIT_CODES

logger = get_logger("cli.apply")


@click.command()
@click.argument('catalog', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to config YAML file')
@click.option('--state', type=click.Path(), help='Path to state file')
@click.option('--provider', type=click.Choice(['simulated', 'http']), help='Provider adapter')
@click.option('--endpoint', help='Control plane base URL for the http provider')
@click.option('--max-workers', type=click.IntRange(min=1), help='Concurrent provider operations')
@click.option('--max-attempts', type=click.IntRange(min=1), help='Attempts per operation on transient failures')
@click.option('--refresh', is_flag=True, help='Read live state from the provider first and repair drift')
@click.option('--json', 'json_output', is_flag=True, help='Output structured JSON')
@click.option('--output', '-o', type=click.Path(), help='Write report artifacts to this directory')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def apply(catalog, config_path, state, provider, endpoint, max_workers, max_attempts, refresh, json_output, output, quiet):
    """
    Converge actual state onto CATALOG.
    
    Exit codes: 0 success, 1 error, 2 failed, 3 partial, 4 cancelled.
    Press Ctrl-C once to stop dispatching; in-flight operations finish.
    """
    try:
        settings = settings_from_options(config_path, state, provider, endpoint, max_workers, max_attempts)
        resources = read_catalog(catalog)
        driver = create_driver(settings)
        
        _, planned = driver.prepare(resources, refresh=refresh, record_missing=True)
        if not quiet:
            click.echo(format_plan(planned), err=True)
            click.echo("", err=True)
        
        cancel_event = threading.Event()
        previous_handler = _install_cancel_handler(cancel_event, quiet)
        try:
            report = driver.executor.apply(planned, cancel_event=cancel_event)
        finally:
            if previous_handler is not None:
                signal.signal(signal.SIGINT, previous_handler)
        
        if output:
            generate_artifacts(report, Path(output), plan=planned)
            if not quiet:
                click.echo(f"Artifacts written to: {output}", err=True)
        
        if json_output:
            click.echo(json.dumps(report.model_dump(mode="json"), indent=2))
        else:
            click.echo(format_report(report))
        
        sys.exit(EXIT_CODES.get(report.status, 1))
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Apply failed: {e}"), err=True)
        sys.exit(1)


def _install_cancel_handler(cancel_event: threading.Event, quiet: bool):
    """Route SIGINT to the cancel event; returns the previous handler (None off the main thread)."""
    if threading.current_thread() is not threading.main_thread():
        return None
    
    def _handler(signum, frame):
        if not quiet:
            click.echo("Cancellation requested; waiting for in-flight operations...", err=True)
        cancel_event.set()
    
    return signal.signal(signal.SIGINT, _handler)
