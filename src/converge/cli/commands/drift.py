"""Drift command - compare recorded state with the provider."""

import json
import sys
import click
from ...drift.detector import detect_drift
from ...graph.resource_graph import ResourceGraph
from ...presentation.human_formatter import format_drift
from ...reconciler.factory import build_registry, build_store
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import read_catalog, format_error, settings_from_options

logger = get_logger("cli.drift")


@click.command()
@click.argument('catalog', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to config YAML file')
@click.option('--state', type=click.Path(), help='Path to state file')
@click.option('--provider', type=click.Choice(['simulated', 'http']), help='Provider adapter')
@click.option('--endpoint', help='Control plane base URL for the http provider')
@click.option('--json', 'json_output', is_flag=True, help='Output structured JSON')
def drift(catalog, config_path, state, provider, endpoint, json_output):
    """
    Report resources whose live configuration diverged from CATALOG.
    
    Read-only: state is not modified. Exits 2 when drift is found.
    """
    try:
        settings = settings_from_options(config_path, state, provider, endpoint)
        graph = ResourceGraph.build(read_catalog(catalog))
        result = detect_drift(graph, build_store(settings), build_registry(settings), mark_missing=False)
        
        if json_output:
            click.echo(json.dumps(result.model_dump(), indent=2))
        else:
            click.echo(format_drift(result))
        
        sys.exit(2 if result.has_drift() else 0)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Drift check failed: {e}"), err=True)
        sys.exit(1)
