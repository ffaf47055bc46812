"""Validate command - check a catalog without touching state or providers."""

import json
import sys
import click
from ...graph.resource_graph import ResourceGraph
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import read_catalog, format_error

logger = get_logger("cli.validate")


@click.command()
@click.argument('catalog', type=click.Path(exists=False))
@click.option('--json', 'json_output', is_flag=True, help='Output structured JSON')
def validate(catalog, json_output):
    """Validate a resource catalog and show its dependency order."""
    try:
        resources = read_catalog(catalog)
        graph = ResourceGraph.build(resources)
        order = graph.topological_order()
        
        if json_output:
            click.echo(json.dumps({"valid": True, "order": order}, indent=2))
        else:
            click.echo(f"Catalog is valid: {len(order)} resources")
            for position, name in enumerate(order, start=1):
                deps = graph.get_resource(name).depends_on
                suffix = f" (after {', '.join(sorted(deps))})" if deps else ""
                click.echo(f"  {position}. {name}{suffix}")
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Validation failed: {e}"), err=True)
        sys.exit(1)
