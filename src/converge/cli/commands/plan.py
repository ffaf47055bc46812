"""Plan command - show what apply would do."""

import json
import sys
import click
from ...presentation.human_formatter import format_plan
from ...reconciler.factory import create_driver
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import read_catalog, format_error, settings_from_options

logger = get_logger("cli.plan")


@click.command()
@click.argument('catalog', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to config YAML file')
@click.option('--state', type=click.Path(), help='Path to state file')
@click.option('--provider', type=click.Choice(['simulated', 'http']), help='Provider adapter (used with --refresh)')
@click.option('--endpoint', help='Control plane base URL for the http provider')
@click.option('--refresh', is_flag=True, help='Read live state from the provider and plan around drift')
@click.option('--all', 'show_all', is_flag=True, help='Also list unchanged resources')
@click.option('--json', 'json_output', is_flag=True, help='Output structured JSON')
def plan(catalog, config_path, state, provider, endpoint, refresh, show_all, json_output):
    """Show the operations needed to converge on CATALOG."""
    try:
        settings = settings_from_options(config_path, state, provider, endpoint)
        resources = read_catalog(catalog)
        driver = create_driver(settings)
        result = driver.plan_only(resources, refresh=refresh)
        
        if json_output:
            click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        else:
            click.echo(format_plan(result, show_unchanged=show_all))
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Planning failed: {e}"), err=True)
        sys.exit(1)
