"""State commands - inspect and edit the state file."""

import json
import sys
import click
from ...presentation.human_formatter import format_state
from ...reconciler.factory import build_store
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import format_error, settings_from_options

logger = get_logger("cli.state")


@click.group()
def state():
    """Inspect and edit recorded state."""
    pass


@state.command()
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to config YAML file')
@click.option('--state', 'state_path', type=click.Path(), help='Path to state file')
@click.option('--json', 'json_output', is_flag=True, help='Output structured JSON')
def show(config_path, state_path, json_output):
    """Show every recorded resource."""
    try:
        settings = settings_from_options(config_path, state_path)
        records = build_store(settings).load()
        
        if json_output:
            data = {name: records[name].model_dump(mode="json") for name in sorted(records)}
            click.echo(json.dumps(data, indent=2))
        else:
            click.echo(format_state(records))
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


@state.command()
@click.argument('name')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to config YAML file')
@click.option('--state', 'state_path', type=click.Path(), help='Path to state file')
def forget(name, config_path, state_path):
    """Stop tracking NAME without deleting it from the provider."""
    try:
        settings = settings_from_options(config_path, state_path)
        store = build_store(settings)
        if name not in store.load():
            click.echo(format_error(f"Resource '{name}' is not in state"), err=True)
            sys.exit(1)
        store.forget(name)
        click.echo(f"Forgot {name}", err=True)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
