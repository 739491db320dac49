import copy
import sys
import click
import yaml
import os
import sqlite3
from typing import Dict, Any, Optional
import logging
import pandas as pd
from ..output.registry import default_registry
from ..query.query import Query
from ..utils.auth import get_credentials, DEFAULT_SCOPES
from ..utils.errors import QuerySheetError
from ..utils.sheet_index import SheetIndex
from ..utils.ui import ConsoleUIManager

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config/config.yaml'

DEFAULT_CONFIG: Dict[str, Any] = {
    'google_sheets': {
        'credentials_file': 'config/credentials.json',
        'token_file': 'config/token.pickle',
        'scopes': list(DEFAULT_SCOPES),
    },
    'output': {
        'type': 'sheets',
        'target_container': None,
        'target_sheet': None,
        'create_missing_sheet': True,
        'post_processing_hook': None,
        'value_input_option': 'USER_ENTERED',
    },
}

def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file, the defaults if there is none."""
    if not os.path.exists(config_path):
        logger.debug(f"No config file at {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}

def validate_config(config):
    """Validate the configuration, filling in defaults for missing optional values."""
    # Define expected types and requirements for config values
    validation_schema = {
        'google_sheets': {
            'credentials_file': str,
            'token_file': str,
            'scopes': list,
        },
        'output': {
            'type': str,
            'target_container': (str, type(None)),  # Optional
            'target_sheet': (str, type(None)),  # Optional
            'create_missing_sheet': bool,
            'post_processing_hook': (str, type(None)),  # Optional
            'value_input_option': str,
        }
    }

    def validate_dict(config_section, schema, defaults, path=""):
        for key, expected in schema.items():
            current_path = f"{path}.{key}" if path else key

            if key not in config_section:
                if key not in defaults:
                    raise ValueError(f"Missing required config value: {current_path}")
                config_section[key] = copy.deepcopy(defaults[key])

            if isinstance(expected, dict):
                if not isinstance(config_section[key], dict):
                    raise TypeError(f"Invalid type for {current_path}. Expected dict")
                validate_dict(config_section[key], expected, defaults.get(key, {}), current_path)
            else:
                if config_section[key] is not None:  # Skip type validation for None values
                    if not isinstance(config_section[key], expected):
                        raise TypeError(
                            f"Invalid type for {current_path}. "
                            f"Expected {expected}, got {type(config_section[key])}"
                        )

    if not isinstance(config, dict):
        raise TypeError("Invalid configuration. Expected a mapping at the top level")
    validate_dict(config, validation_schema, DEFAULT_CONFIG)
    return config

def setup_logging(verbose_level: int):
    """Set up logging with different verbosity levels.

    Level 0: WARNING (default)
    Level 1: INFO
    Level 2: DEBUG
    """
    level = logging.WARNING
    if verbose_level == 1:
        level = logging.INFO
    elif verbose_level >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format='[%(levelname)s @ %(filename)s:%(lineno)d] %(message)s'
    )

def _parse_headers(header_options) -> Dict[str, str]:
    headers = {}
    for option in header_options:
        column, sep, name = option.partition('=')
        if not sep or not column:
            raise click.BadParameter(f"Expected column=Display Name, got '{option}'", param_hint='--header')
        headers[column] = name
    return headers

def _load_query(csv_path: Optional[str], database: Optional[str], sql: Optional[str],
                headers: Dict[str, str]) -> Query:
    """Load the results to output from a CSV file or a SQLite query."""
    if csv_path and database:
        raise click.UsageError("Use either --csv or --database, not both")

    if csv_path:
        try:
            return Query.from_csv(csv_path, headers=headers)
        except pd.errors.EmptyDataError:
            raise click.ClickException(f"CSV file {csv_path} has no columns")

    if database:
        if not sql:
            raise click.UsageError("--query is required with --database")
        connection = sqlite3.connect(database)
        try:
            return Query.from_sql(connection, sql, headers=headers)
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            raise click.ClickException(f"Query failed: {e}")
        finally:
            connection.close()

    raise click.UsageError("A source is required: --csv PATH or --database PATH --query SQL")

@click.group()
@click.option('--config', default=DEFAULT_CONFIG_PATH, help='Path to configuration file')
@click.pass_context
def cli(ctx, config):
    """QuerySheet - Write query results into spreadsheets."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['config'] = load_config(config)

@cli.command(name='export')
@click.option('--csv', 'csv_path', type=click.Path(exists=True, dir_okay=False),
              help='CSV file holding the results to write')
@click.option('--database', type=click.Path(exists=True, dir_okay=False),
              help='SQLite database to run --query against')
@click.option('--query', 'sql', help='SQL query to run against --database')
@click.option('--header', 'header_options', multiple=True,
              help='Display name for a column, as column=Name (repeatable)')
@click.option('--type', 'output_type', help='Output type (e.g. "sheets", "xlsx")')
@click.option('--container', '-c', help='Spreadsheet id or workbook path to write into')
@click.option('--sheet', '-s', help='Sheet to write into (default: first sheet)')
@click.option('--hook', help='Post-processing hook, as package.module:function')
@click.option('--no-create-sheet', is_flag=True, default=False,
              help='Fail instead of creating a missing sheet')
@click.option('--strict', is_flag=True, default=False,
              help='Fail on rows missing a column instead of leaving the cell empty')
@click.option('--verbose', '-v', count=True, help='Increase verbosity (-v for info, -vv for debug)')
@click.option('--dry-run', '-d', is_flag=True, default=False,
              help='Show what would be written without touching any spreadsheet')
@click.pass_context
def export_command(ctx, csv_path, database, sql, header_options, output_type, container, sheet,
                   hook, no_create_sheet, strict, verbose, dry_run):
    """Write query results into a spreadsheet."""
    setup_logging(verbose)
    config = ctx.obj['config']
    ui = ConsoleUIManager()

    # Update config with CLI values if provided
    output = config.setdefault('output', {})
    overrides = {
        'type': output_type,
        'target_container': container,
        'target_sheet': sheet,
        'post_processing_hook': hook,
    }
    output.update({key: value for key, value in overrides.items() if value is not None})
    if no_create_sheet:
        output['create_missing_sheet'] = False

    try:
        validate_config(config)
    except (ValueError, TypeError) as e:
        raise click.UsageError(f"Invalid configuration in {ctx.obj['config_path']}: {e}")

    query = _load_query(csv_path, database, sql, _parse_headers(header_options))
    registry = default_registry(config)
    if output['type'] not in registry:
        raise click.UsageError(f"Unknown output type '{output['type']}', expected one of: {', '.join(registry.types())}")

    handler = registry.create(
        output['type'],
        target_container=output['target_container'],
        target_sheet=output['target_sheet'],
        create_missing_sheet=output['create_missing_sheet'],
        post_processing_hook=output['post_processing_hook'],
        strict=strict,
        dry_run=dry_run,
    )

    try:
        if dry_run:
            ui.info("DRY RUN MODE - nothing will be written")
            ui.show_preview(query.plan(strict=strict))
        result = handler.write(query)
    except QuerySheetError as e:
        logger.debug("Export failed", exc_info=True)
        raise click.ClickException(str(e))

    ui.print_summary(result)

@cli.command(name='column-name')
@click.argument('numbers', nargs=-1, type=int, required=True)
def column_name_command(numbers):
    """Print the spreadsheet column name of each column number (1 -> A, 27 -> AA)."""
    for number in numbers:
        click.echo(f"{number}\t{SheetIndex.column_name(number) or '-'}")

@cli.command()
@click.pass_context
def init(ctx):
    """Initialize configuration and authentication."""
    config_path = ctx.obj['config_path']
    # Create config directory if it doesn't exist
    config_dir = os.path.dirname(config_path)
    if config_dir:
        os.makedirs(config_dir, exist_ok=True)

    # Create default config if it doesn't exist
    if not os.path.exists(config_path):
        with open(config_path, 'w') as f:
            yaml.safe_dump(ctx.obj['config'], f, sort_keys=False)
        click.echo(f"Created default configuration file {config_path}")

    click.echo("Initializing Google authentication...")
    try:
        get_credentials(validate_config(ctx.obj['config']))
        click.echo("Authentication successful")
    except (QuerySheetError, ValueError, TypeError) as e:
        click.echo(f"Authentication failed: {str(e)}")
        sys.exit(1)

def main():
    """Entry point for the CLI."""
    cli(obj={})

if __name__ == '__main__':
    main()
