"""
layerconf command line interface.

Commands:
  get     - Show the resolved value of a path
  set     - Set a host (or default) value
  erase   - Erase a host (or default) value
  list    - List resolved values, optionally below a prefix
  tag     - Tag the current host values
  tags    - List tag names
  dump    - Export the host or default database to an SQL script
  import  - Create a database from an SQL script
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.markup import escape
from rich.table import Table

from layerconf.cli.config import CLIConfig
from layerconf.cli.output import print_error, print_json, print_success, print_table, echo
from layerconf.exceptions import (
    ConfigError,
    ConstraintViolationError,
    CouldNotOpenConfigError,
    EntryNotFoundError,
    ScriptIOError,
    TypeMismatchError,
)
from layerconf.logging_config import logger, setup_logging
from layerconf.schemas import ConfigValue
from layerconf.store import SQLiteConfiguration
from layerconf.store import dump as sqldump
from layerconf.store.codec import ValueType, parse_literal
from layerconf.store.persistence import connect

app = typer.Typer(help="Layered configuration store: host values over defaults.")

_ERROR_CODES = [
    (EntryNotFoundError, "NOT_FOUND"),
    (TypeMismatchError, "TYPE_MISMATCH"),
    (ConstraintViolationError, "CONSTRAINT_VIOLATION"),
    (CouldNotOpenConfigError, "OPEN_FAILED"),
    (ScriptIOError, "SCRIPT_IO"),
    (ConfigError, "CONFIG_ERROR"),
]


def _error_code(error: ConfigError) -> str:
    for error_type, code in _ERROR_CODES:
        if isinstance(error, error_type):
            return code
    return "CONFIG_ERROR"


@app.callback()
def global_options(
    ctx: typer.Context,
    conf_dir: Optional[Path] = typer.Option(
        None, "--conf-dir", "-C", envvar="LAYERCONF_CONF_DIR",
        help="Configuration directory (default: current directory)"
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="Host database file (default: <hostname>.db, ':memory:' for none)"
    ),
    defaults: Optional[str] = typer.Option(
        None, "--defaults", help="Default database file (default: default.db)"
    ),
    human: bool = typer.Option(
        False, "--human", "-H",
        help="Human mode: tables and colors (also via LAYERCONF_HUMAN_MODE)"
    ),
):
    """
    Inspect and modify a layered configuration.
    """
    if human:
        CLIConfig.set_machine_mode(False)
    else:
        setup_logging(suppress_console=True)
    ctx.obj = {"conf_dir": conf_dir, "host": host, "defaults": defaults}


@contextmanager
def open_config(ctx: typer.Context) -> Iterator[SQLiteConfiguration]:
    """Load the configuration selected by the global options, exit 1 on errors."""
    options = ctx.obj or {}
    config = SQLiteConfiguration(options.get("conf_dir"))
    try:
        config.load(options.get("host"), options.get("defaults"))
        yield config
    except ConfigError as e:
        logger.debug(f"Command failed: {e}")
        print_error(str(e), code=_error_code(e))
        raise typer.Exit(code=1)
    finally:
        config.close()


def _render(value: ConfigValue) -> str:
    typed = value.typed_value()
    if isinstance(typed, bool):
        return "true" if typed else "false"
    return str(typed)


def _as_dict(value: ConfigValue) -> dict:
    return {
        "path": value.path,
        "type": value.type,
        "value": value.typed_value(),
        "comment": value.comment,
        "is_default": value.is_default,
    }


@app.command()
def get(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Configuration path"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """Show the resolved value of PATH."""
    with open_config(ctx) as config:
        with config.get_value(path) as values:
            entries = list(values)
        if not entries:
            raise EntryNotFoundError(path)
        value = entries[0]

        if json_output:
            print_json(_as_dict(value))
        elif CLIConfig.is_machine_mode():
            echo(_render(value))
        else:
            origin = "default" if value.is_default else "host"
            print_success(f"{escape(value.path)} = {escape(_render(value))} ({value.type}, {origin})")


@app.command("set")
def set_value(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Configuration path"),
    value: str = typer.Argument(..., help="New value"),
    value_type: str = typer.Option(
        "string", "--type", "-t", help="float, int, uint, bool or string"
    ),
    default: bool = typer.Option(False, "--default", "-d", help="Set the default value"),
    comment: Optional[str] = typer.Option(None, "--comment", "-c", help="Comment for the value"),
):
    """Set PATH to VALUE in the host (or default) database."""
    try:
        parsed_type = ValueType.parse(value_type)
        parsed = parse_literal(parsed_type, value)
    except ValueError as e:
        print_error(str(e), code="INVALID_VALUE")
        raise typer.Exit(code=1)

    with open_config(ctx) as config:
        if default:
            config.set_default(path, parsed_type, parsed)
            if comment is not None:
                config.set_default_comment(path, comment)
        else:
            config.set(path, parsed_type, parsed)
            if comment is not None:
                config.set_comment(path, comment)
        print_success(f"{path} = {value}")


@app.command()
def erase(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Configuration path"),
    default: bool = typer.Option(False, "--default", "-d", help="Erase the default value"),
):
    """Erase PATH from the host (or default) database."""
    with open_config(ctx) as config:
        if default:
            config.erase_default(path)
        else:
            config.erase(path)
        print_success(f"Erased {path}")


@app.command("list")
def list_values(
    ctx: typer.Context,
    prefix: str = typer.Argument("", help="Only list paths starting with this prefix"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """List resolved values ordered by path."""
    with open_config(ctx) as config:
        with config.search(prefix) as values:
            entries = list(values)

        if json_output:
            print_json([_as_dict(v) for v in entries])
            return

        table = Table(title="Configuration")
        table.add_column("Path", style="cyan")
        table.add_column("Type")
        table.add_column("Value")
        table.add_column("Origin", style="dim")
        rows = []
        for v in entries:
            origin = "default" if v.is_default else "host"
            table.add_row(escape(v.path), v.type, escape(_render(v)), origin)
            rows.append([v.path, v.type, _render(v), origin])
        print_table(table, rows)


@app.command()
def tag(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Tag name"),
):
    """Record the current host values under NAME."""
    with open_config(ctx) as config:
        config.tag(name)
        print_success(f"Tagged configuration as {name}")


@app.command()
def tags(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """List tag names."""
    with open_config(ctx) as config:
        names = sorted(config.tags())
        if json_output:
            print_json(names)
        else:
            for name in names:
                echo(name)


@app.command()
def dump(
    ctx: typer.Context,
    script: Path = typer.Argument(..., help="SQL script to write"),
    defaults: bool = typer.Option(False, "--defaults", help="Dump the default database"),
):
    """Export the host (or default) database to SCRIPT."""
    with open_config(ctx) as config:
        if defaults:
            config.dump_defaults(script)
        else:
            config.dump(script)
        print_success(f"Wrote {script}")


@app.command("import")
def import_script(
    script: Path = typer.Argument(..., help="SQL script to execute"),
    database: Path = typer.Argument(..., help="Database file to create"),
):
    """Create DATABASE from an SQL SCRIPT."""
    if database.exists():
        print_error(f"Database {database} already exists", code="EXISTS")
        raise typer.Exit(code=1)

    conn = connect(database)
    try:
        count = sqldump.import_script(conn, script)
    except ConfigError as e:
        conn.close()
        database.unlink(missing_ok=True)
        print_error(str(e), code=_error_code(e))
        raise typer.Exit(code=1)
    conn.close()
    print_success(f"Executed {count} statement(s) into {database}")


def main():
    app()


if __name__ == "__main__":
    main()
