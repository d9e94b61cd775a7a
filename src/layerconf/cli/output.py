"""
CLI Output Utilities

Machine-aware output functions that adapt based on machine mode.
"""

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from layerconf.cli.config import CLIConfig

_console = Console()


def echo(message: str = "", **kwargs) -> None:
    """Print a plain message."""
    typer.echo(message, **kwargs)


def print_json(data: Any, minified: bool = None) -> None:
    """
    Print JSON data respecting machine mode.
    In machine mode, always minifies. In human mode, pretty prints.
    """
    if minified is None:
        minified = CLIConfig.is_machine_mode()

    if minified:
        echo(json.dumps(data, separators=(',', ':')))
    else:
        echo(json.dumps(data, indent=2))


def print_table(table: Table, rows: list) -> None:
    """
    Print a rich table in human mode, tab-separated rows in machine mode.

    Args:
        table: Rich table for human mode
        rows: Same content as lists of strings for machine mode
    """
    if CLIConfig.is_machine_mode():
        for row in rows:
            echo("\t".join(row))
    else:
        _console.print(table)


def print_success(message: str) -> None:
    if CLIConfig.is_machine_mode():
        echo(message)
    else:
        _console.print(f"[green]{message}[/green]")


def print_error(message: str, code: str = None) -> None:
    """
    Print an error message respecting machine mode.
    In machine mode, outputs a structured JSON error on stdout.
    """
    if CLIConfig.is_machine_mode():
        error_obj = {"status": "error", "message": message}
        if code:
            error_obj["code"] = code
        print_json(error_obj)
    else:
        typer.echo(f"Error: {message}", err=True)
