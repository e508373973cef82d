"""Config inspection commands for the linkdoctor CLI."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from linkdoctor.cli import helpers
from linkdoctor.config.constants import DEFAULT_CONFIG_FILENAME, LOCAL_CONFIG_FILENAME
from linkdoctor.config.settings import (
    BACKEND_API_KEY_KEY,
    LOGGING_FILE_KEY,
    LOGGING_FORMAT_KEY,
    LOGGING_LEVEL_KEY,
    logging_from_settings,
    settings_snapshot,
)

_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({BACKEND_API_KEY_KEY})
_PROJECT_ROOT = Path(__file__).resolve().parents[4]


def mask_sensitive_value(value: str) -> str:
    """Keep the first and last four characters of a secret."""

    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"


def format_config_value(key: str, value: Any) -> str:
    if value is None or value == "":
        return "<unset>"
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if key in _SENSITIVE_KEYS:
        return mask_sensitive_value(text)
    return text


def config_file_candidates(config_path: str | None) -> list[Path]:
    if config_path:
        primary = Path(config_path)
        return [primary, primary.with_name(f"{primary.stem}.local{primary.suffix}")]
    return [_PROJECT_ROOT / DEFAULT_CONFIG_FILENAME, _PROJECT_ROOT / LOCAL_CONFIG_FILENAME]


def _print_table(
    console: Console, title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]
) -> None:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*row)
    console.print(table)


def register(app: typer.Typer, *, stdout_console: Console) -> None:
    """Register config commands with the app."""

    config_app = typer.Typer(
        help="Inspect linkdoctor configuration.",
        invoke_without_command=True,
        no_args_is_help=True,
    )
    app.add_typer(config_app, name="config")

    @config_app.callback(invoke_without_command=True)
    def config_group_callback(ctx: typer.Context) -> None:
        """Display help when config group is invoked without a subcommand."""
        if ctx.invoked_subcommand is None:
            typer.echo(ctx.get_help())
            raise typer.Exit()

    @config_app.command("show", help="Show configuration files and the resolved settings.")
    def config_show(ctx: typer.Context) -> None:
        invocation = helpers.invocation_from_context(ctx)
        settings = helpers.load_settings_from_invocation(invocation)

        files = config_file_candidates(invocation.config_path)
        _print_table(
            stdout_console,
            "Configuration files",
            ("File", "Status"),
            [(str(path), "exists" if path.exists() else "missing") for path in files],
        )

        values = settings_snapshot(settings)
        logging_settings = logging_from_settings(settings)
        values[LOGGING_LEVEL_KEY] = logging_settings.level_name
        values[LOGGING_FORMAT_KEY] = logging_settings.format
        values[LOGGING_FILE_KEY] = logging_settings.file_path

        stdout_console.print()
        _print_table(
            stdout_console,
            "Effective configuration",
            ("Key", "Value"),
            [(key, format_config_value(key, value)) for key, value in values.items()],
        )


__all__ = ["register", "mask_sensitive_value", "format_config_value"]
