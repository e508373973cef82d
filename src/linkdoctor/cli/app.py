"""linkdoctor Typer CLI application."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from linkdoctor.cli import helpers
from linkdoctor.cli import options as cli_options
from linkdoctor.cli.commands import check as check_command
from linkdoctor.cli.commands import config as config_command
from linkdoctor.cli.commands import diagnose as diagnose_command
from linkdoctor.cli.commands import repair as repair_command

PROJECT_ROOT = Path(__file__).resolve().parents[3]
PACKAGE_NAME = "linkdoctor"

stderr_console = Console(stderr=True)
stdout_console = Console(stderr=False)

app = typer.Typer(
    help="Backend connectivity checks, diagnostics and access self-repair",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main_callback(  # NOSONAR python:S107
    ctx: typer.Context,
    config: cli_options.ConfigPathOption = None,
    api_key: cli_options.ApiKeyOption = None,
    project_id: cli_options.ProjectIdOption = None,
    auth_domain: cli_options.AuthDomainOption = None,
    emulator: cli_options.EmulatorOption = None,
    max_attempts: cli_options.MaxAttemptsOption = None,
    poll_interval: cli_options.PollIntervalOption = None,
    debug: cli_options.DebugOption = None,
    allow_insecure_tls: cli_options.AllowInsecureTlsOption = None,
    ca_bundle: cli_options.CaBundleOption = None,
    log_level: cli_options.LogLevelOption = None,
    log_format: cli_options.LogFormatOption = None,
    log_file: cli_options.LogFileOption = None,
) -> None:
    """Collect the options shared by every command."""

    ctx.obj = helpers.build_invocation(
        config_path=config,
        api_key=api_key,
        project_id=project_id,
        auth_domain=auth_domain,
        use_emulator=emulator,
        max_attempts=max_attempts,
        poll_interval=poll_interval,
        debug=debug,
        allow_insecure_tls=allow_insecure_tls,
        ca_bundle=ca_bundle,
        log_level=log_level,
        log_format=log_format,
        log_file=log_file,
    )


check_command.register(app, stdout_console=stdout_console, stderr_console=stderr_console)
diagnose_command.register(app, stdout_console=stdout_console, stderr_console=stderr_console)
repair_command.register(app, stdout_console=stdout_console, stderr_console=stderr_console)
config_command.register(app, stdout_console=stdout_console)


@app.command(help="Show the installed linkdoctor package version.")
def version() -> None:
    """Print the version discovered from the package metadata."""
    from importlib import metadata

    try:
        resolved_version = metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        pyproject = PROJECT_ROOT / "pyproject.toml"
        if not pyproject.exists():
            stdout_console.print("Version information unavailable")
            return
        import tomllib

        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        resolved_version = data.get("project", {}).get("version", "unknown")
    stdout_console.print(resolved_version)


def main(argv: list[str] | None = None) -> None:
    """Run the Typer application."""

    app(args=argv, prog_name=PACKAGE_NAME)


__all__ = ["app", "main", "stdout_console", "stderr_console"]
