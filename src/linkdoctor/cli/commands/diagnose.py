"""``linkdoctor diagnose``: run the full diagnostics battery."""

from __future__ import annotations

import typer
from rich.console import Console

from linkdoctor.application.reporting import (
    EXPORT_FORMAT_JSON,
    export_report,
    render_text_report,
    report_to_json,
)
from linkdoctor.cli import helpers
from linkdoctor.cli import options as cli_options
from linkdoctor.domain.models import DiagnosticsReport
from linkdoctor.infrastructure.errors import LinkDoctorError


def register(app: typer.Typer, *, stdout_console: Console, stderr_console: Console) -> None:
    @app.command(help="Run connectivity, configuration and environment diagnostics.")
    def diagnose(
        ctx: typer.Context,
        report_format: cli_options.ReportFormatOption = "text",
        output: cli_options.OutputDirOption = None,
    ) -> None:
        fmt = cli_options.normalize_report_format(report_format)
        runtime_settings, logger = helpers.prepare_runtime(ctx)

        try:
            service = helpers.build_service(runtime_settings)
        except LinkDoctorError as exc:
            helpers.print_error(stderr_console, exc)
            raise typer.Exit(code=1) from exc

        async def _run() -> DiagnosticsReport:
            async with service:
                return await service.run_diagnostics()

        report = helpers.await_sync(_run())
        if fmt == EXPORT_FORMAT_JSON:
            typer.echo(report_to_json(report))
        else:
            typer.echo(render_text_report(report), nl=False)

        if output is not None:
            path = export_report(report, output, fmt)
            logger.info("diagnostics.exported", path=str(path))
            stderr_console.print(f"[green]Report written to[/green] {path}")


__all__ = ["register"]
