"""``linkdoctor check``: drive the connection state machine once or until settled."""

from __future__ import annotations

import typer
from rich.console import Console

from linkdoctor.application.reporting import render_text_report
from linkdoctor.cli import helpers
from linkdoctor.cli import options as cli_options
from linkdoctor.domain.models import ConnectionStatus, DiagnosticsReport, StatusSnapshot
from linkdoctor.infrastructure.errors import LinkDoctorError

_STATUS_STYLES = {
    ConnectionStatus.INITIALIZING: "dim",
    ConnectionStatus.CONNECTING: "yellow",
    ConnectionStatus.CONNECTED: "green",
    ConnectionStatus.FAILED: "red",
}


def _print_snapshot(console: Console, snapshot: StatusSnapshot) -> None:
    style = _STATUS_STYLES.get(snapshot.status, "white")
    console.print(f"[{style}]{snapshot.label}[/{style}]")


def register(app: typer.Typer, *, stdout_console: Console, stderr_console: Console) -> None:
    @app.command(help="Check backend connectivity and report the resulting status.")
    def check(ctx: typer.Context, watch: cli_options.WatchOption = False) -> None:
        """Run the first attempt and, with ``--watch``, the automatic retries."""

        runtime_settings, logger = helpers.prepare_runtime(ctx)

        try:
            service = helpers.build_service(runtime_settings)
        except LinkDoctorError as exc:
            helpers.print_error(stderr_console, exc)
            raise typer.Exit(code=1) from exc

        async def _run() -> tuple[StatusSnapshot, DiagnosticsReport | None]:
            async with service:
                service.subscribe(lambda snapshot: _print_snapshot(stdout_console, snapshot))
                connected = await service.start()
                if not connected and watch:
                    await service.wait_until_settled()
                snapshot = service.snapshot()
                report = service.last_report
                if snapshot.status is not ConnectionStatus.CONNECTED and report is None:
                    report = await service.run_diagnostics()
                return snapshot, report

        snapshot, report = helpers.await_sync(_run())
        logger.debug("check.finished", status=snapshot.status.value)

        if snapshot.status is ConnectionStatus.CONNECTED:
            return
        if report is not None:
            typer.echo("")
            typer.echo(render_text_report(report), nl=False)
        raise typer.Exit(code=1)


__all__ = ["register"]
