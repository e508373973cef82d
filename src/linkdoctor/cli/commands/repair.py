"""``linkdoctor repair-access``: create a missing authorization record on request."""

from __future__ import annotations

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from linkdoctor.cli import helpers
from linkdoctor.cli import options as cli_options
from linkdoctor.domain.models import RepairOutcome, RepairOutcomeKind
from linkdoctor.infrastructure.errors import LinkDoctorError

EXIT_PARTIAL = 2

_OUTCOME_MESSAGES = {
    RepairOutcomeKind.ALREADY_AUTHORIZED: "[green]Authorization record already present and active[/green]",
    RepairOutcomeKind.REPAIRED_CREATED_RECORD: "[green]Authorization record created[/green]",
    RepairOutcomeKind.REPAIR_FAILED: "[red]Access repair failed[/red]",
}


def _print_outcome(console: Console, outcome: RepairOutcome) -> None:
    console.print(_OUTCOME_MESSAGES[outcome.kind])
    if outcome.reason:
        suffix = f" [dim]({outcome.code})[/dim]" if outcome.code else ""
        console.print(f"  {outcome.reason}{suffix}")
    if outcome.record is not None and outcome.kind is RepairOutcomeKind.REPAIRED_CREATED_RECORD:
        console.print(
            f"  role={outcome.record.role} name={outcome.record.name} "
            "[dim](marked auto-created for later review)[/dim]"
        )
    if outcome.resources:
        table = Table(title="Protected resources", box=box.SIMPLE_HEAVY)
        table.add_column("Collection")
        table.add_column("Status")
        table.add_column("Detail", overflow="fold")
        for probe in outcome.resources:
            status = "[green]accessible[/green]" if probe.reachable else "[red]denied[/red]"
            table.add_row(probe.target, status, probe.error or "")
        console.print(table)


def register(app: typer.Typer, *, stdout_console: Console, stderr_console: Console) -> None:
    @app.command(
        "repair-access",
        help=(
            "Sign in and create the authorization record for the account if it is missing. "
            "Only run this after an authorization-denied report."
        ),
    )
    def repair_access(
        ctx: typer.Context,
        email: cli_options.EmailOption,
        password: cli_options.PasswordOption,
        assume_yes: cli_options.AssumeYesOption = False,
    ) -> None:
        runtime_settings, logger = helpers.prepare_runtime(ctx)

        if not assume_yes:
            typer.confirm(
                f"A missing authorization record for {email} will be created with role "
                f"'{runtime_settings.default_role}'. Continue?",
                abort=True,
            )

        try:
            service = helpers.build_service(runtime_settings)
        except LinkDoctorError as exc:
            helpers.print_error(stderr_console, exc)
            raise typer.Exit(code=1) from exc

        async def _run() -> RepairOutcome:
            async with service:
                identity = await service.sign_in(email, password)
                return await service.ensure_authorized(identity)

        try:
            outcome = helpers.await_sync(_run())
        except LinkDoctorError as exc:
            logger.warning("access_repair.aborted", code=exc.code)
            helpers.print_error(stderr_console, exc)
            raise typer.Exit(code=1) from exc

        _print_outcome(stdout_console, outcome)
        if not outcome.ok:
            raise typer.Exit(code=1)
        if outcome.partial:
            raise typer.Exit(code=EXIT_PARTIAL)


__all__ = ["register", "EXIT_PARTIAL"]
