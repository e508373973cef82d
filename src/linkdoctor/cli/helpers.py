"""Reusable helper utilities for the linkdoctor CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from dynaconf import Dynaconf
from rich.console import Console

from linkdoctor.application.service import ConnectivityService
from linkdoctor.cli import options as cli_options
from linkdoctor.cli.models import (
    BackendOverrides,
    CliInvocation,
    ConnectionOverrides,
    LoggingOverrides,
    TlsOverrides,
)
from linkdoctor.cli.sync_bridge import await_sync
from linkdoctor.config.settings import (
    BackendInputs,
    ConnectionInputs,
    LoggingInputs,
    LoggingSettings,
    RuntimeInputs,
    RuntimeSettings,
    TlsInputs,
    apply_cli_overrides,
    load_settings,
    resolve_application_settings,
)
from linkdoctor.infrastructure.errors import LinkDoctorError
from linkdoctor.infrastructure.logging import BoundLogger, configure_logging, get_logger


def build_invocation(
    *,
    config_path: Path | str | None,
    api_key: str | None,
    project_id: str | None,
    auth_domain: str | None,
    use_emulator: bool | None,
    max_attempts: int | None,
    poll_interval: float | None,
    debug: bool | None,
    allow_insecure_tls: bool | None,
    ca_bundle: str | None,
    log_level: str | None,
    log_format: str | None,
    log_file: str | None,
) -> CliInvocation:
    """Construct a :class:`CliInvocation` with normalized CLI parameters."""

    return CliInvocation(
        config_path=str(config_path) if config_path is not None else None,
        backend=BackendOverrides(
            api_key=cli_options.clean_string(api_key),
            project_id=cli_options.clean_string(project_id),
            auth_domain=cli_options.clean_string(auth_domain),
            use_emulator=use_emulator,
        ),
        connection=ConnectionOverrides(
            max_attempts=max_attempts,
            poll_interval=cli_options.validate_positive_float("poll_interval", poll_interval),
        ),
        debug=debug,
        tls=TlsOverrides(
            allow_insecure=allow_insecure_tls,
            ca_bundle_path=cli_options.clean_string(ca_bundle),
        ),
        logging=LoggingOverrides(
            level=cli_options.normalize_log_level(log_level),
            format=cli_options.normalize_log_format(log_format),
            file_path=cli_options.clean_string(log_file),
        ),
    )


def backend_inputs(overrides: BackendOverrides) -> BackendInputs | None:
    if (
        overrides.api_key is None
        and overrides.project_id is None
        and overrides.auth_domain is None
        and overrides.use_emulator is None
    ):
        return None
    return BackendInputs(
        api_key=overrides.api_key,
        project_id=overrides.project_id,
        auth_domain=overrides.auth_domain,
        use_emulator=overrides.use_emulator,
    )


def connection_inputs(overrides: ConnectionOverrides) -> ConnectionInputs | None:
    if overrides.max_attempts is None and overrides.poll_interval is None:
        return None
    return ConnectionInputs(
        max_attempts=overrides.max_attempts, poll_interval=overrides.poll_interval
    )


def tls_inputs(overrides: TlsOverrides) -> TlsInputs | None:
    """Convert CLI TLS overrides to :class:`TlsInputs`."""

    if overrides.allow_insecure is None and overrides.ca_bundle_path is None:
        return None
    return TlsInputs(
        allow_insecure=overrides.allow_insecure,
        ca_bundle_path=overrides.ca_bundle_path,
    )


def logging_inputs(overrides: LoggingOverrides) -> LoggingInputs | None:
    """Convert CLI logging overrides to :class:`LoggingInputs`."""

    if overrides.level is None and overrides.format is None and overrides.file_path is None:
        return None
    return LoggingInputs(
        level=overrides.level, format=overrides.format, file_path=overrides.file_path
    )


def _runtime_inputs(invocation: CliInvocation) -> RuntimeInputs | None:
    return None if invocation.debug is None else RuntimeInputs(debug=invocation.debug)


def load_settings_from_invocation(invocation: CliInvocation) -> Dynaconf:
    """Load settings and apply CLI overrides."""

    settings = load_settings(invocation.config_path)
    apply_cli_overrides(
        settings,
        backend_inputs=backend_inputs(invocation.backend),
        connection_inputs=connection_inputs(invocation.connection),
        runtime_inputs=_runtime_inputs(invocation),
        tls_inputs=tls_inputs(invocation.tls),
        logging_inputs=logging_inputs(invocation.logging),
    )
    return settings


def resolve_runtime_and_logging(
    invocation: CliInvocation,
) -> tuple[RuntimeSettings, LoggingSettings]:
    return resolve_application_settings(
        config_path=invocation.config_path,
        backend_inputs=backend_inputs(invocation.backend),
        connection_inputs=connection_inputs(invocation.connection),
        runtime_inputs=_runtime_inputs(invocation),
        tls_inputs=tls_inputs(invocation.tls),
        logging_inputs=logging_inputs(invocation.logging),
    )


def emit_runtime_messages(runtime_settings: RuntimeSettings, logger: BoundLogger) -> None:
    for message in runtime_settings.warnings:
        logger.warning(message)


def initialize_logging(
    runtime_settings: RuntimeSettings, logging_settings: LoggingSettings
) -> BoundLogger:
    """Configure logging and emit runtime messages."""

    configure_logging(logging_settings)
    logger = get_logger("linkdoctor")
    emit_runtime_messages(runtime_settings, logger)
    return logger


def invocation_from_context(ctx: typer.Context) -> CliInvocation:
    obj = ctx.find_root().obj
    if isinstance(obj, CliInvocation):
        return obj
    return CliInvocation()


def prepare_runtime(ctx: typer.Context) -> tuple[RuntimeSettings, BoundLogger]:
    """Resolve settings for the current invocation and configure logging."""

    runtime_settings, logging_settings = resolve_runtime_and_logging(invocation_from_context(ctx))
    logger = initialize_logging(runtime_settings, logging_settings)
    return runtime_settings, logger


def build_service(runtime_settings: RuntimeSettings, **kwargs: Any) -> ConnectivityService:
    return ConnectivityService.from_settings(runtime_settings, **kwargs)


def print_error(console: Console, error: LinkDoctorError) -> None:
    console.print(f"[red]{error.user_message}[/red] [dim]({error.code})[/dim]")
    for hint in error.hints:
        console.print(f"  [yellow]hint:[/yellow] {hint}")


__all__ = [
    "await_sync",
    "backend_inputs",
    "build_invocation",
    "build_service",
    "connection_inputs",
    "emit_runtime_messages",
    "initialize_logging",
    "invocation_from_context",
    "load_settings_from_invocation",
    "logging_inputs",
    "prepare_runtime",
    "print_error",
    "resolve_runtime_and_logging",
    "tls_inputs",
]
