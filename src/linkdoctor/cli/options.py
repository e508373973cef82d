"""Typer option declarations and normalization helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Final

import typer

LOG_FORMAT_CHOICES: Final[set[str]] = {"text", "json"}
LOG_LEVEL_CHOICES: Final[list[str]] = sorted(
    name
    for name, value in logging.getLevelNamesMapping().items()
    if isinstance(name, str) and not name.isdigit()
)
LOG_LEVEL_SET: Final[set[str]] = {choice.upper() for choice in LOG_LEVEL_CHOICES}
REPORT_FORMAT_CHOICES: Final[set[str]] = {"text", "json"}

ConfigPathOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        help="Path to a linkdoctor configuration TOML file to load",
        envvar="LINKDOCTOR_CONFIG",
        show_envvar=True,
        rich_help_panel="Configuration",
    ),
]

ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="Backend web API key (overrides FIREBASE_API_KEY env var)",
        rich_help_panel="Backend",
    ),
]

ProjectIdOption = Annotated[
    str | None,
    typer.Option(
        "--project-id",
        help="Backend project identifier",
        rich_help_panel="Backend",
    ),
]

AuthDomainOption = Annotated[
    str | None,
    typer.Option(
        "--auth-domain",
        help="Backend authentication domain, e.g. my-project.firebaseapp.com",
        rich_help_panel="Backend",
    ),
]

EmulatorOption = Annotated[
    bool | None,
    typer.Option(
        "--emulator/--no-emulator",
        help="Talk to the local backend emulators instead of production",
        rich_help_panel="Backend",
    ),
]

MaxAttemptsOption = Annotated[
    int | None,
    typer.Option(
        "--max-attempts",
        min=1,
        help="Automatic connection attempts before giving up",
        rich_help_panel="Connection",
    ),
]

PollIntervalOption = Annotated[
    float | None,
    typer.Option(
        "--poll-interval",
        help="Seconds between automatic connection attempts",
        rich_help_panel="Connection",
    ),
]

DebugOption = Annotated[
    bool | None,
    typer.Option(
        "--debug/--no-debug",
        help="Enable verbose diagnostics",
        envvar="LINKDOCTOR_DEBUG",
        show_envvar=True,
        rich_help_panel="Diagnostics",
    ),
]

AllowInsecureTlsOption = Annotated[
    bool | None,
    typer.Option(
        "--allow-insecure-tls/--enforce-tls",
        help="Disable TLS verification for probes and backend calls (not recommended)",
        rich_help_panel="TLS",
    ),
]

CaBundleOption = Annotated[
    str | None,
    typer.Option(
        "--ca-bundle",
        help="Path to a custom certificate authority bundle, e.g. for TLS interception",
        rich_help_panel="TLS",
    ),
]

LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Logging level (e.g. INFO, DEBUG)",
        rich_help_panel="Logging",
    ),
]

LogFormatOption = Annotated[
    str | None,
    typer.Option(
        "--log-format",
        help="Logging format (text or json)",
        rich_help_panel="Logging",
    ),
]

LogFileOption = Annotated[
    str | None,
    typer.Option(
        "--log-file",
        help="Path to a rotating log file",
        rich_help_panel="Logging",
    ),
]

WatchOption = Annotated[
    bool,
    typer.Option(
        "--watch/--once",
        help="Keep polling until connected or the attempt cap is reached",
    ),
]

ReportFormatOption = Annotated[
    str,
    typer.Option(
        "--format",
        help="Report format (text or json)",
    ),
]

OutputDirOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        help="Directory to write the report file into",
        file_okay=False,
        dir_okay=True,
    ),
]

EmailOption = Annotated[
    str,
    typer.Option(
        "--email",
        help="E-mail address of the account to repair",
        prompt=True,
    ),
]

PasswordOption = Annotated[
    str,
    typer.Option(
        "--password",
        help="Password of the account to repair",
        prompt=True,
        hide_input=True,
        envvar="LINKDOCTOR_PASSWORD",
    ),
]

AssumeYesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip the confirmation prompt before creating a record",
    ),
]


def clean_string(value: str | None) -> str | None:
    """Normalize optional string input."""

    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def validate_positive_float(name: str, value: float | None) -> float | None:
    if value is None:
        return None
    if value <= 0:
        raise typer.BadParameter(
            f"{name} must be a positive number",
            param_hint=f"--{name.replace('_', '-')}",
        )
    return value


def normalize_log_format(value: str | None) -> str | None:
    """Normalize the log format option."""

    if value is None:
        return None
    candidate = value.strip().lower()
    if not candidate:
        return None
    if candidate not in LOG_FORMAT_CHOICES:
        raise typer.BadParameter(
            "Log format must be either 'text' or 'json'",
            param_hint="--log-format",
        )
    return candidate


def normalize_log_level(value: str | None) -> str | None:
    """Normalize the log level option."""

    if value is None:
        return None
    candidate = value.strip().upper()
    if not candidate:
        return None
    if candidate not in LOG_LEVEL_SET:
        raise typer.BadParameter(
            f"Log level must be one of: {', '.join(LOG_LEVEL_CHOICES)}",
            param_hint="--log-level",
        )
    return candidate


def normalize_report_format(value: str) -> str:
    candidate = value.strip().lower()
    if candidate not in REPORT_FORMAT_CHOICES:
        raise typer.BadParameter(
            "Report format must be either 'text' or 'json'",
            param_hint="--format",
        )
    return candidate


__all__ = [
    "AllowInsecureTlsOption",
    "ApiKeyOption",
    "AssumeYesOption",
    "AuthDomainOption",
    "CaBundleOption",
    "ConfigPathOption",
    "DebugOption",
    "EmailOption",
    "EmulatorOption",
    "LOG_FORMAT_CHOICES",
    "LOG_LEVEL_CHOICES",
    "LogFileOption",
    "LogFormatOption",
    "LogLevelOption",
    "MaxAttemptsOption",
    "OutputDirOption",
    "PasswordOption",
    "PollIntervalOption",
    "ProjectIdOption",
    "ReportFormatOption",
    "WatchOption",
    "clean_string",
    "normalize_log_format",
    "normalize_log_level",
    "normalize_report_format",
    "validate_positive_float",
]
