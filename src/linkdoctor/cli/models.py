"""Structured CLI invocation values shared between the callback and commands."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BackendOverrides:
    api_key: str | None = None
    project_id: str | None = None
    auth_domain: str | None = None
    use_emulator: bool | None = None


@dataclass(frozen=True)
class ConnectionOverrides:
    max_attempts: int | None = None
    poll_interval: float | None = None


@dataclass(frozen=True)
class TlsOverrides:
    allow_insecure: bool | None = None
    ca_bundle_path: str | None = None


@dataclass(frozen=True)
class LoggingOverrides:
    level: str | None = None
    format: str | None = None
    file_path: str | None = None


@dataclass(frozen=True)
class CliInvocation:
    config_path: str | None = None
    backend: BackendOverrides = field(default_factory=BackendOverrides)
    connection: ConnectionOverrides = field(default_factory=ConnectionOverrides)
    debug: bool | None = None
    tls: TlsOverrides = field(default_factory=TlsOverrides)
    logging: LoggingOverrides = field(default_factory=LoggingOverrides)


__all__ = [
    "BackendOverrides",
    "ConnectionOverrides",
    "TlsOverrides",
    "LoggingOverrides",
    "CliInvocation",
]
