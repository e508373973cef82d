"""Dynaconf-backed configuration helpers for linkdoctor.

Settings resolve according to the following precedence:

1. Command line inputs
2. Environment variables
3. Local configuration overlays (``config.local.toml``)
4. Primary configuration file (``config.toml``)

Blank or whitespace-only values are treated as "not provided" so they do not
override lower-priority sources. Missing backend values never abort loading;
they surface later as a configuration diagnosis.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

from dynaconf import Dynaconf

from linkdoctor.config.constants import (
    DEFAULT_CONFIG_FILENAME,
    FALSY_STRINGS,
    LOCAL_CONFIG_FILENAME,
    TRUTHY_STRINGS,
)

_REPO_ROOT = Path(__file__).resolve().parents[3]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_PROBE_TIMEOUT = 3.0
DEFAULT_DIAGNOSTICS_PROBE_TIMEOUT = 4.0
DEFAULT_IDENTITY_WAIT_TIMEOUT = 5.0
DEFAULT_EMULATOR_HOST = "localhost"
DEFAULT_AUTH_EMULATOR_PORT = 9099
DEFAULT_FIRESTORE_EMULATOR_PORT = 8080

DEFAULT_INTERNET_ENDPOINTS: Tuple[str, ...] = (
    "https://www.google.com/favicon.ico",
    "https://httpbin.org/status/200",
    "https://jsonplaceholder.typicode.com/posts/1",
)
DEFAULT_BACKEND_ENDPOINTS: Tuple[str, ...] = (
    "https://firebase.googleapis.com",
    "https://firestore.googleapis.com",
    "https://identitytoolkit.googleapis.com",
)
DEFAULT_RESOURCE_COLLECTIONS: Tuple[str, ...] = ("users", "packages", "customers")
DEFAULT_RECORDS_COLLECTION = "users"
DEFAULT_ROLE = "admin"
DEFAULT_PROTECTED_COLLECTIONS: Tuple[str, ...] = (
    "packages",
    "customers",
    "billing",
    "requests",
)

LOG_FORMAT_TEXT = "text"
LOG_FORMAT_JSON = "json"
DEFAULT_LOG_FORMAT = LOG_FORMAT_TEXT
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_BYTES = 10_000_000
DEFAULT_BACKUP_COUNT = 5

# Dynaconf keys used throughout the module. Using constants keeps environment
# and configuration lookups consistent.
BACKEND_API_KEY_KEY = "backend.api_key"
BACKEND_PROJECT_ID_KEY = "backend.project_id"
BACKEND_AUTH_DOMAIN_KEY = "backend.auth_domain"
BACKEND_USE_EMULATOR_KEY = "backend.use_emulator"
BACKEND_EMULATOR_HOST_KEY = "backend.emulator_host"
BACKEND_AUTH_EMULATOR_PORT_KEY = "backend.auth_emulator_port"
BACKEND_FIRESTORE_EMULATOR_PORT_KEY = "backend.firestore_emulator_port"

CONNECTION_MAX_ATTEMPTS_KEY = "connection.max_attempts"
CONNECTION_POLL_INTERVAL_KEY = "connection.poll_interval"
CONNECTION_PROBE_TIMEOUT_KEY = "connection.probe_timeout"

DIAGNOSTICS_INTERNET_ENDPOINTS_KEY = "diagnostics.internet_endpoints"
DIAGNOSTICS_BACKEND_ENDPOINTS_KEY = "diagnostics.backend_endpoints"
DIAGNOSTICS_RESOURCE_COLLECTIONS_KEY = "diagnostics.resource_collections"
DIAGNOSTICS_PROBE_TIMEOUT_KEY = "diagnostics.probe_timeout"
DIAGNOSTICS_STATE_DIR_KEY = "diagnostics.state_dir"

ACCESS_RECORDS_COLLECTION_KEY = "access.records_collection"
ACCESS_DEFAULT_ROLE_KEY = "access.default_role"
ACCESS_PROTECTED_COLLECTIONS_KEY = "access.protected_collections"
ACCESS_IDENTITY_WAIT_TIMEOUT_KEY = "access.identity_wait_timeout"

RUNTIME_DEBUG_KEY = "runtime.debug"
RUNTIME_ALLOW_INSECURE_TLS_KEY = "runtime.allow_insecure_tls"
RUNTIME_CA_BUNDLE_PATH_KEY = "runtime.ca_bundle_path"

LOGGING_LEVEL_KEY = "logging.level"
LOGGING_FORMAT_KEY = "logging.format"
LOGGING_FILE_KEY = "logging.file"
LOGGING_MAX_BYTES_KEY = "logging.max_bytes"
LOGGING_BACKUP_COUNT_KEY = "logging.backup_count"

_ENVIRONMENT_MAP = {
    "FIREBASE_API_KEY": BACKEND_API_KEY_KEY,
    "FIREBASE_PROJECT_ID": BACKEND_PROJECT_ID_KEY,
    "FIREBASE_AUTH_DOMAIN": BACKEND_AUTH_DOMAIN_KEY,
    "LINKDOCTOR_USE_EMULATOR": BACKEND_USE_EMULATOR_KEY,
    "LINKDOCTOR_EMULATOR_HOST": BACKEND_EMULATOR_HOST_KEY,
    "LINKDOCTOR_MAX_ATTEMPTS": CONNECTION_MAX_ATTEMPTS_KEY,
    "LINKDOCTOR_POLL_INTERVAL": CONNECTION_POLL_INTERVAL_KEY,
    "LINKDOCTOR_PROBE_TIMEOUT": CONNECTION_PROBE_TIMEOUT_KEY,
    "LINKDOCTOR_STATE_DIR": DIAGNOSTICS_STATE_DIR_KEY,
    "LINKDOCTOR_DEBUG": RUNTIME_DEBUG_KEY,
    "LINKDOCTOR_ALLOW_INSECURE_TLS": RUNTIME_ALLOW_INSECURE_TLS_KEY,
    "LINKDOCTOR_CA_BUNDLE": RUNTIME_CA_BUNDLE_PATH_KEY,
    "LINKDOCTOR_LOG_LEVEL": LOGGING_LEVEL_KEY,
    "LINKDOCTOR_LOG_FORMAT": LOGGING_FORMAT_KEY,
    "LINKDOCTOR_LOG_FILE": LOGGING_FILE_KEY,
    "LINKDOCTOR_LOG_MAX_BYTES": LOGGING_MAX_BYTES_KEY,
    "LINKDOCTOR_LOG_BACKUP_COUNT": LOGGING_BACKUP_COUNT_KEY,
}


@dataclass(frozen=True)
class BackendInputs:
    api_key: Optional[str] = None
    project_id: Optional[str] = None
    auth_domain: Optional[str] = None
    use_emulator: Optional[bool] = None


@dataclass(frozen=True)
class ConnectionInputs:
    max_attempts: Optional[int] = None
    poll_interval: Optional[float] = None
    probe_timeout: Optional[float] = None


@dataclass(frozen=True)
class RuntimeInputs:
    debug: Optional[bool] = None


@dataclass(frozen=True)
class TlsInputs:
    allow_insecure: Optional[bool] = None
    ca_bundle_path: Optional[str] = None


@dataclass(frozen=True)
class LoggingInputs:
    level: Optional[str] = None
    format: Optional[str] = None
    file_path: Optional[str] = None
    max_bytes: Optional[int] = None
    backup_count: Optional[int] = None


@dataclass(frozen=True)
class LoggingSettings:
    level: int
    format: str
    file_path: Optional[str]
    max_bytes: int
    backup_count: int

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


@dataclass(frozen=True)
class RuntimeSettings:
    api_key: Optional[str] = None
    project_id: Optional[str] = None
    auth_domain: Optional[str] = None
    use_emulator: bool = False
    emulator_host: str = DEFAULT_EMULATOR_HOST
    auth_emulator_port: int = DEFAULT_AUTH_EMULATOR_PORT
    firestore_emulator_port: int = DEFAULT_FIRESTORE_EMULATOR_PORT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    internet_endpoints: Tuple[str, ...] = DEFAULT_INTERNET_ENDPOINTS
    backend_endpoints: Tuple[str, ...] = DEFAULT_BACKEND_ENDPOINTS
    resource_collections: Tuple[str, ...] = DEFAULT_RESOURCE_COLLECTIONS
    diagnostics_probe_timeout: float = DEFAULT_DIAGNOSTICS_PROBE_TIMEOUT
    state_dir: str = field(default_factory=tempfile.gettempdir)
    records_collection: str = DEFAULT_RECORDS_COLLECTION
    default_role: str = DEFAULT_ROLE
    protected_collections: Tuple[str, ...] = DEFAULT_PROTECTED_COLLECTIONS
    identity_wait_timeout: float = DEFAULT_IDENTITY_WAIT_TIMEOUT
    debug: bool = False
    allow_insecure_tls: bool = False
    ca_bundle_path: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    @property
    def tls_verify(self) -> bool | str:
        """Value suitable for ``httpx``'s ``verify`` argument."""

        if self.allow_insecure_tls:
            return False
        if self.ca_bundle_path:
            return str(Path(self.ca_bundle_path).expanduser())
        return True

    @property
    def firestore_base_url(self) -> str:
        project = self.project_id or "unknown-project"
        if self.use_emulator:
            root = f"http://{self.emulator_host}:{self.firestore_emulator_port}"
        else:
            root = "https://firestore.googleapis.com"
        return f"{root}/v1/projects/{project}/databases/(default)/documents"

    @property
    def identity_base_url(self) -> str:
        if self.use_emulator:
            return (
                f"http://{self.emulator_host}:{self.auth_emulator_port}"
                "/identitytoolkit.googleapis.com/v1"
            )
        return "https://identitytoolkit.googleapis.com/v1"

    @property
    def effective_backend_endpoints(self) -> Tuple[str, ...]:
        """Backend gateway endpoints, swapped for the emulators when enabled."""

        if self.use_emulator:
            return (
                f"http://{self.emulator_host}:{self.firestore_emulator_port}",
                f"http://{self.emulator_host}:{self.auth_emulator_port}",
            )
        return self.backend_endpoints


def _default_settings_files(config_path: Optional[str]) -> Tuple[Sequence[str], Optional[str]]:
    if config_path:
        config_file = Path(config_path)
        local_file = config_file.with_name(f"{config_file.stem}.local{config_file.suffix}")
        files: list[str] = []
        if config_file.exists():
            files.append(str(config_file))
        if local_file.exists():
            files.append(str(local_file))
        return files or [str(config_file)], None
    return [DEFAULT_CONFIG_FILENAME, LOCAL_CONFIG_FILENAME], str(_REPO_ROOT)


def _coerce_str(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        candidate = value.strip()
        return candidate or None
    return str(value)


def _coerce_bool(value: Optional[Any]) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized:
            return None
        if normalized in TRUTHY_STRINGS:
            return True
        if normalized in FALSY_STRINGS:
            return False
        return None
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def _coerce_int(value: Optional[Any]) -> Optional[int]:
    if value is None:
        return None
    try:
        coerced = int(value)
    except (TypeError, ValueError):
        return None
    return coerced


def _coerce_float(value: Optional[Any]) -> Optional[float]:
    if value is None:
        return None
    try:
        coerced = float(value)
    except (TypeError, ValueError):
        return None
    return coerced


def _coerce_str_list(value: Optional[Any]) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value if item is not None]
    else:
        return None
    cleaned = tuple(item for item in items if item)
    return cleaned or None


def _apply_environment_overrides(settings: Dynaconf) -> None:
    for env_var, key in _ENVIRONMENT_MAP.items():
        raw = os.getenv(env_var)
        if raw is None:
            continue
        if isinstance(raw, str) and not raw.strip():
            continue
        settings.set(key, raw)
    debug_fallback = os.getenv("DEBUG")
    if debug_fallback and debug_fallback.strip():
        settings.set(RUNTIME_DEBUG_KEY, debug_fallback)


def _apply_backend_inputs(settings: Dynaconf, backend_inputs: Optional[BackendInputs]) -> None:
    if backend_inputs is None:
        return

    if backend_inputs.api_key is not None and backend_inputs.api_key.strip():
        settings.set(BACKEND_API_KEY_KEY, backend_inputs.api_key.strip())
    if backend_inputs.project_id is not None and backend_inputs.project_id.strip():
        settings.set(BACKEND_PROJECT_ID_KEY, backend_inputs.project_id.strip())
    if backend_inputs.auth_domain is not None and backend_inputs.auth_domain.strip():
        settings.set(BACKEND_AUTH_DOMAIN_KEY, backend_inputs.auth_domain.strip())
    if backend_inputs.use_emulator is not None:
        settings.set(BACKEND_USE_EMULATOR_KEY, backend_inputs.use_emulator)


def _apply_connection_inputs(
    settings: Dynaconf, connection_inputs: Optional[ConnectionInputs]
) -> None:
    if connection_inputs is None:
        return

    if connection_inputs.max_attempts is not None:
        settings.set(CONNECTION_MAX_ATTEMPTS_KEY, connection_inputs.max_attempts)
    if connection_inputs.poll_interval is not None:
        settings.set(CONNECTION_POLL_INTERVAL_KEY, connection_inputs.poll_interval)
    if connection_inputs.probe_timeout is not None:
        settings.set(CONNECTION_PROBE_TIMEOUT_KEY, connection_inputs.probe_timeout)


def _apply_runtime_inputs(settings: Dynaconf, runtime_inputs: Optional[RuntimeInputs]) -> None:
    if runtime_inputs is None:
        return

    if runtime_inputs.debug is not None:
        settings.set(RUNTIME_DEBUG_KEY, runtime_inputs.debug)


def _apply_tls_inputs(settings: Dynaconf, tls_inputs: Optional[TlsInputs]) -> None:
    if tls_inputs is None:
        return

    if tls_inputs.allow_insecure is not None:
        settings.set(RUNTIME_ALLOW_INSECURE_TLS_KEY, tls_inputs.allow_insecure)
    if tls_inputs.ca_bundle_path is not None:
        settings.set(RUNTIME_CA_BUNDLE_PATH_KEY, tls_inputs.ca_bundle_path.strip())


def _apply_logging_inputs(settings: Dynaconf, logging_inputs: Optional[LoggingInputs]) -> None:
    if logging_inputs is None:
        return

    if logging_inputs.level is not None:
        settings.set(LOGGING_LEVEL_KEY, logging_inputs.level.strip())
    if logging_inputs.format is not None:
        settings.set(LOGGING_FORMAT_KEY, logging_inputs.format.strip())
    if logging_inputs.file_path is not None:
        settings.set(LOGGING_FILE_KEY, logging_inputs.file_path.strip())
    if logging_inputs.max_bytes is not None:
        settings.set(LOGGING_MAX_BYTES_KEY, logging_inputs.max_bytes)
    if logging_inputs.backup_count is not None:
        settings.set(LOGGING_BACKUP_COUNT_KEY, logging_inputs.backup_count)


def _build_dynaconf(config_path: Optional[str]) -> Dynaconf:
    files, root_path = _default_settings_files(config_path)
    settings = Dynaconf(
        settings_files=list(files),
        envvar_prefix="LINKDOCTOR",
        environments=False,
        load_dotenv=True,
        merge_enabled=True,
        root_path=root_path,
    )
    _apply_environment_overrides(settings)
    return settings


def load_settings(config_path: Optional[str] = None) -> Dynaconf:
    """Create a Dynaconf instance configured for the supplied path."""

    return _build_dynaconf(config_path)


def apply_cli_overrides(
    settings: Dynaconf,
    *,
    backend_inputs: Optional[BackendInputs] = None,
    connection_inputs: Optional[ConnectionInputs] = None,
    runtime_inputs: Optional[RuntimeInputs] = None,
    tls_inputs: Optional[TlsInputs] = None,
    logging_inputs: Optional[LoggingInputs] = None,
) -> None:
    """Apply CLI overrides to the provided settings instance."""

    _apply_backend_inputs(settings, backend_inputs)
    _apply_connection_inputs(settings, connection_inputs)
    _apply_runtime_inputs(settings, runtime_inputs)
    _apply_tls_inputs(settings, tls_inputs)
    _apply_logging_inputs(settings, logging_inputs)


def _resolve_bool(settings: Dynaconf, key: str, *, default: bool = False) -> bool:
    coerced = _coerce_bool(settings.get(key))
    if coerced is None:
        return default
    return coerced


def _resolve_positive_int(
    settings: Dynaconf, key: str, default: int, warnings: list[str]
) -> int:
    raw = settings.get(key)
    if raw is None:
        return default
    value = _coerce_int(raw)
    if value is None or value <= 0:
        warnings.append(f"Invalid {key} value {raw!r}; using default {default}")
        return default
    return value


def _resolve_positive_float(
    settings: Dynaconf, key: str, default: float, warnings: list[str]
) -> float:
    raw = settings.get(key)
    if raw is None:
        return default
    value = _coerce_float(raw)
    if value is None or value <= 0:
        warnings.append(f"Invalid {key} value {raw!r}; using default {default}")
        return default
    return value


def _resolve_list(
    settings: Dynaconf, key: str, default: Tuple[str, ...], warnings: list[str]
) -> Tuple[str, ...]:
    raw = settings.get(key)
    if raw is None:
        return default
    value = _coerce_str_list(raw)
    if value is None:
        warnings.append(f"Empty {key} override; falling back to defaults")
        return default
    return value


def runtime_from_settings(settings: Dynaconf) -> RuntimeSettings:
    """Extract runtime settings and validation messages from Dynaconf."""

    warnings: list[str] = []

    allow_insecure_tls = _resolve_bool(settings, RUNTIME_ALLOW_INSECURE_TLS_KEY, default=False)
    ca_bundle_path = _coerce_str(settings.get(RUNTIME_CA_BUNDLE_PATH_KEY))
    if allow_insecure_tls and ca_bundle_path:
        warnings.append(
            "allow_insecure_tls takes precedence over ca_bundle_path; "
            "HTTPS verification will be disabled"
        )
        ca_bundle_path = None

    return RuntimeSettings(
        api_key=_coerce_str(settings.get(BACKEND_API_KEY_KEY)),
        project_id=_coerce_str(settings.get(BACKEND_PROJECT_ID_KEY)),
        auth_domain=_coerce_str(settings.get(BACKEND_AUTH_DOMAIN_KEY)),
        use_emulator=_resolve_bool(settings, BACKEND_USE_EMULATOR_KEY, default=False),
        emulator_host=(
            _coerce_str(settings.get(BACKEND_EMULATOR_HOST_KEY)) or DEFAULT_EMULATOR_HOST
        ),
        auth_emulator_port=_resolve_positive_int(
            settings, BACKEND_AUTH_EMULATOR_PORT_KEY, DEFAULT_AUTH_EMULATOR_PORT, warnings
        ),
        firestore_emulator_port=_resolve_positive_int(
            settings,
            BACKEND_FIRESTORE_EMULATOR_PORT_KEY,
            DEFAULT_FIRESTORE_EMULATOR_PORT,
            warnings,
        ),
        max_attempts=_resolve_positive_int(
            settings, CONNECTION_MAX_ATTEMPTS_KEY, DEFAULT_MAX_ATTEMPTS, warnings
        ),
        poll_interval=_resolve_positive_float(
            settings, CONNECTION_POLL_INTERVAL_KEY, DEFAULT_POLL_INTERVAL, warnings
        ),
        probe_timeout=_resolve_positive_float(
            settings, CONNECTION_PROBE_TIMEOUT_KEY, DEFAULT_PROBE_TIMEOUT, warnings
        ),
        internet_endpoints=_resolve_list(
            settings, DIAGNOSTICS_INTERNET_ENDPOINTS_KEY, DEFAULT_INTERNET_ENDPOINTS, warnings
        ),
        backend_endpoints=_resolve_list(
            settings, DIAGNOSTICS_BACKEND_ENDPOINTS_KEY, DEFAULT_BACKEND_ENDPOINTS, warnings
        ),
        resource_collections=_resolve_list(
            settings,
            DIAGNOSTICS_RESOURCE_COLLECTIONS_KEY,
            DEFAULT_RESOURCE_COLLECTIONS,
            warnings,
        ),
        diagnostics_probe_timeout=_resolve_positive_float(
            settings,
            DIAGNOSTICS_PROBE_TIMEOUT_KEY,
            DEFAULT_DIAGNOSTICS_PROBE_TIMEOUT,
            warnings,
        ),
        state_dir=_coerce_str(settings.get(DIAGNOSTICS_STATE_DIR_KEY)) or tempfile.gettempdir(),
        records_collection=(
            _coerce_str(settings.get(ACCESS_RECORDS_COLLECTION_KEY)) or DEFAULT_RECORDS_COLLECTION
        ),
        default_role=_coerce_str(settings.get(ACCESS_DEFAULT_ROLE_KEY)) or DEFAULT_ROLE,
        protected_collections=_resolve_list(
            settings,
            ACCESS_PROTECTED_COLLECTIONS_KEY,
            DEFAULT_PROTECTED_COLLECTIONS,
            warnings,
        ),
        identity_wait_timeout=_resolve_positive_float(
            settings,
            ACCESS_IDENTITY_WAIT_TIMEOUT_KEY,
            DEFAULT_IDENTITY_WAIT_TIMEOUT,
            warnings,
        ),
        debug=_resolve_bool(settings, RUNTIME_DEBUG_KEY, default=False),
        allow_insecure_tls=allow_insecure_tls,
        ca_bundle_path=ca_bundle_path,
        warnings=tuple(warnings),
    )


def logging_from_settings(settings: Dynaconf) -> LoggingSettings:
    """Extract logging configuration from Dynaconf."""

    level_value = _coerce_str(settings.get(LOGGING_LEVEL_KEY)) or DEFAULT_LOG_LEVEL
    format_value = (_coerce_str(settings.get(LOGGING_FORMAT_KEY)) or DEFAULT_LOG_FORMAT).lower()
    if format_value not in {LOG_FORMAT_TEXT, LOG_FORMAT_JSON}:
        raise ValueError(f"Unsupported log format: {format_value}")

    file_path = _coerce_str(settings.get(LOGGING_FILE_KEY))

    max_bytes_value = _coerce_int(settings.get(LOGGING_MAX_BYTES_KEY))
    if max_bytes_value is None or max_bytes_value <= 0:
        max_bytes_value = DEFAULT_MAX_BYTES

    backup_count_value = _coerce_int(settings.get(LOGGING_BACKUP_COUNT_KEY))
    if backup_count_value is None or backup_count_value <= 0:
        backup_count_value = DEFAULT_BACKUP_COUNT

    mapping = logging.getLevelNamesMapping()
    level_upper = level_value.upper()
    if level_upper.isdigit():
        resolved_level = int(level_upper)
    else:
        resolved_level = mapping.get(level_upper, logging.INFO)

    return LoggingSettings(
        level=resolved_level,
        format=format_value,
        file_path=file_path,
        max_bytes=max_bytes_value,
        backup_count=backup_count_value,
    )


def resolve_application_settings(
    *,
    config_path: Optional[str] = None,
    backend_inputs: Optional[BackendInputs] = None,
    connection_inputs: Optional[ConnectionInputs] = None,
    runtime_inputs: Optional[RuntimeInputs] = None,
    tls_inputs: Optional[TlsInputs] = None,
    logging_inputs: Optional[LoggingInputs] = None,
) -> Tuple[RuntimeSettings, LoggingSettings]:
    settings = load_settings(config_path)
    apply_cli_overrides(
        settings,
        backend_inputs=backend_inputs,
        connection_inputs=connection_inputs,
        runtime_inputs=runtime_inputs,
        tls_inputs=tls_inputs,
        logging_inputs=logging_inputs,
    )
    runtime_settings = runtime_from_settings(settings)
    logging_settings = logging_from_settings(settings)

    if runtime_settings.debug and logging_settings.level > logging.DEBUG:
        logging_settings = LoggingSettings(
            level=logging.DEBUG,
            format=logging_settings.format,
            file_path=logging_settings.file_path,
            max_bytes=logging_settings.max_bytes,
            backup_count=logging_settings.backup_count,
        )

    return runtime_settings, logging_settings


def settings_snapshot(settings: Dynaconf) -> Dict[str, Any]:
    """Return the resolved runtime values keyed by their dotted config names."""

    runtime = runtime_from_settings(settings)
    return {
        BACKEND_API_KEY_KEY: runtime.api_key,
        BACKEND_PROJECT_ID_KEY: runtime.project_id,
        BACKEND_AUTH_DOMAIN_KEY: runtime.auth_domain,
        BACKEND_USE_EMULATOR_KEY: runtime.use_emulator,
        CONNECTION_MAX_ATTEMPTS_KEY: runtime.max_attempts,
        CONNECTION_POLL_INTERVAL_KEY: runtime.poll_interval,
        CONNECTION_PROBE_TIMEOUT_KEY: runtime.probe_timeout,
        DIAGNOSTICS_INTERNET_ENDPOINTS_KEY: ", ".join(runtime.internet_endpoints),
        DIAGNOSTICS_BACKEND_ENDPOINTS_KEY: ", ".join(runtime.effective_backend_endpoints),
        DIAGNOSTICS_RESOURCE_COLLECTIONS_KEY: ", ".join(runtime.resource_collections),
        DIAGNOSTICS_PROBE_TIMEOUT_KEY: runtime.diagnostics_probe_timeout,
        DIAGNOSTICS_STATE_DIR_KEY: runtime.state_dir,
        ACCESS_RECORDS_COLLECTION_KEY: runtime.records_collection,
        ACCESS_DEFAULT_ROLE_KEY: runtime.default_role,
        ACCESS_PROTECTED_COLLECTIONS_KEY: ", ".join(runtime.protected_collections),
        ACCESS_IDENTITY_WAIT_TIMEOUT_KEY: runtime.identity_wait_timeout,
        RUNTIME_DEBUG_KEY: runtime.debug,
        RUNTIME_ALLOW_INSECURE_TLS_KEY: runtime.allow_insecure_tls,
        RUNTIME_CA_BUNDLE_PATH_KEY: runtime.ca_bundle_path,
    }


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_PROBE_TIMEOUT",
    "DEFAULT_LOG_FORMAT",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT_TEXT",
    "LOG_FORMAT_JSON",
    "BackendInputs",
    "ConnectionInputs",
    "RuntimeInputs",
    "TlsInputs",
    "LoggingInputs",
    "LoggingSettings",
    "RuntimeSettings",
    "load_settings",
    "apply_cli_overrides",
    "runtime_from_settings",
    "logging_from_settings",
    "resolve_application_settings",
    "settings_snapshot",
]
