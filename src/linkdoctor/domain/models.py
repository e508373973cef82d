"""Value types for connectivity state, probes, diagnostics and access repair.

Everything here is immutable: callers receive snapshots, never a reference
into state owned by another component.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class ConnectionStatus(str, Enum):
    INITIALIZING = "initializing"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class ConnectionEvent(str, Enum):
    STARTUP_BEGIN = "startup_begin"
    PROBE_SUCCEEDED = "probe_succeeded"
    PROBE_FAILED = "probe_failed"
    RETRY_REQUESTED = "retry_requested"
    GIVE_UP = "give_up"


@dataclass(frozen=True)
class RetryState:
    attempt_count: int = 0
    max_attempts: int = 3
    last_attempt_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if self.attempt_count < 0:
            raise ValueError("attempt_count must be non-negative")

    @property
    def exhausted(self) -> bool:
        return self.attempt_count >= self.max_attempts


@dataclass(frozen=True)
class StatusSnapshot:
    """What the status stream publishes on every transition."""

    status: ConnectionStatus
    attempt_count: int
    max_attempts: int
    last_attempt_at: datetime | None

    @property
    def label(self) -> str:
        if self.status in (ConnectionStatus.CONNECTING, ConnectionStatus.FAILED):
            return f"{self.status.value} (attempt {self.attempt_count} / {self.max_attempts})"
        return self.status.value


@dataclass(frozen=True)
class ProbeResult:
    target: str
    reachable: bool
    latency_ms: float | None = None
    error: str | None = None


@dataclass(frozen=True)
class ResourceStatus:
    name: str
    reachable: bool


@dataclass(frozen=True)
class ConnectivityChecks:
    internet: bool
    backend: bool
    specific_resource: bool
    resources: tuple[ResourceStatus, ...] = ()


@dataclass(frozen=True)
class ConfigurationChecks:
    variables_present: bool
    valid_config: bool
    project_id: str
    auth_domain: str


@dataclass(frozen=True)
class EnvironmentChecks:
    online: bool
    cookies_enabled: bool
    local_storage_available: bool
    runtime: str = ""


@dataclass(frozen=True)
class NetworkQuality:
    effective_type: str | None = None
    downlink_mbps: float | None = None
    rtt_ms: float | None = None

    @property
    def degraded(self) -> bool:
        return self.effective_type in {"slow-2g", "2g"}


@dataclass(frozen=True)
class DiagnosticsReport:
    timestamp: datetime
    connectivity: ConnectivityChecks
    configuration: ConfigurationChecks
    environment: EnvironmentChecks
    network_quality: NetworkQuality | None
    recommendations: tuple[str, ...]

    @property
    def all_passed(self) -> bool:
        return (
            self.connectivity.internet
            and self.connectivity.backend
            and self.connectivity.specific_resource
            and self.configuration.valid_config
        )


@dataclass(frozen=True)
class Identity:
    """An authenticated principal as reported by the identity provider."""

    uid: str
    email: str | None = None
    id_token: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)

    @property
    def contact_handle(self) -> str:
        return self.email or self.uid

    @property
    def display_name(self) -> str:
        handle = self.contact_handle
        return handle.split("@", 1)[0] if "@" in handle else handle


@dataclass(frozen=True)
class AuthorizationRecord:
    identity_id: str
    role: str
    is_active: bool
    created_at: datetime
    email: str | None = None
    name: str | None = None
    auto_created: bool = False

    @classmethod
    def synthesize(
        cls, identity: Identity, *, role: str, now: datetime | None = None
    ) -> "AuthorizationRecord":
        return cls(
            identity_id=identity.uid,
            role=role,
            is_active=True,
            created_at=now or datetime.now(timezone.utc),
            email=identity.email,
            name=identity.display_name,
            auto_created=True,
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "requires_password_reset": False,
            "created_at": self.created_at,
            "updated_at": self.created_at,
            "auto_created": self.auto_created,
        }

    @classmethod
    def from_document(cls, identity_id: str, data: Mapping[str, Any]) -> "AuthorizationRecord":
        created = data.get("created_at")
        if not isinstance(created, datetime):
            created = datetime.fromtimestamp(0, timezone.utc)
        return cls(
            identity_id=identity_id,
            role=str(data.get("role") or ""),
            is_active=data.get("is_active") is True,
            created_at=created,
            email=data.get("email") if isinstance(data.get("email"), str) else None,
            name=data.get("name") if isinstance(data.get("name"), str) else None,
            auto_created=bool(data.get("auto_created") or data.get("emergency_created")),
        )


class RepairOutcomeKind(str, Enum):
    ALREADY_AUTHORIZED = "already_authorized"
    REPAIRED_CREATED_RECORD = "repaired_created_record"
    REPAIR_FAILED = "repair_failed"


@dataclass(frozen=True)
class RepairOutcome:
    kind: RepairOutcomeKind
    reason: str | None = None
    code: str | None = None
    record: AuthorizationRecord | None = None
    resources: tuple[ProbeResult, ...] = ()

    @classmethod
    def already_authorized(
        cls, record: AuthorizationRecord | None, resources: tuple[ProbeResult, ...] = ()
    ) -> "RepairOutcome":
        return cls(RepairOutcomeKind.ALREADY_AUTHORIZED, record=record, resources=resources)

    @classmethod
    def repaired(
        cls, record: AuthorizationRecord, resources: tuple[ProbeResult, ...] = ()
    ) -> "RepairOutcome":
        return cls(RepairOutcomeKind.REPAIRED_CREATED_RECORD, record=record, resources=resources)

    @classmethod
    def failed(cls, reason: str, *, code: str | None = None) -> "RepairOutcome":
        return cls(RepairOutcomeKind.REPAIR_FAILED, reason=reason, code=code)

    @property
    def ok(self) -> bool:
        return self.kind is not RepairOutcomeKind.REPAIR_FAILED

    @property
    def partial(self) -> bool:
        """Repair succeeded but some protected resources are still denied."""

        return self.ok and any(not probe.reachable for probe in self.resources)

    @property
    def denied_resources(self) -> tuple[str, ...]:
        return tuple(probe.target for probe in self.resources if not probe.reachable)


@dataclass(frozen=True)
class StoreProbe:
    count: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RecordLookup:
    found: bool = False
    data: Mapping[str, Any] | None = None
    error: str | None = None


@dataclass(frozen=True)
class WriteResult:
    ok: bool
    error: str | None = None
    conflict: bool = False


__all__ = [
    "ConnectionStatus",
    "ConnectionEvent",
    "RetryState",
    "StatusSnapshot",
    "ProbeResult",
    "ResourceStatus",
    "ConnectivityChecks",
    "ConfigurationChecks",
    "EnvironmentChecks",
    "NetworkQuality",
    "DiagnosticsReport",
    "Identity",
    "AuthorizationRecord",
    "RepairOutcomeKind",
    "RepairOutcome",
    "StoreProbe",
    "RecordLookup",
    "WriteResult",
]
