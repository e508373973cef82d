"""Offline checks: configuration shape, local runtime capabilities, link quality.

None of these checks send traffic to the backend. They mirror what a client
runtime can tell about itself before any probe completes.
"""

from __future__ import annotations

import platform
import re
import socket
import uuid
from pathlib import Path

import httpx

from linkdoctor.config.constants import NOT_SET
from linkdoctor.config.settings import RuntimeSettings
from linkdoctor.domain.models import (
    ConfigurationChecks,
    EnvironmentChecks,
    NetworkQuality,
    ProbeResult,
)
from linkdoctor.infrastructure.logging import BoundLogger, get_logger

MIN_API_KEY_LENGTH = 10
MIN_PROJECT_ID_LENGTH = 3
ROUTE_CHECK_ADDRESS = ("192.0.2.1", 53)

_DOMAIN_LABEL = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$", re.IGNORECASE)

# Network Information API thresholds for effective connection type.
_EFFECTIVE_TYPE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (2000.0, "slow-2g"),
    (1400.0, "2g"),
    (270.0, "3g"),
)


def is_well_formed_domain(value: str | None) -> bool:
    if not value or "." not in value:
        return False
    labels = value.strip().rstrip(".").split(".")
    return len(labels) >= 2 and all(_DOMAIN_LABEL.match(label) for label in labels)


def check_configuration(settings: RuntimeSettings) -> ConfigurationChecks:
    api_key = settings.api_key or ""
    project_id = settings.project_id or ""
    auth_domain = settings.auth_domain or ""

    present = bool(api_key and project_id and auth_domain)
    valid = (
        present
        and len(api_key) > MIN_API_KEY_LENGTH
        and len(project_id) > MIN_PROJECT_ID_LENGTH
        and is_well_formed_domain(auth_domain)
    )
    return ConfigurationChecks(
        variables_present=present,
        valid_config=valid,
        project_id=project_id or NOT_SET,
        auth_domain=auth_domain or NOT_SET,
    )


def estimate_network_quality(internet: ProbeResult) -> NetworkQuality | None:
    """Classify link quality from the round trip of a successful probe."""

    if not internet.reachable or internet.latency_ms is None:
        return None
    rtt = round(internet.latency_ms, 1)
    effective_type = "4g"
    for threshold, label in _EFFECTIVE_TYPE_THRESHOLDS:
        if rtt >= threshold:
            effective_type = label
            break
    return NetworkQuality(effective_type=effective_type, downlink_mbps=None, rtt_ms=rtt)


def describe_runtime() -> str:
    return (
        f"{platform.python_implementation()} {platform.python_version()} "
        f"({platform.system()} {platform.release()}); httpx {httpx.__version__}"
    )


class EnvironmentInspector:
    """Synchronous checks of the local runtime."""

    def __init__(
        self,
        *,
        state_dir: str | Path,
        cookie_domain: str | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._state_dir = Path(state_dir).expanduser()
        self._cookie_domain = cookie_domain or "localhost"
        self._logger = logger or get_logger("linkdoctor.environment")

    def inspect(self) -> EnvironmentChecks:
        return EnvironmentChecks(
            online=self.has_network_route(),
            cookies_enabled=self.cookies_enabled(),
            local_storage_available=self.local_storage_available(),
            runtime=describe_runtime(),
        )

    def has_network_route(self) -> bool:
        # Connecting a UDP socket only consults the routing table; nothing is sent.
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.connect(ROUTE_CHECK_ADDRESS)
                local_address = sock.getsockname()[0]
        except OSError as exc:
            self._logger.debug("environment.no_route", error=str(exc))
            return False
        return not local_address.startswith("0.")

    def cookies_enabled(self) -> bool:
        jar = httpx.Cookies()
        try:
            jar.set("linkdoctor_probe", "1", domain=self._cookie_domain)
            return jar.get("linkdoctor_probe", domain=self._cookie_domain) == "1"
        except (ValueError, KeyError) as exc:
            self._logger.debug("environment.cookies_unavailable", error=str(exc))
            return False

    def local_storage_available(self) -> bool:
        marker = self._state_dir / f".linkdoctor-{uuid.uuid4().hex}"
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            marker.write_text("test", encoding="utf-8")
            round_trip = marker.read_text(encoding="utf-8") == "test"
            marker.unlink()
        except OSError as exc:
            self._logger.debug(
                "environment.storage_unavailable", state_dir=str(self._state_dir), error=str(exc)
            )
            return False
        return round_trip


__all__ = [
    "EnvironmentInspector",
    "check_configuration",
    "estimate_network_quality",
    "describe_runtime",
    "is_well_formed_domain",
]
