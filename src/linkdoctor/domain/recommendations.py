"""Derive ordered remediation advice from diagnostic findings.

Groups are evaluated in priority order: configuration, local environment,
network path (first failing layer only), network quality, then the
all-clear confirmation.
"""

from __future__ import annotations

from typing import Final

from linkdoctor.domain.models import (
    ConfigurationChecks,
    ConnectivityChecks,
    EnvironmentChecks,
    NetworkQuality,
)

CONFIGURATION_MISSING: Final[tuple[str, ...]] = (
    "Missing backend configuration: api_key, project_id and auth_domain must all be set.",
    "Check that the .env file or config.toml provides every required backend setting.",
)
CONFIGURATION_INVALID: Final[tuple[str, ...]] = (
    "Invalid backend configuration.",
    "Verify the API key, project id and auth domain against the backend console.",
)
ENVIRONMENT_OFFLINE: Final[tuple[str, ...]] = (
    "This machine reports no network route.",
    "Check the network adapter and connection of this machine.",
)
ENVIRONMENT_COOKIES: Final[tuple[str, ...]] = (
    "Cookie storage is unavailable.",
    "Enable cookie storage so authentication sessions can persist.",
)
ENVIRONMENT_STORAGE: Final[tuple[str, ...]] = (
    "Local storage is unavailable.",
    "Make the state directory writable or point diagnostics.state_dir elsewhere.",
)
INTERNET_UNREACHABLE: Final[tuple[str, ...]] = (
    "No internet connectivity detected.",
    "Check the network connection and restart the router or modem.",
    "Try an alternate network such as a mobile hotspot.",
    "Disable any VPN temporarily.",
)
BACKEND_UNREACHABLE: Final[tuple[str, ...]] = (
    "Backend services are unreachable although the internet is reachable.",
    "A corporate firewall may block the backend domains; ask IT to allow "
    "*.googleapis.com and *.firebase.com.",
    "DNS filtering is also possible; try resolvers such as 8.8.8.8 or 1.1.1.1.",
)
RESOURCE_UNREACHABLE_HEADLINE: Final = (
    "Backend is reachable but protected resources are not accessible: {names}."
)
RESOURCE_UNREACHABLE_HINTS: Final[tuple[str, ...]] = (
    "Check that the document store is enabled for the project and billing is set up.",
    "Review the security rules and access policy; this is a service configuration "
    "problem, not a network failure.",
)
SLOW_NETWORK_HEADLINE: Final = "Slow network connection detected ({effective_type}); requests may time out."
SLOW_NETWORK_HINT: Final = "Use a faster connection if operations keep timing out."
ALL_CLEAR: Final[tuple[str, ...]] = (
    "All connectivity and configuration checks passed.",
    "If problems persist, hard reload the client and clear its cache and cookies.",
    "Check the backend status page for ongoing incidents.",
)


def _configuration_group(configuration: ConfigurationChecks) -> tuple[str, ...]:
    if not configuration.variables_present:
        return CONFIGURATION_MISSING
    if not configuration.valid_config:
        return CONFIGURATION_INVALID
    return ()


def _environment_group(environment: EnvironmentChecks) -> list[str]:
    advice: list[str] = []
    if not environment.online:
        advice.extend(ENVIRONMENT_OFFLINE)
    if not environment.cookies_enabled:
        advice.extend(ENVIRONMENT_COOKIES)
    if not environment.local_storage_available:
        advice.extend(ENVIRONMENT_STORAGE)
    return advice


def _network_group(connectivity: ConnectivityChecks) -> list[str]:
    if not connectivity.internet:
        return list(INTERNET_UNREACHABLE)
    if not connectivity.backend:
        return list(BACKEND_UNREACHABLE)
    if not connectivity.specific_resource:
        denied = [item.name for item in connectivity.resources if not item.reachable]
        names = ", ".join(denied) if denied else "unknown resources"
        return [RESOURCE_UNREACHABLE_HEADLINE.format(names=names), *RESOURCE_UNREACHABLE_HINTS]
    return []


def build_recommendations(
    *,
    connectivity: ConnectivityChecks,
    configuration: ConfigurationChecks,
    environment: EnvironmentChecks,
    network_quality: NetworkQuality | None,
) -> tuple[str, ...]:
    advice: list[str] = list(_configuration_group(configuration))
    advice.extend(_environment_group(environment))
    advice.extend(_network_group(connectivity))

    if network_quality is not None and network_quality.degraded:
        advice.append(SLOW_NETWORK_HEADLINE.format(effective_type=network_quality.effective_type))
        advice.append(SLOW_NETWORK_HINT)

    if (
        connectivity.internet
        and connectivity.backend
        and connectivity.specific_resource
        and configuration.valid_config
    ):
        advice.extend(ALL_CLEAR)

    return tuple(advice)


__all__ = [
    "build_recommendations",
    "CONFIGURATION_MISSING",
    "CONFIGURATION_INVALID",
    "ENVIRONMENT_OFFLINE",
    "ENVIRONMENT_COOKIES",
    "ENVIRONMENT_STORAGE",
    "INTERNET_UNREACHABLE",
    "BACKEND_UNREACHABLE",
    "RESOURCE_UNREACHABLE_HINTS",
    "ALL_CLEAR",
]
