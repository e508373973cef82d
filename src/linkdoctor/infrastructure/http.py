from __future__ import annotations

import ssl
from pathlib import Path
from typing import Any

import httpx

from linkdoctor.config.settings import RuntimeSettings
from linkdoctor.infrastructure.errors import ConfigurationError, is_missing_ca_bundle_exception
from linkdoctor.infrastructure.logging import BoundLogger, get_logger

DEFAULT_USER_AGENT = "linkdoctor/1.0"


def resolve_tls_verification(
    settings: RuntimeSettings, logger: BoundLogger | None = None
) -> bool | ssl.SSLContext:
    """Translate TLS settings into an ``httpx`` ``verify`` value.

    A configured CA bundle that does not exist degrades to the default trust
    store with a warning; a bundle that exists but cannot be parsed is a
    configuration error.
    """

    log = logger or get_logger("linkdoctor.http")
    if settings.allow_insecure_tls:
        log.warning("tls.verification_disabled")
        return False
    if not settings.ca_bundle_path:
        return True

    bundle = Path(settings.ca_bundle_path).expanduser()
    try:
        return ssl.create_default_context(cafile=str(bundle))
    except (OSError, ssl.SSLError) as exc:
        if is_missing_ca_bundle_exception(exc):
            log.warning("tls.ca_bundle_missing", ca_bundle=str(bundle))
            return True
        raise ConfigurationError(
            f"CA bundle {bundle} could not be loaded: {exc}",
            hints=("Point runtime.ca_bundle_path at a PEM encoded certificate bundle",),
        ) from exc


def create_async_client(
    *,
    base_url: str | None = None,
    timeout: float,
    verify: bool | ssl.SSLContext = True,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    client_kwargs: dict[str, Any] = {
        "headers": {"User-Agent": DEFAULT_USER_AGENT, **(headers or {})},
        "timeout": httpx.Timeout(timeout),
        "verify": verify,
        "follow_redirects": False,
    }
    if base_url is not None:
        client_kwargs["base_url"] = base_url
    if transport is not None:
        client_kwargs["transport"] = transport
    return httpx.AsyncClient(**client_kwargs)


__all__ = ["resolve_tls_verification", "create_async_client", "DEFAULT_USER_AGENT"]
