"""Error taxonomy shared by the connectivity subsystem."""

from __future__ import annotations

import errno
import ssl
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx


class ErrorCode(str, Enum):
    CONFIGURATION_INVALID = "LD_CONFIGURATION_INVALID"
    NETWORK_UNREACHABLE = "LD_NETWORK_UNREACHABLE"
    IDENTITY_UNAVAILABLE = "LD_IDENTITY_UNAVAILABLE"
    AUTHENTICATION_FAILED = "LD_AUTHENTICATION_FAILED"
    AUTHORIZATION_LOOKUP_AMBIGUOUS = "LD_AUTHORIZATION_LOOKUP_AMBIGUOUS"
    AUTHORIZATION_WRITE_FAILED = "LD_AUTHORIZATION_WRITE_FAILED"
    AUTHORIZATION_RECORD_INACTIVE = "LD_AUTHORIZATION_RECORD_INACTIVE"
    TLS_CERT_CHAIN_INTERCEPTED = "LD_TLS_CERT_CHAIN_INTERCEPTED"


@dataclass(frozen=True)
class ErrorContext:
    code: str
    operation: str | None = None
    target: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class LinkDoctorError(Exception):
    """Base error carrying a machine code and an actionable message."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        operation: str | None = None,
        target: str | None = None,
        hints: tuple[str, ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.context = ErrorContext(
            code=code.value,
            operation=operation,
            target=target,
            details=dict(details or {}),
        )
        self.user_message = message
        self.hints = hints

    @property
    def code(self) -> str:
        return self.context.code


class ConfigurationError(LinkDoctorError):
    def __init__(self, message: str, *, hints: tuple[str, ...] = ()) -> None:
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_INVALID,
            operation="configuration",
            hints=hints,
        )


class IdentityUnavailableError(LinkDoctorError):
    def __init__(
        self,
        timeout: float,
        *,
        identity_id: str | None = None,
        authenticated: bool = True,
    ) -> None:
        if not authenticated:
            message = (
                f"Identity {identity_id} is not authenticated; "
                "sign in before requesting an access repair"
            )
        elif identity_id is not None:
            message = (
                f"Identity {identity_id} was not the signed-in identity within {timeout:g}s; "
                "sign in as that identity before requesting an access repair"
            )
        else:
            message = (
                f"No authenticated identity became available within {timeout:g}s; "
                "sign in before requesting an access repair"
            )
        super().__init__(
            message,
            code=ErrorCode.IDENTITY_UNAVAILABLE,
            operation="ensure_authorized",
            target=identity_id,
            hints=("Sign in with an administrator account and retry",),
            details={"timeout": timeout},
        )


class AuthenticationError(LinkDoctorError):
    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(
            message,
            code=ErrorCode.AUTHENTICATION_FAILED,
            operation="sign_in",
            hints=("Check the e-mail address and password of the administrator account",),
            details={"reason": reason} if reason else None,
        )
        self.reason = reason


class BackendRequestError(LinkDoctorError):
    """Transport-level failure while talking to the managed backend."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        target: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.NETWORK_UNREACHABLE,
            operation=operation,
            target=target,
            details={"status_code": status_code} if status_code is not None else None,
        )
        self.status_code = status_code


_CERTIFICATE_FAILURE_MARKERS = ("certificate verify failed", "certificate_verify_failed")


def is_tls_exception(exc: BaseException) -> bool:
    """Recognize certificate failures anywhere in the exception chain."""

    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ssl.SSLError):
            return True
        message = str(current).lower().lstrip()
        if message.startswith(("[ssl", "ssl:")) or any(
            marker in message for marker in _CERTIFICATE_FAILURE_MARKERS
        ):
            return True
        current = current.__cause__ or current.__context__
    return False


def is_missing_ca_bundle_exception(exc: BaseException) -> bool:
    if isinstance(exc, FileNotFoundError):
        return True
    if isinstance(exc, OSError) and getattr(exc, "errno", None) == errno.ENOENT:
        return True
    message = str(exc).lower()
    return "could not find a suitable tls ca certificate bundle" in message


def describe_exception(exc: BaseException) -> str:
    """Render a transport exception as short, user-facing text."""

    if isinstance(exc, httpx.TimeoutException):
        return "timed out"
    if is_tls_exception(exc):
        return f"TLS verification failed ({ErrorCode.TLS_CERT_CHAIN_INTERCEPTED.value})"
    if isinstance(exc, httpx.ConnectError):
        return "connection failed"
    text = str(exc).strip()
    return text or exc.__class__.__name__


__all__ = [
    "ErrorCode",
    "ErrorContext",
    "LinkDoctorError",
    "ConfigurationError",
    "IdentityUnavailableError",
    "AuthenticationError",
    "BackendRequestError",
    "is_tls_exception",
    "is_missing_ca_bundle_exception",
    "describe_exception",
]
