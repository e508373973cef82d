"""Identity provider adapter over the Identity Toolkit REST API."""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from linkdoctor.domain.models import Identity
from linkdoctor.domain.ports import IdentityCallback, Unsubscribe
from linkdoctor.infrastructure.errors import AuthenticationError, BackendRequestError, describe_exception
from linkdoctor.infrastructure.logging import BoundLogger, get_logger

SIGN_IN_PATH = "/accounts:signInWithPassword"


def _failure_reason(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = payload.get("error") if isinstance(payload, Mapping) else None
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"


class FirebaseIdentityProvider:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None,
        client: httpx.AsyncClient,
        logger: BoundLogger | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._client = client
        self._logger = logger or get_logger("linkdoctor.identity")
        self._identity: Identity | None = None
        self._callbacks: list[IdentityCallback] = []

    def current_identity(self) -> Identity | None:
        return self._identity

    def current_token(self) -> str | None:
        return self._identity.id_token if self._identity else None

    def on_identity_changed(self, callback: IdentityCallback) -> Unsubscribe:
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    async def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = await self._client.post(
                f"{self._base_url}{SIGN_IN_PATH}",
                params={"key": self._api_key} if self._api_key else None,
                json={"email": email, "password": password, "returnSecureToken": True},
            )
        except httpx.HTTPError as exc:
            raise BackendRequestError(
                f"Identity service request failed: {describe_exception(exc)}",
                operation="sign_in",
                target=self._base_url,
            ) from exc

        if response.status_code >= 500:
            raise BackendRequestError(
                f"Identity service returned HTTP {response.status_code}",
                operation="sign_in",
                target=self._base_url,
                status_code=response.status_code,
            )
        if not response.is_success:
            reason = _failure_reason(response)
            self._logger.warning("identity.sign_in_rejected", email=email, reason=reason)
            raise AuthenticationError(f"Sign-in rejected: {reason}", reason=reason)

        payload = response.json()
        identity = Identity(
            uid=str(payload["localId"]),
            email=payload.get("email") or email,
            id_token=payload.get("idToken"),
            refresh_token=payload.get("refreshToken"),
        )
        self._logger.info("identity.signed_in", uid=identity.uid)
        self._set_identity(identity)
        return identity

    async def sign_out(self) -> None:
        if self._identity is not None:
            self._logger.info("identity.signed_out", uid=self._identity.uid)
        self._set_identity(None)

    def _set_identity(self, identity: Identity | None) -> None:
        previous = self._identity
        self._identity = identity
        previous_uid = previous.uid if previous else None
        current_uid = identity.uid if identity else None
        if previous_uid == current_uid:
            return
        for callback in list(self._callbacks):
            try:
                callback(identity)
            except Exception:
                self._logger.error("identity.callback_failed", exc_info=True)


__all__ = ["FirebaseIdentityProvider", "SIGN_IN_PATH"]
