from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

import httpx
import pytest

from linkdoctor.config.settings import RuntimeSettings
from linkdoctor.domain.models import Identity, RecordLookup, StoreProbe, WriteResult

VALID_API_KEY = "AIzaSyTESTKEY1234567890"
VALID_PROJECT_ID = "demo-project"
VALID_AUTH_DOMAIN = "demo-project.firebaseapp.com"
INTERNET_ENDPOINTS = ("https://internet-1.test/ping", "https://internet-2.test/ping")
BACKEND_ENDPOINTS = ("https://gateway-1.test/", "https://gateway-2.test/")


class FakeDocumentStore:
    """In-memory document store with switchable failure modes."""

    def __init__(
        self,
        *,
        records: Mapping[tuple[str, str], dict[str, Any]] | None = None,
        denied: Iterable[str] = (),
        lookup_error: str | None = None,
        write_error: str | None = None,
        lookup_delay: float = 0.0,
        probe_delays: Mapping[str, float] | None = None,
    ) -> None:
        self.records: dict[tuple[str, str], dict[str, Any]] = dict(records or {})
        self.denied = set(denied)
        self.lookup_error = lookup_error
        self.write_error = write_error
        self.lookup_delay = lookup_delay
        self.probe_delays = dict(probe_delays or {})
        self.probe_calls: list[str] = []
        self.lookup_calls: list[tuple[str, str]] = []
        self.write_calls: list[tuple[str, str, dict[str, Any], bool]] = []

    async def probe(self, collection: str) -> StoreProbe:
        self.probe_calls.append(collection)
        await asyncio.sleep(self.probe_delays.get(collection, 0))
        if collection in self.denied:
            return StoreProbe(error="PERMISSION_DENIED: Missing or insufficient permissions.")
        return StoreProbe(count=1)

    async def get_record(self, collection: str, record_id: str) -> RecordLookup:
        self.lookup_calls.append((collection, record_id))
        await asyncio.sleep(self.lookup_delay)
        if self.lookup_error is not None:
            return RecordLookup(error=self.lookup_error)
        data = self.records.get((collection, record_id))
        return RecordLookup(found=data is not None, data=data)

    async def write_record(
        self,
        collection: str,
        record_id: str,
        data: Mapping[str, Any],
        *,
        create_only: bool = False,
    ) -> WriteResult:
        self.write_calls.append((collection, record_id, dict(data), create_only))
        await asyncio.sleep(0)
        if self.write_error is not None:
            return WriteResult(ok=False, error=self.write_error)
        key = (collection, record_id)
        if create_only and key in self.records:
            return WriteResult(ok=False, conflict=True, error="ALREADY_EXISTS")
        self.records[key] = dict(data)
        return WriteResult(ok=True)


class FakeIdentityProvider:
    def __init__(self, identity: Identity | None = None) -> None:
        self._identity = identity
        self._callbacks: list[Callable[[Identity | None], None]] = []
        self.sign_in_calls: list[str] = []

    def current_identity(self) -> Identity | None:
        return self._identity

    def on_identity_changed(self, callback: Callable[[Identity | None], None]):
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def set_identity(self, identity: Identity | None) -> None:
        self._identity = identity
        for callback in list(self._callbacks):
            callback(identity)

    async def sign_in(self, email: str, password: str) -> Identity:
        self.sign_in_calls.append(email)
        identity = Identity(uid=f"uid-{email.split('@')[0]}", email=email, id_token="token")
        self.set_identity(identity)
        return identity

    async def sign_out(self) -> None:
        self.set_identity(None)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., RuntimeSettings]:
    base = RuntimeSettings(
        api_key=VALID_API_KEY,
        project_id=VALID_PROJECT_ID,
        auth_domain=VALID_AUTH_DOMAIN,
        internet_endpoints=INTERNET_ENDPOINTS,
        backend_endpoints=BACKEND_ENDPOINTS,
        probe_timeout=0.5,
        diagnostics_probe_timeout=0.5,
        identity_wait_timeout=0.2,
        state_dir=str(tmp_path / "state"),
    )

    def _factory(**overrides: Any) -> RuntimeSettings:
        return replace(base, **overrides)

    return _factory


@pytest.fixture
def make_transport() -> Callable[..., httpx.MockTransport]:
    """Build a transport answering 200 except for hosts listed as unreachable."""

    def _factory(
        *,
        unreachable: Iterable[str] = (),
        slow: Mapping[str, float] | None = None,
        seen: list[str] | None = None,
    ) -> httpx.MockTransport:
        down = set(unreachable)
        delays = dict(slow or {})

        async def _handler(request: httpx.Request) -> httpx.Response:
            if seen is not None:
                seen.append(str(request.url))
            host = request.url.host
            if host in delays:
                await asyncio.sleep(delays[host])
            if host in down:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200)

        return httpx.MockTransport(_handler)

    return _factory


@pytest.fixture
def fake_store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def store_factory() -> Callable[..., FakeDocumentStore]:
    return FakeDocumentStore


@pytest.fixture
def identity_provider_factory() -> Callable[..., FakeIdentityProvider]:
    return FakeIdentityProvider
