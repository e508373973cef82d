from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from linkdoctor.application.environment import EnvironmentInspector
from linkdoctor.application.service import ConnectivityService
from linkdoctor.cli import helpers
from linkdoctor.config.settings import RuntimeSettings

API_KEY = "AIzaSyTESTKEY1234567890"


class FakeBackend:
    """Answers probe, sign-in and document requests from memory."""

    def __init__(self) -> None:
        self.offline_hosts: set[str] = set()
        self.denied_collections: set[str] = set()
        self.documents: dict[tuple[str, str], dict[str, Any]] = {}
        self.sign_in_status = 200
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.offline_hosts:
            raise httpx.ConnectError("offline", request=request)
        path = request.url.path
        if path.endswith("accounts:signInWithPassword"):
            return self._sign_in()
        if "/documents/" in path and request.method != "HEAD":
            return self._documents(request, path.split("/documents/", 1)[1])
        return httpx.Response(200)

    def _sign_in(self) -> httpx.Response:
        if self.sign_in_status != 200:
            return httpx.Response(
                self.sign_in_status, json={"error": {"message": "INVALID_PASSWORD"}}
            )
        return httpx.Response(
            200, json={"localId": "uid-owner", "email": "owner@example.com", "idToken": "tok"}
        )

    def _documents(self, request: httpx.Request, remainder: str) -> httpx.Response:
        parts = remainder.split("/")
        collection = parts[0]
        if collection in self.denied_collections:
            return httpx.Response(
                403, json={"error": {"status": "PERMISSION_DENIED", "message": "denied"}}
            )
        if request.method == "GET" and len(parts) == 1:
            return httpx.Response(200, json={"documents": []})
        if request.method == "GET":
            data = self.documents.get((collection, parts[1]))
            if data is None:
                return httpx.Response(404, json={"error": {"status": "NOT_FOUND", "message": "missing"}})
            return httpx.Response(200, json={"fields": data})
        if request.method == "POST":
            key = (collection, request.url.params["documentId"])
            if key in self.documents:
                return httpx.Response(409, json={"error": {"status": "ALREADY_EXISTS", "message": "exists"}})
            self.documents[key] = json.loads(request.content)["fields"]
            return httpx.Response(200, json={})
        return httpx.Response(405)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                "[backend]",
                f'api_key = "{API_KEY}"',
                'project_id = "demo-project"',
                'auth_domain = "demo-project.firebaseapp.com"',
                "",
                "[connection]",
                "max_attempts = 2",
                "poll_interval = 0.01",
                "probe_timeout = 1.0",
                "",
                "[diagnostics]",
                'internet_endpoints = ["https://internet.test/"]',
                'backend_endpoints = ["https://gateway.test/"]',
                'resource_collections = ["users", "packages"]',
                "probe_timeout = 1.0",
                f'state_dir = "{tmp_path / "state"}"',
                "",
                "[access]",
                'protected_collections = ["packages", "billing"]',
                "identity_wait_timeout = 0.5",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def use_fake_backend(
    monkeypatch: pytest.MonkeyPatch, fake_backend: FakeBackend
) -> Callable[..., ConnectivityService]:
    """Route every service built by the CLI through :class:`FakeBackend`."""

    monkeypatch.setattr(EnvironmentInspector, "has_network_route", lambda self: True)

    def _build(runtime_settings: RuntimeSettings, **kwargs: Any) -> ConnectivityService:
        return ConnectivityService.from_settings(
            runtime_settings, transport=httpx.MockTransport(fake_backend.handle), **kwargs
        )

    monkeypatch.setattr(helpers, "build_service", _build)
    return _build
