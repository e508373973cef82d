"""Facade wiring the connectivity components for UI and CLI callers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import httpx

from linkdoctor.application.access_repair import AccessRepairWorkflow
from linkdoctor.application.diagnostics import BACKEND_TARGET, DiagnosticsEngine
from linkdoctor.application.environment import EnvironmentInspector, check_configuration
from linkdoctor.application.probes import ProbeRunner
from linkdoctor.application.retry import RetryController, Sleep
from linkdoctor.config.settings import RuntimeSettings
from linkdoctor.domain.connection import ConnectionStateMachine, StatusListener
from linkdoctor.domain.models import DiagnosticsReport, Identity, RepairOutcome, StatusSnapshot
from linkdoctor.domain.ports import DocumentStore, IdentityProvider
from linkdoctor.infrastructure.http import create_async_client, resolve_tls_verification
from linkdoctor.infrastructure.logging import BoundLogger, get_logger
from linkdoctor.integrations.firebase import FirebaseIdentityProvider, FirestoreDocumentStore


class ConnectivityService:
    """The calls a status UI needs: subscribe, retry, diagnose, repair."""

    def __init__(
        self,
        *,
        settings: RuntimeSettings,
        machine: ConnectionStateMachine,
        controller: RetryController,
        diagnostics: DiagnosticsEngine,
        identity_provider: IdentityProvider,
        access_repair: AccessRepairWorkflow,
        closers: Sequence[Callable[[], Awaitable[None]]] = (),
        logger: BoundLogger | None = None,
    ) -> None:
        self.settings = settings
        self._machine = machine
        self._controller = controller
        self._diagnostics = diagnostics
        self._identity_provider = identity_provider
        self._access_repair = access_repair
        self._closers = list(closers)
        self._logger = logger or get_logger("linkdoctor.service")

    @classmethod
    def from_settings(
        cls,
        settings: RuntimeSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        identity_provider: IdentityProvider | None = None,
        store: DocumentStore | None = None,
        sleep: Sleep = asyncio.sleep,
        logger: BoundLogger | None = None,
    ) -> "ConnectivityService":
        log = logger or get_logger("linkdoctor.service")
        client = create_async_client(
            timeout=settings.probe_timeout,
            verify=resolve_tls_verification(settings, log),
            transport=transport,
        )
        connection_runner = ProbeRunner(timeout=settings.probe_timeout, client=client)
        diagnostics_runner = ProbeRunner(
            timeout=settings.diagnostics_probe_timeout, client=client
        )

        identity = identity_provider or FirebaseIdentityProvider(
            base_url=settings.identity_base_url,
            api_key=settings.api_key,
            client=client,
        )

        def _current_token() -> str | None:
            current = identity.current_identity()
            return current.id_token if current is not None else None

        document_store = store or FirestoreDocumentStore(
            base_url=settings.firestore_base_url,
            client=client,
            api_key=settings.api_key,
            token_provider=_current_token,
        )

        engine = DiagnosticsEngine(
            settings=settings,
            probe_runner=diagnostics_runner,
            environment=EnvironmentInspector(
                state_dir=settings.state_dir, cookie_domain=settings.auth_domain
            ),
            store=document_store,
        )
        machine = ConnectionStateMachine(max_attempts=settings.max_attempts)

        async def _gateway_probe():
            return await connection_runner.first_reachable(
                BACKEND_TARGET, settings.effective_backend_endpoints
            )

        controller = RetryController(
            machine=machine,
            probe=_gateway_probe,
            poll_interval=settings.poll_interval,
            diagnostics=engine.run,
            configuration_ok=lambda: check_configuration(settings).valid_config,
            sleep=sleep,
        )
        repair = AccessRepairWorkflow(
            identity_provider=identity,
            store=document_store,
            probe_runner=connection_runner,
            records_collection=settings.records_collection,
            default_role=settings.default_role,
            protected_collections=settings.protected_collections,
            identity_wait_timeout=settings.identity_wait_timeout,
        )
        return cls(
            settings=settings,
            machine=machine,
            controller=controller,
            diagnostics=engine,
            identity_provider=identity,
            access_repair=repair,
            closers=[client.aclose],
            logger=log,
        )

    @property
    def identity_provider(self) -> IdentityProvider:
        return self._identity_provider

    @property
    def last_report(self) -> DiagnosticsReport | None:
        return self._controller.last_report

    def snapshot(self) -> StatusSnapshot:
        return self._machine.snapshot()

    def subscribe(self, listener: StatusListener, *, replay: bool = True) -> Callable[[], None]:
        return self._machine.subscribe(listener, replay=replay)

    async def start(self) -> bool:
        return await self._controller.start()

    async def wait_until_settled(self) -> StatusSnapshot:
        await self._controller.wait_until_settled()
        return self._machine.snapshot()

    async def retry_now(self) -> bool:
        return await self._controller.retry_now()

    async def run_diagnostics(self) -> DiagnosticsReport:
        return await self._diagnostics.run()

    async def sign_in(self, email: str, password: str) -> Identity:
        return await self._identity_provider.sign_in(email, password)

    async def ensure_authorized(self, identity: Identity | None = None) -> RepairOutcome:
        return await self._access_repair.ensure_authorized(identity)

    async def aclose(self) -> None:
        await self._controller.aclose()
        for closer in self._closers:
            await closer()
        self._closers.clear()

    async def __aenter__(self) -> "ConnectivityService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["ConnectivityService"]
