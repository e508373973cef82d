"""Diagnostics engine validating backend reachability and local health.

The engine fans out one task per probe class (internet, backend gateway,
each protected resource) and aggregates the outcomes into an immutable
:class:`~linkdoctor.domain.models.DiagnosticsReport`. Wall-clock time is
bounded by the slowest probe chain, not by the sum of all probes. The only
side effects are the probes themselves.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from linkdoctor.application.environment import (
    EnvironmentInspector,
    check_configuration,
    estimate_network_quality,
)
from linkdoctor.application.probes import ProbeRunner
from linkdoctor.config.settings import RuntimeSettings
from linkdoctor.domain.models import (
    ConnectivityChecks,
    DiagnosticsReport,
    ProbeResult,
    ResourceStatus,
)
from linkdoctor.domain.ports import DocumentStore
from linkdoctor.domain.recommendations import build_recommendations
from linkdoctor.infrastructure.errors import describe_exception
from linkdoctor.infrastructure.logging import BoundLogger, attach_request_context, get_logger

INTERNET_TARGET = "internet"
BACKEND_TARGET = "backend"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DiagnosticsEngine:
    def __init__(
        self,
        *,
        settings: RuntimeSettings,
        probe_runner: ProbeRunner,
        environment: EnvironmentInspector,
        store: DocumentStore | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._settings = settings
        self._runner = probe_runner
        self._environment = environment
        self._store = store
        self._clock = clock or _utcnow
        self._logger = logger or get_logger("linkdoctor.diagnostics")

    async def run(self) -> DiagnosticsReport:
        logger = attach_request_context(self._logger, operation="diagnostics")
        logger.info("diagnostics.started")

        configuration = check_configuration(self._settings)
        environment = self._environment.inspect()

        collections = tuple(self._settings.resource_collections)
        outcomes = await asyncio.gather(
            self._runner.first_reachable(INTERNET_TARGET, self._settings.internet_endpoints),
            self._runner.first_reachable(
                BACKEND_TARGET, self._settings.effective_backend_endpoints
            ),
            *(self._probe_resource(name) for name in collections),
            return_exceptions=True,
        )
        targets = (INTERNET_TARGET, BACKEND_TARGET, *collections)
        results = [
            _as_probe_result(target, outcome) for target, outcome in zip(targets, outcomes)
        ]
        internet, backend, resource_results = results[0], results[1], results[2:]

        connectivity = _connectivity_from(internet, backend, resource_results)
        network_quality = estimate_network_quality(internet)
        recommendations = build_recommendations(
            connectivity=connectivity,
            configuration=configuration,
            environment=environment,
            network_quality=network_quality,
        )

        report = DiagnosticsReport(
            timestamp=self._clock(),
            connectivity=connectivity,
            configuration=configuration,
            environment=environment,
            network_quality=network_quality,
            recommendations=recommendations,
        )
        logger.info(
            "diagnostics.completed",
            internet=connectivity.internet,
            backend=connectivity.backend,
            specific_resource=connectivity.specific_resource,
            valid_config=configuration.valid_config,
            recommendations=len(recommendations),
        )
        for result in results:
            if not result.reachable:
                logger.warning("diagnostics.probe_failed", target=result.target, error=result.error)
        return report

    async def _probe_resource(self, collection: str) -> ProbeResult:
        store = self._store
        if store is None:
            url = f"{self._settings.firestore_base_url}/{collection}"
            result = await self._runner.probe_url(url)
            return ProbeResult(
                target=collection,
                reachable=result.reachable,
                latency_ms=result.latency_ms,
                error=result.error,
            )
        return await self._runner.probe_operation(collection, lambda: store.probe(collection))


def _as_probe_result(target: str, outcome: ProbeResult | BaseException) -> ProbeResult:
    if isinstance(outcome, ProbeResult):
        return outcome
    return ProbeResult(target=target, reachable=False, error=describe_exception(outcome))


def _connectivity_from(
    internet: ProbeResult, backend: ProbeResult, resources: Sequence[ProbeResult]
) -> ConnectivityChecks:
    statuses = tuple(ResourceStatus(name=item.target, reachable=item.reachable) for item in resources)
    specific = all(item.reachable for item in statuses) if statuses else backend.reachable
    return ConnectivityChecks(
        internet=internet.reachable,
        backend=backend.reachable,
        specific_resource=specific,
        resources=statuses,
    )


__all__ = ["DiagnosticsEngine", "INTERNET_TARGET", "BACKEND_TARGET"]
