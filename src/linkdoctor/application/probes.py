"""Bounded reachability probes.

Every public coroutine here returns a :class:`ProbeResult`; no exception
raised by the underlying I/O escapes. Timeouts are enforced with
:func:`asyncio.wait_for`, which cancels the pending request so sockets are
released when the deadline passes.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence

import httpx

from linkdoctor.domain.models import ProbeResult, StoreProbe
from linkdoctor.infrastructure.errors import describe_exception
from linkdoctor.infrastructure.http import create_async_client
from linkdoctor.infrastructure.logging import BoundLogger, get_logger


class ProbeRunner:
    """Run single reachability checks, each under its own deadline."""

    def __init__(
        self,
        *,
        timeout: float,
        client: httpx.AsyncClient | None = None,
        verify: object = True,
        logger: BoundLogger | None = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or create_async_client(timeout=timeout, verify=verify)  # type: ignore[arg-type]
        self._logger = logger or get_logger("linkdoctor.probes")
        self._timer = timer

    @property
    def timeout(self) -> float:
        return self._timeout

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ProbeRunner":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def probe_url(self, url: str, *, timeout: float | None = None) -> ProbeResult:
        """HEAD ``url``; any completed HTTP exchange counts as reachable."""

        deadline = timeout or self._timeout
        started = self._timer()
        try:
            response = await asyncio.wait_for(
                self._client.head(url, timeout=httpx.Timeout(deadline)), timeout=deadline
            )
        except asyncio.TimeoutError:
            self._logger.debug("probe.timeout", target=url, timeout=deadline)
            return ProbeResult(target=url, reachable=False, error=f"timed out after {deadline:g}s")
        except Exception as exc:
            self._logger.debug("probe.error", target=url, error=describe_exception(exc))
            return ProbeResult(target=url, reachable=False, error=describe_exception(exc))

        latency = (self._timer() - started) * 1000.0
        self._logger.debug(
            "probe.completed", target=url, status_code=response.status_code, latency_ms=latency
        )
        return ProbeResult(target=url, reachable=True, latency_ms=latency)

    async def first_reachable(self, label: str, urls: Sequence[str]) -> ProbeResult:
        """Probe ``urls`` in declared order and stop at the first success."""

        failures: list[str] = []
        for url in urls:
            result = await self.probe_url(url)
            if result.reachable:
                return ProbeResult(target=label, reachable=True, latency_ms=result.latency_ms)
            failures.append(f"{url}: {result.error}")

        error = "; ".join(failures) if failures else "no endpoints configured"
        return ProbeResult(target=label, reachable=False, error=error)

    async def probe_operation(
        self,
        target: str,
        operation: Callable[[], Awaitable[StoreProbe]],
        *,
        timeout: float | None = None,
    ) -> ProbeResult:
        """Bound a collaborator call (e.g. a store probe) like a network probe."""

        deadline = timeout or self._timeout
        started = self._timer()
        try:
            outcome = await asyncio.wait_for(operation(), timeout=deadline)
        except asyncio.TimeoutError:
            return ProbeResult(target=target, reachable=False, error=f"timed out after {deadline:g}s")
        except Exception as exc:
            return ProbeResult(target=target, reachable=False, error=describe_exception(exc))

        latency = (self._timer() - started) * 1000.0
        if not outcome.ok:
            return ProbeResult(target=target, reachable=False, latency_ms=latency, error=outcome.error)
        return ProbeResult(target=target, reachable=True, latency_ms=latency)


__all__ = ["ProbeRunner"]
