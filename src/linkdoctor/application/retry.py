"""Drive the connection state machine from timers and user retries."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

from linkdoctor.domain.connection import ConnectionStateMachine
from linkdoctor.domain.models import (
    ConnectionEvent,
    ConnectionStatus,
    DiagnosticsReport,
    ProbeResult,
)
from linkdoctor.infrastructure.logging import BoundLogger, get_logger, log_transition_event

ProbeCall = Callable[[], Awaitable[ProbeResult]]
DiagnosticsCall = Callable[[], Awaitable[DiagnosticsReport]]
Sleep = Callable[[float], Awaitable[None]]


class RetryController:
    """Run probe cycles against a :class:`ConnectionStateMachine`.

    Automatic cycles use the cheap ``probe`` callable on a fixed polling
    interval. The full ``diagnostics`` battery only runs once a cycle ends in
    ``FAILED`` or a manual retry fails. When ``configuration_ok`` reports a
    broken configuration the cycle gives up immediately instead of retrying.
    """

    def __init__(
        self,
        *,
        machine: ConnectionStateMachine,
        probe: ProbeCall,
        poll_interval: float,
        diagnostics: DiagnosticsCall | None = None,
        configuration_ok: Callable[[], bool] | None = None,
        sleep: Sleep = asyncio.sleep,
        logger: BoundLogger | None = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._machine = machine
        self._probe = probe
        self._poll_interval = poll_interval
        self._diagnostics = diagnostics
        self._configuration_ok = configuration_ok
        self._sleep = sleep
        self._logger = logger or get_logger("linkdoctor.retry")
        self._cycle_lock = asyncio.Lock()
        self._auto_task: asyncio.Task[None] | None = None
        self._last_report: DiagnosticsReport | None = None

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def last_report(self) -> DiagnosticsReport | None:
        """Diagnostics gathered after the most recent failed cycle."""

        return self._last_report

    @property
    def auto_check_running(self) -> bool:
        return self._auto_task is not None and not self._auto_task.done()

    async def start(self) -> bool:
        """Leave ``INITIALIZING`` and run the first attempt."""

        async with self._cycle_lock:
            if self._machine.current_status() is not ConnectionStatus.INITIALIZING:
                return self._machine.current_status() is ConnectionStatus.CONNECTED
            self._machine.transition(ConnectionEvent.STARTUP_BEGIN)
            succeeded = await self._run_cycle()
        await self._after_attempt(succeeded)
        return succeeded

    def schedule_auto_check(self) -> asyncio.Task[None] | None:
        """Start the polling loop unless it is already running or not needed."""

        if self.auto_check_running:
            return self._auto_task
        status = self._machine.current_status()
        if status not in (ConnectionStatus.CONNECTING, ConnectionStatus.FAILED):
            return None
        self._auto_task = asyncio.create_task(self.run_auto_check(), name="linkdoctor-auto-check")
        return self._auto_task

    async def run_auto_check(self) -> None:
        """Poll until connected or the attempt cap moves the machine to ``FAILED``."""

        while self._machine.current_status() is ConnectionStatus.CONNECTING:
            await self._sleep(self._poll_interval)
            async with self._cycle_lock:
                if self._machine.current_status() is not ConnectionStatus.CONNECTING:
                    break
                if await self._run_cycle():
                    return

        if self._machine.current_status() is ConnectionStatus.FAILED:
            await self._investigate()

    async def retry_now(self) -> bool:
        """User-triggered attempt that bypasses the polling interval.

        Always re-attempts, even once the automatic cap has been reached.
        Returns whether the probe succeeded.
        """

        async with self._cycle_lock:
            status = self._machine.current_status()
            if status is ConnectionStatus.INITIALIZING:
                self._machine.transition(ConnectionEvent.STARTUP_BEGIN)
            elif status in (ConnectionStatus.FAILED, ConnectionStatus.CONNECTED):
                self._machine.transition(ConnectionEvent.RETRY_REQUESTED)
            snapshot = self._machine.snapshot()
            log_transition_event(
                self._logger,
                "retry_requested",
                status=snapshot.status.value,
                attempt_count=snapshot.attempt_count,
                max_attempts=snapshot.max_attempts,
            )
            succeeded = await self._run_cycle()

        if not succeeded:
            await self._investigate()
        await self._after_attempt(succeeded, investigated=not succeeded)
        return succeeded

    async def wait_until_settled(self) -> None:
        task = self._auto_task
        if task is not None and not task.done():
            await task

    async def aclose(self) -> None:
        task = self._auto_task
        self._auto_task = None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run_cycle(self) -> bool:
        if self._configuration_ok is not None and not self._configuration_ok():
            self._logger.warning(
                "connection.configuration_invalid",
                attempt_count=self._machine.retry_state.attempt_count,
            )
            self._machine.transition(ConnectionEvent.GIVE_UP)
            return False

        result = await self._probe()
        if result.reachable:
            self._machine.transition(ConnectionEvent.PROBE_SUCCEEDED)
            return True

        self._logger.info("connection.probe_failed", target=result.target, error=result.error)
        self._machine.transition(ConnectionEvent.PROBE_FAILED)
        return False

    async def _after_attempt(self, succeeded: bool, *, investigated: bool = False) -> None:
        if succeeded:
            return
        status = self._machine.current_status()
        if status is ConnectionStatus.CONNECTING:
            self.schedule_auto_check()
        elif status is ConnectionStatus.FAILED and not investigated:
            await self._investigate()

    async def _investigate(self) -> None:
        if self._diagnostics is None:
            return
        report = await self._diagnostics()
        self._last_report = report
        self._logger.info(
            "connection.diagnostics_captured",
            recommendations=len(report.recommendations),
            all_passed=report.all_passed,
        )


__all__ = ["RetryController"]
