"""Single authoritative owner of the backend connection status.

All mutations go through :meth:`ConnectionStateMachine.transition`; readers
only ever see :class:`~linkdoctor.domain.models.StatusSnapshot` values.

Transition table::

    INITIALIZING --startup_begin-->   CONNECTING  (attempt 1)
    CONNECTING   --probe_succeeded--> CONNECTED   (attempts reset to 0)
    CONNECTING   --probe_failed-->    CONNECTING  (attempt + 1) while below the cap
    CONNECTING   --probe_failed-->    FAILED      once the cap is reached
    CONNECTING   --give_up-->         FAILED
    FAILED       --retry_requested--> CONNECTING  (attempt + 1, never above the cap)
    CONNECTED    --probe_failed-->    CONNECTING  (new cycle, attempt 1)
    CONNECTED    --retry_requested--> CONNECTING  (new cycle, attempt 1)

Any other pairing leaves the state untouched and publishes nothing.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from linkdoctor.domain.models import (
    ConnectionEvent,
    ConnectionStatus,
    RetryState,
    StatusSnapshot,
)
from linkdoctor.infrastructure.logging import BoundLogger, get_logger, log_transition_event

StatusListener = Callable[[StatusSnapshot], None]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionStateMachine:
    def __init__(
        self,
        *,
        max_attempts: int = 3,
        clock: Clock | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._status = ConnectionStatus.INITIALIZING
        self._retry = RetryState(attempt_count=0, max_attempts=max_attempts)
        self._clock = clock or _utcnow
        self._listeners: list[StatusListener] = []
        self._logger = logger or get_logger("linkdoctor.connection")

    def current_status(self) -> ConnectionStatus:
        return self._status

    @property
    def retry_state(self) -> RetryState:
        return self._retry

    def snapshot(self) -> StatusSnapshot:
        return StatusSnapshot(
            status=self._status,
            attempt_count=self._retry.attempt_count,
            max_attempts=self._retry.max_attempts,
            last_attempt_at=self._retry.last_attempt_at,
        )

    def subscribe(self, listener: StatusListener, *, replay: bool = True) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it.

        With ``replay`` the current snapshot is delivered immediately so the
        subscriber never has to poll for the initial state.
        """

        self._listeners.append(listener)
        if replay:
            self._deliver(listener, self.snapshot())

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def transition(self, event: ConnectionEvent) -> StatusSnapshot:
        previous = self._status
        handled = self._apply(event)
        snapshot = self.snapshot()
        if not handled:
            self._logger.debug(
                "connection.transition_ignored",
                status=previous.value,
                transition_event=event.value,
            )
            return snapshot

        log_transition_event(
            self._logger,
            "transition",
            status=snapshot.status.value,
            attempt_count=snapshot.attempt_count,
            max_attempts=snapshot.max_attempts,
            previous=previous.value,
            transition_event=event.value,
        )
        self._publish(snapshot)
        return snapshot

    def _apply(self, event: ConnectionEvent) -> bool:
        status = self._status
        retry = self._retry

        if status is ConnectionStatus.INITIALIZING:
            if event is ConnectionEvent.STARTUP_BEGIN:
                self._enter_connecting(1)
                return True
            return False

        if status is ConnectionStatus.CONNECTING:
            if event is ConnectionEvent.PROBE_SUCCEEDED:
                self._status = ConnectionStatus.CONNECTED
                self._retry = RetryState(
                    attempt_count=0,
                    max_attempts=retry.max_attempts,
                    last_attempt_at=retry.last_attempt_at,
                )
                return True
            if event is ConnectionEvent.PROBE_FAILED:
                if retry.exhausted:
                    self._status = ConnectionStatus.FAILED
                else:
                    self._enter_connecting(retry.attempt_count + 1)
                return True
            if event is ConnectionEvent.GIVE_UP:
                self._status = ConnectionStatus.FAILED
                return True
            return False

        if status is ConnectionStatus.FAILED:
            if event is ConnectionEvent.RETRY_REQUESTED:
                # Manual retries always re-attempt; the cap only bounds the counter.
                self._enter_connecting(min(retry.attempt_count + 1, retry.max_attempts))
                return True
            return False

        if event in (ConnectionEvent.PROBE_FAILED, ConnectionEvent.RETRY_REQUESTED):
            self._enter_connecting(1)
            return True
        return False

    def _enter_connecting(self, attempt_count: int) -> None:
        self._status = ConnectionStatus.CONNECTING
        self._retry = RetryState(
            attempt_count=attempt_count,
            max_attempts=self._retry.max_attempts,
            last_attempt_at=self._clock(),
        )

    def _publish(self, snapshot: StatusSnapshot) -> None:
        for listener in list(self._listeners):
            self._deliver(listener, snapshot)

    def _deliver(self, listener: StatusListener, snapshot: StatusSnapshot) -> None:
        try:
            listener(snapshot)
        except Exception:
            self._logger.error(
                "connection.listener_failed",
                status=snapshot.status.value,
                exc_info=True,
            )


__all__ = ["ConnectionStateMachine", "StatusListener"]
