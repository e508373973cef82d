"""Self-repair of a missing authorization record for a signed-in identity.

The workflow is only ever invoked on request after an authorization-denied
report. It never overwrites an existing record: the write uses create-only
semantics and concurrent callers for the same identity are serialized
in-process, so at most one record is ever created.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from linkdoctor.application.probes import ProbeRunner
from linkdoctor.domain.models import (
    AuthorizationRecord,
    Identity,
    ProbeResult,
    RecordLookup,
    RepairOutcome,
    WriteResult,
)
from linkdoctor.domain.ports import DocumentStore, IdentityProvider
from linkdoctor.infrastructure.errors import (
    ErrorCode,
    IdentityUnavailableError,
    describe_exception,
)
from linkdoctor.infrastructure.logging import BoundLogger, get_logger, log_repair_event


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessRepairWorkflow:
    def __init__(
        self,
        *,
        identity_provider: IdentityProvider,
        store: DocumentStore,
        probe_runner: ProbeRunner,
        records_collection: str,
        default_role: str,
        protected_collections: Sequence[str],
        identity_wait_timeout: float,
        operation_timeout: float | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._identity_provider = identity_provider
        self._store = store
        self._runner = probe_runner
        self._records_collection = records_collection
        self._default_role = default_role
        self._protected_collections = tuple(protected_collections)
        self._identity_wait_timeout = identity_wait_timeout
        self._operation_timeout = operation_timeout or probe_runner.timeout
        self._clock = clock or _utcnow
        self._logger = logger or get_logger("linkdoctor.access_repair")
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def protected_collections(self) -> tuple[str, ...]:
        return self._protected_collections

    async def ensure_authorized(self, identity: Identity | None = None) -> RepairOutcome:
        """Make sure ``identity`` (or the signed-in identity) has an active record.

        A passed ``identity`` must carry a token and must be the identity the
        provider reports as signed in; the provider gets up to the configured
        wait to catch up. Raises :class:`IdentityUnavailableError` otherwise.
        """

        if identity is not None and not identity.id_token:
            log_repair_event(
                self._logger,
                "identity_unauthenticated",
                identity_id=identity.uid,
                level=logging.WARNING,
            )
            raise IdentityUnavailableError(
                self._identity_wait_timeout, identity_id=identity.uid, authenticated=False
            )

        resolved = await self.wait_for_identity(identity.uid if identity is not None else None)
        uid = resolved.uid
        lock = self._locks.setdefault(uid, asyncio.Lock())
        self._lock_users[uid] = self._lock_users.get(uid, 0) + 1
        try:
            async with lock:
                return await self._repair(resolved)
        finally:
            self._lock_users[uid] -= 1
            if not self._lock_users[uid]:
                del self._lock_users[uid]
                del self._locks[uid]

    async def wait_for_identity(self, identity_id: str | None = None) -> Identity:
        """Return the signed-in identity, waiting for it to propagate if needed.

        With ``identity_id`` only that identity is accepted.
        """

        provider = self._identity_provider

        def _acceptable(candidate: Identity | None) -> bool:
            if candidate is None or not candidate.id_token:
                return False
            return identity_id is None or candidate.uid == identity_id

        current = provider.current_identity()
        if _acceptable(current):
            return current  # type: ignore[return-value]

        ready: asyncio.Future[Identity] = asyncio.get_running_loop().create_future()

        def _on_change(changed: Identity | None) -> None:
            if _acceptable(changed) and not ready.done():
                ready.set_result(changed)  # type: ignore[arg-type]

        unsubscribe = provider.on_identity_changed(_on_change)
        try:
            # The identity may have landed between the first read and subscribing.
            current = provider.current_identity()
            if _acceptable(current):
                return current  # type: ignore[return-value]
            return await asyncio.wait_for(ready, timeout=self._identity_wait_timeout)
        except asyncio.TimeoutError:
            log_repair_event(
                self._logger,
                "identity_unavailable",
                identity_id=identity_id,
                level=logging.WARNING,
                timeout=self._identity_wait_timeout,
            )
            raise IdentityUnavailableError(
                self._identity_wait_timeout, identity_id=identity_id
            ) from None
        finally:
            unsubscribe()

    async def _repair(self, identity: Identity) -> RepairOutcome:
        log_repair_event(self._logger, "started", identity_id=identity.uid)

        lookup = await self._lookup(identity.uid)
        if lookup.error is not None:
            log_repair_event(
                self._logger,
                "lookup_ambiguous",
                identity_id=identity.uid,
                level=logging.WARNING,
                error=lookup.error,
            )
            return RepairOutcome.failed(
                f"Could not determine whether an authorization record exists: {lookup.error}",
                code=ErrorCode.AUTHORIZATION_LOOKUP_AMBIGUOUS.value,
            )

        if lookup.found:
            return await self._existing_record(identity, lookup)

        record = AuthorizationRecord.synthesize(
            identity, role=self._default_role, now=self._clock()
        )
        written = await self._write(record)
        if written.conflict:
            # Another writer created it first; report whatever is stored now.
            log_repair_event(self._logger, "write_conflict", identity_id=identity.uid)
            reread = await self._lookup(identity.uid)
            if reread.found and reread.error is None:
                return await self._existing_record(identity, reread)
            reason = reread.error or "record not found after a create conflict"
            log_repair_event(
                self._logger,
                "lookup_ambiguous",
                identity_id=identity.uid,
                level=logging.WARNING,
                error=reason,
            )
            return RepairOutcome.failed(
                f"Another writer created the authorization record but it could not be read back: {reason}",
                code=ErrorCode.AUTHORIZATION_LOOKUP_AMBIGUOUS.value,
            )
        if not written.ok:
            log_repair_event(
                self._logger,
                "write_failed",
                identity_id=identity.uid,
                level=logging.ERROR,
                error=written.error,
            )
            return RepairOutcome.failed(
                f"Writing the authorization record failed: {written.error}",
                code=ErrorCode.AUTHORIZATION_WRITE_FAILED.value,
            )

        resources = await self.probe_protected_resources()
        outcome = RepairOutcome.repaired(record, resources)
        log_repair_event(
            self._logger,
            "record_created",
            identity_id=identity.uid,
            role=record.role,
            denied=list(outcome.denied_resources) or None,
        )
        return outcome

    async def _existing_record(self, identity: Identity, lookup: RecordLookup) -> RepairOutcome:
        record = AuthorizationRecord.from_document(identity.uid, lookup.data or {})
        if not record.is_active:
            log_repair_event(
                self._logger,
                "record_inactive",
                identity_id=identity.uid,
                level=logging.WARNING,
            )
            return RepairOutcome.failed(
                "The authorization record exists but is deactivated; "
                "an administrator has to re-enable it",
                code=ErrorCode.AUTHORIZATION_RECORD_INACTIVE.value,
            )
        resources = await self.probe_protected_resources()
        log_repair_event(self._logger, "already_authorized", identity_id=identity.uid)
        return RepairOutcome.already_authorized(record, resources)

    async def probe_protected_resources(self) -> tuple[ProbeResult, ...]:
        store = self._store

        def _operation(collection: str):
            return lambda: store.probe(collection)

        results = await asyncio.gather(
            *(
                self._runner.probe_operation(name, _operation(name))
                for name in self._protected_collections
            )
        )
        return tuple(results)

    async def _lookup(self, identity_id: str) -> RecordLookup:
        try:
            return await asyncio.wait_for(
                self._store.get_record(self._records_collection, identity_id),
                timeout=self._operation_timeout,
            )
        except asyncio.TimeoutError:
            return RecordLookup(error=f"lookup timed out after {self._operation_timeout:g}s")
        except Exception as exc:
            return RecordLookup(error=describe_exception(exc))

    async def _write(self, record: AuthorizationRecord) -> WriteResult:
        try:
            return await asyncio.wait_for(
                self._store.write_record(
                    self._records_collection,
                    record.identity_id,
                    record.to_document(),
                    create_only=True,
                ),
                timeout=self._operation_timeout,
            )
        except asyncio.TimeoutError:
            return WriteResult(
                ok=False, error=f"write timed out after {self._operation_timeout:g}s"
            )
        except Exception as exc:
            return WriteResult(ok=False, error=describe_exception(exc))


__all__ = ["AccessRepairWorkflow"]
