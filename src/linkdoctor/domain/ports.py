"""Interfaces of the external collaborators the subsystem depends on."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from linkdoctor.domain.models import Identity, RecordLookup, StoreProbe, WriteResult

IdentityCallback = Callable[[Identity | None], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    def current_identity(self) -> Identity | None: ...

    def on_identity_changed(self, callback: IdentityCallback) -> Unsubscribe:
        """Register ``callback``; it fires at most once per actual change."""
        ...

    async def sign_in(self, email: str, password: str) -> Identity: ...

    async def sign_out(self) -> None: ...


class DocumentStore(Protocol):
    async def probe(self, collection: str) -> StoreProbe: ...

    async def get_record(self, collection: str, record_id: str) -> RecordLookup: ...

    async def write_record(
        self,
        collection: str,
        record_id: str,
        data: Mapping[str, Any],
        *,
        create_only: bool = False,
    ) -> WriteResult:
        """Persist ``data``; with ``create_only`` an existing record is a conflict."""
        ...


__all__ = ["IdentityProvider", "DocumentStore", "IdentityCallback", "Unsubscribe"]
