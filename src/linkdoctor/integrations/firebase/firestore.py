"""Document store adapter over the Firestore REST API."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from linkdoctor.domain.models import RecordLookup, StoreProbe, WriteResult
from linkdoctor.infrastructure.errors import describe_exception
from linkdoctor.infrastructure.logging import BoundLogger, get_logger

TokenProvider = Callable[[], str | None]

_FRACTION = re.compile(r"\.(\d+)")


def encode_value(value: Any) -> dict[str, Any]:
    """Convert a Python value into a Firestore typed ``Value``."""

    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        stamp = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return {"timestampValue": stamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    raise TypeError(f"Unsupported Firestore value type: {type(value).__name__}")


def encode_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    return {str(key): encode_value(item) for key, item in data.items()}


def _parse_timestamp(raw: str) -> datetime:
    # Firestore emits nanoseconds; datetime keeps microseconds.
    normalized = _FRACTION.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), raw, count=1)
    return datetime.fromisoformat(normalized.replace("Z", "+00:00"))


def decode_value(value: Mapping[str, Any]) -> Any:
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return _parse_timestamp(value["timestampValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields") or {})
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values") or []]
    if "referenceValue" in value:
        return value["referenceValue"]
    return None


def decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {key: decode_value(item) for key, item in fields.items()}


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping):
        error = payload.get("error")
        if isinstance(error, Mapping):
            status = error.get("status")
            message = error.get("message")
            if status and message:
                return f"{status}: {message} (HTTP {response.status_code})"
            if message:
                return f"{message} (HTTP {response.status_code})"
    if response.status_code == 403:
        return "permission denied (HTTP 403)"
    return f"HTTP {response.status_code}"


class FirestoreDocumentStore:
    """Implements the document store port against ``documents`` endpoints.

    ``base_url`` is the ``.../databases/(default)/documents`` root. Requests
    carry the signed-in identity's ID token when ``token_provider`` yields one.
    Transport failures are reported through the result values, never raised.
    """

    def __init__(
        self,
        *,
        base_url: str,
        client: httpx.AsyncClient,
        api_key: str | None = None,
        token_provider: TokenProvider | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._api_key = api_key
        self._token_provider = token_provider
        self._logger = logger or get_logger("linkdoctor.firestore")

    def _headers(self) -> dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _params(self, **extra: Any) -> dict[str, Any]:
        params = {key: value for key, value in extra.items() if value is not None}
        if self._api_key:
            params["key"] = self._api_key
        return params

    async def probe(self, collection: str) -> StoreProbe:
        url = f"{self._base_url}/{collection}"
        try:
            response = await self._client.get(
                url, params=self._params(pageSize=1), headers=self._headers()
            )
        except httpx.HTTPError as exc:
            self._logger.debug("firestore.probe_error", collection=collection, error=str(exc))
            return StoreProbe(error=describe_exception(exc))

        if response.status_code != 200:
            return StoreProbe(error=_error_message(response))
        try:
            documents = response.json().get("documents") or []
        except ValueError:
            return StoreProbe(error="malformed collection payload")
        return StoreProbe(count=len(documents))

    async def get_record(self, collection: str, record_id: str) -> RecordLookup:
        url = f"{self._base_url}/{collection}/{record_id}"
        try:
            response = await self._client.get(url, params=self._params(), headers=self._headers())
        except httpx.HTTPError as exc:
            return RecordLookup(error=describe_exception(exc))

        if response.status_code == 404:
            return RecordLookup(found=False)
        if response.status_code != 200:
            return RecordLookup(error=_error_message(response))
        try:
            document = response.json()
        except ValueError:
            return RecordLookup(error="malformed document payload")
        return RecordLookup(found=True, data=decode_fields(document.get("fields") or {}))

    async def write_record(
        self,
        collection: str,
        record_id: str,
        data: Mapping[str, Any],
        *,
        create_only: bool = False,
    ) -> WriteResult:
        body = {"fields": encode_fields(data)}
        try:
            if create_only:
                response = await self._client.post(
                    f"{self._base_url}/{collection}",
                    params=self._params(documentId=record_id),
                    json=body,
                    headers=self._headers(),
                )
            else:
                response = await self._client.patch(
                    f"{self._base_url}/{collection}/{record_id}",
                    params=self._params(),
                    json=body,
                    headers=self._headers(),
                )
        except httpx.HTTPError as exc:
            return WriteResult(ok=False, error=describe_exception(exc))

        if response.status_code == 409:
            return WriteResult(ok=False, conflict=True, error=_error_message(response))
        if not response.is_success:
            return WriteResult(ok=False, error=_error_message(response))
        self._logger.debug("firestore.record_written", collection=collection, record_id=record_id)
        return WriteResult(ok=True)


__all__ = [
    "FirestoreDocumentStore",
    "encode_value",
    "encode_fields",
    "decode_value",
    "decode_fields",
]
