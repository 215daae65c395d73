"""
Async client for the Roble record store data API.

Why:
    Repositories should speak in collections and records, not in URLs,
    headers and response quirks. This module owns the wire protocol and turns
    every failure into `RemoteError`.

Behavior:
    - `POST insert` / `GET read` / `PUT update` / `DELETE delete` below
      `{base_url}/database/{project}`; bearer token from a static token or a
      token provider (called per request).
    - Filters are sent as query parameters, stringified the way the mobile
      client does it (`true`/`false` for booleans).
    - Empty 2xx bodies become `{}`; list reads accept a bare list or
      `{"data": [...]}` and degrade to `[]` for anything else.
    - `create` unwraps `{"inserted": [row, ...]}` to the first row.

Security:
    Tokens never appear in logs.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

import httpx

from .config import RecordStoreConfig
from .errors import RemoteError


logger = logging.getLogger("cowork.records")

TokenProvider = Callable[[], Optional[str]]


class RecordStoreProtocol(Protocol):
    async def create(self, collection: str, record: Mapping[str, Any]) -> Any:
        ...

    async def read(self, collection: str, filters: Optional[Mapping[str, Any]] = None) -> List[dict]:
        ...

    async def get_by_id(self, collection: str, remote_id: str) -> Optional[dict]:
        ...

    async def get_where(self, collection: str, field: str, value: Any) -> List[dict]:
        ...

    async def update(self, collection: str, remote_id: str, partial: Mapping[str, Any]) -> Any:
        ...

    async def delete(self, collection: str, remote_id: str) -> Any:
        ...


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _rows(payload: Any) -> List[dict]:
    if isinstance(payload, list):
        return [row for row in payload if isinstance(row, dict)]
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return [row for row in payload["data"] if isinstance(row, dict)]
    return []


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    text = (response.text or "").strip()
    return text[:200] or response.reason_phrase or "request failed"


class RecordStoreClient:
    """httpx-backed implementation of `RecordStoreProtocol`.

    Pass `transport` (e.g. `httpx.MockTransport`) or a ready `http_client`
    for tests. The instance owns the client it creates; use `async with` or
    `aclose()`.
    """

    def __init__(
        self,
        config: RecordStoreConfig,
        *,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = config
        self._token_provider = token_provider
        self._access_token = config.access_token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=float(config.timeout_seconds),
            transport=transport,
        )

    # ------------------------------------------------------------------ auth

    def set_access_token(self, token: Optional[str]) -> None:
        self._access_token = token or None

    def clear_access_token(self) -> None:
        self._access_token = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self._token_provider() if self._token_provider else self._access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    # -------------------------------------------------------------- transport

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Optional[dict] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self._config.data_url}/{endpoint}"
        try:
            response = await self._http.request(
                method, url, json=body, params=params, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            logger.warning("records.request_failed method=%s endpoint=%s reason=%s", method, endpoint, type(exc).__name__)
            raise RemoteError(f"Error making {method} request to {endpoint}: {exc}") from exc
        if not (200 <= response.status_code < 300):
            message = _error_message(response)
            logger.warning(
                "records.request_rejected method=%s endpoint=%s status=%s",
                method,
                endpoint,
                response.status_code,
            )
            raise RemoteError(
                f"Error making {method} request to {endpoint}: {message}",
                status_code=response.status_code,
            )
        if not response.content or not response.content.strip():
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(f"Invalid JSON from {endpoint}") from exc

    # ------------------------------------------------------------------- CRUD

    async def create(self, collection: str, record: Mapping[str, Any]) -> Any:
        payload = await self._request(
            "POST", "insert", body={"tableName": collection, "records": [dict(record)]}
        )
        if isinstance(payload, dict):
            inserted = payload.get("inserted")
            if isinstance(inserted, list) and inserted:
                return inserted[0]
        return payload

    async def read(self, collection: str, filters: Optional[Mapping[str, Any]] = None) -> List[dict]:
        params = {"tableName": collection}
        for key, value in (filters or {}).items():
            params[key] = _stringify(value)
        payload = await self._request("GET", "read", params=params)
        return _rows(payload)

    async def get_by_id(self, collection: str, remote_id: str) -> Optional[dict]:
        rows = await self.read(collection, {"_id": remote_id})
        return rows[0] if rows else None

    async def get_where(self, collection: str, field: str, value: Any) -> List[dict]:
        return await self.read(collection, {field: value})

    async def update(self, collection: str, remote_id: str, partial: Mapping[str, Any]) -> Any:
        updates = {k: v for k, v in partial.items() if k not in ("_id", "id")}
        return await self._request(
            "PUT",
            "update",
            body={
                "tableName": collection,
                "idColumn": "_id",
                "idValue": remote_id,
                "updates": updates,
            },
        )

    async def delete(self, collection: str, remote_id: str) -> Any:
        return await self._request(
            "DELETE",
            "delete",
            body={"tableName": collection, "idColumn": "_id", "idValue": remote_id},
        )

    # -------------------------------------------------------------- lifecycle

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "RecordStoreClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["RecordStoreProtocol", "RecordStoreClient", "TokenProvider"]
