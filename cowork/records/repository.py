"""
Shared plumbing for repositories over the record store.

Behavior:
    - Reads swallow `RemoteError` (logged) and return `[]` / None; a single
      bad row is logged and skipped. `_read_required` is the exception: cascade
      paths list children with it so a failed read aborts before any delete.
    - `_create` extracts the remote id, registers it under its codec value
      and returns both ids; it raises on any failure.
    - `_require_remote` raises `ResolutionError` for unmapped local ids so a
      mutation never guesses its target.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Tuple, TypeVar

from pydantic import ValidationError as RecordValidationError

from ..identity.registry import IdRegistry
from .client import RecordStoreProtocol
from .errors import RemoteError, ResolutionError
from .responses import extract_remote_id


logger = logging.getLogger("cowork.records")

E = TypeVar("E")


class RemoteRepository:
    collection: str = ""

    def __init__(self, store: RecordStoreProtocol, registry: IdRegistry):
        self.store = store
        self.registry = registry

    async def _read(self, filters: Optional[Mapping[str, Any]] = None) -> List[dict]:
        try:
            return await self.store.read(self.collection, filters)
        except RemoteError as exc:
            logger.warning(
                "records.read_degraded collection=%s reason=%s", self.collection, exc.message
            )
            return []

    async def _read_required(self, filters: Mapping[str, Any]) -> List[dict]:
        """Listing for cascade paths: a failed read must stop the delete."""
        return await self.store.read(self.collection, filters)

    async def _read_one(self, remote_id: str) -> Optional[dict]:
        try:
            return await self.store.get_by_id(self.collection, remote_id)
        except RemoteError as exc:
            logger.warning(
                "records.read_degraded collection=%s reason=%s", self.collection, exc.message
            )
            return None

    def _parse_rows(self, rows: List[dict], parse: Callable[[dict], E]) -> List[E]:
        parsed: List[E] = []
        for row in rows:
            try:
                parsed.append(parse(row))
            except (RecordValidationError, ValueError, TypeError) as exc:
                logger.warning(
                    "records.row_skipped collection=%s reason=%s", self.collection, type(exc).__name__
                )
        return parsed

    async def _create(self, record: Mapping[str, Any]) -> Tuple[str, int]:
        response = await self.store.create(self.collection, record)
        remote_id = extract_remote_id(self.collection, response)
        local_id = self.registry.adopt(remote_id)
        logger.info("records.created collection=%s local_id=%s", self.collection, local_id)
        return remote_id, local_id

    def _require_remote(self, local_id: Optional[int]) -> str:
        remote = self.registry.resolve_remote(local_id) if local_id is not None else None
        if remote is None:
            raise ResolutionError(self.registry.kind, local_id)
        return remote

    def resolve_remote(self, local_id: int) -> Optional[str]:
        return self.registry.resolve_remote(local_id)

    def resolve_local(self, remote_id: str) -> Optional[int]:
        return self.registry.resolve_local(remote_id)


__all__ = ["RemoteRepository"]
