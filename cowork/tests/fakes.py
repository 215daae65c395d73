"""
In-memory record store used by repository, use-case and controller tests.

Behavior mirrors the Roble data API closely enough for the code under test:
    - rows carry a generated `_id`;
    - `read` filters compare stringified values (the API receives query
      strings);
    - update/delete of a missing id fails with RemoteError(404);
    - `fail(op, collection, remote_id=None)` injects RemoteError for matching
      calls; `create_response` overrides what `create` returns.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from cowork.records.client import _stringify
from cowork.records.errors import RemoteError


class InMemoryRecordStore:
    def __init__(self, id_prefix: str = "rb") -> None:
        self.tables: Dict[str, Dict[str, dict]] = {}
        self.calls: List[Tuple[str, str, Any]] = []
        self.create_response: Optional[Callable[[str, dict], Any]] = None
        self._failures: Set[Tuple[str, str, Optional[str]]] = set()
        self._prefix = id_prefix
        self._counter = 0

    # ----------------------------------------------------------- test hooks

    def seed(self, collection: str, *rows: dict) -> List[str]:
        ids = []
        table = self.tables.setdefault(collection, {})
        for row in rows:
            remote_id = row.get("_id") or self._next_id()
            table[remote_id] = dict(row, _id=remote_id)
            ids.append(remote_id)
        return ids

    def fail(self, op: str, collection: str, remote_id: Optional[str] = None) -> None:
        self._failures.add((op, collection, remote_id))

    def rows(self, collection: str) -> List[dict]:
        return list(self.tables.get(collection, {}).values())

    def ops(self, op: str, collection: Optional[str] = None) -> List[Any]:
        return [arg for (o, c, arg) in self.calls if o == op and (collection is None or c == collection)]

    def _next_id(self) -> str:
        self._counter += 1
        return f"{self._prefix}{self._counter:04d}Xq"

    def _check(self, op: str, collection: str, remote_id: Optional[str] = None) -> None:
        if (op, collection, None) in self._failures or (op, collection, remote_id) in self._failures:
            raise RemoteError(f"Error making {op} request: injected failure", status_code=500)

    # ------------------------------------------------------------- protocol

    async def create(self, collection: str, record: Mapping[str, Any]) -> Any:
        self.calls.append(("create", collection, dict(record)))
        self._check("create", collection)
        remote_id = self._next_id()
        stored = dict(record, _id=remote_id)
        self.tables.setdefault(collection, {})[remote_id] = stored
        if self.create_response is not None:
            return self.create_response(remote_id, stored)
        return dict(stored)

    async def read(self, collection: str, filters: Optional[Mapping[str, Any]] = None) -> List[dict]:
        self.calls.append(("read", collection, dict(filters or {})))
        self._check("read", collection)
        wanted = {k: _stringify(v) for k, v in (filters or {}).items()}
        result = []
        for row in self.tables.get(collection, {}).values():
            if all(k in row and _stringify(row[k]) == v for k, v in wanted.items()):
                result.append(dict(row))
        return result

    async def get_by_id(self, collection: str, remote_id: str) -> Optional[dict]:
        rows = await self.read(collection, {"_id": remote_id})
        return rows[0] if rows else None

    async def get_where(self, collection: str, field: str, value: Any) -> List[dict]:
        return await self.read(collection, {field: value})

    async def update(self, collection: str, remote_id: str, partial: Mapping[str, Any]) -> Any:
        self.calls.append(("update", collection, remote_id))
        self._check("update", collection, remote_id)
        table = self.tables.get(collection, {})
        if remote_id not in table:
            raise RemoteError("Error making PUT request to update: not found", status_code=404)
        table[remote_id].update({k: v for k, v in partial.items() if k not in ("_id", "id")})
        return {}

    async def delete(self, collection: str, remote_id: str) -> Any:
        self.calls.append(("delete", collection, remote_id))
        self._check("delete", collection, remote_id)
        table = self.tables.get(collection, {})
        if remote_id not in table:
            raise RemoteError("Error making DELETE request to delete: not found", status_code=404)
        del table[remote_id]
        return {}


class FakeClock:
    """Monotonic seconds, advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
