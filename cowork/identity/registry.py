"""
Bidirectional local <-> remote id registry, one instance per entity kind.

Why:
    The codec already turns a remote id into its local id; only the reverse
    direction (local id -> remote id, needed for update/delete) requires
    memory. The registry is that memory, scoped to the running process.

Behavior:
    - `register` overwrites silently and drops stale reverse entries so the
      two maps stay a bijection. Re-binding a local id to another remote id
      is logged as a codec collision.
    - Mappings are never persisted; after a restart an id is unmapped until
      the record was listed, read or created again.
    - An optional alias index maps alternate local ids (for example ids
      derived from a user's email) to remote ids. It is rebuilt from one full
      listing and consulted only after the primary map.

Concurrency:
    No locks. Single event loop; no await happens inside a read-modify-write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .codec import stable_id


logger = logging.getLogger("cowork.identity")


class IdRegistry:
    def __init__(self, kind: str):
        self.kind = kind
        self._local_to_remote: Dict[int, str] = {}
        self._remote_to_local: Dict[str, int] = {}
        self._aliases: Dict[int, str] = {}

    def register(self, remote_id: str, local_id: int) -> None:
        previous_remote = self._local_to_remote.get(local_id)
        if previous_remote is not None and previous_remote != remote_id:
            logger.warning(
                "identity.registry.collision kind=%s local_id=%s", self.kind, local_id
            )
            self._remote_to_local.pop(previous_remote, None)
        previous_local = self._remote_to_local.get(remote_id)
        if previous_local is not None and previous_local != local_id:
            self._local_to_remote.pop(previous_local, None)
        self._local_to_remote[local_id] = remote_id
        self._remote_to_local[remote_id] = local_id

    def adopt(self, remote_id: str) -> int:
        """Register `remote_id` under its codec value and return that value."""
        local_id = stable_id(remote_id)
        self.register(remote_id, local_id)
        return local_id

    def resolve_remote(self, local_id: int) -> Optional[str]:
        remote = self._local_to_remote.get(local_id)
        if remote is not None:
            return remote
        return self._aliases.get(local_id)

    def resolve_local(self, remote_id: str) -> Optional[int]:
        return self._remote_to_local.get(remote_id)

    def unregister(self, local_id: int) -> None:
        remote = self._local_to_remote.pop(local_id, None)
        if remote is not None:
            self._remote_to_local.pop(remote, None)
            stale = [alias for alias, target in self._aliases.items() if target == remote]
            for alias in stale:
                del self._aliases[alias]
        else:
            self._aliases.pop(local_id, None)

    def index_aliases(self, pairs: Iterable[Tuple[int, str]]) -> None:
        """Replace the alias index with `(alternate_local_id, remote_id)` pairs."""
        self._aliases = {}
        for alias, remote in pairs:
            if alias in self._local_to_remote:
                continue
            self._aliases[alias] = remote

    def clear(self) -> None:
        self._local_to_remote.clear()
        self._remote_to_local.clear()
        self._aliases.clear()

    def items(self) -> Iterator[Tuple[int, str]]:
        return iter(list(self._local_to_remote.items()))

    def __contains__(self, local_id: object) -> bool:
        return local_id in self._local_to_remote

    def __len__(self) -> int:
        return len(self._local_to_remote)

    def __repr__(self) -> str:
        return f"IdRegistry(kind={self.kind!r}, size={len(self)})"


@dataclass
class RegistrySet:
    """One registry per entity kind; build once per process and inject."""

    categories: IdRegistry = field(default_factory=lambda: IdRegistry("category"))
    teams: IdRegistry = field(default_factory=lambda: IdRegistry("team"))
    activities: IdRegistry = field(default_factory=lambda: IdRegistry("activity"))
    users: IdRegistry = field(default_factory=lambda: IdRegistry("user"))

    def clear(self) -> None:
        for registry in (self.categories, self.teams, self.activities, self.users):
            registry.clear()


__all__ = ["IdRegistry", "RegistrySet"]
