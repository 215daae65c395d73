"""Activity values."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from ..common.coerce import utcnow


@dataclass(frozen=True)
class Activity:
    category_id: int
    name: str
    description: str
    due_at: datetime
    created_at: datetime = field(default_factory=utcnow)
    attachment: Optional[str] = None
    active: bool = True
    id: Optional[int] = None
    remote_id: Optional[str] = None

    @property
    def reference(self) -> str:
        """Id as stored in `equipo_actividades.actividad_id`."""
        return str(self.id) if self.id is not None else ""

    def is_overdue(self, now: datetime) -> bool:
        return self.due_at < now

    def is_in_progress(self, now: datetime) -> bool:
        return self.created_at <= now < self.due_at

    def with_changes(self, **changes) -> "Activity":
        return replace(self, **changes)


__all__ = ["Activity"]
