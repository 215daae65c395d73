"""
Activity use cases.

Intent:
    Validate activity input (name, description, future due date, unique name
    per category) before it reaches the record store, and provide the
    date-based views used by the course dashboard.

Behavior:
    - Create/update raise `ValidationError` with a short code.
    - Deletes cascade to team assignments through the repository.
    - "upcoming" means due within the next `days` (inclusive bounds);
      "overdue" means active and due before now.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Protocol

from ..common.coerce import utcnow
from ..common.result import BatchResult, CascadeReport
from ..records.errors import NotFoundError, ValidationError
from .entities import Activity


class ActivityRepoProtocol(Protocol):
    async def list_all(self) -> List[Activity]:
        ...

    async def get_by_id(self, activity_id: int) -> Optional[Activity]:
        ...

    async def list_by_category(self, category_id: int) -> List[Activity]:
        ...

    async def list_active(self) -> List[Activity]:
        ...

    async def list_in_date_range(self, start: datetime, end: datetime) -> List[Activity]:
        ...

    async def list_in_progress(self, now: datetime) -> List[Activity]:
        ...

    async def search_by_name(self, query: str) -> List[Activity]:
        ...

    async def exists_in_category(self, category_id: int, name: str) -> bool:
        ...

    async def create(self, activity: Activity) -> int:
        ...

    async def update(self, activity: Activity) -> None:
        ...

    async def deactivate(self, activity_id: int) -> None:
        ...

    async def delete(self, activity_id: int) -> CascadeReport:
        ...

    async def delete_for_category(self, category_id: int) -> BatchResult:
        ...


@dataclass
class CreateActivityInput:
    category_id: int
    name: str
    description: str
    due_at: datetime
    attachment: Optional[str] = None


@dataclass
class UpdateActivityInput:
    activity_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    due_at: Optional[datetime] = None
    attachment: Optional[str] = None


def _required_text(value: Optional[str], code: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(code)
    return value.strip()


def _aware(value: datetime, code: str = "invalid_due_at") -> datetime:
    if not isinstance(value, datetime) or value.tzinfo is None:
        raise ValidationError(code)
    return value


@dataclass
class ActivityService:
    activities: ActivityRepoProtocol
    clock: Callable[[], datetime] = field(default=utcnow)

    async def list_all(self) -> List[Activity]:
        return await self.activities.list_all()

    async def get(self, activity_id: int) -> Optional[Activity]:
        return await self.activities.get_by_id(activity_id)

    async def list_by_category(self, category_id: int) -> List[Activity]:
        return await self.activities.list_by_category(category_id)

    async def list_active(self) -> List[Activity]:
        return await self.activities.list_active()

    async def create(self, inp: CreateActivityInput) -> int:
        name = _required_text(inp.name, "invalid_name")
        description = _required_text(inp.description, "invalid_description")
        due_at = _aware(inp.due_at)
        if due_at < self.clock():
            raise ValidationError("due_in_past")
        if await self.activities.exists_in_category(inp.category_id, name):
            raise ValidationError("duplicate_name")
        activity = Activity(
            category_id=inp.category_id,
            name=name,
            description=description,
            due_at=due_at,
            created_at=self.clock(),
            attachment=(inp.attachment or "").strip() or None,
        )
        return await self.activities.create(activity)

    async def update(self, inp: UpdateActivityInput) -> Activity:
        current = await self.activities.get_by_id(inp.activity_id)
        if current is None:
            raise NotFoundError("activity_not_found")
        changes: Dict[str, object] = {}
        if inp.name is not None:
            name = _required_text(inp.name, "invalid_name")
            if name != current.name and await self.activities.exists_in_category(current.category_id, name):
                raise ValidationError("duplicate_name")
            changes["name"] = name
        if inp.description is not None:
            changes["description"] = _required_text(inp.description, "invalid_description")
        if inp.due_at is not None:
            due_at = _aware(inp.due_at)
            if due_at < self.clock():
                raise ValidationError("due_in_past")
            changes["due_at"] = due_at
        if inp.attachment is not None:
            changes["attachment"] = inp.attachment.strip() or None
        updated = current.with_changes(**changes)
        await self.activities.update(updated)
        return updated

    async def delete(self, activity_id: int) -> CascadeReport:
        return await self.activities.delete(activity_id)

    async def deactivate(self, activity_id: int) -> None:
        await self.activities.deactivate(activity_id)

    async def delete_for_category(self, category_id: int) -> BatchResult:
        return await self.activities.delete_for_category(category_id)

    async def list_in_date_range(self, start: datetime, end: datetime) -> List[Activity]:
        start = _aware(start, "invalid_date_range")
        end = _aware(end, "invalid_date_range")
        if start > end:
            raise ValidationError("invalid_date_range")
        return await self.activities.list_in_date_range(start, end)

    async def search(self, query: str) -> List[Activity]:
        if not query or not query.strip():
            return await self.activities.list_all()
        return await self.activities.search_by_name(query.strip())

    async def upcoming(self, days: int = 7) -> List[Activity]:
        now = self.clock()
        return await self.activities.list_in_date_range(now, now + timedelta(days=days))

    async def overdue(self) -> List[Activity]:
        now = self.clock()
        return [a for a in await self.activities.list_active() if a.is_overdue(now)]

    async def in_progress(self) -> List[Activity]:
        return await self.activities.list_in_progress(self.clock())

    async def can_delete(self, activity_id: int) -> bool:
        activity = await self.activities.get_by_id(activity_id)
        if activity is None:
            return False
        return activity.due_at > self.clock()

    async def is_name_available(self, category_id: int, name: str) -> bool:
        return not await self.activities.exists_in_category(category_id, name)

    async def stats(self) -> Dict[str, int]:
        everything = await self.activities.list_all()
        now = self.clock()
        week_ahead = now + timedelta(days=7)
        active = [a for a in everything if a.active]
        return {
            "total": len(everything),
            "active": len(active),
            "overdue": sum(1 for a in active if a.due_at < now),
            "upcoming": sum(1 for a in active if now < a.due_at < week_ahead),
        }


__all__ = [
    "ActivityRepoProtocol",
    "CreateActivityInput",
    "UpdateActivityInput",
    "ActivityService",
]
