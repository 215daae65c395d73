"""
Record store repository for activities.

Behavior:
    - Same id translation rules as the team repositories.
    - Date-based queries (range, pending, overdue, in progress) filter a full
      listing client side; the store only filters on equality.
    - `delete` removes the activity's team assignments first when an
      assignment repository is wired, then the record, then the mapping.
      A failed assignment listing raises before the record is deleted.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from ..common.coerce import parse_datetime
from ..common.result import BatchResult, CascadeReport
from ..identity.registry import IdRegistry
from ..records.client import RecordStoreProtocol
from ..records.errors import CoworkError
from ..records.repository import RemoteRepository
from ..teams.repo_remote import AssignmentRepository
from .dto import ACTIVITIES, ActivityRecord
from .entities import Activity


logger = logging.getLogger("cowork.activities")


class ActivityRepository(RemoteRepository):
    collection = ACTIVITIES

    def __init__(
        self,
        store: RecordStoreProtocol,
        registry: IdRegistry,
        assignments: Optional[AssignmentRepository] = None,
    ):
        super().__init__(store, registry)
        self.assignments = assignments

    def _parse(self, row: dict) -> Activity:
        record = ActivityRecord.model_validate(row)
        local_id = self.registry.adopt(record.remote_id) if record.remote_id else None
        return record.to_entity(local_id)

    async def list_all(self) -> List[Activity]:
        return self._parse_rows(await self._read(), self._parse)

    async def get_by_id(self, activity_id: int) -> Optional[Activity]:
        remote = self.registry.resolve_remote(activity_id)
        if remote is None:
            logger.info("activities.unmapped activity_id=%s", activity_id)
            return None
        row = await self._read_one(remote)
        if row is None:
            return None
        parsed = self._parse_rows([row], self._parse)
        return parsed[0] if parsed else None

    async def list_by_category(self, category_id: int) -> List[Activity]:
        rows = await self._read({"category_id": category_id})
        return self._parse_rows(rows, self._parse)

    async def list_active(self) -> List[Activity]:
        # rows written before the flag existed have no `activo` column
        return [a for a in await self.list_all() if a.active]

    async def list_in_date_range(self, start: datetime, end: datetime) -> List[Activity]:
        # naive bounds are read as UTC, like stored dates
        start, end = parse_datetime(start), parse_datetime(end)
        return [a for a in await self.list_all() if start <= a.due_at <= end]

    async def list_pending(self, now: datetime) -> List[Activity]:
        return [a for a in await self.list_active() if a.due_at >= now]

    async def list_overdue(self, now: datetime) -> List[Activity]:
        return [a for a in await self.list_active() if a.is_overdue(now)]

    async def list_in_progress(self, now: datetime) -> List[Activity]:
        return [a for a in await self.list_active() if a.is_in_progress(now)]

    async def search_by_name(self, query: str) -> List[Activity]:
        needle = query.lower()
        return [a for a in await self.list_all() if needle in a.name.lower()]

    async def exists_in_category(self, category_id: int, name: str) -> bool:
        wanted = name.strip().lower()
        return any(a.name.strip().lower() == wanted for a in await self.list_by_category(category_id))

    async def count_by_category(self, category_id: int) -> int:
        return len(await self.list_by_category(category_id))

    async def count_pending(self, now: datetime) -> int:
        return len(await self.list_pending(now))

    async def create(self, activity: Activity) -> int:
        _, local_id = await self._create(ActivityRecord.from_entity(activity).to_record())
        return local_id

    async def update(self, activity: Activity) -> None:
        remote = self._require_remote(activity.id)
        await self.store.update(self.collection, remote, ActivityRecord.from_entity(activity).to_record())

    async def set_active(self, activity_id: int, active: bool) -> None:
        remote = self._require_remote(activity_id)
        await self.store.update(self.collection, remote, {"activo": active})

    async def deactivate(self, activity_id: int) -> None:
        await self.set_active(activity_id, False)

    async def delete(self, activity_id: int) -> CascadeReport:
        remote = self._require_remote(activity_id)
        report = CascadeReport(target=activity_id)
        if self.assignments is not None:
            report.dependents = await self.assignments.delete_for_activity(str(activity_id))
        await self.store.delete(self.collection, remote)
        self.registry.unregister(activity_id)
        logger.info(
            "activities.deleted activity_id=%s assignments=%s failed=%s",
            activity_id,
            len(report.dependents.succeeded),
            len(report.dependents.failed),
        )
        return report

    async def delete_for_category(self, category_id: int) -> BatchResult:
        result: BatchResult = BatchResult()
        rows = await self._read_required({"category_id": category_id})
        for activity in self._parse_rows(rows, self._parse):
            if activity.id is None:
                continue
            try:
                await self.delete(activity.id)
            except CoworkError as exc:
                logger.warning(
                    "activities.cascade.child_failed category_id=%s activity_id=%s reason=%s",
                    category_id,
                    activity.id,
                    exc,
                )
                result.failed.append((activity.id, exc))
            else:
                result.succeeded.append(activity.id)
        return result


__all__ = ["ActivityRepository"]
