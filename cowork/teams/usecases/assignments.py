"""
Team-activity assignment use cases.

Behavior:
    - Bulk assignment is best effort: teams that already have the activity
      are skipped, failures are collected, the rest proceed.
    - Marking an assignment completed stamps `completed_at` once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol

from ...common.coerce import utcnow
from ...common.result import BatchResult
from ...records.errors import CoworkError, NotFoundError, ValidationError
from ..entities import AssignmentStatus, TeamActivityAssignment


logger = logging.getLogger("cowork.teams")


class AssignmentRepoProtocol(Protocol):
    async def list_all(self) -> List[TeamActivityAssignment]:
        ...

    async def list_by_team(self, team_id: int) -> List[TeamActivityAssignment]:
        ...

    async def list_by_activity(self, activity_id: str) -> List[TeamActivityAssignment]:
        ...

    async def get_for(self, team_id: int, activity_id: str) -> Optional[TeamActivityAssignment]:
        ...

    async def create(self, assignment: TeamActivityAssignment) -> TeamActivityAssignment:
        ...

    async def update(self, assignment: TeamActivityAssignment) -> None:
        ...

    async def delete(self, remote_id: str) -> None:
        ...

    async def delete_for_team(self, team_id: int) -> BatchResult:
        ...

    async def delete_for_activity(self, activity_id: str) -> BatchResult:
        ...


_UNSET = object()


def _normalize_grade(value: object) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("invalid_grade")
    grade = float(value)
    if grade < 0:
        raise ValidationError("invalid_grade")
    return grade


def _normalize_comment(value: object) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("invalid_comment")
    return value.strip() or None


@dataclass
class AssignmentService:
    assignments: AssignmentRepoProtocol
    clock: Callable[[], datetime] = field(default=utcnow)

    async def list_all(self) -> List[TeamActivityAssignment]:
        return await self.assignments.list_all()

    async def list_by_team(self, team_id: int) -> List[TeamActivityAssignment]:
        return await self.assignments.list_by_team(team_id)

    async def list_by_activity(self, activity_id: str) -> List[TeamActivityAssignment]:
        return await self.assignments.list_by_activity(str(activity_id))

    async def get_assignment(self, team_id: int, activity_id: str) -> Optional[TeamActivityAssignment]:
        return await self.assignments.get_for(team_id, str(activity_id))

    async def assign_activity_to_teams(
        self,
        activity_id: str,
        team_ids: Iterable[int],
        due_at: Optional[datetime] = None,
    ) -> BatchResult:
        activity_ref = str(activity_id).strip()
        if not activity_ref:
            raise ValidationError("invalid_activity_id")
        result: BatchResult = BatchResult()
        for team_id in dict.fromkeys(team_ids):
            try:
                if await self.assignments.get_for(team_id, activity_ref) is not None:
                    result.skipped.append(team_id)
                    continue
                await self.assignments.create(
                    TeamActivityAssignment(
                        team_id=team_id,
                        activity_id=activity_ref,
                        assigned_at=self.clock(),
                        due_at=due_at,
                    )
                )
            except CoworkError as exc:
                logger.warning(
                    "teams.assignment.assign_failed team_id=%s activity_id=%s reason=%s",
                    team_id,
                    activity_ref,
                    exc,
                )
                result.failed.append((team_id, exc))
            else:
                result.succeeded.append(team_id)
        return result

    async def remove_assignment(self, team_id: int, activity_id: str) -> bool:
        assignment = await self.assignments.get_for(team_id, str(activity_id))
        if assignment is None or not assignment.remote_id:
            return False
        await self.assignments.delete(assignment.remote_id)
        return True

    async def delete_by_activity(self, activity_id: str) -> BatchResult:
        return await self.assignments.delete_for_activity(str(activity_id))

    async def delete_by_team(self, team_id: int) -> BatchResult:
        return await self.assignments.delete_for_team(team_id)

    async def update_progress(
        self,
        team_id: int,
        activity_id: str,
        *,
        status=_UNSET,
        grade=_UNSET,
        comment=_UNSET,
    ) -> TeamActivityAssignment:
        current = await self.assignments.get_for(team_id, str(activity_id))
        if current is None:
            raise NotFoundError("assignment_not_found")
        changes = {}
        if status is not _UNSET:
            try:
                new_status = AssignmentStatus(status)
            except ValueError:
                raise ValidationError("invalid_status")
            changes["status"] = new_status
            if new_status == AssignmentStatus.COMPLETED and current.completed_at is None:
                changes["completed_at"] = self.clock()
        if grade is not _UNSET:
            changes["grade"] = _normalize_grade(grade)
        if comment is not _UNSET:
            changes["professor_comment"] = _normalize_comment(comment)
        updated = current.with_changes(**changes)
        await self.assignments.update(updated)
        return updated


__all__ = ["AssignmentRepoProtocol", "AssignmentService"]
