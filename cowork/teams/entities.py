"""
Team domain values: categories, teams and team-activity assignments.

Ids:
    `id` is the local numeric id (codec of the remote id); `remote_id` is the
    record store id. Both are None until the entity was created remotely.
    Assignments are identified by their remote id only.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from ..common.coerce import utcnow


class AssignmentMode(str, Enum):
    MANUAL = "manual"
    RANDOM = "random"


class AssignmentStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


DEFAULT_MAX_MEMBERS = 4


@dataclass(frozen=True)
class Category:
    name: str
    course_id: int
    mode: AssignmentMode = AssignmentMode.MANUAL
    max_members: int = DEFAULT_MAX_MEMBERS
    team_ids: Tuple[int, ...] = ()
    teams_generated: bool = False
    created_at: datetime = field(default_factory=utcnow)
    description: Optional[str] = None
    id: Optional[int] = None
    remote_id: Optional[str] = None

    def with_changes(self, **changes) -> "Category":
        return replace(self, **changes)


@dataclass(frozen=True)
class Team:
    name: str
    category_id: int
    member_ids: FrozenSet[int] = frozenset()
    created_at: datetime = field(default_factory=utcnow)
    description: Optional[str] = None
    color: Optional[str] = None
    id: Optional[int] = None
    remote_id: Optional[str] = None

    def has_member(self, user_id: int) -> bool:
        return user_id in self.member_ids

    def is_full(self, max_members: int) -> bool:
        return len(self.member_ids) >= max_members

    def with_member(self, user_id: int) -> "Team":
        return replace(self, member_ids=self.member_ids | {user_id})

    def without_member(self, user_id: int) -> "Team":
        return replace(self, member_ids=self.member_ids - {user_id})

    def with_changes(self, **changes) -> "Team":
        return replace(self, **changes)


@dataclass(frozen=True)
class TeamActivityAssignment:
    team_id: int
    activity_id: str
    assigned_at: datetime = field(default_factory=utcnow)
    due_at: Optional[datetime] = None
    status: AssignmentStatus = AssignmentStatus.PENDING
    professor_comment: Optional[str] = None
    grade: Optional[float] = None
    completed_at: Optional[datetime] = None
    remote_id: Optional[str] = None

    def with_changes(self, **changes) -> "TeamActivityAssignment":
        return replace(self, **changes)


__all__ = [
    "AssignmentMode",
    "AssignmentStatus",
    "DEFAULT_MAX_MEMBERS",
    "Category",
    "Team",
    "TeamActivityAssignment",
]
