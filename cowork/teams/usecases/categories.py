"""
Category and team use cases (service layer).

Why:
    Keeps business rules (names, capacity, membership, team generation) out
    of the repositories and the controller, so they can be unit-tested with
    an in-memory record store.

Behavior:
    - Validation errors are raised as `ValidationError(code)` before any
      remote write.
    - Deletes go through the repositories' cascade and return its report.
    - A student belongs to at most one team per category.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from ...common.result import CascadeReport
from ...records.errors import NotFoundError, ValidationError
from ...users.entities import User
from ..entities import DEFAULT_MAX_MEMBERS, AssignmentMode, Category, Team


logger = logging.getLogger("cowork.teams")


class CategoryRepoProtocol(Protocol):
    async def list_by_course(self, course_id: int) -> List[Category]:
        ...

    async def get_by_id(self, category_id: int) -> Optional[Category]:
        ...

    async def create(self, category: Category) -> int:
        ...

    async def update(self, category: Category) -> None:
        ...

    async def mark_teams_generated(self, category_id: int, team_ids: List[int]) -> None:
        ...

    async def delete(self, category_id: int) -> CascadeReport:
        ...


class TeamRepoProtocol(Protocol):
    async def list_by_category(self, category_id: int) -> List[Team]:
        ...

    async def get_by_id(self, team_id: int) -> Optional[Team]:
        ...

    async def get_by_string_id(self, value: str) -> Optional[Team]:
        ...

    async def find_for_student(self, student_id: int, category_id: int) -> Optional[Team]:
        ...

    async def create(self, team: Team) -> int:
        ...

    async def update(self, team: Team) -> None:
        ...

    async def delete(self, team_id: int) -> CascadeReport:
        ...


class UserDirectoryProtocol(Protocol):
    async def list_enrolled_students(self, user_ids: Set[int]) -> List[User]:
        ...


class EnrolmentDirectoryProtocol(Protocol):
    async def user_ids_for_course(self, course_id: int) -> Set[int]:
        ...


_UNSET = object()


def _normalize_name(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("invalid_name")
    trimmed = value.strip()
    if len(trimmed) > 120:
        raise ValidationError("invalid_name")
    return trimmed


def _normalize_max_members(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("invalid_max_members")
    return value


def _normalize_description(value: object) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("invalid_description")
    return value.strip() or None


def _same_name(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


def _chunks(items: Sequence[int], size: int) -> Iterable[List[int]]:
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


@dataclass
class CategoryTeamsService:
    categories: CategoryRepoProtocol
    teams: TeamRepoProtocol
    users: UserDirectoryProtocol
    enrolments: EnrolmentDirectoryProtocol

    # ------------------------------------------------------------ categories

    async def list_categories(self, course_id: int) -> List[Category]:
        return await self.categories.list_by_course(course_id)

    async def get_category(self, category_id: int) -> Optional[Category]:
        return await self.categories.get_by_id(category_id)

    async def _require_category(self, category_id: int) -> Category:
        category = await self.categories.get_by_id(category_id)
        if category is None:
            raise NotFoundError("category_not_found")
        return category

    async def create_category(
        self,
        course_id: int,
        name: str,
        *,
        max_members: int = DEFAULT_MAX_MEMBERS,
        mode: AssignmentMode = AssignmentMode.MANUAL,
        description: Optional[str] = None,
    ) -> int:
        clean_name = _normalize_name(name)
        clean_max = _normalize_max_members(max_members)
        clean_description = _normalize_description(description)
        existing = await self.categories.list_by_course(course_id)
        if any(_same_name(c.name, clean_name) for c in existing):
            raise ValidationError("duplicate_name")
        category = Category(
            name=clean_name,
            course_id=course_id,
            mode=AssignmentMode(mode),
            max_members=clean_max,
            description=clean_description,
        )
        return await self.categories.create(category)

    async def update_category(
        self,
        category_id: int,
        *,
        name=_UNSET,
        max_members=_UNSET,
        description=_UNSET,
    ) -> Category:
        current = await self._require_category(category_id)
        changes = {}
        if name is not _UNSET:
            clean_name = _normalize_name(name)
            if not _same_name(clean_name, current.name):
                siblings = await self.categories.list_by_course(current.course_id)
                if any(c.id != category_id and _same_name(c.name, clean_name) for c in siblings):
                    raise ValidationError("duplicate_name")
            changes["name"] = clean_name
        if max_members is not _UNSET:
            changes["max_members"] = _normalize_max_members(max_members)
        if description is not _UNSET:
            changes["description"] = _normalize_description(description)
        updated = current.with_changes(**changes)
        await self.categories.update(updated)
        return updated

    async def delete_category(self, category_id: int) -> CascadeReport:
        return await self.categories.delete(category_id)

    # ----------------------------------------------------------------- teams

    async def list_teams(self, category_id: int) -> List[Team]:
        return await self.teams.list_by_category(category_id)

    async def get_team(self, team_id: int) -> Optional[Team]:
        return await self.teams.get_by_id(team_id)

    async def get_team_by_string_id(self, value: str) -> Optional[Team]:
        return await self.teams.get_by_string_id(value)

    async def team_for_student(self, student_id: int, category_id: int) -> Optional[Team]:
        return await self.teams.find_for_student(student_id, category_id)

    async def _require_team(self, team_id: int) -> Team:
        team = await self.teams.get_by_id(team_id)
        if team is None:
            raise NotFoundError("team_not_found")
        return team

    async def create_team(
        self,
        category_id: int,
        name: str,
        *,
        member_ids: Iterable[int] = (),
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> int:
        clean_name = _normalize_name(name)
        members = frozenset(member_ids)
        category = await self._require_category(category_id)
        if len(members) > category.max_members:
            raise ValidationError("team_full")
        siblings = await self.teams.list_by_category(category_id)
        if any(_same_name(t.name, clean_name) for t in siblings):
            raise ValidationError("duplicate_name")
        taken = set().union(*(t.member_ids for t in siblings)) if siblings else set()
        if members & taken:
            raise ValidationError("student_already_assigned")
        team = Team(
            name=clean_name,
            category_id=category_id,
            member_ids=members,
            description=_normalize_description(description),
            color=(color or "").strip() or None,
        )
        return await self.teams.create(team)

    async def update_team(self, team: Team) -> None:
        if team.id is None:
            raise NotFoundError("team_not_found")
        _normalize_name(team.name)
        await self.teams.update(team)

    async def delete_team(self, team_id: int) -> CascadeReport:
        return await self.teams.delete(team_id)

    # ------------------------------------------------------------ membership

    async def add_student(self, team_id: int, student_id: int) -> Team:
        team = await self._require_team(team_id)
        if team.has_member(student_id):
            return team
        category = await self._require_category(team.category_id)
        current = await self.teams.find_for_student(student_id, team.category_id)
        if current is not None and current.id != team_id:
            raise ValidationError("student_already_assigned")
        if team.is_full(category.max_members):
            raise ValidationError("team_full")
        updated = team.with_member(student_id)
        await self.teams.update(updated)
        return updated

    async def remove_student(self, team_id: int, student_id: int) -> Team:
        team = await self._require_team(team_id)
        if not team.has_member(student_id):
            return team
        updated = team.without_member(student_id)
        await self.teams.update(updated)
        return updated

    async def move_student(self, student_id: int, from_team_id: int, to_team_id: int) -> Tuple[Team, Team]:
        source = await self._require_team(from_team_id)
        target = await self._require_team(to_team_id)
        if source.category_id != target.category_id:
            raise ValidationError("different_category")
        if not source.has_member(student_id):
            raise ValidationError("student_not_in_team")
        category = await self._require_category(target.category_id)
        if target.has_member(student_id):
            return source, target
        if target.is_full(category.max_members):
            raise ValidationError("team_full")
        new_source = source.without_member(student_id)
        new_target = target.with_member(student_id)
        await self.teams.update(new_source)
        await self.teams.update(new_target)
        return new_source, new_target

    async def generate_random_teams(
        self,
        category_id: int,
        student_ids: Sequence[int],
        *,
        rng: Optional[random.Random] = None,
    ) -> List[int]:
        """Shuffle students into "Equipo N" teams of at most `max_members`."""
        category = await self._require_category(category_id)
        if category.teams_generated:
            raise ValidationError("teams_already_generated")
        unique = list(dict.fromkeys(student_ids))
        if not unique:
            raise ValidationError("no_students")
        (rng or random.Random()).shuffle(unique)
        created: List[int] = []
        for number, members in enumerate(_chunks(unique, category.max_members), start=1):
            team = Team(name=f"Equipo {number}", category_id=category_id, member_ids=frozenset(members))
            created.append(await self.teams.create(team))
        await self.categories.mark_teams_generated(category_id, created)
        logger.info("teams.generated category_id=%s teams=%s", category_id, len(created))
        return created

    # -------------------------------------------------------------- students

    async def list_course_students(self, course_id: int) -> List[User]:
        """Students enrolled in `course_id` (empty when enrolments cannot be read)."""
        enrolled = await self.enrolments.user_ids_for_course(course_id)
        if not enrolled:
            return []
        return await self.users.list_enrolled_students(enrolled)


__all__ = [
    "CategoryRepoProtocol",
    "TeamRepoProtocol",
    "UserDirectoryProtocol",
    "EnrolmentDirectoryProtocol",
    "CategoryTeamsService",
]
