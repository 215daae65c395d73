"""
Presentation controller for the category/team screens.

Why:
    Screens need cheap repeated reads of the same listings and a uniform way
    to report failures. Listings go through a read-through `TimedCache`
    (keys `("categories", course_id)` and `("teams", category_id)`); every
    operation returns `Ok(value)` or `Err(message, error)` instead of taking
    success/error callbacks.

Behavior:
    - Any mutation clears the whole cache, failed ones included.
    - Validation and lookup failures surface their code as the Err message;
      remote failures are logged and reported with a generic message.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from ..common.cache import TimedCache
from ..common.result import CascadeReport, Err, Ok, Result
from ..records.errors import CoworkError, NotFoundError, ResolutionError, ValidationError
from .entities import Category, Team
from .usecases.categories import CategoryTeamsService


logger = logging.getLogger("cowork.teams")

T = TypeVar("T")


def _message(exc: CoworkError, action: str) -> str:
    if isinstance(exc, ValidationError):
        return exc.code
    if isinstance(exc, NotFoundError):
        return exc.code
    if isinstance(exc, ResolutionError):
        return f"{exc.kind}_not_loaded"
    return f"{action}_failed"


class CategoryTeamsController:
    def __init__(self, service: CategoryTeamsService, cache: Optional[TimedCache] = None):
        self.service = service
        self.cache = cache if cache is not None else TimedCache()
        self.current_course_id: Optional[int] = None
        self.selected_category_id: Optional[int] = None

    async def _run(self, action: str, op: Callable[[], Awaitable[T]], *, mutates: bool) -> Result:
        try:
            value = await op()
        except CoworkError as exc:
            logger.warning("teams.controller.%s_failed reason=%s", action, exc)
            return Err(_message(exc, action), exc)
        finally:
            # a failed cascade may already have removed children
            if mutates:
                self.cache.invalidate_all()
        return Ok(value)

    # --------------------------------------------------------------- reads

    async def load_categories(self, course_id: int) -> Result:
        self.current_course_id = course_id
        result = await self._run(
            "load_categories",
            lambda: self.cache.get_or_load(
                ("categories", course_id), lambda: self.service.list_categories(course_id)
            ),
            mutates=False,
        )
        if isinstance(result, Ok):
            ids = [c.id for c in result.value]
            if self.selected_category_id not in ids:
                self.selected_category_id = ids[0] if ids else None
        return result

    async def load_teams(self, category_id: int) -> Result:
        self.selected_category_id = category_id
        return await self._run(
            "load_teams",
            lambda: self.cache.get_or_load(
                ("teams", category_id), lambda: self.service.list_teams(category_id)
            ),
            mutates=False,
        )

    async def refresh(self) -> Optional[Result]:
        self.cache.invalidate_all()
        if self.current_course_id is None:
            return None
        return await self.load_categories(self.current_course_id)

    # ----------------------------------------------------------- mutations

    async def create_category(self, course_id: int, name: str, **options) -> Result:
        return await self._run(
            "create_category",
            lambda: self.service.create_category(course_id, name, **options),
            mutates=True,
        )

    async def delete_category(self, category_id: int) -> Result:
        result = await self._run(
            "delete_category", lambda: self.service.delete_category(category_id), mutates=True
        )
        if isinstance(result, Ok) and self.selected_category_id == category_id:
            self.selected_category_id = None
        return result

    async def create_team(self, category_id: int, name: str, **options) -> Result:
        return await self._run(
            "create_team",
            lambda: self.service.create_team(category_id, name, **options),
            mutates=True,
        )

    async def delete_team(self, team_id: int) -> Result:
        return await self._run("delete_team", lambda: self.service.delete_team(team_id), mutates=True)

    async def add_student(self, team_id: int, student_id: int) -> Result:
        return await self._run(
            "add_student", lambda: self.service.add_student(team_id, student_id), mutates=True
        )

    async def remove_student(self, team_id: int, student_id: int) -> Result:
        return await self._run(
            "remove_student", lambda: self.service.remove_student(team_id, student_id), mutates=True
        )

    async def move_student(self, student_id: int, from_team_id: int, to_team_id: int) -> Result:
        return await self._run(
            "move_student",
            lambda: self.service.move_student(student_id, from_team_id, to_team_id),
            mutates=True,
        )

    async def generate_teams(self, category_id: int, student_ids: List[int], **options) -> Result:
        return await self._run(
            "generate_teams",
            lambda: self.service.generate_random_teams(category_id, student_ids, **options),
            mutates=True,
        )

    # ------------------------------------------------------------- helpers

    @staticmethod
    def available_teams(teams: List[Team], category: Category) -> List[Team]:
        return [t for t in teams if not t.is_full(category.max_members)]

    @staticmethod
    def team_of(teams: List[Team], user_id: int) -> Optional[Team]:
        for team in teams:
            if team.has_member(user_id):
                return team
        return None

    @staticmethod
    def cascade_summary(report: CascadeReport) -> str:
        return (
            f"{len(report.children.succeeded)} teams and "
            f"{len(report.dependents.succeeded)} assignments deleted, "
            f"{len(report.children.failed) + len(report.dependents.failed)} failures"
        )


__all__ = ["CategoryTeamsController"]
