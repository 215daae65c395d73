"""
Record store repositories for categories, teams and team-activity assignments.

Why:
    Callers work with local numeric ids only. These repositories translate to
    remote ids through the injected registries at every call and keep
    dependents consistent when a parent is deleted.

Cascade:
    delete category -> delete each child team (its assignments first, then
    the team record, then its mapping) -> delete the category record ->
    drop the category mapping. Children are processed sequentially and best
    effort: a failed child is logged and reported, siblings and the parent
    still run. The parent id must be mapped before any child work starts, and
    a failed child listing raises before the parent record is touched.

Wire notes:
    - `equipos.categoria_id` stores the category's local numeric id.
    - `equipo_actividades.equipo_id` stores the team's remote id; rows written
      by old clients may carry the local number instead and are still read.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..common.coerce import join_ids
from ..common.result import BatchResult, CascadeReport
from ..identity.codec import stable_id
from ..identity.registry import IdRegistry
from ..records.client import RecordStoreProtocol
from ..records.errors import CoworkError, RemoteError, ResolutionError
from ..records.repository import RemoteRepository
from ..records.responses import extract_remote_id, record_id
from .dto import ASSIGNMENTS, CATEGORIES, TEAMS, AssignmentRecord, CategoryRecord, TeamRecord
from .entities import Category, Team, TeamActivityAssignment


logger = logging.getLogger("cowork.teams")


class AssignmentRepository(RemoteRepository):
    """Assignments keep their remote id; `registry` is the team registry."""

    collection = ASSIGNMENTS

    def _team_local(self, record: AssignmentRecord) -> Optional[int]:
        # translate only; team mappings come from listing or creating teams
        legacy = record.legacy_team_id
        if legacy is not None:
            return legacy
        if not record.equipo_id:
            return None
        known = self.registry.resolve_local(record.equipo_id)
        return known if known is not None else stable_id(record.equipo_id)

    def _parse(self, row: dict) -> TeamActivityAssignment:
        record = AssignmentRecord.model_validate(row)
        team_id = self._team_local(record)
        if team_id is None:
            raise ValueError("assignment_without_team")
        return record.to_entity(team_id)

    async def list_all(self) -> List[TeamActivityAssignment]:
        return self._parse_rows(await self._read(), self._parse)

    async def list_by_team(self, team_id: int) -> List[TeamActivityAssignment]:
        remote = self.registry.resolve_remote(team_id)
        if remote is None:
            logger.info("teams.assignments.team_unmapped team_id=%s", team_id)
            return []
        rows = await self._team_rows(team_id, remote, self._read)
        return [a.with_changes(team_id=team_id) for a in self._parse_rows(rows, self._parse)]

    async def _team_rows(self, team_id: int, remote: str, read) -> List[dict]:
        """Rows keyed by the team's remote id plus legacy rows keyed by its local id."""
        rows = await read({"equipo_id": remote})
        rows += await read({"equipo_id": str(team_id)})
        seen: Dict[str, dict] = {}
        for row in rows:
            seen.setdefault(record_id(row) or str(id(row)), row)
        return list(seen.values())

    async def list_by_activity(self, activity_id: str) -> List[TeamActivityAssignment]:
        rows = await self._read({"actividad_id": str(activity_id)})
        return self._parse_rows(rows, self._parse)

    async def get_for(self, team_id: int, activity_id: str) -> Optional[TeamActivityAssignment]:
        for assignment in await self.list_by_team(team_id):
            if assignment.activity_id == str(activity_id):
                return assignment
        return None

    async def get(self, remote_id: str) -> Optional[TeamActivityAssignment]:
        row = await self._read_one(remote_id)
        if row is None:
            return None
        parsed = self._parse_rows([row], self._parse)
        return parsed[0] if parsed else None

    async def create(self, assignment: TeamActivityAssignment) -> TeamActivityAssignment:
        team_remote = self._require_remote(assignment.team_id)
        record = AssignmentRecord.from_entity(assignment, team_remote).to_record()
        response = await self.store.create(self.collection, record)
        remote_id = extract_remote_id(self.collection, response)
        logger.info(
            "teams.assignment.created team_id=%s activity_id=%s",
            assignment.team_id,
            assignment.activity_id,
        )
        return assignment.with_changes(remote_id=remote_id)

    async def update(self, assignment: TeamActivityAssignment) -> None:
        if not assignment.remote_id:
            raise ResolutionError("assignment", None)
        team_remote = self._require_remote(assignment.team_id)
        record = AssignmentRecord.from_entity(assignment, team_remote).to_record()
        await self.store.update(self.collection, assignment.remote_id, record)

    async def delete(self, remote_id: str) -> None:
        await self.store.delete(self.collection, remote_id)

    async def _delete_rows(self, remote_ids: List[str]) -> BatchResult:
        result: BatchResult = BatchResult()
        for remote_id in remote_ids:
            try:
                await self.delete(remote_id)
            except RemoteError as exc:
                logger.warning("teams.assignment.delete_failed reason=%s", exc.message)
                result.failed.append((remote_id, exc))
            else:
                result.succeeded.append(remote_id)
        return result

    async def delete_for_team(self, team_id: int) -> BatchResult:
        """Raises `RemoteError` when the assignments cannot be listed."""
        remote = self.registry.resolve_remote(team_id)
        if remote is None:
            return BatchResult()
        rows = await self._team_rows(team_id, remote, self._read_required)
        return await self._delete_rows([rid for rid in (record_id(r) for r in rows) if rid])

    async def delete_for_activity(self, activity_id: str) -> BatchResult:
        """Delete by `actividad_id` using raw rows; no team mapping needed."""
        rows = await self._read_required({"actividad_id": str(activity_id)})
        return await self._delete_rows([rid for rid in (record_id(r) for r in rows) if rid])


class TeamRepository(RemoteRepository):
    collection = TEAMS

    def __init__(self, store: RecordStoreProtocol, registry: IdRegistry, assignments: AssignmentRepository):
        super().__init__(store, registry)
        self.assignments = assignments

    def _parse(self, row: dict) -> Team:
        record = TeamRecord.model_validate(row)
        local_id = self.registry.adopt(record.remote_id) if record.remote_id else None
        return record.to_entity(local_id)

    async def list_all(self) -> List[Team]:
        return self._parse_rows(await self._read(), self._parse)

    async def list_by_category(self, category_id: int) -> List[Team]:
        rows = await self._read({"categoria_id": category_id})
        return self._parse_rows(rows, self._parse)

    async def get_by_id(self, team_id: int) -> Optional[Team]:
        remote = self.registry.resolve_remote(team_id)
        if remote is None:
            logger.info("teams.team.unmapped team_id=%s", team_id)
            return None
        row = await self._read_one(remote)
        if row is None:
            return None
        parsed = self._parse_rows([row], self._parse)
        return parsed[0] if parsed else None

    async def get_by_string_id(self, value: str) -> Optional[Team]:
        """Numeric text is a local id; anything else is looked up as remote id."""
        text = (value or "").strip()
        if not text:
            return None
        if text.isdigit():
            return await self.get_by_id(int(text))
        row = await self._read_one(text)
        if row is None:
            return None
        parsed = self._parse_rows([row], self._parse)
        return parsed[0] if parsed else None

    async def find_for_student(self, student_id: int, category_id: int) -> Optional[Team]:
        for team in await self.list_by_category(category_id):
            if team.has_member(student_id):
                return team
        return None

    async def create(self, team: Team) -> int:
        _, local_id = await self._create(TeamRecord.from_entity(team).to_record())
        return local_id

    async def update(self, team: Team) -> None:
        remote = self._require_remote(team.id)
        await self.store.update(self.collection, remote, TeamRecord.from_entity(team).to_record())

    async def delete(self, team_id: int) -> CascadeReport:
        remote = self._require_remote(team_id)
        report = CascadeReport(target=team_id)
        report.dependents = await self.assignments.delete_for_team(team_id)
        await self.store.delete(self.collection, remote)
        self.registry.unregister(team_id)
        logger.info(
            "teams.team.deleted team_id=%s assignments=%s failed=%s",
            team_id,
            len(report.dependents.succeeded),
            len(report.dependents.failed),
        )
        return report

    async def delete_for_category(self, category_id: int) -> CascadeReport:
        """Raises `RemoteError` when the teams cannot be listed; nothing is deleted then."""
        report = CascadeReport(target=category_id)
        rows = await self._read_required({"categoria_id": category_id})
        for team in self._parse_rows(rows, self._parse):
            if team.id is None:
                continue
            try:
                child = await self.delete(team.id)
            except CoworkError as exc:
                logger.warning(
                    "teams.cascade.child_failed category_id=%s team_id=%s reason=%s",
                    category_id,
                    team.id,
                    exc,
                )
                report.children.failed.append((team.id, exc))
            else:
                report.children.succeeded.append(team.id)
                report.dependents.merge(child.dependents)
        return report


class CategoryRepository(RemoteRepository):
    collection = CATEGORIES

    def __init__(self, store: RecordStoreProtocol, registry: IdRegistry, teams: TeamRepository):
        super().__init__(store, registry)
        self.teams = teams

    def _parse(self, row: dict) -> Category:
        record = CategoryRecord.model_validate(row)
        local_id = self.registry.adopt(record.remote_id) if record.remote_id else None
        return record.to_entity(local_id)

    async def list_by_course(self, course_id: int) -> List[Category]:
        rows = await self._read({"curso_id": course_id})
        return self._parse_rows(rows, self._parse)

    async def get_by_id(self, category_id: int) -> Optional[Category]:
        remote = self.registry.resolve_remote(category_id)
        if remote is None:
            logger.info("teams.category.unmapped category_id=%s", category_id)
            return None
        row = await self._read_one(remote)
        if row is None:
            return None
        parsed = self._parse_rows([row], self._parse)
        return parsed[0] if parsed else None

    async def create(self, category: Category) -> int:
        _, local_id = await self._create(CategoryRecord.from_entity(category).to_record())
        return local_id

    async def update(self, category: Category) -> None:
        remote = self._require_remote(category.id)
        await self.store.update(self.collection, remote, CategoryRecord.from_entity(category).to_record())

    async def mark_teams_generated(self, category_id: int, team_ids: List[int]) -> None:
        remote = self._require_remote(category_id)
        await self.store.update(
            self.collection,
            remote,
            {"equipos_ids": join_ids(team_ids), "equipos_generados": True},
        )

    async def delete(self, category_id: int) -> CascadeReport:
        remote = self._require_remote(category_id)
        report = await self.teams.delete_for_category(category_id)
        await self.store.delete(self.collection, remote)
        self.registry.unregister(category_id)
        logger.info(
            "teams.category.deleted category_id=%s teams=%s failed=%s",
            category_id,
            len(report.children.succeeded),
            len(report.children.failed),
        )
        return report


__all__ = ["AssignmentRepository", "TeamRepository", "CategoryRepository"]
