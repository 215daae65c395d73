"""
Wire records for `categorias_equipo`, `equipos` and `equipo_actividades`.

Why:
    Rows come back with loose types (numbers as text, flags as "true", id
    lists as comma-joined strings). Pydantic models with `before` validators
    normalise them once; repositories only map records <-> entities and
    translate ids.

Notes:
    Field names mirror the stored column names. The remote id is read from
    `_id` (or legacy `id`) and never written back inside a record body.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..common import coerce
from .entities import (
    DEFAULT_MAX_MEMBERS,
    AssignmentMode,
    AssignmentStatus,
    Category,
    Team,
    TeamActivityAssignment,
)


CATEGORIES = "categorias_equipo"
TEAMS = "equipos"
ASSIGNMENTS = "equipo_actividades"

_MODE_TO_WIRE = {AssignmentMode.MANUAL: "manual", AssignmentMode.RANDOM: "aleatoria"}
_STATUS_TO_WIRE = {
    AssignmentStatus.PENDING: "pendiente",
    AssignmentStatus.IN_PROGRESS: "en_progreso",
    AssignmentStatus.COMPLETED: "completada",
    AssignmentStatus.OVERDUE: "vencida",
}
_STATUS_FROM_WIRE = {wire: status for status, wire in _STATUS_TO_WIRE.items()}


def status_from_wire(value: Any) -> AssignmentStatus:
    if isinstance(value, AssignmentStatus):
        return value
    text = (coerce.to_text(value) or "").lower()
    if text in _STATUS_FROM_WIRE:
        return _STATUS_FROM_WIRE[text]
    try:
        return AssignmentStatus(text)
    except ValueError:
        return AssignmentStatus.PENDING


def status_to_wire(status: AssignmentStatus) -> str:
    return _STATUS_TO_WIRE[AssignmentStatus(status)]


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    remote_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id", "remote_id"))

    @field_validator("remote_id", mode="before")
    @classmethod
    def _text_id(cls, v):
        return coerce.to_text(v)


class CategoryRecord(_Record):
    nombre: str = ""
    curso_id: int = 0
    tipo_asignacion: str = "manual"
    max_estudiantes_por_equipo: int = DEFAULT_MAX_MEMBERS
    equipos_ids: List[int] = Field(default_factory=list)
    creado_en: Optional[datetime] = None
    equipos_generados: bool = False
    descripcion: Optional[str] = None

    @field_validator("nombre", "tipo_asignacion", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("curso_id", mode="before")
    @classmethod
    def _course(cls, v):
        return coerce.to_int(v, 0)

    @field_validator("max_estudiantes_por_equipo", mode="before")
    @classmethod
    def _max_members(cls, v):
        return coerce.to_int(v, DEFAULT_MAX_MEMBERS) or DEFAULT_MAX_MEMBERS

    @field_validator("equipos_ids", mode="before")
    @classmethod
    def _team_ids(cls, v):
        return coerce.parse_id_list(v)

    @field_validator("creado_en", mode="before")
    @classmethod
    def _created(cls, v):
        return coerce.parse_datetime(v)

    @field_validator("equipos_generados", mode="before")
    @classmethod
    def _generated(cls, v):
        return coerce.to_bool(v)

    @field_validator("descripcion", mode="before")
    @classmethod
    def _description(cls, v):
        return coerce.to_text(v)

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryRecord":
        return cls(
            remote_id=category.remote_id,
            nombre=category.name,
            curso_id=category.course_id,
            tipo_asignacion=_MODE_TO_WIRE[AssignmentMode(category.mode)],
            max_estudiantes_por_equipo=category.max_members,
            equipos_ids=list(category.team_ids),
            creado_en=category.created_at,
            equipos_generados=category.teams_generated,
            descripcion=category.description,
        )

    def to_entity(self, local_id: Optional[int]) -> Category:
        mode = AssignmentMode.RANDOM if self.tipo_asignacion == "aleatoria" else AssignmentMode.MANUAL
        return Category(
            id=local_id,
            remote_id=self.remote_id,
            name=self.nombre,
            course_id=self.curso_id,
            mode=mode,
            max_members=self.max_estudiantes_por_equipo,
            team_ids=tuple(self.equipos_ids),
            teams_generated=self.equipos_generados,
            created_at=self.creado_en or coerce.utcnow(),
            description=self.descripcion,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "nombre": self.nombre,
            "curso_id": self.curso_id,
            "tipo_asignacion": self.tipo_asignacion,
            "max_estudiantes_por_equipo": self.max_estudiantes_por_equipo,
            "equipos_ids": coerce.join_ids(self.equipos_ids),
            "creado_en": coerce.format_datetime(self.creado_en or coerce.utcnow()),
            "equipos_generados": self.equipos_generados,
            "descripcion": self.descripcion or "",
        }


class TeamRecord(_Record):
    nombre: str = ""
    categoria_id: int = 0
    estudiantes_ids: List[int] = Field(default_factory=list)
    creado_en: Optional[datetime] = None
    descripcion: Optional[str] = None
    color: Optional[str] = None

    @field_validator("nombre", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("categoria_id", mode="before")
    @classmethod
    def _category(cls, v):
        return coerce.to_int(v, 0)

    @field_validator("estudiantes_ids", mode="before")
    @classmethod
    def _members(cls, v):
        return coerce.parse_id_list(v)

    @field_validator("creado_en", mode="before")
    @classmethod
    def _created(cls, v):
        return coerce.parse_datetime(v)

    @field_validator("descripcion", "color", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return coerce.to_text(v)

    @classmethod
    def from_entity(cls, team: Team) -> "TeamRecord":
        return cls(
            remote_id=team.remote_id,
            nombre=team.name,
            categoria_id=team.category_id,
            estudiantes_ids=sorted(team.member_ids),
            creado_en=team.created_at,
            descripcion=team.description,
            color=team.color,
        )

    def to_entity(self, local_id: Optional[int]) -> Team:
        return Team(
            id=local_id,
            remote_id=self.remote_id,
            name=self.nombre,
            category_id=self.categoria_id,
            member_ids=frozenset(self.estudiantes_ids),
            created_at=self.creado_en or coerce.utcnow(),
            description=self.descripcion,
            color=self.color,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "nombre": self.nombre,
            "categoria_id": self.categoria_id,
            "estudiantes_ids": coerce.join_ids(self.estudiantes_ids),
            "creado_en": coerce.format_datetime(self.creado_en or coerce.utcnow()),
            "descripcion": self.descripcion or "",
            "color": self.color or "",
        }


class AssignmentRecord(_Record):
    """`equipo_id` holds the team's remote id (legacy rows: a local number)."""

    equipo_id: str = ""
    actividad_id: str = ""
    asignado_en: Optional[datetime] = None
    fecha_entrega: Optional[datetime] = None
    estado: AssignmentStatus = AssignmentStatus.PENDING
    comentario_profesor: Optional[str] = None
    calificacion: Optional[float] = None
    fecha_completada: Optional[datetime] = None

    @field_validator("equipo_id", "actividad_id", mode="before")
    @classmethod
    def _ref(cls, v):
        return coerce.to_text(v) or ""

    @field_validator("asignado_en", "fecha_entrega", "fecha_completada", mode="before")
    @classmethod
    def _dates(cls, v):
        return coerce.parse_datetime(v)

    @field_validator("estado", mode="before")
    @classmethod
    def _status(cls, v):
        return status_from_wire(v)

    @field_validator("comentario_profesor", mode="before")
    @classmethod
    def _comment(cls, v):
        return coerce.to_text(v)

    @field_validator("calificacion", mode="before")
    @classmethod
    def _grade(cls, v):
        return coerce.to_float(v)

    @property
    def legacy_team_id(self) -> Optional[int]:
        """Local team id stored by old clients (numeric `equipo_id`)."""
        if self.equipo_id.isdigit():
            return int(self.equipo_id)
        return None

    @classmethod
    def from_entity(cls, assignment: TeamActivityAssignment, team_remote_id: str) -> "AssignmentRecord":
        return cls(
            remote_id=assignment.remote_id,
            equipo_id=team_remote_id,
            actividad_id=assignment.activity_id,
            asignado_en=assignment.assigned_at,
            fecha_entrega=assignment.due_at,
            estado=assignment.status,
            comentario_profesor=assignment.professor_comment,
            calificacion=assignment.grade,
            fecha_completada=assignment.completed_at,
        )

    def to_entity(self, team_id: int) -> TeamActivityAssignment:
        return TeamActivityAssignment(
            remote_id=self.remote_id,
            team_id=team_id,
            activity_id=self.actividad_id,
            assigned_at=self.asignado_en or coerce.utcnow(),
            due_at=self.fecha_entrega,
            status=self.estado,
            professor_comment=self.comentario_profesor,
            grade=self.calificacion,
            completed_at=self.fecha_completada,
        )

    def to_record(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "equipo_id": self.equipo_id,
            "actividad_id": self.actividad_id,
            "asignado_en": coerce.format_datetime(self.asignado_en or coerce.utcnow()),
            "estado": status_to_wire(self.estado),
        }
        if self.fecha_entrega:
            data["fecha_entrega"] = coerce.format_datetime(self.fecha_entrega)
        if self.comentario_profesor:
            data["comentario_profesor"] = self.comentario_profesor
        if self.calificacion is not None:
            data["calificacion"] = self.calificacion
        if self.fecha_completada:
            data["fecha_completada"] = coerce.format_datetime(self.fecha_completada)
        return data


__all__ = [
    "CATEGORIES",
    "TEAMS",
    "ASSIGNMENTS",
    "CategoryRecord",
    "TeamRecord",
    "AssignmentRecord",
    "status_from_wire",
    "status_to_wire",
]
