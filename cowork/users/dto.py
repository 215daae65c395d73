"""
Wire record for `usuarios`.

Local id rule: codec(remote id); without a remote id, codec(normalised
email); without either, the caller's fallback seed (current epoch millis by
default).
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..common import coerce
from ..identity.codec import stable_id
from .entities import User, UserRole, normalize_email


USERS = "usuarios"
ENROLMENTS = "inscripciones"

_ROLE_TO_WIRE = {UserRole.PROFESSOR: "profesor", UserRole.STUDENT: "estudiante"}


def role_from_wire(value: Any) -> UserRole:
    if isinstance(value, UserRole):
        return value
    text = (coerce.to_text(value) or "").lower()
    if text in ("profesor", "professor", "teacher"):
        return UserRole.PROFESSOR
    return UserRole.STUDENT


def local_user_id(remote_id: Optional[str], email: str, *, fallback_seed: Optional[int] = None) -> int:
    if remote_id:
        return stable_id(remote_id)
    normalized = normalize_email(email)
    if normalized:
        return stable_id(normalized)
    seed = fallback_seed if fallback_seed is not None else int(time.time() * 1000)
    return stable_id("", fallback_seed=seed)


class UserRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    remote_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id", "remote_id"))
    nombre: str = Field(default="", validation_alias=AliasChoices("nombre", "name"))
    email: str = ""
    rol: UserRole = Field(default=UserRole.STUDENT, validation_alias=AliasChoices("rol", "role"))
    auth_user_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("auth_user_id", "authUserId"))
    creado_en: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("creado_en", "created_at"))

    @field_validator("remote_id", "auth_user_id", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return coerce.to_text(v)

    @field_validator("nombre", "email", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("rol", mode="before")
    @classmethod
    def _role(cls, v):
        return role_from_wire(v)

    @field_validator("creado_en", mode="before")
    @classmethod
    def _created(cls, v):
        return coerce.parse_datetime(v)

    @classmethod
    def from_entity(cls, user: User) -> "UserRecord":
        return cls(
            remote_id=user.remote_id,
            nombre=user.name,
            email=user.email,
            rol=user.role,
            auth_user_id=user.auth_user_id,
            creado_en=user.created_at,
        )

    def to_entity(self, *, fallback_seed: Optional[int] = None) -> User:
        return User(
            id=local_user_id(self.remote_id, self.email, fallback_seed=fallback_seed),
            remote_id=self.remote_id,
            name=self.nombre,
            email=self.email,
            role=self.rol,
            auth_user_id=self.auth_user_id,
            created_at=self.creado_en or coerce.utcnow(),
        )

    def to_record(self, password: Optional[str] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "nombre": self.nombre,
            "email": normalize_email(self.email),
            "rol": _ROLE_TO_WIRE[UserRole(self.rol)],
            "creado_en": coerce.format_datetime(self.creado_en or coerce.utcnow()),
        }
        if password:
            data["password"] = password
        if self.auth_user_id:
            data["auth_user_id"] = self.auth_user_id
        return data


class EnrolmentRecord(BaseModel):
    """Row of `inscripciones`; `usuario_id` holds the user's local id."""

    model_config = ConfigDict(extra="ignore")

    usuario_id: int = 0
    curso_id: int = 0
    fecha_inscripcion: Optional[datetime] = None

    @field_validator("usuario_id", "curso_id", mode="before")
    @classmethod
    def _ids(cls, v):
        return coerce.to_int(v, 0)

    @field_validator("fecha_inscripcion", mode="before")
    @classmethod
    def _enrolled(cls, v):
        return coerce.parse_datetime(v)


__all__ = ["USERS", "ENROLMENTS", "UserRecord", "EnrolmentRecord", "local_user_id", "role_from_wire"]
