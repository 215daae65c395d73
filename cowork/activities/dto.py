"""Wire record for `activities` (English column names, unlike the team tables)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..common import coerce
from .entities import Activity


ACTIVITIES = "activities"


class ActivityRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    remote_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id", "remote_id"))
    category_id: int = 0
    name: str = ""
    description: str = ""
    delivery_date: Optional[datetime] = None
    creado_en: Optional[datetime] = None
    archivo_adjunto: Optional[str] = None
    activo: bool = True

    @field_validator("remote_id", "archivo_adjunto", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return coerce.to_text(v)

    @field_validator("category_id", mode="before")
    @classmethod
    def _category(cls, v):
        return coerce.to_int(v, 0)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("delivery_date", "creado_en", mode="before")
    @classmethod
    def _dates(cls, v):
        return coerce.parse_datetime(v)

    @field_validator("activo", mode="before")
    @classmethod
    def _active(cls, v):
        return coerce.to_bool(v, default=True)

    @classmethod
    def from_entity(cls, activity: Activity) -> "ActivityRecord":
        return cls(
            remote_id=activity.remote_id,
            category_id=activity.category_id,
            name=activity.name,
            description=activity.description,
            delivery_date=activity.due_at,
            creado_en=activity.created_at,
            archivo_adjunto=activity.attachment,
            activo=activity.active,
        )

    def to_entity(self, local_id: Optional[int]) -> Activity:
        return Activity(
            id=local_id,
            remote_id=self.remote_id,
            category_id=self.category_id,
            name=self.name,
            description=self.description,
            due_at=self.delivery_date or coerce.utcnow(),
            created_at=self.creado_en or coerce.utcnow(),
            attachment=self.archivo_adjunto,
            active=self.activo,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description,
            "delivery_date": coerce.format_datetime(self.delivery_date or coerce.utcnow()),
            "creado_en": coerce.format_datetime(self.creado_en or coerce.utcnow()),
            "archivo_adjunto": self.archivo_adjunto or "",
            "activo": self.activo,
        }


__all__ = ["ACTIVITIES", "ActivityRecord"]
