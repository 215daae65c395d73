"""User values."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from ..common.coerce import utcnow


class UserRole(str, Enum):
    PROFESSOR = "professor"
    STUDENT = "student"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class User:
    name: str
    email: str
    role: UserRole = UserRole.STUDENT
    auth_user_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    id: Optional[int] = None
    remote_id: Optional[str] = None

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    def with_changes(self, **changes) -> "User":
        return replace(self, **changes)


__all__ = ["UserRole", "User", "normalize_email"]
