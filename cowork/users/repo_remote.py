"""
Record store repository for users.

Behavior:
    - Listings register every user under codec(remote id) and index the
      email-derived id as an alias, so ids handed out by older clients still
      resolve.
    - `get_by_id` on an unmapped id performs one full listing to rebuild
      that index and resolves again; it never queries with a guessed id.
    - Emails are compared and written normalised (trimmed, lowercase).

Enrolments:
    `EnrolmentRepository` only reads `inscripciones` to scope student lists to
    a course; enrolling and unenrolling are not part of this package.

Security:
    Passwords are written on create only and never logged or returned.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from ..identity.codec import stable_id
from ..records.repository import RemoteRepository
from .dto import ENROLMENTS, USERS, EnrolmentRecord, UserRecord
from .entities import User, UserRole, normalize_email


logger = logging.getLogger("cowork.users")


class UserRepository(RemoteRepository):
    collection = USERS

    def _parse(self, row: dict) -> User:
        user = UserRecord.model_validate(row).to_entity()
        if user.remote_id:
            self.registry.register(user.remote_id, user.id)
        return user

    async def list_all(self) -> List[User]:
        users = self._parse_rows(await self._read(), self._parse)
        self.registry.index_aliases(
            (stable_id(normalize_email(u.email)), u.remote_id)
            for u in users
            if u.remote_id and normalize_email(u.email)
        )
        return users

    async def list_students(self) -> List[User]:
        return [u for u in await self.list_all() if u.role == UserRole.STUDENT]

    async def list_enrolled_students(self, user_ids: Set[int]) -> List[User]:
        """Students whose local id, or the email-derived id older clients wrote, is in `user_ids`."""
        enrolled = []
        for user in await self.list_students():
            email = normalize_email(user.email)
            if user.id in user_ids or (email and stable_id(email) in user_ids):
                enrolled.append(user)
        return enrolled

    async def get_by_id(self, user_id: int) -> Optional[User]:
        remote = self.registry.resolve_remote(user_id)
        if remote is None:
            logger.info("users.index_rebuild user_id=%s", user_id)
            await self.list_all()
            remote = self.registry.resolve_remote(user_id)
            if remote is None:
                return None
        row = await self._read_one(remote)
        if row is None:
            return None
        parsed = self._parse_rows([row], self._parse)
        return parsed[0] if parsed else None

    async def get_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        if not normalized:
            return None
        rows = await self._read({"email": normalized})
        users = self._parse_rows(rows, self._parse)
        return users[0] if users else None

    async def get_by_auth_id(self, auth_user_id: str) -> Optional[User]:
        rows = await self._read({"auth_user_id": auth_user_id})
        users = self._parse_rows(rows, self._parse)
        return users[0] if users else None

    async def email_exists(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def create(self, user: User, *, password: Optional[str] = None) -> int:
        record = UserRecord.from_entity(user).to_record(password=password)
        _, local_id = await self._create(record)
        return local_id

    async def update(self, user: User) -> None:
        remote = self._require_remote(user.id)
        await self.store.update(self.collection, remote, UserRecord.from_entity(user).to_record())

    async def delete(self, user_id: int) -> None:
        remote = self._require_remote(user_id)
        await self.store.delete(self.collection, remote)
        self.registry.unregister(user_id)


class EnrolmentRepository(RemoteRepository):
    """Read-only view of `inscripciones`; `registry` is the user registry."""

    collection = ENROLMENTS

    async def user_ids_for_course(self, course_id: int) -> Set[int]:
        rows = await self._read({"curso_id": course_id})
        records = self._parse_rows(rows, EnrolmentRecord.model_validate)
        return {r.usuario_id for r in records if r.usuario_id}


__all__ = ["UserRepository", "EnrolmentRepository"]
