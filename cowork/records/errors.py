"""
Error taxonomy shared by repositories, use cases and the controller.

Design:
    - RemoteError: the record store failed or was unreachable.
    - ResolutionError: a mutation targeted a local id with no registry entry.
    - NotFoundError: a use case needed an entity that does not exist.
    - CreationError: a create call returned no usable remote id.
    - ValidationError: a business rule failed before any network call.

Read paths log RemoteError and degrade; write paths let it propagate.
"""

from __future__ import annotations

from typing import Any, Optional


class CoworkError(Exception):
    """Base class for all cowork failures."""


class RemoteError(CoworkError):
    """Record store request failed (transport error or non-2xx status)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ResolutionError(CoworkError, LookupError):
    def __init__(self, kind: str, local_id: object):
        super().__init__(f"{kind}_not_mapped: {local_id}")
        self.kind = kind
        self.local_id = local_id


class NotFoundError(CoworkError, LookupError):
    """A referenced entity does not exist (or is not visible)."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


class CreationError(CoworkError):
    def __init__(self, collection: str, response: Any = None):
        super().__init__(f"create_without_id: {collection}")
        self.collection = collection
        self.response = response


class ValidationError(CoworkError, ValueError):
    """Business rule violation; `code` is a short snake_case reason."""

    def __init__(self, code: str, detail: Optional[str] = None):
        super().__init__(code if detail is None else f"{code}: {detail}")
        self.code = code
        self.detail = detail


__all__ = [
    "CoworkError",
    "RemoteError",
    "ResolutionError",
    "NotFoundError",
    "CreationError",
    "ValidationError",
]
