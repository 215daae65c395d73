"""Helpers to read identities out of record store payloads."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .errors import CreationError


def _first_key(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value is None or isinstance(value, bool):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def record_id(row: Mapping[str, Any]) -> Optional[str]:
    """Remote id of a stored record (`_id`, falling back to `id`)."""
    return _first_key(row, "_id", "id")


def extract_remote_id(collection: str, response: Any) -> str:
    """Remote id from a create response.

    Accepts a record (`_id`/`id`), an `{"inserted": [record]}` wrapper or a
    bare string/number. Anything else raises `CreationError`.
    """
    if isinstance(response, Mapping):
        direct = record_id(response)
        if direct:
            return direct
        inserted = response.get("inserted")
        if isinstance(inserted, list) and inserted and isinstance(inserted[0], Mapping):
            nested = record_id(inserted[0])
            if nested:
                return nested
        raise CreationError(collection, response)
    if isinstance(response, bool):
        raise CreationError(collection, response)
    if isinstance(response, (str, int)):
        text = str(response).strip()
        if text:
            return text
    raise CreationError(collection, response)


__all__ = ["record_id", "extract_remote_id"]
